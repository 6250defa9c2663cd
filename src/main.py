import argparse
import logging
import os
import sys
from typing import Optional, Sequence

from balance_writer import write_balances
from models import BalancePrecisionError, ParseError
from payments_engine import PaymentsEngine

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_PROCESSING_ERROR = 1
EXIT_USAGE_ERROR = 2

LOG_FORMAT = "%(levelname)s: %(message)s"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="toy-ledger",
        description=(
            "Apply a CSV ledger of deposits, withdrawals, disputes, resolves and chargebacks "
            "and print the final client balances as CSV."
        ),
    )
    parser.add_argument("input", help="Path to the transactions CSV file.")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log processing details to stderr (-v for info, -vv for debug).",
    )
    args = parser.parse_args(argv)

    if not os.path.isfile(args.input):
        parser.error(f"couldn't read CSV: {args.input}")

    return args


def configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        args = parse_args(argv)
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else EXIT_USAGE_ERROR

    configure_logging(args.verbose)

    engine = PaymentsEngine()
    try:
        accounts = engine.process_file(args.input)
    except (ParseError, BalancePrecisionError, OSError, UnicodeDecodeError) as e:
        print(f"error handling transaction data: {e}", file=sys.stderr)
        return EXIT_PROCESSING_ERROR

    try:
        write_balances(accounts, sys.stdout)
        logger.info(f"Wrote balances for {len(accounts)} clients")
    except OSError as e:
        print(f"error writing client account states: {e}", file=sys.stderr)
        return EXIT_PROCESSING_ERROR

    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
