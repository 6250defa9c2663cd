import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterator, List, Optional, TextIO

from models import (
    AMOUNT_DECIMAL_PLACES,
    MAX_AMOUNT_DIGITS,
    ParseError,
    TRANSACTION_CLASSES,
    Transaction,
    TransactionType,
    amount_fits,
)

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("type", "client", "tx")
AMOUNT_COLUMN = "amount"

MAX_CLIENT_ID = 2 ** 16 - 1
MAX_TRANSACTION_ID = 2 ** 32 - 1

AMOUNT_TYPES = {TransactionType.DEPOSIT, TransactionType.WITHDRAWAL}


def read_transactions(stream: TextIO) -> Iterator[Transaction]:
    """
    Lazily decode CSV rows from stream into transactions.
    The first row is a header naming the columns type, client, tx and, optionally, amount.
    Raises ParseError on the first row that cannot be decoded.
    """
    reader = csv.reader(stream)

    header = _next_row(reader)
    if header is None:
        logger.info("Input is empty, no transactions to read")
        return

    columns = _parse_header(header)

    while True:
        row = _next_row(reader)
        if row is None:
            return
        # Only truly empty lines are skipped; a row of blank fields is a malformed record
        if not row:
            continue
        yield parse_row(row, columns, reader.line_num)


def _next_row(reader) -> Optional[List[str]]:
    try:
        return next(reader)
    except StopIteration:
        return None
    except csv.Error as e:
        raise ParseError(f"malformed CSV: {e}", reader.line_num) from e


def _parse_header(header: List[str]) -> Dict[str, int]:
    columns = {name.strip().lower(): index for index, name in enumerate(header)}
    missing = [name for name in REQUIRED_COLUMNS if name not in columns]
    if missing:
        raise ParseError(f"header is missing required columns: {', '.join(missing)}", line_number=1)
    return columns


def parse_row(row: List[str], columns: Dict[str, int], line_number: Optional[int] = None) -> Transaction:
    """Parse one CSV row into the transaction variant named by its type column."""

    def field(name: str) -> str:
        index = columns.get(name)
        if index is None or index >= len(row):
            return ""
        return row[index].strip()

    type_str = field("type").lower()
    try:
        transaction_type = TransactionType(type_str)
    except ValueError:
        raise ParseError(f"unknown transaction type {type_str!r}", line_number) from None

    client_id = _parse_id(field("client"), "client", MAX_CLIENT_ID, line_number)
    transaction_id = _parse_id(field("tx"), "tx", MAX_TRANSACTION_ID, line_number)
    amount = _parse_amount(field(AMOUNT_COLUMN), line_number)

    transaction_class = TRANSACTION_CLASSES[transaction_type]
    if transaction_type in AMOUNT_TYPES:
        return transaction_class(client_id=client_id, transaction_id=transaction_id, amount=amount)

    # Dispute-family records never carry an amount; whatever was supplied is dropped
    return transaction_class(client_id=client_id, transaction_id=transaction_id)


def _parse_id(value: str, name: str, maximum: int, line_number: Optional[int]) -> int:
    if not value:
        raise ParseError(f"missing {name} field", line_number)
    digits = value[1:] if value.startswith("+") else value
    if not digits.isdigit():
        raise ParseError(f"invalid {name} {value!r}: not an integer", line_number)
    try:
        parsed = int(value)
    except ValueError:
        raise ParseError(f"invalid {name} {value!r}: not an integer", line_number) from None
    if not 0 <= parsed <= maximum:
        raise ParseError(f"invalid {name} {value!r}: out of range 0..{maximum}", line_number)
    return parsed


def _parse_amount(value: str, line_number: Optional[int]) -> Optional[Decimal]:
    if not value:
        return None
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise ParseError(f"invalid amount {value!r}", line_number) from None
    if not amount.is_finite():
        raise ParseError(f"invalid amount {value!r}: not a finite number", line_number)
    if not amount_fits(amount):
        raise ParseError(
            f"invalid amount {value!r}: does not fit in {MAX_AMOUNT_DIGITS} significant digits "
            f"at {AMOUNT_DECIMAL_PLACES} decimal places",
            line_number,
        )
    return amount
