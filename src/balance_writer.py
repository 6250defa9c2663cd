import csv
from decimal import Decimal
from typing import Mapping, TextIO

from models import ClientAccount

OUTPUT_COLUMNS = ("client", "available", "held", "total", "locked")


def format_decimal(value: Decimal) -> str:
    """Format decimal in fixed-point notation, keeping its native scale (never scientific)."""
    return f"{value:f}"


def format_account(account: ClientAccount) -> list:
    return [
        account.client_id,
        format_decimal(account.available),
        format_decimal(account.held),
        format_decimal(account.total),
        str(account.locked).lower(),
    ]


def write_balances(accounts: Mapping[int, ClientAccount], stream: TextIO) -> None:
    """Write one CSV row per client account, preceded by a header row."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_COLUMNS)
    for account in accounts.values():
        writer.writerow(format_account(account))
    stream.flush()
