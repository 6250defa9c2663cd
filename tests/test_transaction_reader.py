import sys
import os
import io
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models import Chargeback, Deposit, Dispute, ParseError, Resolve, Withdrawal
from transaction_reader import read_transactions


def read(text):
    return list(read_transactions(io.StringIO(text)))


class TestReadTransactions:
    def test_all_types(self):
        transactions = read('\n'.join([
            "type,client,tx,amount",
            "deposit,1,1,1.5",
            "withdrawal,1,2,0.5",
            "dispute,1,1,",
            "resolve,1,1,",
            "chargeback,1,1,",
        ]))

        assert transactions == [
            Deposit(client_id=1, transaction_id=1, amount=Decimal("1.5")),
            Withdrawal(client_id=1, transaction_id=2, amount=Decimal("0.5")),
            Dispute(client_id=1, transaction_id=1),
            Resolve(client_id=1, transaction_id=1),
            Chargeback(client_id=1, transaction_id=1),
        ]

    def test_whitespace_and_case_insensitive_type(self):
        transactions = read('\n'.join([
            " type , client , tx , amount ",
            "   DePosit   ,  55  ,   123 ,   17.64  ",
        ]))

        assert transactions == [Deposit(client_id=55, transaction_id=123, amount=Decimal("17.64"))]

    def test_amount_column_optional(self):
        transactions = read('\n'.join([
            "type,client,tx",
            "dispute,1,2",
            "deposit,1,3",
        ]))

        assert transactions == [
            Dispute(client_id=1, transaction_id=2),
            Deposit(client_id=1, transaction_id=3, amount=None),
        ]

    def test_dispute_amount_dropped(self):
        (transaction,) = read("type,client,tx,amount\ndispute,3,4,12.5\n")
        assert transaction == Dispute(client_id=3, transaction_id=4)

    def test_blank_lines_skipped(self):
        transactions = read("type,client,tx,amount\n\ndeposit,1,1,1\n\n")
        assert len(transactions) == 1

    def test_extra_columns_ignored(self):
        (transaction,) = read("type,client,tx,amount\ndeposit,1,1,2.0,extra\n")
        assert transaction.amount == Decimal("2.0")

    def test_empty_input(self):
        assert read("") == []

    def test_id_bounds_accepted(self):
        (transaction,) = read("type,client,tx,amount\ndeposit,65535,4294967295,1\n")
        assert transaction.client_id == 65535
        assert transaction.transaction_id == 4294967295

    def test_explicit_plus_sign_on_ids(self):
        (transaction,) = read("type,client,tx,amount\ndeposit,+5,+6,1\n")
        assert (transaction.client_id, transaction.transaction_id) == (5, 6)

    def test_largest_exact_amount_accepted(self):
        (transaction,) = read("type,client,tx,amount\ndeposit,1,1,999999999999999999999999.9999\n")
        assert transaction.amount == Decimal("999999999999999999999999.9999")

    def test_oversized_amount_on_dispute_still_rejected(self):
        with pytest.raises(ParseError):
            read("type,client,tx,amount\ndispute,1,1,1E+30\n")

    def test_lazy(self):
        stream = io.StringIO("type,client,tx,amount\ndeposit,1,1,1\ndeposit,x,2,1\n")
        transactions = read_transactions(stream)

        assert next(transactions) == Deposit(client_id=1, transaction_id=1, amount=Decimal("1"))
        with pytest.raises(ParseError):
            next(transactions)


class TestParseErrors:
    @pytest.mark.parametrize("row, message", [
        ("bacon,1,1,1.0", "unknown transaction type 'bacon'"),
        (",1,1,1.0", "unknown transaction type ''"),
        ("deposit,invalidclient,1,1.0", "invalid client 'invalidclient'"),
        ("deposit,1,invalidtx,1.0", "invalid tx 'invalidtx'"),
        ("deposit,1,1,invalidamount", "invalid amount 'invalidamount'"),
        ("deposit,1,1,NaN", "not a finite number"),
        ("deposit,-1,1,1.0", "not an integer"),
        ("deposit,-0,1,1.0", "not an integer"),
        ("deposit,1,-0,1.0", "not an integer"),
        (",,,", "unknown transaction type ''"),
        ("deposit,1,1,9999999999999999999999999.12345", "does not fit in 28 significant digits"),
        ("deposit,1,1,1000000000000000000000000.0001", "does not fit in 28 significant digits"),
        ("deposit,1,1,1E+30", "does not fit in 28 significant digits"),
        ("deposit,65536,1,1.0", "out of range"),
        ("deposit,1,4294967296,1.0", "out of range"),
        ("deposit,1.5,1,1.0", "not an integer"),
        ("deposit,1", "missing tx field"),
        ("deposit", "missing client field"),
    ])
    def test_malformed_row(self, row, message):
        with pytest.raises(ParseError) as exc_info:
            read("type,client,tx,amount\n" + row + "\n")

        assert message in str(exc_info.value)
        assert exc_info.value.line_number == 2

    def test_missing_header_column(self):
        with pytest.raises(ParseError, match="missing required columns: tx"):
            read("type,client,amount\ndeposit,1,1.0\n")
