from dataclasses import dataclass, field
from decimal import (
    Context,
    Decimal,
    DivisionByZero,
    Inexact,
    InvalidOperation,
    Overflow,
    ROUND_HALF_EVEN,
    localcontext,
)
from enum import Enum
from typing import ClassVar, Optional, Set

AMOUNT_DECIMAL_PLACES = 4
AMOUNT_QUANTUM = Decimal(1).scaleb(-AMOUNT_DECIMAL_PLACES)

# Significant digits a balance may hold; anything wider cannot be stored exactly
MAX_AMOUNT_DIGITS = 28

ROUNDING_CONTEXT = Context(prec=MAX_AMOUNT_DIGITS, rounding=ROUND_HALF_EVEN, traps=[InvalidOperation, Overflow])
BALANCE_CONTEXT = Context(
    prec=MAX_AMOUNT_DIGITS,
    rounding=ROUND_HALF_EVEN,
    traps=[Inexact, InvalidOperation, Overflow, DivisionByZero],
)


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class ProcessingResult(Enum):
    APPLIED = "applied"
    IGNORED = "ignored"
    SKIPPED_LOCKED = "skipped_locked"


class ParseError(ValueError):
    """Raised when an input record cannot be decoded into a transaction."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class BalancePrecisionError(ArithmeticError):
    """Raised when a balance update cannot be represented exactly."""


def round_amount(amount: Optional[Decimal]) -> Decimal:
    """
    Round a monetary amount to 4 decimal places using banker's rounding.
    Missing amounts count as zero. Amounts already within 4 places keep their scale.
    Raises decimal.InvalidOperation if the rounded amount needs more than 28 digits.
    """
    if amount is None:
        return Decimal("0")
    if amount.as_tuple().exponent < -AMOUNT_DECIMAL_PLACES:
        with localcontext(ROUNDING_CONTEXT):
            return amount.quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_EVEN)
    return amount


def amount_fits(amount: Decimal) -> bool:
    """Whether amount, rounded to 4 places, fits in the significant digits a balance can hold."""
    try:
        rounded = round_amount(amount)
    except InvalidOperation:
        return False
    return rounded.is_zero() or rounded.adjusted() < MAX_AMOUNT_DIGITS - AMOUNT_DECIMAL_PLACES


@dataclass(frozen=True)
class Transaction:
    client_id: int
    transaction_id: int

    transaction_type: ClassVar[TransactionType]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(client={self.client_id}, tx={self.transaction_id})"


@dataclass(frozen=True)
class Deposit(Transaction):
    amount: Optional[Decimal] = None

    transaction_type: ClassVar[TransactionType] = TransactionType.DEPOSIT

    def __repr__(self) -> str:
        return f"Deposit(client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True)
class Withdrawal(Transaction):
    amount: Optional[Decimal] = None

    transaction_type: ClassVar[TransactionType] = TransactionType.WITHDRAWAL

    def __repr__(self) -> str:
        return f"Withdrawal(client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True, repr=False)
class Dispute(Transaction):
    transaction_type: ClassVar[TransactionType] = TransactionType.DISPUTE


@dataclass(frozen=True, repr=False)
class Resolve(Transaction):
    transaction_type: ClassVar[TransactionType] = TransactionType.RESOLVE


@dataclass(frozen=True, repr=False)
class Chargeback(Transaction):
    transaction_type: ClassVar[TransactionType] = TransactionType.CHARGEBACK


TRANSACTION_CLASSES = {
    cls.transaction_type: cls
    for cls in (Deposit, Withdrawal, Dispute, Resolve, Chargeback)
}


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False
    disputed_transaction_ids: Set[int] = field(default_factory=set, repr=False, compare=False)

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    def credit(self, amount: Decimal) -> None:
        self._adjust(available=amount)

    def debit(self, amount: Decimal) -> None:
        self._adjust(available=amount.copy_negate())

    def hold(self, amount: Decimal) -> None:
        self._adjust(available=amount.copy_negate(), held=amount)

    def release_hold(self, amount: Decimal) -> None:
        self._adjust(available=amount, held=amount.copy_negate())

    def remove_held(self, amount: Decimal) -> None:
        self._adjust(held=amount.copy_negate())

    def _adjust(self, available: Decimal = Decimal("0"), held: Decimal = Decimal("0")) -> None:
        """Apply balance deltas exactly; the account is left untouched if any result would round."""
        try:
            with localcontext(BALANCE_CONTEXT):
                new_available = self.available + available
                new_held = self.held + held
                new_available + new_held  # total must stay exact too
        except (Inexact, InvalidOperation, Overflow) as e:
            raise BalancePrecisionError(
                f"client {self.client_id}: balance exceeds {MAX_AMOUNT_DIGITS} significant digits"
            ) from e

        self.available = new_available
        self.held = new_held

    def lock(self) -> None:
        self.locked = True

    def open_dispute(self, transaction_id: int) -> None:
        self.disputed_transaction_ids.add(transaction_id)

    def close_dispute(self, transaction_id: int) -> None:
        self.disputed_transaction_ids.discard(transaction_id)

    def has_open_dispute(self, transaction_id: int) -> bool:
        return transaction_id in self.disputed_transaction_ids


class ProcessingStats:
    """Counters for tracking processing statistics."""

    def __init__(self):
        self.applied = 0
        self.ignored = 0
        self.skipped_locked = 0

    def record(self, result: ProcessingResult) -> None:
        if result == ProcessingResult.APPLIED:
            self.applied += 1
        elif result == ProcessingResult.IGNORED:
            self.ignored += 1
        elif result == ProcessingResult.SKIPPED_LOCKED:
            self.skipped_locked += 1

    def __repr__(self) -> str:
        return f"Applied: {self.applied}, Ignored: {self.ignored}, Skipped (locked): {self.skipped_locked}"
