import dataclasses
import logging
from decimal import Decimal, InvalidOperation

from models import (
    BalancePrecisionError,
    ClientAccount,
    Chargeback,
    Deposit,
    Dispute,
    ProcessingResult,
    Resolve,
    Transaction,
    Withdrawal,
    round_amount,
)
from state_manager import StateManager

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions against state, one at a time, in the order given.
    Returns ProcessingResult to indicate whether the record had any effect.
    Business-rule violations are never raised, only reported through the result.
    """

    def __init__(self, state: StateManager):
        self._state = state

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            APPLIED: The record changed state (balances, dispute set or the disputable index)
            IGNORED: The record was a no-op (unknown tx, dispute state mismatch)
            SKIPPED_LOCKED: The client's account is locked and accepts nothing further
        """
        account = self._state.get_or_create_account(transaction.client_id)

        if account.locked:
            logger.debug(f"{transaction}: account {account.client_id} is locked, skipping")
            return ProcessingResult.SKIPPED_LOCKED

        match transaction:
            case Deposit():
                return self._handle_deposit(account, transaction)
            case Withdrawal():
                return self._handle_withdrawal(account, transaction)
            case Dispute():
                return self._handle_dispute(account, transaction)
            case Resolve():
                return self._handle_resolve(account, transaction)
            case Chargeback():
                return self._handle_chargeback(account, transaction)
            case _:
                raise TypeError(f"Unsupported transaction: {transaction!r}")

    def _handle_deposit(self, account: ClientAccount, transaction: Deposit) -> ProcessingResult:
        amount = self._rounded_amount(transaction)
        account.credit(amount)
        self._state.store_transaction(dataclasses.replace(transaction, amount=amount))
        return ProcessingResult.APPLIED

    def _handle_withdrawal(self, account: ClientAccount, transaction: Withdrawal) -> ProcessingResult:
        amount = self._rounded_amount(transaction)
        if account.available >= amount:
            account.debit(amount)
        else:
            logger.debug(f"Withdrawal tx {transaction.transaction_id}: insufficient funds "
                         f"(available {account.available}, requested {amount})")

        # Indexed even when declined, so it stays disputable
        self._state.store_transaction(dataclasses.replace(transaction, amount=amount))
        return ProcessingResult.APPLIED

    def _rounded_amount(self, transaction) -> Decimal:
        try:
            return round_amount(transaction.amount)
        except InvalidOperation as e:
            raise BalancePrecisionError(f"{transaction!r}: amount cannot be rounded exactly") from e

    def _handle_dispute(self, account: ClientAccount, transaction: Dispute) -> ProcessingResult:
        original = self._state.get_transaction(transaction.transaction_id)

        if original is None:
            logger.debug(f"Dispute for tx {transaction.transaction_id}: transaction not found, ignoring")
            return ProcessingResult.IGNORED

        if account.has_open_dispute(transaction.transaction_id):
            logger.debug(f"Dispute for tx {transaction.transaction_id}: transaction already disputed")
            return ProcessingResult.IGNORED

        # TODO: cross-check original.client_id once it is settled whether a dispute may name another client
        account.hold(original.amount)
        account.open_dispute(transaction.transaction_id)
        return ProcessingResult.APPLIED

    def _handle_resolve(self, account: ClientAccount, transaction: Resolve) -> ProcessingResult:
        original = self._state.get_transaction(transaction.transaction_id)

        if original is None:
            logger.debug(f"Resolve for tx {transaction.transaction_id}: transaction not found, ignoring")
            return ProcessingResult.IGNORED

        if not account.has_open_dispute(transaction.transaction_id):
            logger.debug(f"Resolve for tx {transaction.transaction_id}: transaction not disputed")
            return ProcessingResult.IGNORED

        account.release_hold(original.amount)
        account.close_dispute(transaction.transaction_id)
        return ProcessingResult.APPLIED

    def _handle_chargeback(self, account: ClientAccount, transaction: Chargeback) -> ProcessingResult:
        original = self._state.get_transaction(transaction.transaction_id)

        if original is None:
            logger.debug(f"Chargeback for tx {transaction.transaction_id}: transaction not found, ignoring")
            return ProcessingResult.IGNORED

        if not account.has_open_dispute(transaction.transaction_id):
            logger.debug(f"Chargeback for tx {transaction.transaction_id}: transaction not disputed")
            return ProcessingResult.IGNORED

        account.remove_held(original.amount)
        account.lock()
        account.close_dispute(transaction.transaction_id)
        return ProcessingResult.APPLIED
