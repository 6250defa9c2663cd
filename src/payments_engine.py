import logging
from typing import Dict, Iterable

from models import ClientAccount, ProcessingResult, ProcessingStats, Transaction
from state_manager import StateManager
from transaction_processor import TransactionProcessor
from transaction_reader import read_transactions

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Applies a transaction stream to client accounts as a strict left-to-right fold.
    Each engine owns its state, so partial streams can be fed and inspected between calls.
    """

    def __init__(self):
        self._state = StateManager()
        self._processor = TransactionProcessor(self._state)
        self._stats = ProcessingStats()

    @property
    def state(self) -> StateManager:
        return self._state

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    @property
    def accounts(self) -> Dict[int, ClientAccount]:
        return self._state.get_all_accounts()

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing transactions from {filepath}")
        with open(filepath, "r", newline="") as f:
            return self.process_transactions(read_transactions(f))

    def process_transactions(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        """
        Apply transactions in order and return account states.
        A ParseError raised while iterating propagates; records applied before it keep their effect.
        """
        for transaction in transactions:
            self.process_transaction(transaction)

        logger.info(f"Processing complete. {self._stats}")
        return self.accounts

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        result = self._processor.process_transaction(transaction)
        self._stats.record(result)
        return result
