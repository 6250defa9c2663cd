from typing import Dict, Optional, Union

from models import ClientAccount, Deposit, Withdrawal

DisputableTransaction = Union[Deposit, Withdrawal]


class StateManager:
    """
    Fold state for a single processing pass.
    Stores client accounts and the index of disputable transactions for dispute lookups.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        # Global across clients: a dispute-family record looks up the amount here
        # but mutates the account named by its own client id.
        self._transactions: Dict[int, DisputableTransaction] = {}

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def store_transaction(self, transaction: DisputableTransaction) -> None:
        """Store transaction for future dispute lookups. Last write wins on a reused id."""
        self._transactions[transaction.transaction_id] = transaction

    def get_transaction(self, transaction_id: int) -> Optional[DisputableTransaction]:
        """Retrieve stored transaction by ID."""
        return self._transactions.get(transaction_id)

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)
