from typing import Dict, Optional, Set

from models import Transaction, ClientAccount


class Ledger:
    """
    In-memory account and transaction store.
    Holds client accounts and the journal of deposits kept for dispute lookups.
    Enforces no business rules; the transaction processor does all validation.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._transactions: Dict[int, Transaction] = {}
        self._charged_back_transaction_ids: Set[int] = set()

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create an empty one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        """Return the account for a client, or None if it was never created."""
        return self._accounts.get(client_id)

    def has_account(self, client_id: int) -> bool:
        return client_id in self._accounts

    def store_transaction(self, transaction: Transaction) -> bool:
        """
        Journal a transaction under its id unless that id is already taken.
        Returns True if stored, False if an entry already existed.
        """
        if transaction.transaction_id in self._transactions:
            return False
        self._transactions[transaction.transaction_id] = transaction
        return True

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Retrieve journaled transaction by ID. The returned object is the stored one."""
        return self._transactions.get(transaction_id)

    def has_transaction(self, transaction_id: int) -> bool:
        return transaction_id in self._transactions

    def mark_transaction_charged_back(self, transaction_id: int) -> None:
        self._charged_back_transaction_ids.add(transaction_id)

    def is_transaction_charged_back(self, transaction_id: int) -> bool:
        return transaction_id in self._charged_back_transaction_ids

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)
