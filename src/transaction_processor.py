import dataclasses
import logging
from typing import Optional, Tuple

from models import Transaction, TransactionType, ClientAccount, ProcessingResult
from ledger import Ledger

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions to a ledger, one at a time.
    Every handler checks all of its preconditions before touching the ledger,
    so a rejected transaction leaves accounts and journal exactly as they were.
    """

    def __init__(self, ledger: Ledger):
        self._ledger = ledger

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            SUCCESS if the mutation was applied, otherwise the reason it was rejected.
        """
        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                result = self._handle_deposit(transaction)
            case TransactionType.WITHDRAWAL:
                result = self._handle_withdrawal(transaction)
            case TransactionType.DISPUTE:
                result = self._handle_dispute(transaction)
            case TransactionType.RESOLVE:
                result = self._handle_resolve(transaction)
            case TransactionType.CHARGEBACK:
                result = self._handle_chargeback(transaction)

        if result.is_success:
            logger.debug(f"Applied {transaction}")
        else:
            logger.warning(f"Rejected {transaction}: {result.value}")
        return result

    def _handle_deposit(self, transaction: Transaction) -> ProcessingResult:
        if not self._has_valid_amount(transaction):
            return ProcessingResult.MISSING_OR_INVALID_AMOUNT

        if self._ledger.has_transaction(transaction.transaction_id):
            return ProcessingResult.DUPLICATE_TRANSACTION

        existing = self._ledger.get_account(transaction.client_id)
        if existing is not None and existing.locked:
            return ProcessingResult.ACCOUNT_LOCKED

        account = self._ledger.get_or_create_account(transaction.client_id)
        account.credit(transaction.amount)
        self._ledger.store_transaction(dataclasses.replace(transaction, disputed=False))
        return ProcessingResult.SUCCESS

    def _handle_withdrawal(self, transaction: Transaction) -> ProcessingResult:
        if not self._has_valid_amount(transaction):
            return ProcessingResult.MISSING_OR_INVALID_AMOUNT

        account = self._ledger.get_account(transaction.client_id)
        if account is None:
            return ProcessingResult.ACCOUNT_NOT_FOUND

        if account.locked:
            return ProcessingResult.ACCOUNT_LOCKED

        if account.available < transaction.amount:
            return ProcessingResult.INSUFFICIENT_FUNDS

        # Withdrawals are not journaled; only deposits can be disputed.
        account.debit(transaction.amount)
        return ProcessingResult.SUCCESS

    def _handle_dispute(self, transaction: Transaction) -> ProcessingResult:
        original, failure = self._find_referenced(transaction)
        if failure is not None:
            return failure

        if self._ledger.is_transaction_charged_back(original.transaction_id):
            return ProcessingResult.ALREADY_CHARGED_BACK

        if original.disputed:
            return ProcessingResult.ALREADY_DISPUTED

        account, failure = self._find_account_for(original)
        if failure is not None:
            return failure

        # No lock check: disputes on a locked account are still honoured.
        account.hold(original.amount)
        original.disputed = True
        return ProcessingResult.SUCCESS

    def _handle_resolve(self, transaction: Transaction) -> ProcessingResult:
        original, failure = self._find_referenced(transaction)
        if failure is not None:
            return failure

        if not original.disputed:
            return ProcessingResult.NOT_DISPUTED

        account, failure = self._find_account_for(original)
        if failure is not None:
            return failure

        account.release_hold(original.amount)
        original.disputed = False
        return ProcessingResult.SUCCESS

    def _handle_chargeback(self, transaction: Transaction) -> ProcessingResult:
        original, failure = self._find_referenced(transaction)
        if failure is not None:
            return failure

        if not original.disputed:
            return ProcessingResult.NOT_DISPUTED

        account, failure = self._find_account_for(original)
        if failure is not None:
            return failure

        account.remove_held(original.amount)
        account.lock()
        original.disputed = False
        self._ledger.mark_transaction_charged_back(original.transaction_id)
        return ProcessingResult.SUCCESS

    def _find_referenced(self, transaction: Transaction) -> Tuple[Optional[Transaction], Optional[ProcessingResult]]:
        """Look up the journaled transaction a dispute, resolve or chargeback points at."""
        original = self._ledger.get_transaction(transaction.transaction_id)

        if original is None:
            return None, ProcessingResult.TRANSACTION_NOT_FOUND

        if original.client_id != transaction.client_id:
            logger.info(f"Client {transaction.client_id} referenced tx {transaction.transaction_id} owned by client {original.client_id}")
            return None, ProcessingResult.CLIENT_MISMATCH

        return original, None

    def _find_account_for(self, original: Transaction) -> Tuple[Optional[ClientAccount], Optional[ProcessingResult]]:
        if original.amount is None:
            return None, ProcessingResult.MISSING_OR_INVALID_AMOUNT

        account = self._ledger.get_account(original.client_id)
        if account is None:
            return None, ProcessingResult.ACCOUNT_NOT_FOUND

        return account, None

    @staticmethod
    def _has_valid_amount(transaction: Transaction) -> bool:
        return transaction.amount is not None and transaction.amount > 0
