import logging
from typing import Dict, Iterable

from models import Transaction, ClientAccount, ProcessingResult, ProcessingStats
from ledger import Ledger
from transaction_processor import TransactionProcessor
from csv_io import read_transactions

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Feeds transactions, strictly in input order, through a single processor
    and ledger. Rejections are logged and counted; they never stop the run.
    """

    def __init__(self):
        self._ledger = Ledger()
        self._processor = TransactionProcessor(self._ledger)
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        with open(filepath, "r", newline="", encoding="utf-8", errors="replace") as f:
            logger.info(f"Processing transactions from {filepath}")
            return self.process_transactions(read_transactions(f, self._stats))

    def process_transactions(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        for transaction in transactions:
            self.process_transaction(transaction)

        self._log_report()
        return self._ledger.get_all_accounts()

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        result = self._processor.process_transaction(transaction)
        self._stats.record(result)
        return result

    def _log_report(self) -> None:
        logger.info(
            f"Processed: {self._stats.processed}, "
            f"Failed: {self._stats.failed}, "
            f"Dropped rows: {self._stats.dropped}"
        )
        for reason, count in sorted(self._stats.failures_by_reason.items(), key=lambda item: item[0].value):
            logger.debug(f"  {reason.value}: {count}")
