from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class ProcessingResult(Enum):
    """Outcome of applying one transaction. Anything but SUCCESS left the ledger untouched."""

    SUCCESS = "success"
    MISSING_OR_INVALID_AMOUNT = "missing_or_invalid_amount"
    DUPLICATE_TRANSACTION = "duplicate_transaction"
    ACCOUNT_LOCKED = "account_locked"
    ACCOUNT_NOT_FOUND = "account_not_found"
    TRANSACTION_NOT_FOUND = "transaction_not_found"
    CLIENT_MISMATCH = "client_mismatch"
    ALREADY_DISPUTED = "already_disputed"
    ALREADY_CHARGED_BACK = "already_charged_back"
    NOT_DISPUTED = "not_disputed"
    INSUFFICIENT_FUNDS = "insufficient_funds"

    @property
    def is_success(self) -> bool:
        return self is ProcessingResult.SUCCESS


@dataclass
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None
    disputed: bool = False

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    def credit(self, amount: Decimal) -> None:
        self.available += amount

    def debit(self, amount: Decimal) -> None:
        self.available -= amount

    def hold(self, amount: Decimal) -> None:
        self.available -= amount
        self.held += amount

    def release_hold(self, amount: Decimal) -> None:
        self.held -= amount
        self.available += amount

    def remove_held(self, amount: Decimal) -> None:
        self.held -= amount

    def lock(self) -> None:
        self.locked = True


class ProcessingStats:
    """Counters for one run: applied, rejected by reason, and rows dropped before processing."""

    def __init__(self):
        self.processed = 0
        self.failed = 0
        self.dropped = 0
        self.failures_by_reason: Counter = Counter()

    def record(self, result: ProcessingResult) -> None:
        if result.is_success:
            self.processed += 1
        else:
            self.failed += 1
            self.failures_by_reason[result] += 1

    def record_dropped_row(self) -> None:
        self.dropped += 1
