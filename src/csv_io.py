import csv
import logging
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Dict, Iterator, List, Optional, TextIO

from models import Transaction, TransactionType, ClientAccount, ProcessingStats

logger = logging.getLogger(__name__)

AMOUNT_PRECISION = Decimal("0.0001")
MAX_CLIENT_ID = 65535
MAX_TRANSACTION_ID = 4294967295
# Keeps balances well inside the 28 digit decimal context so sums stay exact.
MAX_AMOUNT = Decimal("100000000000000")

OUTPUT_FIELDS = ["client", "available", "held", "total", "locked"]

_AMOUNT_BEARING_TYPES = {TransactionType.DEPOSIT, TransactionType.WITHDRAWAL}


class MalformedRowError(ValueError):
    pass


def read_transactions(stream: TextIO, stats: Optional[ProcessingStats] = None) -> Iterator[Transaction]:
    """
    Yield transactions from a CSV stream with a `type, client, tx, amount` header.

    Fields are whitespace-trimmed and the amount column may be missing or empty.
    Rows that cannot be turned into a transaction are logged and skipped.
    """
    reader = csv.reader(stream)
    rows = _read_rows(reader, stats)
    header = _read_header(rows)
    if header is None:
        return

    for row in rows:
        if not any(field.strip() for field in row):
            continue
        try:
            transaction = _parse_csv_row(header, row)
        except (KeyError, ValueError, InvalidOperation) as e:
            _drop_row(stats, f"Skipping line {reader.line_num} {row}: {e}")
            continue
        yield transaction


def write_accounts(accounts: Dict[int, ClientAccount], stream: TextIO) -> None:
    """Write one CSV row per account, ordered by client id."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_FIELDS)
    for client_id in sorted(accounts.keys()):
        account = accounts[client_id]
        writer.writerow([
            client_id,
            format_amount(account.available),
            format_amount(account.held),
            format_amount(account.total),
            str(account.locked).lower(),
        ])


def format_amount(value: Decimal) -> str:
    """Format decimal with exactly 4 decimal places."""
    return f"{value.quantize(AMOUNT_PRECISION):f}"


def parse_amount(text: str) -> Decimal:
    amount = Decimal(text)
    if not amount.is_finite():
        raise MalformedRowError(f"amount {text!r} is not a finite number")
    if abs(amount) >= MAX_AMOUNT:
        raise MalformedRowError(f"amount {text!r} is not below {MAX_AMOUNT}")
    return amount.quantize(AMOUNT_PRECISION, rounding=ROUND_DOWN)


def _read_rows(reader, stats: Optional[ProcessingStats]) -> Iterator[List[str]]:
    """Yield raw rows, skipping lines the CSV tokenizer itself rejects."""
    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            _drop_row(stats, f"Skipping line {reader.line_num}: {e}")
            continue
        yield row


def _drop_row(stats: Optional[ProcessingStats], message: str) -> None:
    logger.warning(message)
    if stats is not None:
        stats.record_dropped_row()


def _read_header(rows: Iterator[List[str]]) -> Optional[List[str]]:
    for row in rows:
        header = [name.strip().lower() for name in row]
        if any(header):
            return header
    logger.warning("Input has no header row")
    return None


def _parse_csv_row(header: List[str], row: List[str]) -> Transaction:
    """Parse CSV row into Transaction."""
    if len(row) > len(header):
        raise MalformedRowError(f"expected at most {len(header)} fields, got {len(row)}")

    normalized = {name: value.strip() for name, value in zip(header, row)}

    transaction_type = TransactionType(normalized["type"].lower())
    client_id = _parse_bounded_int(normalized["client"], "client", MAX_CLIENT_ID)
    transaction_id = _parse_bounded_int(normalized["tx"], "tx", MAX_TRANSACTION_ID)

    amount = None
    amount_str = normalized.get("amount", "")
    if amount_str and transaction_type in _AMOUNT_BEARING_TYPES:
        amount = parse_amount(amount_str)

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def _parse_bounded_int(text: str, field: str, maximum: int) -> int:
    if not (text.isascii() and text.isdigit()):
        raise MalformedRowError(f"{field} {text!r} is not an unsigned integer")
    value = int(text)
    if not 0 <= value <= maximum:
        raise MalformedRowError(f"{field} {value} outside 0..{maximum}")
    return value
