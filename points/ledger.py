"""
Ordered, append-only store of points transactions.

The sequence is re-sorted by event timestamp on every write and the
per-payer projection is rebuilt at the same time, so reads and spends
never pay for ordering or summing the whole history.
"""

import logging
import threading
from bisect import bisect_left
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from decimal import Decimal
from operator import attrgetter
from types import MappingProxyType
from typing import Callable, Optional, Union

from pydantic import TypeAdapter, ValidationError

from .errors import InvalidTransaction
from .models import Transaction, as_utc

logger = logging.getLogger(__name__)

TransactionInput = Union[Transaction, Mapping]

_by_timestamp = attrgetter("timestamp")
_timestamp_adapter = TypeAdapter(datetime)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    field = first["loc"][0] if first["loc"] else "transaction"
    if first["type"] == "missing":
        return f"Missing {field} field"
    if field == "timestamp":
        return "Timestamp must be a valid date"
    if field == "points":
        return "Points field must be a number"
    return f"Invalid {field}: {first['msg']}"


def project(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    balances: dict[str, Decimal] = {}
    for transaction in transactions:
        balances[transaction.payer] = balances.get(transaction.payer, Decimal(0)) + transaction.points
    return balances


class Ledger:
    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._transactions: list[Transaction] = []
        self._projection: dict[str, Decimal] = {}
        self._clock = clock or _utcnow
        self.lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._transactions)

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        with self.lock:
            return tuple(self._transactions)

    def append(self, transactions: Union[TransactionInput, Iterable[TransactionInput]]) -> None:
        batch = self._validate(transactions)
        with self.lock:
            self._transactions.extend(batch)
            # list.sort is stable: equal timestamps keep insertion order
            self._transactions.sort(key=_by_timestamp)
            self._projection = project(self._transactions)
            logger.debug("Appended %d transaction(s), ledger size %d", len(batch), len(self._transactions))

    def projection(self) -> Mapping[str, Decimal]:
        with self.lock:
            return MappingProxyType(self._projection)

    def projection_from(self, index: int) -> dict[str, Decimal]:
        with self.lock:
            return project(self._transactions[max(index, 0):])

    def find_insertion_point(self, timestamp: Union[datetime, str]) -> int:
        """Index of a transaction with exactly this timestamp, or -1.

        Accepts the same timestamp forms as ``append`` (datetimes or ISO-8601 strings).
        """
        target = as_utc(_timestamp_adapter.validate_python(timestamp))
        with self.lock:
            index = bisect_left(self._transactions, target, key=_by_timestamp)
            if index < len(self._transactions) and self._transactions[index].timestamp == target:
                return index
        return -1

    def next_timestamp(self) -> datetime:
        """Current time, clamped so a new synthetic entry sorts after everything already recorded."""
        now = as_utc(self._clock())
        with self.lock:
            if self._transactions and self._transactions[-1].timestamp > now:
                return self._transactions[-1].timestamp
        return now

    def _validate(self, transactions: Union[TransactionInput, Iterable[TransactionInput]]) -> list[Transaction]:
        if isinstance(transactions, (Transaction, Mapping)):
            transactions = [transactions]
        if transactions is None:
            raise InvalidTransaction("Missing request payload")
        if isinstance(transactions, (str, bytes)) or not isinstance(transactions, Iterable):
            raise InvalidTransaction("Transactions must be an object or a list of objects")

        raw = list(transactions)
        if not raw:
            raise InvalidTransaction("No transactions supplied")

        batch: list[Transaction] = []
        for position, item in enumerate(raw):
            prefix = f"Transaction {position}: " if len(raw) > 1 else ""
            if not isinstance(item, (Transaction, Mapping)):
                raise InvalidTransaction(f"{prefix}Transaction must be an object")
            try:
                batch.append(Transaction.model_validate(item))
            except ValidationError as e:
                raise InvalidTransaction(f"{prefix}{_describe(e)}") from e
        return batch
