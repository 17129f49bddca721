"""Price history repositories: ClickHouse and in-memory implementations."""
from typing import Dict, List, Optional, Tuple
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from itertools import count
import logging
import threading

from pricewatch.config import refresh_config
from pricewatch.domain.entities import PriceHistoryRecord
from pricewatch.domain.errors import PersistenceFailure
from pricewatch.domain.interfaces import PriceHistoryRepository, RecentPrices
from pricewatch.repository.clickhouse_client import ClickHouseConnection

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
COLUMNS = ("stock_id", "price", "change_percent", "timestamp")


def to_cents(value: Optional[float]) -> Optional[Decimal]:
    """Round a float to two decimals the way the price columns store it."""
    if value is None:
        return None
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def resolve_limit(limit: Optional[int], default: int) -> int:
    """Apply the default only when no limit is given; negative limits are rejected."""
    if limit is None:
        return default
    if limit < 0:
        raise ValueError(f"limit must not be negative, got {limit}")
    return limit


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ClickHousePriceHistoryRepository(PriceHistoryRepository):
    """ClickHouse implementation for the price history ledger.

    Rows sharing a timestamp come back in no particular order.
    """

    def __init__(self, connection: ClickHouseConnection, default_limit: int = None):
        self._conn = connection
        self._default_limit = default_limit or refresh_config.PRICE_HISTORY_DEFAULT_LIMIT

    def append(
        self, stock_id: int, price: float, change_percent: Optional[float]
    ) -> PriceHistoryRecord:
        """Insert one record stamped with the current UTC time."""
        timestamp = _now()
        row = (stock_id, to_cents(price), to_cents(change_percent), timestamp)
        try:
            self._conn.insert_rows("price_history", COLUMNS, [row])
        except Exception as e:
            raise PersistenceFailure(stock_id, str(e)) from e
        return PriceHistoryRecord(
            stock_id=stock_id,
            price=float(row[1]),
            change_percent=float(row[2]) if row[2] is not None else None,
            timestamp=timestamp,
        )

    def _query_recent(self, stock_id: int, limit: int) -> List[PriceHistoryRecord]:
        if limit == 0:
            return []
        query = """
        SELECT stock_id, price, change_percent, timestamp
        FROM price_history
        WHERE stock_id = %(stock_id)s
        ORDER BY timestamp DESC
        LIMIT %(limit)s
        """
        results = self._conn.execute(query, {"stock_id": stock_id, "limit": limit})
        return [
            PriceHistoryRecord(
                stock_id=row[0],
                price=float(row[1]),
                change_percent=float(row[2]) if row[2] is not None else None,
                timestamp=row[3],
            )
            for row in results
        ]

    def recent(self, stock_id: int, limit: Optional[int] = None) -> RecentPrices:
        """Newest-first records, queried on every iteration."""
        effective_limit = resolve_limit(limit, self._default_limit)
        return RecentPrices(lambda: self._query_recent(stock_id, effective_limit))


class InMemoryPriceHistoryRepository(PriceHistoryRepository):
    """Process-local ledger, used for tests and STORAGE_BACKEND=memory.

    Unlike ClickHouse, records with equal timestamps are returned in
    reverse append order.
    """

    def __init__(self, default_limit: int = None, clock=_now):
        self._default_limit = default_limit or refresh_config.PRICE_HISTORY_DEFAULT_LIMIT
        self._clock = clock
        self._records: Dict[int, List[Tuple[int, PriceHistoryRecord]]] = {}
        self._sequence = count()
        self._lock = threading.Lock()

    def append(
        self, stock_id: int, price: float, change_percent: Optional[float]
    ) -> PriceHistoryRecord:
        cents = to_cents(change_percent)
        record = PriceHistoryRecord(
            stock_id=stock_id,
            price=float(to_cents(price)),
            change_percent=float(cents) if cents is not None else None,
            timestamp=self._clock(),
        )
        with self._lock:
            self._records.setdefault(stock_id, []).append((next(self._sequence), record))
        return record

    def _query_recent(self, stock_id: int, limit: int) -> List[PriceHistoryRecord]:
        with self._lock:
            entries = list(self._records.get(stock_id, []))
        # Equal timestamps keep append order, newest first.
        entries.sort(key=lambda entry: (entry[1].timestamp, entry[0]), reverse=True)
        return [record for _, record in entries[:limit]]

    def recent(self, stock_id: int, limit: Optional[int] = None) -> RecentPrices:
        effective_limit = resolve_limit(limit, self._default_limit)
        return RecentPrices(lambda: self._query_recent(stock_id, effective_limit))
