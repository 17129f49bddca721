"""Read-only watchlist providers."""
from typing import Dict, List, Optional
import logging

from pydantic import ValidationError

from pricewatch.domain.entities import WatchedStock
from pricewatch.domain.interfaces import WatchlistProvider
from pricewatch.repository.clickhouse_client import ClickHouseConnection

logger = logging.getLogger(__name__)


class ClickHouseWatchlistRepository(WatchlistProvider):
    """Reads the watched_stocks table maintained by the watchlist CRUD side."""

    _SELECT = """
    SELECT id, ticker, company_name, intrinsic_value, conviction_score
    FROM watched_stocks FINAL
    """

    def __init__(self, connection: ClickHouseConnection):
        self._conn = connection

    @staticmethod
    def _to_entity(row) -> WatchedStock:
        return WatchedStock(
            id=row[0],
            ticker=row[1],
            company_name=row[2],
            intrinsic_value=float(row[3]) if row[3] is not None else None,
            conviction_score=row[4],
        )

    @classmethod
    def _parse(cls, row) -> Optional[WatchedStock]:
        try:
            return cls._to_entity(row)
        except ValidationError as e:
            logger.warning(f"Skipping invalid watched stock {row[0]}: {e}")
            return None

    def list_stocks(self) -> List[WatchedStock]:
        """Get every valid watched stock; rows that fail validation are skipped."""
        results = self._conn.execute(self._SELECT + " ORDER BY id")
        stocks = (self._parse(row) for row in results)
        return [stock for stock in stocks if stock is not None]

    def get(self, stock_id: int) -> Optional[WatchedStock]:
        results = self._conn.execute(
            self._SELECT + " WHERE id = %(id)s LIMIT 1", {"id": stock_id}
        )
        return self._parse(results[0]) if results else None

    def get_by_ticker(self, ticker: str) -> Optional[WatchedStock]:
        results = self._conn.execute(
            self._SELECT + " WHERE upper(ticker) = %(ticker)s LIMIT 1",
            {"ticker": ticker.strip().upper()},
        )
        return self._parse(results[0]) if results else None


class InMemoryWatchlistRepository(WatchlistProvider):
    """Watchlist held in process memory, for tests and local runs."""

    def __init__(self, stocks: Optional[List[WatchedStock]] = None):
        self._stocks: Dict[int, WatchedStock] = {}
        for stock in stocks or []:
            self.add(stock)

    @classmethod
    def from_seed(cls, seed: Dict[str, Optional[float]]) -> "InMemoryWatchlistRepository":
        """Build a watchlist from a ticker -> intrinsic value mapping."""
        return cls([
            WatchedStock(id=index, ticker=ticker, intrinsic_value=value)
            for index, (ticker, value) in enumerate(seed.items(), start=1)
        ])

    def add(self, stock: WatchedStock) -> None:
        existing = self.get_by_ticker(stock.ticker)
        if existing is not None and existing.id != stock.id:
            raise ValueError(f"{stock.ticker} is already watched")
        self._stocks[stock.id] = stock

    def list_stocks(self) -> List[WatchedStock]:
        return list(self._stocks.values())

    def get(self, stock_id: int) -> Optional[WatchedStock]:
        return self._stocks.get(stock_id)

    def get_by_ticker(self, ticker: str) -> Optional[WatchedStock]:
        ticker = ticker.strip().upper()
        return next((s for s in self._stocks.values() if s.ticker == ticker), None)
