"""Read-side stock price logic."""
from typing import List, Optional
import logging

from pricewatch.domain.interfaces import PriceHistoryRepository, WatchlistProvider
from pricewatch.domain.entities import PriceHistoryRecord, StockValuation
from pricewatch.services.alert_policy import margin_of_safety

logger = logging.getLogger(__name__)


class StockService:
    """Business logic for reading prices of watched stocks."""

    def __init__(self, watchlist: WatchlistProvider, history: PriceHistoryRepository):
        self._watchlist = watchlist
        self._history = history

    def get_recent_prices(
        self, stock_id: int, limit: Optional[int] = None
    ) -> List[PriceHistoryRecord]:
        """Get recent price history, newest first."""
        return self._history.recent(stock_id, limit).to_list()

    def get_valuation(self, ticker: str) -> Optional[StockValuation]:
        """Latest price and margin of safety for a watched ticker."""
        stock = self._watchlist.get_by_ticker(ticker)
        if stock is None:
            return None
        latest = self._history.latest(stock.id)
        if latest is None:
            return StockValuation(stock=stock)
        return StockValuation(
            stock=stock,
            current_price=latest.price,
            change_percent=latest.change_percent,
            last_updated=latest.timestamp,
            margin_of_safety=margin_of_safety(stock.intrinsic_value, latest.price),
        )
