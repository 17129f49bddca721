"""Repository and adapter interfaces (Ports) - abstraction for data access."""
from abc import ABC, abstractmethod
from typing import Callable, Iterator, List, Optional

from pricewatch.domain.entities import PriceHistoryRecord, Quote, WatchedStock


class RecentPrices:
    """Lazy view over the newest price records of one stock.

    Nothing is queried until iteration, and every iteration queries again,
    so the view always reflects the current state of the store.
    """

    def __init__(self, fetch: Callable[[], List[PriceHistoryRecord]]):
        self._fetch = fetch

    def __iter__(self) -> Iterator[PriceHistoryRecord]:
        return iter(self._fetch())

    def to_list(self) -> List[PriceHistoryRecord]:
        return list(self)


class QuoteSource(ABC):
    """Interface for market data providers."""

    @abstractmethod
    async def fetch_quote(self, ticker: str) -> Quote:
        """Fetch the current quote, raising QuoteUnavailable on any failure."""
        pass

    async def aclose(self) -> None:
        """Release network resources."""


class PriceHistoryRepository(ABC):
    """Interface for the append-only price history ledger."""

    @abstractmethod
    def append(
        self, stock_id: int, price: float, change_percent: Optional[float]
    ) -> PriceHistoryRecord:
        """Append a price record stamped with the current time."""
        pass

    @abstractmethod
    def recent(self, stock_id: int, limit: Optional[int] = None) -> RecentPrices:
        """Newest-first records for a stock."""
        pass

    def latest(self, stock_id: int) -> Optional[PriceHistoryRecord]:
        """Get the most recent record for a stock."""
        return next(iter(self.recent(stock_id, 1)), None)


class WatchlistProvider(ABC):
    """Interface for reading watched stocks (owned by the watchlist CRUD side)."""

    @abstractmethod
    def list_stocks(self) -> List[WatchedStock]:
        """Get every watched stock."""
        pass

    @abstractmethod
    def get(self, stock_id: int) -> Optional[WatchedStock]:
        """Get a watched stock by id."""
        pass

    @abstractmethod
    def get_by_ticker(self, ticker: str) -> Optional[WatchedStock]:
        """Get a watched stock by ticker (case-insensitive)."""
        pass


class AlertStateStore(ABC):
    """Interface for the ticker -> last alert epoch map."""

    @abstractmethod
    def get(self, ticker: str) -> Optional[float]:
        """Get the epoch of the last alert for a ticker."""
        pass

    @abstractmethod
    def set(self, ticker: str, epoch: float) -> None:
        """Record the epoch of an alert for a ticker."""
        pass

    @abstractmethod
    def compare_and_set(
        self, ticker: str, expected: Optional[float], epoch: float
    ) -> bool:
        """Set the epoch only if the stored value still equals ``expected``."""
        pass


class AlertDestination(ABC):
    """Interface for a channel able to deliver a text message to a chat."""

    @abstractmethod
    async def send_message(self, chat_id: int, text: str) -> None:
        """Deliver text to one chat, raising NotifyFailure on failure."""
        pass
