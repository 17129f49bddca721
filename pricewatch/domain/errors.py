"""Domain errors raised by adapters and caught per ticker by the scheduler."""


class PriceWatchError(Exception):
    """Base class for pricewatch errors."""


class QuoteUnavailable(PriceWatchError):
    """A quote could not be obtained for a ticker."""

    def __init__(self, ticker: str, reason: str):
        super().__init__(f"Quote unavailable for {ticker}: {reason}")
        self.ticker = ticker
        self.reason = reason


class PersistenceFailure(PriceWatchError):
    """A price history record could not be stored."""

    def __init__(self, stock_id: int, reason: str):
        super().__init__(f"Failed to persist price for stock {stock_id}: {reason}")
        self.stock_id = stock_id
        self.reason = reason


class NotifyFailure(PriceWatchError):
    """An alert could not be delivered to one destination."""

    def __init__(self, destination, reason: str):
        super().__init__(f"Failed to notify {destination}: {reason}")
        self.destination = destination
        self.reason = reason
