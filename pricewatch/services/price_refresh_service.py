"""One refresh cycle: quote, record and evaluate every watched stock."""
import asyncio
from datetime import datetime, timezone
from typing import Callable, List, Set
import logging

from pricewatch.domain.entities import (
    Quote, RefreshCycleReport, TickerRefreshResult, WatchedStock
)
from pricewatch.domain.errors import PersistenceFailure, QuoteUnavailable
from pricewatch.domain.interfaces import (
    PriceHistoryRepository, QuoteSource, WatchlistProvider
)
from pricewatch.services.alert_policy import margin_of_safety
from pricewatch.services.alert_service import AlertService
from pricewatch.services.callbacks import dispatch

logger = logging.getLogger(__name__)


class PriceRefreshService:
    """Runs refresh cycles with per-ticker failure isolation.

    Tickers are processed concurrently; a cycle takes as long as its
    slowest ticker. History appends go through the repository
    synchronously since the ClickHouse client is not safe to share
    across threads.
    """

    def __init__(
        self,
        watchlist: WatchlistProvider,
        quote_source: QuoteSource,
        history: PriceHistoryRepository,
        alert_service: AlertService,
    ):
        self._watchlist = watchlist
        self._quote_source = quote_source
        self._history = history
        self._alert_service = alert_service
        self._callbacks: Set[Callable] = set()

    def register_callback(self, callback: Callable) -> None:
        """Register a listener for price_update events."""
        self._callbacks.add(callback)

    def unregister_callback(self, callback: Callable) -> None:
        self._callbacks.discard(callback)

    async def run_cycle(self, trigger: str = "scheduled") -> RefreshCycleReport:
        """Refresh every watched stock and wait for all of them."""
        report = RefreshCycleReport(trigger=trigger, started_at=datetime.now(timezone.utc))
        logger.info(f"Starting price update cycle ({trigger})...")

        try:
            stocks = self._watchlist.list_stocks()
        except Exception as e:
            logger.error(f"Error loading watchlist, cycle skipped: {e}")
            report.error = str(e)
            report.finished_at = datetime.now(timezone.utc)
            return report

        results: List[TickerRefreshResult] = await asyncio.gather(
            *(self._refresh_stock_safely(stock) for stock in stocks)
        )
        report.results = list(results)
        report.finished_at = datetime.now(timezone.utc)
        logger.info(
            f"Price update cycle completed for {len(stocks)} stocks: "
            f"{report.updated} updated, {report.failed} failed, {report.alerts_sent} alerts"
        )
        return report

    async def _refresh_stock_safely(self, stock: WatchedStock) -> TickerRefreshResult:
        try:
            return await self._refresh_stock(stock)
        except Exception as e:
            logger.exception(f"Failed to update price for {stock.ticker}: {e}")
            return TickerRefreshResult(ticker=stock.ticker, status="error", error=str(e))

    async def _refresh_stock(self, stock: WatchedStock) -> TickerRefreshResult:
        ticker = stock.ticker
        try:
            quote = await self._quote_source.fetch_quote(ticker)
        except QuoteUnavailable as e:
            logger.warning(f"Failed to fetch price for {ticker}: {e.reason}")
            return TickerRefreshResult(ticker=ticker, status="quote_unavailable", error=e.reason)

        try:
            record = self._history.append(stock.id, quote.price, quote.change_percent)
        except PersistenceFailure as e:
            logger.error(f"Failed to store price for {ticker}: {e.reason}")
            return TickerRefreshResult(
                ticker=ticker, status="persistence_failed", price=quote.price, error=e.reason
            )
        logger.info(f"Updated price for {ticker}: ${record.price}")

        await self._publish_price_update(stock, quote)
        alert = await self._alert_service.process(stock, quote.price)
        return TickerRefreshResult(
            ticker=ticker,
            status="updated",
            price=record.price,
            change_percent=record.change_percent,
            margin_of_safety=margin_of_safety(stock.intrinsic_value, quote.price),
            alerted=alert is not None,
        )

    async def _publish_price_update(self, stock: WatchedStock, quote: Quote) -> None:
        if not self._callbacks:
            return
        await dispatch(self._callbacks, {
            "type": "price_update",
            "data": {
                "stock_id": stock.id,
                "ticker": stock.ticker,
                "price": quote.price,
                "change_percent": quote.change_percent,
                "margin_of_safety": margin_of_safety(stock.intrinsic_value, quote.price),
                "observed_at": quote.observed_at.isoformat(),
            },
        })
