"""FastAPI dependency injection setup."""
from typing import Optional
import logging

from pricewatch.config import app_config, refresh_config, telegram_config
from pricewatch.domain.interfaces import (
    PriceHistoryRepository, QuoteSource, WatchlistProvider
)
from pricewatch.infrastructure.alphavantage_client import AlphaVantageQuoteSource
from pricewatch.infrastructure.scheduler import RefreshScheduler
from pricewatch.infrastructure.telegram_client import TelegramClient
from pricewatch.infrastructure.yahoo_client import YahooQuoteSource, YFinanceQuoteSource
from pricewatch.repository.alert_state import InMemoryAlertStateStore
from pricewatch.repository.clickhouse_client import ClickHouseConnection
from pricewatch.repository.price_history_repository import (
    ClickHousePriceHistoryRepository,
    InMemoryPriceHistoryRepository,
)
from pricewatch.repository.watchlist_repository import (
    ClickHouseWatchlistRepository,
    InMemoryWatchlistRepository,
)
from pricewatch.services.alert_service import AlertService
from pricewatch.services.notifier import AlertNotifier, SubscriberRegistry
from pricewatch.services.price_refresh_service import PriceRefreshService
from pricewatch.services.stock_service import StockService

logger = logging.getLogger(__name__)

# Application state (set during lifespan)
_connection: Optional[ClickHouseConnection] = None
_quote_source: Optional[QuoteSource] = None
_telegram_client: Optional[TelegramClient] = None
_stock_service: Optional[StockService] = None
_alert_service: Optional[AlertService] = None
_notifier: Optional[AlertNotifier] = None
_refresh_service: Optional[PriceRefreshService] = None
_refresh_scheduler: Optional[RefreshScheduler] = None


def build_quote_source(provider: str = None) -> QuoteSource:
    """Create the quote source named by QUOTE_PROVIDER."""
    provider = (provider or refresh_config.QUOTE_PROVIDER).lower()
    if provider == "yahoo":
        return YahooQuoteSource()
    if provider == "alphavantage":
        return AlphaVantageQuoteSource()
    if provider == "yfinance":
        return YFinanceQuoteSource()
    raise ValueError(f"Unknown quote provider: {provider}")


def init_services(
    connection: Optional[ClickHouseConnection] = None,
    watchlist: Optional[WatchlistProvider] = None,
    history: Optional[PriceHistoryRepository] = None,
    quote_source: Optional[QuoteSource] = None,
    telegram_client: Optional[TelegramClient] = None,
) -> None:
    """Initialize all services.

    With a connection the ClickHouse repositories are used; without one the
    in-memory repositories are used, seeded from WATCHLIST_SEED.
    """
    global _connection, _quote_source, _telegram_client, _stock_service
    global _alert_service, _notifier, _refresh_service, _refresh_scheduler
    _connection = connection

    if watchlist is None:
        watchlist = (
            ClickHouseWatchlistRepository(connection) if connection
            else InMemoryWatchlistRepository.from_seed(app_config.watchlist_seed())
        )
    if history is None:
        history = (
            ClickHousePriceHistoryRepository(connection) if connection
            else InMemoryPriceHistoryRepository()
        )

    _quote_source = quote_source or build_quote_source()
    if telegram_client is None and telegram_config.BOT_TOKEN:
        telegram_client = TelegramClient()
    elif telegram_client is None:
        logger.warning("Telegram bot token not found. Alerts will only reach websocket clients.")
    _telegram_client = telegram_client

    _notifier = AlertNotifier(
        SubscriberRegistry(telegram_config.ALERT_CHAT_IDS),
        destination=_telegram_client,
    )
    _alert_service = AlertService(InMemoryAlertStateStore(), _notifier)
    _stock_service = StockService(watchlist, history)
    _refresh_service = PriceRefreshService(watchlist, _quote_source, history, _alert_service)
    _refresh_scheduler = RefreshScheduler(_refresh_service)


async def close_services() -> None:
    """Close network clients opened by init_services."""
    if _quote_source is not None:
        await _quote_source.aclose()
    if _telegram_client is not None:
        await _telegram_client.aclose()


def get_connection() -> Optional[ClickHouseConnection]:
    """Get database connection (None with in-memory storage)."""
    return _connection


def get_stock_service() -> StockService:
    """Get stock service dependency."""
    if _stock_service is None:
        raise RuntimeError("Services not initialized")
    return _stock_service


def get_alert_service() -> AlertService:
    """Get alert service dependency."""
    if _alert_service is None:
        raise RuntimeError("Services not initialized")
    return _alert_service


def get_notifier() -> AlertNotifier:
    """Get alert notifier dependency."""
    if _notifier is None:
        raise RuntimeError("Services not initialized")
    return _notifier


def get_refresh_service() -> PriceRefreshService:
    """Get price refresh service dependency."""
    if _refresh_service is None:
        raise RuntimeError("Services not initialized")
    return _refresh_service


def get_refresh_scheduler() -> RefreshScheduler:
    """Get refresh scheduler dependency."""
    if _refresh_scheduler is None:
        raise RuntimeError("Services not initialized")
    return _refresh_scheduler
