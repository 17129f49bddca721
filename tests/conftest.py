"""Pytest configuration and fixtures."""
import pytest

from pricewatch.domain.entities import WatchedStock
from pricewatch.repository.alert_state import InMemoryAlertStateStore
from pricewatch.repository.price_history_repository import InMemoryPriceHistoryRepository
from pricewatch.repository.watchlist_repository import InMemoryWatchlistRepository
from pricewatch.services.alert_service import AlertService
from pricewatch.services.notifier import AlertNotifier, SubscriberRegistry
from tests.fakes import FakeClock, FakeQuoteSource, RecordingDestination, SteppingClock


@pytest.fixture
def stocks():
    """Watched stocks: two with intrinsic values, one without."""
    return [
        WatchedStock(id=1, ticker="AAPL", company_name="Apple Inc.", intrinsic_value=200.0, conviction_score=8),
        WatchedStock(id=2, ticker="MSFT", company_name="Microsoft", intrinsic_value=300.0, conviction_score=6),
        WatchedStock(id=3, ticker="TSLA", company_name="Tesla", intrinsic_value=None, conviction_score=3),
    ]


@pytest.fixture
def watchlist(stocks):
    return InMemoryWatchlistRepository(stocks)


@pytest.fixture
def history():
    return InMemoryPriceHistoryRepository(clock=SteppingClock())


@pytest.fixture
def quote_source():
    # AAPL below intrinsic value, MSFT above, TSLA has no intrinsic value
    return FakeQuoteSource({"AAPL": 160.0, "MSFT": 360.0, "TSLA": 250.0})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def alert_state():
    return InMemoryAlertStateStore()


@pytest.fixture
def destination():
    return RecordingDestination()


@pytest.fixture
def subscribers():
    return SubscriberRegistry([111, 222])


@pytest.fixture
def notifier(subscribers, destination):
    return AlertNotifier(subscribers, destination=destination)


@pytest.fixture
def alert_service(alert_state, notifier, clock):
    return AlertService(alert_state, notifier, cooldown_hours=24, clock=clock)
