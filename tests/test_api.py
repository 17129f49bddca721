"""API endpoint tests using FastAPI TestClient with in-memory services."""
import pytest
from fastapi.testclient import TestClient

from pricewatch.api import dependencies
from pricewatch.main import app
from tests.fakes import FakeQuoteSource


@pytest.fixture
def client(watchlist, history, quote_source, destination):
    """TestClient over in-memory services; lifespan is not run."""
    dependencies.init_services(
        watchlist=watchlist,
        history=history,
        quote_source=quote_source,
        telegram_client=destination,
    )
    return TestClient(app)


class TestHealth:
    """Tests for /health."""

    def test_health_in_memory(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["storage"] == "memory"
        assert data["scheduler_running"] is False
        assert data["last_cycle"] is None

    def test_health_reports_last_cycle(self, client):
        client.post("/api/v1/prices/refresh")
        data = client.get("/health").json()
        assert data["last_cycle"]["trigger"] == "manual"
        assert data["last_cycle"]["updated"] == 3


class TestRefresh:
    """Tests for POST /api/v1/prices/refresh."""

    def test_refresh_reports_per_ticker_results(self, client):
        response = client.post("/api/v1/prices/refresh")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "success"
        assert data["summary"]["updated"] == 3
        assert {r["ticker"]: r["status"] for r in data["results"]} == {
            "AAPL": "updated", "MSFT": "updated", "TSLA": "updated",
        }

    def test_refresh_with_failing_ticker_still_succeeds(self, watchlist, history, destination):
        dependencies.init_services(
            watchlist=watchlist,
            history=history,
            quote_source=FakeQuoteSource({"AAPL": 160.0}),
            telegram_client=destination,
        )
        data = TestClient(app).post("/api/v1/prices/refresh").json()

        assert data["summary"]["updated"] == 1
        assert data["summary"]["failed"] == 2

    def test_alert_sent_to_subscribed_chat(self, client, destination):
        client.post("/api/v1/alerts/subscribers/555")
        data = client.post("/api/v1/prices/refresh").json()

        assert data["summary"]["alerts_sent"] == 1
        assert [chat for chat, _ in destination.sent] == [555]


class TestStockEndpoints:
    """Tests for price history and valuation endpoints."""

    def test_recent_prices_empty(self, client):
        response = client.get("/api/v1/stocks/1/prices")
        assert response.status_code == 200
        assert response.json() == {"stock_id": 1, "records": [], "count": 0}

    def test_recent_prices_after_refresh(self, client):
        client.post("/api/v1/prices/refresh")
        client.post("/api/v1/prices/refresh")

        data = client.get("/api/v1/stocks/1/prices", params={"limit": 1}).json()

        assert data["count"] == 1
        assert data["records"][0]["price"] == 160.0

    def test_recent_prices_rejects_bad_limit(self, client):
        assert client.get("/api/v1/stocks/1/prices", params={"limit": 0}).status_code == 422

    def test_valuation(self, client):
        client.post("/api/v1/prices/refresh")

        data = client.get("/api/v1/stocks/aapl/valuation").json()

        assert data["ticker"] == "AAPL"
        assert data["current_price"] == 160.0
        assert data["margin_of_safety"] == pytest.approx(20.0)
        assert data["last_alert_at"] is not None

    def test_valuation_before_any_price(self, client):
        data = client.get("/api/v1/stocks/MSFT/valuation").json()
        assert data["current_price"] is None
        assert data["margin_of_safety"] is None

    def test_valuation_unknown_ticker(self, client):
        response = client.get("/api/v1/stocks/NVDA/valuation")
        assert response.status_code == 404
        assert response.json()["detail"] == "NVDA is not in the watchlist"


class TestSubscribers:
    """Tests for alert subscriber endpoints."""

    def test_subscribe_and_unsubscribe(self, client):
        first = client.post("/api/v1/alerts/subscribers/42").json()
        again = client.post("/api/v1/alerts/subscribers/42").json()
        assert first == {"chat_id": 42, "subscribed": True, "changed": True}
        assert again["changed"] is False

        assert client.get("/api/v1/alerts/subscribers/42").json()["subscribed"] is True
        assert 42 in client.get("/api/v1/alerts/subscribers").json()["chat_ids"]

        removed = client.delete("/api/v1/alerts/subscribers/42").json()
        assert removed == {"chat_id": 42, "subscribed": False, "changed": True}
        assert client.get("/api/v1/alerts/subscribers/42").json()["subscribed"] is False


def test_websocket_ping(client):
    with client.websocket_connect("/ws/realtime") as websocket:
        websocket.send_text("ping")
        assert websocket.receive_json() == {"type": "pong"}
