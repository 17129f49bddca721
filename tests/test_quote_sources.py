"""Tests for quote source adapters."""
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import httpx
import pytest

from pricewatch.domain.errors import QuoteUnavailable
from pricewatch.infrastructure.alphavantage_client import AlphaVantageQuoteSource
from pricewatch.infrastructure.quote_source import build_quote
from pricewatch.infrastructure.yahoo_client import (
    YahooQuoteSource, YFinanceQuoteSource, parse_chart_response
)


def _chart(meta):
    return {"chart": {"result": [{"meta": meta}], "error": None}}


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def av_global_quote_response():
    """Sample GLOBAL_QUOTE response from Alpha Vantage."""
    return {
        "Global Quote": {
            "01. symbol": "AAPL",
            "02. open": "182.3500",
            "05. price": "183.1500",
            "07. latest trading day": "2025-02-07",
            "08. previous close": "182.3500",
            "09. change": "0.8000",
            "10. change percent": "0.4388%",
        }
    }


class TestBuildQuote:
    """Tests for provider value normalization."""

    @pytest.mark.parametrize("price", [None, 0, -1.5, "abc", float("nan"), float("inf"), True])
    def test_invalid_price_rejected(self, price):
        with pytest.raises(QuoteUnavailable):
            build_quote("AAPL", price)

    def test_string_values_parsed(self):
        quote = build_quote("AAPL", "183.15", "0.4388%")
        assert quote.price == 183.15
        assert quote.change_percent == pytest.approx(0.4388)

    def test_bad_change_percent_becomes_none(self):
        assert build_quote("AAPL", 10.0, "n/a").change_percent is None


class TestYahooQuoteSource:
    """Tests for YahooQuoteSource against a mock transport."""

    @pytest.mark.asyncio
    async def test_success(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["agent"] = request.headers.get("user-agent")
            return httpx.Response(200, json=_chart({
                "symbol": "AAPL",
                "regularMarketPrice": 187.5,
                "regularMarketChangePercent": 0.0123,
                "regularMarketTime": 1_700_000_000,
            }))

        source = YahooQuoteSource(client=_client(handler))
        quote = await source.fetch_quote("AAPL")

        assert seen["url"].endswith("/v8/finance/chart/AAPL")
        assert seen["agent"].startswith("Mozilla")
        assert quote.price == 187.5
        assert quote.change_percent == pytest.approx(1.23)
        assert quote.observed_at == datetime.fromtimestamp(1_700_000_000, tz=timezone.utc)

    def test_change_derived_from_previous_close(self):
        quote = parse_chart_response("AAPL", _chart({
            "regularMarketPrice": 110.0, "chartPreviousClose": 100.0,
        }))
        assert quote.change_percent == pytest.approx(10.0)

    def test_change_absent(self):
        quote = parse_chart_response("AAPL", _chart({"regularMarketPrice": 110.0}))
        assert quote.change_percent is None

    def test_unknown_ticker_error(self):
        payload = {"chart": {"result": None, "error": {
            "code": "Not Found", "description": "No data found, symbol may be delisted",
        }}}
        with pytest.raises(QuoteUnavailable, match="delisted"):
            parse_chart_response("ZZZZ", payload)

    @pytest.mark.parametrize("payload", [
        {}, {"chart": {}}, {"chart": {"result": []}}, {"chart": {"result": [{}]}},
        _chart({"symbol": "AAPL"}), _chart({"regularMarketPrice": 0}),
    ])
    def test_malformed_payload(self, payload):
        with pytest.raises(QuoteUnavailable):
            parse_chart_response("AAPL", payload)

    @pytest.mark.asyncio
    async def test_ticker_escaped_in_path(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.raw_path
            return httpx.Response(200, json=_chart({"regularMarketPrice": 5000.0}))

        source = YahooQuoteSource(client=_client(handler))
        await source.fetch_quote("^GSPC")

        assert seen["path"] == b"/v8/finance/chart/%5EGSPC"

    @pytest.mark.asyncio
    async def test_http_error(self):
        source = YahooQuoteSource(client=_client(lambda request: httpx.Response(404)))
        with pytest.raises(QuoteUnavailable, match="404"):
            await source.fetch_quote("AAPL")

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        source = YahooQuoteSource(client=_client(lambda request: httpx.Response(200, text="<html>")))
        with pytest.raises(QuoteUnavailable, match="JSON"):
            await source.fetch_quote("AAPL")

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        source = YahooQuoteSource(client=_client(handler))
        with pytest.raises(QuoteUnavailable, match="ConnectTimeout"):
            await source.fetch_quote("AAPL")

    @pytest.mark.asyncio
    async def test_aclose(self):
        client = _client(lambda request: httpx.Response(200))
        source = YahooQuoteSource(client=client)
        await source.aclose()
        assert client.is_closed


class TestAlphaVantageQuoteSource:
    """Tests for AlphaVantageQuoteSource."""

    @pytest.mark.asyncio
    async def test_success(self, av_global_quote_response):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=av_global_quote_response)

        source = AlphaVantageQuoteSource(api_key="demo", client=_client(handler))
        quote = await source.fetch_quote("AAPL")

        assert seen["params"] == {"function": "GLOBAL_QUOTE", "symbol": "AAPL", "apikey": "demo"}
        assert quote.price == 183.15
        assert quote.change_percent == pytest.approx(0.4388)
        assert quote.observed_at == datetime(2025, 2, 7, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"Note": "Thank you for using Alpha Vantage! Our standard API call frequency is 5 calls per minute"},
        {"Information": "The **demo** API key is for demo purposes only."},
        {"Error Message": "Invalid API call."},
        {"Global Quote": {}},
    ])
    async def test_provider_errors(self, payload):
        source = AlphaVantageQuoteSource(
            api_key="demo", client=_client(lambda request: httpx.Response(200, json=payload))
        )
        with pytest.raises(QuoteUnavailable):
            await source.fetch_quote("AAPL")

    @pytest.mark.asyncio
    async def test_server_error(self):
        source = AlphaVantageQuoteSource(
            api_key="demo", client=_client(lambda request: httpx.Response(503))
        )
        with pytest.raises(QuoteUnavailable, match="503"):
            await source.fetch_quote("AAPL")


class TestYFinanceQuoteSource:
    """Tests for YFinanceQuoteSource with yfinance patched."""

    @pytest.mark.asyncio
    @patch("pricewatch.infrastructure.yahoo_client.yf.Ticker")
    async def test_success(self, mock_ticker):
        mock_ticker.return_value.fast_info = MagicMock(last_price=110.0, previous_close=100.0)

        quote = await YFinanceQuoteSource().fetch_quote("AAPL")

        mock_ticker.assert_called_once_with("AAPL")
        assert quote.price == 110.0
        assert quote.change_percent == pytest.approx(10.0)

    @pytest.mark.asyncio
    @patch("pricewatch.infrastructure.yahoo_client.yf.Ticker")
    async def test_error_becomes_quote_unavailable(self, mock_ticker):
        mock_ticker.side_effect = Exception("Too Many Requests")
        with pytest.raises(QuoteUnavailable, match="Too Many Requests"):
            await YFinanceQuoteSource().fetch_quote("AAPL")

    @pytest.mark.asyncio
    @patch("pricewatch.infrastructure.yahoo_client.yf.Ticker")
    async def test_missing_price(self, mock_ticker):
        mock_ticker.return_value.fast_info = MagicMock(last_price=None, previous_close=100.0)
        with pytest.raises(QuoteUnavailable):
            await YFinanceQuoteSource().fetch_quote("AAPL")
