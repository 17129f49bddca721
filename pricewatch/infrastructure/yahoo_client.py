"""Yahoo Finance quote sources."""
import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import quote
import logging

import httpx
import yfinance as yf

from pricewatch.domain.entities import Quote
from pricewatch.domain.errors import QuoteUnavailable
from pricewatch.domain.interfaces import QuoteSource
from pricewatch.infrastructure.quote_source import HttpQuoteSource, as_float, build_quote

logger = logging.getLogger(__name__)

CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart/{ticker}"
BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
}


def parse_chart_response(ticker: str, payload: Dict[str, Any]) -> Quote:
    """Extract a quote from a v8 chart response.

    regularMarketChangePercent arrives as a fraction; when it is missing the
    change is derived from the previous close, if any.
    """
    chart = payload.get("chart") or {}
    if chart.get("error"):
        error = chart["error"]
        description = error.get("description") if isinstance(error, dict) else error
        raise QuoteUnavailable(ticker, str(description))

    results = chart.get("result") or []
    meta = results[0].get("meta") if results and isinstance(results[0], dict) else None
    if not meta:
        raise QuoteUnavailable(ticker, "invalid response from Yahoo Finance")

    price = meta.get("regularMarketPrice")
    change_percent: Optional[float] = None
    fraction = as_float(meta.get("regularMarketChangePercent"))
    current = as_float(price)
    previous = as_float(meta.get("chartPreviousClose") or meta.get("previousClose"))
    if fraction is not None:
        change_percent = fraction * 100
    elif current and previous:
        change_percent = (current - previous) / previous * 100

    market_time = meta.get("regularMarketTime")
    observed_at = (
        datetime.fromtimestamp(market_time, tz=timezone.utc)
        if isinstance(market_time, (int, float)) else None
    )
    return build_quote(ticker, price, change_percent, observed_at)


class YahooQuoteSource(HttpQuoteSource):
    """Quote source backed by the public v8 chart endpoint."""

    def __init__(self, timeout: float = None, client: Optional[httpx.AsyncClient] = None):
        super().__init__(timeout=timeout, client=client, headers=BROWSER_HEADERS)

    async def fetch_quote(self, ticker: str) -> Quote:
        payload = await self._get_json(ticker, CHART_URL.format(ticker=quote(ticker, safe="")))
        return parse_chart_response(ticker, payload)


class YFinanceQuoteSource(QuoteSource):
    """Quote source using yfinance fast_info, run in a worker thread."""

    def _fetch_sync(self, ticker: str) -> Quote:
        try:
            info = yf.Ticker(ticker).fast_info
            price = info.last_price
            previous = info.previous_close
        except Exception as e:
            raise QuoteUnavailable(ticker, f"yfinance error: {e}") from e
        change_percent = None
        if price and previous:
            change_percent = (price - previous) / previous * 100
        return build_quote(ticker, price, change_percent)

    async def fetch_quote(self, ticker: str) -> Quote:
        return await asyncio.to_thread(self._fetch_sync, ticker)
