"""Alpha Vantage GLOBAL_QUOTE quote source."""
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging

import httpx

from pricewatch.config import refresh_config
from pricewatch.domain.entities import Quote
from pricewatch.domain.errors import QuoteUnavailable
from pricewatch.infrastructure.quote_source import HttpQuoteSource, build_quote

logger = logging.getLogger(__name__)

BASE_URL = "https://www.alphavantage.co/query"


def parse_global_quote(ticker: str, payload: Dict[str, Any]) -> Quote:
    """Extract a quote from a GLOBAL_QUOTE response."""
    for key in ("Error Message", "Note", "Information"):
        if key in payload:
            raise QuoteUnavailable(ticker, str(payload[key]))

    quote = payload.get("Global Quote") or {}
    if not quote:
        raise QuoteUnavailable(ticker, "empty Global Quote")

    observed_at = None
    trading_day = quote.get("07. latest trading day")
    if trading_day:
        try:
            observed_at = datetime.strptime(trading_day, "%Y-%m-%d").replace(tzinfo=timezone.utc)
        except ValueError:
            logger.debug(f"Unparseable trading day for {ticker}: {trading_day}")
    return build_quote(
        ticker, quote.get("05. price"), quote.get("10. change percent"), observed_at
    )


class AlphaVantageQuoteSource(HttpQuoteSource):
    """Quote source backed by Alpha Vantage."""

    def __init__(
        self,
        api_key: str = None,
        timeout: float = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(timeout=timeout, client=client)
        self._api_key = api_key or refresh_config.ALPHA_VANTAGE_API_KEY
        if not self._api_key:
            logger.warning("ALPHA_VANTAGE_API_KEY is not set; quotes will fail")

    async def fetch_quote(self, ticker: str) -> Quote:
        params = {"function": "GLOBAL_QUOTE", "symbol": ticker, "apikey": self._api_key}
        payload = await self._get_json(ticker, BASE_URL, params=params)
        return parse_global_quote(ticker, payload)
