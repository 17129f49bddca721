"""Shared plumbing for HTTP quote providers."""
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging
import math

import httpx

from pricewatch.config import refresh_config
from pricewatch.domain.entities import Quote
from pricewatch.domain.errors import QuoteUnavailable
from pricewatch.domain.interfaces import QuoteSource

logger = logging.getLogger(__name__)


def as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip().rstrip("%"))
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def build_quote(
    ticker: str,
    price: Any,
    change_percent: Any = None,
    observed_at: Optional[datetime] = None,
) -> Quote:
    """Normalize raw provider values into a Quote or raise QuoteUnavailable."""
    parsed_price = as_float(price)
    if parsed_price is None or parsed_price <= 0:
        raise QuoteUnavailable(ticker, f"invalid price {price!r}")
    return Quote(
        ticker=ticker,
        price=parsed_price,
        change_percent=as_float(change_percent),
        observed_at=observed_at or datetime.now(timezone.utc),
    )


class HttpQuoteSource(QuoteSource):
    """Base class owning an httpx.AsyncClient and JSON fetching."""

    def __init__(
        self,
        timeout: float = None,
        client: Optional[httpx.AsyncClient] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self._headers = headers
        self._client = client or httpx.AsyncClient(
            timeout=timeout or refresh_config.QUOTE_TIMEOUT_SECONDS
        )

    async def _get_json(
        self, ticker: str, url: str, params: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        try:
            response = await self._client.get(url, params=params, headers=self._headers)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise QuoteUnavailable(
                ticker, f"HTTP {e.response.status_code} {e.response.reason_phrase}"
            ) from e
        except httpx.HTTPError as e:
            raise QuoteUnavailable(ticker, f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise QuoteUnavailable(ticker, "response is not valid JSON") from e
        if not isinstance(payload, dict):
            raise QuoteUnavailable(ticker, "unexpected response shape")
        return payload

    async def aclose(self) -> None:
        await self._client.aclose()
