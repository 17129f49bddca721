"""Telegram Bot API client used as the alert destination."""
from typing import Optional
import logging

import httpx

from pricewatch.config import telegram_config
from pricewatch.domain.errors import NotifyFailure
from pricewatch.domain.interfaces import AlertDestination

logger = logging.getLogger(__name__)


class TelegramClient(AlertDestination):
    """Sends Markdown messages through sendMessage."""

    def __init__(
        self,
        token: str = None,
        api_url: str = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._token = token or telegram_config.BOT_TOKEN
        self._api_url = (api_url or telegram_config.API_URL).rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def send_message(self, chat_id: int, text: str) -> None:
        url = f"{self._api_url}/bot{self._token}/sendMessage"
        payload = {"chat_id": chat_id, "text": text, "parse_mode": "Markdown"}
        try:
            response = await self._client.post(url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            raise NotifyFailure(
                chat_id, f"Telegram API error: {e.response.status_code} {e.response.reason_phrase}"
            ) from e
        except httpx.HTTPError as e:
            raise NotifyFailure(chat_id, f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise NotifyFailure(chat_id, "Telegram response is not valid JSON") from e

        if not isinstance(body, dict) or not body.get("ok", False):
            description = body.get("description") if isinstance(body, dict) else body
            raise NotifyFailure(chat_id, f"Telegram API error: {description}")
        logger.debug(f"Sent Telegram message to chat {chat_id}")

    async def aclose(self) -> None:
        await self._client.aclose()
