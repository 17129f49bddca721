"""Alert delivery: subscriber registry and best-effort fan-out."""
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Set
import logging

from pricewatch.domain.entities import Alert
from pricewatch.domain.errors import NotifyFailure
from pricewatch.domain.interfaces import AlertDestination
from pricewatch.services.callbacks import dispatch

logger = logging.getLogger(__name__)


class SubscriberRegistry:
    """Chat ids that receive price alerts. Lives for the process lifetime."""

    def __init__(self, chat_ids: Optional[Iterable[int]] = None):
        self._chat_ids: Set[int] = set(chat_ids or [])

    def subscribe(self, chat_id: int) -> bool:
        """Add a chat; returns False if it was already subscribed."""
        if chat_id in self._chat_ids:
            return False
        self._chat_ids.add(chat_id)
        return True

    def unsubscribe(self, chat_id: int) -> bool:
        """Remove a chat; returns False if it was not subscribed."""
        if chat_id not in self._chat_ids:
            return False
        self._chat_ids.discard(chat_id)
        return True

    def is_subscribed(self, chat_id: int) -> bool:
        return chat_id in self._chat_ids

    def snapshot(self) -> List[int]:
        return sorted(self._chat_ids)

    def __len__(self) -> int:
        return len(self._chat_ids)


def format_alert_message(
    ticker: str, current_price: float, intrinsic_value: float, margin_of_safety: float
) -> str:
    """Markdown alert text sent to chat destinations."""
    return (
        "🚨 *PRICE ALERT* 🚨\n\n"
        f"📊 *{ticker}* is now trading below intrinsic value!\n\n"
        f"💰 Current Price: ${current_price:.2f}\n"
        f"🎯 Intrinsic Value: ${intrinsic_value:.2f}\n"
        f"🛡️ Margin of Safety: {margin_of_safety:.1f}%\n\n"
        "✅ This could be a good buying opportunity!"
    )


class AlertNotifier:
    """Delivers alerts to subscribed chats and in-process listeners.

    No business decisions are made here. A chat whose delivery fails is
    dropped from the registry; other chats are still attempted.
    """

    def __init__(
        self,
        subscribers: SubscriberRegistry,
        destination: Optional[AlertDestination] = None,
    ):
        self._subscribers = subscribers
        self._destination = destination
        self._listeners: Set[Callable] = set()

    @property
    def subscribers(self) -> SubscriberRegistry:
        return self._subscribers

    def register_listener(self, callback: Callable) -> None:
        """Register an in-process alert listener."""
        self._listeners.add(callback)

    def unregister_listener(self, callback: Callable) -> None:
        self._listeners.discard(callback)

    async def notify(
        self,
        ticker: str,
        current_price: float,
        intrinsic_value: float,
        margin_of_safety: float,
    ) -> Alert:
        """Fan the alert out; never raises for delivery errors."""
        alert = Alert(
            ticker=ticker,
            current_price=current_price,
            intrinsic_value=intrinsic_value,
            margin_of_safety=margin_of_safety,
            timestamp=datetime.now(timezone.utc),
            message=format_alert_message(ticker, current_price, intrinsic_value, margin_of_safety),
        )
        await dispatch(self._listeners, alert)

        if self._destination is None:
            logger.debug(f"No alert destination configured, {ticker} alert kept in-process")
            return alert

        delivered = 0
        for chat_id in self._subscribers.snapshot():
            try:
                await self._destination.send_message(chat_id, alert.message)
                delivered += 1
            except NotifyFailure as e:
                logger.warning(f"{e}; removing chat {chat_id} from alert subscribers")
                self._subscribers.unsubscribe(chat_id)
            except Exception as e:
                logger.error(f"Unexpected error sending alert to chat {chat_id}: {e}")
                self._subscribers.unsubscribe(chat_id)
        logger.info(f"Alert for {ticker} delivered to {delivered} chat(s)")
        return alert
