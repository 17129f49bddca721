"""Alert business logic."""
from typing import Callable, Optional
import logging
import time

from pricewatch.config import refresh_config
from pricewatch.domain.entities import Alert, WatchedStock
from pricewatch.domain.interfaces import AlertStateStore
from pricewatch.services.alert_policy import margin_of_safety, should_alert
from pricewatch.services.notifier import AlertNotifier

logger = logging.getLogger(__name__)


class AlertService:
    """Applies the alert policy against recorded alert state.

    Delivery is at-most-once per cooldown window: once the policy decides
    to fire and the notifier has been called, the alert counts as sent
    whether or not any destination received it.
    """

    def __init__(
        self,
        state: AlertStateStore,
        notifier: AlertNotifier,
        cooldown_hours: float = None,
        clock: Callable[[], float] = time.time,
    ):
        self._state = state
        self._notifier = notifier
        hours = refresh_config.ALERT_COOLDOWN_HOURS if cooldown_hours is None else cooldown_hours
        self._cooldown_seconds = hours * 3600
        self._clock = clock

    @property
    def cooldown_seconds(self) -> float:
        return self._cooldown_seconds

    def last_alert_epoch(self, ticker: str) -> Optional[float]:
        return self._state.get(ticker)

    async def process(
        self, stock: WatchedStock, current_price: float
    ) -> Optional[Alert]:
        """Evaluate and, when due, notify and record the alert time."""
        now_epoch = self._clock()
        last_alert = self._state.get(stock.ticker)
        if not should_alert(stock, current_price, last_alert, now_epoch, self._cooldown_seconds):
            return None

        mos = margin_of_safety(stock.intrinsic_value, current_price)
        logger.warning(
            f"ALERT: {stock.ticker} at ${current_price:.2f} is below intrinsic value "
            f"${stock.intrinsic_value:.2f} (MoS {mos:.1f}%)"
        )
        try:
            return await self._notifier.notify(
                stock.ticker, current_price, stock.intrinsic_value, mos
            )
        finally:
            if not self._state.compare_and_set(stock.ticker, last_alert, now_epoch):
                logger.warning(f"Alert state for {stock.ticker} changed during notify")
