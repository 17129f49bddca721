"""Margin-of-safety alert policy.

Pure functions; recording when an alert fired is the caller's job.
"""
from typing import Optional

from pricewatch.domain.entities import WatchedStock

ALERT_COOLDOWN_SECONDS = 24 * 60 * 60


def margin_of_safety(
    intrinsic_value: Optional[float], current_price: float
) -> Optional[float]:
    """Percentage by which intrinsic value exceeds the current price.

    Returns None when no positive intrinsic value is set, which disables
    alerts for the stock instead of dividing by zero.
    """
    if intrinsic_value is None or intrinsic_value <= 0:
        return None
    return (intrinsic_value - current_price) / intrinsic_value * 100


def should_alert(
    stock: WatchedStock,
    current_price: float,
    last_alert_epoch: Optional[float],
    now_epoch: float,
    cooldown_seconds: float = ALERT_COOLDOWN_SECONDS,
) -> bool:
    """Decide whether a new alert should fire for this stock now."""
    mos = margin_of_safety(stock.intrinsic_value, current_price)
    if mos is None or mos <= 0:
        return False
    if last_alert_epoch is None:
        return True
    return now_epoch - last_alert_epoch >= cooldown_seconds
