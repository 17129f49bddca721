"""In-memory alert state (ticker -> last alert epoch).

State lives for the process lifetime only; a restart forgets previous
alerts and may repeat one inside the cooldown window.
"""
from typing import Dict, Optional
import threading

from pricewatch.domain.interfaces import AlertStateStore


class InMemoryAlertStateStore(AlertStateStore):
    """Thread-safe dict-backed alert state."""

    def __init__(self):
        self._last_alert: Dict[str, float] = {}
        self._lock = threading.Lock()

    def get(self, ticker: str) -> Optional[float]:
        with self._lock:
            return self._last_alert.get(ticker.upper())

    def set(self, ticker: str, epoch: float) -> None:
        with self._lock:
            self._last_alert[ticker.upper()] = epoch

    def compare_and_set(
        self, ticker: str, expected: Optional[float], epoch: float
    ) -> bool:
        with self._lock:
            if self._last_alert.get(ticker.upper()) != expected:
                return False
            self._last_alert[ticker.upper()] = epoch
            return True

    def __len__(self) -> int:
        return len(self._last_alert)
