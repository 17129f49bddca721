"""Fan-out helper for in-process event listeners."""
from typing import Any, Callable, Iterable
import inspect
import logging

logger = logging.getLogger(__name__)


async def dispatch(callbacks: Iterable[Callable], payload: Any) -> None:
    """Invoke every callback with payload; one failing callback does not stop the rest."""
    for callback in list(callbacks):
        try:
            result = callback(payload)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Error in callback {getattr(callback, '__name__', callback)}: {e}")
