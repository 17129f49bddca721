"""Alert subscriber endpoints."""
from fastapi import APIRouter, Depends
import logging

from pricewatch.api.schemas import SubscribersResponse, SubscriptionResponse
from pricewatch.api.dependencies import get_notifier
from pricewatch.services.notifier import AlertNotifier

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/alerts", tags=["alerts"])


@router.get("/subscribers", response_model=SubscribersResponse)
async def list_subscribers(
    notifier: AlertNotifier = Depends(get_notifier)
) -> SubscribersResponse:
    """List chats receiving price alerts."""
    chat_ids = notifier.subscribers.snapshot()
    return SubscribersResponse(chat_ids=chat_ids, count=len(chat_ids))


@router.get("/subscribers/{chat_id}", response_model=SubscriptionResponse)
async def subscription_status(
    chat_id: int,
    notifier: AlertNotifier = Depends(get_notifier)
) -> SubscriptionResponse:
    """Check whether a chat receives price alerts."""
    return SubscriptionResponse(
        chat_id=chat_id,
        subscribed=notifier.subscribers.is_subscribed(chat_id),
        changed=False,
    )


@router.post("/subscribers/{chat_id}", response_model=SubscriptionResponse)
async def subscribe(
    chat_id: int,
    notifier: AlertNotifier = Depends(get_notifier)
) -> SubscriptionResponse:
    """Enable price alerts for a chat."""
    changed = notifier.subscribers.subscribe(chat_id)
    if changed:
        logger.info(f"Chat {chat_id} subscribed to price alerts")
    return SubscriptionResponse(chat_id=chat_id, subscribed=True, changed=changed)


@router.delete("/subscribers/{chat_id}", response_model=SubscriptionResponse)
async def unsubscribe(
    chat_id: int,
    notifier: AlertNotifier = Depends(get_notifier)
) -> SubscriptionResponse:
    """Disable price alerts for a chat."""
    changed = notifier.subscribers.unsubscribe(chat_id)
    if changed:
        logger.info(f"Chat {chat_id} unsubscribed from price alerts")
    return SubscriptionResponse(chat_id=chat_id, subscribed=False, changed=changed)
