"""API request/response schemas (DTOs)."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

from pricewatch.domain.entities import RefreshCycleReport, TickerRefreshResult


# Response models
class PriceHistoryResponse(BaseModel):
    """Response for a single price history record."""
    stock_id: int
    price: float
    change_percent: Optional[float] = None
    timestamp: datetime


class RecentPricesResponse(BaseModel):
    """Response for recent price history."""
    stock_id: int
    records: List[PriceHistoryResponse]
    count: int


class ValuationResponse(BaseModel):
    """Latest price and margin of safety for a watched stock."""
    stock_id: int
    ticker: str
    company_name: Optional[str] = None
    intrinsic_value: Optional[float] = None
    conviction_score: int
    current_price: Optional[float] = None
    change_percent: Optional[float] = None
    margin_of_safety: Optional[float] = None
    last_updated: Optional[datetime] = None
    last_alert_at: Optional[datetime] = None


class CycleSummary(BaseModel):
    """Counts for one refresh cycle."""
    trigger: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    updated: int
    failed: int
    alerts_sent: int
    error: Optional[str] = None

    @classmethod
    def from_report(cls, report: RefreshCycleReport) -> "CycleSummary":
        return cls(
            trigger=report.trigger,
            started_at=report.started_at,
            finished_at=report.finished_at,
            updated=report.updated,
            failed=report.failed,
            alerts_sent=report.alerts_sent,
            error=report.error,
        )


class RefreshResponse(BaseModel):
    """Response for a manual refresh."""
    status: str = "success"
    summary: CycleSummary
    results: List[TickerRefreshResult]


class SubscribersResponse(BaseModel):
    """Alert subscriber list."""
    chat_ids: List[int]
    count: int


class SubscriptionResponse(BaseModel):
    """Result of subscribing or unsubscribing a chat."""
    chat_id: int
    subscribed: bool
    changed: bool


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
    storage: str
    scheduler_running: bool
    cycle_in_progress: bool
    last_cycle: Optional[CycleSummary] = None
    alert_subscribers: int
    websocket_clients: int


# WebSocket message schemas
class WebSocketMessage(BaseModel):
    """Base WebSocket message."""
    type: str
    data: Optional[dict] = None
