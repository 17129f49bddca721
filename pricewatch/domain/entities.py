"""Domain entities - core business objects."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


class WatchedStock(BaseModel):
    """A ticker on the watchlist with its intrinsic value estimate."""
    id: int
    ticker: str
    company_name: Optional[str] = None
    intrinsic_value: Optional[float] = Field(default=None, ge=0)
    conviction_score: int = 5

    class Config:
        from_attributes = True

    @field_validator("ticker")
    @classmethod
    def normalize_ticker(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("ticker must not be empty")
        return value


class Quote(BaseModel):
    """Point-in-time price observation from a quote provider."""
    ticker: str
    price: float = Field(gt=0, allow_inf_nan=False)
    change_percent: Optional[float] = None
    observed_at: datetime


class PriceHistoryRecord(BaseModel):
    """Persisted price observation for a watched stock."""
    stock_id: int
    price: float
    change_percent: Optional[float] = None
    timestamp: datetime

    class Config:
        from_attributes = True


class StockValuation(BaseModel):
    """Watched stock joined with its latest price and margin of safety."""
    stock: WatchedStock
    current_price: Optional[float] = None
    change_percent: Optional[float] = None
    last_updated: Optional[datetime] = None
    margin_of_safety: Optional[float] = None


class Alert(BaseModel):
    """Margin-of-safety alert event."""
    type: str = "margin_of_safety"
    ticker: str
    current_price: float
    intrinsic_value: float
    margin_of_safety: float
    timestamp: datetime
    message: str


class TickerRefreshResult(BaseModel):
    """Outcome of refreshing a single ticker within a cycle."""
    ticker: str
    status: str  # "updated", "quote_unavailable", "persistence_failed", "error"
    price: Optional[float] = None
    change_percent: Optional[float] = None
    margin_of_safety: Optional[float] = None
    alerted: bool = False
    error: Optional[str] = None


class RefreshCycleReport(BaseModel):
    """Summary of one refresh cycle across the watchlist."""
    trigger: str = "scheduled"
    started_at: datetime
    finished_at: Optional[datetime] = None
    results: List[TickerRefreshResult] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def updated(self) -> int:
        return sum(1 for r in self.results if r.status == "updated")

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status != "updated")

    @property
    def alerts_sent(self) -> int:
        return sum(1 for r in self.results if r.alerted)
