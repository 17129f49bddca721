"""Stock price endpoints."""
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from pricewatch.api.schemas import (
    PriceHistoryResponse, RecentPricesResponse, ValuationResponse
)
from pricewatch.api.dependencies import get_alert_service, get_stock_service
from pricewatch.services.alert_service import AlertService
from pricewatch.services.stock_service import StockService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["stocks"])


@router.get("/stocks/{stock_id}/prices", response_model=RecentPricesResponse)
async def get_recent_prices(
    stock_id: int,
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    service: StockService = Depends(get_stock_service)
) -> RecentPricesResponse:
    """Get recent price history for a stock, newest first."""
    try:
        prices = service.get_recent_prices(stock_id, limit)
    except Exception as e:
        logger.error(f"Error getting price history for stock {stock_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch price history")
    return RecentPricesResponse(
        stock_id=stock_id,
        records=[
            PriceHistoryResponse(
                stock_id=p.stock_id,
                price=p.price,
                change_percent=p.change_percent,
                timestamp=p.timestamp,
            )
            for p in prices
        ],
        count=len(prices),
    )


@router.get("/stocks/{ticker}/valuation", response_model=ValuationResponse)
async def get_valuation(
    ticker: str,
    service: StockService = Depends(get_stock_service),
    alert_service: AlertService = Depends(get_alert_service),
) -> ValuationResponse:
    """Get latest price and margin of safety for a watched ticker."""
    try:
        valuation = service.get_valuation(ticker)
    except Exception as e:
        logger.error(f"Error getting valuation for {ticker}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    if valuation is None:
        raise HTTPException(status_code=404, detail=f"{ticker.upper()} is not in the watchlist")

    stock = valuation.stock
    last_alert = alert_service.last_alert_epoch(stock.ticker)
    return ValuationResponse(
        stock_id=stock.id,
        ticker=stock.ticker,
        company_name=stock.company_name,
        intrinsic_value=stock.intrinsic_value,
        conviction_score=stock.conviction_score,
        current_price=valuation.current_price,
        change_percent=valuation.change_percent,
        margin_of_safety=valuation.margin_of_safety,
        last_updated=valuation.last_updated,
        last_alert_at=(
            datetime.fromtimestamp(last_alert, tz=timezone.utc) if last_alert is not None else None
        ),
    )
