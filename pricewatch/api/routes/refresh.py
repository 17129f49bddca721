"""Manual price refresh endpoint."""
from fastapi import APIRouter, Depends
import logging

from pricewatch.api.schemas import CycleSummary, RefreshResponse
from pricewatch.api.dependencies import get_refresh_scheduler
from pricewatch.infrastructure.scheduler import RefreshScheduler

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["prices"])


@router.post("/prices/refresh", response_model=RefreshResponse)
async def refresh_prices(
    scheduler: RefreshScheduler = Depends(get_refresh_scheduler)
) -> RefreshResponse:
    """Run a refresh cycle now.

    Per-ticker failures do not fail the request; they are listed in results.
    """
    report = await scheduler.trigger_now()
    return RefreshResponse(
        summary=CycleSummary.from_report(report),
        results=report.results,
    )
