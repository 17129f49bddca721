"""Health check endpoint."""
from datetime import datetime
from fastapi import APIRouter, Depends

from pricewatch.api.schemas import CycleSummary, HealthResponse
from pricewatch.api.dependencies import (
    get_connection, get_notifier, get_refresh_scheduler
)
from pricewatch.api.websocket.realtime import manager
from pricewatch.infrastructure.scheduler import RefreshScheduler
from pricewatch.services.notifier import AlertNotifier

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(
    scheduler: RefreshScheduler = Depends(get_refresh_scheduler),
    notifier: AlertNotifier = Depends(get_notifier),
) -> HealthResponse:
    """Health check endpoint."""
    connection = get_connection()
    if connection is None:
        storage, healthy = "memory", True
    else:
        storage, healthy = "clickhouse", connection.ping()

    report = scheduler.last_report
    return HealthResponse(
        status="healthy" if healthy else "degraded",
        timestamp=datetime.now().isoformat(),
        storage=storage,
        scheduler_running=scheduler.is_running,
        cycle_in_progress=scheduler.cycle_in_progress,
        last_cycle=CycleSummary.from_report(report) if report else None,
        alert_subscribers=len(notifier.subscribers),
        websocket_clients=len(manager.active_connections),
    )
