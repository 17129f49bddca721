"""APScheduler setup for the periodic price refresh."""
import asyncio
from datetime import datetime, timezone
from typing import Optional
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from pricewatch.config import refresh_config
from pricewatch.domain.entities import RefreshCycleReport
from pricewatch.services.price_refresh_service import PriceRefreshService

logger = logging.getLogger(__name__)

JOB_ID = "refresh_prices"


class RefreshScheduler:
    """Runs refresh cycles on a fixed interval, first run immediately.

    Cycles never overlap: a timer tick that arrives while a cycle is
    running is skipped, and a manual trigger waits for the running cycle
    before starting its own.
    """

    def __init__(
        self,
        refresh_service: PriceRefreshService,
        interval_seconds: int = None,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        self._refresh_service = refresh_service
        self.interval_seconds = interval_seconds or refresh_config.INTERVAL_SECONDS
        # AsyncIOScheduler is created in start(), inside the event loop
        self.scheduler = scheduler
        self._cycle_lock = asyncio.Lock()
        self._running = False
        self.last_report: Optional[RefreshCycleReport] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def cycle_in_progress(self) -> bool:
        return self._cycle_lock.locked()

    def start(self) -> None:
        """Schedule the refresh job. Must be called with a running event loop."""
        if self._running:
            return
        if self.scheduler is None:
            self.scheduler = AsyncIOScheduler()

        self.scheduler.add_job(
            self._scheduled_tick,
            "interval",
            seconds=self.interval_seconds,
            id=JOB_ID,
            name=f"Refresh prices every {self.interval_seconds}s",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(timezone.utc),
        )
        if not self.scheduler.running:
            self.scheduler.start()
        self._running = True
        logger.info(f"Price refresh scheduler started - will update every {self.interval_seconds}s")

    def stop(self) -> None:
        """Stop scheduling cycles; a cycle already running is left to finish."""
        if not self._running:
            return
        if self.scheduler.get_job(JOB_ID):
            self.scheduler.remove_job(JOB_ID)
        self._running = False
        logger.info("Price refresh scheduler stopped")

    def shutdown(self) -> None:
        """Stop and release the underlying APScheduler."""
        self.stop()
        if self.scheduler is not None and self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    async def trigger_now(self) -> RefreshCycleReport:
        """Run one cycle on demand and return its report."""
        async with self._cycle_lock:
            return await self._run("manual")

    async def _scheduled_tick(self) -> None:
        if self._cycle_lock.locked():
            logger.warning("Previous refresh cycle still running, skipping this tick")
            return
        async with self._cycle_lock:
            await self._run("scheduled")

    async def _run(self, trigger: str) -> RefreshCycleReport:
        report = await self._refresh_service.run_cycle(trigger)
        self.last_report = report
        return report
