"""Scheduler for the overdue sweep."""

from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore
from apscheduler.triggers.cron import CronTrigger  # type: ignore

from src.library.application.worker.overdue_sweep import OverdueSweep
from src.shared.config import Settings
from src.shared.logging import clear_request_context, get_logger, set_correlation_id

logger = get_logger(__name__)


class OverdueScheduler:
    """Runs the overdue sweep daily at the configured local time, plus hourly outside production."""

    def __init__(self, sweep: OverdueSweep, settings: Settings, scheduler: Optional[AsyncIOScheduler] = None):
        self.sweep = sweep
        self.settings = settings
        self.scheduler = scheduler or AsyncIOScheduler(timezone=settings.tzinfo)

    def start(self):
        """Start the scheduler."""
        logger.info("Starting overdue sweep scheduler...")

        self.scheduler.add_job(
            self._run,
            CronTrigger(
                hour=self.settings.overdue_sweep_hour,
                minute=self.settings.overdue_sweep_minute,
                timezone=self.settings.tzinfo,
            ),
            id="overdue_sweep_daily",
            name="Daily overdue fine sweep",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )

        if self.settings.overdue_sweep_hourly and not self.settings.is_production:
            self.scheduler.add_job(
                self._run,
                CronTrigger(minute=0, timezone=self.settings.tzinfo),
                id="overdue_sweep_hourly",
                name="Hourly overdue fine sweep",
                replace_existing=True,
                coalesce=True,
                max_instances=1,
            )

        self.scheduler.start()
        logger.info(
            "Overdue sweep scheduler started",
            daily_at=f"{self.settings.overdue_sweep_hour:02d}:{self.settings.overdue_sweep_minute:02d}",
            timezone=self.settings.library_timezone,
            hourly=self.settings.overdue_sweep_hourly and not self.settings.is_production,
        )

    async def _run(self):
        set_correlation_id()
        try:
            await self.sweep.run_sweep()
        finally:
            clear_request_context()

    @property
    def job_ids(self) -> list:
        return [job.id for job in self.scheduler.get_jobs()]

    def stop(self):
        """Stop the scheduler."""
        logger.info("Stopping overdue sweep scheduler...")
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Overdue sweep scheduler stopped")
