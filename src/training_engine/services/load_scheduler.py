"""Nightly load monitor scheduler using APScheduler.

Runs the training load update once per UTC day at a configurable time
(default 02:00 UTC).
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from ..config import get_settings
from .base import TrainingLoadRepository
from .load_monitor import BatchResult, LoadMonitorService

logger = logging.getLogger(__name__)


class LoadMonitorScheduler:
    """Schedules the nightly training load update.

    Usage:
        scheduler = LoadMonitorScheduler(repository)
        scheduler.start()
        # ... app runs ...
        scheduler.stop()
    """

    JOB_ID = "nightly_training_load"

    def __init__(self, repository: TrainingLoadRepository):
        self.service = LoadMonitorService(repository)
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._is_running = False
        self.last_result: Optional[BatchResult] = None

    @property
    def is_running(self) -> bool:
        """Check if the scheduler is running."""
        return self._is_running and self.scheduler is not None

    def start(self) -> None:
        """Start the scheduler with the daily update job."""
        if self._is_running:
            logger.warning("Load monitor scheduler is already running")
            return

        settings = get_settings()
        if not settings.load_monitor_enabled:
            logger.info("Nightly load monitor is disabled in configuration")
            return

        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self.scheduler.add_job(
            self.run_now,
            CronTrigger(
                hour=settings.load_monitor_hour,
                minute=settings.load_monitor_minute,
                timezone="UTC",
            ),
            id=self.JOB_ID,
            name="Nightly Training Load Update",
            replace_existing=True,
            max_instances=1,
        )
        self.scheduler.start()
        self._is_running = True
        logger.info(
            f"Load monitor scheduler started (daily at "
            f"{settings.load_monitor_hour:02d}:{settings.load_monitor_minute:02d} UTC)"
        )

    def stop(self) -> None:
        """Gracefully shutdown the scheduler."""
        if not self._is_running or self.scheduler is None:
            return

        logger.info("Shutting down load monitor scheduler...")
        self.scheduler.shutdown(wait=True)
        self._is_running = False
        self.scheduler = None
        logger.info("Load monitor scheduler stopped")

    def run_now(self) -> BatchResult:
        """Run the nightly update immediately."""
        self.last_result = self.service.run_nightly_update()
        return self.last_result

    def get_status(self) -> dict:
        """Current scheduler status."""
        next_run = None
        if self.is_running:
            job = self.scheduler.get_job(self.JOB_ID)
            if job is not None and job.next_run_time is not None:
                next_run = job.next_run_time.isoformat()
        return {
            "running": self.is_running,
            "next_run": next_run,
            "last_result": self.last_result.to_dict() if self.last_result else None,
        }


_scheduler_instance: Optional[LoadMonitorScheduler] = None


def get_scheduler(repository: TrainingLoadRepository) -> LoadMonitorScheduler:
    """Get or create the global scheduler instance."""
    global _scheduler_instance
    if _scheduler_instance is None:
        _scheduler_instance = LoadMonitorScheduler(repository)
    return _scheduler_instance


def shutdown_scheduler() -> None:
    """Shutdown the global scheduler instance if running."""
    global _scheduler_instance
    if _scheduler_instance is not None:
        _scheduler_instance.stop()
        _scheduler_instance = None
