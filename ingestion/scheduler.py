import logging
import time
from typing import Callable, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from core.config import settings
from ingestion.job import JobRunner

logger = logging.getLogger(__name__)


class ImportScheduler:
    """Periodically trigger the import job, each time with a fresh startAt"""

    def __init__(self, runner_factory: Callable[[], JobRunner], interval_minutes: Optional[int] = None):
        self.scheduler = AsyncIOScheduler()
        self.runner_factory = runner_factory
        self.interval_minutes = (
            settings.IMPORT_SCHEDULE_MINUTES if interval_minutes is None else interval_minutes
        )

    async def run_import_job(self):
        """Job to run the import pipeline"""
        logger.info("Scheduler: Starting import job")
        try:
            runner = self.runner_factory()
            outcome = await runner.trigger(int(time.time() * 1000))
            logger.info(f"Scheduler: import job finished - {outcome.as_text()}")
            return outcome
        except Exception as e:
            logger.error(f"Scheduler: import job failed - {e}")

    def start(self):
        """Start the scheduler"""
        if self.interval_minutes <= 0:
            logger.info("Import scheduler disabled (IMPORT_SCHEDULE_MINUTES=0)")
            return

        self.scheduler.add_job(
            self.run_import_job,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id="import_job",
            replace_existing=True,
            max_instances=1
        )
        self.scheduler.start()
        logger.info(f"Import scheduler started (every {self.interval_minutes} minutes)")

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Import scheduler stopped")
