import logging
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from core.config import settings
from core.database import create_engine, create_session_factory
from enumeration.registry import parse_platforms
from enumeration.runner import EnumerationRunner
from schemas.enumeration import EnumerationOptions

logger = logging.getLogger(__name__)


class EnumerationScheduler:
    """Re-enumerates the configured platforms on a fixed interval"""

    def __init__(self, interval_hours: Optional[int] = None):
        self.scheduler = AsyncIOScheduler()
        self.interval_hours = interval_hours or settings.ENUMERATION_INTERVAL_HOURS
        self.engine = create_engine(pool_size=settings.WORKERS) if settings.OUTPUT_KIND == "db" else None
        self.SessionLocal = create_session_factory(self.engine) if self.engine is not None else None

    async def run_enumeration_job(self):
        """Job to enumerate every configured platform"""
        logger.info("Scheduler: Starting enumeration job")
        try:
            runner = EnumerationRunner(
                output_kind=settings.OUTPUT_KIND,
                output_path=settings.OUTPUT_FILE,
                session_factory=self.SessionLocal,
                options=EnumerationOptions.from_settings(settings),
            )
            result = await runner.run(parse_platforms(settings.PLATFORMS))
            logger.info(f"Scheduler: Enumeration job finished with status {result['status']}")
        except Exception as e:
            logger.error(f"Scheduler: Enumeration job failed - {e}")

    def start(self):
        """Start the scheduler"""
        self.scheduler.add_job(
            self.run_enumeration_job,
            trigger=IntervalTrigger(hours=self.interval_hours),
            id="enumeration_job",
            replace_existing=True,
            max_instances=1,
        )
        self.scheduler.start()
        logger.info(f"Enumeration scheduler started (every {self.interval_hours}h)")

    def stop(self):
        self.scheduler.shutdown()
        logger.info("Enumeration scheduler stopped")
