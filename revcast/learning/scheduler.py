"""
Learning Scheduler — runs the insight refresh outside any request path.

Jobs:
1. Learning refresh (every LEARNING_REFRESH_MINUTES) — rebuild all insights
"""

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import async_sessionmaker

from revcast.config import settings
from revcast.learning.service import LearningService

logger = structlog.get_logger(__name__)


class LearningScheduler:
    """Background scheduler for the learning refresh."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        learning: LearningService | None = None,
        interval_minutes: int | None = None,
    ):
        self.session_factory = session_factory
        self.learning = learning or LearningService()
        self.interval_minutes = interval_minutes or settings.learning_refresh_minutes
        self.scheduler = AsyncIOScheduler()

    def start(self):
        """Register and start the refresh job."""
        self.scheduler.add_job(
            self.run_refresh,
            IntervalTrigger(minutes=self.interval_minutes),
            id="learning_refresh",
            max_instances=1,
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info("learning_scheduler_started", interval_minutes=self.interval_minutes)

    def stop(self):
        """Gracefully stop the scheduler."""
        self.scheduler.shutdown(wait=True)
        logger.info("learning_scheduler_stopped")

    async def run_refresh(self) -> int:
        """One refresh in its own transaction. Returns the number of cohorts."""
        async with self.session_factory() as session:
            try:
                insights = await self.learning.refresh_insights(session)
                await session.commit()
            except Exception as e:
                await session.rollback()
                logger.error("learning_refresh_failed", error=str(e), exc_info=True)
                return 0
        return len(insights)
