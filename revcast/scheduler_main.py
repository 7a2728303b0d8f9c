"""
Scheduler Entry Point — runs in its own process.

Usage:
    python -m revcast.scheduler_main

Runs the APScheduler loop that rebuilds learning insights. It serves no
requests.
"""

import asyncio
import signal

import structlog

from revcast.config import settings
from revcast.db.engine import close_db, get_session_factory, init_db
from revcast.learning.scheduler import LearningScheduler
from revcast.logging_config import configure_logging

logger = structlog.get_logger(__name__)


async def main():
    """Initialize and run the scheduler."""
    configure_logging()
    logger.info("scheduler_starting", version=settings.app_version)

    await init_db()
    scheduler = LearningScheduler(session_factory=get_session_factory())

    # Refresh once on startup
    logger.info("running_initial_refresh")
    await scheduler.run_refresh()

    scheduler.start()

    stop_event = asyncio.Event()

    def _handle_signal(signum, frame):
        logger.info("shutdown_signal_received", signal=signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    logger.info("scheduler_running", interval_minutes=scheduler.interval_minutes)
    await stop_event.wait()

    scheduler.stop()
    await close_db()
    logger.info("scheduler_shutdown_complete")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
