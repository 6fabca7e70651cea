"""Timer jobs: access prediction + prefetch, cleanup, and automatic backups.

All jobs are advisory. Each one logs its own failures and returns, so a bad
cycle never stops the scheduler or touches a caller.
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ..config import StorageConfig
from ..integrations.history import history
from ..storage.database import Database

logger = logging.getLogger(__name__)

_scheduler: AsyncIOScheduler | None = None


def _get_scheduler() -> AsyncIOScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = AsyncIOScheduler()
    return _scheduler


async def run_predictions(db: Database) -> None:
    try:
        loaded = db.run_prediction_cycle()
        logger.debug("Prediction cycle: %d predictions, %d prefetched", len(db.predictor), len(loaded))
    except Exception:
        logger.exception("Prediction cycle failed")


async def run_cleanup(db: Database) -> None:
    try:
        db.cleanup()
    except Exception:
        logger.exception("Storage cleanup failed")
    try:
        expired = history.prune_expired()
        if expired:
            logger.info("Expired chat history for %d sender(s)", expired)
    except Exception:
        logger.exception("History cleanup failed")


async def run_backup(db: Database) -> None:
    try:
        db.backups.backup()
        db.backups.prune(db.config.backup_retention)
    except Exception:
        logger.exception("Automatic backup failed")


def start_scheduler(db: Database, config: StorageConfig | None = None) -> AsyncIOScheduler:
    """Register the storage jobs and start the scheduler."""
    config = config or db.config
    scheduler = _get_scheduler()
    scheduler.add_job(
        run_predictions,
        "interval",
        id="predict_access",
        args=[db],
        seconds=config.prediction_interval_seconds,
        replace_existing=True,
        misfire_grace_time=30,
    )
    scheduler.add_job(
        run_cleanup,
        "interval",
        id="cleanup",
        args=[db],
        seconds=config.cleanup_interval_seconds,
        replace_existing=True,
        misfire_grace_time=300,
    )
    if config.backup_interval_hours > 0:
        scheduler.add_job(
            run_backup,
            "interval",
            id="auto_backup",
            args=[db],
            hours=config.backup_interval_hours,
            replace_existing=True,
            misfire_grace_time=3600,
        )
    scheduler.start()
    logger.info("Scheduler started with %d jobs", len(scheduler.get_jobs()))
    return scheduler


def stop_scheduler() -> None:
    """Shut down the scheduler gracefully."""
    global _scheduler
    if _scheduler and _scheduler.running:
        _scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
    _scheduler = None
