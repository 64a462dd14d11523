"""
Background scheduler: runs periodic jobs inside the FastAPI process.

Jobs:
  - Offline queue drain (every SYNC_DRAIN_INTERVAL_MINUTES, only when
    SYNC_QUEUE_PATH is configured)
"""
import logging

from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(daemon=True)


def _run_sync_drain():
    from communityfund.application.sync_queue import get_offline_queue

    try:
        result = get_offline_queue().drain()
        if result.failed:
            logger.warning("Sync drain left %s item(s) for the next run", result.failed)
    except Exception:
        logger.exception("Sync drain job failed")


def start_scheduler():
    """Start the background scheduler with the configured periodic jobs."""
    from communityfund.config import get_settings

    settings = get_settings()

    if settings.SYNC_QUEUE_PATH:
        scheduler.add_job(
            _run_sync_drain,
            "interval",
            minutes=settings.SYNC_DRAIN_INTERVAL_MINUTES,
            id="sync_drain",
            replace_existing=True,
            max_instances=1,
        )
    else:
        logger.info("SYNC_QUEUE_PATH not set, sync drain job disabled")

    scheduler.start()
    logger.info("Background scheduler started with %d job(s)", len(scheduler.get_jobs()))


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
