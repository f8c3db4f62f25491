# Periodic cleanup of dead auth links

import logging
from datetime import timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config.settings import AUTH_LINK_RETENTION_HOURS
from core import purge_expired_links
from database import AsyncSessionLocal

logger = logging.getLogger(__name__)

_scheduler: AsyncIOScheduler = None


async def purge_expired_links_job() -> int:
    """
    Удалить ссылки, истёкшие больше AUTH_LINK_RETENTION_HOURS назад.
    Ошибки логируются: следующий запуск повторит попытку.
    """
    try:
        async with AsyncSessionLocal() as db:
            deleted = await purge_expired_links(
                db,
                older_than=timedelta(hours=AUTH_LINK_RETENTION_HOURS),
            )
        logger.info(f"Auth link cleanup finished, deleted {deleted} links")
        return deleted

    except Exception as e:
        logger.error(f"Error in auth link cleanup job: {e}", exc_info=True)
        return 0


def start_scheduler():
    """Запустить планировщик: чистка ссылок раз в час."""
    global _scheduler

    if _scheduler is not None:
        logger.warning("Scheduler already running")
        return

    _scheduler = AsyncIOScheduler(timezone="UTC")

    _scheduler.add_job(
        purge_expired_links_job,
        IntervalTrigger(hours=1),
        id="auth_link_cleanup",
        name="Purge expired auth links",
        replace_existing=True,
    )

    _scheduler.start()

    job = _scheduler.get_job("auth_link_cleanup")
    if job:
        logger.info(f"Scheduler started, next auth link cleanup at {job.next_run_time}")


def stop_scheduler():
    """Остановить планировщик."""
    global _scheduler

    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None
        logger.info("Scheduler stopped")
