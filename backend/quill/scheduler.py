"""In-process scheduled-publish trigger.

Off by default: production deployments trigger the worker externally (Celery
beat, cron hitting the HTTP endpoint). Enable with
``QUILL_SCHEDULED_PUBLISH_IN_PROCESS=true`` for single-node setups.
"""

from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from quill.core.config import get_settings
from quill.core.correlation import bind_ids, clear_ids, new_correlation_id
from quill.core.logging import get_logger
from quill.services.scheduled_publish_service import scheduled_publish_service

settings = get_settings()
logger = get_logger("scheduler")

_scheduler: AsyncIOScheduler | None = None


async def run_scheduled_publish_tick() -> dict:
    bind_ids(request_id="", correlation_id=new_correlation_id("sched"))
    try:
        result = await scheduled_publish_service.run()
    finally:
        clear_ids()
    return result.to_dict()


def start_publish_scheduler() -> None:
    global _scheduler
    if _scheduler is not None:
        return

    _scheduler = AsyncIOScheduler(timezone="UTC")
    _scheduler.add_job(
        run_scheduled_publish_tick,
        trigger=IntervalTrigger(seconds=settings.scheduled_publish_interval_seconds),
        id="scheduled_publish",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    _scheduler.start()
    logger.info(
        "publish_scheduler_started",
        interval_seconds=settings.scheduled_publish_interval_seconds,
    )


def stop_publish_scheduler() -> None:
    global _scheduler
    if _scheduler is None:
        return
    _scheduler.shutdown(wait=False)
    _scheduler = None
    logger.info("publish_scheduler_stopped")
