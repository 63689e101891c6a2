"""Lifecycle tasks executed by Celery workers (triggered by Celery beat)."""

from __future__ import annotations

import structlog
from celery import Task

from quill.core.correlation import new_correlation_id
from quill.core.logging import get_logger
from quill.queue.async_runtime import run_async
from quill.queue.celery_app import celery_app
from quill.services.scheduled_publish_service import scheduled_publish_service

logger = get_logger("queue.lifecycle_tasks")


@celery_app.task(
    bind=True,
    autoretry_for=(TimeoutError, ConnectionError),
    retry_backoff=True,
    retry_jitter=True,
    max_retries=3,
    soft_time_limit=120,
    time_limit=180,
)
def publish_scheduled_items(self: Task) -> dict:
    structlog.contextvars.bind_contextvars(
        task_id=self.request.id or "",
        correlation_id=new_correlation_id("beat"),
    )
    try:
        result = run_async(scheduled_publish_service.run())
        logger.info("publish_scheduled_items_done", count=result.count, errors=len(result.errors))
        return result.to_dict()
    finally:
        structlog.contextvars.clear_contextvars()
