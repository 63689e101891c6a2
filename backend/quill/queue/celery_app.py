"""Celery application for lifecycle background work."""

from __future__ import annotations

from celery import Celery
from celery.signals import worker_process_shutdown

from quill.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "quill_workers",
    broker=settings.redis_queue_url,
    backend=settings.redis_queue_url,
    include=[
        "quill.queue.tasks.lifecycle_tasks",
    ],
)

celery_app.conf.update(
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_reject_on_worker_lost=True,
    broker_connection_retry_on_startup=True,
    task_default_queue=settings.queue_default_name,
    task_default_exchange=settings.queue_default_name,
    task_default_routing_key=settings.queue_default_name,
    task_routes={
        "quill.queue.tasks.lifecycle_tasks.*": {"queue": settings.queue_lifecycle_name},
    },
    beat_schedule={
        "publish-scheduled-items": {
            "task": "quill.queue.tasks.lifecycle_tasks.publish_scheduled_items",
            "schedule": float(settings.scheduled_publish_interval_seconds),
            "options": {"expires": float(settings.scheduled_publish_interval_seconds)},
        },
    },
)


@worker_process_shutdown.connect
def _close_async_runtime(**_kwargs) -> None:
    from quill.queue.async_runtime import shutdown_runtime

    shutdown_runtime()
