"""
Quill — Scheduled Publish Worker
================================
Stateless, idempotent transition of due scheduled items to published.

Safe to invoke on any cadence: the selection only matches unpublished items
with a due ``scheduled_at`` and a successful publish clears ``scheduled_at``,
so a second run can never publish the same item again. No lock coordinates
concurrent runs; the per-item conditional update decides the winner.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from quill.core.clock import utcnow
from quill.core.config import get_settings
from quill.core.database import async_session
from quill.core.logging import get_logger
from quill.domain.content.fields import ContentFields
from quill.repositories.content_repository import ContentRepository, content_repository
from quill.services.version_archive_service import VersionArchiveService, version_archive_service
from quill.utils.text_processing import truncate_text

logger = get_logger("services.scheduled_publish")
settings = get_settings()


@dataclass(slots=True)
class PublishRunResult:
    message: str
    count: int
    published_ids: list[int] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "message": self.message,
            "count": self.count,
            "publishedIds": [str(item_id) for item_id in self.published_ids],
        }
        if self.errors:
            payload["errors"] = list(self.errors)
        return payload


class ScheduledPublishService:
    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession] = async_session,
        items: ContentRepository = content_repository,
        versions: VersionArchiveService = version_archive_service,
        clock: Callable[[], datetime] = utcnow,
        actor: str | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._items = items
        self._versions = versions
        self._clock = clock
        self._actor = actor or settings.scheduled_publish_actor

    async def run(self, now: datetime | None = None) -> PublishRunResult:
        now = now or self._clock()
        async with self._session_factory() as db:
            due = [(item.id, item.title) for item in await self._items.select_due(db, now=now)]

        logger.info("scheduled_publish_due", count=len(due), now=now.isoformat())
        if not due:
            return PublishRunResult(message="No items to publish", count=0)

        published_ids: list[int] = []
        errors: list[str] = []
        for item_id, title in due:
            try:
                published = await self._publish_one(item_id, now=now)
            except Exception as exc:  # noqa: BLE001
                logger.error("scheduled_publish_item_failed", item_id=item_id, error=str(exc))
                errors.append(f'Failed to publish "{truncate_text(title or str(item_id), 120)}": {exc}')
                continue
            if published:
                published_ids.append(item_id)
                logger.info("scheduled_publish_item_published", item_id=item_id)
            else:
                logger.info("scheduled_publish_item_skipped", item_id=item_id)

        result = PublishRunResult(
            message=f"Published {len(published_ids)} items",
            count=len(published_ids),
            published_ids=published_ids,
            errors=errors,
        )
        logger.info("scheduled_publish_run_done", count=result.count, errors=len(errors))
        return result

    async def _publish_one(self, item_id: int, *, now: datetime) -> bool:
        """Snapshot and publish one item in its own transaction."""
        async with self._session_factory() as db:
            try:
                item = await self._items.get(db, item_id)
                if item is None or item.published or item.scheduled_at is None or item.scheduled_at > now:
                    return False
                await self._versions.record(
                    db,
                    item_id=item_id,
                    fields=ContentFields.of(item),
                    created_by=self._actor,
                )
                if not await self._items.publish_if_due(db, item_id, now=now):
                    await db.rollback()
                    return False
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        return True


scheduled_publish_service = ScheduledPublishService()
