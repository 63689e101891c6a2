"""
Quill — Content Lifecycle Coordinator
=====================================
Sequences writes so that after any single call a content item is in exactly
one of draft / scheduled / published, and every full publish of an existing
item is preceded by a version snapshot of its pre-publish fields.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from quill.core.clock import to_naive_utc, utcnow
from quill.core.config import get_settings
from quill.core.logging import get_logger
from quill.domain.content.errors import InvalidScheduleTime, InvalidStateTransition, RevisionConflict
from quill.domain.content.fields import ContentFields
from quill.domain.content.state_machine import ContentState, state_of, validate_transition
from quill.models import ContentItem
from quill.repositories.content_repository import ContentRepository, content_repository
from quill.services.version_archive_service import VersionArchiveService, version_archive_service
from quill.utils.text_processing import estimate_read_time, slugify

logger = get_logger("services.lifecycle")
settings = get_settings()


def _field_values(fields: ContentFields) -> dict[str, Any]:
    return {
        "title": fields.title,
        "slug": fields.slug,
        "excerpt": fields.excerpt,
        "body": fields.body,
        "category": fields.category,
        "cover_image": fields.cover_image,
        "read_time": fields.read_time,
    }


class LifecycleService:
    def __init__(
        self,
        *,
        items: ContentRepository = content_repository,
        versions: VersionArchiveService = version_archive_service,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._items = items
        self._versions = versions
        self._clock = clock

    # ── Helpers ──

    def prepare_fields(self, fields: ContentFields) -> ContentFields:
        """Fill derived fields (slug, read time) left blank by the author."""
        changes: dict[str, Any] = {}
        if not fields.slug and fields.title:
            changes["slug"] = slugify(fields.title)
        if not fields.read_time and fields.body:
            changes["read_time"] = estimate_read_time(fields.body, settings.words_per_minute)
        return fields.with_changes(**changes) if changes else fields

    def assert_transition(self, item: ContentItem, target: ContentState) -> ContentState:
        current = state_of(item)
        result = validate_transition(current, target)
        if not result.valid:
            raise InvalidStateTransition(
                f"Cannot move content item {item.id} from {current.value} to {target.value}",
                details={
                    "item_id": item.id,
                    "from_state": current.value,
                    "to_state": target.value,
                    "allowed_targets": [state.value for state in result.allowed_targets],
                },
            )
        return current

    @staticmethod
    def _check_revision(item: ContentItem, expected_revision: int | None) -> None:
        if expected_revision is not None and item.revision != expected_revision:
            raise RevisionConflict(item.id, expected=expected_revision, actual=item.revision)

    # ── Reads ──

    async def get_item(self, db: AsyncSession, item_id: int) -> ContentItem:
        return await self._items.require(db, item_id)

    async def list_items(
        self,
        db: AsyncSession,
        *,
        state: ContentState | None = None,
        limit: int = 100,
    ) -> list[ContentItem]:
        return await self._items.list_items(db, state=state, limit=limit)

    # ── Writes ──

    async def create_item(
        self,
        db: AsyncSession,
        fields: ContentFields,
        *,
        created_by: str | None = None,
    ) -> ContentItem:
        try:
            item = await self._items.create(db, fields=self.prepare_fields(fields))
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("content_item_created", item_id=item.id, created_by=created_by)
        return item

    async def update_item(
        self,
        db: AsyncSession,
        item_id: int,
        fields: ContentFields,
        *,
        expected_revision: int | None = None,
    ) -> ContentItem:
        """Write new fields; the publish state is left as it is."""
        values = {**_field_values(self.prepare_fields(fields)), "draft_snapshot": None}
        try:
            item = await self._items.apply_update(db, item_id, values, expected_revision=expected_revision)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("content_item_updated", item_id=item_id, revision=item.revision)
        return item

    async def save_draft(self, db: AsyncSession, item_id: int, snapshot: str | None) -> None:
        try:
            await self._items.write_draft_snapshot(db, item_id, snapshot)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    async def publish_now(
        self,
        db: AsyncSession,
        item_id: int | None,
        fields: ContentFields | None = None,
        *,
        actor: str | None = None,
        expected_revision: int | None = None,
    ) -> ContentItem:
        """Publish immediately.

        For an existing item the current remote fields are snapshotted first,
        then the new fields and the published flags are written in a single
        UPDATE within the same transaction.
        """
        now = self._clock()
        try:
            if item_id is None:
                if fields is None:
                    raise ValueError("fields are required to publish a new item")
                item = await self._items.create(
                    db,
                    fields=self.prepare_fields(fields),
                    published=True,
                    published_at=now,
                )
                await db.commit()
                logger.info("content_item_published", item_id=item.id, created=True, actor=actor)
                return item

            current = await self._items.require(db, item_id)
            self._check_revision(current, expected_revision)
            previous_state = self.assert_transition(current, ContentState.PUBLISHED)
            version = await self._versions.snapshot_item(db, current, created_by=actor)

            values: dict[str, Any] = {
                "published": True,
                "published_at": now,
                "scheduled_at": None,
            }
            if fields is not None:
                values.update(_field_values(self.prepare_fields(fields)))
                values["draft_snapshot"] = None
            item = await self._items.apply_update(db, item_id, values, expected_revision=expected_revision)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "content_item_published",
            item_id=item_id,
            from_state=previous_state.value,
            snapshot_version=version.version_number,
            actor=actor,
        )
        return item

    async def schedule(
        self,
        db: AsyncSession,
        item_id: int,
        at: datetime,
        *,
        fields: ContentFields | None = None,
        expected_revision: int | None = None,
    ) -> ContentItem:
        """Defer publication to ``at``; past times are picked up by the next worker run.

        Naive datetimes are taken as UTC.
        """
        if not isinstance(at, datetime):
            raise InvalidScheduleTime("scheduled_at must be a datetime", details={"item_id": item_id})
        scheduled_at = to_naive_utc(at)
        values: dict[str, Any] = {
            "scheduled_at": scheduled_at,
            "published": False,
            "published_at": None,
        }
        if fields is not None:
            values.update(_field_values(self.prepare_fields(fields)))
            values["draft_snapshot"] = None
        try:
            current = await self._items.require(db, item_id)
            self._check_revision(current, expected_revision)
            previous_state = self.assert_transition(current, ContentState.SCHEDULED)
            item = await self._items.apply_update(db, item_id, values, expected_revision=expected_revision)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "content_item_scheduled",
            item_id=item_id,
            from_state=previous_state.value,
            scheduled_at=scheduled_at.isoformat(),
        )
        return item

    async def cancel_schedule(
        self,
        db: AsyncSession,
        item_id: int,
        *,
        expected_revision: int | None = None,
    ) -> ContentItem:
        return await self._move_to_draft(
            db,
            item_id,
            expected_state=ContentState.SCHEDULED,
            values={"scheduled_at": None},
            expected_revision=expected_revision,
            event="content_item_schedule_cancelled",
        )

    async def unpublish(
        self,
        db: AsyncSession,
        item_id: int,
        *,
        expected_revision: int | None = None,
    ) -> ContentItem:
        return await self._move_to_draft(
            db,
            item_id,
            expected_state=ContentState.PUBLISHED,
            values={"published": False, "published_at": None},
            expected_revision=expected_revision,
            event="content_item_unpublished",
        )

    async def _move_to_draft(
        self,
        db: AsyncSession,
        item_id: int,
        *,
        expected_state: ContentState,
        values: dict[str, Any],
        expected_revision: int | None,
        event: str,
    ) -> ContentItem:
        try:
            current = await self._items.require(db, item_id)
            self._check_revision(current, expected_revision)
            current_state = self.assert_transition(current, ContentState.DRAFT)
            if current_state != expected_state:
                raise InvalidStateTransition(
                    f"Content item {item_id} is {current_state.value}, not {expected_state.value}",
                    details={
                        "item_id": item_id,
                        "from_state": current_state.value,
                        "to_state": ContentState.DRAFT.value,
                        "expected_state": expected_state.value,
                    },
                )
            item = await self._items.apply_update(db, item_id, values, expected_revision=expected_revision)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(event, item_id=item_id)
        return item

    async def delete_item(self, db: AsyncSession, item_id: int) -> None:
        try:
            await self._items.require(db, item_id)
            await self._items.delete(db, item_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("content_item_deleted", item_id=item_id)

    async def bulk_unpublish(self, db: AsyncSession, item_ids: list[int]) -> list[int]:
        ids = list(dict.fromkeys(item_ids))[: settings.max_bulk_items]
        try:
            unpublished = await self._items.unpublish_many(db, ids)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("content_items_bulk_unpublished", requested=len(ids), unpublished=len(unpublished))
        return unpublished

    async def bulk_delete(self, db: AsyncSession, item_ids: list[int]) -> int:
        ids = list(dict.fromkeys(item_ids))[: settings.max_bulk_items]
        try:
            deleted = await self._items.delete_many(db, ids)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("content_items_bulk_deleted", requested=len(ids), deleted=deleted)
        return deleted


lifecycle_service = LifecycleService()
