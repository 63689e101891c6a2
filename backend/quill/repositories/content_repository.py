from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from quill.domain.content.errors import ContentItemNotFound, RevisionConflict
from quill.domain.content.fields import ContentFields
from quill.domain.content.state_machine import ContentState
from quill.models import ContentItem, ContentVersion


class ContentRepository:
    async def get(self, db: AsyncSession, item_id: int) -> ContentItem | None:
        row = await db.execute(
            select(ContentItem)
            .where(ContentItem.id == item_id)
            .execution_options(populate_existing=True)
        )
        return row.scalar_one_or_none()

    async def require(self, db: AsyncSession, item_id: int) -> ContentItem:
        item = await self.get(db, item_id)
        if item is None:
            raise ContentItemNotFound(item_id)
        return item

    async def list_items(
        self,
        db: AsyncSession,
        *,
        state: ContentState | None = None,
        limit: int = 100,
    ) -> list[ContentItem]:
        stmt = select(ContentItem)
        if state == ContentState.PUBLISHED:
            stmt = stmt.where(ContentItem.published.is_(True))
        elif state == ContentState.SCHEDULED:
            stmt = stmt.where(ContentItem.published.is_(False), ContentItem.scheduled_at.is_not(None))
        elif state == ContentState.DRAFT:
            stmt = stmt.where(ContentItem.published.is_(False), ContentItem.scheduled_at.is_(None))
        rows = await db.execute(
            stmt.order_by(ContentItem.updated_at.desc(), ContentItem.id.desc()).limit(max(1, min(limit, 500)))
        )
        return list(rows.scalars().all())

    async def create(
        self,
        db: AsyncSession,
        *,
        fields: ContentFields,
        published: bool = False,
        published_at: datetime | None = None,
        scheduled_at: datetime | None = None,
    ) -> ContentItem:
        item = ContentItem(
            title=fields.title,
            slug=fields.slug,
            excerpt=fields.excerpt,
            body=fields.body,
            category=fields.category,
            cover_image=fields.cover_image,
            read_time=fields.read_time,
            published=published,
            published_at=published_at,
            scheduled_at=scheduled_at,
            revision=1,
            version_seq=0,
        )
        db.add(item)
        await db.flush()
        await db.refresh(item)
        return item

    async def apply_update(
        self,
        db: AsyncSession,
        item_id: int,
        values: dict[str, Any],
        *,
        expected_revision: int | None = None,
    ) -> ContentItem:
        """Write ``values`` in one UPDATE and bump the revision token.

        With ``expected_revision`` the write only lands when the stored revision
        still matches; otherwise ``RevisionConflict`` is raised.
        """
        stmt = update(ContentItem).where(ContentItem.id == item_id)
        if expected_revision is not None:
            stmt = stmt.where(ContentItem.revision == expected_revision)
        result = await db.execute(
            stmt.values(**values, revision=ContentItem.revision + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            current = await self.get(db, item_id)
            if current is None:
                raise ContentItemNotFound(item_id)
            raise RevisionConflict(item_id, expected=expected_revision, actual=current.revision)
        return await self.require(db, item_id)

    async def write_draft_snapshot(self, db: AsyncSession, item_id: int, snapshot: str | None) -> None:
        """Update-only write of the autosave field; never touches the revision."""
        result = await db.execute(
            update(ContentItem)
            .where(ContentItem.id == item_id)
            .values(draft_snapshot=snapshot)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ContentItemNotFound(item_id)

    async def select_due(self, db: AsyncSession, *, now: datetime) -> list[ContentItem]:
        rows = await db.execute(
            select(ContentItem)
            .where(
                ContentItem.published.is_(False),
                ContentItem.scheduled_at.is_not(None),
                ContentItem.scheduled_at <= now,
            )
            .order_by(ContentItem.scheduled_at.asc(), ContentItem.id.asc())
        )
        return list(rows.scalars().all())

    async def publish_if_due(self, db: AsyncSession, item_id: int, *, now: datetime) -> bool:
        """Flip a due item to published, keeping its scheduled time as the publish time.

        The WHERE clause repeats the due condition so an item already published
        or rescheduled by someone else is left untouched.
        """
        result = await db.execute(
            update(ContentItem)
            .where(
                ContentItem.id == item_id,
                ContentItem.published.is_(False),
                ContentItem.scheduled_at.is_not(None),
                ContentItem.scheduled_at <= now,
            )
            .values(
                published=True,
                published_at=ContentItem.scheduled_at,
                scheduled_at=None,
                revision=ContentItem.revision + 1,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def unpublish_many(self, db: AsyncSession, item_ids: list[int]) -> list[int]:
        if not item_ids:
            return []
        rows = await db.execute(
            update(ContentItem)
            .where(ContentItem.id.in_(item_ids), ContentItem.published.is_(True))
            .values(published=False, published_at=None, revision=ContentItem.revision + 1)
            .returning(ContentItem.id)
            .execution_options(synchronize_session=False)
        )
        return sorted(int(item_id) for item_id in rows.scalars().all())

    async def delete(self, db: AsyncSession, item_id: int) -> bool:
        return await self.delete_many(db, [item_id]) == 1

    async def delete_many(self, db: AsyncSession, item_ids: list[int]) -> int:
        if not item_ids:
            return 0
        # Explicit cascade; SQLite only enforces ON DELETE CASCADE with foreign_keys=ON.
        await db.execute(delete(ContentVersion).where(ContentVersion.content_item_id.in_(item_ids)))
        result = await db.execute(
            delete(ContentItem)
            .where(ContentItem.id.in_(item_ids))
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)


content_repository = ContentRepository()
