"""
Quill — Version Archive
=======================
Immutable per-item history of the archived fields (title, body, excerpt,
category, cover image, read time) for point-in-time restore.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from quill.core.logging import get_logger
from quill.domain.content.errors import VersionNotFound
from quill.domain.content.fields import ContentFields
from quill.models import ContentItem, ContentVersion
from quill.repositories.content_repository import ContentRepository, content_repository
from quill.repositories.version_repository import VersionRepository, version_repository

logger = get_logger("services.version_archive")


class VersionArchiveService:
    def __init__(
        self,
        *,
        versions: VersionRepository = version_repository,
        items: ContentRepository = content_repository,
    ) -> None:
        self._versions = versions
        self._items = items

    async def record(
        self,
        db: AsyncSession,
        *,
        item_id: int,
        fields: ContentFields,
        created_by: str | None,
    ) -> ContentVersion:
        """Insert a snapshot inside the caller's transaction (no commit)."""
        number = await self._versions.reserve_version_number(db, item_id)
        version = await self._versions.insert(
            db,
            item_id=item_id,
            version_number=number,
            fields=fields,
            created_by=created_by,
        )
        logger.info("content_version_recorded", item_id=item_id, version_number=number, created_by=created_by)
        return version

    async def snapshot_item(self, db: AsyncSession, item: ContentItem, *, created_by: str | None) -> ContentVersion:
        return await self.record(db, item_id=item.id, fields=ContentFields.of(item), created_by=created_by)

    async def create_version(
        self,
        db: AsyncSession,
        item_id: int,
        fields: ContentFields | None = None,
        *,
        created_by: str | None = None,
    ) -> ContentVersion:
        """Create and commit a snapshot; defaults to the item's current fields."""
        try:
            if fields is None:
                fields = ContentFields.of(await self._items.require(db, item_id))
            version = await self.record(db, item_id=item_id, fields=fields, created_by=created_by)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return version

    async def list_versions(self, db: AsyncSession, item_id: int) -> list[ContentVersion]:
        await self._items.require(db, item_id)
        return await self._versions.list_for_item(db, item_id)

    async def get_version(self, db: AsyncSession, item_id: int, version_number: int) -> ContentVersion:
        version = await self._versions.get(db, item_id, version_number)
        if version is None:
            await self._items.require(db, item_id)
            raise VersionNotFound(item_id, version_number)
        return version

    async def restore_version(
        self,
        db: AsyncSession,
        item_id: int,
        version_number: int,
        *,
        expected_revision: int | None = None,
    ) -> ContentItem:
        """Copy a snapshot's fields onto the live item. No new version is created."""
        try:
            version = await self.get_version(db, item_id, version_number)
            item = await self._items.apply_update(
                db,
                item_id,
                ContentFields.of(version).archived(),
                expected_revision=expected_revision,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("content_version_restored", item_id=item_id, version_number=version_number)
        return item


version_archive_service = VersionArchiveService()
