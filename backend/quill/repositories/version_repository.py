from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from quill.core.clock import utcnow
from quill.domain.content.errors import ContentItemNotFound
from quill.domain.content.fields import ContentFields
from quill.models import ContentItem, ContentVersion


class VersionRepository:
    async def reserve_version_number(self, db: AsyncSession, item_id: int) -> int:
        """Atomically issue the next version number for an item.

        The increment and the read happen in one UPDATE ... RETURNING, which
        holds the item's row lock until the surrounding transaction ends, so
        concurrent callers are serialized and never receive the same number.
        """
        row = await db.execute(
            update(ContentItem)
            .where(ContentItem.id == item_id)
            .values(version_seq=ContentItem.version_seq + 1)
            .returning(ContentItem.version_seq)
            .execution_options(synchronize_session=False)
        )
        number = row.scalar_one_or_none()
        if number is None:
            raise ContentItemNotFound(item_id)
        return int(number)

    async def insert(
        self,
        db: AsyncSession,
        *,
        item_id: int,
        version_number: int,
        fields: ContentFields,
        created_by: str | None,
    ) -> ContentVersion:
        version = ContentVersion(
            content_item_id=item_id,
            version_number=version_number,
            created_by=created_by,
            created_at=utcnow(),
            **fields.archived(),
        )
        db.add(version)
        await db.flush()
        await db.refresh(version)
        return version

    async def list_for_item(self, db: AsyncSession, item_id: int) -> list[ContentVersion]:
        rows = await db.execute(
            select(ContentVersion)
            .where(ContentVersion.content_item_id == item_id)
            .order_by(ContentVersion.version_number.desc())
        )
        return list(rows.scalars().all())

    async def get(self, db: AsyncSession, item_id: int, version_number: int) -> ContentVersion | None:
        row = await db.execute(
            select(ContentVersion).where(
                ContentVersion.content_item_id == item_id,
                ContentVersion.version_number == version_number,
            )
        )
        return row.scalar_one_or_none()


version_repository = VersionRepository()
