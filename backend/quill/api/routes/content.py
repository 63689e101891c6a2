"""
Quill — Content Lifecycle Routes
================================
Content items, drafts, publish/schedule transitions, versions and the
scheduled-publish trigger.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from quill.api.envelope import list_envelope, success_envelope
from quill.core.database import get_db
from quill.core.logging import get_logger
from quill.domain.content.state_machine import ContentState, state_of
from quill.models import ContentItem, ContentVersion
from quill.schemas import (
    BulkIdsRequest,
    ContentCreate,
    ContentUpdate,
    DraftSnapshotRequest,
    PublishRequest,
    RestoreRequest,
    RevisionRequest,
    ScheduleRequest,
    VersionCreate,
)
from quill.services.lifecycle_service import lifecycle_service
from quill.services.scheduled_publish_service import scheduled_publish_service
from quill.services.version_archive_service import version_archive_service

logger = get_logger("api.content")
router = APIRouter(prefix="/content", tags=["Content"])


def _item_to_dict(item: ContentItem) -> dict:
    return {
        "id": item.id,
        "title": item.title,
        "slug": item.slug,
        "excerpt": item.excerpt,
        "body": item.body,
        "category": item.category,
        "cover_image": item.cover_image,
        "read_time": item.read_time,
        "published": bool(item.published),
        "published_at": item.published_at,
        "scheduled_at": item.scheduled_at,
        "draft_snapshot": item.draft_snapshot,
        "state": state_of(item).value,
        "revision": item.revision,
        "created_at": item.created_at,
        "updated_at": item.updated_at,
    }


def _version_to_dict(version: ContentVersion) -> dict:
    return {
        "id": version.id,
        "content_item_id": version.content_item_id,
        "version_number": version.version_number,
        "title": version.title,
        "body": version.body,
        "excerpt": version.excerpt,
        "category": version.category,
        "cover_image": version.cover_image,
        "read_time": version.read_time,
        "created_at": version.created_at,
        "created_by": version.created_by,
    }


# ── Collection-level actions (declared before /{item_id} routes) ──

@router.post("/scheduled/publish")
async def publish_scheduled_items():
    """Publish every due scheduled item. Parameterless and idempotent."""
    result = await scheduled_publish_service.run()
    return success_envelope(result.to_dict())


@router.post("/publish")
async def publish_new_item(payload: ContentCreate, db: AsyncSession = Depends(get_db)):
    item = await lifecycle_service.publish_now(
        db,
        None,
        payload.to_fields(),
        actor=payload.created_by,
    )
    return success_envelope(_item_to_dict(item), status_code=201)


@router.post("/bulk/unpublish")
async def bulk_unpublish(payload: BulkIdsRequest, db: AsyncSession = Depends(get_db)):
    ids = await lifecycle_service.bulk_unpublish(db, payload.ids)
    return success_envelope({"unpublished_ids": ids, "count": len(ids)})


@router.post("/bulk/delete")
async def bulk_delete(payload: BulkIdsRequest, db: AsyncSession = Depends(get_db)):
    deleted = await lifecycle_service.bulk_delete(db, payload.ids)
    return success_envelope({"deleted": deleted})


@router.post("")
async def create_item(payload: ContentCreate, db: AsyncSession = Depends(get_db)):
    item = await lifecycle_service.create_item(db, payload.to_fields(), created_by=payload.created_by)
    return success_envelope(_item_to_dict(item), status_code=201)


@router.get("")
async def list_items(
    state: ContentState | None = Query(default=None),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    items = await lifecycle_service.list_items(db, state=state, limit=limit)
    return list_envelope(_item_to_dict(item) for item in items)


# ── Item routes ──

@router.get("/{item_id}")
async def get_item(item_id: int, db: AsyncSession = Depends(get_db)):
    item = await lifecycle_service.get_item(db, item_id)
    return success_envelope(_item_to_dict(item))


@router.put("/{item_id}")
async def update_item(item_id: int, payload: ContentUpdate, db: AsyncSession = Depends(get_db)):
    item = await lifecycle_service.update_item(
        db,
        item_id,
        payload.to_fields(),
        expected_revision=payload.expected_revision,
    )
    return success_envelope(_item_to_dict(item))


@router.delete("/{item_id}")
async def delete_item(item_id: int, db: AsyncSession = Depends(get_db)):
    await lifecycle_service.delete_item(db, item_id)
    return success_envelope({"id": item_id, "deleted": True})


@router.put("/{item_id}/draft")
async def save_draft(item_id: int, payload: DraftSnapshotRequest, db: AsyncSession = Depends(get_db)):
    await lifecycle_service.save_draft(db, item_id, payload.draft_snapshot)
    return success_envelope({"id": item_id, "saved": True})


@router.post("/{item_id}/publish")
async def publish_item(item_id: int, payload: PublishRequest | None = None, db: AsyncSession = Depends(get_db)):
    payload = payload or PublishRequest()
    item = await lifecycle_service.publish_now(
        db,
        item_id,
        payload.fields.to_fields() if payload.fields else None,
        actor=payload.actor,
        expected_revision=payload.expected_revision,
    )
    return success_envelope(_item_to_dict(item))


@router.post("/{item_id}/schedule")
async def schedule_item(item_id: int, payload: ScheduleRequest, db: AsyncSession = Depends(get_db)):
    item = await lifecycle_service.schedule(
        db,
        item_id,
        payload.scheduled_at,
        fields=payload.fields.to_fields() if payload.fields else None,
        expected_revision=payload.expected_revision,
    )
    return success_envelope(_item_to_dict(item))


@router.post("/{item_id}/schedule/cancel")
async def cancel_schedule(item_id: int, payload: RevisionRequest | None = None, db: AsyncSession = Depends(get_db)):
    payload = payload or RevisionRequest()
    item = await lifecycle_service.cancel_schedule(db, item_id, expected_revision=payload.expected_revision)
    return success_envelope(_item_to_dict(item))


@router.post("/{item_id}/unpublish")
async def unpublish_item(item_id: int, payload: RevisionRequest | None = None, db: AsyncSession = Depends(get_db)):
    payload = payload or RevisionRequest()
    item = await lifecycle_service.unpublish(db, item_id, expected_revision=payload.expected_revision)
    return success_envelope(_item_to_dict(item))


# ── Versions ──

@router.get("/{item_id}/versions")
async def list_versions(item_id: int, db: AsyncSession = Depends(get_db)):
    versions = await version_archive_service.list_versions(db, item_id)
    return list_envelope(_version_to_dict(v) for v in versions)


@router.post("/{item_id}/versions")
async def create_version(item_id: int, payload: VersionCreate | None = None, db: AsyncSession = Depends(get_db)):
    payload = payload or VersionCreate()
    version = await version_archive_service.create_version(
        db,
        item_id,
        payload.fields.to_fields() if payload.fields else None,
        created_by=payload.created_by,
    )
    return success_envelope(_version_to_dict(version), status_code=201)


@router.get("/{item_id}/versions/{version_number}")
async def get_version(item_id: int, version_number: int, db: AsyncSession = Depends(get_db)):
    version = await version_archive_service.get_version(db, item_id, version_number)
    return success_envelope(_version_to_dict(version))


@router.post("/{item_id}/versions/{version_number}/restore")
async def restore_version(
    item_id: int,
    version_number: int,
    payload: RestoreRequest | None = None,
    db: AsyncSession = Depends(get_db),
):
    payload = payload or RestoreRequest()
    item = await version_archive_service.restore_version(
        db,
        item_id,
        version_number,
        expected_revision=payload.expected_revision,
    )
    logger.info("content_version_restore_requested", item_id=item_id, version_number=version_number)
    return success_envelope(_item_to_dict(item))
