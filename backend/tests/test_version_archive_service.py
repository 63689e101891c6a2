from __future__ import annotations

import asyncio

import pytest

from quill.domain.content.errors import ContentItemNotFound, RevisionConflict, VersionNotFound
from quill.domain.content.fields import ContentFields
from quill.services.lifecycle_service import lifecycle_service
from quill.services.version_archive_service import version_archive_service


async def _create(db, **values) -> int:
    item = await lifecycle_service.create_item(db, ContentFields(**values))
    return item.id


@pytest.mark.asyncio
async def test_version_numbers_start_at_one_and_have_no_gaps(db) -> None:
    item_id = await _create(db, title="Draft", body="v0")

    numbers = []
    for idx in range(4):
        version = await version_archive_service.create_version(
            db,
            item_id,
            ContentFields(title=f"T{idx}", body=f"B{idx}"),
            created_by="editor",
        )
        numbers.append(version.version_number)

    assert numbers == [1, 2, 3, 4]
    listed = await version_archive_service.list_versions(db, item_id)
    assert [v.version_number for v in listed] == [4, 3, 2, 1]


@pytest.mark.asyncio
async def test_numbering_is_per_item(db) -> None:
    first = await _create(db, title="A", body="a")
    second = await _create(db, title="B", body="b")

    await version_archive_service.create_version(db, first)
    await version_archive_service.create_version(db, first)
    version = await version_archive_service.create_version(db, second)

    assert version.version_number == 1


@pytest.mark.asyncio
async def test_create_version_defaults_to_current_fields(db) -> None:
    item_id = await _create(db, title="Current", body="Body", category="news")

    version = await version_archive_service.create_version(db, item_id, created_by="editor")

    assert version.title == "Current"
    assert version.body == "Body"
    assert version.category == "news"
    assert version.created_by == "editor"


@pytest.mark.asyncio
async def test_restore_copies_archived_fields_without_new_version(db) -> None:
    item_id = await _create(db, title="Original", body="first body", excerpt="ex", category="c1")
    await version_archive_service.create_version(db, item_id)
    await lifecycle_service.update_item(db, item_id, ContentFields(title="Changed", body="second body", slug="keep"))

    restored = await version_archive_service.restore_version(db, item_id, 1)

    assert restored.title == "Original"
    assert restored.body == "first body"
    assert restored.excerpt == "ex"
    assert restored.category == "c1"
    # slug is not archived
    assert restored.slug == "keep"
    assert len(await version_archive_service.list_versions(db, item_id)) == 1


@pytest.mark.asyncio
async def test_restore_respects_expected_revision(db) -> None:
    item_id = await _create(db, title="Original", body="b")
    await version_archive_service.create_version(db, item_id)

    with pytest.raises(RevisionConflict):
        await version_archive_service.restore_version(db, item_id, 1, expected_revision=99)


@pytest.mark.asyncio
async def test_missing_item_and_version(db) -> None:
    item_id = await _create(db, title="x", body="y")

    with pytest.raises(VersionNotFound):
        await version_archive_service.get_version(db, item_id, 3)
    with pytest.raises(VersionNotFound):
        await version_archive_service.restore_version(db, item_id, 3)
    with pytest.raises(ContentItemNotFound):
        await version_archive_service.create_version(db, 9999)
    with pytest.raises(ContentItemNotFound):
        await version_archive_service.list_versions(db, 9999)


@pytest.mark.asyncio
async def test_concurrent_snapshots_get_distinct_numbers(db, session_factory) -> None:
    item_id = await _create(db, title="Busy", body="b")

    async def _snapshot(idx: int) -> int:
        async with session_factory() as session:
            version = await version_archive_service.create_version(
                session,
                item_id,
                ContentFields(title=f"T{idx}", body="b"),
                created_by=f"editor-{idx}",
            )
            return version.version_number

    numbers = await asyncio.gather(*(_snapshot(idx) for idx in range(5)))

    assert sorted(numbers) == [1, 2, 3, 4, 5]
    listed = await version_archive_service.list_versions(db, item_id)
    assert [v.version_number for v in listed] == [5, 4, 3, 2, 1]


@pytest.mark.asyncio
async def test_restore_then_snapshot_matches_restored_version(db) -> None:
    item_id = await _create(db, title="First", body="one", excerpt="e1", category="c1", cover_image="a.png")
    original = await version_archive_service.create_version(db, item_id)
    await lifecycle_service.update_item(db, item_id, ContentFields(title="Second", body="two", category="c2"))
    await version_archive_service.create_version(db, item_id)

    await version_archive_service.restore_version(db, item_id, original.version_number)
    after_restore = await version_archive_service.create_version(db, item_id)

    assert after_restore.version_number == 3
    assert ContentFields.of(after_restore).archived() == ContentFields.of(original).archived()
