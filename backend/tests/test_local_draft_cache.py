from __future__ import annotations

import json
from datetime import timedelta

import pytest

from quill.domain.content.fields import ContentFields
from quill.services.local_draft_cache import LocalDraftCache


class _RedisStub:
    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.ttls: dict[str, timedelta] = {}

    async def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def get(self, key):
        return self.store.get(key)

    async def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0


def _cache(redis: _RedisStub) -> LocalDraftCache:
    return LocalDraftCache(redis, prefix="quill:draft:local", device_id="laptop", ttl=timedelta(days=2))


def test_key_is_per_device() -> None:
    cache = _cache(_RedisStub())
    assert cache.default_key == "quill:draft:local:laptop"
    assert cache.key_for("phone") == "quill:draft:local:phone"


@pytest.mark.asyncio
async def test_save_and_load() -> None:
    redis = _RedisStub()
    cache = _cache(redis)
    fields = ContentFields(title="Local", body="only here", cover_image=None)

    saved_at = await cache.save(cache.default_key, fields)
    entry = await cache.load(cache.default_key)

    assert entry.fields == fields
    assert entry.last_local_save_at == saved_at
    assert redis.ttls[cache.default_key] == timedelta(days=2)
    payload = json.loads(redis.store[cache.default_key])
    assert set(payload) == {"fields", "last_local_save_at"}


@pytest.mark.asyncio
async def test_single_slot_is_overwritten() -> None:
    cache = _cache(_RedisStub())

    await cache.save(cache.default_key, ContentFields(title="first", body="b"))
    await cache.save(cache.default_key, ContentFields(title="second", body="b"))

    entry = await cache.load(cache.default_key)
    assert entry.fields.title == "second"


@pytest.mark.asyncio
async def test_missing_and_corrupt_entries() -> None:
    redis = _RedisStub()
    cache = _cache(redis)

    assert await cache.load(cache.default_key) is None
    redis.store[cache.default_key] = "{broken"
    assert await cache.load(cache.default_key) is None
    redis.store[cache.default_key] = json.dumps({"no_fields": True})
    assert await cache.load(cache.default_key) is None


@pytest.mark.asyncio
async def test_clear() -> None:
    redis = _RedisStub()
    cache = _cache(redis)
    await cache.save(cache.default_key, ContentFields(title="t", body="b"))

    await cache.clear(cache.default_key)

    assert await cache.load(cache.default_key) is None
