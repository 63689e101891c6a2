"""Single-slot per-device cache for drafts of items that have no remote id yet."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Any

from redis.asyncio import Redis

from quill.core.clock import utcnow
from quill.core.config import get_settings
from quill.core.logging import get_logger
from quill.domain.content.fields import ContentFields

logger = get_logger("services.local_draft_cache")


@dataclass(frozen=True, slots=True)
class LocalDraftEntry:
    fields: ContentFields
    last_local_save_at: datetime | None


class LocalDraftCache:
    """One serialized blob under a fixed key per device.

    Only used before a content item has a remote identity; once it does, the
    item's ``draft_snapshot`` column is the authoritative draft.
    """

    def __init__(
        self,
        client: Any | None = None,
        *,
        prefix: str | None = None,
        device_id: str | None = None,
        ttl: timedelta | None = None,
    ) -> None:
        self._settings = get_settings()
        self._redis = client
        self._prefix = prefix or self._settings.local_draft_key_prefix
        self._device_id = device_id or self._settings.local_draft_device_id
        self._ttl = ttl or timedelta(days=max(1, self._settings.local_draft_ttl_days))

    async def _client(self) -> Redis:
        if self._redis is None:
            self._redis = Redis.from_url(self._settings.redis_url, decode_responses=True)
        return self._redis

    def key_for(self, device_id: str | None = None) -> str:
        return f"{self._prefix}:{device_id or self._device_id}"

    @property
    def default_key(self) -> str:
        return self.key_for()

    async def save(self, key: str, fields: ContentFields) -> datetime:
        saved_at = utcnow()
        payload = json.dumps(
            {"fields": asdict(fields), "last_local_save_at": saved_at.isoformat()},
            ensure_ascii=False,
        )
        client = await self._client()
        await client.setex(key, self._ttl, payload)
        return saved_at

    async def load(self, key: str) -> LocalDraftEntry | None:
        client = await self._client()
        raw = await client.get(key)
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        try:
            data = json.loads(raw)
            fields = ContentFields.from_mapping(data["fields"])
            saved_raw = data.get("last_local_save_at")
            saved_at = datetime.fromisoformat(saved_raw) if saved_raw else None
        except (ValueError, KeyError, TypeError, AttributeError):
            logger.warning("local_draft_corrupt", key=key)
            return None
        return LocalDraftEntry(fields=fields, last_local_save_at=saved_at)

    async def clear(self, key: str) -> None:
        client = await self._client()
        await client.delete(key)


local_draft_cache = LocalDraftCache()
