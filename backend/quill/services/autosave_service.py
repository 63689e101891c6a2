"""
Quill — Autosave Engine
=======================
Debounced persistence of an editing session's buffer.

Every buffer change bumps the session's edit epoch and re-arms a single
delayed task. When the task fires it compares its epoch with the current one
and no-ops if a newer edit arrived. Writes go to the item's ``draft_snapshot``
when the session is bound to a remote id, or to the per-device local draft
cache while the item is still unsaved.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from quill.core.clock import utcnow
from quill.core.config import get_settings
from quill.core.database import async_session
from quill.core.logging import get_logger
from quill.domain.content.fields import ContentFields
from quill.repositories.content_repository import ContentRepository, content_repository
from quill.services.local_draft_cache import LocalDraftEntry, local_draft_cache

logger = get_logger("services.autosave")
settings = get_settings()


# ── Storage target ──

@dataclass(frozen=True, slots=True)
class Unsaved:
    """A new item with no remote id; drafts live in the local cache slot."""
    local_key: str


@dataclass(frozen=True, slots=True)
class Persisted:
    """An item with a remote id; drafts live in its ``draft_snapshot`` column."""
    item_id: int


DraftTarget = Union[Unsaved, Persisted]


def describe_target(target: DraftTarget) -> str:
    if isinstance(target, Persisted):
        return f"remote:{target.item_id}"
    return f"local:{target.local_key}"


class RemoteDraftWriter(Protocol):
    async def write_draft(self, item_id: int, snapshot: str) -> None: ...


class LocalDraftStore(Protocol):
    async def save(self, key: str, fields: ContentFields) -> datetime: ...

    async def load(self, key: str) -> LocalDraftEntry | None: ...

    async def clear(self, key: str) -> None: ...


class DatabaseDraftWriter:
    """Update-only write of ``draft_snapshot`` in its own short transaction."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = async_session,
        items: ContentRepository = content_repository,
    ) -> None:
        self._session_factory = session_factory
        self._items = items

    async def write_draft(self, item_id: int, snapshot: str) -> None:
        async with self._session_factory() as db:
            try:
                await self._items.write_draft_snapshot(db, item_id, snapshot)
                await db.commit()
            except Exception:
                await db.rollback()
                raise


@dataclass(slots=True)
class SaveOutcome:
    ok: bool
    skipped: bool = False
    target: DraftTarget | None = None
    saved_at: datetime | None = None
    error: str | None = None


# ── Session ──

class AutosaveSession:
    def __init__(
        self,
        target: DraftTarget,
        *,
        local_store: LocalDraftStore = local_draft_cache,
        remote_writer: RemoteDraftWriter | None = None,
        debounce_seconds: float | None = None,
        initial: ContentFields | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._target = target
        self._local = local_store
        self._remote = remote_writer or DatabaseDraftWriter()
        self._debounce = settings.autosave_debounce_seconds if debounce_seconds is None else debounce_seconds
        self._clock = clock
        self._buffer = initial or ContentFields()
        self._last_persisted: str | None = self._buffer.serialize() if initial is not None else None
        self._epoch = 0
        self._dirty = False
        self._pending: asyncio.Task | None = None
        self._inflight: asyncio.Task | None = None
        self._writing: str | None = None
        self._lock = asyncio.Lock()
        self._closed = False
        self.last_saved_at: datetime | None = None
        self.last_error: str | None = None

    @property
    def target(self) -> DraftTarget:
        return self._target

    @property
    def buffer(self) -> ContentFields:
        return self._buffer

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    @property
    def closed(self) -> bool:
        return self._closed

    def has_unsaved_changes(self) -> bool:
        """True when navigating away should warn the author."""
        return self._dirty

    def update(self, fields: ContentFields) -> None:
        """Replace the edit buffer and restart the quiescence timer."""
        if self._closed:
            raise RuntimeError("autosave session is closed")
        self._buffer = fields
        self._epoch += 1
        self._cancel_pending()
        # Compare with what the store will hold once an in-flight write lands.
        baseline = self._writing if self._writing is not None else self._last_persisted
        self._dirty = not fields.is_empty() and fields.serialize() != baseline
        if self._dirty:
            self._arm()

    async def save_now(self) -> SaveOutcome:
        """Cancel any pending timer and persist the current buffer immediately."""
        self._cancel_pending()
        return await self._persist(self._epoch, manual=True)

    async def bind(self, item_id: int, *, saved: ContentFields | None = None) -> None:
        """Re-home an unsaved session after its first explicit save assigned ``item_id``.

        The local cache entry is dropped and every later write goes to the
        remote draft field. ``saved`` is the field set the explicit save wrote.
        """
        async with self._lock:
            previous = self._target
            self._target = Persisted(item_id)
            if saved is not None:
                self._last_persisted = saved.serialize()
                self._dirty = not self._buffer.is_empty() and self._buffer.serialize() != self._last_persisted
            if isinstance(previous, Unsaved):
                try:
                    await self._local.clear(previous.local_key)
                except Exception as exc:  # noqa: BLE001
                    logger.warning("local_draft_clear_failed", key=previous.local_key, error=str(exc))
        logger.info("autosave_rebound", item_id=item_id, previous=describe_target(previous))

    async def restore_local_draft(self) -> LocalDraftEntry | None:
        if not isinstance(self._target, Unsaved):
            return None
        return await self._local.load(self._target.local_key)

    async def discard_local_draft(self) -> None:
        if not isinstance(self._target, Unsaved):
            return
        await self._local.clear(self._target.local_key)
        self._last_persisted = None

    def close(self) -> bool:
        """Cancel the pending timer. Returns whether unsaved changes remain."""
        self._cancel_pending()
        self._closed = True
        return self._dirty

    async def wait_idle(self) -> None:
        """Wait until no timer is armed and no write is running."""
        while True:
            tasks = [task for task in (self._pending, self._inflight) if task is not None and not task.done()]
            if not tasks:
                return
            for task in tasks:
                try:
                    await task
                except asyncio.CancelledError:
                    pass

    # ── Internals ──

    def _arm(self) -> None:
        self._pending = asyncio.get_running_loop().create_task(
            self._fire_after(self._epoch),
            name=f"autosave:{describe_target(self._target)}:{self._epoch}",
        )

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _fire_after(self, epoch: int) -> None:
        await asyncio.sleep(self._debounce)
        if epoch != self._epoch:
            logger.debug("autosave_stale_timer", epoch=epoch, current=self._epoch)
            return
        # From here on a newer edit must not cancel the write, only supersede it.
        current = asyncio.current_task()
        if self._pending is current:
            self._pending = None
        self._inflight = current
        try:
            await self._persist(epoch, manual=False)
        finally:
            if self._inflight is current:
                self._inflight = None

    async def _persist(self, epoch: int, *, manual: bool) -> SaveOutcome:
        async with self._lock:
            if not manual and epoch != self._epoch:
                return SaveOutcome(ok=True, skipped=True, target=self._target)

            fields = self._buffer
            if fields.is_empty():
                logger.debug("autosave_skipped_empty", target=describe_target(self._target))
                return SaveOutcome(ok=True, skipped=True, target=self._target)

            serialized = fields.serialize()
            if not manual and serialized == self._last_persisted:
                self._dirty = False
                return SaveOutcome(ok=True, skipped=True, target=self._target)

            target = self._target
            self._writing = serialized
            try:
                if isinstance(target, Persisted):
                    await self._remote.write_draft(target.item_id, serialized)
                else:
                    await self._local.save(target.local_key, fields)
            except Exception as exc:  # noqa: BLE001
                self._dirty = not self._buffer.is_empty() and self._buffer.serialize() != self._last_persisted
                self.last_error = str(exc)
                logger.warning(
                    "autosave_failed",
                    manual=manual,
                    target=describe_target(target),
                    error=str(exc),
                )
                return SaveOutcome(ok=False, target=target, error=str(exc))
            finally:
                self._writing = None

            self._last_persisted = serialized
            self._dirty = self._buffer.serialize() != serialized and not self._buffer.is_empty()
            self.last_saved_at = self._clock()
            self.last_error = None
            logger.info(
                "draft_saved" if manual else "autosave_saved",
                target=describe_target(target),
                epoch=epoch,
            )
            # The buffer moved on while the write was running.
            if self._dirty and not self._closed and self._pending is None:
                self._arm()
            return SaveOutcome(ok=True, target=target, saved_at=self.last_saved_at)


# ── Registry ──

class AutosaveRegistry:
    """Open editing sessions of this process, one per draft target."""

    def __init__(self, factory: Callable[..., AutosaveSession] = AutosaveSession) -> None:
        self._factory = factory
        self._sessions: dict[str, AutosaveSession] = {}

    def open(self, target: DraftTarget, **kwargs) -> AutosaveSession:
        key = describe_target(target)
        session = self._sessions.get(key)
        if session is None or session.closed:
            session = self._factory(target, **kwargs)
            self._sessions[key] = session
        return session

    def get(self, target: DraftTarget) -> AutosaveSession | None:
        return self._sessions.get(describe_target(target))

    async def rebind(self, session: AutosaveSession, item_id: int, *, saved: ContentFields | None = None) -> None:
        old_key = describe_target(session.target)
        await session.bind(item_id, saved=saved)
        self._sessions.pop(old_key, None)
        self._sessions[describe_target(session.target)] = session

    def close(self, target: DraftTarget) -> bool:
        session = self._sessions.pop(describe_target(target), None)
        if session is None:
            return False
        return session.close()

    def close_all(self) -> list[str]:
        """Close every session; returns the targets that still had unsaved changes."""
        unsaved = [key for key, session in self._sessions.items() if session.close()]
        self._sessions.clear()
        if unsaved:
            logger.warning("autosave_sessions_closed_with_unsaved_changes", targets=unsaved)
        return unsaved

    def __len__(self) -> int:
        return len(self._sessions)


autosave_registry = AutosaveRegistry()
