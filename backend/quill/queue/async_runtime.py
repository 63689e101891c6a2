"""Event loop shared by the Celery tasks of one worker process.

The async engine's pooled connections belong to the loop that opened them, so
every task in a process runs on the same loop and the pool is disposed on that
loop when the process exits.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Awaitable
from typing import TypeVar

from quill.core.logging import get_logger

T = TypeVar("T")

logger = get_logger("queue.async_runtime")

_loop_lock = threading.Lock()
_worker_loop: asyncio.AbstractEventLoop | None = None


def _loop() -> asyncio.AbstractEventLoop:
    global _worker_loop
    with _loop_lock:
        if _worker_loop is None or _worker_loop.is_closed():
            _worker_loop = asyncio.new_event_loop()
            asyncio.set_event_loop(_worker_loop)
        return _worker_loop


def run_async(awaitable: Awaitable[T]) -> T:
    return _loop().run_until_complete(awaitable)


def shutdown_runtime() -> None:
    """Dispose the engine pool and close the loop; safe to call more than once."""
    global _worker_loop
    with _loop_lock:
        loop, _worker_loop = _worker_loop, None
    if loop is None or loop.is_closed():
        return

    from quill.core.database import engine

    try:
        loop.run_until_complete(engine.dispose())
    except Exception as exc:  # noqa: BLE001
        logger.warning("worker_engine_dispose_failed", error=str(exc))
    finally:
        loop.close()
    logger.info("worker_runtime_closed")
