from quill.queue.async_runtime import run_async, shutdown_runtime


async def _answer() -> int:
    return 42


def test_run_async_reuses_one_loop() -> None:
    import asyncio

    async def _current_loop():
        return asyncio.get_running_loop()

    try:
        assert run_async(_answer()) == 42
        assert run_async(_current_loop()) is run_async(_current_loop())
    finally:
        shutdown_runtime()


def test_shutdown_is_idempotent() -> None:
    run_async(_answer())
    shutdown_runtime()
    shutdown_runtime()
    assert run_async(_answer()) == 42
    shutdown_runtime()
