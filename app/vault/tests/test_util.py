"""Tests for the async helpers and the singleton registry."""

from __future__ import annotations

import asyncio

import pytest

from app.vault.util.async_helpers import cancel_and_wait, run_sync
from app.vault.util.singletons import _reset_fns, register_singleton, reset_all_singletons


@pytest.mark.asyncio
async def test_run_sync_kwargs() -> None:
    def greet(name: str, prefix: str = "Hello") -> str:
        return f"{prefix}, {name}"

    assert await run_sync(greet, "World", prefix="Hi") == "Hi, World"


@pytest.mark.asyncio
async def test_run_sync_exception() -> None:
    def boom() -> None:
        raise OSError("fail")

    with pytest.raises(OSError, match="fail"):
        await run_sync(boom)


@pytest.mark.asyncio
async def test_cancel_and_wait() -> None:
    task = asyncio.create_task(asyncio.sleep(60))
    await cancel_and_wait(task)
    assert task.cancelled()


@pytest.mark.asyncio
async def test_cancel_and_wait_tolerates_none_and_done() -> None:
    await cancel_and_wait(None)
    done = asyncio.create_task(asyncio.sleep(0))
    await done
    await cancel_and_wait(done)


class TestSingletonRegistry:
    def setup_method(self) -> None:
        self._original = list(_reset_fns)

    def teardown_method(self) -> None:
        _reset_fns.clear()
        _reset_fns.extend(self._original)

    def test_register_is_idempotent(self) -> None:
        def _reset() -> None:
            pass

        register_singleton(_reset)
        register_singleton(_reset)
        assert _reset_fns.count(_reset) == 1

    def test_reset_all_invokes_every_resetter(self) -> None:
        calls: list[int] = []
        register_singleton(lambda: calls.append(1))
        register_singleton(lambda: calls.append(2))
        reset_all_singletons()
        assert calls[-2:] == [1, 2]
