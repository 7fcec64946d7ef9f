import asyncio

import pytest

from phoneverify.application.services.keyed_lock import KeyedLock


@pytest.mark.asyncio
async def test_same_key_runs_one_at_a_time():
    locks = KeyedLock()
    events = []

    async def worker(name):
        async with locks.hold("42"):
            events.append(f"{name}-in")
            await asyncio.sleep(0.01)
            events.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))
    assert events == ["a-in", "a-out", "b-in", "b-out"]


@pytest.mark.asyncio
async def test_different_keys_overlap():
    locks = KeyedLock()
    inside = []
    peak = []

    async def worker(key):
        async with locks.hold(key):
            inside.append(key)
            peak.append(len(inside))
            await asyncio.sleep(0.01)
            inside.remove(key)

    await asyncio.gather(worker("1"), worker("2"), worker("3"))
    assert max(peak) == 3


@pytest.mark.asyncio
async def test_locks_are_released_after_use_even_on_error():
    locks = KeyedLock()

    with pytest.raises(ValueError):
        async with locks.hold("42"):
            raise ValueError("boom")
    assert len(locks) == 0
