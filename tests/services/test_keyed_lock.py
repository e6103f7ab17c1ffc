"""Keyed lock tests — same key serializes, different keys overlap, table cleans up."""

import asyncio

from app.infrastructure.keyed_lock import KeyedLock


async def test_same_key_never_overlaps():
    locks = KeyedLock()
    active = 0
    peak = 0

    async def worker():
        nonlocal active, peak
        async with locks.hold("L1"):
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1

    await asyncio.gather(*(worker() for _ in range(5)))
    assert peak == 1


async def test_different_keys_run_concurrently():
    locks = KeyedLock()
    inside = asyncio.Event()
    release = asyncio.Event()

    async def holder():
        async with locks.hold("L1"):
            inside.set()
            await release.wait()

    task = asyncio.create_task(holder())
    await inside.wait()
    async with locks.hold("L2"):
        pass  # would hang if L2 waited on L1
    release.set()
    await task


async def test_idle_keys_are_removed():
    locks = KeyedLock()
    async with locks.hold("L1"):
        assert len(locks) == 1
    assert len(locks) == 0


async def test_lock_released_when_body_raises():
    locks = KeyedLock()
    try:
        async with locks.hold("L1"):
            raise ValueError("boom")
    except ValueError:
        pass
    assert len(locks) == 0
    async with locks.hold("L1"):
        pass
