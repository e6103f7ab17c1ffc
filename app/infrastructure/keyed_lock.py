"""Keyed Lock — one asyncio.Lock per key, created on demand and dropped when idle.

Invariants:
    - Two holders of the same key never overlap
    - Different keys never block each other
    - A key's lock is removed once no task holds or waits for it (no unbounded growth)

Design Decisions:
    - Reference count per key instead of WeakValueDictionary: removal is deterministic,
      so tests can assert the table is empty after use
"""

import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Hashable


class KeyedLock:
    """Per-key mutual exclusion for a single event loop."""

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._refs: dict[Hashable, int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._refs[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._refs[key] -= 1
            if self._refs[key] == 0:
                del self._refs[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)
