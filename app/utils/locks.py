"""
Keyed Locks

One lock per key, created on first use and dropped once nobody holds or
waits on it. Lets work on different keys (message ids, calendar days) run in
parallel while work on the same key is serialized.
"""

import asyncio
import threading
from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Dict, Hashable, Iterator, List


class KeyedLocks:
    """Thread-safe per-key mutual exclusion."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, List] = {}  # key -> [lock, users]

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._locks[key] = entry
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class AsyncKeyedLocks:
    """
    Per-key mutual exclusion for coroutines on one event loop.

    Safe to hold across awaits, unlike KeyedLocks.
    """

    def __init__(self):
        self._locks: Dict[Hashable, List] = {}  # key -> [lock, users]

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        entry = self._locks.get(key)
        if entry is None:
            entry = [asyncio.Lock(), 0]
            self._locks[key] = entry
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                self._locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._locks)
