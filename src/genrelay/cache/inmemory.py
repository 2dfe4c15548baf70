"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/inmemory.py.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

from .base import CacheBackend, CacheEntry, CacheStats


class InMemoryCache(CacheBackend):
    """
    Process-local TTL cache with least-recently-used eviction.

    Expiry is checked on access and by `purge_expired`. When `max_size` is
    set, the least recently used rows are evicted after each `set` until the
    store is back within bound.
    """

    backend_id = "inmemory"

    def __init__(
        self,
        *,
        max_size: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._rows: OrderedDict[str, CacheEntry] = OrderedDict()
        self._max_size = max_size
        self._clock = clock
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    def __len__(self) -> int:
        return len(self._rows)

    async def get(self, key: str) -> Any | None:
        row = self._rows.get(key)
        if row is None:
            self._misses += 1
            return None
        now = self._clock()
        if row.is_expired(now):
            del self._rows[key]
            self._expirations += 1
            self._misses += 1
            return None
        row.hits += 1
        row.last_access_s = now
        self._rows.move_to_end(key)
        self._hits += 1
        return row.value

    async def set(self, key: str, value: Any, *, ttl_s: float) -> None:
        now = self._clock()
        self._rows[key] = CacheEntry(
            key=key,
            value=value,
            created_at_s=now,
            ttl_s=ttl_s,
            last_access_s=now,
        )
        self._rows.move_to_end(key)
        if self._max_size is not None:
            while len(self._rows) > self._max_size:
                self._rows.popitem(last=False)
                self._evictions += 1

    async def delete(self, key: str) -> bool:
        return self._rows.pop(key, None) is not None

    async def clear(self) -> None:
        self._rows.clear()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    async def purge_expired(self) -> int:
        now = self._clock()
        expired = [key for key, row in self._rows.items() if row.is_expired(now)]
        for key in expired:
            del self._rows[key]
        self._expirations += len(expired)
        return len(expired)

    def keys(self) -> list[str]:
        return list(self._rows.keys())

    def stats(self) -> CacheStats:
        return CacheStats(
            entries=len(self._rows),
            max_size=self._max_size,
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
            expirations=self._expirations,
        )
