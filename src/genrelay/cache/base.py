"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/base.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass(slots=True)
class CacheEntry:
    """One cached value with TTL and LRU bookkeeping."""
    key: str
    value: Any
    created_at_s: float
    ttl_s: float
    last_access_s: float
    hits: int = 0

    def is_expired(self, now_s: float) -> bool:
        return now_s - self.created_at_s > self.ttl_s


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Point-in-time cache counters."""
    entries: int = 0
    max_size: int | None = None
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0
    errors: int = 0

    @property
    def hit_ratio(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


@runtime_checkable
class CacheBackend(Protocol):
    """Protocol implemented by cache backends used by the cache manager."""
    backend_id: str

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, *, ttl_s: float) -> None: ...

    async def delete(self, key: str) -> bool: ...

    async def clear(self) -> None: ...

    async def purge_expired(self) -> int: ...

    def stats(self) -> CacheStats: ...
