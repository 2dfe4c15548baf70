from __future__ import annotations

import asyncio

import pytest

from genrelay.cache import (
    CacheBackendError,
    InMemoryCache,
    create_cache_backend,
    list_cache_backends,
    register_cache_backend,
)


class _Clock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def run_async(coro):
    return asyncio.run(coro)


def test_entry_is_served_until_ttl_then_expires():
    clock = _Clock()
    cache = InMemoryCache(clock=clock)

    async def _scenario():
        await cache.set("k", "v", ttl_s=10.0)
        clock.advance(10.0)
        fresh = await cache.get("k")
        clock.advance(0.5)
        stale = await cache.get("k")
        return fresh, stale

    fresh, stale = run_async(_scenario())

    assert fresh == "v"
    assert stale is None
    stats = cache.stats()
    assert stats.entries == 0
    assert stats.expirations == 1
    assert stats.hits == 1
    assert stats.misses == 1


def test_least_recently_used_row_is_evicted_first():
    cache = InMemoryCache(max_size=2, clock=_Clock())

    async def _scenario():
        await cache.set("a", 1, ttl_s=60.0)
        await cache.set("b", 2, ttl_s=60.0)
        await cache.get("a")
        await cache.set("c", 3, ttl_s=60.0)
        return await cache.get("b")

    assert run_async(_scenario()) is None
    assert cache.keys() == ["a", "c"]
    assert cache.stats().evictions == 1


def test_purge_expired_removes_only_stale_rows():
    clock = _Clock()
    cache = InMemoryCache(clock=clock)

    async def _scenario():
        await cache.set("short", 1, ttl_s=1.0)
        await cache.set("long", 2, ttl_s=100.0)
        clock.advance(5.0)
        return await cache.purge_expired()

    assert run_async(_scenario()) == 1
    assert cache.keys() == ["long"]


def test_clear_and_delete():
    cache = InMemoryCache()

    async def _scenario():
        await cache.set("a", 1, ttl_s=60.0)
        await cache.set("b", 2, ttl_s=60.0)
        removed = await cache.delete("a")
        missing = await cache.delete("a")
        await cache.clear()
        return removed, missing

    removed, missing = run_async(_scenario())

    assert removed is True
    assert missing is False
    assert len(cache) == 0


def test_registry_resolves_fresh_instances_per_id():
    first = create_cache_backend("inmemory", max_size=3)
    second = create_cache_backend(None, max_size=3)

    assert isinstance(first, InMemoryCache)
    assert first is not second
    assert first.stats().max_size == 3
    assert "inmemory" in list_cache_backends()


def test_registry_passes_instances_through_and_rejects_unknown_ids():
    backend = InMemoryCache()
    assert create_cache_backend(backend) is backend

    with pytest.raises(CacheBackendError, match="Unknown cache backend"):
        create_cache_backend("nope")


def test_registry_refuses_silent_overwrite():
    register_cache_backend("test_memory", InMemoryCache, overwrite=True)

    with pytest.raises(CacheBackendError, match="already registered"):
        register_cache_backend("test_memory", InMemoryCache)

    assert isinstance(create_cache_backend("TEST_MEMORY"), InMemoryCache)
