"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Read-through / write-back response cache with failure isolation.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from ..errors import CacheError
from ..runtime.contracts import CachePolicy
from ..utils import canonical_json
from .base import CacheBackend, CacheStats
from .registry import create_cache_backend

logger = logging.getLogger("genrelay.cache")

CacheErrorReporter = Callable[[CacheError], None]


class CacheManager:
    """
    Cache façade used by the client.

    Backend failures never propagate: reads degrade to a miss, writes to a
    no-op, and the failure is logged and handed to `reporter`. When the
    policy defines a sweep interval, expired rows are purged by a background
    task started lazily on first use inside a running event loop.
    """

    def __init__(
        self,
        policy: CachePolicy | None = None,
        *,
        backend: str | CacheBackend | None = None,
        reporter: CacheErrorReporter | None = None,
    ) -> None:
        self._policy = policy or CachePolicy()
        self._backend = create_cache_backend(backend, max_size=self._policy.max_size)
        self._reporter = reporter
        self._errors = 0
        self._sweep_task: asyncio.Task[None] | None = None
        self._destroyed = False

    @property
    def policy(self) -> CachePolicy:
        return self._policy

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    @property
    def enabled(self) -> bool:
        return self._policy.enabled and not self._destroyed

    @staticmethod
    def create_hash_key(namespace: str, payload: Any) -> str:
        """
        Deterministic key for one logical request.

        Payload is serialized canonically (sorted keys) before hashing, so
        mapping insertion order never changes the key.
        """
        digest = hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()
        return f"{namespace}:{digest}"

    async def get(self, key: str) -> Any | None:
        """Return cached value, or `None` on miss, expiry or backend failure."""
        if not self.enabled:
            return None
        self._ensure_sweeper()
        try:
            return await self._backend.get(key)
        except Exception as error:  # noqa: BLE001
            self._report("get", error)
            return None

    async def set(self, key: str, value: Any, ttl_s: float | None = None) -> None:
        """
        Store `value` for `ttl_s` seconds, or the policy TTL when `None`.

        A non-positive `ttl_s` skips the write.
        """
        if not self.enabled:
            return
        effective_ttl_s = self._policy.ttl_s if ttl_s is None else ttl_s
        if effective_ttl_s <= 0:
            return
        self._ensure_sweeper()
        try:
            await self._backend.set(key, value, ttl_s=effective_ttl_s)
        except Exception as error:  # noqa: BLE001
            self._report("set", error)

    async def delete(self, key: str) -> bool:
        try:
            return await self._backend.delete(key)
        except Exception as error:  # noqa: BLE001
            self._report("delete", error)
            return False

    async def clear(self) -> None:
        try:
            await self._backend.clear()
        except Exception as error:  # noqa: BLE001
            self._report("clear", error)
        self._errors = 0

    async def sweep(self) -> int:
        """Purge expired rows now; returns the number removed."""
        try:
            removed = await self._backend.purge_expired()
        except Exception as error:  # noqa: BLE001
            self._report("sweep", error)
            return 0
        if removed:
            logger.debug("Cache sweep removed %d expired entries", removed)
        return removed

    def get_stats(self) -> CacheStats:
        try:
            stats = self._backend.stats()
        except Exception as error:  # noqa: BLE001
            self._report("stats", error)
            stats = CacheStats(max_size=self._policy.max_size)
        return replace(stats, errors=stats.errors + self._errors)

    def destroy(self) -> None:
        """Stop the sweep task and disable the cache. Idempotent."""
        self._destroyed = True
        task, self._sweep_task = self._sweep_task, None
        if task is not None and not task.done():
            task.cancel()

    def _ensure_sweeper(self) -> None:
        if self._destroyed or self._policy.sweep_interval_s <= 0:
            return
        if self._sweep_task is not None and not self._sweep_task.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._sweep_task = loop.create_task(
            self._sweep_loop(self._policy.sweep_interval_s)
        )

    async def _sweep_loop(self, interval_s: float) -> None:
        while True:
            await asyncio.sleep(interval_s)
            await self.sweep()

    def _report(self, operation: str, error: Exception) -> None:
        self._errors += 1
        logger.warning(
            "Cache %s failed on backend '%s'; degrading to miss: %s",
            operation,
            getattr(self._backend, "backend_id", type(self._backend).__name__),
            error,
        )
        if self._reporter is None:
            return
        try:
            self._reporter(CacheError(operation, error))
        except Exception:  # noqa: BLE001
            logger.exception("Cache error reporter failed")
