"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/rate_limit.py.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from collections import deque
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass

from ..errors import ClientDestroyedError, RateLimitedError
from .contracts import AdmissionPolicy

logger = logging.getLogger("genrelay.runtime.rate_limit")


@dataclass(frozen=True, slots=True)
class AdmissionPermit:
    """One unit of in-flight capacity."""

    permit_id: int
    acquired_at_s: float


@dataclass(frozen=True, slots=True)
class GateStatus:
    """Point-in-time admission gate snapshot."""

    in_use: int
    available: int
    waiting: int
    limit: int
    total_acquired: int = 0
    total_queued: int = 0
    peak_in_use: int = 0
    tokens: float | None = None
    daily_count: int = 0
    total_rejected: int = 0


@dataclass(slots=True)
class _Bucket:
    tokens: float
    updated_at_s: float


_DAY_S = 86400.0


class AdmissionGate:
    """
    Counting semaphore with an explicit FIFO waiting queue.

    Permits are granted strictly in `acquire()` arrival order: a released
    permit is handed directly to the oldest live waiter, and newcomers queue
    behind existing waiters even if capacity appears free. All state changes
    happen between awaits, so the event loop serializes them.

    When the policy sets `requests_per_second`, a permit holder additionally
    waits on a token bucket before `acquire()` returns. `requests_per_day`
    rejects admissions beyond the rolling daily cap with `RateLimitedError`.
    """

    def __init__(
        self,
        policy: AdmissionPolicy | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._policy = policy or AdmissionPolicy()
        self._clock = clock
        self._limit = self._policy.concurrency
        self._bucket = _Bucket(
            tokens=float(self._policy.burst),
            updated_at_s=clock(),
        )
        self._throttle_lock = asyncio.Lock()
        self._admitted_at: deque[float] = deque()
        self._total_rejected = 0
        self._in_use = 0
        self._waiters: deque[asyncio.Future[AdmissionPermit]] = deque()
        self._outstanding: set[int] = set()
        self._ids = itertools.count(1)
        self._closed = False
        self._total_acquired = 0
        self._total_queued = 0
        self._peak_in_use = 0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def closed(self) -> bool:
        return self._closed

    def _grant(self) -> AdmissionPermit:
        permit = AdmissionPermit(
            permit_id=next(self._ids),
            acquired_at_s=time.monotonic(),
        )
        self._outstanding.add(permit.permit_id)
        self._total_acquired += 1
        return permit

    async def acquire(self) -> AdmissionPermit:
        """Wait for capacity and return a permit that must be released once."""
        permit = await self._acquire_slot()
        try:
            await self._throttle()
            self._admit_daily()
        except BaseException:
            self.release(permit)
            raise
        return permit

    async def _throttle(self) -> None:
        rate = self._policy.requests_per_second
        if rate <= 0:
            return
        async with self._throttle_lock:
            while True:
                if self._closed:
                    raise ClientDestroyedError("Admission gate is closed")
                wait_s = self._take_token(rate)
                if wait_s <= 0:
                    return
                logger.debug("Admission throttled for %.3fs", wait_s)
                await asyncio.sleep(max(wait_s, 0.001))

    def _refill(self, rate: float) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._bucket.updated_at_s)
        self._bucket.tokens = min(
            float(self._policy.burst),
            self._bucket.tokens + elapsed * rate,
        )
        self._bucket.updated_at_s = now

    def _take_token(self, rate: float) -> float:
        """Consume one token, or return the seconds until one is available."""
        self._refill(rate)
        if self._bucket.tokens >= 1.0:
            self._bucket.tokens -= 1.0
            return 0.0
        return (1.0 - self._bucket.tokens) / rate

    def _prune_daily(self) -> None:
        horizon = self._clock() - _DAY_S
        while self._admitted_at and self._admitted_at[0] <= horizon:
            self._admitted_at.popleft()

    def _admit_daily(self) -> None:
        cap = self._policy.requests_per_day
        if cap is None:
            return
        self._prune_daily()
        if len(self._admitted_at) >= cap:
            self._total_rejected += 1
            raise RateLimitedError(f"Daily request limit of {cap} exceeded")
        self._admitted_at.append(self._clock())

    async def _acquire_slot(self) -> AdmissionPermit:
        if self._closed:
            raise ClientDestroyedError("Admission gate is closed")

        if self._in_use < self._limit and not self._waiters:
            self._in_use += 1
            self._peak_in_use = max(self._peak_in_use, self._in_use)
            return self._grant()

        waiter: asyncio.Future[AdmissionPermit] = (
            asyncio.get_running_loop().create_future()
        )
        self._waiters.append(waiter)
        self._total_queued += 1
        logger.debug(
            "Admission queued (in_use=%d, waiting=%d)",
            self._in_use,
            len(self._waiters),
        )
        try:
            return await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled() and waiter.exception() is None:
                # Permit was handed over in the same turn the caller got cancelled.
                self.release(waiter.result())
            else:
                try:
                    self._waiters.remove(waiter)
                except ValueError:
                    pass
            raise

    def release(self, permit: AdmissionPermit) -> None:
        """Return capacity; duplicate releases of one permit are ignored."""
        if permit.permit_id not in self._outstanding:
            logger.warning("Ignoring release of inactive permit %d", permit.permit_id)
            return
        self._outstanding.discard(permit.permit_id)

        while self._waiters:
            waiter = self._waiters.popleft()
            if waiter.done():
                continue
            # Capacity moves to the waiter; in_use is unchanged.
            waiter.set_result(self._grant())
            return
        self._in_use -= 1

    @asynccontextmanager
    async def permit(self) -> AsyncIterator[AdmissionPermit]:
        """Hold one permit for the duration of the block."""
        permit = await self.acquire()
        try:
            yield permit
        finally:
            self.release(permit)

    def get_status(self) -> GateStatus:
        waiting = sum(1 for waiter in self._waiters if not waiter.done())
        tokens = None
        if self._policy.requests_per_second > 0:
            self._refill(self._policy.requests_per_second)
            tokens = self._bucket.tokens
        if self._policy.requests_per_day is not None:
            self._prune_daily()
        return GateStatus(
            in_use=self._in_use,
            available=max(0, self._limit - self._in_use),
            waiting=waiting,
            limit=self._limit,
            total_acquired=self._total_acquired,
            total_queued=self._total_queued,
            peak_in_use=self._peak_in_use,
            tokens=tokens,
            daily_count=len(self._admitted_at),
            total_rejected=self._total_rejected,
        )

    def close(self) -> None:
        """Reject queued waiters and refuse new acquisitions. Idempotent."""
        if self._closed:
            return
        self._closed = True
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_exception(ClientDestroyedError("Client destroyed"))
