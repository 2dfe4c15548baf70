from __future__ import annotations

import asyncio

import pytest

from genrelay.errors import ClientDestroyedError, ConfigurationError, RateLimitedError
from genrelay.runtime import AdmissionGate, AdmissionPolicy


def run_async(coro):
    return asyncio.run(coro)


def test_waiters_are_admitted_in_fifo_order():
    gate = AdmissionGate(AdmissionPolicy(concurrency=1))
    order: list[int] = []

    async def _worker(index: int) -> None:
        async with gate.permit():
            order.append(index)
            await asyncio.sleep(0)

    async def _scenario():
        first = await gate.acquire()
        tasks = []
        for index in range(4):
            tasks.append(asyncio.create_task(_worker(index)))
            await asyncio.sleep(0)
        assert gate.get_status().waiting == 4
        gate.release(first)
        await asyncio.gather(*tasks)

    run_async(_scenario())

    assert order == [0, 1, 2, 3]


def test_in_flight_never_exceeds_limit():
    gate = AdmissionGate(AdmissionPolicy(concurrency=2))
    in_flight = 0
    peak = 0

    async def _worker() -> None:
        nonlocal in_flight, peak
        async with gate.permit():
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1

    async def _scenario():
        await asyncio.gather(*(_worker() for _ in range(6)))

    run_async(_scenario())

    status = gate.get_status()
    assert peak == 2
    assert status.peak_in_use == 2
    assert status.in_use == 0
    assert status.available == 2
    assert status.total_acquired == 6


def test_cancelled_waiter_does_not_leak_capacity():
    gate = AdmissionGate(AdmissionPolicy(concurrency=1))

    async def _scenario():
        held = await gate.acquire()
        waiter = asyncio.create_task(gate.acquire())
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        gate.release(held)
        status = gate.get_status()
        again = await asyncio.wait_for(gate.acquire(), timeout=0.1)
        gate.release(again)
        return status

    status = run_async(_scenario())

    assert status.in_use == 0
    assert status.waiting == 0


def test_duplicate_release_is_ignored():
    gate = AdmissionGate(AdmissionPolicy(concurrency=2))

    async def _scenario():
        permit = await gate.acquire()
        gate.release(permit)
        gate.release(permit)

    run_async(_scenario())

    assert gate.get_status().in_use == 0
    assert gate.get_status().available == 2


def test_close_rejects_waiters_and_new_acquisitions():
    gate = AdmissionGate(AdmissionPolicy(concurrency=1))

    async def _scenario():
        held = await gate.acquire()
        waiter = asyncio.create_task(gate.acquire())
        await asyncio.sleep(0)
        gate.close()
        gate.close()
        with pytest.raises(ClientDestroyedError):
            await waiter
        with pytest.raises(ClientDestroyedError):
            await gate.acquire()
        gate.release(held)

    run_async(_scenario())

    assert gate.closed is True
    assert gate.get_status().in_use == 0


def test_admission_policy_requires_positive_concurrency():
    with pytest.raises(ConfigurationError):
        AdmissionPolicy(concurrency=0)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"requests_per_second": -1.0},
        {"burst": 0},
        {"requests_per_day": 0},
    ],
)
def test_admission_policy_rejects_invalid_throughput(kwargs):
    with pytest.raises(ConfigurationError):
        AdmissionPolicy(**kwargs)


def test_token_bucket_spaces_out_admissions():
    gate = AdmissionGate(
        AdmissionPolicy(concurrency=5, requests_per_second=20, burst=1)
    )
    admitted_at: list[float] = []

    async def _worker() -> None:
        async with gate.permit():
            admitted_at.append(asyncio.get_running_loop().time())

    async def _scenario():
        await asyncio.gather(*(_worker() for _ in range(4)))

    run_async(_scenario())

    gaps = [later - earlier for earlier, later in zip(admitted_at, admitted_at[1:])]
    assert len(gaps) == 3
    assert all(gap >= 0.04 for gap in gaps)
    assert gate.get_status().in_use == 0


def test_burst_admits_immediately_then_drains_tokens():
    gate = AdmissionGate(
        AdmissionPolicy(concurrency=5, requests_per_second=1, burst=3)
    )

    async def _scenario():
        loop = asyncio.get_running_loop()
        started = loop.time()
        permits = [await gate.acquire() for _ in range(3)]
        elapsed = loop.time() - started
        status = gate.get_status()
        for permit in permits:
            gate.release(permit)
        return elapsed, status

    elapsed, status = run_async(_scenario())

    assert elapsed < 0.5
    assert status.tokens is not None
    assert status.tokens < 1.0


def test_cancelled_throttled_caller_returns_its_permit():
    gate = AdmissionGate(
        AdmissionPolicy(concurrency=5, requests_per_second=1, burst=1)
    )

    async def _scenario():
        first = await gate.acquire()
        throttled = asyncio.create_task(gate.acquire())
        await asyncio.sleep(0.01)
        assert gate.get_status().in_use == 2
        throttled.cancel()
        with pytest.raises(asyncio.CancelledError):
            await throttled
        status = gate.get_status()
        gate.release(first)
        return status

    status = run_async(_scenario())

    assert status.in_use == 1
    assert gate.get_status().in_use == 0


def test_daily_cap_rejects_until_window_rolls_over():
    now = [1000.0]
    gate = AdmissionGate(
        AdmissionPolicy(concurrency=2, requests_per_day=2),
        clock=lambda: now[0],
    )

    async def _scenario():
        for _ in range(2):
            async with gate.permit():
                pass
        with pytest.raises(RateLimitedError, match="Daily request limit"):
            await gate.acquire()
        rejected = gate.get_status()
        now[0] += 86401.0
        async with gate.permit():
            pass
        return rejected

    rejected = run_async(_scenario())

    assert rejected.in_use == 0
    assert rejected.daily_count == 2
    assert rejected.total_rejected == 1
    assert gate.get_status().daily_count == 1
