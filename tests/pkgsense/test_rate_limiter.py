"""Tests for the token-bucket rate limiter."""

from __future__ import annotations

import asyncio
import time

import pytest

from pkgsense.engines.registry.rate_limiter import TokenBucketRateLimiter

# ── TestTokenAccounting ───────────────────────────────────────────────────


class TestTokenAccounting:
    def test_starts_full(self, clock):
        limiter = TokenBucketRateLimiter(10, clock=clock)
        assert limiter.capacity == 10
        assert limiter.available_tokens() == 10

    @pytest.mark.anyio
    async def test_acquire_consumes_token(self, clock):
        limiter = TokenBucketRateLimiter(10, clock=clock)
        await limiter.acquire()
        await limiter.acquire()
        assert limiter.available_tokens() == 8

    @pytest.mark.anyio
    async def test_refills_with_time(self, clock):
        limiter = TokenBucketRateLimiter(60, clock=clock)  # one per second
        for _ in range(60):
            await limiter.acquire()
        assert limiter.available_tokens() == 0
        clock.advance(2.5)
        assert limiter.available_tokens() == 2

    @pytest.mark.anyio
    async def test_never_exceeds_capacity(self, clock):
        limiter = TokenBucketRateLimiter(5, clock=clock)
        await limiter.acquire()
        clock.advance(3600)
        assert limiter.available_tokens() == 5

    @pytest.mark.parametrize("kwargs", [{"requests_per_minute": 0}, {"period": 0}])
    def test_rejects_bad_configuration(self, kwargs):
        with pytest.raises(ValueError):
            TokenBucketRateLimiter(**kwargs)


# ── TestQueueing ──────────────────────────────────────────────────────────


class TestQueueing:
    @pytest.mark.anyio
    async def test_burst_then_wait(self):
        # 5 tokens per 0.5 s -> one token every 0.1 s
        limiter = TokenBucketRateLimiter(5, period=0.5)
        started = time.monotonic()
        for _ in range(5):
            await limiter.acquire()
        assert time.monotonic() - started < 0.05

        await limiter.acquire()
        assert time.monotonic() - started >= 0.08

    @pytest.mark.anyio
    async def test_concurrent_cold_start_burst(self):
        limiter = TokenBucketRateLimiter(5, period=0.5)
        started = time.monotonic()
        finished: list[float] = []

        async def caller() -> None:
            await limiter.acquire()
            finished.append(time.monotonic() - started)

        await asyncio.wait_for(asyncio.gather(*(caller() for _ in range(6))), timeout=2)

        finished.sort()
        assert all(t < 0.05 for t in finished[:5])
        assert finished[5] >= 0.08

    @pytest.mark.anyio
    async def test_waiters_released_in_arrival_order(self):
        limiter = TokenBucketRateLimiter(5, period=0.5)
        for _ in range(5):
            await limiter.acquire()

        order: list[int] = []

        async def worker(n: int) -> None:
            await limiter.acquire()
            order.append(n)

        tasks = []
        for n in range(4):
            tasks.append(asyncio.create_task(worker(n)))
            await asyncio.sleep(0)  # fix arrival order
        await asyncio.wait_for(asyncio.gather(*tasks), timeout=2)
        assert order == [0, 1, 2, 3]

    @pytest.mark.anyio
    async def test_new_caller_does_not_jump_queue(self, clock):
        limiter = TokenBucketRateLimiter(1, clock=clock)
        await limiter.acquire()

        first = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0)
        assert limiter.queued == 1

        # a token appears, but the queued caller has priority
        clock.advance(60)
        second = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0.01)
        assert first.done()
        assert not second.done()
        second.cancel()
        with pytest.raises(asyncio.CancelledError):
            await second

    @pytest.mark.anyio
    async def test_cancelled_waiter_does_not_consume_token(self, clock):
        limiter = TokenBucketRateLimiter(1, clock=clock)
        await limiter.acquire()

        doomed = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0)
        survivor = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0)
        assert limiter.queued == 2

        doomed.cancel()
        with pytest.raises(asyncio.CancelledError):
            await doomed
        assert limiter.queued == 1

        # a single fresh token must reach the survivor
        limiter.reset()
        await asyncio.wait_for(survivor, timeout=1)
        assert limiter.available_tokens() == 0

    @pytest.mark.anyio
    async def test_reset_serves_queued_callers(self, clock):
        limiter = TokenBucketRateLimiter(2, clock=clock)
        await limiter.acquire()
        await limiter.acquire()

        waiters = [asyncio.create_task(limiter.acquire()) for _ in range(3)]
        await asyncio.sleep(0)
        assert limiter.queued == 3

        limiter.reset()
        await asyncio.sleep(0.01)
        assert sum(w.done() for w in waiters) == 2
        assert limiter.queued == 1
        assert limiter.available_tokens() == 0

        for w in waiters:
            w.cancel()
        await asyncio.gather(*waiters, return_exceptions=True)
