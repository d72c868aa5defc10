"""Token-bucket rate limiter for outbound registry requests."""

from __future__ import annotations

import asyncio
import math
import time
from collections import deque
from collections.abc import Callable

import structlog

log = structlog.get_logger("pkgsense.engine")

DEFAULT_REQUESTS_PER_MINUTE = 100
_MIN_WAIT = 0.001  # seconds


class TokenBucketRateLimiter:
    """Admit at most *requests_per_minute* operations per *period* seconds.

    Tokens refill continuously at ``capacity / period`` per second and are
    capped at ``capacity``; the bucket starts full, so a cold start allows a
    burst of ``capacity`` operations.  Callers that cannot take a token
    immediately are queued and released strictly in arrival order by a
    single drainer task that sleeps until the next token is due.

    All bookkeeping happens between ``await`` points on one event loop, so
    two callers can never consume the same token.
    """

    def __init__(
        self,
        requests_per_minute: int = DEFAULT_REQUESTS_PER_MINUTE,
        *,
        period: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if requests_per_minute < 1:
            raise ValueError(f"requests_per_minute must be >= 1, got {requests_per_minute}")
        if period <= 0:
            raise ValueError(f"period must be positive, got {period}")
        self._capacity = float(requests_per_minute)
        self._refill_rate = self._capacity / period  # tokens per second
        self._clock = clock
        self._tokens = self._capacity
        self._last_refill = clock()
        self._waiters: deque[asyncio.Future[None]] = deque()
        self._drainer: asyncio.Task[None] | None = None

    @property
    def capacity(self) -> int:
        return int(self._capacity)

    @property
    def queued(self) -> int:
        """Number of callers currently waiting for a token."""
        return sum(1 for w in self._waiters if not w.done())

    # ── public ─────────────────────────────────────────────────────────────

    async def acquire(self) -> None:
        """Wait until a token is available, then consume it."""
        self._refill()
        self._release_ready()
        if not self._waiters and self._tokens >= 1:
            self._tokens -= 1
            return

        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[None] = loop.create_future()
        self._waiters.append(waiter)
        log.debug("rate_limiter.queued", position=len(self._waiters))
        self._ensure_drainer(loop)
        try:
            await waiter
        except asyncio.CancelledError:
            # A token handed over just before cancellation goes back to the bucket.
            if waiter.done() and not waiter.cancelled():
                self._tokens = min(self._capacity, self._tokens + 1)
            raise

    def available_tokens(self) -> int:
        self._refill()
        return math.floor(self._tokens)

    def reset(self) -> None:
        """Refill the bucket; queued callers are served from the fresh bucket."""
        self._tokens = self._capacity
        self._last_refill = self._clock()
        self._release_ready()

    # ── internal ───────────────────────────────────────────────────────────

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(now - self._last_refill, 0.0)
        self._tokens = min(self._capacity, self._tokens + elapsed * self._refill_rate)
        self._last_refill = now

    def _release_ready(self) -> None:
        while self._waiters:
            head = self._waiters[0]
            if head.done():
                # cancelled while queued
                self._waiters.popleft()
                continue
            if self._tokens < 1:
                return
            self._waiters.popleft()
            self._tokens -= 1
            head.set_result(None)

    def _seconds_until_token(self) -> float:
        deficit = 1.0 - self._tokens
        return max(deficit / self._refill_rate, _MIN_WAIT)

    def _ensure_drainer(self, loop: asyncio.AbstractEventLoop) -> None:
        if self._drainer is None or self._drainer.done():
            self._drainer = loop.create_task(self._drain())

    async def _drain(self) -> None:
        while True:
            self._refill()
            self._release_ready()
            if not self._waiters:
                return
            await asyncio.sleep(self._seconds_until_token())
