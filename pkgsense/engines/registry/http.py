"""Shared async JSON client: cache, rate limiting, retries with backoff."""

from __future__ import annotations

import asyncio
import enum
from collections.abc import Callable
from typing import Any, TypeVar

import httpx
import structlog

from pkgsense.engines.registry.cache import TTLCache
from pkgsense.engines.registry.errors import (
    MalformedResponseError,
    PackageNotFoundError,
    RegistryError,
    RegistryNetworkError,
    RegistryTimeoutError,
    RetriesExhaustedError,
)
from pkgsense.engines.registry.rate_limiter import TokenBucketRateLimiter

log = structlog.get_logger("pkgsense.engine")

T = TypeVar("T")

DEFAULT_TIMEOUT = 5.0  # seconds, per attempt
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_BASE_DELAY = 1.0  # seconds
_THROTTLE_DELAY_FACTOR = 2


class Attempt(enum.Enum):
    """Outcome of a single HTTP attempt."""

    SUCCESS = "success"
    PERMANENT = "permanent"
    TRANSIENT = "transient"
    THROTTLED = "throttled"


def classify_status(status_code: int) -> Attempt:
    if 200 <= status_code < 300:
        return Attempt.SUCCESS
    if status_code == 404:
        return Attempt.PERMANENT
    if status_code == 429:
        return Attempt.THROTTLED
    return Attempt.TRANSIENT


class JsonApiClient:
    """Base for registry-style clients.

    Subclasses build a URL and a validator; :meth:`_get_cached` does the
    rest: cache lookup, one rate-limiter permit per network fetch, and up
    to *max_attempts* GETs with exponential backoff.  Only validated values
    are cached.  Concurrent misses on one key share a single fetch, and a
    failed fetch is not remembered.
    """

    service = "registry"

    def __init__(
        self,
        *,
        cache: TTLCache[Any],
        rate_limiter: TokenBucketRateLimiter,
        timeout: float = DEFAULT_TIMEOUT,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self._cache = cache
        self._rate_limiter = rate_limiter
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._retry_base_delay = retry_base_delay
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            headers={"Accept": "application/json"},
            timeout=timeout,
            follow_redirects=True,
        )
        self._inflight: dict[str, asyncio.Future[Any]] = {}

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── internal ───────────────────────────────────────────────────────────

    async def _get_cached(
        self,
        cache_key: str,
        url: str,
        *,
        package: str,
        validate: Callable[[Any], T],
    ) -> T:
        cached = self._cache.get(cache_key)
        if cached is not None:
            log.debug(f"{self.service}.cache_hit", key=cache_key)
            return cached

        pending = self._inflight.get(cache_key)
        if pending is None:
            pending = asyncio.ensure_future(self._fetch(cache_key, url, package, validate))
            self._inflight[cache_key] = pending
            pending.add_done_callback(lambda task: self._forget(cache_key, task))
        else:
            log.debug(f"{self.service}.coalesced", key=cache_key)
        # One caller giving up must not cancel the fetch for the others.
        return await asyncio.shield(pending)

    async def _fetch(
        self, cache_key: str, url: str, package: str, validate: Callable[[Any], T]
    ) -> T:
        await self._rate_limiter.acquire()
        payload = await self._get_json_with_retry(url, package=package)
        value = validate(payload)
        self._cache.set(cache_key, value)
        return value

    def _forget(self, cache_key: str, task: asyncio.Future[Any]) -> None:
        if self._inflight.get(cache_key) is task:
            del self._inflight[cache_key]
        if not task.cancelled():
            # Mark the error retrieved when every waiter has gone away.
            task.exception()

    async def _get_json_with_retry(self, url: str, *, package: str) -> Any:
        """GET *url* and decode JSON, retrying transient failures.

        404 fails immediately.  429 waits twice the normal backoff.  Other
        failures back off ``base_delay * 2**attempt`` until the attempt
        budget is spent.
        """
        last_error: RegistryError | None = None
        for attempt in range(self._max_attempts):
            delay = self._retry_base_delay * (2**attempt)
            try:
                resp = await self._client.get(url, timeout=self._timeout)
            except httpx.TimeoutException as exc:
                last_error = RegistryTimeoutError(
                    f"{self.service} did not respond within {self._timeout}s for {package}",
                    package=package,
                )
                last_error.__cause__ = exc
            except httpx.TransportError as exc:
                last_error = RegistryNetworkError(
                    f"error fetching {self.service} data for {package}: {exc}",
                    package=package,
                )
                last_error.__cause__ = exc
            else:
                outcome = classify_status(resp.status_code)
                if outcome is Attempt.SUCCESS:
                    return self._decode(resp, package)
                if outcome is Attempt.PERMANENT:
                    raise PackageNotFoundError(
                        f"package {package!r} not found in {self.service}", package=package
                    )
                last_error = RegistryNetworkError(
                    f"HTTP {resp.status_code} from {self.service} for {package}",
                    package=package,
                )
                if outcome is Attempt.THROTTLED:
                    delay *= _THROTTLE_DELAY_FACTOR

            log.warning(
                f"{self.service}.retry",
                package=package,
                error=str(last_error),
                kind=last_error.kind,
                attempt=attempt + 1,
                max_attempts=self._max_attempts,
            )
            if attempt < self._max_attempts - 1:
                await asyncio.sleep(delay)

        raise RetriesExhaustedError(
            f"failed to fetch {self.service} data for {package} after "
            f"{self._max_attempts} attempts: {last_error}",
            package=package,
            attempts=self._max_attempts,
            last_error=last_error,
        )

    def _decode(self, resp: httpx.Response, package: str) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise MalformedResponseError(
                f"invalid JSON from {self.service} for {package}", package=package
            ) from exc
