"""Rate-limited HTTP client base shared by both providers."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import aiohttp
import structlog
from gridline_core.exceptions import ProviderError, RateLimitExceeded
from gridline_core.time import utc_now
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.get_logger()

# Request timeout in seconds
REQUEST_TIMEOUT = 30


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Retry schedule for transient failures; delays are in seconds."""

    attempts: int
    backoff: float
    initial_delay: float


ODDS_RETRY_POLICY = RetryPolicy(attempts=3, backoff=1.5, initial_delay=0.5)
STATS_RETRY_POLICY = RetryPolicy(attempts=3, backoff=2.0, initial_delay=1.0)


@dataclass(slots=True)
class ProviderResponse:
    """Decoded body of a successful provider call plus request metadata."""

    data: Any
    status: int
    elapsed_ms: int
    quota_remaining: int | None
    timestamp: datetime


def is_transient(exc: BaseException) -> bool:
    """Network errors, timeouts and 5xx responses are retried; everything else is not."""
    if isinstance(exc, ProviderError):
        return exc.is_transient
    return isinstance(exc, aiohttp.ClientError | TimeoutError)


class ThrottledClient:
    """
    Single-flight throttled client over aiohttp.

    Requests are spaced at least ``60 / requests_per_minute`` seconds apart;
    bursts are never allowed. Every issued request, retries included, passes
    through the throttle and bumps ``request_count``.

    Requests need an open session: pass one in or enter the client with
    ``async with``, which creates and later closes its own.

    Subclasses set ``provider`` and may override the auth and payload hooks.
    """

    provider = "provider"

    def __init__(
        self,
        base_url: str,
        *,
        requests_per_minute: int,
        retry_policy: RetryPolicy,
        session: aiohttp.ClientSession | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        timeout: float = REQUEST_TIMEOUT,
    ):
        """
        Initialize client.

        Args:
            base_url: Provider base URL
            requests_per_minute: Client-side request ceiling
            retry_policy: Retry schedule for transient failures
            session: Optional externally owned aiohttp session
            clock: Monotonic clock in seconds, injectable for tests
            sleep: Awaitable sleep used by both throttle and retries
            timeout: Per-request timeout in seconds
        """
        if requests_per_minute <= 0:
            raise ValueError("requests_per_minute must be positive")

        self.base_url = base_url.rstrip("/")
        self.requests_per_minute = requests_per_minute
        self.min_interval = 60.0 / requests_per_minute
        self.retry_policy = retry_policy
        self.timeout = timeout
        self.session = session
        self._owns_session = session is None
        self._clock = clock
        self._sleep = sleep
        self._throttle_lock = asyncio.Lock()

        self.request_count = 0
        self._last_request_at: float | None = None
        self._last_request_time: datetime | None = None

    async def __aenter__(self):
        """Async context manager entry."""
        if self.session is None:
            self.session = aiohttp.ClientSession()
            self._owns_session = True
        return self

    async def __aexit__(self, _exc_type, _exc_val, _exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the session if this client created it."""
        if self.session is not None and self._owns_session:
            await self.session.close()
            self.session = None

    @property
    def stats(self) -> dict:
        """Request counters for run summaries."""
        return {
            "provider": self.provider,
            "request_count": self.request_count,
            "last_request_time": self._last_request_time,
        }

    # Hooks -----------------------------------------------------------------

    def _auth_params(self) -> dict:
        return {}

    def _auth_headers(self) -> dict:
        return {}

    def _quota_from_headers(self, headers: Mapping[str, str]) -> int | None:
        return None

    def _check_payload(self, data: Any, status: int) -> None:
        """Raise ProviderError for 2xx bodies that nonetheless report failure."""

    # Request path ----------------------------------------------------------

    async def _throttle(self) -> None:
        """
        Suspend until the minimum interval since the previous request has passed.

        Concurrent callers queue on the lock and are released one interval apart.
        """
        async with self._throttle_lock:
            if self._last_request_at is not None:
                elapsed = self._clock() - self._last_request_at
                wait = self.min_interval - elapsed
                if wait > 0:
                    logger.debug(
                        "throttle_wait", provider=self.provider, wait_seconds=round(wait, 3)
                    )
                    await self._sleep(wait)

            self._last_request_at = self._clock()
            self._last_request_time = utc_now()
            self.request_count += 1

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "api_request_retry",
            provider=self.provider,
            attempt=retry_state.attempt_number,
            error=str(exc),
        )

    async def fetch(self, endpoint: str, params: dict | None = None) -> ProviderResponse:
        """
        Issue a throttled GET with retry on transient failures.

        Args:
            endpoint: Path relative to the base URL
            params: Query parameters; ``None`` values are dropped

        Returns:
            ProviderResponse with the decoded JSON body

        Raises:
            RateLimitExceeded: Provider answered 429
            ProviderError: Any other non-2xx answer or an error payload
            aiohttp.ClientError: Network failure after retries are exhausted
        """
        query = {key: value for key, value in (params or {}).items() if value is not None}

        retrying = AsyncRetrying(
            retry=retry_if_exception(is_transient),
            stop=stop_after_attempt(self.retry_policy.attempts),
            wait=wait_exponential(
                multiplier=self.retry_policy.initial_delay,
                exp_base=self.retry_policy.backoff,
            ),
            sleep=self._sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )

        async for attempt in retrying:
            with attempt:
                return await self._request(endpoint, query)

        raise RuntimeError(f"{self.provider} retry loop ended without a response")

    async def _request(self, endpoint: str, params: dict) -> ProviderResponse:
        if self.session is None:
            raise RuntimeError(
                f"{self.provider} client not initialized; use it as an async context manager"
            )

        await self._throttle()

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        start = self._clock()

        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with self.session.get(
                url,
                params={**params, **self._auth_params()},
                headers=self._auth_headers(),
                timeout=timeout,
            ) as response:
                status = response.status
                if status == 429:
                    raise RateLimitExceeded(status, "rate limit exceeded", provider=self.provider)
                if not 200 <= status < 300:
                    body = await response.text()
                    raise ProviderError(status, body[:200], provider=self.provider)

                data = await response.json(content_type=None)
                quota_remaining = self._quota_from_headers(response.headers)
                self._check_payload(data, status)

        except ProviderError as e:
            logger.error(
                "api_request_failed",
                provider=self.provider,
                endpoint=endpoint,
                status=e.status,
                message=e.message,
            )
            raise
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.error(
                "api_request_error",
                provider=self.provider,
                endpoint=endpoint,
                error=str(e),
            )
            raise

        elapsed_ms = int((self._clock() - start) * 1000)
        logger.info(
            "api_request_success",
            provider=self.provider,
            endpoint=endpoint,
            status=status,
            elapsed_ms=elapsed_ms,
            quota_remaining=quota_remaining,
        )

        return ProviderResponse(
            data=data,
            status=status,
            elapsed_ms=elapsed_ms,
            quota_remaining=quota_remaining,
            timestamp=utc_now(),
        )
