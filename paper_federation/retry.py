"""Rate limiting and retry utilities shared by adapters and the PDF pipeline."""

import asyncio
import logging
import time
from typing import Awaitable, Callable, TypeVar

from .errors import NetworkError, RateLimited, RetriesExhausted

logger = logging.getLogger(__name__)

T = TypeVar("T")

BackoffFn = Callable[[int, Exception], float]
RetryPredicate = Callable[[Exception], bool]


class RateLimiter:
    """Minimum-interval rate limiter.

    One instance per adapter; every caller of that adapter shares it.
    """

    def __init__(self, min_interval: float):
        self.min_interval = min_interval
        self.last_request_time = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait until we can make another request."""
        async with self._lock:
            now = time.monotonic()
            time_since_last = now - self.last_request_time
            if time_since_last < self.min_interval:
                await asyncio.sleep(self.min_interval - time_since_last)
            self.last_request_time = time.monotonic()


def is_retryable(exc: Exception) -> bool:
    """Network failures and 429s are retryable; everything else fails fast."""
    return isinstance(exc, (NetworkError, RateLimited))


def is_network_error(exc: Exception) -> bool:
    return isinstance(exc, NetworkError)


def exponential_backoff(base: float = 1.0) -> BackoffFn:
    """``base * 2**attempt`` seconds, or the server's Retry-After on a 429."""

    def backoff(attempt: int, exc: Exception) -> float:
        if isinstance(exc, RateLimited) and exc.retry_after is not None:
            return exc.retry_after
        return base * (2**attempt)

    return backoff


def linear_backoff(step: float = 0.5) -> BackoffFn:
    """``step * retry_index`` seconds (first retry waits one step)."""

    def backoff(attempt: int, exc: Exception) -> float:
        return step * (attempt + 1)

    return backoff


async def retry_async(
    operation: Callable[[int], Awaitable[T]],
    *,
    max_attempts: int = 3,
    should_retry: RetryPredicate = is_retryable,
    backoff: BackoffFn | None = None,
    rate_limiter: RateLimiter | None = None,
    description: str = "request",
) -> T:
    """Run ``operation(attempt)`` until it succeeds or attempts run out.

    Exceptions rejected by ``should_retry`` propagate immediately. When every
    attempt fails with a retryable error, ``RetriesExhausted`` is raised with
    the last error attached.
    """
    backoff = backoff or exponential_backoff()
    last_error: Exception | None = None

    for attempt in range(max_attempts):
        if rate_limiter is not None:
            await rate_limiter.acquire()
        logger.debug(f"{description}: attempt {attempt + 1}/{max_attempts}")

        try:
            return await operation(attempt)
        except Exception as e:
            if not should_retry(e):
                raise
            last_error = e

        if attempt < max_attempts - 1:
            delay = backoff(attempt, last_error)
            logger.warning(
                f"{description} failed ({last_error}), retrying in {delay}s "
                f"(attempt {attempt + 1}/{max_attempts})"
            )
            await asyncio.sleep(delay)

    logger.error(f"{description} failed after {max_attempts} attempts")
    raise RetriesExhausted(max_attempts, last_error) from last_error
