"""Async HTTP client base with rate limiting and retry, shared by all sources."""

import logging
from typing import Any

import httpx

from .errors import HttpError, NetworkError, NotFound, RateLimited
from .retry import RateLimiter, exponential_backoff, is_retryable, retry_async

logger = logging.getLogger(__name__)


def parse_retry_after(value: str | None) -> float | None:
    """Parse a Retry-After header given in seconds. HTTP dates are ignored."""
    if not value:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None


class ApiClient:
    """Async JSON client for one upstream API.

    The rate limiter is injected so that every user of the same upstream
    shares one "last request time".
    """

    name = "api"

    def __init__(
        self,
        base_url: str,
        rate_limiter: RateLimiter,
        headers: dict[str, str] | None = None,
        max_attempts: int = 3,
        backoff_base: float = 1.0,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.rate_limiter = rate_limiter
        self.headers = {"Accept": "application/json", **(headers or {})}
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "ApiClient":
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            transport=self._transport,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(
                "Client not initialized. Use 'async with' context manager."
            )
        return self._client

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Single attempt. Translates transport failures and 429s."""
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            raise NetworkError(f"{type(e).__name__}: {e}") from e

        logger.debug(f"{self.name} {method} {url} -> {response.status_code}")
        if response.status_code == 429:
            raise RateLimited(parse_retry_after(response.headers.get("Retry-After")))
        return response

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Make a request with rate limiting and exponential backoff retry.

        Raises:
            NotFound: 404 response
            HttpError: any other non-2xx response (not retried)
            RetriesExhausted: network errors / 429s on every attempt
        """
        response = await retry_async(
            lambda attempt: self._send(method, url, **kwargs),
            max_attempts=self.max_attempts,
            should_retry=is_retryable,
            backoff=exponential_backoff(self.backoff_base),
            rate_limiter=self.rate_limiter,
            description=f"{self.name} {method} {url}",
        )

        if response.status_code == 404:
            raise NotFound(f"{self.name}: {url} not found")
        if not response.is_success:
            logger.error(
                f"{self.name} API error: {response.status_code} - {response.text[:200]}"
            )
            raise HttpError(
                response.status_code, f"{self.name} API error: {response.status_code}"
            )
        return response

    async def get_json(self, url: str, **kwargs: Any) -> Any:
        """GET a JSON document."""
        response = await self.request("GET", url, **kwargs)
        return response.json()
