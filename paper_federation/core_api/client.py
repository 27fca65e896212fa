"""Async HTTP client for the CORE API v3."""

import logging
from typing import Any

import httpx

from ..api_client import ApiClient
from ..retry import RateLimiter

logger = logging.getLogger(__name__)


class CoreClient(ApiClient):
    """Async client for CORE. The API key is sent as a bearer token."""

    name = "core"

    def __init__(
        self,
        base_url: str,
        rate_limiter: RateLimiter,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        **retry_kwargs: Any,
    ):
        headers: dict[str, str] = {}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        super().__init__(
            base_url,
            rate_limiter,
            headers=headers,
            transport=transport,
            **retry_kwargs,
        )

    async def search_works(
        self,
        query: str,
        limit: int = 10,
        offset: int = 0,
        sort: str | None = None,
    ) -> dict[str, Any]:
        """Search works using /search/works."""
        params: dict[str, Any] = {"q": query, "offset": offset, "limit": limit}
        if sort:
            params["sort"] = sort

        logger.info(f"Searching works: q='{query}', limit={limit}, offset={offset}")
        data = await self.get_json("/search/works", params=params)
        return data or {}

    async def get_work(self, work_id: str) -> dict[str, Any]:
        return await self.get_json(f"/works/{work_id}")
