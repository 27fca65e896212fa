"""Async HTTP client for the OpenAlex Works API."""

import logging
from typing import Any

from ..api_client import ApiClient

logger = logging.getLogger(__name__)


class OpenAlexClient(ApiClient):
    """Async client for OpenAlex. No key needed; the polite pool is shared."""

    name = "openalex"

    async def search_works(
        self,
        query: str,
        page: int = 1,
        per_page: int = 10,
        filter: str | None = None,
        sort: str | None = None,
    ) -> dict[str, Any]:
        """Search works using the /works endpoint."""
        params: dict[str, Any] = {
            "search": query,
            "page": page,
            "per_page": per_page,
        }
        if filter:
            params["filter"] = filter
        if sort:
            params["sort"] = sort

        logger.info(f"Searching works: query='{query}', page={page}, per_page={per_page}")
        data = await self.get_json("/works", params=params)
        return data or {}

    async def get_work(self, work_id: str) -> dict[str, Any]:
        """Fetch one work by OpenAlex id (e.g. W2741809807)."""
        return await self.get_json(f"/works/{work_id}")
