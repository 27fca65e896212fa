"""Async HTTP client for the Semantic Scholar Graph API."""

import logging
from typing import Any

import httpx

from ..api_client import ApiClient
from ..retry import RateLimiter

logger = logging.getLogger(__name__)

PAPER_FIELDS = [
    "paperId",
    "title",
    "abstract",
    "year",
    "authors",
    "venue",
    "citationCount",
    "isOpenAccess",
    "openAccessPdf",
    "externalIds",
    "fieldsOfStudy",
]


class SemanticScholarClient(ApiClient):
    """Async client for Semantic Scholar API."""

    name = "semantic_scholar"

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
            headers["x-api-key"] = api_key
            logger.info("Semantic Scholar client initialized with API key")
        else:
            logger.debug("No Semantic Scholar API key - shared rate limits apply")
        super().__init__(
            base_url,
            rate_limiter,
            headers=headers,
            transport=transport,
            **retry_kwargs,
        )

    async def search_papers(
        self,
        query: str,
        limit: int = 10,
        offset: int = 0,
        **filter_params: str,
    ) -> dict[str, Any]:
        """Search for papers using the /paper/search endpoint."""
        params: dict[str, Any] = {
            "query": query,
            "offset": offset,
            "limit": min(limit, 100),  # API max is 100 per request
            "fields": ",".join(PAPER_FIELDS),
        }
        params.update(filter_params)

        logger.info(f"Searching papers: query='{query}', limit={limit}, offset={offset}")
        logger.debug(f"Filter params: {filter_params}")

        data = await self.get_json("/paper/search", params=params)
        return data or {}

    async def get_paper(self, paper_id: str) -> dict[str, Any]:
        """Fetch one paper by id using /paper/{id}."""
        return await self.get_json(
            f"/paper/{paper_id}", params={"fields": ",".join(PAPER_FIELDS)}
        )
