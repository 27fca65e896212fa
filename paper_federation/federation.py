"""Single entry point owning adapters, rate limiters and the PDF cache."""

import logging
from typing import Any

import httpx

from .config import (
    FederationConfig,
    create_orchestrator,
    create_pdf_retriever,
    create_rate_limiters,
    load_config,
)
from .models import Paper, PaperRef, SearchFilters, SearchResult, SearchSource
from .query import QueryController

logger = logging.getLogger(__name__)


class FederationClient:
    """
    Federated access to Semantic Scholar, OpenAlex and CORE.

    Construct once and share: the per-source rate limiters, the PDF cache and
    the active-download table live on this object.

    Usage:
        async with FederationClient() as federation:
            result = await federation.search("diffusion models", source="all")
            controller = federation.query_controller()
            document = await federation.pdf.download(paper.id, paper.pdf_url)
    """

    def __init__(
        self,
        config: FederationConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or load_config()
        self.rate_limiters = create_rate_limiters(self.config)
        self.orchestrator = create_orchestrator(
            self.config, self.rate_limiters, transport=transport
        )
        self.pdf = create_pdf_retriever(self.config.pdf, transport=transport)

    async def __aenter__(self) -> "FederationClient":
        await self.orchestrator.__aenter__()
        await self.pdf.__aenter__()
        logger.debug("Federation client opened")
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.pdf.__aexit__(exc_type, exc_val, exc_tb)
        await self.orchestrator.__aexit__(exc_type, exc_val, exc_tb)

    async def search(
        self,
        query: str,
        filters: SearchFilters | None = None,
        page: int = 1,
        page_size: int | None = None,
        source: SearchSource | None = None,
    ) -> SearchResult:
        """Search one source (with fallback) or all of them. Never raises."""
        return await self.orchestrator.search(
            query,
            filters,
            page,
            page_size or self.config.query.page_size,
            source or self.config.query.default_source,
        )

    async def get_details(self, paper_id: str | PaperRef) -> Paper | None:
        return await self.orchestrator.get_details(paper_id)

    def query_controller(self, source: SearchSource | None = None) -> QueryController:
        """Create a controller for one search session."""
        return QueryController(
            self.orchestrator,
            page_size=self.config.query.page_size,
            source=source or self.config.query.default_source,
        )
