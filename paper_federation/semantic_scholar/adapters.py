"""Semantic Scholar adapter implementing the PaperSource protocol."""

import logging

from ..errors import NotFound
from ..models import (
    Author,
    Paper,
    PaperRef,
    SearchFilters,
    SearchResult,
    Source,
    sort_papers,
)
from ..protocols import PaperSource
from .client import SemanticScholarClient
from .models import PaperRecord, SearchResponse

logger = logging.getLogger(__name__)


def normalize_paper(record: PaperRecord) -> Paper:
    """Map a Semantic Scholar paper onto the canonical Paper."""
    external_ids = record.external_ids or {}
    doi = external_ids.get("DOI")
    return Paper(
        id=PaperRef(source=Source.SEMANTIC_SCHOLAR, local_id=record.paper_id).paper_id,
        title=record.title or "Untitled",
        authors=[
            Author(name=a.name or "Unknown Author", id=a.author_id)
            for a in record.authors
        ],
        abstract=record.abstract or "",
        year=record.year or 0,
        doi=str(doi) if doi else None,
        venue=record.venue or None,
        citation_count=record.citation_count or 0,
        pdf_url=record.open_access_pdf.url if record.open_access_pdf else None,
        open_access=bool(record.is_open_access),
        keywords=record.fields_of_study or [],
        source=Source.SEMANTIC_SCHOLAR,
    )


def build_filter_params(filters: SearchFilters) -> dict[str, str]:
    """Convert filters to Semantic Scholar query parameters."""
    params: dict[str, str] = {}

    if filters.year_from or filters.year_to:
        params["year"] = f"{filters.year_from or ''}:{filters.year_to or ''}"

    if filters.open_access_only:
        params["openAccessPdf"] = ""

    return params


class SemanticScholarAdapter(PaperSource):
    """
    Adapter for Semantic Scholar API.

    Usage:
        async with SemanticScholarAdapter(client) as adapter:
            result = await adapter.search("machine learning")
            paper = await adapter.get_details(result.papers[0].ref.local_id)
    """

    source = Source.SEMANTIC_SCHOLAR

    def __init__(self, client: SemanticScholarClient):
        self._client = client

    async def __aenter__(self) -> "SemanticScholarAdapter":
        await self._client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self._client.__aexit__(exc_type, exc_val, exc_tb)

    async def search(
        self,
        query: str,
        filters: SearchFilters | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> SearchResult:
        """
        Search for papers matching query and filters.

        The search endpoint has no sort option, so citation/date ordering is
        applied to the returned page locally.
        """
        filters = filters or SearchFilters()
        offset = (page - 1) * page_size

        response_data = await self._client.search_papers(
            query=query,
            limit=page_size,
            offset=offset,
            **build_filter_params(filters),
        )
        response = SearchResponse.model_validate(response_data)

        papers = [
            normalize_paper(record)
            for record in response.data or []
            if record and record.paper_id and record.title
        ]
        papers = sort_papers(papers, filters.sort_by)

        return SearchResult(
            papers=papers,
            total_results=response.total or len(papers),
            page=page,
            page_size=page_size,
        )

    async def get_details(self, local_id: str) -> Paper | None:
        """Fetch a paper by Semantic Scholar id. 404 yields None."""
        try:
            data = await self._client.get_paper(local_id)
        except NotFound:
            logger.info(f"Semantic Scholar paper {local_id} not found")
            return None

        record = PaperRecord.model_validate(data or {})
        if not record.paper_id:
            return None
        return normalize_paper(record)
