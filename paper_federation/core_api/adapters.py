"""CORE adapter implementing the PaperSource protocol."""

import logging
from datetime import date

from ..errors import NotFound
from ..models import Author, Paper, PaperRef, SearchFilters, SearchResult, Source
from ..protocols import PaperSource
from .client import CoreClient
from .models import CoreSearchResponse, CoreWork

logger = logging.getLogger(__name__)

EARLIEST_YEAR = 1900


def normalize_work(work: CoreWork) -> Paper:
    """Map a CORE work onto the canonical Paper."""
    journal_title = work.journals[0].title if work.journals else None
    return Paper(
        id=PaperRef(source=Source.CORE, local_id=work.id).paper_id,
        title=work.title or "Untitled",
        authors=[Author(name=a.name or "Unknown Author") for a in work.authors],
        abstract=work.abstract or "",
        year=work.year_published or 0,
        doi=work.doi,
        venue=journal_title or work.publisher or None,
        citation_count=work.citation_count or 0,
        pdf_url=work.download_url or None,
        open_access=bool(work.download_url),
        keywords=[work.field_of_study] if work.field_of_study else [],
        source=Source.CORE,
    )


def build_query(query: str, filters: SearchFilters) -> str:
    """Append the year range to the query string (CORE has no filter param)."""
    if filters.year_from or filters.year_to:
        year_from = filters.year_from or EARLIEST_YEAR
        year_to = filters.year_to or date.today().year
        return f"{query} AND yearPublished:[{year_from} TO {year_to}]"
    return query


def build_sort(filters: SearchFilters) -> str | None:
    if filters.sort_by == "date":
        return "yearPublished:desc"
    if filters.sort_by == "citations":
        return "citationCount:desc"
    return None


class CoreAdapter(PaperSource):
    """Adapter for the CORE aggregator of open access research outputs."""

    source = Source.CORE

    def __init__(self, client: CoreClient):
        self._client = client

    async def __aenter__(self) -> "CoreAdapter":
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
        """Search works.

        Open-access-only is applied to the returned page locally; the total
        still reflects CORE's unfiltered hit count.
        """
        filters = filters or SearchFilters()

        response_data = await self._client.search_works(
            build_query(query, filters),
            limit=page_size,
            offset=(page - 1) * page_size,
            sort=build_sort(filters),
        )
        response = CoreSearchResponse.model_validate(response_data)

        papers = [
            normalize_work(work) for work in response.results or [] if work and work.id
        ]
        if filters.open_access_only:
            papers = [p for p in papers if p.open_access]

        return SearchResult(
            papers=papers,
            total_results=response.total_hits or 0,
            page=page,
            page_size=page_size,
        )

    async def get_details(self, local_id: str) -> Paper | None:
        """Fetch a work by CORE id. 404 yields None."""
        try:
            data = await self._client.get_work(local_id)
        except NotFound:
            logger.info(f"CORE work {local_id} not found")
            return None

        work = CoreWork.model_validate(data or {})
        if not work.id:
            return None
        return normalize_work(work)
