"""OpenAlex adapter implementing the PaperSource protocol."""

import logging

from ..errors import NotFound
from ..models import Author, Paper, PaperRef, SearchFilters, SearchResult, Source
from ..protocols import PaperSource
from .client import OpenAlexClient
from .models import Work, WorksResponse

logger = logging.getLogger(__name__)

MAX_CONCEPTS = 5
MAX_KEYWORDS = 10


def reconstruct_abstract(inverted_index: dict[str, list[int]] | None) -> str:
    """Rebuild abstract text from OpenAlex's word -> positions index.

    Example: {"The": [0], "cat": [1], "sat": [2]} -> "The cat sat"
    """
    if not inverted_index:
        return ""

    words: list[tuple[int, str]] = []
    for word, positions in inverted_index.items():
        for position in positions or []:
            words.append((position, word))

    # Stable on position only; duplicate positions keep index order
    words.sort(key=lambda item: item[0])
    return " ".join(word for _, word in words)


def extract_work_id(work_url: str) -> str:
    """Extract the short id from a work URL.

    Example: "https://openalex.org/W2741809807" -> "W2741809807"
    """
    return work_url.rstrip("/").split("/")[-1] or work_url


def extract_keywords(work: Work) -> list[str]:
    """Keywords plus the top concepts, de-duplicated in order."""
    keywords: list[str] = []
    for keyword in work.keywords:
        name = keyword.keyword or keyword.display_name
        if name:
            keywords.append(name)
    for concept in work.concepts[:MAX_CONCEPTS]:
        if concept.display_name:
            keywords.append(concept.display_name)
    return list(dict.fromkeys(keywords))[:MAX_KEYWORDS]


def normalize_work(work: Work) -> Paper:
    """Map an OpenAlex work onto the canonical Paper."""
    open_access = work.open_access
    location = work.primary_location
    venue = location.source.display_name if location and location.source else None

    return Paper(
        id=PaperRef(source=Source.OPENALEX, local_id=extract_work_id(work.id)).paper_id,
        title=work.title or "Untitled",
        authors=[
            Author(
                name=(a.author.display_name if a.author else None) or "Unknown Author",
                id=a.author.id if a.author else None,
            )
            for a in work.authorships
        ],
        abstract=reconstruct_abstract(work.abstract_inverted_index),
        year=work.publication_year or 0,
        doi=work.doi,
        venue=venue or None,
        citation_count=work.cited_by_count or 0,
        pdf_url=open_access.oa_url if open_access else None,
        open_access=bool(open_access and open_access.is_oa),
        keywords=extract_keywords(work),
        source=Source.OPENALEX,
    )


def build_filter(filters: SearchFilters) -> str | None:
    """Build the comma-separated OpenAlex ``filter`` parameter."""
    parts: list[str] = []
    if filters.year_from:
        parts.append(f"publication_year:>={filters.year_from}")
    if filters.year_to:
        parts.append(f"publication_year:<={filters.year_to}")
    if filters.open_access_only:
        parts.append("is_oa:true")
    return ",".join(parts) or None


def build_sort(filters: SearchFilters) -> str:
    if filters.sort_by == "citations":
        return "cited_by_count:desc"
    if filters.sort_by == "date":
        return "publication_year:desc"
    return "relevance_score:desc"


class OpenAlexAdapter(PaperSource):
    """Adapter for the OpenAlex Works API."""

    source = Source.OPENALEX

    def __init__(self, client: OpenAlexClient):
        self._client = client

    async def __aenter__(self) -> "OpenAlexAdapter":
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
        """Search works; filtering and sorting happen server-side."""
        filters = filters or SearchFilters()

        response_data = await self._client.search_works(
            query,
            page=page,
            per_page=page_size,
            filter=build_filter(filters),
            sort=build_sort(filters),
        )
        response = WorksResponse.model_validate(response_data)
        meta = response.meta

        return SearchResult(
            papers=[
                normalize_work(work)
                for work in response.results or []
                if work and work.id and work.title
            ],
            total_results=(meta.count if meta else 0) or 0,
            page=(meta.page if meta else None) or page,
            page_size=(meta.per_page if meta else None) or page_size,
        )

    async def get_details(self, local_id: str) -> Paper | None:
        """Fetch a work by OpenAlex id. 404 yields None."""
        try:
            data = await self._client.get_work(local_id)
        except NotFound:
            logger.info(f"OpenAlex work {local_id} not found")
            return None

        work = Work.model_validate(data or {})
        if not work.id:
            return None
        return normalize_work(work)
