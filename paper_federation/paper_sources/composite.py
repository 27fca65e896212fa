"""Search orchestrator combining the source adapters."""

import asyncio
import logging
import math

from ..models import (
    SOURCE_ORDER,
    Paper,
    PaperRef,
    SearchFilters,
    SearchResult,
    SearchSource,
    Source,
    sort_papers,
)
from ..protocols import PaperSource
from .deduplication import deduplicate_papers

logger = logging.getLogger(__name__)


class SearchOrchestrator:
    """
    Federates search and detail lookups over several paper sources.

    Two modes:
    - single source: query the chosen adapter, walking its fallback chain
      while the answer is an exception or completely empty
    - "all": fan out to every adapter concurrently, merge, dedup by DOI,
      sort and truncate

    No public method raises; adapter failures degrade to empty or partial
    results.

    Usage:
        async with SearchOrchestrator(adapters, fallbacks) as orchestrator:
            result = await orchestrator.search("transformer", source="all")
    """

    def __init__(
        self,
        adapters: list[PaperSource],
        fallbacks: dict[Source, list[Source]] | None = None,
        default_source: Source = Source.SEMANTIC_SCHOLAR,
    ):
        self._adapters: dict[Source, PaperSource] = {a.source: a for a in adapters}
        self._fallbacks = fallbacks or {}
        self._default_source = default_source

    async def __aenter__(self) -> "SearchOrchestrator":
        """Enter async context for all adapters."""
        for adapter in self._adapters.values():
            if hasattr(adapter, "__aenter__"):
                await adapter.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context for all adapters."""
        for adapter in self._adapters.values():
            if hasattr(adapter, "__aexit__"):
                await adapter.__aexit__(exc_type, exc_val, exc_tb)

    @property
    def sources(self) -> list[Source]:
        return [s for s in SOURCE_ORDER if s in self._adapters]

    def _resolve_source(self, source: SearchSource | Source) -> Source | None:
        """Map the requested source to an adapter key; None means "all"."""
        if source == "all":
            return None
        try:
            return Source(source)
        except ValueError:
            logger.warning(
                f"Unknown source '{source}', using {self._default_source.value}"
            )
            return self._default_source

    async def search(
        self,
        query: str,
        filters: SearchFilters | None = None,
        page: int = 1,
        page_size: int = 10,
        source: SearchSource | Source = "semanticscholar",
    ) -> SearchResult:
        """Search papers from the specified source, or all of them."""
        filters = filters or SearchFilters()

        if not query.strip():
            return SearchResult.empty(page, page_size)

        resolved = self._resolve_source(source)
        if resolved is None:
            return await self._search_all(query, filters, page, page_size)
        return await self._search_with_fallback(resolved, query, filters, page, page_size)

    async def _try_search(
        self,
        source: Source,
        query: str,
        filters: SearchFilters,
        page: int,
        page_size: int,
    ) -> SearchResult | None:
        """Run one adapter search, returning None on failure."""
        adapter = self._adapters.get(source)
        if adapter is None:
            return None
        try:
            return await adapter.search(query, filters, page, page_size)
        except Exception as e:
            logger.warning(f"{source.value} search failed: {e}")
            return None

    async def _search_with_fallback(
        self,
        source: Source,
        query: str,
        filters: SearchFilters,
        page: int,
        page_size: int,
    ) -> SearchResult:
        """Try the chosen source, then its fallbacks in order.

        A legitimately empty answer from the chosen source also triggers the
        fallback chain; the two cases cannot be told apart here.
        """
        chain = [source] + [s for s in self._fallbacks.get(source, []) if s != source]

        for candidate in chain:
            result = await self._try_search(candidate, query, filters, page, page_size)
            if result is not None and not result.is_empty:
                if candidate != source:
                    logger.warning(
                        f"Using fallback {candidate.value} for {source.value} "
                        f"({len(result.papers)} papers, total {result.total_results})"
                    )
                return result
            logger.info(f"{candidate.value} returned nothing for '{query}'")

        return SearchResult.empty(page, page_size)

    async def _search_all(
        self,
        query: str,
        filters: SearchFilters,
        page: int,
        page_size: int,
    ) -> SearchResult:
        """Search all sources concurrently and merge the results."""
        per_source = math.ceil(page_size / 3)
        sources = self.sources

        results = await asyncio.gather(
            *(
                self._adapters[s].search(query, filters, page, per_source)
                for s in sources
            ),
            return_exceptions=True,
        )

        papers: list[Paper] = []
        total_results = 0
        for source, result in zip(sources, results):
            if isinstance(result, BaseException):
                logger.warning(f"{source.value} failed during fan-out: {result}")
                continue
            papers.extend(result.papers)
            total_results += result.total_results

        unique = deduplicate_papers(papers)
        unique = sort_papers(unique, filters.sort_by)

        return SearchResult(
            papers=unique[:page_size],
            total_results=total_results,
            page=page,
            page_size=page_size,
        )

    async def get_details(self, paper_id: str | PaperRef) -> Paper | None:
        """Fetch a paper, routing by its source.

        Ids with an unknown prefix are tried against every source at once;
        the first non-null answer in source order wins.
        """
        ref = paper_id if isinstance(paper_id, PaperRef) else PaperRef.parse(paper_id)

        if ref is not None:
            adapter = self._adapters.get(ref.source)
            if adapter is None:
                logger.warning(f"No adapter configured for {ref.source.value}")
                return None
            try:
                return await adapter.get_details(ref.local_id)
            except Exception as e:
                logger.warning(f"{ref.source.value} details failed for {ref}: {e}")
                return None

        sources = self.sources
        results = await asyncio.gather(
            *(self._adapters[s].get_details(paper_id) for s in sources),
            return_exceptions=True,
        )
        for source, result in zip(sources, results):
            if isinstance(result, BaseException):
                logger.debug(f"{source.value} details failed for {paper_id}: {result}")
                continue
            if result is not None:
                return result

        return None
