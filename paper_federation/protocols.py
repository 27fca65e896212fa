"""Protocol definitions for source adapters."""

from typing import Protocol, runtime_checkable

from .models import Paper, SearchFilters, SearchResult, Source


@runtime_checkable
class PaperSource(Protocol):
    """Protocol for one external paper database.

    Implement this protocol to add support for a new upstream API.
    """

    source: Source

    async def search(
        self,
        query: str,
        filters: SearchFilters | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> SearchResult:
        """
        Search for papers matching query and filters.

        Args:
            query: Search query string
            filters: Optional search filters (year range, open access, sort)
            page: 1-based page number
            page_size: Number of results per page

        Returns:
            SearchResult with canonical Paper records. Zero matches is a
            normal result, not an error.
        """
        ...

    async def get_details(self, local_id: str) -> Paper | None:
        """
        Fetch one paper by its upstream id (without the source prefix).

        Returns:
            Paper, or None if the upstream answered 404
        """
        ...
