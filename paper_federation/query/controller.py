"""Per-session search state with single-flight cancellation and pagination."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING

from ..models import Paper, SearchFilters, SearchResult, SearchSource

if TYPE_CHECKING:
    from ..paper_sources.composite import SearchOrchestrator

logger = logging.getLogger(__name__)


class QueryState(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    SUCCESS = "success"
    ERRORED = "errored"
    LOADING_MORE = "loading_more"


class QueryController:
    """
    Owns the query, filters, source and pagination of one search session.

    At most one request is outstanding: a new request cancels the previous
    one, and every response is tagged with a generation number so a
    superseded response can never overwrite newer state.

    Usage:
        controller = QueryController(orchestrator)
        await controller.search("protein folding")
        if controller.has_more:
            await controller.load_more()
    """

    def __init__(
        self,
        orchestrator: SearchOrchestrator,
        page_size: int = 10,
        source: SearchSource = "semanticscholar",
        filters: SearchFilters | None = None,
    ):
        self._orchestrator = orchestrator
        self.page_size = page_size

        self.query = ""
        self.filters = filters or SearchFilters()
        self.source: SearchSource = source
        self.page = 1
        self.results: list[Paper] = []
        self.total_results = 0
        self.error: str | None = None
        self.state = QueryState.IDLE

        self._generation = 0
        self._inflight: asyncio.Task[SearchResult] | None = None

    @property
    def is_loading(self) -> bool:
        return self.state in (QueryState.SEARCHING, QueryState.LOADING_MORE)

    @property
    def has_more(self) -> bool:
        return len(self.results) < self.total_results

    def _cancel_inflight(self) -> None:
        if self._inflight is not None and not self._inflight.done():
            logger.debug(f"Cancelling superseded request (generation {self._generation})")
            self._inflight.cancel()
        self._inflight = None

    def _clear_results(self) -> None:
        self.results = []
        self.total_results = 0
        self.page = 1

    async def _execute(self, page: int, append: bool = False) -> None:
        """Issue one request and apply it if it is still the current one."""
        self._cancel_inflight()
        self._generation += 1
        generation = self._generation

        if not self.query.strip():
            self._clear_results()
            self.error = None
            self.state = QueryState.IDLE
            return

        self.state = QueryState.LOADING_MORE if append else QueryState.SEARCHING
        self.error = None

        task = asyncio.create_task(
            self._orchestrator.search(
                self.query, self.filters, page, self.page_size, self.source
            )
        )
        self._inflight = task

        try:
            result = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.debug(f"Request generation {generation} superseded")
                return
            raise
        except Exception as e:
            if generation == self._generation:
                logger.error(f"Search request failed: {e}")
                self.error = str(e) or "Failed to search papers"
                self.state = QueryState.ERRORED
                self._inflight = None
            return

        if generation != self._generation:
            logger.debug(f"Dropping stale response for generation {generation}")
            return

        self._inflight = None
        if append:
            self.results = self.results + list(result.papers)
        else:
            self.results = list(result.papers)
        self.total_results = result.total_results
        self.page = page
        self.state = QueryState.SUCCESS

    async def search(self, query: str) -> None:
        """Start a new search from page 1."""
        self.query = query
        await self._execute(1)

    def update_query(self, query: str) -> None:
        """Change the query text without searching."""
        self.query = query

    async def load_more(self) -> None:
        """Fetch the next page and append it to the current results."""
        # A failed page can be retried while earlier pages are still shown
        retryable = self.state == QueryState.ERRORED and bool(self.results)
        if (self.state != QueryState.SUCCESS and not retryable) or not self.has_more:
            logger.debug(f"load_more ignored in state {self.state.value}")
            return
        await self._execute(self.page + 1, append=True)

    async def set_filters(self, filters: SearchFilters) -> None:
        """Replace the filters and re-run the current query from page 1."""
        self.filters = filters
        await self._execute(1)

    async def set_source(self, source: SearchSource) -> None:
        """Switch the active source and re-run the current query from page 1."""
        self.source = source
        await self._execute(1)

    def reset(self) -> None:
        """Drop all state and cancel any outstanding request."""
        self._cancel_inflight()
        self._generation += 1
        self._clear_results()
        self.query = ""
        self.error = None
        self.state = QueryState.IDLE

    def close(self) -> None:
        """Cancel the outstanding request, if any. Loaded results are kept."""
        self._cancel_inflight()
        self._generation += 1
        if self.is_loading:
            self.state = QueryState.IDLE
