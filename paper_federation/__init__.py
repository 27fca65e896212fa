"""Federated academic paper search and PDF retrieval."""

from .federation import FederationClient
from .models import (
    Author,
    DownloadProgress,
    DownloadStatus,
    Paper,
    PaperRef,
    SearchFilters,
    SearchResult,
    Source,
)
from .paper_sources import SearchOrchestrator
from .pdf import PdfDocument, PdfRetriever
from .query import QueryController, QueryState

__all__ = [
    "FederationClient",
    # Models
    "Author",
    "DownloadProgress",
    "DownloadStatus",
    "Paper",
    "PaperRef",
    "SearchFilters",
    "SearchResult",
    "Source",
    # Services
    "SearchOrchestrator",
    "QueryController",
    "QueryState",
    "PdfDocument",
    "PdfRetriever",
]
