"""Canonical Pydantic models shared by every source adapter."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class Source(str, Enum):
    """Upstream databases the federation layer can talk to."""

    SEMANTIC_SCHOLAR = "semanticscholar"
    OPENALEX = "openalex"
    CORE = "core"


# Fixed iteration order for fan-out merges (first occurrence wins on dedup)
SOURCE_ORDER: tuple[Source, ...] = (
    Source.SEMANTIC_SCHOLAR,
    Source.OPENALEX,
    Source.CORE,
)

SOURCE_PREFIXES: dict[Source, str] = {
    Source.SEMANTIC_SCHOLAR: "ss_",
    Source.OPENALEX: "oa_",
    Source.CORE: "core_",
}

SearchSource = Literal["semanticscholar", "openalex", "core", "all"]
SortBy = Literal["relevance", "date", "citations"]

_DOI_PREFIXES = (
    "https://doi.org/",
    "http://doi.org/",
    "https://dx.doi.org/",
    "http://dx.doi.org/",
    "doi:",
)


def normalize_doi(doi: str | None) -> str | None:
    """Strip URL/scheme prefixes from a DOI.

    Examples:
        "https://doi.org/10.1/abc" -> "10.1/abc"
        "  " -> None
    """
    if not doi:
        return None
    value = str(doi).strip()
    lowered = value.lower()
    for prefix in _DOI_PREFIXES:
        if lowered.startswith(prefix):
            value = value[len(prefix):]
            break
    return value or None


class PaperRef(BaseModel):
    """Typed paper identifier: originating source plus the upstream id."""

    model_config = {"frozen": True}

    source: Source
    local_id: str

    @property
    def paper_id(self) -> str:
        """Render as the prefixed string id used by ``Paper.id``."""
        return f"{SOURCE_PREFIXES[self.source]}{self.local_id}"

    @classmethod
    def parse(cls, paper_id: str) -> "PaperRef | None":
        """Parse a prefixed id. Returns None when the prefix is unknown."""
        for source, prefix in SOURCE_PREFIXES.items():
            if paper_id.startswith(prefix) and len(paper_id) > len(prefix):
                return cls(source=source, local_id=paper_id[len(prefix):])
        return None

    def __str__(self) -> str:
        return self.paper_id


class Author(BaseModel):
    """Author information."""

    model_config = {"frozen": True}

    name: str = "Unknown Author"
    id: str | None = None


class Paper(BaseModel):
    """Canonical bibliographic record, independent of originating source.

    Every field has a defined default so adapters never hand out a record with
    missing data. Instances are immutable.
    """

    model_config = {"frozen": True}

    id: str
    title: str = "Untitled"
    authors: list[Author] = Field(default_factory=list)
    abstract: str = ""
    year: int = 0
    doi: str | None = None
    venue: str | None = None
    citation_count: int = 0
    pdf_url: str | None = None
    open_access: bool = False
    keywords: list[str] = Field(default_factory=list)
    source: Source

    @field_validator("doi", mode="before")
    @classmethod
    def _normalize_doi(cls, value: str | None) -> str | None:
        return normalize_doi(value)

    @property
    def ref(self) -> PaperRef:
        ref = PaperRef.parse(self.id)
        if ref is None:
            return PaperRef(source=self.source, local_id=self.id)
        return ref


class SearchFilters(BaseModel):
    """Filters for paper search."""

    year_from: int | None = None
    year_to: int | None = None
    open_access_only: bool = False
    sort_by: SortBy | None = None


class SearchResult(BaseModel):
    """One page of search results."""

    papers: list[Paper] = Field(default_factory=list)
    total_results: int = 0
    page: int = 1
    page_size: int = 10

    @classmethod
    def empty(cls, page: int = 1, page_size: int = 10) -> "SearchResult":
        return cls(papers=[], total_results=0, page=page, page_size=page_size)

    @property
    def is_empty(self) -> bool:
        """No papers and no reported total (the fallback trigger)."""
        return not self.papers and self.total_results == 0


class DownloadStatus(str, Enum):
    PENDING = "pending"
    DOWNLOADING = "downloading"
    COMPLETED = "completed"
    ERROR = "error"


class DownloadProgress(BaseModel):
    """Progress event pushed to PDF download subscribers."""

    model_config = {"frozen": True}

    paper_id: str
    progress: int = Field(0, ge=0, le=100)
    status: DownloadStatus = DownloadStatus.PENDING
    status_message: str | None = None
    attempt_number: int | None = None
    total_attempts: int | None = None


def sort_papers(papers: list[Paper], sort_by: SortBy | None) -> list[Paper]:
    """Stable sort: citations or year descending; relevance keeps order."""
    if sort_by == "citations":
        return sorted(papers, key=lambda p: p.citation_count, reverse=True)
    if sort_by == "date":
        return sorted(papers, key=lambda p: p.year, reverse=True)
    return list(papers)
