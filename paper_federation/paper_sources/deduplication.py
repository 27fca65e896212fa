"""Paper deduplication logic for multi-source search."""

import logging

from ..models import Paper

logger = logging.getLogger(__name__)


def doi_key(paper: Paper) -> str | None:
    """Dedup key: the normalized DOI, case-folded (DOIs are case-insensitive)."""
    return paper.doi.lower() if paper.doi else None


def deduplicate_papers(papers: list[Paper]) -> list[Paper]:
    """
    Drop papers whose DOI was already seen.

    The first occurrence wins, so callers control precedence through input
    order. Papers without a DOI are never treated as duplicates.
    """
    seen: set[str] = set()
    unique: list[Paper] = []

    for paper in papers:
        key = doi_key(paper)
        if key is not None:
            if key in seen:
                logger.debug(f"Dropped duplicate DOI {paper.doi} from {paper.source.value}")
                continue
            seen.add(key)
        unique.append(paper)

    logger.info(f"Deduplicated {len(papers)} papers to {len(unique)}")
    return unique
