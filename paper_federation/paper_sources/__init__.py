"""Paper sources module for multi-source paper search.

This module provides the orchestrator that federates the Semantic Scholar,
OpenAlex and CORE adapters.

Usage:
    from paper_federation.paper_sources import SearchOrchestrator

    orchestrator = SearchOrchestrator(
        adapters=[semantic_scholar, openalex, core],
        fallbacks={Source.SEMANTIC_SCHOLAR: [Source.OPENALEX, Source.CORE]},
    )
    result = await orchestrator.search("graph neural networks", source="all")
"""

from .composite import SearchOrchestrator
from .deduplication import deduplicate_papers

__all__ = [
    "SearchOrchestrator",
    "deduplicate_papers",
]
