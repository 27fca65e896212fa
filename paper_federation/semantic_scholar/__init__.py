"""Semantic Scholar Graph API integration.

Usage:
    from paper_federation.semantic_scholar import SemanticScholarAdapter

    async with SemanticScholarAdapter(client) as adapter:
        result = await adapter.search("transformer attention", page_size=10)
"""

from .adapters import SemanticScholarAdapter, normalize_paper
from .client import SemanticScholarClient

__all__ = ["SemanticScholarAdapter", "SemanticScholarClient", "normalize_paper"]
