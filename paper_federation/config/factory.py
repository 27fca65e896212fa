"""Factory functions to create adapters and services from configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from ..models import SOURCE_ORDER, Source
from ..retry import RateLimiter

if TYPE_CHECKING:
    from ..paper_sources.composite import SearchOrchestrator
    from ..pdf.pipeline import PdfRetriever
    from ..protocols import PaperSource
    from .loader import FederationConfig, PdfConfig


def create_rate_limiters(config: FederationConfig) -> dict[Source, RateLimiter]:
    """One limiter per upstream, shared by everything that calls it."""
    return {
        source: RateLimiter(config.sources.for_source(source).min_interval)
        for source in SOURCE_ORDER
    }


def create_adapter(
    source: Source,
    config: FederationConfig,
    rate_limiter: RateLimiter,
    transport: httpx.AsyncBaseTransport | None = None,
) -> PaperSource:
    """Create one source adapter from configuration.

    Args:
        source: Which upstream to build an adapter for
        config: Federation configuration
        rate_limiter: Limiter owned by the caller for this upstream
        transport: Optional httpx transport (tests inject MockTransport)

    Raises:
        ValueError: If the source is not supported
    """
    source_config = config.sources.for_source(source)
    retry_kwargs = {
        "max_attempts": config.retry.max_attempts,
        "backoff_base": config.retry.backoff_base,
        "timeout": config.retry.timeout,
    }

    if source == Source.SEMANTIC_SCHOLAR:
        from ..semantic_scholar import SemanticScholarAdapter, SemanticScholarClient

        return SemanticScholarAdapter(
            SemanticScholarClient(
                source_config.base_url,
                rate_limiter,
                api_key=source_config.api_key,
                transport=transport,
                **retry_kwargs,
            )
        )

    elif source == Source.OPENALEX:
        from ..openalex import OpenAlexAdapter, OpenAlexClient

        return OpenAlexAdapter(
            OpenAlexClient(
                source_config.base_url,
                rate_limiter,
                transport=transport,
                **retry_kwargs,
            )
        )

    elif source == Source.CORE:
        from ..core_api import CoreAdapter, CoreClient

        return CoreAdapter(
            CoreClient(
                source_config.base_url,
                rate_limiter,
                api_key=source_config.api_key,
                transport=transport,
                **retry_kwargs,
            )
        )

    else:
        raise ValueError(f"Unsupported source: {source}")


def create_orchestrator(
    config: FederationConfig,
    rate_limiters: dict[Source, RateLimiter],
    transport: httpx.AsyncBaseTransport | None = None,
) -> SearchOrchestrator:
    """Create the search orchestrator with all three adapters."""
    from ..paper_sources.composite import SearchOrchestrator

    adapters = [
        create_adapter(source, config, rate_limiters[source], transport)
        for source in SOURCE_ORDER
    ]
    return SearchOrchestrator(adapters, fallbacks=config.sources.fallbacks)


def create_pdf_retriever(
    config: PdfConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> PdfRetriever:
    from ..pdf.pipeline import PdfRetriever

    return PdfRetriever(config, transport=transport)
