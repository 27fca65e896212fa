"""Configuration system for the federation client."""

from .loader import (
    load_config,
    load_config_from_yaml,
    FederationConfig,
    SourceConfig,
    SourcesConfig,
    RetryConfig,
    PdfConfig,
    QueryConfig,
)
from .factory import (
    create_adapter,
    create_orchestrator,
    create_pdf_retriever,
    create_rate_limiters,
)

__all__ = [
    # Loader
    "load_config",
    "load_config_from_yaml",
    "FederationConfig",
    "SourceConfig",
    "SourcesConfig",
    "RetryConfig",
    "PdfConfig",
    "QueryConfig",
    # Factory
    "create_adapter",
    "create_orchestrator",
    "create_pdf_retriever",
    "create_rate_limiters",
]
