"""Configuration loader with Pydantic validation and env var expansion."""

import logging
import os
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from .. import settings
from ..models import SearchSource, Source

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "profiles.yaml"

DEFAULT_FALLBACKS: dict[Source, list[Source]] = {
    Source.SEMANTIC_SCHOLAR: [Source.OPENALEX, Source.CORE],
    Source.OPENALEX: [Source.SEMANTIC_SCHOLAR, Source.CORE],
    Source.CORE: [Source.OPENALEX, Source.SEMANTIC_SCHOLAR],
}


class SourceConfig(BaseModel):
    """Connection settings for one upstream API."""

    base_url: str
    min_interval: float = 0.2  # seconds between requests
    api_key: str | None = None

    @field_validator("api_key", mode="before")
    @classmethod
    def _blank_key_is_none(cls, value: str | None) -> str | None:
        return value or None


class SourcesConfig(BaseModel):
    """Configuration for the three source adapters and their fallback chains."""

    semantic_scholar: SourceConfig = SourceConfig(
        base_url=settings.SEMANTIC_SCHOLAR_BASE_URL,
        min_interval=settings.SEMANTIC_SCHOLAR_MIN_INTERVAL,
        api_key=settings.SEMANTIC_SCHOLAR_API_KEY,
    )
    openalex: SourceConfig = SourceConfig(
        base_url=settings.OPENALEX_BASE_URL,
        min_interval=settings.OPENALEX_MIN_INTERVAL,
    )
    core: SourceConfig = SourceConfig(
        base_url=settings.CORE_BASE_URL,
        min_interval=settings.CORE_MIN_INTERVAL,
        api_key=settings.CORE_API_KEY,
    )
    fallbacks: dict[Source, list[Source]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_FALLBACKS.items()}
    )

    def for_source(self, source: Source) -> SourceConfig:
        return {
            Source.SEMANTIC_SCHOLAR: self.semantic_scholar,
            Source.OPENALEX: self.openalex,
            Source.CORE: self.core,
        }[source]


class RetryConfig(BaseModel):
    """Retry policy for adapter requests."""

    max_attempts: int = settings.MAX_ATTEMPTS
    backoff_base: float = settings.RETRY_BACKOFF_BASE
    timeout: float = settings.REQUEST_TIMEOUT


class PdfConfig(BaseModel):
    """Configuration for the PDF retrieval pipeline."""

    cors_proxies: list[str] = Field(default_factory=lambda: list(settings.CORS_PROXIES))
    max_retries: int = settings.PDF_MAX_RETRIES
    retry_delay: float = settings.PDF_RETRY_DELAY
    stale_after: float = settings.PDF_STALE_AFTER
    min_size: int = settings.PDF_MIN_SIZE
    timeout: float = settings.PDF_TIMEOUT
    chunk_size: int = 64 * 1024


class QueryConfig(BaseModel):
    """Defaults for query controllers."""

    page_size: int = settings.PAGE_SIZE
    default_source: SearchSource = "semanticscholar"


class FederationConfig(BaseModel):
    """Configuration profile for the whole federation client."""

    sources: SourcesConfig = SourcesConfig()
    retry: RetryConfig = RetryConfig()
    pdf: PdfConfig = PdfConfig()
    query: QueryConfig = QueryConfig()


class ConfigFile(BaseModel):
    """Root configuration file structure."""

    profiles: dict[str, FederationConfig]


def expand_env_vars(value: str) -> str:
    """Expand ${VAR} references in string with environment variables.

    Unset variables expand to an empty string.
    """
    if not isinstance(value, str):
        return value

    pattern = r"\$\{([^}]+)\}"

    def replacer(match):
        return os.environ.get(match.group(1), "")

    return re.sub(pattern, replacer, value)


def expand_env_vars_recursive(data):
    """Recursively expand env vars in nested dict/list structures."""
    if isinstance(data, dict):
        return {k: expand_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [expand_env_vars_recursive(item) for item in data]
    elif isinstance(data, str):
        return expand_env_vars(data)
    else:
        return data


def load_config_from_yaml(config_path: Path, profile_name: str) -> FederationConfig:
    """Load one profile from a YAML file.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config is invalid
        KeyError: If profile doesn't exist
    """
    with open(config_path) as f:
        raw_data = yaml.safe_load(f)

    expanded_data = expand_env_vars_recursive(raw_data)
    config_file = ConfigFile(**expanded_data)

    if profile_name not in config_file.profiles:
        available = ", ".join(config_file.profiles.keys())
        raise KeyError(
            f"Profile '{profile_name}' not found. Available profiles: {available}"
        )

    return config_file.profiles[profile_name]


def load_config(
    profile: str | None = None,
    config_path: Path | None = None,
) -> FederationConfig:
    """Load configuration from the YAML profiles file or built-in defaults.

    Args:
        profile: Profile name to load. If None, uses FEDERATION_PROFILE env var
                or "default".
        config_path: Path to config file. If None, uses the bundled
                    profiles.yaml next to this module.
    """
    if profile is None:
        profile = os.environ.get("FEDERATION_PROFILE", "default")

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        logger.info(f"Config file {config_path} not found, using defaults")
        return FederationConfig()

    try:
        return load_config_from_yaml(config_path, profile)
    except (KeyError, ValueError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        logger.warning("Falling back to built-in defaults")
        return FederationConfig()
