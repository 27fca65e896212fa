"""
Configuration System Tests

Tests for the YAML profile loader and factory functions.
"""

import asyncio
import os
import tempfile
from pathlib import Path

from paper_federation.config import (
    FederationConfig,
    create_orchestrator,
    create_rate_limiters,
    load_config,
    load_config_from_yaml,
)
from paper_federation.config.loader import DEFAULT_CONFIG_PATH, expand_env_vars
from paper_federation.models import Source
from paper_federation.semantic_scholar import SemanticScholarAdapter


def test_load_bundled_profiles():
    """Default and test profiles load from the bundled YAML."""
    print("=" * 60)
    print("TEST 1: Load bundled profiles")
    print("=" * 60)

    profile = load_config_from_yaml(DEFAULT_CONFIG_PATH, "default")
    print(f"  Semantic Scholar interval: {profile.sources.semantic_scholar.min_interval}")
    print(f"  CORS proxies: {profile.pdf.cors_proxies}")

    assert profile.sources.semantic_scholar.min_interval == 0.2
    assert profile.sources.openalex.min_interval == 0.1
    assert profile.retry.max_attempts == 3
    assert len(profile.pdf.cors_proxies) == 2
    assert profile.pdf.max_retries == 2
    assert profile.sources.fallbacks[Source.CORE] == [Source.OPENALEX, Source.SEMANTIC_SCHOLAR]

    profile = load_config(profile="test")
    assert profile.sources.openalex.min_interval == 0.0
    assert profile.retry.backoff_base == 0.0
    assert profile.pdf.cors_proxies == ["https://proxy.test/?"]
    assert profile.sources.fallbacks[Source.SEMANTIC_SCHOLAR] == [Source.OPENALEX, Source.CORE]
    print("\n[PASS] profiles loaded correctly")


def test_env_var_expansion():
    os.environ["FEDERATION_TEST_KEY"] = "secret-123"
    try:
        assert expand_env_vars("Bearer ${FEDERATION_TEST_KEY}") == "Bearer secret-123"
    finally:
        del os.environ["FEDERATION_TEST_KEY"]
    assert expand_env_vars("${FEDERATION_TEST_KEY}") == ""
    assert expand_env_vars(42) == 42


def test_blank_api_key_becomes_none():
    yaml_text = """
profiles:
  keyless:
    sources:
      core:
        base_url: https://core.test
        api_key: ${FEDERATION_UNSET_VARIABLE}
"""
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "profiles.yaml"
        path.write_text(yaml_text)
        config = load_config(profile="keyless", config_path=path)

    assert config.sources.core.base_url == "https://core.test"
    assert config.sources.core.api_key is None


def test_fallback_to_defaults():
    """Missing files and unknown profiles degrade to built-in defaults."""
    missing = load_config(config_path=Path("/nonexistent/profiles.yaml"))
    assert missing == FederationConfig()

    unknown = load_config(profile="no-such-profile")
    assert unknown == FederationConfig()

    os.environ["FEDERATION_PROFILE"] = "test"
    try:
        assert load_config().retry.backoff_base == 0.0
    finally:
        del os.environ["FEDERATION_PROFILE"]


def test_factory_shares_rate_limiters():
    config = load_config(profile="test")
    limiters = create_rate_limiters(config)
    orchestrator = create_orchestrator(config, limiters)

    assert set(limiters) == set(Source)
    assert orchestrator.sources == [Source.SEMANTIC_SCHOLAR, Source.OPENALEX, Source.CORE]

    async def run():
        async with orchestrator:
            adapter = orchestrator._adapters[Source.SEMANTIC_SCHOLAR]
            assert isinstance(adapter, SemanticScholarAdapter)
            assert adapter._client.rate_limiter is limiters[Source.SEMANTIC_SCHOLAR]

    asyncio.run(run())


def main():
    """Run all tests."""
    test_load_bundled_profiles()
    test_env_var_expansion()
    test_blank_api_key_becomes_none()
    test_fallback_to_defaults()
    test_factory_shares_rate_limiters()
    print("ALL CONFIG TESTS PASSED!")


if __name__ == "__main__":
    main()
