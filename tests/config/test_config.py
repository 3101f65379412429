from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tyingbench.config import (
    ConfigurationError,
    MissingConfigurationError,
    ReviewOrder,
    get_database_config,
    get_oracle_config,
    get_pipeline_config,
    get_scraping_config,
    get_storage_config,
    require_env_vars,
)

if TYPE_CHECKING:
    from pathlib import Path


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    assert require_env_vars(["EXAMPLE_VAR"]) == {"EXAMPLE_VAR": "value"}


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_A", raising=False)
    monkeypatch.setenv("MISSING_B", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)


def test_pipeline_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "TYINGBENCH_CONCURRENCY",
        "TYINGBENCH_RETRY_ATTEMPTS",
        "TYINGBENCH_REVIEW_ORDER",
        "TYINGBENCH_HIGH_CONFIDENCE",
        "TYINGBENCH_LOW_CONFIDENCE",
    ):
        monkeypatch.delenv(name, raising=False)

    config = get_pipeline_config()

    assert config.concurrency == 5
    assert config.backoff.attempts == 3
    assert config.review_order is ReviewOrder.DESCENDING
    assert (config.thresholds.high, config.thresholds.low) == (0.8, 0.4)


def test_pipeline_config_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TYINGBENCH_CONCURRENCY", "2")
    monkeypatch.setenv("TYINGBENCH_RETRY_ATTEMPTS", "5")
    monkeypatch.setenv("TYINGBENCH_RETRY_BASE_DELAY", "0.5")
    monkeypatch.setenv("TYINGBENCH_REVIEW_ORDER", "ASC")
    monkeypatch.setenv("TYINGBENCH_HIGH_CONFIDENCE", "0.9")

    config = get_pipeline_config()

    assert config.concurrency == 2
    assert config.backoff.attempts == 5
    assert config.backoff.delay_for(0) == 0.5
    assert config.backoff.delay_for(2) == 2.0
    assert config.review_order is ReviewOrder.ASCENDING
    assert config.thresholds.high == 0.9


def test_backoff_is_capped() -> None:
    backoff = get_pipeline_config().backoff

    assert backoff.delay_for(20) == backoff.max_delay


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("TYINGBENCH_CONCURRENCY", "0"),
        ("TYINGBENCH_CONCURRENCY", "many"),
        ("TYINGBENCH_REVIEW_ORDER", "sideways"),
        ("TYINGBENCH_LOW_CONFIDENCE", "0.95"),
    ],
)
def test_pipeline_config_rejects_bad_values(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str
) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError):
        get_pipeline_config()


def test_oracle_config_requires_endpoint(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TYINGBENCH_ORACLE_URL", raising=False)

    with pytest.raises(MissingConfigurationError):
        get_oracle_config()


def test_oracle_config_adds_bearer_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TYINGBENCH_ORACLE_URL", "https://oracle.example.com/extract")
    monkeypatch.setenv("TYINGBENCH_ORACLE_TOKEN", "secret")

    config = get_oracle_config()

    assert config.endpoint == "https://oracle.example.com/extract"
    assert config.resilience.default_headers is not None
    assert config.resilience.default_headers["Authorization"] == "Bearer secret"
    assert config.resilience.cache is None
    assert config.resilience.retry is None


def test_storage_paths_follow_data_dir(isolated_data_dir: Path) -> None:
    storage = get_storage_config()

    assert storage.reports_dir() == isolated_data_dir.resolve() / "reports"
    assert storage.reports_dir().is_dir()
    assert storage.http_cache_path().name == "http_cache.db"


def test_database_uri_prefers_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///custom.db")
    assert get_database_config().uri == "sqlite+pysqlite:///custom.db"

    monkeypatch.delenv("DATABASE_URI")
    assert get_database_config().uri.endswith("/tyingbench.db")


def test_scraping_config_defaults_to_memory_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TYINGBENCH_HTTP_CACHE", raising=False)
    monkeypatch.delenv("TYINGBENCH_HTTP_CACHE_TTL", raising=False)

    config = get_scraping_config().resilience

    assert config.retry is None
    assert config.cache is not None
    assert config.cache.backend == "memory"
    assert config.cache.default_ttl_seconds is None


@pytest.mark.parametrize(
    ("value", "backend", "ttl"),
    [("sqlite", "sqlite", 3600.0), ("MEMORY", "memory", 3600.0)],
)
def test_scraping_cache_backend_from_environment(
    monkeypatch: pytest.MonkeyPatch, value: str, backend: str, ttl: float
) -> None:
    monkeypatch.setenv("TYINGBENCH_HTTP_CACHE", value)
    monkeypatch.setenv("TYINGBENCH_HTTP_CACHE_TTL", "3600")

    cache = get_scraping_config().resilience.cache

    assert cache is not None
    assert cache.backend == backend
    assert cache.default_ttl_seconds == ttl


def test_scraping_cache_can_be_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TYINGBENCH_HTTP_CACHE", "off")

    assert get_scraping_config().resilience.cache is None


def test_scraping_cache_rejects_unknown_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TYINGBENCH_HTTP_CACHE", "redis")

    with pytest.raises(ConfigurationError, match="TYINGBENCH_HTTP_CACHE"):
        get_scraping_config()
