"""Content scraping configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import env_float, optional_env_var
from .errors import ConfigurationError
from .http_resilience import CacheConfig, ResilienceConfig

DEFAULT_USER_AGENT = "tyingbench/0.1 (fly pattern catalog; educational use)"
DEFAULT_SCRAPE_TIMEOUT_SECONDS = 15.0
CACHE_BACKENDS: Final = ("memory", "sqlite", "off")


@dataclass(frozen=True, slots=True)
class ScrapingConfig:
    resilience: ResilienceConfig


def _cache_config() -> CacheConfig | None:
    """Response cache from ``TYINGBENCH_HTTP_CACHE``; ``sqlite`` persists under the data dir."""

    backend = (optional_env_var("TYINGBENCH_HTTP_CACHE") or "memory").lower()
    if backend not in CACHE_BACKENDS:
        choices = ", ".join(CACHE_BACKENDS)
        raise ConfigurationError(f"TYINGBENCH_HTTP_CACHE must be one of {choices}, got {backend!r}")
    if backend == "off":
        return None
    # 0 keeps entries until evicted
    ttl = env_float("TYINGBENCH_HTTP_CACHE_TTL", 0.0, minimum=0.0) or None
    if backend == "sqlite":
        return CacheConfig(backend="sqlite", default_ttl_seconds=ttl)
    return CacheConfig(backend="memory", default_ttl_seconds=ttl)


def get_scraping_config() -> ScrapingConfig:
    user_agent = optional_env_var("TYINGBENCH_USER_AGENT") or DEFAULT_USER_AGENT
    return ScrapingConfig(
        resilience=ResilienceConfig(
            name="scraping",
            timeout_seconds=env_float(
                "TYINGBENCH_SCRAPE_TIMEOUT", DEFAULT_SCRAPE_TIMEOUT_SECONDS, minimum=1.0
            ),
            # the runner's backoff owns retries for the scrape stage
            retry=None,
            cache=_cache_config(),
            default_headers={"User-Agent": user_agent},
        )
    )
