"""Application configuration helpers."""

from __future__ import annotations

from .env import require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .oracle import OracleConfig, get_oracle_config
from .pipeline import (
    BackoffPolicy,
    ConfidenceThresholds,
    PipelineConfig,
    ReviewOrder,
    get_pipeline_config,
)
from .scraping import ScrapingConfig, get_scraping_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "BackoffPolicy",
    "CacheConfig",
    "ConfidenceThresholds",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "OracleConfig",
    "PipelineConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "ReviewOrder",
    "ScrapingConfig",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_oracle_config",
    "get_pipeline_config",
    "get_scraping_config",
    "get_storage_config",
    "require_env_vars",
]
