"""Extraction oracle configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float, optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

DEFAULT_ORACLE_TIMEOUT_SECONDS = 120.0


@dataclass(frozen=True, slots=True)
class OracleConfig:
    endpoint: str
    resilience: ResilienceConfig


def get_oracle_config() -> OracleConfig:
    values = require_env_vars(("TYINGBENCH_ORACLE_URL",))
    headers = {"Accept": "application/json"}
    token = optional_env_var("TYINGBENCH_ORACLE_TOKEN")
    if token is not None:
        headers["Authorization"] = f"Bearer {token}"
    return OracleConfig(
        endpoint=values["TYINGBENCH_ORACLE_URL"],
        resilience=ResilienceConfig(
            name="oracle",
            timeout_seconds=env_float(
                "TYINGBENCH_ORACLE_TIMEOUT", DEFAULT_ORACLE_TIMEOUT_SECONDS, minimum=1.0
            ),
            # the runner's backoff owns retries for the extract stage
            retry=None,
            ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
            cache=None,
            default_headers=headers,
        ),
    )
