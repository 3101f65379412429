"""Worker pool, retry and review-queue settings for the pipeline."""

from __future__ import annotations

from dataclasses import dataclass

from tyingbench.domain.model.enums import ReviewOrder
from tyingbench.domain.pipeline.matching import MATERIAL_MATCH_THRESHOLD
from tyingbench.domain.pipeline.scoring import ConfidenceThresholds

from .env import env_float, env_int, optional_env_var
from .errors import ConfigurationError

DEFAULT_CONCURRENCY = 5
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_BASE_DELAY = 2.0
DEFAULT_RETRY_MAX_DELAY = 30.0
DEFAULT_DOMAIN_RATE = 1.0
DEFAULT_HIGH_CONFIDENCE = 0.8
DEFAULT_LOW_CONFIDENCE = 0.4
DEFAULT_MIN_DESCRIPTION_LENGTH = 50


@dataclass(frozen=True, slots=True)
class BackoffPolicy:
    attempts: int = DEFAULT_RETRY_ATTEMPTS
    base_delay: float = DEFAULT_RETRY_BASE_DELAY
    max_delay: float = DEFAULT_RETRY_MAX_DELAY

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (0-based)."""

        return min(self.max_delay, self.base_delay * (2**attempt))


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    concurrency: int = DEFAULT_CONCURRENCY
    backoff: BackoffPolicy = BackoffPolicy()
    domain_calls_per_second: float = DEFAULT_DOMAIN_RATE
    review_order: ReviewOrder = ReviewOrder.DESCENDING
    thresholds: ConfidenceThresholds = ConfidenceThresholds()
    min_description_length: int = DEFAULT_MIN_DESCRIPTION_LENGTH
    material_match_threshold: float = MATERIAL_MATCH_THRESHOLD


def _review_order() -> ReviewOrder:
    raw = optional_env_var("TYINGBENCH_REVIEW_ORDER")
    if raw is None:
        return ReviewOrder.DESCENDING
    try:
        return ReviewOrder(raw.lower())
    except ValueError as exc:
        raise ConfigurationError(
            f"TYINGBENCH_REVIEW_ORDER must be 'asc' or 'desc', got {raw!r}"
        ) from exc


def _thresholds() -> ConfidenceThresholds:
    try:
        return ConfidenceThresholds(
            high=env_float("TYINGBENCH_HIGH_CONFIDENCE", DEFAULT_HIGH_CONFIDENCE),
            low=env_float("TYINGBENCH_LOW_CONFIDENCE", DEFAULT_LOW_CONFIDENCE),
        )
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc


def _material_match_threshold() -> float:
    value = env_float(
        "TYINGBENCH_MATERIAL_MATCH_THRESHOLD", MATERIAL_MATCH_THRESHOLD, minimum=0.0
    )
    if value > 1.0:
        raise ConfigurationError(
            f"TYINGBENCH_MATERIAL_MATCH_THRESHOLD must be at most 1.0, got {value}"
        )
    return value


def get_pipeline_config() -> PipelineConfig:
    return PipelineConfig(
        concurrency=env_int("TYINGBENCH_CONCURRENCY", DEFAULT_CONCURRENCY, minimum=1),
        backoff=BackoffPolicy(
            attempts=env_int("TYINGBENCH_RETRY_ATTEMPTS", DEFAULT_RETRY_ATTEMPTS, minimum=1),
            base_delay=env_float(
                "TYINGBENCH_RETRY_BASE_DELAY", DEFAULT_RETRY_BASE_DELAY, minimum=0.0
            ),
            max_delay=env_float("TYINGBENCH_RETRY_MAX_DELAY", DEFAULT_RETRY_MAX_DELAY, minimum=0.0),
        ),
        domain_calls_per_second=env_float(
            "TYINGBENCH_DOMAIN_RATE", DEFAULT_DOMAIN_RATE, minimum=0.01
        ),
        review_order=_review_order(),
        thresholds=_thresholds(),
        min_description_length=env_int(
            "TYINGBENCH_MIN_DESCRIPTION_LENGTH", DEFAULT_MIN_DESCRIPTION_LENGTH, minimum=0
        ),
        material_match_threshold=_material_match_threshold(),
    )
