"""Deterministic confidence scoring from payload completeness.

The score depends on the payload alone: no source metadata, no clock and no
database state, so re-scoring the same payload always yields the same value.
Buckets are informational and never drive approval.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from tyingbench.domain.model import ConfidenceBucket

if TYPE_CHECKING:
    from tyingbench.domain.model import ExtractedPayload

NAME_WEIGHT: Final = 0.25
MATERIALS_WEIGHT: Final = 0.30
DESCRIPTION_WEIGHT: Final = 0.15
CLASSIFICATION_WEIGHT: Final = 0.15
ORIGIN_WEIGHT: Final = 0.15

MIN_MATERIAL_COUNT: Final = 3
DEFAULT_MIN_DESCRIPTION_LENGTH: Final = 50


@dataclass(frozen=True, slots=True)
class ConfidenceThresholds:
    high: float = 0.8
    low: float = 0.4

    def __post_init__(self) -> None:
        if not 0.0 <= self.low <= self.high <= 1.0:
            raise ValueError(
                f"Confidence thresholds must satisfy 0 <= low <= high <= 1 "
                f"(low={self.low}, high={self.high})"
            )


def _has_adequate_materials(payload: ExtractedPayload) -> bool:
    materials = [material for material in payload.materials if material.name.strip()]
    if len(materials) < MIN_MATERIAL_COUNT:
        return False
    return any(m.is_hook for m in materials) and any(m.is_thread for m in materials)


def compute_confidence(
    payload: ExtractedPayload, *, min_description_length: int = DEFAULT_MIN_DESCRIPTION_LENGTH
) -> float:
    """Weighted completeness score in ``[0, 1]``."""

    score = 0.0
    if payload.pattern_name.strip():
        score += NAME_WEIGHT
    if _has_adequate_materials(payload):
        score += MATERIALS_WEIGHT
    if payload.description and len(payload.description.strip()) > min_description_length:
        score += DESCRIPTION_WEIGHT
    if payload.category and payload.difficulty and payload.water_type:
        score += CLASSIFICATION_WEIGHT
    if payload.origin:
        score += ORIGIN_WEIGHT
    return min(1.0, max(0.0, round(score, 4)))


def confidence_bucket(
    confidence: float, thresholds: ConfidenceThresholds | None = None
) -> ConfidenceBucket:
    limits = thresholds or ConfidenceThresholds()
    if confidence >= limits.high:
        return ConfidenceBucket.HIGH
    if confidence >= limits.low:
        return ConfidenceBucket.MEDIUM
    return ConfidenceBucket.LOW
