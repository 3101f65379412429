"""Pipeline services: registry, extraction store, review, ingestion and reset."""

from __future__ import annotations

from .extraction_store import ExtractionStore
from .ingestion import IngestionEngine, resource_type_for
from .normalization import guess_material_type, normalize_payload
from .registry import SourceRegistry
from .reset import ResetFailure, ResetResult, ResetService
from .review import ApprovalResult, ConfidenceRange, ReviewQueue
from .scoring import ConfidenceThresholds, compute_confidence, confidence_bucket
from .stats import PipelineStats, compute_pipeline_stats
from .submission import submit_user_pattern

__all__ = [
    "ApprovalResult",
    "ConfidenceRange",
    "ConfidenceThresholds",
    "ExtractionStore",
    "IngestionEngine",
    "PipelineStats",
    "ResetFailure",
    "ResetResult",
    "ResetService",
    "ReviewQueue",
    "SourceRegistry",
    "compute_confidence",
    "compute_pipeline_stats",
    "confidence_bucket",
    "guess_material_type",
    "normalize_payload",
    "resource_type_for",
    "submit_user_pattern",
]
