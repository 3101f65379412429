"""Domain model public API."""

from __future__ import annotations

from tyingbench.domain.model.catalog import (
    Material,
    Pattern,
    PatternChild,
    PatternImage,
    PatternMaterial,
    Resource,
    Substitution,
    TyingStep,
    Variation,
)
from tyingbench.domain.model.entity import Entity, new_id, utcnow
from tyingbench.domain.model.enums import (
    PENDING_REVIEW_STATUSES,
    ConfidenceBucket,
    Difficulty,
    ExtractionStatus,
    FlyCategory,
    MaterialType,
    ResourceType,
    ReviewOrder,
    SourceStatus,
    SourceType,
    SubstitutionType,
    WaterType,
)
from tyingbench.domain.model.extraction import Extraction
from tyingbench.domain.model.payload import (
    ExtractedMaterial,
    ExtractedPayload,
    ExtractedStep,
    ExtractedSubstitution,
    ExtractedVariation,
    MaterialChange,
)
from tyingbench.domain.model.provenance import ProvenanceTagged, ProvenanceTaggedMixin
from tyingbench.domain.model.source import Source

__all__ = [
    "PENDING_REVIEW_STATUSES",
    "ConfidenceBucket",
    "Difficulty",
    "Entity",
    "ExtractedMaterial",
    "ExtractedPayload",
    "ExtractedStep",
    "ExtractedSubstitution",
    "ExtractedVariation",
    "Extraction",
    "ExtractionStatus",
    "FlyCategory",
    "Material",
    "MaterialChange",
    "MaterialType",
    "Pattern",
    "PatternChild",
    "PatternImage",
    "PatternMaterial",
    "ProvenanceTagged",
    "ProvenanceTaggedMixin",
    "Resource",
    "ResourceType",
    "ReviewOrder",
    "Source",
    "SourceStatus",
    "SourceType",
    "Substitution",
    "SubstitutionType",
    "TyingStep",
    "Variation",
    "WaterType",
    "new_id",
    "utcnow",
]
