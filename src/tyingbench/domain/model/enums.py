"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class SourceType(StrEnum):
    ARTICLE = "article"
    VIDEO = "video"
    PDF = "pdf"
    OTHER = "other"


class SourceStatus(StrEnum):
    DISCOVERED = "discovered"
    SCRAPED = "scraped"
    EXTRACTED = "extracted"
    FAILED = "failed"


class ExtractionStatus(StrEnum):
    EXTRACTED = "extracted"
    NORMALIZED = "normalized"
    APPROVED = "approved"
    REJECTED = "rejected"
    INGESTED = "ingested"


PENDING_REVIEW_STATUSES: frozenset[ExtractionStatus] = frozenset(
    {ExtractionStatus.EXTRACTED, ExtractionStatus.NORMALIZED}
)


class FlyCategory(StrEnum):
    DRY = "dry"
    NYMPH = "nymph"
    STREAMER = "streamer"
    EMERGER = "emerger"
    SALTWATER = "saltwater"
    OTHER = "other"


class Difficulty(StrEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class WaterType(StrEnum):
    FRESHWATER = "freshwater"
    SALTWATER = "saltwater"
    BOTH = "both"


class MaterialType(StrEnum):
    HOOK = "hook"
    THREAD = "thread"
    TAIL = "tail"
    BODY = "body"
    RIB = "rib"
    THORAX = "thorax"
    WING = "wing"
    HACKLE = "hackle"
    BEAD = "bead"
    WEIGHT = "weight"
    OTHER = "other"


class SubstitutionType(StrEnum):
    EQUIVALENT = "equivalent"
    BUDGET = "budget"
    AESTHETIC = "aesthetic"
    AVAILABILITY = "availability"


class ResourceType(StrEnum):
    VIDEO = "video"
    BLOG = "blog"
    PDF = "pdf"


class ConfidenceBucket(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ReviewOrder(StrEnum):
    """Direction in which the review queue is sorted by confidence."""

    ASCENDING = "asc"
    DESCENDING = "desc"
