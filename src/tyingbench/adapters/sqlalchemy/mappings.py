"""SQLAlchemy mapping metadata for the tyingbench domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers, relationship

from tyingbench.domain.model import (
    Difficulty,
    ExtractedPayload,
    Extraction,
    ExtractionStatus,
    FlyCategory,
    Material,
    MaterialType,
    Pattern,
    PatternImage,
    PatternMaterial,
    Resource,
    ResourceType,
    Source,
    SourceStatus,
    SourceType,
    Substitution,
    SubstitutionType,
    TyingStep,
    Variation,
    WaterType,
)

if TYPE_CHECKING:
    from enum import StrEnum

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class PayloadType(TypeDecorator[ExtractedPayload]):
    """Stores an ``ExtractedPayload`` as its camelCase JSON document."""

    impl = JSON
    cache_ok = True

    def process_bind_param(
        self, value: ExtractedPayload | None, dialect: Dialect
    ) -> dict[str, Any] | None:
        _ = dialect
        if value is None:
            return None
        return value.to_dict()

    def process_result_value(
        self, value: dict[str, Any] | None, dialect: Dialect
    ) -> ExtractedPayload | None:
        _ = dialect
        if value is None:
            return None
        return ExtractedPayload.from_dict(value)


def _enum_column_type(enum_type: type[StrEnum]) -> Enum:
    # Persist the lowercase values, not the member names.
    return Enum(
        enum_type,
        native_enum=False,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def _provenance_column() -> Column[uuid.UUID]:
    return Column(
        "source_extraction_id",
        UUIDColumnType,
        ForeignKey("extraction.id"),
        nullable=True,
        index=True,
    )


def _pattern_fk_column() -> Column[uuid.UUID]:
    return Column(
        "pattern_id",
        UUIDColumnType,
        ForeignKey("pattern.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


# Pipeline tables ---------------------------------------------------------------

source_table = Table(
    "source",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("url", String, nullable=False, unique=True),
    Column("source_type", _enum_column_type(SourceType), nullable=False),
    Column("title", String, nullable=True),
    Column("creator", String, nullable=True),
    Column("platform", String, nullable=True),
    Column("query", String, nullable=True),
    Column("status", _enum_column_type(SourceStatus), nullable=False, index=True),
    Column("raw_content", Text, nullable=True),
    Column("failure_reason", Text, nullable=True),
    Column("details", JSON, nullable=False, default=dict),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    Column("scraped_at", UTCDateTime(), nullable=True),
)

extraction_table = Table(
    "extraction",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("source_id", UUIDColumnType, ForeignKey("source.id"), nullable=False, index=True),
    Column("payload", PayloadType(), nullable=False),
    Column("identity_key", String, nullable=False, index=True),
    Column("confidence", Float, nullable=False),
    Column("status", _enum_column_type(ExtractionStatus), nullable=False, index=True),
    Column("reviewer", String, nullable=True),
    Column("review_notes", Text, nullable=True),
    Column("reviewed_at", UTCDateTime(), nullable=True),
    # Audit reference only: patterns may be removed by admins independently.
    Column("ingested_pattern_id", UUIDColumnType, nullable=True, index=True),
    Column("ingested_at", UTCDateTime(), nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    CheckConstraint("confidence >= 0 AND confidence <= 1", name="confidence_range"),
    CheckConstraint(
        "(status = 'ingested') = (ingested_pattern_id IS NOT NULL)",
        name="ingested_pattern_matches_status",
    ),
)

# Canonical catalog tables -------------------------------------------------------

material_table = Table(
    "material",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False),
    Column("material_type", _enum_column_type(MaterialType), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    UniqueConstraint("name", "material_type", name="uq_material_name_type"),
)

pattern_table = Table(
    "pattern",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False),
    Column("slug", String, nullable=False, unique=True),
    Column("category", _enum_column_type(FlyCategory), nullable=True),
    Column("difficulty", _enum_column_type(Difficulty), nullable=True),
    Column("water_type", _enum_column_type(WaterType), nullable=True),
    Column("description", Text, nullable=True),
    Column("origin", Text, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    _provenance_column(),
)

pattern_material_table = Table(
    "pattern_material",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    _pattern_fk_column(),
    Column("material_id", UUIDColumnType, ForeignKey("material.id"), nullable=False),
    Column("color", String, nullable=True),
    Column("size", String, nullable=True),
    Column("required", Boolean, nullable=False, default=True),
    Column("position", Integer, nullable=False),
    _provenance_column(),
)

variation_table = Table(
    "variation",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    _pattern_fk_column(),
    Column("name", String, nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column("material_changes", JSON, nullable=False, default=list),
    _provenance_column(),
)

substitution_table = Table(
    "substitution",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    _pattern_fk_column(),
    Column("original_material", String, nullable=False),
    Column("substitute_material", String, nullable=False),
    Column("substitution_type", _enum_column_type(SubstitutionType), nullable=False),
    Column("notes", Text, nullable=True),
    _provenance_column(),
)

resource_table = Table(
    "resource",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    _pattern_fk_column(),
    Column("url", String, nullable=False),
    Column("resource_type", _enum_column_type(ResourceType), nullable=False),
    Column("title", String, nullable=True),
    Column("creator", String, nullable=False),
    Column("platform", String, nullable=False),
    Column("quality_score", Integer, nullable=False, default=3),
    _provenance_column(),
    Index("ix_resource_pattern_url", "pattern_id", "url"),
)

tying_step_table = Table(
    "tying_step",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    _pattern_fk_column(),
    Column("position", Integer, nullable=False),
    Column("title", String, nullable=True),
    Column("instruction", Text, nullable=False),
    Column("tip", Text, nullable=True),
    _provenance_column(),
)

pattern_image_table = Table(
    "pattern_image",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    _pattern_fk_column(),
    Column("url", String, nullable=False),
    Column("caption", String, nullable=True),
    _provenance_column(),
)

# Deletion order used by the reset service: links first, pattern last.
PATTERN_CHILD_TABLES: tuple[Table, ...] = (
    pattern_material_table,
    variation_table,
    resource_table,
    substitution_table,
    tying_step_table,
    pattern_image_table,
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Source, source_table)
    mapper_registry.map_imperatively(Extraction, extraction_table)
    mapper_registry.map_imperatively(Material, material_table)

    mapper_registry.map_imperatively(
        PatternMaterial,
        pattern_material_table,
        properties={
            "material": relationship(Material, lazy="joined"),
        },
    )
    mapper_registry.map_imperatively(Variation, variation_table)
    mapper_registry.map_imperatively(Substitution, substitution_table)
    mapper_registry.map_imperatively(Resource, resource_table)
    mapper_registry.map_imperatively(TyingStep, tying_step_table)
    mapper_registry.map_imperatively(PatternImage, pattern_image_table)

    mapper_registry.map_imperatively(
        Pattern,
        pattern_table,
        properties={
            "_materials": relationship(
                PatternMaterial,
                cascade="all, delete-orphan",
                passive_deletes=True,
                lazy="selectin",
            ),
            "_variations": relationship(
                Variation, cascade="all, delete-orphan", passive_deletes=True, lazy="selectin"
            ),
            "_substitutions": relationship(
                Substitution, cascade="all, delete-orphan", passive_deletes=True, lazy="selectin"
            ),
            "_resources": relationship(
                Resource, cascade="all, delete-orphan", passive_deletes=True, lazy="selectin"
            ),
            "_tying_steps": relationship(
                TyingStep, cascade="all, delete-orphan", passive_deletes=True, lazy="selectin"
            ),
            "_images": relationship(
                PatternImage, cascade="all, delete-orphan", passive_deletes=True, lazy="selectin"
            ),
        },
    )

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
