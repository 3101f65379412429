"""Initial pipeline and catalog schema.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from tyingbench.adapters.sqlalchemy.mappings import PayloadType, UTCDateTime

revision: str = "0001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_ENUM_LENGTH = 16


def _enum() -> sa.String:
    return sa.String(length=_ENUM_LENGTH)


def _child_columns() -> list[sa.Column[object]]:
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("pattern_id", sa.Uuid(), nullable=False),
    ]


def _provenance() -> sa.Column[object]:
    return sa.Column("source_extraction_id", sa.Uuid(), nullable=True)


def _child_constraints(table: str) -> list[sa.SchemaItem]:
    return [
        sa.ForeignKeyConstraint(
            ["pattern_id"],
            ["pattern.id"],
            name=f"fk_{table}_pattern_id_pattern",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["source_extraction_id"],
            ["extraction.id"],
            name=f"fk_{table}_source_extraction_id_extraction",
        ),
        sa.PrimaryKeyConstraint("id", name=f"pk_{table}"),
    ]


def _child_indexes(table: str) -> None:
    op.create_index(f"ix_{table}_pattern_id", table, ["pattern_id"])
    op.create_index(f"ix_{table}_source_extraction_id", table, ["source_extraction_id"])


def upgrade() -> None:
    op.create_table(
        "source",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("url", sa.String(), nullable=False),
        sa.Column("source_type", _enum(), nullable=False),
        sa.Column("title", sa.String(), nullable=True),
        sa.Column("creator", sa.String(), nullable=True),
        sa.Column("platform", sa.String(), nullable=True),
        sa.Column("query", sa.String(), nullable=True),
        sa.Column("status", _enum(), nullable=False),
        sa.Column("raw_content", sa.Text(), nullable=True),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
        sa.Column("scraped_at", UTCDateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_source"),
        sa.UniqueConstraint("url", name="uq_source_url"),
    )
    op.create_index("ix_source_status", "source", ["status"])

    op.create_table(
        "extraction",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("source_id", sa.Uuid(), nullable=False),
        sa.Column("payload", PayloadType(), nullable=False),
        sa.Column("identity_key", sa.String(), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False),
        sa.Column("status", _enum(), nullable=False),
        sa.Column("reviewer", sa.String(), nullable=True),
        sa.Column("review_notes", sa.Text(), nullable=True),
        sa.Column("reviewed_at", UTCDateTime(), nullable=True),
        sa.Column("ingested_pattern_id", sa.Uuid(), nullable=True),
        sa.Column("ingested_at", UTCDateTime(), nullable=True),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
        sa.CheckConstraint(
            "confidence >= 0 AND confidence <= 1", name="ck_extraction_confidence_range"
        ),
        sa.CheckConstraint(
            "(status = 'ingested') = (ingested_pattern_id IS NOT NULL)",
            name="ck_extraction_ingested_pattern_matches_status",
        ),
        sa.ForeignKeyConstraint(
            ["source_id"], ["source.id"], name="fk_extraction_source_id_source"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_extraction"),
    )
    op.create_index("ix_extraction_source_id", "extraction", ["source_id"])
    op.create_index("ix_extraction_identity_key", "extraction", ["identity_key"])
    op.create_index("ix_extraction_status", "extraction", ["status"])
    op.create_index("ix_extraction_ingested_pattern_id", "extraction", ["ingested_pattern_id"])

    op.create_table(
        "material",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("material_type", _enum(), nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_material"),
        sa.UniqueConstraint("name", "material_type", name="uq_material_name_type"),
    )

    op.create_table(
        "pattern",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("category", _enum(), nullable=True),
        sa.Column("difficulty", _enum(), nullable=True),
        sa.Column("water_type", _enum(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("origin", sa.Text(), nullable=True),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
        _provenance(),
        sa.ForeignKeyConstraint(
            ["source_extraction_id"],
            ["extraction.id"],
            name="fk_pattern_source_extraction_id_extraction",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_pattern"),
        sa.UniqueConstraint("slug", name="uq_pattern_slug"),
    )
    op.create_index("ix_pattern_source_extraction_id", "pattern", ["source_extraction_id"])

    op.create_table(
        "pattern_material",
        *_child_columns(),
        sa.Column("material_id", sa.Uuid(), nullable=False),
        sa.Column("color", sa.String(), nullable=True),
        sa.Column("size", sa.String(), nullable=True),
        sa.Column("required", sa.Boolean(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        _provenance(),
        sa.ForeignKeyConstraint(
            ["material_id"], ["material.id"], name="fk_pattern_material_material_id_material"
        ),
        *_child_constraints("pattern_material"),
    )
    _child_indexes("pattern_material")

    op.create_table(
        "variation",
        *_child_columns(),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("material_changes", sa.JSON(), nullable=False),
        _provenance(),
        *_child_constraints("variation"),
    )
    _child_indexes("variation")

    op.create_table(
        "substitution",
        *_child_columns(),
        sa.Column("original_material", sa.String(), nullable=False),
        sa.Column("substitute_material", sa.String(), nullable=False),
        sa.Column("substitution_type", _enum(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        _provenance(),
        *_child_constraints("substitution"),
    )
    _child_indexes("substitution")

    op.create_table(
        "resource",
        *_child_columns(),
        sa.Column("url", sa.String(), nullable=False),
        sa.Column("resource_type", _enum(), nullable=False),
        sa.Column("title", sa.String(), nullable=True),
        sa.Column("creator", sa.String(), nullable=False),
        sa.Column("platform", sa.String(), nullable=False),
        sa.Column("quality_score", sa.Integer(), nullable=False),
        _provenance(),
        *_child_constraints("resource"),
    )
    _child_indexes("resource")
    op.create_index("ix_resource_pattern_url", "resource", ["pattern_id", "url"])

    op.create_table(
        "tying_step",
        *_child_columns(),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(), nullable=True),
        sa.Column("instruction", sa.Text(), nullable=False),
        sa.Column("tip", sa.Text(), nullable=True),
        _provenance(),
        *_child_constraints("tying_step"),
    )
    _child_indexes("tying_step")

    op.create_table(
        "pattern_image",
        *_child_columns(),
        sa.Column("url", sa.String(), nullable=False),
        sa.Column("caption", sa.String(), nullable=True),
        _provenance(),
        *_child_constraints("pattern_image"),
    )
    _child_indexes("pattern_image")


def downgrade() -> None:
    for table in (
        "pattern_image",
        "tying_step",
        "resource",
        "substitution",
        "variation",
        "pattern_material",
        "pattern",
        "material",
        "extraction",
        "source",
    ):
        op.drop_table(table)
