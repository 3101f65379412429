"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import delete, func, select, update

from tyingbench.adapters.sqlalchemy.mappings import (
    PATTERN_CHILD_TABLES,
    extraction_table,
    material_table,
    pattern_table,
    source_table,
)
from tyingbench.domain.model import (
    Extraction,
    ExtractionStatus,
    Material,
    Pattern,
    ReviewOrder,
    Source,
    SourceStatus,
)
from tyingbench.domain.ports import ExtractionPage

if TYPE_CHECKING:
    import uuid
    from collections.abc import Sequence
    from datetime import datetime

    from sqlalchemy import Select
    from sqlalchemy.engine import CursorResult
    from sqlalchemy.orm import Session

    from tyingbench.domain.model import MaterialType
    from tyingbench.domain.ports import ExtractionQuery, ResetFilter


class SqlAlchemySourceRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Source) -> None:
        self.session.add(entity)

    def get(self, entity_id: uuid.UUID) -> Source | None:
        return self.session.get(Source, entity_id)

    def get_by_url(self, url: str) -> Source | None:
        stmt = select(Source).where(source_table.c.url == url)
        return self.session.execute(stmt).scalar_one_or_none()

    def list_by_status(self, status: SourceStatus, *, limit: int | None = None) -> list[Source]:
        stmt = (
            select(Source)
            .where(source_table.c.status == status)
            .order_by(source_table.c.created_at, source_table.c.id)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars())

    def count_by_status(self) -> dict[SourceStatus, int]:
        stmt = select(source_table.c.status, func.count()).group_by(source_table.c.status)
        return {SourceStatus(status): count for status, count in self.session.execute(stmt)}


class SqlAlchemyExtractionRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Extraction) -> None:
        self.session.add(entity)

    def get(self, entity_id: uuid.UUID) -> Extraction | None:
        return self.session.get(Extraction, entity_id)

    def search(self, query: ExtractionQuery) -> ExtractionPage:
        stmt = self._filtered(select(Extraction), query)
        count_stmt = self._filtered(select(func.count()).select_from(extraction_table), query)
        total = self.session.execute(count_stmt).scalar_one()

        confidence = extraction_table.c.confidence
        primary = confidence.asc() if query.order is ReviewOrder.ASCENDING else confidence.desc()
        stmt = stmt.order_by(primary, extraction_table.c.created_at, extraction_table.c.id)
        if query.offset:
            stmt = stmt.offset(query.offset)
        if query.limit is not None:
            stmt = stmt.limit(query.limit)
        return ExtractionPage(items=list(self.session.execute(stmt).scalars()), total=total)

    @staticmethod
    def _filtered[TSelect: Select[Any]](stmt: TSelect, query: ExtractionQuery) -> TSelect:
        if query.statuses is not None:
            stmt = stmt.where(extraction_table.c.status.in_(sorted(query.statuses)))
        if query.source_type is not None:
            stmt = stmt.join(source_table, source_table.c.id == extraction_table.c.source_id).where(
                source_table.c.source_type == query.source_type
            )
        if query.confidence_min is not None:
            stmt = stmt.where(extraction_table.c.confidence >= query.confidence_min)
        if query.confidence_max is not None:
            stmt = stmt.where(extraction_table.c.confidence <= query.confidence_max)
        return stmt

    def transition_status(
        self,
        extraction_id: uuid.UUID,
        *,
        from_statuses: frozenset[ExtractionStatus],
        to_status: ExtractionStatus,
        reviewer: str,
        notes: str | None,
        reviewed_at: datetime,
    ) -> bool:
        stmt = (
            update(extraction_table)
            .where(extraction_table.c.id == extraction_id)
            .where(extraction_table.c.status.in_(sorted(from_statuses)))
            .values(
                status=to_status,
                reviewer=reviewer,
                review_notes=notes,
                reviewed_at=reviewed_at,
                updated_at=reviewed_at,
            )
        )
        result = cast("CursorResult[tuple[()]]", self.session.execute(stmt))
        return result.rowcount == 1

    def list_ingested(self, reset_filter: ResetFilter) -> list[Extraction]:
        stmt = select(Extraction).where(extraction_table.c.status == ExtractionStatus.INGESTED)
        if reset_filter.source_type is not None:
            stmt = stmt.join(source_table, source_table.c.id == extraction_table.c.source_id).where(
                source_table.c.source_type == reset_filter.source_type
            )
        if reset_filter.ingested_after is not None:
            stmt = stmt.where(extraction_table.c.ingested_at >= reset_filter.ingested_after)
        if reset_filter.ingested_before is not None:
            stmt = stmt.where(extraction_table.c.ingested_at < reset_filter.ingested_before)
        if reset_filter.extraction_ids:
            stmt = stmt.where(extraction_table.c.id.in_(reset_filter.extraction_ids))
        stmt = stmt.order_by(extraction_table.c.ingested_at, extraction_table.c.id)
        return list(self.session.execute(stmt).scalars())

    def list_ingested_into(self, pattern_id: uuid.UUID) -> list[Extraction]:
        stmt = (
            select(Extraction)
            .where(extraction_table.c.status == ExtractionStatus.INGESTED)
            .where(extraction_table.c.ingested_pattern_id == pattern_id)
            .order_by(extraction_table.c.ingested_at, extraction_table.c.id)
        )
        return list(self.session.execute(stmt).scalars())

    def count_by_status(self) -> dict[ExtractionStatus, int]:
        stmt = select(extraction_table.c.status, func.count()).group_by(extraction_table.c.status)
        return {ExtractionStatus(status): count for status, count in self.session.execute(stmt)}

    def count_confidence(
        self, *, at_least: float | None = None, below: float | None = None
    ) -> int:
        stmt = select(func.count()).select_from(extraction_table)
        if at_least is not None:
            stmt = stmt.where(extraction_table.c.confidence >= at_least)
        if below is not None:
            stmt = stmt.where(extraction_table.c.confidence < below)
        return self.session.execute(stmt).scalar_one()


class SqlAlchemyPatternRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Pattern) -> None:
        self.session.add(entity)

    def get(self, entity_id: uuid.UUID) -> Pattern | None:
        return self.session.get(Pattern, entity_id)

    def get_by_slug(self, slug: str) -> Pattern | None:
        stmt = select(Pattern).where(pattern_table.c.slug == slug)
        return self.session.execute(stmt).scalar_one_or_none()

    def list_all(self) -> Sequence[Pattern]:
        stmt = select(Pattern).order_by(pattern_table.c.name, pattern_table.c.id)
        return self.session.execute(stmt).scalars().all()

    def find_material(self, name: str, material_type: MaterialType) -> Material | None:
        stmt = (
            select(Material)
            .where(func.lower(material_table.c.name) == name.strip().lower())
            .where(material_table.c.material_type == material_type)
            .order_by(material_table.c.created_at)
            .limit(1)
        )
        # Pending links must not be flushed before their material is resolved.
        with self.session.no_autoflush:
            return self.session.execute(stmt).scalar_one_or_none()

    def list_materials(self, material_type: MaterialType) -> Sequence[Material]:
        stmt = (
            select(Material)
            .where(material_table.c.material_type == material_type)
            .order_by(material_table.c.created_at, material_table.c.id)
        )
        with self.session.no_autoflush:
            return self.session.execute(stmt).scalars().all()

    def delete_tagged_children(self, pattern_id: uuid.UUID, extraction_id: uuid.UUID) -> int:
        self.session.flush()
        deleted = 0
        for table in PATTERN_CHILD_TABLES:
            stmt = (
                delete(table)
                .where(table.c.pattern_id == pattern_id)
                .where(table.c.source_extraction_id == extraction_id)
            )
            result = cast("CursorResult[tuple[()]]", self.session.execute(stmt))
            deleted += result.rowcount
        return deleted

    def delete_tagged_pattern(self, pattern_id: uuid.UUID, extraction_id: uuid.UUID) -> bool:
        self.session.flush()
        stmt = (
            delete(pattern_table)
            .where(pattern_table.c.id == pattern_id)
            .where(pattern_table.c.source_extraction_id == extraction_id)
        )
        result = cast("CursorResult[tuple[()]]", self.session.execute(stmt))
        return result.rowcount == 1
