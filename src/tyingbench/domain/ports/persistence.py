"""Ports for persisting domain aggregates."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable
from uuid import UUID

from tyingbench.domain.model import Extraction, Pattern, Source
from tyingbench.domain.model.enums import ReviewOrder

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from tyingbench.domain.model import (
        ExtractionStatus,
        Material,
        MaterialType,
        SourceStatus,
        SourceType,
    )


@dataclass(frozen=True, slots=True, kw_only=True)
class ExtractionQuery:
    """Filters and pagination for listing extractions."""

    statuses: frozenset[ExtractionStatus] | None = None
    source_type: SourceType | None = None
    confidence_min: float | None = None
    confidence_max: float | None = None
    order: ReviewOrder = ReviewOrder.DESCENDING
    offset: int = 0
    limit: int | None = None


@dataclass(frozen=True, slots=True)
class ExtractionPage:
    items: list[Extraction]
    total: int


@dataclass(frozen=True, slots=True, kw_only=True)
class ResetFilter:
    """Scope of a reset run. Empty filter means every ingested extraction."""

    source_type: SourceType | None = None
    ingested_after: datetime | None = None
    ingested_before: datetime | None = None
    extraction_ids: frozenset[UUID] = field(default_factory=frozenset[UUID])


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...

    def get(self, entity_id: UUID) -> TEntity | None: ...


@runtime_checkable
class SourceRepository(Repository[Source], Protocol):
    """Persistence contract for discovered sources."""

    def get_by_url(self, url: str) -> Source | None: ...

    def list_by_status(
        self, status: SourceStatus, *, limit: int | None = None
    ) -> list[Source]: ...

    def count_by_status(self) -> dict[SourceStatus, int]: ...


@runtime_checkable
class ExtractionRepository(Repository[Extraction], Protocol):
    """Persistence contract for extractions and their review transitions."""

    def search(self, query: ExtractionQuery) -> ExtractionPage: ...

    def transition_status(
        self,
        extraction_id: UUID,
        *,
        from_statuses: frozenset[ExtractionStatus],
        to_status: ExtractionStatus,
        reviewer: str,
        notes: str | None,
        reviewed_at: datetime,
    ) -> bool:
        """Conditional update; returns ``False`` when the current status did not match."""
        ...

    def list_ingested(self, reset_filter: ResetFilter) -> list[Extraction]: ...

    def list_ingested_into(self, pattern_id: UUID) -> list[Extraction]: ...

    def count_by_status(self) -> dict[ExtractionStatus, int]: ...

    def count_confidence(
        self, *, at_least: float | None = None, below: float | None = None
    ) -> int: ...


@runtime_checkable
class PatternRepository(Repository[Pattern], Protocol):
    """Persistence contract for the canonical catalog."""

    def get_by_slug(self, slug: str) -> Pattern | None: ...

    def list_all(self) -> Sequence[Pattern]: ...

    def find_material(self, name: str, material_type: MaterialType) -> Material | None: ...

    def list_materials(self, material_type: MaterialType) -> Sequence[Material]: ...

    def delete_tagged_children(self, pattern_id: UUID, extraction_id: UUID) -> int:
        """Delete child rows of ``pattern_id`` tagged with ``extraction_id``; links first."""
        ...

    def delete_tagged_pattern(self, pattern_id: UUID, extraction_id: UUID) -> bool:
        """Delete the pattern only if it carries ``extraction_id`` as its provenance tag."""
        ...
