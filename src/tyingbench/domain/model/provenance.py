from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from tyingbench.domain.model.entity import Entity

if TYPE_CHECKING:
    from uuid import UUID


class ProvenanceTagged(Protocol):
    """A canonical row that may carry a pipeline provenance tag."""

    @property
    def source_extraction_id(self) -> UUID | None: ...


@dataclass(eq=False, kw_only=True)
class ProvenanceTaggedMixin(Entity):
    """Capability: remembers which extraction created the row.

    ``None`` means the row was created directly by a user and must never be
    touched by the reset service.
    """

    source_extraction_id: UUID | None = None

    @property
    def is_pipeline_created(self) -> bool:
        return self.source_extraction_id is not None

    def created_by(self, extraction_id: UUID) -> bool:
        return self.source_extraction_id is not None and self.source_extraction_id == extraction_id
