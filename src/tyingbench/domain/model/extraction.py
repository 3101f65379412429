"""One candidate record per extraction attempt, plus its review lifecycle."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tyingbench.domain.errors import InvalidTransitionError
from tyingbench.domain.model.entity import Entity, utcnow
from tyingbench.domain.model.enums import PENDING_REVIEW_STATUSES, ExtractionStatus

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from tyingbench.domain.model.payload import ExtractedPayload


@dataclass(eq=False, kw_only=True)
class Extraction(Entity):
    """Append-only audit record.

    ``ingested_pattern_id`` is set if and only if ``status`` is ``ingested``.
    ``confidence`` and ``identity_key`` are derived from the payload and must
    be refreshed with ``replace_payload`` whenever it changes.
    """

    source_id: UUID
    payload: ExtractedPayload
    identity_key: str
    confidence: float
    status: ExtractionStatus = ExtractionStatus.EXTRACTED
    reviewer: str | None = None
    review_notes: str | None = None
    reviewed_at: datetime | None = None
    ingested_pattern_id: UUID | None = None
    ingested_at: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def pattern_name(self) -> str:
        return self.payload.pattern_name

    @property
    def is_pending_review(self) -> bool:
        return self.status in PENDING_REVIEW_STATUSES

    def replace_payload(
        self, payload: ExtractedPayload, *, identity_key: str, confidence: float
    ) -> None:
        if not self.is_pending_review:
            raise InvalidTransitionError(
                f"Extraction {self.id} is {self.status}; only pending extractions can be edited"
            )
        self.payload = payload
        self.identity_key = identity_key
        self.confidence = confidence
        self.updated_at = utcnow()

    def mark_normalized(self) -> None:
        if self.status is not ExtractionStatus.EXTRACTED:
            raise InvalidTransitionError(f"Extraction {self.id} is {self.status}, not extracted")
        self.status = ExtractionStatus.NORMALIZED
        self.updated_at = utcnow()

    def mark_ingested(self, pattern_id: UUID) -> None:
        if self.status is not ExtractionStatus.APPROVED:
            raise InvalidTransitionError(f"Extraction {self.id} is {self.status}, not approved")
        self.status = ExtractionStatus.INGESTED
        self.ingested_pattern_id = pattern_id
        self.ingested_at = utcnow()
        self.updated_at = self.ingested_at

    def revert_ingestion(self) -> None:
        """Undo ``mark_ingested``: back to ``extracted`` with no pattern reference."""

        if self.status is not ExtractionStatus.INGESTED:
            raise InvalidTransitionError(f"Extraction {self.id} is {self.status}, not ingested")
        self.status = ExtractionStatus.EXTRACTED
        self.ingested_pattern_id = None
        self.ingested_at = None
        self.updated_at = utcnow()
