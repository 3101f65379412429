"""Review queue: listing pending extractions and exactly-once review actions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tyingbench.domain.errors import ConflictError, NotFoundError, ValidationError
from tyingbench.domain.model import PENDING_REVIEW_STATUSES, ExtractionStatus, ReviewOrder, utcnow
from tyingbench.domain.ports import ExtractionPage, ExtractionQuery

if TYPE_CHECKING:
    from uuid import UUID

    from tyingbench.domain.model import Extraction, Pattern, SourceType
    from tyingbench.domain.pipeline.ingestion import IngestionEngine
    from tyingbench.domain.ports import PipelineUnitOfWorkFactory

log = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


@dataclass(frozen=True, slots=True)
class ConfidenceRange:
    minimum: float | None = None
    maximum: float | None = None

    def __post_init__(self) -> None:
        for bound in (self.minimum, self.maximum):
            if bound is not None and not 0.0 <= bound <= 1.0:
                raise ValidationError(f"Confidence bound {bound} is outside [0, 1]")
        if self.minimum is not None and self.maximum is not None and self.minimum > self.maximum:
            raise ValidationError("confidenceMin must not exceed confidenceMax")


@dataclass(frozen=True, slots=True)
class ApprovalResult:
    extraction: Extraction
    pattern: Pattern


class ReviewQueue:
    """Human review entry point.

    ``approve`` and ``reject`` are conditional updates guarded by the current
    status, so two reviewers racing on the same extraction get exactly one
    success and one ``ConflictError``.
    """

    def __init__(
        self,
        unit_of_work_factory: PipelineUnitOfWorkFactory,
        ingestion: IngestionEngine,
        *,
        order: ReviewOrder = ReviewOrder.DESCENDING,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._ingestion = ingestion
        self._order = order

    @property
    def order(self) -> ReviewOrder:
        return self._order

    def list_pending(
        self,
        source_type: SourceType | None = None,
        confidence_range: ConfidenceRange | None = None,
        *,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> ExtractionPage:
        return self.list_extractions(
            PENDING_REVIEW_STATUSES,
            source_type=source_type,
            confidence_range=confidence_range,
            page=page,
            limit=limit,
        )

    def list_extractions(
        self,
        statuses: frozenset[ExtractionStatus] | None = None,
        *,
        source_type: SourceType | None = None,
        confidence_range: ConfidenceRange | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> ExtractionPage:
        if page < 1:
            raise ValidationError("page must be >= 1")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        bounds = confidence_range or ConfidenceRange()
        query = ExtractionQuery(
            statuses=statuses,
            source_type=source_type,
            confidence_min=bounds.minimum,
            confidence_max=bounds.maximum,
            order=self._order,
            offset=(page - 1) * limit,
            limit=limit,
        )
        with self._uow_factory() as uow:
            return uow.repositories.extractions.search(query)

    def approve(
        self, extraction_id: UUID, reviewer: str, notes: str | None = None
    ) -> ApprovalResult:
        """Approve a pending extraction and ingest it.

        Validation failures leave the status untouched. Once the conditional
        update has won, ingestion failures (duplicate identity, rolled-back
        transaction) leave the extraction ``approved`` so it can be retried.
        """

        self._validate_for_approval(extraction_id)
        self._transition(extraction_id, ExtractionStatus.APPROVED, reviewer, notes)
        log.info("Extraction %s approved by %s", extraction_id, reviewer)
        return self._ingest(extraction_id)

    def reject(self, extraction_id: UUID, reviewer: str, notes: str) -> Extraction:
        if not notes or not notes.strip():
            raise ValidationError("Rejection notes are required")
        self._require(extraction_id)
        self._transition(extraction_id, ExtractionStatus.REJECTED, reviewer, notes)
        log.info("Extraction %s rejected by %s", extraction_id, reviewer)
        return self._require(extraction_id)

    def retry_ingest(self, extraction_id: UUID) -> ApprovalResult:
        """Re-run ingestion for an extraction left ``approved`` by an earlier failure."""

        extraction = self._require(extraction_id)
        if extraction.status is not ExtractionStatus.APPROVED:
            raise ConflictError(
                f"Extraction {extraction_id} is {extraction.status}; only approved "
                "extractions can be re-ingested"
            )
        return self._ingest(extraction_id)

    def _ingest(self, extraction_id: UUID) -> ApprovalResult:
        pattern = self._ingestion.ingest(self._require(extraction_id))
        return ApprovalResult(extraction=self._require(extraction_id), pattern=pattern)

    def _validate_for_approval(self, extraction_id: UUID) -> None:
        extraction = self._require(extraction_id)
        if not extraction.is_pending_review:
            raise ConflictError(
                f"Extraction {extraction_id} is {extraction.status}; it is no longer pending review"
            )
        problems = extraction.payload.validation_problems()
        if problems:
            raise ValidationError(
                f"Extraction {extraction_id} cannot be approved: {'; '.join(problems)}",
                problems=problems,
            )

    def _transition(
        self, extraction_id: UUID, target: ExtractionStatus, reviewer: str, notes: str | None
    ) -> None:
        if not reviewer or not reviewer.strip():
            raise ValidationError("A reviewer is required")
        with self._uow_factory() as uow:
            won = uow.repositories.extractions.transition_status(
                extraction_id,
                from_statuses=PENDING_REVIEW_STATUSES,
                to_status=target,
                reviewer=reviewer.strip(),
                notes=notes,
                reviewed_at=utcnow(),
            )
            if not won:
                raise ConflictError(
                    f"Extraction {extraction_id} was already reviewed by someone else"
                )
            uow.commit()

    def _require(self, extraction_id: UUID) -> Extraction:
        with self._uow_factory() as uow:
            extraction = uow.repositories.extractions.get(extraction_id)
            if extraction is None:
                raise NotFoundError(f"Extraction {extraction_id} not found")
            return extraction
