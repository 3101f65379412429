"""Extraction store: one scored candidate record per extraction attempt."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tyingbench.domain.errors import InvalidTransitionError, NotFoundError
from tyingbench.domain.identity import pattern_identity_key
from tyingbench.domain.model import Extraction, ExtractionStatus, SourceStatus
from tyingbench.domain.pipeline.normalization import normalize_payload
from tyingbench.domain.pipeline.scoring import DEFAULT_MIN_DESCRIPTION_LENGTH, compute_confidence
from tyingbench.domain.ports import ExtractionQuery

if TYPE_CHECKING:
    from uuid import UUID

    from tyingbench.domain.model import ExtractedPayload
    from tyingbench.domain.ports import PipelineUnitOfWorkFactory

log = logging.getLogger(__name__)


class ExtractionStore:
    def __init__(
        self,
        unit_of_work_factory: PipelineUnitOfWorkFactory,
        *,
        min_description_length: int = DEFAULT_MIN_DESCRIPTION_LENGTH,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._min_description_length = min_description_length

    def score(self, payload: ExtractedPayload) -> float:
        return compute_confidence(payload, min_description_length=self._min_description_length)

    def submit_extraction(self, source_id: UUID, payload: ExtractedPayload) -> Extraction:
        """Store a new candidate for a scraped source and move the source to ``extracted``."""

        with self._uow_factory() as uow:
            source = uow.repositories.sources.get(source_id)
            if source is None:
                raise NotFoundError(f"Source {source_id} not found")
            if source.status is not SourceStatus.SCRAPED:
                raise InvalidTransitionError(
                    f"Source {source_id} is {source.status}; extractions require a scraped source"
                )
            source.mark_extracted()
            extraction = Extraction(
                source_id=source.id,
                payload=payload,
                identity_key=pattern_identity_key(payload.pattern_name),
                confidence=self.score(payload),
            )
            uow.repositories.extractions.add(extraction)
            uow.commit()

        log.info(
            "Stored extraction %s for %r (confidence %.2f)",
            extraction.id,
            payload.pattern_name,
            extraction.confidence,
        )
        return extraction

    def get(self, extraction_id: UUID) -> Extraction:
        with self._uow_factory() as uow:
            extraction = uow.repositories.extractions.get(extraction_id)
            if extraction is None:
                raise NotFoundError(f"Extraction {extraction_id} not found")
            return extraction

    def update_payload(self, extraction_id: UUID, payload: ExtractedPayload) -> Extraction:
        """Replace a pending extraction's payload; confidence and identity follow."""

        with self._uow_factory() as uow:
            extraction = uow.repositories.extractions.get(extraction_id)
            if extraction is None:
                raise NotFoundError(f"Extraction {extraction_id} not found")
            extraction.replace_payload(
                payload,
                identity_key=pattern_identity_key(payload.pattern_name),
                confidence=self.score(payload),
            )
            uow.commit()
        log.info(
            "Payload of extraction %s replaced (confidence %.2f)", extraction_id, extraction.confidence
        )
        return extraction

    def normalize_extractions(self, *, limit: int | None = None) -> list[Extraction]:
        """Clean every ``extracted`` payload and move it to ``normalized``."""

        normalized: list[Extraction] = []
        with self._uow_factory() as uow:
            page = uow.repositories.extractions.search(
                ExtractionQuery(statuses=frozenset({ExtractionStatus.EXTRACTED}), limit=limit)
            )
            for extraction in page.items:
                payload = normalize_payload(extraction.payload)
                extraction.replace_payload(
                    payload,
                    identity_key=pattern_identity_key(payload.pattern_name),
                    confidence=self.score(payload),
                )
                extraction.mark_normalized()
                normalized.append(extraction)
            uow.commit()

        log.info("Normalized %d extractions", len(normalized))
        return normalized
