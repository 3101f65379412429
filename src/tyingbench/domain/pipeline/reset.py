"""Compensating transaction that undoes prior ingestions.

Only rows whose provenance tag names the extraction being reset are deleted.
A pattern without a tag, or a child row without a tag, is never touched, no
matter what filter the caller passes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tyingbench.domain.ports import ResetFilter

if TYPE_CHECKING:
    from uuid import UUID

    from tyingbench.domain.model import Extraction
    from tyingbench.domain.ports import PipelineRepositories, PipelineUnitOfWorkFactory

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ResetFailure:
    extraction_id: UUID
    reason: str


@dataclass(slots=True)
class ResetResult:
    reset_count: int = 0
    deleted_pattern_count: int = 0
    deleted_row_count: int = 0
    failures: list[ResetFailure] = field(default_factory=list[ResetFailure])

    def to_dict(self) -> dict[str, object]:
        return {
            "resetCount": self.reset_count,
            "deletedPatternCount": self.deleted_pattern_count,
            "deletedRowCount": self.deleted_row_count,
            "failures": [
                {"extractionId": str(failure.extraction_id), "reason": failure.reason}
                for failure in self.failures
            ],
        }


class ResetService:
    """Reverse ingestions, one unit of work per extraction.

    Resetting the extraction that created a pattern also reverts every other
    extraction merged into it, then deletes the pattern. Resetting an
    extraction that was merged into someone else's pattern only removes the
    rows it contributed.
    """

    def __init__(self, unit_of_work_factory: PipelineUnitOfWorkFactory) -> None:
        self._uow_factory = unit_of_work_factory

    def reset_ingested(self, reset_filter: ResetFilter | None = None) -> ResetResult:
        scope = reset_filter or ResetFilter()
        with self._uow_factory() as uow:
            ingested = uow.repositories.extractions.list_ingested(scope)
            candidates = [extraction.id for extraction in ingested]

        result = ResetResult()
        for extraction_id in candidates:
            try:
                self._reset_one(extraction_id, result)
            except Exception as exc:  # noqa: BLE001
                log.warning("Reset of extraction %s failed: %s", extraction_id, exc)
                result.failures.append(ResetFailure(extraction_id, str(exc)))

        log.info(
            "Reset %d extractions, deleted %d patterns (%d failures)",
            result.reset_count,
            result.deleted_pattern_count,
            len(result.failures),
        )
        return result

    def _reset_one(self, extraction_id: UUID, result: ResetResult) -> None:
        with self._uow_factory() as uow:
            repos = uow.repositories
            extraction = repos.extractions.get(extraction_id)
            if extraction is None or extraction.ingested_pattern_id is None:
                # Already reverted, e.g. cascaded from its pattern's origin.
                return
            pattern_id = extraction.ingested_pattern_id
            pattern = repos.patterns.get(pattern_id)

            if pattern is None:
                extraction.revert_ingestion()
                uow.commit()
                result.reset_count += 1
                log.info(
                    "Extraction %s reverted; pattern %s no longer exists", extraction_id, pattern_id
                )
                return

            if not pattern.created_by(extraction.id):
                deleted = self._revert_contributor(repos, extraction, pattern_id)
                uow.commit()
                result.reset_count += 1
                result.deleted_row_count += deleted
                log.info(
                    "Extraction %s reverted from %s (%d rows)", extraction_id, pattern.slug, deleted
                )
                return

            if pattern.has_untagged_children():
                result.failures.append(
                    ResetFailure(
                        extraction_id,
                        f"Pattern {pattern.slug} has user-created rows; left in place",
                    )
                )
                log.warning(
                    "Skipping reset of %s: pattern %s has user-created rows",
                    extraction_id,
                    pattern.slug,
                )
                return

            contributors = repos.extractions.list_ingested_into(pattern_id)
            deleted = 0
            for contributor in contributors:
                deleted += self._revert_contributor(repos, contributor, pattern_id)
            if not repos.patterns.delete_tagged_pattern(pattern_id, extraction.id):
                raise RuntimeError(f"Pattern {pattern_id} changed provenance during reset")
            uow.commit()

        result.reset_count += len(contributors)
        result.deleted_row_count += deleted
        result.deleted_pattern_count += 1
        log.info(
            "Extraction %s reverted; pattern %s deleted with %d child rows (%d extractions)",
            extraction_id,
            pattern.slug,
            deleted,
            len(contributors),
        )

    @staticmethod
    def _revert_contributor(
        repos: PipelineRepositories, extraction: Extraction, pattern_id: UUID
    ) -> int:
        extraction.revert_ingestion()
        return repos.patterns.delete_tagged_children(pattern_id, extraction.id)
