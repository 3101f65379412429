"""Read-only pipeline rollups for operators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from tyingbench.domain.model import ExtractionStatus, SourceStatus
from tyingbench.domain.pipeline.scoring import ConfidenceThresholds

if TYPE_CHECKING:
    from tyingbench.domain.ports import PipelineUnitOfWorkFactory


@dataclass(frozen=True, slots=True, kw_only=True)
class PipelineStats:
    sources_discovered: int
    sources_scraped: int
    sources_extracted: int
    sources_failed: int
    extractions_total: int
    extractions_high_confidence: int
    extractions_low_confidence: int
    patterns_normalized: int
    patterns_approved: int
    patterns_ingested: int
    patterns_rejected: int

    def to_dict(self) -> dict[str, int]:
        return {
            "sourcesDiscovered": self.sources_discovered,
            "sourcesScraped": self.sources_scraped,
            "sourcesExtracted": self.sources_extracted,
            "sourcesFailed": self.sources_failed,
            "extractionsTotal": self.extractions_total,
            "extractionsHighConfidence": self.extractions_high_confidence,
            "extractionsLowConfidence": self.extractions_low_confidence,
            "patternsNormalized": self.patterns_normalized,
            "patternsApproved": self.patterns_approved,
            "patternsIngested": self.patterns_ingested,
            "patternsRejected": self.patterns_rejected,
        }


def compute_pipeline_stats(
    unit_of_work_factory: PipelineUnitOfWorkFactory,
    thresholds: ConfidenceThresholds | None = None,
) -> PipelineStats:
    limits = thresholds or ConfidenceThresholds()
    with unit_of_work_factory() as uow:
        sources = uow.repositories.sources.count_by_status()
        extractions = uow.repositories.extractions.count_by_status()
        high = uow.repositories.extractions.count_confidence(at_least=limits.high)
        low = uow.repositories.extractions.count_confidence(below=limits.low)

    return PipelineStats(
        sources_discovered=sources.get(SourceStatus.DISCOVERED, 0),
        sources_scraped=sources.get(SourceStatus.SCRAPED, 0),
        sources_extracted=sources.get(SourceStatus.EXTRACTED, 0),
        sources_failed=sources.get(SourceStatus.FAILED, 0),
        extractions_total=sum(extractions.values()),
        extractions_high_confidence=high,
        extractions_low_confidence=low,
        patterns_normalized=extractions.get(ExtractionStatus.NORMALIZED, 0),
        patterns_approved=extractions.get(ExtractionStatus.APPROVED, 0),
        patterns_ingested=extractions.get(ExtractionStatus.INGESTED, 0),
        patterns_rejected=extractions.get(ExtractionStatus.REJECTED, 0),
    )
