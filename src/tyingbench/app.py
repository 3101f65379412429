"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from tyingbench.adapters.http_resilience import ResilientClient
from tyingbench.adapters.oracle import HttpExtractionOracle
from tyingbench.adapters.scraping import HttpContentFetcher
from tyingbench.adapters.snapshot import (
    load_reference,
    load_snapshot,
    snapshot_pattern,
    write_report,
    write_snapshot,
)
from tyingbench.adapters.sqlalchemy import SqlAlchemyPipelineUnitOfWork, is_started, startup
from tyingbench.config import get_pipeline_config, get_scraping_config, get_storage_config
from tyingbench.domain.audit import audit_catalog
from tyingbench.domain.pipeline import (
    ExtractionStore,
    IngestionEngine,
    ResetService,
    ReviewQueue,
    SourceRegistry,
    compute_pipeline_stats,
)
from tyingbench.runner import PipelineRunner

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from pathlib import Path

    from tyingbench.config import PipelineConfig
    from tyingbench.domain.audit import AuditReport, PatternSnapshot, ReferencePattern
    from tyingbench.domain.pipeline import PipelineStats
    from tyingbench.domain.ports import (
        ContentFetcher,
        ExtractionOracle,
        PipelineUnitOfWorkFactory,
    )
    from tyingbench.runner import StageResult


log = getLogger(__name__)


@dataclass(slots=True, kw_only=True)
class PipelineServices:
    """The pipeline's domain services, wired to one unit-of-work factory."""

    config: PipelineConfig
    unit_of_work_factory: PipelineUnitOfWorkFactory
    registry: SourceRegistry
    store: ExtractionStore
    ingestion: IngestionEngine
    review: ReviewQueue
    reset: ResetService

    def stats(self) -> PipelineStats:
        return compute_pipeline_stats(self.unit_of_work_factory, self.config.thresholds)


def build_services(
    *,
    unit_of_work_factory: PipelineUnitOfWorkFactory | None = None,
    config: PipelineConfig | None = None,
) -> PipelineServices:
    """Wire the services; the default factory requires the SQLAlchemy adapter to be started."""

    effective_config = config or get_pipeline_config()
    uow_factory = unit_of_work_factory or SqlAlchemyPipelineUnitOfWork
    ingestion = IngestionEngine(
        uow_factory, material_match_threshold=effective_config.material_match_threshold
    )
    return PipelineServices(
        config=effective_config,
        unit_of_work_factory=uow_factory,
        registry=SourceRegistry(uow_factory),
        store=ExtractionStore(
            uow_factory, min_description_length=effective_config.min_description_length
        ),
        ingestion=ingestion,
        review=ReviewQueue(uow_factory, ingestion, order=effective_config.review_order),
        reset=ResetService(uow_factory),
    )


def start_services(
    *, database_uri: str | None = None, config: PipelineConfig | None = None
) -> PipelineServices:
    """Start the database adapter (migrating to head) and wire the services."""

    if not is_started():
        startup(database_uri=database_uri)
    return build_services(config=config)


async def run_pipeline(
    services: PipelineServices,
    *,
    fetcher: ContentFetcher | None = None,
    oracle: ExtractionOracle | None = None,
    limit: int | None = None,
    scrape: bool = True,
    extract: bool = True,
) -> list[StageResult]:
    """Scrape discovered sources and/or extract scraped ones with the worker pool."""

    owned: list[ResilientClient | HttpExtractionOracle] = []
    if fetcher is None and scrape:
        client = ResilientClient(get_scraping_config().resilience)
        owned.append(client)
        fetcher = HttpContentFetcher(client)
    if oracle is None and extract:
        http_oracle = HttpExtractionOracle()
        owned.append(http_oracle)
        oracle = http_oracle

    runner = PipelineRunner(
        registry=services.registry,
        store=services.store,
        fetcher=fetcher,
        oracle=oracle,
        config=services.config,
    )
    results: list[StageResult] = []
    try:
        if scrape:
            results.append(await runner.scrape_pending(limit=limit))
        if extract:
            results.append(await runner.extract_pending(limit=limit))
    finally:
        for resource in owned:
            await resource.aclose()
    return results


def live_catalog_snapshot(services: PipelineServices) -> list[PatternSnapshot]:
    with services.unit_of_work_factory() as uow:
        return [snapshot_pattern(pattern) for pattern in uow.repositories.patterns.list_all()]


def export_catalog_snapshot(
    services: PipelineServices,
    path: Path,
    *,
    reference: Sequence[ReferencePattern] = (),
) -> Path:
    return write_snapshot(path, live_catalog_snapshot(services), reference)


def run_audit(
    services: PipelineServices | None = None,
    *,
    snapshot_path: Path | None = None,
    reference_path: Path | None = None,
    report_dir: Path | None = None,
    now: datetime | None = None,
) -> tuple[AuditReport, Path]:
    """Audit a snapshot file, or the live catalog, and write the JSON report.

    A reference file overrides the reference list embedded in the snapshot.
    """

    reference: list[ReferencePattern] = []
    if snapshot_path is not None:
        patterns, reference = load_snapshot(snapshot_path)
    elif services is not None:
        patterns = live_catalog_snapshot(services)
    else:
        raise ValueError("Either a snapshot file or a live catalog is required")
    if reference_path is not None:
        reference = load_reference(reference_path)

    report = audit_catalog(patterns, reference, now=now)
    target_dir = report_dir or get_storage_config().reports_dir()
    path = write_report(report, target_dir)
    log.info(f"Audited {report.total_patterns} patterns; report written to {path}")
    return report, path
