"""Helpers that drive sources and extractions through the pipeline."""

from __future__ import annotations

from itertools import count
from typing import TYPE_CHECKING

from tyingbench.domain.model import SourceType

if TYPE_CHECKING:
    from tyingbench.app import PipelineServices
    from tyingbench.domain.model import Extraction, ExtractedPayload, Pattern, Source

_urls = count(1)


def next_url(prefix: str = "https://flies.example.com/patterns") -> str:
    return f"{prefix}/{next(_urls)}"


def scraped_source(
    services: PipelineServices,
    url: str | None = None,
    *,
    source_type: SourceType = SourceType.ARTICLE,
    content: str = "raw pattern text",
) -> Source:
    source = services.registry.register(url or next_url(), source_type, "woolly bugger")
    return services.registry.mark_scraped(source.id, content)


def pending_extraction(
    services: PipelineServices,
    payload: ExtractedPayload,
    *,
    url: str | None = None,
    source_type: SourceType = SourceType.ARTICLE,
) -> Extraction:
    source = scraped_source(services, url, source_type=source_type)
    return services.store.submit_extraction(source.id, payload)


def ingested_extraction(
    services: PipelineServices,
    payload: ExtractedPayload,
    *,
    url: str | None = None,
    source_type: SourceType = SourceType.ARTICLE,
) -> tuple[Extraction, Pattern]:
    extraction = pending_extraction(services, payload, url=url, source_type=source_type)
    result = services.review.approve(extraction.id, "tester")
    return result.extraction, result.pattern


def load_pattern(services: PipelineServices, slug: str) -> Pattern | None:
    with services.unit_of_work_factory() as uow:
        return uow.repositories.patterns.get_by_slug(slug)
