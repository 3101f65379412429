from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from tyingbench.domain.errors import InvalidTransitionError, NotFoundError, ValidationError
from tyingbench.domain.model import SourceStatus, SourceType

if TYPE_CHECKING:
    from tyingbench.app import PipelineServices


def test_register_stores_metadata_and_canonical_url(services: PipelineServices) -> None:
    source = services.registry.register(
        "HTTPS://Flies.Example.com/woolly/#top",
        SourceType.VIDEO,
        "woolly bugger",
        {"title": "Woolly Bugger", "creator": "Tim Flagler", "duration": 312},
    )

    stored = services.registry.get(source.id)
    assert stored.url == "https://flies.example.com/woolly"
    assert stored.status is SourceStatus.DISCOVERED
    assert stored.title == "Woolly Bugger"
    assert stored.creator == "Tim Flagler"
    assert stored.details == {"duration": 312}


def test_register_is_idempotent_per_url(services: PipelineServices) -> None:
    first = services.registry.register("https://flies.example.com/adams", SourceType.ARTICLE)
    second = services.registry.register("https://flies.example.com/adams/", SourceType.VIDEO)

    assert second.id == first.id
    assert second.source_type is SourceType.ARTICLE
    assert len(services.registry.list_by_status(SourceStatus.DISCOVERED)) == 1


def test_register_rejects_relative_url(services: PipelineServices) -> None:
    with pytest.raises(ValidationError):
        services.registry.register("not a url")


def test_scrape_and_fail_transitions(services: PipelineServices) -> None:
    scraped = services.registry.register("https://flies.example.com/1")
    failed = services.registry.register("https://flies.example.com/2")

    services.registry.mark_scraped(scraped.id, "content")
    services.registry.mark_failed(failed.id, "HTTP 404")

    assert [s.id for s in services.registry.list_by_status(SourceStatus.SCRAPED)] == [scraped.id]
    stored = services.registry.get(failed.id)
    assert stored.status is SourceStatus.FAILED
    assert stored.failure_reason == "HTTP 404"
    with pytest.raises(InvalidTransitionError):
        services.registry.mark_scraped(failed.id, "too late")


def test_unknown_source_raises_not_found(services: PipelineServices) -> None:
    with pytest.raises(NotFoundError):
        services.registry.get(uuid4())
