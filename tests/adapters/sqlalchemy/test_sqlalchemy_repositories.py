from __future__ import annotations

from typing import TYPE_CHECKING

from tyingbench.domain.model import (
    PENDING_REVIEW_STATUSES,
    ExtractionStatus,
    Material,
    MaterialType,
    Pattern,
    ReviewOrder,
    SourceStatus,
    utcnow,
)
from tyingbench.domain.ports import ExtractionQuery
from tests.helpers.payloads import minimal_payload, woolly_bugger_payload
from tests.helpers.pipeline import ingested_extraction, pending_extraction

if TYPE_CHECKING:
    from tyingbench.app import PipelineServices


def test_source_counts_by_status(services: PipelineServices) -> None:
    services.registry.register("https://flies.example.com/a")
    services.registry.register("https://flies.example.com/b")
    pending_extraction(services, minimal_payload("Adams"))

    with services.unit_of_work_factory() as uow:
        counts = uow.repositories.sources.count_by_status()
        limited = uow.repositories.sources.list_by_status(SourceStatus.DISCOVERED, limit=1)

    assert counts == {SourceStatus.DISCOVERED: 2, SourceStatus.EXTRACTED: 1}
    assert [source.url for source in limited] == ["https://flies.example.com/a"]


def test_search_orders_and_counts(services: PipelineServices) -> None:
    high = pending_extraction(services, woolly_bugger_payload())
    low = pending_extraction(services, minimal_payload("Zebra Midge"))

    with services.unit_of_work_factory() as uow:
        repo = uow.repositories.extractions
        ascending = repo.search(
            ExtractionQuery(statuses=PENDING_REVIEW_STATUSES, order=ReviewOrder.ASCENDING)
        )
        paged = repo.search(ExtractionQuery(offset=1, limit=1))
        bounded = repo.search(ExtractionQuery(confidence_min=0.5))

    assert [item.id for item in ascending.items] == [low.id, high.id]
    assert paged.total == 2
    assert [item.id for item in paged.items] == [low.id]
    assert [item.id for item in bounded.items] == [high.id]


def test_transition_status_is_conditional(services: PipelineServices) -> None:
    extraction = pending_extraction(services, minimal_payload("Adams"))

    with services.unit_of_work_factory() as uow:
        repo = uow.repositories.extractions
        won = repo.transition_status(
            extraction.id,
            from_statuses=PENDING_REVIEW_STATUSES,
            to_status=ExtractionStatus.REJECTED,
            reviewer="alice",
            notes="first",
            reviewed_at=utcnow(),
        )
        lost = repo.transition_status(
            extraction.id,
            from_statuses=PENDING_REVIEW_STATUSES,
            to_status=ExtractionStatus.APPROVED,
            reviewer="bob",
            notes=None,
            reviewed_at=utcnow(),
        )
        uow.commit()

    assert (won, lost) == (True, False)
    stored = services.store.get(extraction.id)
    assert stored.status is ExtractionStatus.REJECTED
    assert stored.review_notes == "first"


def test_find_material_is_case_insensitive_per_type(services: PipelineServices) -> None:
    with services.unit_of_work_factory() as uow:
        pattern = Pattern(name="Adams", slug="adams")
        pattern.link_material(Material(name="Dry Fly Hook", material_type=MaterialType.HOOK))
        uow.repositories.patterns.add(pattern)
        uow.commit()

    with services.unit_of_work_factory() as uow:
        patterns = uow.repositories.patterns
        assert patterns.find_material("  dry fly HOOK ", MaterialType.HOOK) is not None
        assert patterns.find_material("Dry Fly Hook", MaterialType.THREAD) is None


def test_tagged_deletes_skip_untagged_rows(services: PipelineServices) -> None:
    extraction, pattern = ingested_extraction(services, woolly_bugger_payload())
    with services.unit_of_work_factory() as uow:
        stored = uow.repositories.patterns.get(pattern.id)
        assert stored is not None
        stored.add_image(url="https://img.example.com/user.jpg")
        uow.commit()

    with services.unit_of_work_factory() as uow:
        patterns = uow.repositories.patterns
        deleted = patterns.delete_tagged_children(pattern.id, extraction.id)
        refused = patterns.delete_tagged_pattern(pattern.id, pattern.id)
        uow.commit()

    assert deleted == 8
    assert refused is False
    with services.unit_of_work_factory() as uow:
        remaining = uow.repositories.patterns.get(pattern.id)
        assert remaining is not None
        assert [child.source_extraction_id for child in remaining.iter_children()] == [None]


def test_list_ingested_into_pattern(services: PipelineServices) -> None:
    first, pattern = ingested_extraction(services, woolly_bugger_payload())
    second, _ = ingested_extraction(services, woolly_bugger_payload())

    with services.unit_of_work_factory() as uow:
        contributors = uow.repositories.extractions.list_ingested_into(pattern.id)

    assert [item.id for item in contributors] == [first.id, second.id]
