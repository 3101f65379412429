from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from tyingbench.domain.errors import InvalidTransitionError, NotFoundError
from tyingbench.domain.model import (
    ExtractedMaterial,
    ExtractedPayload,
    ExtractionStatus,
    MaterialType,
    SourceStatus,
)
from tests.helpers.payloads import minimal_payload, woolly_bugger_payload
from tests.helpers.pipeline import pending_extraction, scraped_source

if TYPE_CHECKING:
    from tyingbench.app import PipelineServices


def test_submit_extraction_scores_and_keys_payload(services: PipelineServices) -> None:
    source = scraped_source(services)

    extraction = services.store.submit_extraction(source.id, woolly_bugger_payload())

    stored = services.store.get(extraction.id)
    assert stored.status is ExtractionStatus.EXTRACTED
    assert stored.identity_key == "woolly-bugger"
    assert stored.confidence == 1.0
    assert stored.payload == woolly_bugger_payload()
    assert services.registry.get(source.id).status is SourceStatus.EXTRACTED


def test_submit_requires_scraped_source(services: PipelineServices) -> None:
    discovered = services.registry.register("https://flies.example.com/new")

    with pytest.raises(InvalidTransitionError):
        services.store.submit_extraction(discovered.id, woolly_bugger_payload())
    with pytest.raises(NotFoundError):
        services.store.submit_extraction(uuid4(), woolly_bugger_payload())


def test_update_payload_recomputes_confidence_and_key(services: PipelineServices) -> None:
    extraction = pending_extraction(services, minimal_payload("Woolley Bugger"))

    updated = services.store.update_payload(extraction.id, woolly_bugger_payload())

    assert updated.identity_key == "woolly-bugger"
    assert updated.confidence == 1.0
    assert services.store.get(extraction.id).payload.pattern_name == "Woolly Bugger"


def test_update_payload_refused_after_rejection(services: PipelineServices) -> None:
    extraction = pending_extraction(services, minimal_payload("Adams"))
    services.review.reject(extraction.id, "tester", "not a fly pattern")

    with pytest.raises(InvalidTransitionError):
        services.store.update_payload(extraction.id, woolly_bugger_payload())


def test_normalize_extractions_cleans_and_advances(services: PipelineServices) -> None:
    payload = ExtractedPayload(
        pattern_name="  Prince Nymph ",
        materials=(
            ExtractedMaterial(name="Nymph hook", required=False, position=3),
            ExtractedMaterial(name="Black thread", required=False, position=5),
            ExtractedMaterial(name="Peacock herl", material_type=MaterialType.BODY, position=6),
            ExtractedMaterial(name="Ostrich herl", material_type=MaterialType.BODY, position=7),
        ),
    )
    extraction = pending_extraction(services, payload)
    before = services.store.get(extraction.id).confidence

    normalized = services.store.normalize_extractions()

    assert [item.id for item in normalized] == [extraction.id]
    stored = services.store.get(extraction.id)
    assert stored.status is ExtractionStatus.NORMALIZED
    assert stored.payload.pattern_name == "Prince Nymph"
    assert [(m.name, m.material_type, m.required, m.position) for m in stored.payload.materials] == [
        ("Nymph hook", MaterialType.HOOK, True, 1),
        ("Black thread", MaterialType.THREAD, True, 2),
        ("Peacock herl", MaterialType.BODY, True, 3),
        ("Ostrich herl", MaterialType.BODY, True, 4),
    ]
    assert stored.confidence >= before
    assert services.store.normalize_extractions() == []
