from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tyingbench.domain.errors import IngestionTransactionError
from tyingbench.domain.model import (
    ExtractedMaterial,
    ExtractedStep,
    ExtractedSubstitution,
    ExtractedVariation,
    ExtractionStatus,
    MaterialType,
    ResourceType,
    SourceType,
)
from tyingbench.domain.pipeline import ingestion as ingestion_module
from tests.helpers.payloads import materials, woolly_bugger_payload
from tests.helpers.pipeline import ingested_extraction, load_pattern, pending_extraction

if TYPE_CHECKING:
    from tyingbench.app import PipelineServices


def test_created_pattern_rows_are_all_tagged(services: PipelineServices) -> None:
    payload = woolly_bugger_payload(
        variations=(ExtractedVariation(name="Beadhead"),),
        substitutions=(
            ExtractedSubstitution(original_material="Marabou", substitute_material="Rabbit strip"),
        ),
        image_urls=("https://img.example.com/wb.jpg",),
    )
    extraction, _ = ingested_extraction(services, payload, source_type=SourceType.VIDEO)

    pattern = load_pattern(services, "woolly-bugger")

    assert pattern is not None
    assert pattern.source_extraction_id == extraction.id
    children = list(pattern.iter_children())
    assert len(children) == 5 + 1 + 1 + 2 + 1 + 1
    assert all(child.source_extraction_id == extraction.id for child in children)
    (resource,) = pattern.resources
    assert resource.resource_type is ResourceType.VIDEO
    assert resource.quality_score == 3
    assert [link.position for link in pattern.materials] == [1, 2, 3, 4, 5]


def test_merge_is_additive(services: PipelineServices) -> None:
    first, _ = ingested_extraction(services, woolly_bugger_payload())
    second_payload = woolly_bugger_payload(
        pattern_name="Woolly Bugger Fly",
        description="Something else entirely, which must not overwrite the stored text.",
        materials=materials(
            ("Chenille", MaterialType.BODY),
            ("Cone head", MaterialType.BEAD),
        ),
        steps=(ExtractedStep(position=1, instruction="Different steps are ignored."),),
    )
    second, pattern = ingested_extraction(services, second_payload)

    assert pattern.source_extraction_id == first.id
    stored = load_pattern(services, "woolly-bugger")
    assert stored is not None
    assert stored.description == woolly_bugger_payload().description
    names = [link.material.name for link in stored.materials]
    assert names[-1] == "Cone head"
    assert names.count("Chenille") == 1
    assert [link.position for link in stored.materials][-1] == 6
    assert len(stored.tying_steps) == 2
    assert all(step.source_extraction_id == first.id for step in stored.tying_steps)
    assert len(stored.resources) == 2
    assert services.store.get(second.id).ingested_pattern_id == pattern.id


def test_materials_are_shared_between_patterns(services: PipelineServices) -> None:
    ingested_extraction(services, woolly_bugger_payload())
    ingested_extraction(
        services,
        woolly_bugger_payload(
            pattern_name="Crystal Bugger",
            materials=materials(
                ("Saddle hackle", MaterialType.HACKLE),
                ("Crystal chenille", MaterialType.BODY),
            ),
        ),
    )

    woolly = load_pattern(services, "woolly-bugger")
    crystal = load_pattern(services, "crystal-bugger")
    assert woolly is not None
    assert crystal is not None
    hackle = {link.material_type: link.material for link in woolly.materials}[MaterialType.HACKLE]
    assert crystal.materials[0].material.id == hackle.id


def test_material_type_distinguishes_shared_rows(services: PipelineServices) -> None:
    payload = woolly_bugger_payload(
        pattern_name="Deer Hair Caddis",
        materials=(
            ExtractedMaterial(name="Deer hair", material_type=MaterialType.WING, position=1),
            ExtractedMaterial(name="Deer hair", material_type=MaterialType.HACKLE, position=2),
        ),
    )
    _, pattern = ingested_extraction(services, payload)

    first, second = pattern.materials
    assert first.material.id != second.material.id


def test_failed_ingestion_rolls_back_and_can_be_retried(
    services: PipelineServices, monkeypatch: pytest.MonkeyPatch
) -> None:
    extraction = pending_extraction(services, woolly_bugger_payload())

    def explode(*_args: object) -> int:
        raise RuntimeError("disk on fire")

    with monkeypatch.context() as patch:
        patch.setattr(ingestion_module, "_add_source_resource", explode)
        with pytest.raises(IngestionTransactionError):
            services.review.approve(extraction.id, "tester")

    assert services.store.get(extraction.id).status is ExtractionStatus.APPROVED
    assert load_pattern(services, "woolly-bugger") is None

    result = services.review.retry_ingest(extraction.id)

    assert result.extraction.status is ExtractionStatus.INGESTED
    assert len(result.pattern.materials) == 5


def test_normalized_payload_keeps_every_material_of_a_type(services: PipelineServices) -> None:
    payload = woolly_bugger_payload(
        materials=materials(
            ("Streamer hook 4XL", MaterialType.HOOK),
            ("6/0 Thread", MaterialType.THREAD),
            ("Marabou", MaterialType.TAIL),
            ("Krystal Flash", MaterialType.TAIL),
            ("Chenille", MaterialType.BODY),
            ("Saddle hackle", MaterialType.HACKLE),
        )
    )
    extraction = pending_extraction(services, payload)
    services.store.normalize_extractions()

    result = services.review.approve(extraction.id, "tester")

    assert [link.material.name for link in result.pattern.materials] == [
        "Streamer hook 4XL",
        "6/0 Thread",
        "Marabou",
        "Krystal Flash",
        "Chenille",
        "Saddle hackle",
    ]


def test_similar_material_names_share_one_row(services: PipelineServices) -> None:
    _, adams = ingested_extraction(
        services,
        woolly_bugger_payload(
            pattern_name="Adams", materials=materials(("Uni Thread 6/0", MaterialType.THREAD))
        ),
    )
    _, midge = ingested_extraction(
        services,
        woolly_bugger_payload(
            pattern_name="Zebra Midge",
            materials=materials(
                ("6/0 UNI-Thread", MaterialType.THREAD),
                ("8/0 Uni Thread", MaterialType.BODY),
            ),
        ),
    )
    _, gnat = ingested_extraction(
        services,
        woolly_bugger_payload(
            pattern_name="Griffiths Gnat",
            materials=materials(("8/0 Uni Thread", MaterialType.THREAD)),
        ),
    )

    (adams_thread,) = adams.materials
    midge_thread, midge_body = midge.materials
    (gnat_thread,) = gnat.materials
    assert midge_thread.material.id == adams_thread.material.id
    assert midge_thread.material.name == "Uni Thread 6/0"
    assert midge_body.material.id != adams_thread.material.id
    assert gnat_thread.material.id != adams_thread.material.id


def test_merge_skips_material_matching_an_existing_link(services: PipelineServices) -> None:
    ingested_extraction(
        services,
        woolly_bugger_payload(materials=materials(("Uni Thread 6/0", MaterialType.THREAD))),
    )

    ingested_extraction(
        services,
        woolly_bugger_payload(
            materials=materials(
                ("6/0 UNI-Thread", MaterialType.THREAD),
                ("Cone head", MaterialType.BEAD),
            )
        ),
    )

    stored = load_pattern(services, "woolly-bugger")
    assert stored is not None
    assert [link.material.name for link in stored.materials] == ["Uni Thread 6/0", "Cone head"]


def test_alternate_name_resolves_existing_pattern(services: PipelineServices) -> None:
    _, original = ingested_extraction(services, woolly_bugger_payload())

    second, pattern = ingested_extraction(
        services,
        woolly_bugger_payload(
            pattern_name="Wooly Bugger",
            alternate_names=("Woolly Bugger",),
            materials=materials(("Cone head", MaterialType.BEAD)),
        ),
    )

    assert pattern.id == original.id
    assert load_pattern(services, "wooly-bugger") is None
    stored = load_pattern(services, "woolly-bugger")
    assert stored is not None
    assert stored.materials[-1].material.name == "Cone head"
    assert stored.materials[-1].source_extraction_id == second.id
