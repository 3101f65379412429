from __future__ import annotations

import logging

import pytest

from tyingbench.adapters.oracle import ExtractedPatternSchema, OracleResponse, translate_pattern
from tyingbench.domain.model import (
    Difficulty,
    FlyCategory,
    MaterialType,
    SubstitutionType,
    WaterType,
)
from tyingbench.domain.pipeline import compute_confidence


def test_translate_full_response(woolly_bugger_response: dict[str, object]) -> None:
    schema = OracleResponse.model_validate(woolly_bugger_response).pattern
    assert schema is not None

    payload = translate_pattern(schema)

    assert payload.pattern_name == "Woolly Bugger"
    assert payload.alternate_names == ("Wooly Bugger",)
    assert payload.category is FlyCategory.STREAMER
    assert payload.difficulty is Difficulty.BEGINNER
    assert payload.water_type is WaterType.BOTH
    assert [material.material_type for material in payload.materials] == [
        MaterialType.HOOK,
        MaterialType.THREAD,
        MaterialType.TAIL,
        MaterialType.BODY,
        MaterialType.HACKLE,
        MaterialType.RIB,
    ]
    assert payload.materials[5].required is False
    assert payload.substitutions[0].substitution_type is SubstitutionType.BUDGET
    assert [step.position for step in payload.steps] == [1, 2]
    assert payload.steps[0].title == "Tail"
    assert payload.image_urls == ("https://img.example.com/woolly-bugger.jpg",)
    assert compute_confidence(payload) == 1.0


def test_unknown_enum_values_are_dropped(caplog: pytest.LogCaptureFixture) -> None:
    schema = ExtractedPatternSchema.model_validate(
        {
            "patternName": "Sparkle Minnow",
            "category": "baitfish",
            "difficulty": "Intermediate",
            "materials": [{"name": "Mystery fluff", "type": "fluff"}],
        }
    )

    with caplog.at_level(logging.WARNING, logger="tyingbench.adapters.oracle.translator"):
        payload = translate_pattern(schema)

    assert payload.category is None
    assert payload.difficulty is Difficulty.INTERMEDIATE
    assert payload.materials[0].material_type is MaterialType.OTHER
    assert any("baitfish" in record.getMessage() for record in caplog.records)


def test_blank_optional_strings_become_none() -> None:
    schema = ExtractedPatternSchema.model_validate(
        {"patternName": "Adams", "description": "   ", "origin": "", "waterType": " "}
    )

    payload = translate_pattern(schema)

    assert payload.description is None
    assert payload.origin is None
    assert payload.water_type is None
