"""Payload factories shared by the pipeline tests."""

from __future__ import annotations

from tyingbench.domain.model import (
    Difficulty,
    ExtractedMaterial,
    ExtractedPayload,
    ExtractedStep,
    FlyCategory,
    MaterialType,
    WaterType,
)

WOOLLY_BUGGER_DESCRIPTION = (
    "A classic streamer that imitates leeches, baitfish and crayfish; "
    "fished on a sinking line it catches trout almost everywhere."
)

WOOLLY_BUGGER_MATERIALS = (
    ExtractedMaterial(name="Streamer hook 4XL", material_type=MaterialType.HOOK, size="8"),
    ExtractedMaterial(name="6/0 Thread", material_type=MaterialType.THREAD, color="black"),
    ExtractedMaterial(name="Marabou", material_type=MaterialType.TAIL, color="olive"),
    ExtractedMaterial(name="Chenille", material_type=MaterialType.BODY, color="olive"),
    ExtractedMaterial(name="Saddle hackle", material_type=MaterialType.HACKLE, color="grizzly"),
)


def materials(*specs: tuple[str, MaterialType]) -> tuple[ExtractedMaterial, ...]:
    return tuple(
        ExtractedMaterial(name=name, material_type=material_type, position=index)
        for index, (name, material_type) in enumerate(specs, 1)
    )


def woolly_bugger_payload(**overrides: object) -> ExtractedPayload:
    values: dict[str, object] = {
        "pattern_name": "Woolly Bugger",
        "category": FlyCategory.STREAMER,
        "difficulty": Difficulty.BEGINNER,
        "water_type": WaterType.BOTH,
        "description": WOOLLY_BUGGER_DESCRIPTION,
        "origin": "Russell Blessing, Pennsylvania, 1967",
        "materials": tuple(
            ExtractedMaterial(
                name=material.name,
                material_type=material.material_type,
                color=material.color,
                size=material.size,
                position=index,
            )
            for index, material in enumerate(WOOLLY_BUGGER_MATERIALS, 1)
        ),
        "steps": (
            ExtractedStep(position=1, instruction="Tie in the marabou tail."),
            ExtractedStep(position=2, instruction="Palmer the hackle over the chenille body."),
        ),
    }
    values.update(overrides)
    return ExtractedPayload(**values)  # type: ignore[arg-type]


def minimal_payload(name: str, *material_names: str) -> ExtractedPayload:
    """A payload with a name and untyped materials only."""

    return ExtractedPayload(
        pattern_name=name,
        materials=tuple(
            ExtractedMaterial(name=material, position=index)
            for index, material in enumerate(material_names or ("Hook",), 1)
        ),
    )
