"""Translate oracle wire payloads into domain payload value objects."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from tyingbench.domain.model import (
    Difficulty,
    ExtractedMaterial,
    ExtractedPayload,
    ExtractedStep,
    ExtractedSubstitution,
    ExtractedVariation,
    FlyCategory,
    MaterialChange,
    MaterialType,
    SubstitutionType,
    WaterType,
)
from tyingbench.domain.pipeline.normalization import guess_material_type

if TYPE_CHECKING:
    from enum import StrEnum

    from .schema import (
        ExtractedPatternSchema,
        MaterialSchema,
        StepSchema,
        SubstitutionSchema,
        VariationSchema,
    )

log = getLogger(__name__)


def _coerce[E: StrEnum](enum_type: type[E], value: str | None, *, pattern: str) -> E | None:
    if value is None:
        return None
    try:
        return enum_type(value.strip().lower())
    except ValueError:
        log.warning(f"{pattern!r}: dropping unknown {enum_type.__name__} value {value!r}")
        return None


def _material(schema: MaterialSchema, *, pattern: str) -> ExtractedMaterial:
    name = schema.name.strip()
    material_type = _coerce(MaterialType, schema.type, pattern=pattern) or guess_material_type(
        name
    )
    return ExtractedMaterial(
        name=name,
        material_type=material_type,
        color=schema.color,
        size=schema.size,
        required=schema.required,
        position=schema.position,
    )


def _variation(schema: VariationSchema) -> ExtractedVariation:
    return ExtractedVariation(
        name=schema.name.strip(),
        description=schema.description,
        material_changes=tuple(
            MaterialChange(original=change.original, replacement=change.replacement)
            for change in schema.material_changes
        ),
    )


def _substitution(schema: SubstitutionSchema, *, pattern: str) -> ExtractedSubstitution:
    return ExtractedSubstitution(
        original_material=schema.original_material.strip(),
        substitute_material=schema.substitute_material.strip(),
        substitution_type=_coerce(SubstitutionType, schema.substitution_type, pattern=pattern)
        or SubstitutionType.EQUIVALENT,
        notes=schema.notes,
    )


def _step(schema: StepSchema) -> ExtractedStep:
    return ExtractedStep(
        position=schema.position,
        title=schema.title,
        instruction=schema.instruction.strip(),
        tip=schema.tip,
    )


def translate_pattern(schema: ExtractedPatternSchema) -> ExtractedPayload:
    """Build an ``ExtractedPayload``; unknown enum values are logged and dropped."""

    pattern = schema.pattern_name.strip()
    return ExtractedPayload(
        pattern_name=pattern,
        alternate_names=tuple(name.strip() for name in schema.alternate_names if name.strip()),
        category=_coerce(FlyCategory, schema.category, pattern=pattern),
        difficulty=_coerce(Difficulty, schema.difficulty, pattern=pattern),
        water_type=_coerce(WaterType, schema.water_type, pattern=pattern),
        description=schema.description,
        origin=schema.origin,
        materials=tuple(
            _material(material, pattern=pattern)
            for material in schema.materials
            if material.name.strip()
        ),
        variations=tuple(_variation(variation) for variation in schema.variations),
        substitutions=tuple(
            _substitution(substitution, pattern=pattern) for substitution in schema.substitutions
        ),
        steps=tuple(_step(step) for step in schema.steps if step.instruction.strip()),
        image_urls=tuple(schema.image_urls),
    )
