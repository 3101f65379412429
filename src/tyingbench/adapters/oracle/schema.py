"""Pydantic models describing the extraction oracle wire format."""

from __future__ import annotations

import logging
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

log = logging.getLogger(__name__)


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class OracleBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", alias_generator=to_camel, populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.warning(
            "Oracle %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class MaterialSchema(OracleBaseModel):
    name: str
    type: str | None = None
    color: str | None = None
    size: str | None = None
    required: bool = True
    position: int = 0

    _normalize_optional = field_validator("type", "color", "size", mode="before")(_blank_to_none)


class MaterialChangeSchema(OracleBaseModel):
    original: str
    replacement: str


class VariationSchema(OracleBaseModel):
    name: str
    description: str = ""
    material_changes: list[MaterialChangeSchema] = Field(default_factory=list)


class SubstitutionSchema(OracleBaseModel):
    original_material: str
    substitute_material: str
    substitution_type: str | None = None
    notes: str | None = None


class StepSchema(OracleBaseModel):
    position: int = 0
    title: str | None = None
    instruction: str
    tip: str | None = None


class ExtractedPatternSchema(OracleBaseModel):
    pattern_name: str = ""
    alternate_names: list[str] = Field(default_factory=list)
    category: str | None = None
    difficulty: str | None = None
    water_type: str | None = None
    description: str | None = None
    origin: str | None = None
    materials: list[MaterialSchema] = Field(default_factory=list)
    variations: list[VariationSchema] = Field(default_factory=list)
    substitutions: list[SubstitutionSchema] = Field(default_factory=list)
    steps: list[StepSchema] = Field(default_factory=list)
    image_urls: list[str] = Field(default_factory=list)

    _normalize_optional = field_validator(
        "category", "difficulty", "water_type", "description", "origin", mode="before"
    )(_blank_to_none)


class OracleResponse(OracleBaseModel):
    """Envelope returned by the oracle: a pattern, or a reason why there is none."""

    pattern: ExtractedPatternSchema | None = None
    reason: str | None = None


class OracleRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    content: str
    metadata: dict[str, str | None]
