"""Candidate payload produced by the extraction oracle.

The payload is an immutable value object. It is stored as JSON on the
extraction row, so every type here round-trips through ``to_dict`` /
``from_dict`` using the wire (camelCase) keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from tyingbench.domain.errors import ValidationError
from tyingbench.domain.model.enums import (
    Difficulty,
    FlyCategory,
    MaterialType,
    SubstitutionType,
    WaterType,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping
    from enum import StrEnum

type JsonDict = dict[str, Any]


def _enum_or_none[E: StrEnum](enum_type: type[E], value: object, field_name: str) -> E | None:
    if value is None or value == "":
        return None
    try:
        return enum_type(str(value).lower())
    except ValueError as exc:
        raise ValidationError(
            f"Invalid {field_name}: {value!r}", problems=(f"{field_name}: {value!r}",)
        ) from exc


_TRUE_WORDS = frozenset({"true", "yes", "1", "required"})
_FALSE_WORDS = frozenset({"false", "no", "0", "optional"})


def _flag(value: object, field_name: str, *, default: bool) -> bool:
    """Boolean from JSON, accepting the string forms oracles emit."""

    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return value != 0
    word = "" if value is None else str(value).strip().lower()
    if not word:
        return default
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValidationError(
        f"Invalid {field_name}: {value!r}", problems=(f"{field_name}: {value!r}",)
    )


def _optional_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _items[T](
    raw: Mapping[str, Any], key: str, build: Callable[[Mapping[str, Any]], T]
) -> tuple[T, ...]:
    values = raw.get(key) or ()
    return tuple(build(item) for item in values)


@dataclass(frozen=True, slots=True, kw_only=True)
class ExtractedMaterial:
    name: str
    material_type: MaterialType = MaterialType.OTHER
    color: str | None = None
    size: str | None = None
    required: bool = True
    position: int = 0

    @property
    def is_hook(self) -> bool:
        return self.material_type is MaterialType.HOOK or "hook" in self.name.lower()

    @property
    def is_thread(self) -> bool:
        return self.material_type is MaterialType.THREAD or "thread" in self.name.lower()

    def to_dict(self) -> JsonDict:
        return {
            "name": self.name,
            "type": self.material_type.value,
            "color": self.color,
            "size": self.size,
            "required": self.required,
            "position": self.position,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ExtractedMaterial:
        return cls(
            name=str(raw.get("name") or "").strip(),
            material_type=_enum_or_none(MaterialType, raw.get("type"), "material type")
            or MaterialType.OTHER,
            color=_optional_text(raw.get("color")),
            size=_optional_text(raw.get("size")),
            required=_flag(raw.get("required"), "required", default=True),
            position=int(raw.get("position") or 0),
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class MaterialChange:
    original: str
    replacement: str

    def to_dict(self) -> JsonDict:
        return {"original": self.original, "replacement": self.replacement}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> MaterialChange:
        return cls(original=str(raw["original"]), replacement=str(raw["replacement"]))


@dataclass(frozen=True, slots=True, kw_only=True)
class ExtractedVariation:
    name: str
    description: str = ""
    material_changes: tuple[MaterialChange, ...] = ()

    def to_dict(self) -> JsonDict:
        return {
            "name": self.name,
            "description": self.description,
            "materialChanges": [change.to_dict() for change in self.material_changes],
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ExtractedVariation:
        return cls(
            name=str(raw.get("name") or "").strip(),
            description=str(raw.get("description") or ""),
            material_changes=_items(raw, "materialChanges", MaterialChange.from_dict),
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class ExtractedSubstitution:
    original_material: str
    substitute_material: str
    substitution_type: SubstitutionType = SubstitutionType.EQUIVALENT
    notes: str | None = None

    def to_dict(self) -> JsonDict:
        return {
            "originalMaterial": self.original_material,
            "substituteMaterial": self.substitute_material,
            "substitutionType": self.substitution_type.value,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ExtractedSubstitution:
        return cls(
            original_material=str(raw["originalMaterial"]).strip(),
            substitute_material=str(raw["substituteMaterial"]).strip(),
            substitution_type=_enum_or_none(
                SubstitutionType, raw.get("substitutionType"), "substitution type"
            )
            or SubstitutionType.EQUIVALENT,
            notes=_optional_text(raw.get("notes")),
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class ExtractedStep:
    position: int
    title: str | None = None
    instruction: str
    tip: str | None = None

    def to_dict(self) -> JsonDict:
        return {
            "position": self.position,
            "title": self.title,
            "instruction": self.instruction,
            "tip": self.tip,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ExtractedStep:
        return cls(
            position=int(raw.get("position") or 0),
            title=_optional_text(raw.get("title")),
            instruction=str(raw.get("instruction") or "").strip(),
            tip=_optional_text(raw.get("tip")),
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class ExtractedPayload:
    """One structured candidate record for a single fly pattern."""

    pattern_name: str
    alternate_names: tuple[str, ...] = ()
    category: FlyCategory | None = None
    difficulty: Difficulty | None = None
    water_type: WaterType | None = None
    description: str | None = None
    origin: str | None = None
    materials: tuple[ExtractedMaterial, ...] = ()
    variations: tuple[ExtractedVariation, ...] = ()
    substitutions: tuple[ExtractedSubstitution, ...] = ()
    steps: tuple[ExtractedStep, ...] = ()
    image_urls: tuple[str, ...] = field(default=())

    def with_materials(self, materials: Iterable[ExtractedMaterial]) -> ExtractedPayload:
        return replace(self, materials=tuple(materials))

    def validation_problems(self) -> tuple[str, ...]:
        """Problems that block approval. Empty means the payload may be ingested."""

        problems: list[str] = []
        if not self.pattern_name.strip():
            problems.append("pattern name is missing")
        if not any(material.name.strip() for material in self.materials):
            problems.append("at least one material is required")
        return tuple(problems)

    def to_dict(self) -> JsonDict:
        return {
            "patternName": self.pattern_name,
            "alternateNames": list(self.alternate_names),
            "category": self.category.value if self.category else None,
            "difficulty": self.difficulty.value if self.difficulty else None,
            "waterType": self.water_type.value if self.water_type else None,
            "description": self.description,
            "origin": self.origin,
            "materials": [material.to_dict() for material in self.materials],
            "variations": [variation.to_dict() for variation in self.variations],
            "substitutions": [sub.to_dict() for sub in self.substitutions],
            "steps": [step.to_dict() for step in self.steps],
            "imageUrls": list(self.image_urls),
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ExtractedPayload:
        """Parse a stored or submitted payload, raising ``ValidationError`` on bad values."""

        try:
            return cls(
                pattern_name=str(raw.get("patternName") or "").strip(),
                alternate_names=tuple(str(name) for name in raw.get("alternateNames") or ()),
                category=_enum_or_none(FlyCategory, raw.get("category"), "category"),
                difficulty=_enum_or_none(Difficulty, raw.get("difficulty"), "difficulty"),
                water_type=_enum_or_none(WaterType, raw.get("waterType"), "water type"),
                description=_optional_text(raw.get("description")),
                origin=_optional_text(raw.get("origin")),
                materials=_items(raw, "materials", ExtractedMaterial.from_dict),
                variations=_items(raw, "variations", ExtractedVariation.from_dict),
                substitutions=_items(raw, "substitutions", ExtractedSubstitution.from_dict),
                steps=_items(raw, "steps", ExtractedStep.from_dict),
                image_urls=tuple(str(url) for url in raw.get("imageUrls") or ()),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError(f"Malformed payload: {exc}") from exc
