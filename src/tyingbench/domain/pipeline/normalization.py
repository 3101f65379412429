"""Payload clean-up applied by the normalization stage."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Final

from tyingbench.domain.identity import comparable_name
from tyingbench.domain.model import MaterialType

if TYPE_CHECKING:
    from tyingbench.domain.model import ExtractedMaterial, ExtractedPayload

log = logging.getLogger(__name__)

MAX_PATTERN_NAME_LENGTH: Final = 100
MAX_MATERIAL_NAME_LENGTH: Final = 150

_ALWAYS_REQUIRED: Final = frozenset({MaterialType.HOOK, MaterialType.THREAD})

# First matching keyword wins; order matters ("hook" before "hackle", etc.).
_TYPE_KEYWORDS: Final[tuple[tuple[MaterialType, tuple[str, ...]], ...]] = (
    (MaterialType.HOOK, ("hook",)),
    (MaterialType.THREAD, ("thread",)),
    (MaterialType.TAIL, ("tail", "fiber")),
    (MaterialType.BODY, ("dubbing", "chenille", "herl", "body")),
    (MaterialType.RIB, ("rib", "wire", "tinsel")),
    (MaterialType.THORAX, ("thorax",)),
    (MaterialType.WING, ("wing", "elk", "cdc", "deer")),
    (MaterialType.HACKLE, ("hackle",)),
    (MaterialType.BEAD, ("bead",)),
    (MaterialType.WEIGHT, ("lead", "weight")),
)


def guess_material_type(name: str) -> MaterialType:
    """Best-effort material type from a free-text material name."""

    lowered = name.lower()
    for material_type, keywords in _TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return material_type
    return MaterialType.OTHER


def _clean_material(material: ExtractedMaterial) -> ExtractedMaterial:
    name = material.name.strip()[:MAX_MATERIAL_NAME_LENGTH]
    material_type = material.material_type
    if material_type is MaterialType.OTHER:
        material_type = guess_material_type(name)
    required = material.required or material_type in _ALWAYS_REQUIRED
    return replace(material, name=name, material_type=material_type, required=required)


def normalize_payload(payload: ExtractedPayload) -> ExtractedPayload:
    """Return a cleaned copy of ``payload``.

    - pattern and material names are trimmed to their length limits
    - untyped materials get a type guessed from their name
    - hook and thread materials are always required
    - an exact repeat (same normalized name and type) is dropped; distinct
      materials sharing a type are all kept
    - material positions are renumbered 1..N in list order
    """

    seen: set[tuple[str, MaterialType]] = set()
    materials: list[ExtractedMaterial] = []
    for material in map(_clean_material, payload.materials):
        if not material.name:
            continue
        key = (comparable_name(material.name), material.material_type)
        if key in seen:
            log.debug(
                "Dropping repeated %s material %r from %r",
                material.material_type,
                material.name,
                payload.pattern_name,
            )
            continue
        seen.add(key)
        materials.append(material)

    renumbered = [replace(material, position=index) for index, material in enumerate(materials, 1)]
    return replace(
        payload,
        pattern_name=payload.pattern_name.strip()[:MAX_PATTERN_NAME_LENGTH],
        materials=tuple(renumbered),
    )
