"""JSON catalog snapshots, reference pattern lists and audit report files.

A snapshot file holds ``{"patterns": [...], "seedPatterns": [...]}``; every
pattern lists its materials (``materialName``/``materialType``), resources
(``type``/``url``/``title``), ``tyingStepCount`` and ``imageCount``. Keys the
auditor does not need are ignored, so full database dumps load as well.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from tyingbench.domain.audit import (
    MaterialSnapshot,
    PatternSnapshot,
    ReferencePattern,
    ResourceSnapshot,
)
from tyingbench.domain.errors import ValidationError
from tyingbench.domain.model import MaterialType, ResourceType

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from tyingbench.domain.audit import AuditReport
    from tyingbench.domain.model import Pattern

log = getLogger(__name__)

REPORT_FILENAME_FORMAT = "audit-%Y%m%dT%H%M%SZ.json"


class SnapshotBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SnapshotMaterial(SnapshotBaseModel):
    material_name: str = Field(alias="materialName")
    material_type: str | None = Field(default=None, alias="materialType")


class SnapshotResource(SnapshotBaseModel):
    type: str
    url: str
    title: str | None = None


class SnapshotPattern(SnapshotBaseModel):
    name: str
    slug: str = ""
    category: str | None = None
    origin: bool = False
    materials: list[SnapshotMaterial] = Field(default_factory=list)
    resources: list[SnapshotResource] = Field(default_factory=list)
    tying_step_count: int = Field(default=0, alias="tyingStepCount")
    image_count: int = Field(default=0, alias="imageCount")

    @field_validator("origin", mode="before")
    @classmethod
    def _origin_present(cls, value: object) -> bool:
        if isinstance(value, str):
            return bool(value.strip())
        return bool(value)


class SnapshotReference(SnapshotBaseModel):
    name: str
    category: str | None = None


class CatalogSnapshotFile(SnapshotBaseModel):
    exported_at: str | None = Field(default=None, alias="exportedAt")
    patterns: list[SnapshotPattern] = Field(default_factory=list)
    seed_patterns: list[SnapshotReference] = Field(default_factory=list, alias="seedPatterns")


_reference_list = TypeAdapter(list[SnapshotReference])


def _material_type(value: str | None) -> MaterialType:
    try:
        return MaterialType((value or "").lower())
    except ValueError:
        return MaterialType.OTHER


def _resource(model: SnapshotResource) -> ResourceSnapshot | None:
    try:
        resource_type = ResourceType(model.type.lower())
    except ValueError:
        log.debug(f"Ignoring resource of unknown type {model.type!r}: {model.url}")
        return None
    return ResourceSnapshot(resource_type=resource_type, url=model.url, title=model.title)


def _pattern(model: SnapshotPattern) -> PatternSnapshot:
    resources = (_resource(resource) for resource in model.resources)
    return PatternSnapshot(
        name=model.name,
        slug=model.slug,
        category=model.category,
        has_origin=model.origin,
        materials=tuple(
            MaterialSnapshot(
                name=material.material_name, material_type=_material_type(material.material_type)
            )
            for material in model.materials
        ),
        resources=tuple(resource for resource in resources if resource is not None),
        tying_step_count=model.tying_step_count,
        image_count=model.image_count,
    )


def _read_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValidationError(f"{path} is not valid JSON: {exc}") from exc


def load_snapshot(path: Path) -> tuple[list[PatternSnapshot], list[ReferencePattern]]:
    """Load the patterns and the embedded reference list of a snapshot file."""

    try:
        snapshot = CatalogSnapshotFile.model_validate(_read_json(path))
    except PydanticValidationError as exc:
        raise ValidationError(f"{path} is not a catalog snapshot: {exc}") from exc
    patterns = [_pattern(pattern) for pattern in snapshot.patterns]
    reference = [
        ReferencePattern(name=ref.name, category=ref.category) for ref in snapshot.seed_patterns
    ]
    log.info(f"Loaded {len(patterns)} patterns and {len(reference)} reference names from {path}")
    return patterns, reference


def load_reference(path: Path) -> list[ReferencePattern]:
    """Load a reference list: a bare JSON list, or an object with ``seedPatterns``."""

    raw = _read_json(path)
    try:
        if isinstance(raw, dict):
            refs = CatalogSnapshotFile.model_validate(raw).seed_patterns
        else:
            refs = _reference_list.validate_python(raw)
    except PydanticValidationError as exc:
        raise ValidationError(f"{path} is not a reference pattern list: {exc}") from exc
    return [ReferencePattern(name=ref.name, category=ref.category) for ref in refs]


def snapshot_pattern(pattern: Pattern) -> PatternSnapshot:
    return PatternSnapshot(
        name=pattern.name,
        slug=pattern.slug,
        category=pattern.category.value if pattern.category else None,
        has_origin=bool(pattern.origin),
        materials=tuple(
            MaterialSnapshot(name=link.material.name, material_type=link.material_type)
            for link in pattern.materials
        ),
        resources=tuple(
            ResourceSnapshot(
                resource_type=resource.resource_type, url=resource.url, title=resource.title
            )
            for resource in pattern.resources
        ),
        tying_step_count=len(pattern.tying_steps),
        image_count=len(pattern.images),
    )


def snapshot_to_dict(
    patterns: Iterable[PatternSnapshot],
    reference: Iterable[ReferencePattern] = (),
    *,
    now: datetime | None = None,
) -> dict[str, object]:
    return {
        "exportedAt": (now or datetime.now(UTC)).isoformat(),
        "seedPatterns": [{"name": ref.name, "category": ref.category} for ref in reference],
        "patterns": [
            {
                "name": pattern.name,
                "slug": pattern.slug,
                "category": pattern.category,
                "origin": pattern.has_origin,
                "materials": [
                    {"materialName": material.name, "materialType": material.material_type.value}
                    for material in pattern.materials
                ],
                "resources": [
                    {
                        "type": resource.resource_type.value,
                        "url": resource.url,
                        "title": resource.title,
                    }
                    for resource in pattern.resources
                ],
                "tyingStepCount": pattern.tying_step_count,
                "imageCount": pattern.image_count,
            }
            for pattern in patterns
        ],
    }


def write_snapshot(
    path: Path,
    patterns: Iterable[PatternSnapshot],
    reference: Iterable[ReferencePattern] = (),
) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(snapshot_to_dict(patterns, reference), indent=2), encoding="utf-8")
    log.info(f"Wrote catalog snapshot to {path}")
    return path


def write_report(report: AuditReport, directory: Path) -> Path:
    """Write the full audit report as JSON into ``directory``; returns the file path."""

    directory.mkdir(parents=True, exist_ok=True)
    path = directory / report.generated_at.astimezone(UTC).strftime(REPORT_FILENAME_FORMAT)
    path.write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")
    log.info(f"Wrote audit report to {path}")
    return path
