"""Canonical catalog entities.

``Pattern`` is the aggregate root: it owns material links, variations,
substitutions, resources, tying steps and images. ``Material`` is shared
reference data that any number of patterns link to; it is never owned by a
pattern and never removed when a pattern goes away.

Every owned row carries ``source_extraction_id``. Rows created by ingestion
carry the originating extraction's id; rows created directly by users carry
``None``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tyingbench.domain.model.entity import Entity, utcnow
from tyingbench.domain.model.enums import MaterialType, ResourceType, SubstitutionType
from tyingbench.domain.model.provenance import ProvenanceTaggedMixin

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import datetime
    from uuid import UUID

    from tyingbench.domain.model.enums import Difficulty, FlyCategory, WaterType


@dataclass(eq=False, kw_only=True)
class Material(Entity):
    name: str
    material_type: MaterialType = MaterialType.OTHER
    created_at: datetime = field(default_factory=utcnow)


@dataclass(eq=False, kw_only=True)
class PatternMaterial(ProvenanceTaggedMixin):
    """Link between a pattern and a shared material, with per-pattern details."""

    pattern_id: UUID
    material: Material
    color: str | None = None
    size: str | None = None
    required: bool = True
    position: int = 0

    @property
    def material_type(self) -> MaterialType:
        return self.material.material_type


@dataclass(eq=False, kw_only=True)
class Variation(ProvenanceTaggedMixin):
    pattern_id: UUID
    name: str
    description: str = ""
    material_changes: list[dict[str, str]] = field(default_factory=list[dict[str, str]])


@dataclass(eq=False, kw_only=True)
class Substitution(ProvenanceTaggedMixin):
    pattern_id: UUID
    original_material: str
    substitute_material: str
    substitution_type: SubstitutionType = SubstitutionType.EQUIVALENT
    notes: str | None = None


@dataclass(eq=False, kw_only=True)
class Resource(ProvenanceTaggedMixin):
    pattern_id: UUID
    url: str
    resource_type: ResourceType
    title: str | None = None
    creator: str = "Unknown"
    platform: str = "Unknown"
    quality_score: int = 3


@dataclass(eq=False, kw_only=True)
class TyingStep(ProvenanceTaggedMixin):
    pattern_id: UUID
    position: int
    instruction: str
    title: str | None = None
    tip: str | None = None


@dataclass(eq=False, kw_only=True)
class PatternImage(ProvenanceTaggedMixin):
    pattern_id: UUID
    url: str
    caption: str | None = None


type PatternChild = PatternMaterial | Variation | Substitution | Resource | TyingStep | PatternImage


@dataclass(eq=False, kw_only=True)
class Pattern(ProvenanceTaggedMixin):
    name: str
    slug: str
    category: FlyCategory | None = None
    difficulty: Difficulty | None = None
    water_type: WaterType | None = None
    description: str | None = None
    origin: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    # Owned children
    _materials: list[PatternMaterial] = field(default_factory=list["PatternMaterial"], repr=False)
    _variations: list[Variation] = field(default_factory=list["Variation"], repr=False)
    _substitutions: list[Substitution] = field(default_factory=list["Substitution"], repr=False)
    _resources: list[Resource] = field(default_factory=list["Resource"], repr=False)
    _tying_steps: list[TyingStep] = field(default_factory=list["TyingStep"], repr=False)
    _images: list[PatternImage] = field(default_factory=list["PatternImage"], repr=False)

    @property
    def materials(self) -> tuple[PatternMaterial, ...]:
        return tuple(sorted(self._materials, key=lambda link: link.position))

    @property
    def variations(self) -> tuple[Variation, ...]:
        return tuple(self._variations)

    @property
    def substitutions(self) -> tuple[Substitution, ...]:
        return tuple(self._substitutions)

    @property
    def resources(self) -> tuple[Resource, ...]:
        return tuple(self._resources)

    @property
    def tying_steps(self) -> tuple[TyingStep, ...]:
        return tuple(sorted(self._tying_steps, key=lambda step: step.position))

    @property
    def images(self) -> tuple[PatternImage, ...]:
        return tuple(self._images)

    def iter_children(self) -> Iterator[PatternChild]:
        yield from self._materials
        yield from self._variations
        yield from self._substitutions
        yield from self._resources
        yield from self._tying_steps
        yield from self._images

    def has_untagged_children(self) -> bool:
        return any(not child.is_pipeline_created for child in self.iter_children())

    # Commands (ownership here)
    def link_material(
        self,
        material: Material,
        *,
        color: str | None = None,
        size: str | None = None,
        required: bool = True,
        position: int | None = None,
        source_extraction_id: UUID | None = None,
    ) -> PatternMaterial:
        link = PatternMaterial(
            pattern_id=self.id,
            material=material,
            color=color,
            size=size,
            required=required,
            position=position if position is not None else len(self._materials) + 1,
            source_extraction_id=source_extraction_id,
        )
        self._materials.append(link)
        return link

    def add_variation(
        self,
        *,
        name: str,
        description: str = "",
        material_changes: list[dict[str, str]] | None = None,
        source_extraction_id: UUID | None = None,
    ) -> Variation:
        variation = Variation(
            pattern_id=self.id,
            name=name,
            description=description,
            material_changes=list(material_changes or ()),
            source_extraction_id=source_extraction_id,
        )
        self._variations.append(variation)
        return variation

    def add_substitution(
        self,
        *,
        original_material: str,
        substitute_material: str,
        substitution_type: SubstitutionType = SubstitutionType.EQUIVALENT,
        notes: str | None = None,
        source_extraction_id: UUID | None = None,
    ) -> Substitution:
        substitution = Substitution(
            pattern_id=self.id,
            original_material=original_material,
            substitute_material=substitute_material,
            substitution_type=substitution_type,
            notes=notes,
            source_extraction_id=source_extraction_id,
        )
        self._substitutions.append(substitution)
        return substitution

    def add_resource(
        self,
        *,
        url: str,
        resource_type: ResourceType,
        title: str | None = None,
        creator: str | None = None,
        platform: str | None = None,
        quality_score: int = 3,
        source_extraction_id: UUID | None = None,
    ) -> Resource:
        resource = Resource(
            pattern_id=self.id,
            url=url,
            resource_type=resource_type,
            title=title,
            creator=creator or "Unknown",
            platform=platform or "Unknown",
            quality_score=quality_score,
            source_extraction_id=source_extraction_id,
        )
        self._resources.append(resource)
        return resource

    def add_tying_step(
        self,
        *,
        position: int,
        instruction: str,
        title: str | None = None,
        tip: str | None = None,
        source_extraction_id: UUID | None = None,
    ) -> TyingStep:
        step = TyingStep(
            pattern_id=self.id,
            position=position,
            instruction=instruction,
            title=title,
            tip=tip,
            source_extraction_id=source_extraction_id,
        )
        self._tying_steps.append(step)
        return step

    def add_image(
        self, *, url: str, caption: str | None = None, source_extraction_id: UUID | None = None
    ) -> PatternImage:
        image = PatternImage(
            pattern_id=self.id, url=url, caption=caption, source_extraction_id=source_extraction_id
        )
        self._images.append(image)
        return image

    def touch(self) -> None:
        self.updated_at = utcnow()
