"""Ingestion engine: merge one approved extraction into the canonical catalog.

Identity resolution has three outcomes for the extraction's identity key:

- no pattern with that slug: create the pattern and every child row, all
  tagged with the extraction id;
- a pipeline-created pattern: merge additively, adding only materials,
  resources, variations, substitutions and images that are not present yet
  (tying steps only when the pattern has none). Stored rows are never
  removed or overwritten;
- a user-submitted pattern: abort with ``DuplicateIdentityError``.

When no pattern carries the identity key, the payload's alternate names are
tried in order. Materials are shared rows matched by exact name first and
by fuzzy name within the same material type second.

Everything, including marking the extraction ``ingested``, happens in one
unit of work. Any failure rolls the whole unit back, leaving the extraction
``approved`` so that ingestion can be retried safely.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING

from tyingbench.domain.errors import (
    ConflictError,
    DuplicateIdentityError,
    IngestionTransactionError,
    IntegrityConflictError,
    NotFoundError,
    PipelineError,
    ValidationError,
)
from tyingbench.domain.identity import (
    comparable_name,
    normalize_material_name,
    pattern_identity_key,
)
from tyingbench.domain.model import (
    ExtractionStatus,
    Material,
    Pattern,
    ResourceType,
    SourceType,
)
from tyingbench.domain.pipeline.matching import MATERIAL_MATCH_THRESHOLD, best_match

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from tyingbench.domain.model import (
        ExtractedMaterial,
        ExtractedPayload,
        Extraction,
        MaterialType,
        Source,
    )
    from tyingbench.domain.ports import PatternRepository, PipelineUnitOfWorkFactory

log = logging.getLogger(__name__)

SOURCE_RESOURCE_QUALITY = 3
_MAX_ATTEMPTS = 2


def resource_type_for(source: Source) -> ResourceType:
    if source.source_type is SourceType.VIDEO:
        return ResourceType.VIDEO
    if source.source_type is SourceType.PDF or source.url.lower().endswith(".pdf"):
        return ResourceType.PDF
    return ResourceType.BLOG


class MaterialResolver:
    """Find-or-create shared materials within one unit of work.

    Lookup order is an exact case-insensitive name, then the closest material
    of the same type scoring at least ``threshold``, then a new row. Materials
    created earlier in the unit take part in both lookups.
    """

    def __init__(
        self, patterns: PatternRepository, *, threshold: float = MATERIAL_MATCH_THRESHOLD
    ) -> None:
        self._patterns = patterns
        self._threshold = threshold
        self._created: dict[MaterialType, list[Material]] = defaultdict(list)
        self._stored: dict[MaterialType, Sequence[Material]] = {}

    def resolve(self, name: str, material_type: MaterialType) -> Material:
        created = self._created[material_type]
        wanted = comparable_name(name)
        for material in created:
            if comparable_name(material.name) == wanted:
                return material
        material = self._patterns.find_material(name, material_type)
        if material is not None:
            return material

        if material_type not in self._stored:
            self._stored[material_type] = self._patterns.list_materials(material_type)
        match = best_match(
            name,
            [*self._stored[material_type], *created],
            key=lambda candidate: candidate.name,
            threshold=self._threshold,
        )
        if match is not None:
            material, score = match
            log.debug("Material %r matched %r (%.2f)", name, material.name, score)
            return material

        material = Material(name=name, material_type=material_type)
        created.append(material)
        return material


class IngestionEngine:
    def __init__(
        self,
        unit_of_work_factory: PipelineUnitOfWorkFactory,
        *,
        material_match_threshold: float = MATERIAL_MATCH_THRESHOLD,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._material_match_threshold = material_match_threshold

    def ingest(self, extraction: Extraction) -> Pattern:
        """Merge ``extraction`` into the catalog and mark it ``ingested``.

        A unique-constraint conflict (another ingestion created the same
        pattern or material concurrently) is retried once against the now
        committed state.
        """

        for attempt in range(1, _MAX_ATTEMPTS + 1):
            try:
                return self._ingest_once(extraction.id)
            except IntegrityConflictError as exc:
                if attempt == _MAX_ATTEMPTS:
                    raise IngestionTransactionError(
                        f"Ingestion of extraction {extraction.id} kept conflicting: {exc}"
                    ) from exc
                log.info(
                    "Ingestion of %s hit a concurrent write; retrying against fresh state",
                    extraction.id,
                )
        raise AssertionError("unreachable")

    def _ingest_once(self, extraction_id: UUID) -> Pattern:
        with self._uow_factory() as uow:
            repos = uow.repositories
            try:
                current = repos.extractions.get(extraction_id)
                if current is None:
                    raise NotFoundError(f"Extraction {extraction_id} not found")
                if current.status is not ExtractionStatus.APPROVED:
                    raise ConflictError(
                        f"Extraction {extraction_id} is {current.status}; only approved "
                        "extractions can be ingested"
                    )
                if not current.identity_key:
                    raise ValidationError(f"Extraction {extraction_id} has no identity key")
                source = repos.sources.get(current.source_id)
                if source is None:
                    raise NotFoundError(f"Source {current.source_id} not found")

                resolver = MaterialResolver(
                    repos.patterns, threshold=self._material_match_threshold
                )
                pattern = _find_target(repos.patterns, current)
                if pattern is None:
                    pattern = _create_pattern(current, source, resolver)
                    repos.patterns.add(pattern)
                    outcome = "created"
                elif pattern.is_pipeline_created:
                    added = _merge_into(pattern, current, source, resolver)
                    outcome = f"merged ({added} new rows)"
                else:
                    raise DuplicateIdentityError(pattern.slug, pattern.id)

                uow.flush()
                current.mark_ingested(pattern.id)
                uow.commit()
            except PipelineError:
                raise
            except Exception as exc:
                log.exception("Ingestion of extraction %s failed", extraction_id)
                raise IngestionTransactionError(
                    f"Ingestion of extraction {extraction_id} was rolled back: {exc}"
                ) from exc

        log.info("Extraction %s ingested into %s: %s", extraction_id, pattern.slug, outcome)
        return pattern


def _find_target(patterns: PatternRepository, extraction: Extraction) -> Pattern | None:
    """The pattern named by the identity key, else by the first matching alternate name."""

    pattern = patterns.get_by_slug(extraction.identity_key or "")
    if pattern is not None:
        return pattern
    for alternate in extraction.payload.alternate_names:
        key = pattern_identity_key(alternate)
        if not key or key == extraction.identity_key:
            continue
        pattern = patterns.get_by_slug(key)
        if pattern is not None:
            log.info(
                "Extraction %s matched pattern %s through alternate name %r",
                extraction.id,
                pattern.slug,
                alternate,
            )
            return pattern
    return None


def _add_materials(
    pattern: Pattern,
    materials: tuple[ExtractedMaterial, ...],
    extraction_id: UUID,
    resolver: MaterialResolver,
) -> int:
    present = {
        (normalize_material_name(link.material.name), link.material_type)
        for link in pattern.materials
    }
    linked = {link.material.id for link in pattern.materials}
    next_position = max((link.position for link in pattern.materials), default=0) + 1
    added = 0
    for extracted in sorted(materials, key=lambda material: material.position):
        name = extracted.name.strip()
        key = (normalize_material_name(name), extracted.material_type)
        if not name or key in present:
            continue
        present.add(key)
        material = resolver.resolve(name, extracted.material_type)
        if material.id in linked:
            continue
        linked.add(material.id)
        pattern.link_material(
            material,
            color=extracted.color,
            size=extracted.size,
            required=extracted.required,
            position=next_position,
            source_extraction_id=extraction_id,
        )
        next_position += 1
        added += 1
    return added


def _add_source_resource(pattern: Pattern, source: Source, extraction_id: UUID) -> int:
    if any(resource.url == source.url for resource in pattern.resources):
        return 0
    pattern.add_resource(
        url=source.url,
        resource_type=resource_type_for(source),
        title=source.title or pattern.name,
        creator=source.creator,
        platform=source.platform,
        quality_score=SOURCE_RESOURCE_QUALITY,
        source_extraction_id=extraction_id,
    )
    return 1


def _add_secondary_rows(pattern: Pattern, payload: ExtractedPayload, extraction_id: UUID) -> int:
    added = 0
    variation_names = {comparable_name(variation.name) for variation in pattern.variations}
    for variation in payload.variations:
        if not variation.name or comparable_name(variation.name) in variation_names:
            continue
        variation_names.add(comparable_name(variation.name))
        pattern.add_variation(
            name=variation.name,
            description=variation.description,
            material_changes=[change.to_dict() for change in variation.material_changes],
            source_extraction_id=extraction_id,
        )
        added += 1

    substitution_pairs = {
        (comparable_name(sub.original_material), comparable_name(sub.substitute_material))
        for sub in pattern.substitutions
    }
    for sub in payload.substitutions:
        pair = (comparable_name(sub.original_material), comparable_name(sub.substitute_material))
        if not all(pair) or pair in substitution_pairs:
            continue
        substitution_pairs.add(pair)
        pattern.add_substitution(
            original_material=sub.original_material,
            substitute_material=sub.substitute_material,
            substitution_type=sub.substitution_type,
            notes=sub.notes,
            source_extraction_id=extraction_id,
        )
        added += 1

    if not pattern.tying_steps:
        for index, step in enumerate(sorted(payload.steps, key=lambda s: s.position), 1):
            if not step.instruction:
                continue
            pattern.add_tying_step(
                position=index,
                instruction=step.instruction,
                title=step.title,
                tip=step.tip,
                source_extraction_id=extraction_id,
            )
            added += 1

    image_urls = {image.url for image in pattern.images}
    for url in payload.image_urls:
        if url in image_urls:
            continue
        image_urls.add(url)
        pattern.add_image(url=url, source_extraction_id=extraction_id)
        added += 1
    return added


def _create_pattern(
    extraction: Extraction, source: Source, resolver: MaterialResolver
) -> Pattern:
    payload = extraction.payload
    pattern = Pattern(
        name=payload.pattern_name,
        slug=extraction.identity_key,
        category=payload.category,
        difficulty=payload.difficulty,
        water_type=payload.water_type,
        description=payload.description,
        origin=payload.origin,
        source_extraction_id=extraction.id,
    )
    _add_materials(pattern, payload.materials, extraction.id, resolver)
    _add_secondary_rows(pattern, payload, extraction.id)
    _add_source_resource(pattern, source, extraction.id)
    return pattern


def _merge_into(
    pattern: Pattern, extraction: Extraction, source: Source, resolver: MaterialResolver
) -> int:
    added = _add_materials(pattern, extraction.payload.materials, extraction.id, resolver)
    added += _add_secondary_rows(pattern, extraction.payload, extraction.id)
    added += _add_source_resource(pattern, source, extraction.id)
    if added:
        pattern.touch()
    return added
