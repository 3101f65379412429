"""Trusted direct-submission path for user-created patterns.

Patterns created here never carry a provenance tag, so the reset service can
never delete them and ingestion refuses to merge into them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tyingbench.domain.errors import IntegrityConflictError, ValidationError
from tyingbench.domain.identity import pattern_identity_key
from tyingbench.domain.model import Pattern
from tyingbench.domain.pipeline.ingestion import MaterialResolver

if TYPE_CHECKING:
    from uuid import UUID

    from tyingbench.domain.model import ExtractedPayload
    from tyingbench.domain.ports import PipelineUnitOfWorkFactory

log = logging.getLogger(__name__)


def submit_user_pattern(
    unit_of_work_factory: PipelineUnitOfWorkFactory, payload: ExtractedPayload
) -> Pattern:
    slug = pattern_identity_key(payload.pattern_name)
    if not slug:
        raise ValidationError("A pattern name is required")

    with unit_of_work_factory() as uow:
        patterns = uow.repositories.patterns
        if patterns.get_by_slug(slug) is not None:
            raise IntegrityConflictError(f"Pattern {slug!r} already exists")
        pattern = Pattern(
            name=payload.pattern_name.strip(),
            slug=slug,
            category=payload.category,
            difficulty=payload.difficulty,
            water_type=payload.water_type,
            description=payload.description,
            origin=payload.origin,
        )
        resolver = MaterialResolver(patterns)
        linked: set[UUID] = set()
        ordered = sorted(payload.materials, key=lambda m: m.position)
        for material in (m for m in ordered if m.name.strip()):
            resolved = resolver.resolve(material.name.strip(), material.material_type)
            if resolved.id in linked:
                continue
            linked.add(resolved.id)
            pattern.link_material(
                resolved,
                color=material.color,
                size=material.size,
                required=material.required,
                position=len(linked),
            )
        for variation in payload.variations:
            pattern.add_variation(
                name=variation.name,
                description=variation.description,
                material_changes=[change.to_dict() for change in variation.material_changes],
            )
        for sub in payload.substitutions:
            pattern.add_substitution(
                original_material=sub.original_material,
                substitute_material=sub.substitute_material,
                substitution_type=sub.substitution_type,
                notes=sub.notes,
            )
        for index, step in enumerate(sorted(payload.steps, key=lambda s: s.position), 1):
            pattern.add_tying_step(
                position=index, instruction=step.instruction, title=step.title, tip=step.tip
            )
        for url in payload.image_urls:
            pattern.add_image(url=url)
        patterns.add(pattern)
        uow.commit()

    log.info("User pattern %s created with %d materials", slug, len(pattern.materials))
    return pattern
