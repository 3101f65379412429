"""Completeness auditor: pure, read-only scoring of a catalog snapshot.

Each pattern is checked against eight data-quality dimensions. The report
holds per-dimension completion, a per-category breakdown, the patterns with
the most gaps, and the reference patterns that are absent from the catalog.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final

from tyingbench.domain.identity import comparable_name
from tyingbench.domain.model import MaterialType, ResourceType

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

WORST_OFFENDER_MIN_MISSING: Final = 4
ADEQUATE_MATERIAL_COUNT: Final = 3
UNCATEGORIZED: Final = "uncategorized"


class Dimension(StrEnum):
    IMAGES = "withImages"
    INSTRUCTIONS = "withInstructions"
    ADEQUATE_MATERIALS = "withAdequateMaterials"
    HOOK = "withHook"
    THREAD = "withThread"
    VIDEO = "withVideo"
    BLOG = "withBlog"
    ORIGIN = "withOrigin"


# Label used in a pattern's "missing" list.
MISSING_LABELS: Final[dict[Dimension, str]] = {
    Dimension.IMAGES: "images",
    Dimension.INSTRUCTIONS: "tyingSteps",
    Dimension.ADEQUATE_MATERIALS: "materials(<3)",
    Dimension.HOOK: "hook",
    Dimension.THREAD: "thread",
    Dimension.VIDEO: "video",
    Dimension.BLOG: "blog",
    Dimension.ORIGIN: "origin",
}


@dataclass(frozen=True, slots=True, kw_only=True)
class MaterialSnapshot:
    name: str
    material_type: MaterialType


@dataclass(frozen=True, slots=True, kw_only=True)
class ResourceSnapshot:
    resource_type: ResourceType
    url: str
    title: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class PatternSnapshot:
    name: str
    slug: str
    category: str | None = None
    has_origin: bool = False
    materials: tuple[MaterialSnapshot, ...] = ()
    resources: tuple[ResourceSnapshot, ...] = ()
    tying_step_count: int = 0
    image_count: int = 0


@dataclass(frozen=True, slots=True, kw_only=True)
class ReferencePattern:
    name: str
    category: str | None = None


def _has_type(pattern: PatternSnapshot, material_type: MaterialType) -> bool:
    return any(material.material_type is material_type for material in pattern.materials)


def _has_resource(pattern: PatternSnapshot, resource_type: ResourceType) -> bool:
    return any(resource.resource_type is resource_type for resource in pattern.resources)


_CHECKS: Final[dict[Dimension, Callable[[PatternSnapshot], bool]]] = {
    Dimension.IMAGES: lambda p: p.image_count > 0,
    Dimension.INSTRUCTIONS: lambda p: p.tying_step_count > 0,
    Dimension.ADEQUATE_MATERIALS: lambda p: len(p.materials) >= ADEQUATE_MATERIAL_COUNT,
    Dimension.HOOK: lambda p: _has_type(p, MaterialType.HOOK),
    Dimension.THREAD: lambda p: _has_type(p, MaterialType.THREAD),
    Dimension.VIDEO: lambda p: _has_resource(p, ResourceType.VIDEO),
    Dimension.BLOG: lambda p: _has_resource(p, ResourceType.BLOG),
    Dimension.ORIGIN: lambda p: p.has_origin,
}


@dataclass(frozen=True, slots=True)
class DimensionScore:
    dimension: Dimension
    count: int
    total: int

    @property
    def percent(self) -> int:
        if self.total == 0:
            return 0
        return round(self.count / self.total * 100)

    def summary_line(self) -> str:
        return f"{self.dimension.value}: {self.count}/{self.total} ({self.percent}%)"


@dataclass(frozen=True, slots=True)
class PatternAudit:
    name: str
    slug: str
    category: str
    present: frozenset[Dimension]

    @property
    def missing(self) -> tuple[str, ...]:
        return tuple(MISSING_LABELS[dim] for dim in Dimension if dim not in self.present)

    @property
    def missing_count(self) -> int:
        return len(Dimension) - len(self.present)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "slug": self.slug,
            "category": self.category,
            "missing": list(self.missing),
            "missingCount": self.missing_count,
            **{dim.value: dim in self.present for dim in Dimension},
        }


@dataclass(frozen=True, slots=True)
class CategoryBreakdown:
    category: str
    scores: tuple[DimensionScore, ...]

    @property
    def total(self) -> int:
        return self.scores[0].total if self.scores else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "total": self.total,
            **{score.dimension.value: score.count for score in self.scores},
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class AuditReport:
    generated_at: datetime
    total_patterns: int
    dimensions: tuple[DimensionScore, ...]
    categories: tuple[CategoryBreakdown, ...]
    worst_offenders: tuple[PatternAudit, ...]
    missing_reference: tuple[ReferencePattern, ...]
    reference_count: int
    patterns: tuple[PatternAudit, ...] = field(repr=False)

    def score(self, dimension: Dimension) -> DimensionScore:
        return next(score for score in self.dimensions if score.dimension is dimension)

    def to_dict(self) -> dict[str, Any]:
        return {
            "generatedAt": self.generated_at.isoformat(),
            "summary": {
                "totalPatterns": self.total_patterns,
                "totalReferencePatterns": self.reference_count,
                "missingReferencePatterns": len(self.missing_reference),
                **{
                    score.dimension.value: {
                        "count": score.count,
                        "total": score.total,
                        "percent": score.percent,
                    }
                    for score in self.dimensions
                },
            },
            "categories": [category.to_dict() for category in self.categories],
            "worstOffenders": [pattern.to_dict() for pattern in self.worst_offenders],
            "missingReferencePatterns": [
                {"name": ref.name, "category": ref.category} for ref in self.missing_reference
            ],
            "allPatterns": [pattern.to_dict() for pattern in self.patterns],
        }


def audit_pattern(pattern: PatternSnapshot) -> PatternAudit:
    present = frozenset(dim for dim, check in _CHECKS.items() if check(pattern))
    return PatternAudit(
        name=pattern.name,
        slug=pattern.slug,
        category=pattern.category or UNCATEGORIZED,
        present=present,
    )


def _scores(audits: Sequence[PatternAudit]) -> tuple[DimensionScore, ...]:
    total = len(audits)
    return tuple(
        DimensionScore(dim, sum(1 for audit in audits if dim in audit.present), total)
        for dim in Dimension
    )


def audit_catalog(
    patterns: Iterable[PatternSnapshot],
    reference: Iterable[ReferencePattern] = (),
    *,
    now: datetime | None = None,
) -> AuditReport:
    """Score every pattern; never mutates its inputs."""

    audits = tuple(audit_pattern(pattern) for pattern in patterns)

    by_category: dict[str, list[PatternAudit]] = defaultdict(list)
    for audit in audits:
        by_category[audit.category].append(audit)
    categories = tuple(
        CategoryBreakdown(category, _scores(members))
        for category, members in sorted(by_category.items())
    )

    # Stable sort keeps catalog order among equally incomplete patterns.
    worst = tuple(
        sorted(
            (audit for audit in audits if audit.missing_count >= WORST_OFFENDER_MIN_MISSING),
            key=lambda audit: audit.missing_count,
            reverse=True,
        )
    )

    reference_list = tuple(reference)
    present_names = {comparable_name(audit.name) for audit in audits}
    missing_reference = tuple(
        ref for ref in reference_list if comparable_name(ref.name) not in present_names
    )

    return AuditReport(
        generated_at=now or datetime.now(UTC),
        total_patterns=len(audits),
        dimensions=_scores(audits),
        categories=categories,
        worst_offenders=worst,
        missing_reference=missing_reference,
        reference_count=len(reference_list),
        patterns=audits,
    )


def render_summary(report: AuditReport) -> list[str]:
    """Short human-readable summary for the console."""

    lines = [f"Patterns audited: {report.total_patterns}"]
    lines.extend(score.summary_line() for score in report.dimensions)

    if report.categories:
        lines.append("By category:")
        for category in report.categories:
            counts = ", ".join(
                f"{score.dimension.value} {score.count}/{score.total}"
                for score in category.scores
                if score.dimension in {Dimension.INSTRUCTIONS, Dimension.VIDEO, Dimension.BLOG}
            )
            lines.append(f"  {category.category} ({category.total}): {counts}")

    lines.append(
        f"Patterns missing {WORST_OFFENDER_MIN_MISSING}+ dimensions: {len(report.worst_offenders)}"
    )
    lines.extend(
        f"  {audit.name} [{audit.category}] missing {audit.missing_count}: "
        f"{', '.join(audit.missing)}"
        for audit in report.worst_offenders
    )

    if report.reference_count:
        lines.append(
            f"Reference patterns missing: {len(report.missing_reference)}/{report.reference_count}"
        )
        lines.extend(f"  - {ref.name}" for ref in report.missing_reference)
    return lines
