"""Discovered external content and its scrape lifecycle."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from tyingbench.domain.errors import InvalidTransitionError
from tyingbench.domain.model.entity import Entity, utcnow
from tyingbench.domain.model.enums import SourceStatus, SourceType

if TYPE_CHECKING:
    from datetime import datetime

# Forward-only lifecycle; ``failed`` is reachable from every non-terminal state.
_ALLOWED_TRANSITIONS: dict[SourceStatus, frozenset[SourceStatus]] = {
    SourceStatus.DISCOVERED: frozenset({SourceStatus.SCRAPED, SourceStatus.FAILED}),
    SourceStatus.SCRAPED: frozenset({SourceStatus.EXTRACTED, SourceStatus.FAILED}),
    SourceStatus.EXTRACTED: frozenset(),
    SourceStatus.FAILED: frozenset(),
}


@dataclass(eq=False, kw_only=True)
class Source(Entity):
    url: str
    source_type: SourceType = SourceType.OTHER
    title: str | None = None
    creator: str | None = None
    platform: str | None = None
    query: str | None = None
    status: SourceStatus = SourceStatus.DISCOVERED
    raw_content: str | None = None
    failure_reason: str | None = None
    details: dict[str, Any] = field(default_factory=dict[str, Any])
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    scraped_at: datetime | None = None

    def _transition(self, target: SourceStatus) -> None:
        if target not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Source {self.id} cannot move from {self.status} to {target}"
            )
        self.status = target
        self.updated_at = utcnow()

    def mark_scraped(self, raw_content: str) -> None:
        self._transition(SourceStatus.SCRAPED)
        self.raw_content = raw_content
        self.scraped_at = self.updated_at

    def mark_extracted(self) -> None:
        self._transition(SourceStatus.EXTRACTED)

    def mark_failed(self, reason: str) -> None:
        self._transition(SourceStatus.FAILED)
        self.failure_reason = reason
