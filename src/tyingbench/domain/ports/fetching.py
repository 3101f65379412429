"""Ports for fetching raw content and extracting candidate records from it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from tyingbench.domain.model import ExtractedPayload, Source, SourceType


@dataclass(frozen=True, slots=True, kw_only=True)
class SourceMetadata:
    """What the oracle is told about the content it receives."""

    url: str
    source_type: SourceType
    title: str | None = None
    creator: str | None = None
    platform: str | None = None
    query: str | None = None

    @classmethod
    def of(cls, source: Source) -> SourceMetadata:
        return cls(
            url=source.url,
            source_type=source.source_type,
            title=source.title,
            creator=source.creator,
            platform=source.platform,
            query=source.query,
        )


@dataclass(frozen=True, slots=True)
class ExtractionFailure:
    """The oracle could not produce a candidate record."""

    reason: str


@runtime_checkable
class ContentFetcher(Protocol):
    """Fetches the raw text of a source.

    Raises ``TransientNetworkError`` for retryable failures and
    ``PermanentSourceError`` for anything that will never succeed.
    """

    async def fetch(self, source: Source) -> str: ...


@runtime_checkable
class ExtractionOracle(Protocol):
    """External collaborator turning raw content into a candidate record."""

    async def extract(
        self, raw_content: str, metadata: SourceMetadata
    ) -> ExtractedPayload | ExtractionFailure: ...


__all__ = ["ContentFetcher", "ExtractionFailure", "ExtractionOracle", "SourceMetadata"]
