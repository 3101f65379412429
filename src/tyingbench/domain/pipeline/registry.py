"""Source registry: discovery, scrape and failure bookkeeping."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tyingbench.domain.errors import IntegrityConflictError, NotFoundError, ValidationError
from tyingbench.domain.identity import canonicalize_url
from tyingbench.domain.model import Source, SourceType

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID

    from tyingbench.domain.model import SourceStatus
    from tyingbench.domain.ports import PipelineUnitOfWorkFactory

log = logging.getLogger(__name__)


class SourceRegistry:
    def __init__(self, unit_of_work_factory: PipelineUnitOfWorkFactory) -> None:
        self._uow_factory = unit_of_work_factory

    def register(
        self,
        url: str,
        source_type: SourceType = SourceType.OTHER,
        query: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> Source:
        """Register a discovered URL. Known URLs return the stored row unchanged."""

        try:
            canonical_url = canonicalize_url(url)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        extra = dict(metadata or {})
        with self._uow_factory() as uow:
            existing = uow.repositories.sources.get_by_url(canonical_url)
            if existing is not None:
                log.debug("Source already registered: %s", canonical_url)
                return existing
            source = Source(
                url=canonical_url,
                source_type=source_type,
                query=query,
                title=_text(extra.pop("title", None)),
                creator=_text(extra.pop("creator", None)),
                platform=_text(extra.pop("platform", None)),
                details=extra,
            )
            uow.repositories.sources.add(source)
            try:
                uow.commit()
            except IntegrityConflictError:
                log.info("Concurrent registration of %s; returning stored row", canonical_url)
            else:
                log.info("Registered %s source %s", source_type, canonical_url)
                return source

        # Lost the race on the unique URL; the winner's row is the answer.
        with self._uow_factory() as uow:
            stored = uow.repositories.sources.get_by_url(canonical_url)
            if stored is None:
                raise NotFoundError(f"Source {canonical_url} vanished after a conflicting insert")
            return stored

    def mark_scraped(self, source_id: UUID, raw_content: str) -> Source:
        with self._uow_factory() as uow:
            source = self._require(uow.repositories.sources.get(source_id), source_id)
            source.mark_scraped(raw_content)
            uow.commit()
        log.info("Source %s scraped (%d chars)", source_id, len(raw_content))
        return source

    def mark_failed(self, source_id: UUID, reason: str) -> Source:
        with self._uow_factory() as uow:
            source = self._require(uow.repositories.sources.get(source_id), source_id)
            source.mark_failed(reason)
            uow.commit()
        log.warning("Source %s failed: %s", source_id, reason)
        return source

    def get(self, source_id: UUID) -> Source:
        with self._uow_factory() as uow:
            return self._require(uow.repositories.sources.get(source_id), source_id)

    def list_by_status(self, status: SourceStatus, *, limit: int | None = None) -> list[Source]:
        with self._uow_factory() as uow:
            return uow.repositories.sources.list_by_status(status, limit=limit)

    @staticmethod
    def _require(source: Source | None, source_id: UUID) -> Source:
        if source is None:
            raise NotFoundError(f"Source {source_id} not found")
        return source


def _text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
