"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from tyingbench.domain.ports.persistence import (
        ExtractionRepository,
        PatternRepository,
        SourceRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection.

    Leaving the context with an exception rolls back. Nothing is committed
    implicitly: callers commit explicitly once all writes succeeded.
    """

    @property
    def repositories(self) -> TRepositories: ...  # the repo list itself should be immutable

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def flush(self) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class PipelineRepositories(RepositoryCollection):
    """Repositories used by every pipeline service."""

    sources: SourceRepository
    extractions: ExtractionRepository
    patterns: PatternRepository


type PipelineUnitOfWork = UnitOfWork[PipelineRepositories]
type PipelineUnitOfWorkFactory = Callable[[], PipelineUnitOfWork]
