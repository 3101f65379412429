"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import ContentFetcher, ExtractionFailure, ExtractionOracle, SourceMetadata
from .persistence import (
    ExtractionPage,
    ExtractionQuery,
    ExtractionRepository,
    PatternRepository,
    Repository,
    ResetFilter,
    SourceRepository,
)
from .unit_of_work import (
    PipelineRepositories,
    PipelineUnitOfWork,
    PipelineUnitOfWorkFactory,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "ContentFetcher",
    "ExtractionFailure",
    "ExtractionOracle",
    "ExtractionPage",
    "ExtractionQuery",
    "ExtractionRepository",
    "PatternRepository",
    "PipelineRepositories",
    "PipelineUnitOfWork",
    "PipelineUnitOfWorkFactory",
    "Repository",
    "RepositoryCollection",
    "ResetFilter",
    "SourceMetadata",
    "SourceRepository",
    "UnitOfWork",
]
