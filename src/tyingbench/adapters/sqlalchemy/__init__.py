"""SQLAlchemy adapter package for tyingbench."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyExtractionRepository,
    SqlAlchemyPatternRepository,
    SqlAlchemySourceRepository,
)
from .unit_of_work import (
    SqlAlchemyPipelineUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyExtractionRepository",
    "SqlAlchemyPatternRepository",
    "SqlAlchemyPipelineUnitOfWork",
    "SqlAlchemySourceRepository",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "mapper_registry",
    "shutdown",
    "startup",
    "start_mappers",
]
