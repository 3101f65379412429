"""SQLAlchemy-backed unit of work for the pipeline services."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from tyingbench.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from tyingbench.adapters.sqlalchemy.migrations import upgrade_head
from tyingbench.adapters.sqlalchemy.repositories import (
    SqlAlchemyExtractionRepository,
    SqlAlchemyPatternRepository,
    SqlAlchemySourceRepository,
)
from tyingbench.config import get_database_config
from tyingbench.domain.errors import IntegrityConflictError
from tyingbench.domain.ports import PipelineRepositories, RepositoryCollection

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call tyingbench.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection: Any, connection_record: Any) -> None:  # pyright: ignore[reportUnusedFunction]
        _ = connection_record
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
    migrate: bool = True,
) -> None:
    """Initialise the SQLAlchemy engine, schema, and session factory.

    ``migrate=False`` creates the tables straight from the metadata, which is
    what tests with throwaway databases use.
    """

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(database_uri or get_database_config().uri)
    _enable_sqlite_foreign_keys(resolved_engine)
    start_mappers()
    if migrate:
        upgrade_head(engine=resolved_engine)
    else:
        create_all_tables(resolved_engine)

    _STATE.engine = resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections.

    Integrity violations raised by the database surface as
    ``IntegrityConflictError`` after the session has been rolled back.
    """

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        return False

    def flush(self) -> None:
        try:
            self.session.flush()
        except IntegrityError as exc:
            self.rollback()
            raise IntegrityConflictError(str(exc.orig)) from exc

    def commit(self) -> None:
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.rollback()
            raise IntegrityConflictError(str(exc.orig)) from exc

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemyPipelineUnitOfWork(BaseSqlAlchemyUnitOfWork[PipelineRepositories]):
    """Unit of work over sources, extractions and the canonical catalog."""

    def _build_repositories(self, session: Session) -> PipelineRepositories:
        return PipelineRepositories(
            sources=SqlAlchemySourceRepository(session),
            extractions=SqlAlchemyExtractionRepository(session),
            patterns=SqlAlchemyPatternRepository(session),
        )


if TYPE_CHECKING:
    from tyingbench.domain.ports import PipelineUnitOfWork

    _uow_check: PipelineUnitOfWork = SqlAlchemyPipelineUnitOfWork()
