from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.pool import StaticPool

from tyingbench.adapters.sqlalchemy import SqlAlchemyPipelineUnitOfWork, shutdown, startup
from tyingbench.app import PipelineServices, build_services
from tyingbench.config import PipelineConfig
from tyingbench.domain.ports import PipelineUnitOfWorkFactory  # noqa: TC001

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data_dir = tmp_path / "data"
    monkeypatch.setenv("TYINGBENCH_DATA_DIR", str(data_dir))
    return data_dir


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def uow_factory(sqlite_engine: Engine) -> Iterator[PipelineUnitOfWorkFactory]:
    startup(engine=sqlite_engine, force=True, migrate=False)
    try:
        yield SqlAlchemyPipelineUnitOfWork
    finally:
        shutdown()


@pytest.fixture
def pipeline_config() -> PipelineConfig:
    return PipelineConfig()


@pytest.fixture
def services(
    uow_factory: PipelineUnitOfWorkFactory, pipeline_config: PipelineConfig
) -> PipelineServices:
    return build_services(unit_of_work_factory=uow_factory, config=pipeline_config)
