"""Alembic helpers for the SQLAlchemy adapter."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config

from tyingbench.config import get_database_config

PROJECT_ROOT: Final[Path] = Path(__file__).resolve().parents[5]
PYPROJECT_PATH: Final[Path] = PROJECT_ROOT / "pyproject.toml"
MIGRATIONS_PATH: Final[Path] = Path(__file__).resolve().parent

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


def _alembic_options() -> dict[str, str]:
    """``[tool.alembic]`` from pyproject.toml, or nothing for installed copies."""

    try:
        with PYPROJECT_PATH.open("rb") as pyproject_file:
            document = tomllib.load(pyproject_file)
    except FileNotFoundError:
        return {}
    section = document.get("tool", {}).get("alembic", {})
    return {str(key): str(value) for key, value in section.items()}


def build_config() -> Config:
    options = _alembic_options()
    config = Config(toml_file=str(PYPROJECT_PATH)) if options else Config()

    # Installed packages ship the scripts next to this module; always use those.
    config.set_main_option("script_location", str(MIGRATIONS_PATH))
    prepend = Path(options.get("prepend_sys_path", "src"))
    resolved = prepend if prepend.is_absolute() else PROJECT_ROOT / prepend
    config.set_main_option("prepend_sys_path", str(resolved.resolve()))
    config.set_main_option("path_separator", "os")
    return config


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Upgrade the database schema to the latest revision."""

    config = build_config()
    if engine is not None:
        with engine.begin() as connection:
            config.attributes["connection"] = connection
            command.upgrade(config, "head")
        return
    config.set_main_option("sqlalchemy.url", database_uri or get_database_config().uri)
    command.upgrade(config, "head")
