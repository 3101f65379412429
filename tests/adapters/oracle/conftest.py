"""Shared fixtures for extraction oracle adapter tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

FIXTURES = Path("tests/data/oracle")

OracleBody = dict[str, object]


@pytest.fixture
def woolly_bugger_response() -> OracleBody:
    return json.loads((FIXTURES / "woolly_bugger.json").read_text(encoding="utf-8"))
