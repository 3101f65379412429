"""Public interface for the HTTP extraction oracle adapter."""

from __future__ import annotations

from .client import HttpExtractionOracle
from .schema import ExtractedPatternSchema, OracleResponse
from .translator import translate_pattern

__all__ = [
    "ExtractedPatternSchema",
    "HttpExtractionOracle",
    "OracleResponse",
    "translate_pattern",
]
