"""Fuzzy name matching used to canonicalize shared materials.

Scores combine a plain character ratio with a word-order-insensitive ratio,
so "Uni Thread 6/0" and "6/0 UNI-Thread" match. Numbers must agree exactly:
"6/0 thread" never matches "8/0 thread".
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final

from rapidfuzz import fuzz
from rapidfuzz.utils import default_process

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

MATERIAL_MATCH_THRESHOLD: Final = 0.85

_NUMBER = re.compile(r"\d+")


def name_similarity(left: str, right: str) -> float:
    """Similarity of two names in [0, 1]."""

    a, b = default_process(left), default_process(right)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    return max(fuzz.ratio(a, b), fuzz.token_sort_ratio(a, b)) / 100.0


def _numbers(name: str) -> list[str]:
    return sorted(_NUMBER.findall(name))


def best_match[T](
    name: str,
    candidates: Iterable[T],
    *,
    key: Callable[[T], str],
    threshold: float = MATERIAL_MATCH_THRESHOLD,
) -> tuple[T, float] | None:
    """Best-scoring candidate at or above ``threshold``; earlier candidates win ties."""

    numbers = _numbers(name)
    best: T | None = None
    best_score = 0.0
    for candidate in candidates:
        candidate_name = key(candidate)
        if _numbers(candidate_name) != numbers:
            continue
        score = name_similarity(name, candidate_name)
        if score > best_score:
            best, best_score = candidate, score
    if best is None or best_score < threshold:
        return None
    return best, best_score
