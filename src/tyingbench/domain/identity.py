"""Identity keys and name normalization shared by ingestion and auditing."""

from __future__ import annotations

import re
import unicodedata
from urllib.parse import urlparse, urlunparse

_APOSTROPHES = re.compile(r"['‘’`]")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_WHITESPACE = re.compile(r"\s+")
_PATTERN_SUFFIX = re.compile(r"\s+(fly\s+)?pattern$|\s+fly$", re.IGNORECASE)
_SIZE_TOKEN = re.compile(r"\b(size|sz\.?|#)\s*\d+([/-]\d+)?", re.IGNORECASE)


def _ascii_fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return decomposed.encode("ascii", "ignore").decode("ascii")


def slugify(text: str) -> str:
    """Return the URL-safe identity key for a pattern name.

    >>> slugify("Woolly Bugger")
    'woolly-bugger'
    >>> slugify("Adams' Parachute!")
    'adams-parachute'
    """

    lowered = _ascii_fold(text).lower().strip()
    lowered = _APOSTROPHES.sub("", lowered)
    return _NON_ALNUM.sub("-", lowered).strip("-")


def normalize_pattern_name(name: str) -> str:
    """Lowercase, collapse whitespace and strip a trailing "fly"/"pattern" suffix."""

    collapsed = _WHITESPACE.sub(" ", name.strip().lower())
    return _PATTERN_SUFFIX.sub("", collapsed).strip()


def pattern_identity_key(name: str) -> str:
    """Identity key used to match extractions against canonical patterns."""

    return slugify(normalize_pattern_name(name))


def normalize_material_name(name: str) -> str:
    """Normalize a material name for duplicate detection during merges."""

    lowered = _WHITESPACE.sub(" ", name.strip().lower())
    lowered = _APOSTROPHES.sub("'", lowered)
    return _WHITESPACE.sub(" ", _SIZE_TOKEN.sub("", lowered)).strip()


def comparable_name(name: str) -> str:
    """Case- and whitespace-insensitive comparison form of a display name."""

    return _WHITESPACE.sub(" ", name).strip().casefold()


def canonicalize_url(url: str) -> str:
    """Canonical form used for source URL uniqueness.

    Lowercases scheme and host, drops the fragment and a trailing slash.
    """

    parsed = urlparse(url.strip())
    if not parsed.scheme or not parsed.netloc:
        raise ValueError(f"Not an absolute URL: {url!r}")
    path = parsed.path or "/"
    if path != "/" and path.endswith("/"):
        path = path.rstrip("/")
    return urlunparse(
        (
            parsed.scheme.lower(),
            parsed.netloc.lower(),
            path,
            parsed.params,
            parsed.query,
            "",
        )
    )


def url_domain(url: str) -> str:
    return urlparse(url).netloc.lower()
