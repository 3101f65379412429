from __future__ import annotations

import pytest

from tyingbench.domain.identity import (
    canonicalize_url,
    comparable_name,
    normalize_material_name,
    pattern_identity_key,
    slugify,
    url_domain,
)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("Woolly Bugger", "woolly-bugger"),
        ("  woolly   bugger ", "woolly-bugger"),
        ("Woolly Bugger Fly Pattern", "woolly-bugger"),
        ("Woolly Bugger fly", "woolly-bugger"),
        ("Adams' Parachute", "adams-parachute"),
        ("Pheasant Tail Nymph (PTN)", "pheasant-tail-nymph-ptn"),
        ("Royal Coachman Trüde", "royal-coachman-trude"),
    ],
)
def test_pattern_identity_key(name: str, expected: str) -> None:
    assert pattern_identity_key(name) == expected


def test_slugify_of_punctuation_only_is_empty() -> None:
    assert slugify("!!!") == ""


def test_normalize_material_name_drops_size_tokens() -> None:
    assert normalize_material_name("Dry Fly Hook  size 14") == "dry fly hook"
    assert normalize_material_name("Hook Sz. 12") == normalize_material_name("hook")


def test_comparable_name_ignores_case_and_spacing() -> None:
    assert comparable_name("Parachute  Adams ") == comparable_name("parachute adams")


def test_canonicalize_url_lowercases_host_and_drops_fragment() -> None:
    assert (
        canonicalize_url("HTTPS://Flies.Example.com/Patterns/Woolly/#materials")
        == "https://flies.example.com/Patterns/Woolly"
    )


def test_canonicalize_url_keeps_query_and_root_slash() -> None:
    assert canonicalize_url("https://example.com") == "https://example.com/"
    assert canonicalize_url("https://example.com/watch?v=abc") == (
        "https://example.com/watch?v=abc"
    )


def test_canonicalize_url_rejects_relative_urls() -> None:
    with pytest.raises(ValueError, match="Not an absolute URL"):
        canonicalize_url("/patterns/woolly-bugger")


def test_url_domain() -> None:
    assert url_domain("https://WWW.YouTube.com/watch?v=1") == "www.youtube.com"
