"""
Fuzzy text and target helpers for the behavior comparator.

Free-text descriptions come from an analysis step that never phrases the
same behavior identically twice, so equality is tested by token overlap.
"""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlsplit

from ..config import DEFAULT_TEXT_SIMILARITY_THRESHOLD


_WHITESPACE = re.compile(r"\s+")
_SLASHES = re.compile(r"/{2,}")
_PAGE_SUFFIXES = (".html", ".htm")


def normalize_label(label: Optional[str]) -> str:
    """Lowercase and collapse whitespace."""
    if not label:
        return ""
    return _WHITESPACE.sub(" ", label).strip().lower()


def tokenize(text: Optional[str]) -> set[str]:
    """Lowercase whitespace tokens."""
    if not text:
        return set()
    return set(text.lower().split())


def token_overlap(a: Optional[str], b: Optional[str]) -> float:
    """
    Intersection-over-union of the two token sets.

    Two empty texts are identical (1.0); one empty text shares nothing
    with a non-empty one (0.0).
    """
    tokens_a = tokenize(a)
    tokens_b = tokenize(b)
    if not tokens_a and not tokens_b:
        return 1.0
    union = tokens_a | tokens_b
    return len(tokens_a & tokens_b) / len(union)


def text_matches(
    a: Optional[str],
    b: Optional[str],
    threshold: float = DEFAULT_TEXT_SIMILARITY_THRESHOLD,
) -> bool:
    """Exact match first, then token overlap at or above the threshold."""
    if (a or "").strip() == (b or "").strip():
        return True
    return token_overlap(a, b) >= threshold


def normalize_target(target: Optional[str]) -> str:
    """
    Reduce a navigation target to a comparable path.

    Drops scheme, host, query and fragment, strips page suffixes and the
    trailing slash, and lowercases. Fragment-only and script targets do
    not navigate and normalize to "".

    Examples:
        https://www.example.com/Products.html  -> /products
        /products/                              -> /products
        #menu                                   -> ""
    """
    if not target:
        return ""
    target = target.strip()
    if target.startswith("#") or target.lower().startswith("javascript:"):
        return ""

    path = urlsplit(target).path or "/"
    path = _SLASHES.sub("/", path).lower()
    for suffix in _PAGE_SUFFIXES:
        if path.endswith(suffix):
            path = path[: -len(suffix)]
            break
    if path.endswith("/index"):
        path = path[: -len("index")]
    if len(path) > 1:
        path = path.rstrip("/")
    if not path.startswith("/"):
        path = "/" + path
    return path
