"""
CSS value parsing and per-value scoring for the style comparator.

Three value kinds are scored:
    color    parsed to RGBA in [0, 1], Euclidean distance
    length   parsed to pixels, distance relative to a category max delta
    keyword  normalized string comparison

Each comparison yields a dissimilarity (0 = identical, 1 = maximally
different) and a noticeability (0-1 perceptual impact estimate).
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Optional, Sequence

from ..config import (
    DEFAULT_COLOR_BUCKETS,
    DEFAULT_LENGTH_BUCKETS,
    DEFAULT_ROOT_FONT_SIZE,
)


# =============================================================================
# PROPERTY CATEGORIES
# =============================================================================

CATEGORIES = (
    "colors", "typography", "spacing", "sizing", "borders",
    "layout", "effects", "backgrounds", "misc",
)

PROPERTY_CATEGORIES = {
    "color": "colors",
    "fill": "colors",
    "stroke": "colors",
    "outline-color": "colors",
    "text-decoration-color": "colors",
    "font-family": "typography",
    "font-size": "typography",
    "font-weight": "typography",
    "font-style": "typography",
    "line-height": "typography",
    "letter-spacing": "typography",
    "text-transform": "typography",
    "text-align": "typography",
    "text-decoration": "typography",
    "text-decoration-line": "typography",
    "white-space": "typography",
    "gap": "spacing",
    "row-gap": "spacing",
    "column-gap": "spacing",
    "width": "sizing",
    "height": "sizing",
    "min-width": "sizing",
    "min-height": "sizing",
    "max-width": "sizing",
    "max-height": "sizing",
    "display": "layout",
    "position": "layout",
    "flex-direction": "layout",
    "flex-wrap": "layout",
    "justify-content": "layout",
    "align-items": "layout",
    "align-self": "layout",
    "float": "layout",
    "top": "layout",
    "right": "layout",
    "bottom": "layout",
    "left": "layout",
    "z-index": "layout",
    "overflow": "layout",
    "visibility": "layout",
    "opacity": "effects",
    "box-shadow": "effects",
    "text-shadow": "effects",
    "transform": "effects",
    "transition": "effects",
    "filter": "effects",
    "background": "backgrounds",
    "background-color": "backgrounds",
    "background-image": "backgrounds",
    "background-size": "backgrounds",
    "background-position": "backgrounds",
    "background-repeat": "backgrounds",
    "cursor": "misc",
    "pointer-events": "misc",
    "list-style": "misc",
    "list-style-type": "misc",
}

# Largest pixel delta that still counts as partially similar, per category
CATEGORY_MAX_DELTA = {
    "borders": 8.0,
    "typography": 16.0,
    "effects": 16.0,
    "spacing": 32.0,
    "sizing": 100.0,
}
DEFAULT_MAX_DELTA = 50.0

# Display transitions that are visually disruptive whatever the strings say
DISRUPTIVE_DISPLAY_PAIRS = frozenset({
    frozenset({"flex", "block"}),
    frozenset({"grid", "flex"}),
    frozenset({"grid", "block"}),
    frozenset({"inline-flex", "block"}),
    frozenset({"inline", "flex"}),
    frozenset({"inline", "grid"}),
    frozenset({"inline", "inline-flex"}),
    frozenset({"inline", "inline-grid"}),
})

KEYWORD_CONTAINMENT_SCORE = 0.3


def categorize(prop: str) -> str:
    """Map a CSS property name to one of the nine categories."""
    prop = prop.strip().lower()
    if prop in PROPERTY_CATEGORIES:
        return PROPERTY_CATEGORIES[prop]
    if prop.startswith("border") or prop.startswith("outline"):
        return "borders"
    if prop.startswith("margin") or prop.startswith("padding"):
        return "spacing"
    if prop.startswith("background"):
        return "backgrounds"
    if prop.startswith("font") or prop.startswith("text"):
        return "typography"
    if prop.startswith("flex") or prop.startswith("grid") or prop.startswith("align"):
        return "layout"
    if prop.endswith("color"):
        return "colors"
    return "misc"


def max_delta_for(category: str) -> float:
    return CATEGORY_MAX_DELTA.get(category, DEFAULT_MAX_DELTA)


# =============================================================================
# COLOR PARSING
# =============================================================================

NAMED_COLORS = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "red": (255, 0, 0),
    "green": (0, 128, 0),
    "lime": (0, 255, 0),
    "blue": (0, 0, 255),
    "navy": (0, 0, 128),
    "yellow": (255, 255, 0),
    "orange": (255, 165, 0),
    "purple": (128, 0, 128),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "silver": (192, 192, 192),
    "maroon": (128, 0, 0),
    "olive": (128, 128, 0),
    "teal": (0, 128, 128),
    "aqua": (0, 255, 255),
    "cyan": (0, 255, 255),
    "fuchsia": (255, 0, 255),
    "magenta": (255, 0, 255),
}

_HEX_COLOR = re.compile(r"^#([0-9a-f]{3,4}|[0-9a-f]{6}|[0-9a-f]{8})$")
_FUNC_COLOR = re.compile(r"^rgba?\((.*)\)$")

RGBA = tuple[float, float, float, float]


def _channel(token: str) -> float:
    if token.endswith("%"):
        return float(token[:-1]) / 100.0
    return float(token) / 255.0


def _alpha(token: str) -> float:
    if token.endswith("%"):
        return float(token[:-1]) / 100.0
    return float(token)


def parse_color(value: str) -> Optional[RGBA]:
    """
    Parse a CSS color into RGBA components in [0, 1].

    Supports #rgb, #rgba, #rrggbb, #rrggbbaa, rgb()/rgba() in comma or
    space syntax (with optional "/ alpha"), `transparent`, and common
    named colors. Returns None for anything else.
    """
    text = value.strip().lower()
    if text == "transparent":
        return (0.0, 0.0, 0.0, 0.0)
    if text in NAMED_COLORS:
        r, g, b = NAMED_COLORS[text]
        return (r / 255.0, g / 255.0, b / 255.0, 1.0)

    match = _HEX_COLOR.match(text)
    if match:
        digits = match.group(1)
        if len(digits) in (3, 4):
            digits = "".join(c * 2 for c in digits)
        channels = [int(digits[i:i + 2], 16) / 255.0 for i in range(0, len(digits), 2)]
        if len(channels) == 3:
            channels.append(1.0)
        return tuple(channels)  # type: ignore[return-value]

    match = _FUNC_COLOR.match(text)
    if match:
        body = match.group(1).replace("/", " ").replace(",", " ")
        tokens = body.split()
        if len(tokens) not in (3, 4):
            return None
        try:
            r, g, b = (_channel(t) for t in tokens[:3])
            a = _alpha(tokens[3]) if len(tokens) == 4 else 1.0
        except ValueError:
            return None
        return tuple(min(max(c, 0.0), 1.0) for c in (r, g, b, a))  # type: ignore[return-value]

    return None


def color_distance(a: RGBA, b: RGBA) -> float:
    """Euclidean distance over the four RGBA components. Symmetric."""
    return math.sqrt(sum((x - y) ** 2 for x, y in zip(a, b)))


# =============================================================================
# LENGTH PARSING
# =============================================================================

_LENGTH = re.compile(r"^(-?\d*\.?\d+)(px|rem|em|pt)?$")


def parse_length(token: str, root_font_size: float = DEFAULT_ROOT_FONT_SIZE) -> Optional[float]:
    """Parse one length token to pixels. None if not a length."""
    match = _LENGTH.match(token.strip().lower())
    if not match:
        return None
    number = float(match.group(1))
    unit = match.group(2)
    if unit in ("rem", "em"):
        return number * root_font_size
    if unit == "pt":
        return number * 4.0 / 3.0
    return number


def parse_lengths(
    value: str,
    root_font_size: float = DEFAULT_ROOT_FONT_SIZE,
) -> Optional[list[float]]:
    """
    Parse a single length or a shorthand of lengths (e.g. "8px 16px").

    Returns None unless every token is a length.
    """
    tokens = str(value).split()
    if not tokens:
        return None
    lengths = []
    for token in tokens:
        parsed = parse_length(token, root_font_size)
        if parsed is None:
            return None
        lengths.append(parsed)
    return lengths


# =============================================================================
# NOTICEABILITY
# =============================================================================

_BUCKET_SCORES = (0.0, 0.25, 0.5, 0.75)


def _bucket(value: float, cuts: Sequence[float], inclusive: bool) -> float:
    for cut, score in zip(cuts, _BUCKET_SCORES):
        if value < cut or (inclusive and value == cut):
            return score
    return 1.0


def color_noticeability(distance: float, cuts: Sequence[float] = DEFAULT_COLOR_BUCKETS) -> float:
    """Step function of color distance."""
    return _bucket(distance, cuts, inclusive=False)


def length_noticeability(delta_px: float, cuts: Sequence[float] = DEFAULT_LENGTH_BUCKETS) -> float:
    """Step function of absolute pixel difference (<=1px negligible, >16px severe)."""
    return _bucket(abs(delta_px), cuts, inclusive=True)


# =============================================================================
# VALUE COMPARISON
# =============================================================================

@dataclass(frozen=True)
class ValueScore:
    """Scores for one property's source/migrated pair."""
    kind: str
    dissimilarity: float
    noticeability: float

    @property
    def combined(self) -> float:
        return (self.dissimilarity + self.noticeability) / 2.0


def _normalize_keyword(value: str) -> str:
    return " ".join(str(value).lower().split())


def _first_family(value: str) -> str:
    first = str(value).split(",")[0]
    return first.strip().strip("'\"").lower()


def compare_keywords(prop: str, source: str, migrated: str) -> ValueScore:
    """
    Keyword comparison: exact 0, containment low, otherwise high.

    Disruptive display transitions are always high.
    """
    if prop == "font-family":
        a, b = _first_family(source), _first_family(migrated)
    else:
        a, b = _normalize_keyword(source), _normalize_keyword(migrated)

    if a == b:
        score = 0.0
    elif prop == "display" and (a == "none" or b == "none" or frozenset({a, b}) in DISRUPTIVE_DISPLAY_PAIRS):
        score = 1.0
    elif a and b and (a in b or b in a):
        score = KEYWORD_CONTAINMENT_SCORE
    else:
        score = 1.0
    return ValueScore(kind="keyword", dissimilarity=score, noticeability=score)


def compare_values(
    prop: str,
    source: object,
    migrated: object,
    category: str,
    color_buckets: Sequence[float] = DEFAULT_COLOR_BUCKETS,
    length_buckets: Sequence[float] = DEFAULT_LENGTH_BUCKETS,
    root_font_size: float = DEFAULT_ROOT_FONT_SIZE,
) -> ValueScore:
    """
    Score a source/migrated value pair for one property.

    Tries color, then length, then falls back to keyword comparison.
    """
    source_text = str(source).strip()
    migrated_text = str(migrated).strip()

    source_color = parse_color(source_text)
    migrated_color = parse_color(migrated_text)
    if source_color is not None and migrated_color is not None:
        distance = color_distance(source_color, migrated_color)
        return ValueScore(
            kind="color",
            dissimilarity=min(distance, 1.0),
            noticeability=color_noticeability(distance, color_buckets),
        )

    # Opacity is a unitless fraction, not a length
    if prop == "opacity":
        try:
            delta = abs(float(source_text) - float(migrated_text))
        except ValueError:
            return compare_keywords(prop, source_text, migrated_text)
        return ValueScore(
            kind="number",
            dissimilarity=min(delta, 1.0),
            noticeability=color_noticeability(delta, color_buckets),
        )

    source_lengths = parse_lengths(source_text, root_font_size)
    migrated_lengths = parse_lengths(migrated_text, root_font_size)
    if (
        source_lengths is not None
        and migrated_lengths is not None
        and len(source_lengths) == len(migrated_lengths)
    ):
        max_delta = max_delta_for(category)
        deltas = [abs(a - b) for a, b in zip(source_lengths, migrated_lengths)]
        dissimilarity = sum(min(d / max_delta, 1.0) for d in deltas) / len(deltas)
        return ValueScore(
            kind="length",
            dissimilarity=dissimilarity,
            noticeability=length_noticeability(max(deltas), length_buckets),
        )

    return compare_keywords(prop, source_text, migrated_text)
