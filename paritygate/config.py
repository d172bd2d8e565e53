"""
Configuration for paritygate.

Every threshold the comparators and the gate rely on lives here. The
defaults are empirically chosen tuning values, not derived constants, so
all of them can be overridden from a `paritygate.yaml` file at the
workspace root.

Example file:

    structure_threshold: 90
    text_similarity_threshold: 0.65
    category_weights:
      effects: 0.2
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Optional

import yaml

from .domain import DataError


logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

CONFIG_FILENAME = "paritygate.yaml"

# Acceptance thresholds (percent)
DEFAULT_STRUCTURE_THRESHOLD = 95
DEFAULT_STYLE_THRESHOLD = 95

# Free-text token-overlap acceptance boundary
DEFAULT_TEXT_SIMILARITY_THRESHOLD = 0.6

# Style difference floors (combined score)
DEFAULT_NOISE_FLOOR = 0.05
DEFAULT_FIX_FLOOR = 0.1

# Color distance cut points -> noticeability 0, 0.25, 0.5, 0.75 (else 1.0)
DEFAULT_COLOR_BUCKETS = (0.05, 0.15, 0.3, 0.5)

# Absolute pixel difference cut points -> noticeability 0, 0.25, 0.5, 0.75
DEFAULT_LENGTH_BUCKETS = (1.0, 4.0, 8.0, 16.0)

DEFAULT_ROOT_FONT_SIZE = 16.0

# Content-integrity heuristics for integration code
DEFAULT_MAX_LITERAL_LENGTH = 160
DEFAULT_MAX_ABSOLUTE_LINKS = 5

DEFAULT_CATEGORY_WEIGHTS = {
    "colors": 1.0,
    "typography": 0.9,
    "spacing": 0.8,
    "sizing": 0.8,
    "borders": 0.6,
    "layout": 1.0,
    "effects": 0.4,
    "backgrounds": 0.7,
    "misc": 0.2,
}


# =============================================================================
# GATE CONFIG
# =============================================================================

@dataclass(frozen=True)
class GateConfig:
    """Tunable parameters shared by the comparators and the gate."""
    structure_threshold: int = DEFAULT_STRUCTURE_THRESHOLD
    style_threshold: int = DEFAULT_STYLE_THRESHOLD
    text_similarity_threshold: float = DEFAULT_TEXT_SIMILARITY_THRESHOLD
    noise_floor: float = DEFAULT_NOISE_FLOOR
    fix_floor: float = DEFAULT_FIX_FLOOR
    color_buckets: tuple[float, ...] = DEFAULT_COLOR_BUCKETS
    length_buckets: tuple[float, ...] = DEFAULT_LENGTH_BUCKETS
    root_font_size: float = DEFAULT_ROOT_FONT_SIZE
    max_literal_length: int = DEFAULT_MAX_LITERAL_LENGTH
    max_absolute_links: int = DEFAULT_MAX_ABSOLUTE_LINKS
    category_weights: Mapping[str, float] = field(
        default_factory=lambda: dict(DEFAULT_CATEGORY_WEIGHTS)
    )

    def __post_init__(self):
        # Read-only view over a private copy
        object.__setattr__(self, "category_weights", MappingProxyType(dict(self.category_weights)))

    def weight_for(self, category: str) -> float:
        return self.category_weights.get(category, DEFAULT_CATEGORY_WEIGHTS["misc"])


def _coerce(name: str, value: Any, default: Any) -> Any:
    """Coerce a YAML value to the type of the default, or raise DataError."""
    if isinstance(default, bool):
        raise DataError(CONFIG_FILENAME, f"unsupported boolean option '{name}'")
    if isinstance(default, int):
        if isinstance(value, bool) or not isinstance(value, int):
            raise DataError(CONFIG_FILENAME, f"'{name}' must be an integer, got {value!r}")
        return value
    if isinstance(default, float):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise DataError(CONFIG_FILENAME, f"'{name}' must be a number, got {value!r}")
        return float(value)
    if isinstance(default, tuple):
        if not isinstance(value, list) or len(value) != len(default):
            raise DataError(
                CONFIG_FILENAME,
                f"'{name}' must be a list of {len(default)} numbers, got {value!r}",
            )
        cuts = tuple(_coerce(name, v, 0.0) for v in value)
        if list(cuts) != sorted(cuts):
            raise DataError(CONFIG_FILENAME, f"'{name}' cut points must be ascending")
        return cuts
    if isinstance(default, Mapping):
        if not isinstance(value, dict):
            raise DataError(CONFIG_FILENAME, f"'{name}' must be a mapping, got {value!r}")
        merged = dict(default)
        for key, weight in value.items():
            if key not in default:
                raise DataError(CONFIG_FILENAME, f"unknown category '{key}' in '{name}'")
            merged[key] = _coerce(f"{name}.{key}", weight, 0.0)
        return merged
    raise DataError(CONFIG_FILENAME, f"unsupported option '{name}'")


def config_from_mapping(data: dict[str, Any], base: Optional[GateConfig] = None) -> GateConfig:
    """
    Overlay a mapping of options onto a config.

    Raises:
        DataError: On unknown keys or wrongly typed values
    """
    base = base or GateConfig()
    known = {f.name for f in fields(GateConfig)}
    overrides = {}
    for name, value in data.items():
        if name not in known:
            raise DataError(CONFIG_FILENAME, f"unknown option '{name}'")
        overrides[name] = _coerce(name, value, getattr(base, name))
    return replace(base, **overrides)


def load_config(path: Optional[Path] = None) -> GateConfig:
    """
    Load configuration from a YAML file.

    A missing file yields the defaults. A present but malformed file is
    an error: silently running with defaults would change gate outcomes.

    Raises:
        DataError: If the file cannot be parsed or has invalid options
    """
    if path is None or not path.exists():
        return GateConfig()

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise DataError(str(path), f"cannot read config: {e}") from e

    if data is None:
        return GateConfig()
    if not isinstance(data, dict):
        raise DataError(str(path), "config root must be a mapping")

    config = config_from_mapping(data)
    logger.debug("Loaded configuration from %s", path)
    return config
