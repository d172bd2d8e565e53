"""
Style Comparator for paritygate.

Compares two flat maps of computed CSS properties for one UI component.

Core principle:
    Every point of lost similarity traces back to one property, one
    category weight and one recorded difference.

Score composition:
    similarity = (1 - sum(d_i * w_i) / sum(w_i)) * 100

    where d_i is a property's dissimilarity and w_i its category weight.
    Rounded to 2 decimals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..config import GateConfig
from .values import CATEGORIES, ValueScore, categorize, compare_values


logger = logging.getLogger(__name__)


# Score assigned to a property that exists on one side only
MISSING_PROPERTY_SCORE = ValueScore(kind="missing", dissimilarity=1.0, noticeability=0.5)

# Categories whose fixes are always HIGH priority
STRUCTURAL_CATEGORIES = frozenset({"layout", "sizing"})


# =============================================================================
# GRADE AND PRIORITY (Deterministic, Threshold-Based)
# =============================================================================

class Grade(Enum):
    """
    Overall grade bands:
    - EXCELLENT: similarity >= 95
    - GOOD: similarity >= 85
    - FAIR: similarity >= 70
    - POOR: similarity < 70
    """
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


def compute_grade(similarity: float) -> Grade:
    if similarity >= 95:
        return Grade.EXCELLENT
    elif similarity >= 85:
        return Grade.GOOD
    elif similarity >= 70:
        return Grade.FAIR
    else:
        return Grade.POOR


class Priority(Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        return {"HIGH": 0, "MEDIUM": 1, "LOW": 2}[self.value]


def compute_priority(combined: float, category: str) -> Priority:
    """
    HIGH for combined >= 0.6 or layout/sizing; MEDIUM for >= 0.3; else LOW.

    Within a category the tier never decreases as the score increases.
    """
    if combined >= 0.6 or category in STRUCTURAL_CATEGORIES:
        return Priority.HIGH
    elif combined >= 0.3:
        return Priority.MEDIUM
    else:
        return Priority.LOW


# =============================================================================
# DIFFERENCES AND FIXES
# =============================================================================

@dataclass(frozen=True)
class StyleDifference:
    """One property whose values differ above the noise floor."""
    property: str
    category: str
    source: Optional[str]
    migrated: Optional[str]
    score: ValueScore

    def to_dict(self) -> dict[str, Any]:
        return {
            "property": self.property,
            "category": self.category,
            "source": self.source,
            "migrated": self.migrated,
            "kind": self.score.kind,
            "dissimilarity": round(self.score.dissimilarity, 4),
            "noticeability": round(self.score.noticeability, 4),
            "score": round(self.score.combined, 4),
        }


@dataclass(frozen=True)
class StyleFix:
    """A suggested correction for one difference."""
    property: str
    category: str
    priority: Priority
    score: float
    suggestion: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "property": self.property,
            "category": self.category,
            "priority": self.priority.value,
            "score": round(self.score, 4),
            "suggestion": self.suggestion,
        }


def suggest_fix(difference: StyleDifference) -> str:
    if difference.migrated is None:
        return f"Add `{difference.property}: {difference.source}` to the migrated component"
    if difference.source is None:
        return (
            f"Remove `{difference.property}: {difference.migrated}` from the migrated "
            f"component (not set on the source)"
        )
    return (
        f"Set `{difference.property}` to `{difference.source}` "
        f"(currently `{difference.migrated}`)"
    )


# =============================================================================
# COMPARISON RESULT
# =============================================================================

@dataclass
class StyleComparison:
    """
    Complete style comparison for one component.

    Exposes:
    - overall similarity and grade
    - per-category similarity
    - differences (worst first)
    - fixes (HIGH first, then by score)
    """
    component_id: str
    similarity: float
    threshold: float
    category_similarity: dict[str, float]
    differences: list[StyleDifference] = field(default_factory=list)
    fixes: list[StyleFix] = field(default_factory=list)
    compared_properties: int = 0

    @property
    def grade(self) -> Grade:
        return compute_grade(self.similarity)

    @property
    def passed(self) -> bool:
        return self.similarity >= self.threshold

    def to_dict(self) -> dict[str, Any]:
        return {
            "componentId": self.component_id,
            "similarity": self.similarity,
            "grade": self.grade.value,
            "threshold": self.threshold,
            "passed": self.passed,
            "comparedProperties": self.compared_properties,
            "categorySimilarity": self.category_similarity,
            "differences": [d.to_dict() for d in self.differences],
            "fixes": [f.to_dict() for f in self.fixes],
        }


def extract_styles(document: dict[str, Any]) -> dict[str, Any]:
    """Accept either a flat property map or a `{component, styles}` wrapper."""
    styles = document.get("styles")
    if isinstance(styles, dict):
        return styles
    return document


def compare_styles(
    source: dict[str, Any],
    migrated: dict[str, Any],
    component_id: str = "component",
    config: Optional[GateConfig] = None,
    threshold: Optional[float] = None,
) -> StyleComparison:
    """
    Compare two computed-style maps for one component.

    This is the main entry point of the style comparator.

    Args:
        source: Property map captured from the source component
        migrated: Property map captured from the migrated component
        component_id: Name used in reports and registers
        config: Tunables (weights, buckets, floors)
        threshold: Minimum similarity to pass (defaults to config)

    Returns:
        StyleComparison with similarity, differences and fixes
    """
    config = config or GateConfig()
    if threshold is None:
        threshold = config.style_threshold

    properties = sorted(set(source) | set(migrated))

    weighted_sum = 0.0
    weight_total = 0.0
    per_category: dict[str, list[tuple[float, float]]] = {c: [] for c in CATEGORIES}
    differences: list[StyleDifference] = []

    for prop in properties:
        category = categorize(prop)
        weight = config.weight_for(category)
        source_value = source.get(prop)
        migrated_value = migrated.get(prop)

        if source_value is None or migrated_value is None:
            score = MISSING_PROPERTY_SCORE
        else:
            score = compare_values(
                prop,
                source_value,
                migrated_value,
                category,
                color_buckets=config.color_buckets,
                length_buckets=config.length_buckets,
                root_font_size=config.root_font_size,
            )

        weighted_sum += score.dissimilarity * weight
        weight_total += weight
        per_category[category].append((score.dissimilarity, weight))

        if score.combined > config.noise_floor:
            differences.append(StyleDifference(
                property=prop,
                category=category,
                source=None if source_value is None else str(source_value),
                migrated=None if migrated_value is None else str(migrated_value),
                score=score,
            ))

    similarity = 100.0 if weight_total == 0 else round((1 - weighted_sum / weight_total) * 100, 2)

    category_similarity = {}
    for category, scores in per_category.items():
        if not scores:
            continue
        total = sum(w for _, w in scores)
        category_similarity[category] = round(
            (1 - sum(d * w for d, w in scores) / total) * 100, 2
        ) if total else 100.0

    differences.sort(key=lambda d: (-d.score.combined, d.property))

    fixes = [
        StyleFix(
            property=d.property,
            category=d.category,
            priority=compute_priority(d.score.combined, d.category),
            score=d.score.combined,
            suggestion=suggest_fix(d),
        )
        for d in differences
        if d.score.combined > config.fix_floor
    ]
    fixes.sort(key=lambda f: (f.priority.rank, -f.score, f.property))

    logger.debug(
        "Style comparison for %s: %.2f%% over %d properties, %d differences",
        component_id, similarity, len(properties), len(differences),
    )

    return StyleComparison(
        component_id=component_id,
        similarity=similarity,
        threshold=threshold,
        category_similarity=category_similarity,
        differences=differences,
        fixes=fixes,
        compared_properties=len(properties),
    )
