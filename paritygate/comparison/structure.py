"""
Structural Comparator for paritygate.

Compares two structural summaries of a header: row count, per-row image
flag, megamenu presence, megamenu column count, per-column image flag.

Scoring:
    Both summaries are flattened into an ordered list of leaf checks,
    aligned positionally. similarity = round(matched / total * 100).
    Every leaf that fails becomes one human-readable mismatch line.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Optional

from ..config import DEFAULT_STRUCTURE_THRESHOLD
from ..domain import (
    Item,
    ItemStatus,
    MegamenuColumnItem,
    MegamenuItem,
    Register,
    RowItem,
)


logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (70.5 -> 71)."""
    return int(math.floor(value + 0.5))


# =============================================================================
# LEAF CHECKS
# =============================================================================

@dataclass(frozen=True)
class LeafCheck:
    """
    One positional leaf comparison.

    `item_id` groups leaves into register Items (several leaves can share
    an Item, e.g. megamenu presence and column count). Leaves with no
    item_id only count toward the score.
    """
    name: str
    source: Any
    migrated: Any
    item_id: Optional[str] = None
    label: str = ""

    @property
    def matched(self) -> bool:
        return self.source == self.migrated

    def describe(self) -> str:
        return f"{self.name}: source={_fmt(self.source)}, migrated={_fmt(self.migrated)}"


def _fmt(value: Any) -> str:
    if value is None:
        return "missing"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _slot_flag(slots: list[dict], index: int) -> Optional[bool]:
    if index < len(slots):
        return bool(slots[index].get("hasImages", False))
    return None


def flatten_checks(source: dict[str, Any], migrated: dict[str, Any]) -> list[LeafCheck]:
    """
    Flatten two summaries into aligned leaf checks.

    Order: rowCount, row-i.hasImages, megamenu.present, then (only when
    both sides have a megamenu) megamenu.columnCount and
    megamenu-column-i.hasImages. A slot present on one side only is a
    mismatch against "missing".
    """
    checks = [LeafCheck("rowCount", source.get("rowCount"), migrated.get("rowCount"))]

    source_rows = source.get("rows", [])
    migrated_rows = migrated.get("rows", [])
    for i in range(max(len(source_rows), len(migrated_rows))):
        checks.append(LeafCheck(
            f"row-{i}.hasImages",
            _slot_flag(source_rows, i),
            _slot_flag(migrated_rows, i),
            item_id=f"row-{i}",
            label=f"Row {i + 1}",
        ))

    source_menu = source.get("megamenu")
    migrated_menu = migrated.get("megamenu")
    checks.append(LeafCheck(
        "megamenu.present",
        source_menu is not None,
        migrated_menu is not None,
        item_id="megamenu",
        label="Megamenu",
    ))

    if source_menu is not None and migrated_menu is not None:
        checks.append(LeafCheck(
            "megamenu.columnCount",
            source_menu.get("columnCount"),
            migrated_menu.get("columnCount"),
            item_id="megamenu",
            label="Megamenu",
        ))
        source_columns = source_menu.get("columns", [])
        migrated_columns = migrated_menu.get("columns", [])
        for i in range(max(len(source_columns), len(migrated_columns))):
            checks.append(LeafCheck(
                f"megamenu-column-{i}.hasImages",
                _slot_flag(source_columns, i),
                _slot_flag(migrated_columns, i),
                item_id=f"megamenu-column-{i}",
                label=f"Megamenu column {i + 1}",
            ))

    return checks


# =============================================================================
# COMPARISON RESULT
# =============================================================================

_ITEM_CLASSES = {
    "row": RowItem,
    "megamenu": MegamenuItem,
    "megamenu-column": MegamenuColumnItem,
}


@dataclass
class StructureComparison:
    """
    Result of a structural comparison.

    Exposes:
    - similarity (integer percent)
    - matched/total leaf counts
    - mismatch descriptions, in leaf order
    - per-leaf register Items
    """
    checks: list[LeafCheck]
    threshold: int = DEFAULT_STRUCTURE_THRESHOLD
    items: list[Item] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.checks)

    @property
    def matched(self) -> int:
        return sum(1 for c in self.checks if c.matched)

    @property
    def similarity(self) -> int:
        if not self.checks:
            return 100
        return round_half_up(self.matched / self.total * 100)

    @property
    def mismatches(self) -> list[str]:
        return [c.describe() for c in self.checks if not c.matched]

    @property
    def passed(self) -> bool:
        return self.similarity >= self.threshold

    def to_register(self, name: str = "structural-register") -> Register:
        return Register(
            name=name,
            items=list(self.items),
            summary={
                "similarity": self.similarity,
                "threshold": self.threshold,
                "matchedChecks": self.matched,
                "totalChecks": self.total,
            },
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "similarity": self.similarity,
            "threshold": self.threshold,
            "passed": self.passed,
            "matchedChecks": self.matched,
            "totalChecks": self.total,
            "mismatches": self.mismatches,
            "items": [item.to_dict() for item in self.items],
        }


def _build_items(checks: list[LeafCheck]) -> list[Item]:
    """One Item per item_id; validated iff all of its leaves matched."""
    grouped: dict[str, list[LeafCheck]] = {}
    for check in checks:
        if check.item_id is not None:
            grouped.setdefault(check.item_id, []).append(check)

    items: list[Item] = []
    for item_id, leaves in grouped.items():
        kind = "megamenu-column" if item_id.startswith("megamenu-column") else item_id.split("-")[0]
        matched = all(leaf.matched for leaf in leaves)
        failing = [leaf.describe() for leaf in leaves if not leaf.matched]
        items.append(_ITEM_CLASSES[kind](
            id=item_id,
            label=leaves[0].label,
            status=ItemStatus.VALIDATED if matched else ItemStatus.FAILED,
            remediation="" if matched else "Fix structure so that " + "; ".join(failing),
            structure_match=matched,
        ))
    return items


def compare_structures(
    source: dict[str, Any],
    migrated: dict[str, Any],
    threshold: int = DEFAULT_STRUCTURE_THRESHOLD,
) -> StructureComparison:
    """
    Compare two structural summaries.

    This is the main entry point of the structural comparator.

    Args:
        source: Summary captured from the source page
        migrated: Summary captured from the migrated page
        threshold: Minimum similarity (percent) to pass

    Returns:
        StructureComparison with similarity, mismatches and Items
    """
    checks = flatten_checks(source, migrated)
    result = StructureComparison(checks=checks, threshold=threshold, items=_build_items(checks))
    logger.debug(
        "Structure comparison: %d/%d leaves matched (%d%%)",
        result.matched, result.total, result.similarity,
    )
    return result
