"""
Behavior Comparator for paritygate.

Compares two nested trees of interactive elements: top-level triggers,
their panel items and sub-items, and the sibling slots (category tabs,
featured areas, spec panels).

Design principles:
- Nodes are correlated by normalized label, then by position
- Each matched pair is compared on three independent facets
  (hover, click, styling)
- A node is validated only if every facet matches
- Every visited node appears once in the flat output register
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from ..config import DEFAULT_TEXT_SIMILARITY_THRESHOLD
from ..domain import (
    BehaviorItem,
    FeaturedAreaItem,
    ItemStatus,
    PanelItem,
    Register,
    SpecBlockItem,
    TabItem,
    TriggerItem,
)
from .text import normalize_label, normalize_target, text_matches


logger = logging.getLogger(__name__)


# slot key -> (id prefix, Item class)
CHILD_SLOTS = (
    ("items", "item", PanelItem),
    ("tabs", "tab", TabItem),
    ("featured", "featured", FeaturedAreaItem),
    ("specs", "spec", SpecBlockItem),
)


# =============================================================================
# NODE CORRELATION
# =============================================================================

def correlate_nodes(
    source_nodes: list[dict[str, Any]],
    migrated_nodes: list[dict[str, Any]],
) -> tuple[list[tuple[int, Optional[int]]], list[int]]:
    """
    Pair source nodes with migrated nodes.

    Pass 1 matches by normalized label; pass 2 pairs each leftover source
    node with the migrated node at the same index, if still unused.

    Returns:
        (pairs of source index -> migrated index or None,
         indices of migrated nodes left unmatched)
    """
    used: set[int] = set()
    pairs: dict[int, Optional[int]] = {}

    by_label: dict[str, list[int]] = {}
    for j, node in enumerate(migrated_nodes):
        by_label.setdefault(normalize_label(node.get("label")), []).append(j)

    for i, node in enumerate(source_nodes):
        label = normalize_label(node.get("label"))
        candidates = [j for j in by_label.get(label, []) if j not in used]
        if label and candidates:
            pairs[i] = candidates[0]
            used.add(candidates[0])

    for i in range(len(source_nodes)):
        if i in pairs:
            continue
        if i < len(migrated_nodes) and i not in used:
            pairs[i] = i
            used.add(i)
        else:
            pairs[i] = None

    unmatched = [j for j in range(len(migrated_nodes)) if j not in used]
    return sorted(pairs.items()), unmatched


# =============================================================================
# FACET COMPARISON
# =============================================================================

@dataclass
class FacetResult:
    """Outcome of one facet comparison with the concrete deltas."""
    name: str
    deltas: list[str] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return not self.deltas


def _delta(field_name: str, source: Any, migrated: Any) -> str:
    return f"{field_name}: source={source!r}, migrated={migrated!r}"


def compare_hover(source: dict, migrated: dict, threshold: float) -> FacetResult:
    result = FacetResult("hover")
    for key in ("hasEffect", "affectsOther"):
        a, b = bool(source.get(key, False)), bool(migrated.get(key, False))
        if a != b:
            result.deltas.append(_delta(key, a, b))
    a, b = source.get("description", ""), migrated.get("description", "")
    if not text_matches(a, b, threshold):
        result.deltas.append(_delta("description", a, b))
    return result


def compare_click(source: dict, migrated: dict, threshold: float) -> FacetResult:
    result = FacetResult("click")
    a, b = bool(source.get("navigates", False)), bool(migrated.get("navigates", False))
    if a != b:
        result.deltas.append(_delta("navigates", a, b))
    a, b = normalize_target(source.get("target")), normalize_target(migrated.get("target"))
    if a != b:
        result.deltas.append(_delta("target", a, b))
    a, b = source.get("description", ""), migrated.get("description", "")
    if not text_matches(a, b, threshold):
        result.deltas.append(_delta("description", a, b))
    return result


def compare_styling(source_node: dict, migrated_node: dict) -> FacetResult:
    result = FacetResult("styling")
    source = source_node.get("styling") or {}
    migrated = migrated_node.get("styling") or {}

    a, b = bool(source.get("hasMedia", False)), bool(migrated.get("hasMedia", False))
    if a != b:
        result.deltas.append(_delta("hasMedia", a, b))
    a, b = source.get("mediaType"), migrated.get("mediaType")
    if (a or None) != (b or None):
        result.deltas.append(_delta("mediaType", a, b))

    # elementType may sit on the node or inside its styling facet
    a = source.get("elementType", source_node.get("elementType"))
    b = migrated.get("elementType", migrated_node.get("elementType"))
    if (a or "").lower() != (b or "").lower():
        result.deltas.append(_delta("elementType", a, b))
    return result


def build_remediation(label: str, facets: list[FacetResult]) -> str:
    parts = []
    for facet in facets:
        if not facet.matched:
            parts.append(f"{facet.name} facet differs ({'; '.join(facet.deltas)})")
    return f"'{label}': " + "; ".join(parts)


# =============================================================================
# TREE WALK
# =============================================================================

@dataclass
class BehaviorComparison:
    """
    Result of a behavior comparison.

    Exposes:
    - every visited node as a flat list of Items (pre-order)
    - per-facet rollup counts
    - overall allValidated flag
    """
    items: list[BehaviorItem] = field(default_factory=list)
    text_threshold: float = DEFAULT_TEXT_SIMILARITY_THRESHOLD

    @property
    def all_validated(self) -> bool:
        return bool(self.items) and all(i.is_validated for i in self.items)

    @property
    def failed(self) -> list[BehaviorItem]:
        return [i for i in self.items if i.status == ItemStatus.FAILED]

    def summary(self) -> dict[str, Any]:
        return {
            "total": len(self.items),
            "validated": sum(1 for i in self.items if i.is_validated),
            "failed": len(self.failed),
            "hoverMatched": sum(1 for i in self.items if i.hover_match),
            "clickMatched": sum(1 for i in self.items if i.click_match),
            "stylingMatched": sum(1 for i in self.items if i.styling_match),
            "textThreshold": self.text_threshold,
        }

    def to_register(self, name: str = "behavior-register") -> Register:
        summary = self.summary()
        summary.pop("total")
        summary.pop("validated")
        summary.pop("failed")
        return Register(name=name, items=list(self.items), summary=summary)

    def to_dict(self) -> dict[str, Any]:
        return {
            "allValidated": self.all_validated,
            "summary": self.summary(),
            "items": [item.to_dict() for item in self.items],
        }


class _TreeWalker:
    """Recursive pairwise walk that accumulates Items."""

    def __init__(self, threshold: float):
        self.threshold = threshold
        self.items: list[BehaviorItem] = []

    def walk_slot(
        self,
        source_nodes: list[dict],
        migrated_nodes: list[dict],
        prefix: str,
        item_cls: type,
        parent_id: Optional[str],
    ) -> None:
        pairs, unmatched = correlate_nodes(source_nodes, migrated_nodes)
        base = f"{parent_id}/" if parent_id else ""

        for i, j in pairs:
            item_id = f"{base}{prefix}-{i}"
            source_node = source_nodes[i]
            if j is None:
                self._missing(source_node, item_id, item_cls, parent_id)
            else:
                self.visit(source_node, migrated_nodes[j], item_id, item_cls, parent_id)

        for j in unmatched:
            self._unexpected(migrated_nodes[j], f"{base}{prefix}-extra-{j}", item_cls, parent_id)

    def visit(
        self,
        source_node: dict,
        migrated_node: dict,
        item_id: str,
        item_cls: type,
        parent_id: Optional[str],
    ) -> None:
        facets = [
            compare_hover(source_node.get("hover") or {}, migrated_node.get("hover") or {}, self.threshold),
            compare_click(source_node.get("click") or {}, migrated_node.get("click") or {}, self.threshold),
            compare_styling(source_node, migrated_node),
        ]
        hover, click, styling = facets
        matched = all(f.matched for f in facets)
        label = source_node.get("label", "")

        self.items.append(item_cls(
            id=item_id,
            label=label,
            status=ItemStatus.VALIDATED if matched else ItemStatus.FAILED,
            remediation="" if matched else build_remediation(label, facets),
            hover_match=hover.matched,
            click_match=click.matched,
            styling_match=styling.matched,
            parent_id=parent_id,
        ))

        for key, prefix, child_cls in CHILD_SLOTS:
            self.walk_slot(
                source_node.get(key) or [],
                migrated_node.get(key) or [],
                prefix,
                child_cls,
                item_id,
            )

    def _missing(self, node: dict, item_id: str, item_cls: type, parent_id: Optional[str]) -> None:
        """A source node with no migrated counterpart; its subtree is missing too."""
        label = node.get("label", "")
        self.items.append(item_cls(
            id=item_id,
            label=label,
            status=ItemStatus.FAILED,
            remediation=f"'{label}': missing in migrated output",
            parent_id=parent_id,
        ))
        for key, prefix, child_cls in CHILD_SLOTS:
            for i, child in enumerate(node.get(key) or []):
                self._missing(child, f"{item_id}/{prefix}-{i}", child_cls, item_id)

    def _unexpected(self, node: dict, item_id: str, item_cls: type, parent_id: Optional[str]) -> None:
        label = node.get("label", "")
        self.items.append(item_cls(
            id=item_id,
            label=label,
            status=ItemStatus.FAILED,
            remediation=f"'{label}': present in migrated output but not in source",
            parent_id=parent_id,
        ))


def compare_behaviors(
    source: dict[str, Any],
    migrated: dict[str, Any],
    text_threshold: float = DEFAULT_TEXT_SIMILARITY_THRESHOLD,
) -> BehaviorComparison:
    """
    Compare two behavior trees.

    This is the main entry point of the behavior comparator.

    Args:
        source: `{triggers: [...]}` captured from the source page
        migrated: `{triggers: [...]}` captured from the migrated page
        text_threshold: Token-overlap acceptance for free-text descriptions

    Returns:
        BehaviorComparison listing every visited node
    """
    walker = _TreeWalker(text_threshold)
    walker.walk_slot(
        source.get("triggers") or [],
        migrated.get("triggers") or [],
        "trigger",
        TriggerItem,
        None,
    )
    result = BehaviorComparison(items=walker.items, text_threshold=text_threshold)
    logger.debug(
        "Behavior comparison: %d nodes, %d failed",
        len(result.items), len(result.failed),
    )
    return result
