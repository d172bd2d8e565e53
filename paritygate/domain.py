"""
Core Domain Objects for paritygate.

Every comparison result lands in a Register; every gate evaluation lands
in a Decision. Nothing else is workflow state.

Domain Objects:
    Item         One sub-component under comparison (tagged variants)
    Register     An ordered list of Items with an allValidated rollup
    Finding      One rule violation found during a gate evaluation
    Decision     The allow/block/warn outcome of one gate evaluation
    GateEvent    The external event that triggers an evaluation
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional

from .evidence import CritiqueEvidence, EvidenceValidationError


# =============================================================================
# ERRORS
# =============================================================================

class ParityGateError(Exception):
    """Base class for all paritygate errors."""


class UsageError(ParityGateError):
    """Bad command-line arguments or missing input files (exit code 2)."""


class DataError(ParityGateError):
    """
    A malformed or unreadable document.

    Aborts a single comparator run. Inside the gate engine it degrades to
    "artifact invalid" instead of propagating.
    """

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


# =============================================================================
# ITEMS
# =============================================================================

class ItemStatus(Enum):
    """Validation status of an Item. Items only move forward."""
    PENDING = "pending"
    VALIDATED = "validated"
    FAILED = "failed"


# type tag -> Item subclass, filled by register_item_type
ITEM_TYPES: dict[str, type] = {}


def register_item_type(cls):
    """Class decorator adding an Item variant to the type-tag registry."""
    ITEM_TYPES[cls.kind] = cls
    return cls


@dataclass
class Item:
    """
    Common shape of every Item variant.

    Subclasses add their facet fields and set `kind`, which is written
    to JSON as the `type` tag.
    """
    kind: ClassVar[str] = "item"

    id: str
    label: str
    status: ItemStatus = ItemStatus.PENDING
    remediation: str = ""

    @property
    def is_validated(self) -> bool:
        return self.status == ItemStatus.VALIDATED

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "type": self.kind,
            "label": self.label,
            "status": self.status.value,
            "remediation": self.remediation,
        }
        data.update(self._facets_to_dict())
        return data

    def _facets_to_dict(self) -> dict[str, Any]:
        return {}

    @classmethod
    def _base_kwargs(cls, data: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": data["id"],
            "label": data.get("label", ""),
            "status": ItemStatus(data.get("status", "pending")),
            "remediation": data.get("remediation", ""),
        }

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> Item:
        return cls(**cls._base_kwargs(data))


# -----------------------------------------------------------------------------
# Structural items
# -----------------------------------------------------------------------------

@dataclass
class StructuralItem(Item):
    """A structural leaf: a header row, the megamenu, or a megamenu column."""
    structure_match: bool = False

    def _facets_to_dict(self) -> dict[str, Any]:
        return {"structureMatch": self.structure_match}

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> Item:
        return cls(
            **cls._base_kwargs(data),
            structure_match=bool(data.get("structureMatch", False)),
        )


@register_item_type
@dataclass
class RowItem(StructuralItem):
    kind: ClassVar[str] = "row"


@register_item_type
@dataclass
class MegamenuItem(StructuralItem):
    kind: ClassVar[str] = "megamenu"


@register_item_type
@dataclass
class MegamenuColumnItem(StructuralItem):
    kind: ClassVar[str] = "megamenu-column"


# -----------------------------------------------------------------------------
# Behavior items
# -----------------------------------------------------------------------------

@dataclass
class BehaviorItem(Item):
    """An interactive element compared on hover, click and styling facets."""
    hover_match: bool = False
    click_match: bool = False
    styling_match: bool = False
    parent_id: Optional[str] = None

    def _facets_to_dict(self) -> dict[str, Any]:
        return {
            "hoverMatch": self.hover_match,
            "clickMatch": self.click_match,
            "stylingMatch": self.styling_match,
            "parentId": self.parent_id,
        }

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> Item:
        return cls(
            **cls._base_kwargs(data),
            hover_match=bool(data.get("hoverMatch", False)),
            click_match=bool(data.get("clickMatch", False)),
            styling_match=bool(data.get("stylingMatch", False)),
            parent_id=data.get("parentId"),
        )


@register_item_type
@dataclass
class TriggerItem(BehaviorItem):
    """A top-level navigation trigger."""
    kind: ClassVar[str] = "trigger"


@register_item_type
@dataclass
class PanelItem(BehaviorItem):
    """An entry inside a trigger's panel, at any nesting depth."""
    kind: ClassVar[str] = "panel-item"


@register_item_type
@dataclass
class TabItem(BehaviorItem):
    kind: ClassVar[str] = "tab"


@register_item_type
@dataclass
class FeaturedAreaItem(BehaviorItem):
    kind: ClassVar[str] = "featured-area"


@register_item_type
@dataclass
class SpecBlockItem(BehaviorItem):
    kind: ClassVar[str] = "spec-block"


# -----------------------------------------------------------------------------
# Style items
# -----------------------------------------------------------------------------

@register_item_type
@dataclass
class StyleItem(Item):
    """
    A style target (one UI component) with its critique evidence.

    `similarity` is informational only. Whether a validated claim holds is
    decided by the evidence, never by this number.
    """
    kind: ClassVar[str] = "style-target"

    similarity: Optional[float] = None
    evidence: Optional[CritiqueEvidence] = None

    def _facets_to_dict(self) -> dict[str, Any]:
        return {
            "similarity": self.similarity,
            "evidence": self.evidence.to_dict() if self.evidence else None,
        }

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> Item:
        evidence_data = data.get("evidence")
        return cls(
            **cls._base_kwargs(data),
            similarity=data.get("similarity"),
            evidence=(
                CritiqueEvidence.from_dict(evidence_data)
                if evidence_data is not None else None
            ),
        )


def item_from_dict(data: dict[str, Any]) -> Item:
    """
    Build the Item variant named by the `type` tag.

    Raises:
        DataError: If the tag is unknown or a field is malformed
    """
    tag = data.get("type")
    cls = ITEM_TYPES.get(tag)
    if cls is None:
        raise DataError("item", f"unknown item type {tag!r}")
    try:
        return cls._from_dict(data)
    except (KeyError, ValueError, EvidenceValidationError) as e:
        raise DataError("item", f"malformed {tag} item {data.get('id')!r}: {e}") from e


# =============================================================================
# REGISTER
# =============================================================================

@dataclass
class Register:
    """
    An ordered list of Items plus an aggregate allValidated flag.

    INVARIANT: all_validated is True iff the register is non-empty and
    every Item is validated. `declared_all_validated` keeps what a loaded
    document claimed, so inconsistent documents can be detected.
    """
    name: str
    items: list[Item] = field(default_factory=list)
    summary: dict[str, Any] = field(default_factory=dict)
    declared_all_validated: Optional[bool] = None

    @property
    def all_validated(self) -> bool:
        return bool(self.items) and all(item.is_validated for item in self.items)

    @property
    def is_consistent(self) -> bool:
        """True unless the document claimed a different allValidated value."""
        if self.declared_all_validated is None:
            return True
        return self.declared_all_validated == self.all_validated

    def counts(self) -> dict[str, int]:
        """Per-status counts."""
        counts = {"total": len(self.items)}
        for status in ItemStatus:
            counts[status.value] = sum(1 for i in self.items if i.status == status)
        return counts

    def get(self, item_id: str) -> Optional[Item]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def upsert(self, item: Item) -> None:
        """Replace the Item with the same id, or append it."""
        for index, existing in enumerate(self.items):
            if existing.id == item.id:
                self.items[index] = item
                return
        self.items.append(item)

    def to_dict(self) -> dict[str, Any]:
        summary = dict(self.summary)
        summary.update(self.counts())
        return {
            "register": self.name,
            "items": [item.to_dict() for item in self.items],
            "allValidated": self.all_validated,
            "summary": summary,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], name: str = "") -> Register:
        """
        Build a Register from its JSON form.

        Raises:
            DataError: If an Item is malformed
        """
        items = [item_from_dict(raw) for raw in data.get("items", [])]
        return cls(
            name=data.get("register", name) or name,
            items=items,
            summary=dict(data.get("summary", {})),
            declared_all_validated=data.get("allValidated"),
        )


# =============================================================================
# GATE OUTCOMES
# =============================================================================

class Outcome(Enum):
    """Decision outcomes, ordered by severity."""
    ALLOW = "allow"
    WARN = "warn"
    BLOCK = "block"

    @property
    def rank(self) -> int:
        return _OUTCOME_RANK[self]


_OUTCOME_RANK = {Outcome.ALLOW: 0, Outcome.WARN: 1, Outcome.BLOCK: 2}


class GateRule(Enum):
    """
    Gate rules. Each Finding names the rule that produced it.

    G1: Ordering (prerequisite missing or not validated)
    G2: Placement (artifact written outside its canonical path)
    G3: Completeness (claimed sub-resource not referenced)
    G4: Proof (validated claim without evidence)
    G5: Content integrity (canonical content duplicated inline)
    G6: Session completeness (end-of-session sweep)
    G7: Register consistency (allValidated disagrees with items)
    G8: Invalid artifact (unreadable or schema violation)
    """
    G1_ORDERING = "ordering"
    G2_PLACEMENT = "placement"
    G3_COMPLETENESS = "completeness"
    G4_PROOF = "proof"
    G5_CONTENT_INTEGRITY = "content_integrity"
    G6_SESSION_COMPLETENESS = "session_completeness"
    G7_REGISTER_CONSISTENCY = "register_consistency"
    G8_INVALID_ARTIFACT = "invalid_artifact"


@dataclass(frozen=True)
class Finding:
    """
    One rule violation with an auditable reason.

    `remediation` is a concrete instruction: which artifact, which
    comparator, which path.
    """
    rule: GateRule
    outcome: Outcome
    reason: str
    remediation: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule": self.rule.value,
            "outcome": self.outcome.value,
            "reason": self.reason,
            "remediation": self.remediation,
        }


@dataclass(frozen=True)
class Decision:
    """
    The result of one gate evaluation.

    Transient: appended to the audit log, never persisted as workflow
    state.
    """
    outcome: Outcome
    reason: str
    remediation: tuple[str, ...] = ()
    findings: tuple[Finding, ...] = ()

    @property
    def allowed(self) -> bool:
        return self.outcome != Outcome.BLOCK

    @classmethod
    def from_findings(cls, findings: list[Finding], subject: str) -> Decision:
        """
        Aggregate findings: any block blocks, else any warn warns.

        Remediation keeps first-seen order and drops duplicates.
        """
        if not findings:
            return cls(outcome=Outcome.ALLOW, reason=f"All checks passed for {subject}")

        outcome = max((f.outcome for f in findings), key=lambda o: o.rank)
        remediation: list[str] = []
        for finding in findings:
            if finding.remediation and finding.remediation not in remediation:
                remediation.append(finding.remediation)

        relevant = [f for f in findings if f.outcome == outcome]
        reason = f"{subject}: " + "; ".join(f.reason for f in relevant)
        return cls(
            outcome=outcome,
            reason=reason,
            remediation=tuple(remediation),
            findings=tuple(findings),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "reason": self.reason,
            "remediation": list(self.remediation),
        }


class EventType(Enum):
    WRITE = "write"
    SESSION_END = "session-end"


@dataclass(frozen=True)
class GateEvent:
    """
    An external event triggering one gate evaluation.

    For writes, `content` is the text that was written. When it is None
    the engine reads the target from disk.
    """
    event_type: EventType
    target_path: Optional[str] = None
    content: Optional[str] = None

    @classmethod
    def write(cls, target_path: str, content: Optional[str] = None) -> GateEvent:
        return cls(event_type=EventType.WRITE, target_path=target_path, content=content)

    @classmethod
    def session_end(cls) -> GateEvent:
        return cls(event_type=EventType.SESSION_END)
