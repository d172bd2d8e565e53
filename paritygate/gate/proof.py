"""
Critique Proof Verifier for paritygate.

For every Item claiming `validated` in a style register, confirms the
evidence bundle is real: the report exists, both reference images exist,
and at least one critique iteration was recorded.

Zero tolerance: there is no retry budget and no score that substitutes
for a missing file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from ..domain import Register, StyleItem


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProofViolation:
    """A validated claim that its evidence does not back."""
    item_id: str
    reason: str
    missing_path: str = ""

    def describe(self) -> str:
        return f"style item '{self.item_id}': {self.reason}"


def verify_item(item: StyleItem, root: Path) -> list[ProofViolation]:
    """Check one validated style Item. Unvalidated Items need no proof."""
    if not item.is_validated:
        return []

    evidence = item.evidence
    if evidence is None:
        return [ProofViolation(item.id, "claims validated but has no evidence bundle")]

    violations = []
    for key, raw in evidence.missing_paths(root):
        if raw:
            violations.append(ProofViolation(item.id, f"{key} does not exist: {raw}", raw))
        else:
            violations.append(ProofViolation(item.id, f"{key} is empty"))
    if evidence.iteration_count < 1:
        violations.append(ProofViolation(
            item.id,
            f"iterationCount is {evidence.iteration_count}, at least 1 critique iteration is required",
        ))
    return violations


def verify_register(register: Register, root: Path) -> list[ProofViolation]:
    """
    Verify every validated claim in a style register.

    Items of other kinds claiming validated in a style register are
    violations as well: they cannot carry evidence.
    """
    violations: list[ProofViolation] = []
    for item in register.items:
        if isinstance(item, StyleItem):
            violations.extend(verify_item(item, root))
        elif item.is_validated:
            violations.append(ProofViolation(
                item.id, f"{item.kind} item cannot carry style evidence",
            ))

    if violations:
        logger.info(
            "Proof verification failed for %d claim(s) in %s",
            len(violations), register.name,
        )
    return violations
