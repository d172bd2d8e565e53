"""
Phase Detector for paritygate.

The workflow is an explicit finite-state machine. Each phase declares an
ordered list of (artifact, required state) requirements that must hold
before its outputs may be written.

Detection:
    Phases are evaluated latest-first; the first phase whose
    requirements all hold is the furthest-reached phase. The first phase
    has no requirements, so detection always succeeds.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..artifacts import (
    ARTIFACTS,
    BEHAVIOR_REGISTER,
    CONTENT_NAV,
    CONTENT_NAV_PLAIN,
    HEADER_SCRIPT,
    HEADER_STYLE,
    MIGRATED_BEHAVIOR,
    MIGRATED_STRUCTURE,
    MIGRATION_SUMMARY,
    SOURCE_BEHAVIOR,
    SOURCE_STRUCTURE,
    STRUCTURAL_REGISTER,
    STYLE_REGISTER,
    ArtifactSet,
)


class RequiredState(Enum):
    PRESENT = "present"
    VALID = "valid"
    VALIDATED = "validated"


@dataclass(frozen=True)
class Requirement:
    """One (artifact, required state) pair."""
    artifact: str
    state: RequiredState

    def is_met(self, artifacts: ArtifactSet) -> bool:
        snapshot = artifacts[self.artifact]
        if self.state == RequiredState.PRESENT:
            return snapshot.present
        if self.state == RequiredState.VALID:
            return snapshot.valid
        return artifacts.is_validated(self.artifact)

    def describe(self, artifacts: ArtifactSet) -> str:
        """Why the requirement is not met."""
        snapshot = artifacts[self.artifact]
        path = snapshot.spec.path
        if not snapshot.present:
            return f"{self.artifact} ({path}) is missing"
        if not snapshot.valid:
            return f"{self.artifact} ({path}) is invalid: {snapshot.error}"
        register = artifacts.register(self.artifact)
        if register is not None and not register.is_consistent:
            return f"{self.artifact} ({path}) claims allValidated but has unvalidated items"
        violations = artifacts.proof_violations(self.artifact)
        if register is not None and register.all_validated and violations:
            return (
                f"{self.artifact} ({path}) has unproven claims: "
                + "; ".join(v.describe() for v in violations)
            )
        if register is not None:
            counts = register.counts()
            return (
                f"{self.artifact} ({path}) is not fully validated "
                f"({counts['validated']}/{counts['total']} items validated)"
            )
        return f"{self.artifact} ({path}) is not {self.state.value}"

    def remediation(self) -> str:
        spec = ARTIFACTS[self.artifact]
        if self.state == RequiredState.VALIDATED and spec.requires_proof:
            return (
                f"Run `{spec.producer}` and fix mismatches until {spec.path} "
                f"has allValidated=true with every report and reference screenshot on disk"
            )
        if self.state == RequiredState.VALIDATED:
            return (
                f"Run `{spec.producer}` and fix mismatches until {spec.path} "
                f"has allValidated=true"
            )
        return f"Produce {spec.path} with {spec.producer}"


@dataclass(frozen=True)
class Phase:
    name: str
    description: str
    requirements: tuple[Requirement, ...]
    outputs: tuple[str, ...]

    def unmet(self, artifacts: ArtifactSet) -> list[Requirement]:
        """Requirements that do not hold, in declared order."""
        return [r for r in self.requirements if not r.is_met(artifacts)]

    def is_reached(self, artifacts: ArtifactSet) -> bool:
        return not self.unmet(artifacts)


def _req(artifact: str, state: RequiredState) -> Requirement:
    return Requirement(artifact, state)


_VALID = RequiredState.VALID
_VALIDATED = RequiredState.VALIDATED

_ALL_REGISTERS_VALIDATED = (
    _req(BEHAVIOR_REGISTER, _VALIDATED),
    _req(STRUCTURAL_REGISTER, _VALIDATED),
    _req(STYLE_REGISTER, _VALIDATED),
)


# =============================================================================
# WORKFLOW PHASES (ordered)
# =============================================================================

PHASES: tuple[Phase, ...] = (
    Phase(
        name="source-capture",
        description="Capture source structure and behavior",
        requirements=(),
        outputs=(SOURCE_STRUCTURE, SOURCE_BEHAVIOR),
    ),
    Phase(
        name="migration",
        description="Generate content and integration code, capture migrated output",
        requirements=(
            _req(SOURCE_STRUCTURE, _VALID),
            _req(SOURCE_BEHAVIOR, _VALID),
        ),
        outputs=(
            CONTENT_NAV, CONTENT_NAV_PLAIN, HEADER_SCRIPT, HEADER_STYLE,
            MIGRATED_STRUCTURE, MIGRATED_BEHAVIOR,
        ),
    ),
    Phase(
        name="behavior-validation",
        description="Validate interactive behavior",
        requirements=(
            _req(SOURCE_BEHAVIOR, _VALID),
            _req(MIGRATED_BEHAVIOR, _VALID),
        ),
        outputs=(BEHAVIOR_REGISTER,),
    ),
    Phase(
        name="structure-validation",
        description="Validate header structure",
        requirements=(
            _req(BEHAVIOR_REGISTER, _VALIDATED),
            _req(SOURCE_STRUCTURE, _VALID),
            _req(MIGRATED_STRUCTURE, _VALID),
        ),
        outputs=(STRUCTURAL_REGISTER,),
    ),
    Phase(
        name="style-validation",
        description="Validate computed styles with critique evidence",
        requirements=(
            _req(BEHAVIOR_REGISTER, _VALIDATED),
            _req(STRUCTURAL_REGISTER, _VALIDATED),
        ),
        outputs=(STYLE_REGISTER,),
    ),
    Phase(
        name="finalize",
        description="Write the migration rollup",
        requirements=_ALL_REGISTERS_VALIDATED,
        outputs=(MIGRATION_SUMMARY,),
    ),
    Phase(
        name="complete",
        description="Migration validated end to end",
        requirements=_ALL_REGISTERS_VALIDATED + (_req(MIGRATION_SUMMARY, _VALID),),
        outputs=(),
    ),
)

PHASES_BY_NAME = {phase.name: phase for phase in PHASES}


def detect_phase(artifacts: ArtifactSet) -> Phase:
    """Return the furthest-reached phase. Pure function of the artifact set."""
    for phase in reversed(PHASES):
        if phase.is_reached(artifacts):
            return phase
    return PHASES[0]


def producing_phase(artifact: str) -> Optional[Phase]:
    """The phase that owns an artifact as one of its outputs."""
    for phase in PHASES:
        if artifact in phase.outputs:
            return phase
    return None
