"""
Prerequisite Gate Engine for paritygate.

Contract:
    evaluate(event, ctx) -> Decision

Every evaluation reads the workspace fresh, applies the gate rules and
returns a Decision. The only side effect is one appended audit entry.
Re-evaluating with unchanged inputs yields the same Decision.

Write checks, in order:
    1. Placement
    2. Document validity
    3. Ordering (prerequisites of the producing phase)
    4. Register consistency
    5. Completeness of claimed sub-resources
    6. Proof of validated style claims
    7. Content integrity of integration code (warn only)

End of session re-runs checks 2-7 for every present artifact and every
integration code file under blocks/, then sweeps for unvalidated
registers and missing phase outputs.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from ..artifacts import (
    REGISTERS,
    ArtifactSet,
    ArtifactSnapshot,
    ArtifactSpec,
    find_artifact,
    find_integration_code,
    is_integration_code,
    read_artifact_set,
    snapshot_from_text,
)
from ..context import WorkspaceContext
from ..domain import Decision, EventType, Finding, GateEvent, GateRule, Outcome, UsageError
from .audit import AuditLog
from .phases import PHASES, Requirement, RequiredState, detect_phase
from .rules import (
    check_completeness,
    check_content_integrity,
    check_document,
    check_ordering,
    check_placement,
    check_proof,
    check_register_consistency,
)


logger = logging.getLogger(__name__)


# =============================================================================
# ARTIFACT CHECKS
# =============================================================================

def check_artifact(
    spec: ArtifactSpec,
    snapshot: ArtifactSnapshot,
    artifacts: ArtifactSet,
    ctx: WorkspaceContext,
) -> list[Finding]:
    """
    Checks 2-7 for one artifact.

    A phase never requires its own outputs, so ordering reads the
    prerequisites from the on-disk artifact set.
    """
    findings = check_document(snapshot)
    findings.extend(check_ordering(spec, artifacts))
    if not snapshot.valid:
        return findings

    if spec.is_register:
        register = snapshot.data
        findings.extend(check_register_consistency(spec, register))
        findings.extend(check_proof(spec, register, ctx.root))
    elif spec.schema is not None:
        findings.extend(check_completeness(spec, snapshot.data))

    if is_integration_code(spec.path):
        findings.extend(check_content_integrity(spec.path, snapshot.text or "", artifacts, ctx.config))
    return findings


def _read_workspace_text(ctx: WorkspaceContext, relative_path: str) -> Optional[str]:
    path = ctx.resolve(relative_path)
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Cannot read %s: %s", relative_path, e)
        return None


def _read_event_content(event: GateEvent, relative_path: str, ctx: WorkspaceContext) -> Optional[str]:
    if event.content is not None:
        return event.content
    return _read_workspace_text(ctx, relative_path)


def evaluate_write(event: GateEvent, ctx: WorkspaceContext, artifacts: ArtifactSet) -> Decision:
    """Evaluate one artifact write."""
    if not event.target_path:
        raise UsageError("write events require a target path")

    relative_path = ctx.relative(event.target_path)
    findings = check_placement(relative_path)

    spec = find_artifact(relative_path)
    content = _read_event_content(event, relative_path, ctx)

    if spec is not None:
        if content is None:
            snapshot = artifacts[spec.name]
        else:
            snapshot = snapshot_from_text(spec, content)
        findings.extend(check_artifact(spec, snapshot, artifacts, ctx))
    elif is_integration_code(relative_path) and content is not None:
        # Integration code outside the registry (other blocks) is still scanned
        findings.extend(check_content_integrity(relative_path, content, artifacts, ctx.config))

    return Decision.from_findings(findings, subject=relative_path)


# =============================================================================
# END OF SESSION
# =============================================================================

def session_findings(ctx: WorkspaceContext, artifacts: ArtifactSet) -> list[Finding]:
    """Every outstanding problem in the workspace, in workflow order."""
    findings: list[Finding] = []

    for phase in PHASES:
        for name in phase.outputs:
            snapshot = artifacts[name]
            if snapshot.present:
                findings.extend(check_artifact(snapshot.spec, snapshot, artifacts, ctx))

    # Integration code outside the registry (other blocks)
    for relative_path in find_integration_code(ctx.root):
        if find_artifact(relative_path) is not None:
            continue
        text = _read_workspace_text(ctx, relative_path)
        if text is not None:
            findings.extend(check_content_integrity(relative_path, text, artifacts, ctx.config))

    for name in REGISTERS:
        requirement = Requirement(name, RequiredState.VALIDATED)
        if not requirement.is_met(artifacts):
            findings.append(Finding(
                rule=GateRule.G6_SESSION_COMPLETENESS,
                outcome=Outcome.BLOCK,
                reason=requirement.describe(artifacts),
                remediation=requirement.remediation(),
            ))

    for phase in PHASES:
        for name in phase.outputs:
            snapshot = artifacts[name]
            if not snapshot.present:
                spec = snapshot.spec
                findings.append(Finding(
                    rule=GateRule.G6_SESSION_COMPLETENESS,
                    outcome=Outcome.BLOCK,
                    reason=f"{phase.name} output {spec.name} ({spec.path}) is missing",
                    remediation=f"Produce {spec.path} with {spec.producer}",
                ))

    return findings


def evaluate_session_end(ctx: WorkspaceContext, artifacts: ArtifactSet) -> Decision:
    findings = session_findings(ctx, artifacts)
    # Warnings alone do not hold the session open
    return Decision.from_findings(findings, subject="session end")


# =============================================================================
# ENTRY POINT
# =============================================================================

def evaluate(event: GateEvent, ctx: WorkspaceContext) -> Decision:
    """
    Evaluate one gate event and record it in the audit log.

    Args:
        event: An artifact write or the end-of-session signal
        ctx: Workspace and session

    Returns:
        Decision with outcome, reason and ordered remediation

    Raises:
        UsageError: If a write event has no target path
    """
    started = time.perf_counter()
    artifacts = read_artifact_set(ctx)
    phase = detect_phase(artifacts)
    logger.debug("Workspace %s is in phase %s", ctx.root, phase.name)

    try:
        if event.event_type == EventType.SESSION_END:
            decision = evaluate_session_end(ctx, artifacts)
        else:
            decision = evaluate_write(event, ctx, artifacts)
    except UsageError as e:
        AuditLog(ctx).append_failure(
            event.event_type.value, e,
            elapsed=time.perf_counter() - started,
            target=event.target_path,
            phase=phase.name,
        )
        raise

    elapsed = time.perf_counter() - started
    logger.info("Gate %s: %s", decision.outcome.value, decision.reason)
    AuditLog(ctx).append(event, decision, elapsed, phase=phase.name)
    return decision
