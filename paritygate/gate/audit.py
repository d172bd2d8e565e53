"""
Decision Logger for paritygate.

Appends every gate evaluation and every failed command to the session
audit trail, and renders a snapshot dashboard of the workspace.

This module is strictly read-only with respect to gating: removing it
changes no Decision, only observability. An audit write failure is
logged and never alters the Decision being recorded.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from ..artifacts import REGISTERS, ArtifactSet, read_artifact_set
from ..context import WorkspaceContext
from ..domain import Decision, GateEvent
from .phases import PHASES, detect_phase


logger = logging.getLogger(__name__)

SEVERITY_ERROR = "error"


# =============================================================================
# AUDIT TRAIL
# =============================================================================

class AuditLog:
    """Append-only JSON-lines audit trail for one session."""

    def __init__(self, ctx: WorkspaceContext):
        self.ctx = ctx

    def append(
        self,
        event: GateEvent,
        decision: Decision,
        elapsed: float,
        phase: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> Optional[dict[str, Any]]:
        """
        Append one entry. Returns the entry, or None if logging is off.
        """
        if self.ctx.log_path is None:
            return None
        if timestamp is None:
            timestamp = datetime.now(timezone.utc)

        entry = {
            "timestamp": timestamp.isoformat(),
            "sessionId": self.ctx.session_id,
            "elapsedMs": round(elapsed * 1000, 3),
            "severity": decision.outcome.value,
            "eventType": event.event_type.value,
            "target": event.target_path,
            "phase": phase,
            "reason": decision.reason,
            "remediation": list(decision.remediation),
            "findings": [f.to_dict() for f in decision.findings],
        }
        self._write(entry)
        return entry

    def append_failure(
        self,
        event_type: str,
        error: Exception,
        elapsed: float = 0.0,
        target: Optional[str] = None,
        phase: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> Optional[dict[str, Any]]:
        """
        Append an entry for a command or evaluation that raised.

        The entry carries severity "error" and the exception type and
        message in place of a Decision.
        """
        if self.ctx.log_path is None:
            return None
        if timestamp is None:
            timestamp = datetime.now(timezone.utc)

        entry = {
            "timestamp": timestamp.isoformat(),
            "sessionId": self.ctx.session_id,
            "elapsedMs": round(elapsed * 1000, 3),
            "severity": SEVERITY_ERROR,
            "eventType": event_type,
            "target": target,
            "phase": phase,
            "reason": str(error),
            "error": type(error).__name__,
            "remediation": [],
            "findings": [],
        }
        self._write(entry)
        return entry

    def _write(self, entry: dict[str, Any]) -> None:
        try:
            self.ctx.log_path.parent.mkdir(parents=True, exist_ok=True)
            with self.ctx.log_path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(entry) + "\n")
        except OSError as e:
            logger.warning("Cannot append to audit log %s: %s", self.ctx.log_path, e)

    def read_entries(self) -> list[dict[str, Any]]:
        """All entries of this session, oldest first. Corrupt lines are skipped."""
        path = self.ctx.log_path
        if path is None or not path.exists():
            return []
        entries = []
        for number, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
            if not line.strip():
                continue
            try:
                entries.append(json.loads(line))
            except json.JSONDecodeError:
                logger.warning("Skipping corrupt audit line %d in %s", number, path)
        return entries


# =============================================================================
# DASHBOARD
# =============================================================================

def register_counts(artifacts: ArtifactSet, name: str) -> dict[str, Any]:
    """Summary counts for one register (zeros when absent or invalid)."""
    snapshot = artifacts[name]
    register = artifacts.register(name)
    counts: dict[str, Any] = {"total": 0, "validated": 0, "failed": 0, "pending": 0}
    if register is not None:
        counts.update(register.counts())
    counts["present"] = snapshot.present
    counts["allValidated"] = artifacts.is_validated(name)
    return counts


def overall_status(artifacts: ArtifactSet) -> str:
    """FAIL if any register has failed items, WARN if anything is outstanding, else PASS."""
    counts = [register_counts(artifacts, name) for name in REGISTERS]
    if any(c["failed"] for c in counts):
        return "FAIL"
    if not all(c["allValidated"] for c in counts):
        return "WARN"
    return "PASS"


def render_dashboard(ctx: WorkspaceContext, artifacts: Optional[ArtifactSet] = None) -> str:
    """
    Render a plain-text snapshot of the workspace.

    This is a VIEW over the artifact set, not workflow state.
    """
    if artifacts is None:
        artifacts = read_artifact_set(ctx)
    phase = detect_phase(artifacts)

    lines = [
        f"paritygate dashboard (session {ctx.session_id})",
        "=" * 50,
        f"Current phase: {phase.name} ({phase.description})",
        f"Overall status: {overall_status(artifacts)}",
        "",
        "MILESTONES:",
    ]
    for candidate in PHASES:
        mark = "x" if candidate.is_reached(artifacts) else " "
        lines.append(f"  [{mark}] {candidate.name}: {candidate.description}")
        for requirement in candidate.unmet(artifacts):
            lines.append(f"        - {requirement.describe(artifacts)}")

    lines.append("")
    lines.append("REGISTERS:")
    for name in REGISTERS:
        counts = register_counts(artifacts, name)
        if not counts["present"]:
            lines.append(f"  {name}: missing")
            continue
        state = "validated" if counts["allValidated"] else "incomplete"
        lines.append(
            f"  {name}: {state} | {counts['validated']}/{counts['total']} validated, "
            f"{counts['failed']} failed, {counts['pending']} pending"
        )

    decisions = [e for e in AuditLog(ctx).read_entries() if e.get("severity") != SEVERITY_ERROR]
    if decisions:
        last = decisions[-1]
        lines.append("")
        lines.append(
            f"Last decision: {last['severity']} at {last['timestamp']} "
            f"({len(decisions)} evaluations this session)"
        )

    return "\n".join(lines)
