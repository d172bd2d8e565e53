"""
Aggregate rollup document.

The rollup summarizes every register and the detected phase. It is the
output of the finalize phase, so writing it is gated like any other
artifact.
"""

from __future__ import annotations

from typing import Any

from ..artifacts import REGISTERS, ArtifactSet
from .audit import register_counts
from .phases import detect_phase


def build_rollup(artifacts: ArtifactSet) -> dict[str, Any]:
    """Build the migration-summary document from the current artifact set."""
    registers = {name: register_counts(artifacts, name) for name in REGISTERS}
    return {
        "phase": detect_phase(artifacts).name,
        "allValidated": all(r["allValidated"] for r in registers.values()),
        "registers": registers,
    }
