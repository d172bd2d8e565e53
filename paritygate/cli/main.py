"""
paritygate CLI: gate evaluation and workspace inspection.

Commands:
    paritygate compare-structure SOURCE MIGRATED   Structural comparator
    paritygate compare-styles SOURCE MIGRATED      Style comparator
    paritygate compare-behavior SOURCE MIGRATED    Behavior comparator
    paritygate gate write TARGET                   Evaluate an artifact write
    paritygate gate session-end                    Evaluate the end of a session
    paritygate phase                               Show the detected phase
    paritygate dashboard                           Show the workspace snapshot
    paritygate rollup                              Write the migration summary

`gate` prints the Decision as JSON. It exits 0 when the write (or the
session end) is allowed, including with warnings, and 1 when blocked.

The session ID comes from --session-id, then PARITYGATE_SESSION_ID, then
"default", so that successive hook invocations share one audit trail.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Optional

from .. import __version__
from ..artifacts import ARTIFACTS, MIGRATION_SUMMARY, read_artifact_set, write_json_document
from ..context import WorkspaceContext
from ..domain import Decision, GateEvent, UsageError
from ..gate.audit import render_dashboard
from ..gate.engine import evaluate
from ..gate.phases import PHASES, detect_phase
from ..gate.rollup import build_rollup
from .compare import (
    EXIT_FAILED,
    EXIT_OK,
    SESSION_ENV_VAR,
    add_behavior_arguments,
    add_structure_arguments,
    add_style_arguments,
    configure_logging,
    run_command,
)


# =============================================================================
# OUTPUT FORMATTING
# =============================================================================

def format_decision(decision: Decision) -> str:
    """Decision as the JSON document hooks consume."""
    return json.dumps(decision.to_dict(), indent=2)


def format_phase(ctx: WorkspaceContext) -> str:
    artifacts = read_artifact_set(ctx)
    phase = detect_phase(artifacts)
    lines = [f"{phase.name}: {phase.description}"]

    index = PHASES.index(phase)
    if index + 1 < len(PHASES):
        upcoming = PHASES[index + 1]
        lines.append("")
        lines.append(f"To reach {upcoming.name}:")
        for requirement in upcoming.unmet(artifacts):
            lines.append(f"  • {requirement.describe(artifacts)}")
            lines.append(f"    {requirement.remediation()}")
    return "\n".join(lines)


# =============================================================================
# CLI COMMANDS
# =============================================================================

def cmd_gate_write(args: argparse.Namespace, ctx: WorkspaceContext) -> int:
    """Evaluate one artifact write."""
    content = None
    if args.content_file:
        try:
            with open(args.content_file, "r", encoding="utf-8") as fh:
                content = fh.read()
        except OSError as e:
            raise UsageError(f"cannot read content file {args.content_file}: {e}") from e

    decision = evaluate(GateEvent.write(args.target, content), ctx)
    print(format_decision(decision))
    return EXIT_OK if decision.allowed else EXIT_FAILED


def cmd_gate_session_end(args: argparse.Namespace, ctx: WorkspaceContext) -> int:
    """Evaluate the end of the session."""
    decision = evaluate(GateEvent.session_end(), ctx)
    print(format_decision(decision))
    return EXIT_OK if decision.allowed else EXIT_FAILED


def cmd_phase(args: argparse.Namespace, ctx: WorkspaceContext) -> int:
    """Show the detected workflow phase."""
    print(format_phase(ctx))
    return EXIT_OK


def cmd_dashboard(args: argparse.Namespace, ctx: WorkspaceContext) -> int:
    """Show the workspace dashboard."""
    print(render_dashboard(ctx))
    return EXIT_OK


def cmd_rollup(args: argparse.Namespace, ctx: WorkspaceContext) -> int:
    """
    Build and write the migration summary.

    The rollup is itself a gated artifact: it is evaluated before it is
    written and nothing is written when the gate blocks.
    """
    spec = ARTIFACTS[MIGRATION_SUMMARY]
    rollup = build_rollup(read_artifact_set(ctx))
    content = json.dumps(rollup, indent=2) + "\n"

    decision = evaluate(GateEvent.write(spec.path, content), ctx)
    if not decision.allowed:
        print("Rollup blocked")
        print(format_decision(decision))
        return EXIT_FAILED

    write_json_document(ctx.resolve(spec.path), rollup)
    print(f"Wrote {spec.path}")
    print(content, end="")
    return EXIT_OK


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="paritygate",
        description="paritygate: migration comparators and acceptance gate",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--root", default=".", help="Workspace root (default: current directory)")
    parser.add_argument("--session-id", help=f"Session ID (default: ${SESSION_ENV_VAR} or 'default')")
    parser.add_argument("--config", help="Config file (default: <root>/paritygate.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
    )

    # Comparators
    structure_parser = subparsers.add_parser(
        "compare-structure",
        help="Compare source and migrated header structure",
    )
    add_structure_arguments(structure_parser)

    style_parser = subparsers.add_parser(
        "compare-styles",
        help="Compare source and migrated computed styles",
    )
    add_style_arguments(style_parser)

    behavior_parser = subparsers.add_parser(
        "compare-behavior",
        help="Compare source and migrated interactive behavior",
    )
    add_behavior_arguments(behavior_parser)

    # Gate
    gate_parser = subparsers.add_parser(
        "gate",
        help="Evaluate a gate event",
    )
    gate_events = gate_parser.add_subparsers(
        title="events",
        dest="event",
    )
    write_parser = gate_events.add_parser(
        "write",
        help="An artifact was written",
    )
    write_parser.add_argument(
        "target",
        help="Path of the written file",
    )
    write_parser.add_argument(
        "--content-file",
        help="Read the written content from this file instead of the target",
    )
    write_parser.set_defaults(run=cmd_gate_write)

    session_end_parser = gate_events.add_parser(
        "session-end",
        help="The session is about to end",
    )
    session_end_parser.set_defaults(run=cmd_gate_session_end)

    # Inspection
    phase_parser = subparsers.add_parser(
        "phase",
        help="Show the detected workflow phase",
    )
    phase_parser.set_defaults(run=cmd_phase)

    dashboard_parser = subparsers.add_parser(
        "dashboard",
        help="Show the workspace dashboard",
    )
    dashboard_parser.set_defaults(run=cmd_dashboard)

    rollup_parser = subparsers.add_parser(
        "rollup",
        help="Write the migration summary",
    )
    rollup_parser.set_defaults(run=cmd_rollup)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None or not hasattr(args, "run"):
        parser.print_help()
        return EXIT_OK

    configure_logging(args.verbose)
    return run_command(args, args.run, name=args.command)


if __name__ == "__main__":
    sys.exit(main())
