"""
Comparator command-line tools.

One tool per comparator:
    paritygate-structure SOURCE MIGRATED [--threshold=95] [--output=PATH]
                         [--output-register=PATH]
    paritygate-styles    SOURCE MIGRATED [--threshold=95] [--output=PATH]
                         [--output-register=PATH] [--component-id=ID]
                         [--source-ref=PATH] [--migrated-ref=PATH]
    paritygate-behavior  SOURCE MIGRATED [--text-threshold=0.6]
                         [--output=PATH] [--output-register=PATH]

Exit codes:
    0  fully matched or validated
    1  below threshold or items failed
    2  usage or parse error (nothing is written)
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import Any, Callable, Optional

from ..artifacts import STYLE_REGISTER, load_json_document, write_json_document
from ..comparison.behavior import BehaviorComparison, compare_behaviors
from ..comparison.structure import StructureComparison, compare_structures
from ..comparison.style import StyleComparison, compare_styles, extract_styles
from ..context import WorkspaceContext, audit_log_path
from ..domain import DataError, ItemStatus, ParityGateError, Register, StyleItem, UsageError
from ..evidence import create_evidence
from ..gate.audit import AuditLog


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2

SESSION_ENV_VAR = "PARITYGATE_SESSION_ID"
DEFAULT_SESSION_ID = "default"


# =============================================================================
# INPUT / OUTPUT
# =============================================================================

def load_input(ctx: WorkspaceContext, raw_path: str, schema: str) -> Any:
    """
    Load one comparator input document.

    Raises:
        UsageError: If the file does not exist
        DataError: If it cannot be parsed or is off-schema
    """
    path = ctx.resolve(raw_path)
    if not path.is_file():
        raise UsageError(f"input file not found: {raw_path}")
    return load_json_document(path, schema)


def load_register(ctx: WorkspaceContext, raw_path: str, name: str) -> Register:
    """Existing register at a path, or an empty one."""
    path = ctx.resolve(raw_path)
    if not path.exists():
        return Register(name=name)
    return Register.from_dict(load_json_document(path, "register"), name=name)


def write_output(ctx: WorkspaceContext, raw_path: Optional[str], data: Any) -> None:
    if raw_path:
        write_json_document(ctx.resolve(raw_path), data)
        logger.debug("Wrote %s", raw_path)


# =============================================================================
# OUTPUT FORMATTING
# =============================================================================

def format_structure(result: StructureComparison) -> str:
    status = "PASS" if result.passed else "FAIL"
    lines = [
        f"[{status}] Structural similarity: {result.similarity}% "
        f"({result.matched}/{result.total} checks, threshold {result.threshold}%)",
    ]
    for mismatch in result.mismatches:
        lines.append(f"  • {mismatch}")
    return "\n".join(lines)


def format_style(result: StyleComparison) -> str:
    status = "PASS" if result.passed else "FAIL"
    lines = [
        f"[{status}] {result.component_id}: {result.similarity:.2f}% "
        f"({result.grade.value}, threshold {result.threshold}%)",
    ]
    if result.fixes:
        lines.append("")
        lines.append("FIXES:")
        for fix in result.fixes:
            lines.append(f"  [{fix.priority.value}] {fix.suggestion}")
    return "\n".join(lines)


def format_behavior(result: BehaviorComparison) -> str:
    summary = result.summary()
    status = "PASS" if result.all_validated else "FAIL"
    lines = [
        f"[{status}] Behavior: {summary['validated']}/{summary['total']} nodes validated "
        f"(hover {summary['hoverMatched']}, click {summary['clickMatched']}, "
        f"styling {summary['stylingMatched']})",
    ]
    for item in result.failed:
        lines.append(f"  • {item.id}: {item.remediation}")
    return "\n".join(lines)


# =============================================================================
# COMMANDS
# =============================================================================

def run_structure(args: argparse.Namespace, ctx: WorkspaceContext) -> int:
    """Compare two structural summaries."""
    source = load_input(ctx, args.source, "structure-summary")
    migrated = load_input(ctx, args.migrated, "structure-summary")
    threshold = args.threshold if args.threshold is not None else ctx.config.structure_threshold

    result = compare_structures(source, migrated, threshold=threshold)
    write_output(ctx, args.output, result.to_dict())
    if args.output_register:
        write_output(ctx, args.output_register, result.to_register().to_dict())

    print(format_structure(result))
    passed = result.passed and all(item.is_validated for item in result.items)
    return EXIT_OK if passed else EXIT_FAILED


def run_styles(args: argparse.Namespace, ctx: WorkspaceContext) -> int:
    """
    Compare two computed-style maps for one component.

    With --output-register, the component's Item is upserted into the
    style register. Its evidence points at the written report and the
    reference screenshots, and its iteration count continues from the
    previous run.
    """
    if args.output_register and not args.output:
        raise UsageError("--output-register requires --output (the report is the evidence)")

    source = extract_styles(load_input(ctx, args.source, "style-map"))
    migrated = extract_styles(load_input(ctx, args.migrated, "style-map"))
    register = None
    if args.output_register:
        register = load_register(ctx, args.output_register, STYLE_REGISTER)

    result = compare_styles(
        source,
        migrated,
        component_id=args.component_id,
        config=ctx.config,
        threshold=args.threshold,
    )
    write_output(ctx, args.output, result.to_dict())

    if register is not None:
        previous = register.get(args.component_id)
        evidence = create_evidence(
            report_path=args.output,
            source_ref_path=args.source_ref or "",
            migrated_ref_path=args.migrated_ref or "",
            previous=previous.evidence if isinstance(previous, StyleItem) else None,
        )
        register.upsert(StyleItem(
            id=args.component_id,
            label=args.component_id,
            status=ItemStatus.VALIDATED if result.passed else ItemStatus.FAILED,
            remediation="; ".join(f.suggestion for f in result.fixes[:5]),
            similarity=result.similarity,
            evidence=evidence,
        ))
        write_output(ctx, args.output_register, register.to_dict())

    print(format_style(result))
    return EXIT_OK if result.passed else EXIT_FAILED


def run_behavior(args: argparse.Namespace, ctx: WorkspaceContext) -> int:
    """Compare two behavior trees."""
    source = load_input(ctx, args.source, "behavior-tree")
    migrated = load_input(ctx, args.migrated, "behavior-tree")
    threshold = (
        args.text_threshold
        if args.text_threshold is not None
        else ctx.config.text_similarity_threshold
    )

    result = compare_behaviors(source, migrated, text_threshold=threshold)
    write_output(ctx, args.output, result.to_dict())
    if args.output_register:
        write_output(ctx, args.output_register, result.to_register().to_dict())

    print(format_behavior(result))
    return EXIT_OK if result.all_validated else EXIT_FAILED


# =============================================================================
# PARSERS
# =============================================================================

def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("source", help="Document captured from the source page")
    parser.add_argument("migrated", help="Document captured from the migrated page")
    parser.add_argument("--output", help="Write the comparison report to this path")
    parser.add_argument("--output-register", help="Write the register to this path")


def add_structure_arguments(parser: argparse.ArgumentParser) -> None:
    _add_common(parser)
    parser.add_argument(
        "--threshold", type=int, default=None,
        help="Minimum similarity percent (default 95)",
    )
    parser.set_defaults(run=run_structure)


def add_style_arguments(parser: argparse.ArgumentParser) -> None:
    _add_common(parser)
    parser.add_argument(
        "--threshold", type=int, default=None,
        help="Minimum similarity percent (default 95)",
    )
    parser.add_argument("--component-id", default="component", help="Style target ID")
    parser.add_argument("--source-ref", help="Reference screenshot of the source component")
    parser.add_argument("--migrated-ref", help="Reference screenshot of the migrated component")
    parser.set_defaults(run=run_styles)


def add_behavior_arguments(parser: argparse.ArgumentParser) -> None:
    _add_common(parser)
    parser.add_argument(
        "--text-threshold", type=float, default=None,
        help="Token-overlap acceptance for descriptions (default 0.6)",
    )
    parser.set_defaults(run=run_behavior)


def add_workspace_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--root", default=".", help="Workspace root (default: current directory)")
    parser.add_argument("--session-id", help=f"Session ID (default: ${SESSION_ENV_VAR} or 'default')")
    parser.add_argument("--config", help="Config file (default: <root>/paritygate.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def resolve_session_id(args: argparse.Namespace) -> str:
    """--session-id, then $PARITYGATE_SESSION_ID, then "default"."""
    return (
        getattr(args, "session_id", None)
        or os.environ.get(SESSION_ENV_VAR)
        or DEFAULT_SESSION_ID
    )


def run_command(
    args: argparse.Namespace,
    command: Callable[[argparse.Namespace, WorkspaceContext], int],
    name: str,
) -> int:
    """
    Open the workspace and run a command, mapping errors to exit codes.

    A command that fails with exit code 2 is recorded in the session
    audit trail, even when the workspace configuration itself is broken.
    """
    root = Path(args.root)
    session_id = resolve_session_id(args)
    started = time.perf_counter()
    ctx = None
    try:
        ctx = WorkspaceContext.open(
            root,
            session_id=session_id,
            config_path=Path(args.config) if args.config else None,
        )
        return command(args, ctx)
    except UsageError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        error: ParityGateError = e
    except DataError as e:
        print(f"ERROR: cannot parse {e.path}", file=sys.stderr)
        print(f"Reason: {e.reason}", file=sys.stderr)
        error = e

    if ctx is None:
        # Config failed to load; record against the default configuration
        ctx = WorkspaceContext(session_id, root, log_path=audit_log_path(root, session_id))
    AuditLog(ctx).append_failure(
        name, error,
        elapsed=time.perf_counter() - started,
        target=getattr(args, "target", None),
    )
    return EXIT_USAGE


def _tool_main(
    prog: str,
    description: str,
    add_arguments: Callable[[argparse.ArgumentParser], None],
    argv: Optional[list[str]],
) -> int:
    parser = argparse.ArgumentParser(prog=prog, description=description)
    add_arguments(parser)
    add_workspace_arguments(parser)
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    return run_command(args, args.run, name=prog)


def structure_main(argv: Optional[list[str]] = None) -> int:
    return _tool_main(
        "paritygate-structure",
        "Compare source and migrated header structure",
        add_structure_arguments,
        argv,
    )


def style_main(argv: Optional[list[str]] = None) -> int:
    return _tool_main(
        "paritygate-styles",
        "Compare source and migrated computed styles for one component",
        add_style_arguments,
        argv,
    )


def behavior_main(argv: Optional[list[str]] = None) -> int:
    return _tool_main(
        "paritygate-behavior",
        "Compare source and migrated interactive behavior",
        add_behavior_arguments,
        argv,
    )
