"""
Artifact registry and fresh reads.

Every artifact lives at one fixed, workspace-relative path and has one
schema. Artifacts are re-read from disk on every gate evaluation; nothing
is cached between calls.

Read failures never raise past this module's snapshot functions: an
unreadable or schema-violating document is reported as INVALID.
"""

from __future__ import annotations

import fnmatch
import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any, Optional

from .context import WorkspaceContext
from .domain import DataError, Register
from .gate.proof import ProofViolation, verify_register
from .schemas import schema_errors


logger = logging.getLogger(__name__)


class ArtifactState(Enum):
    ABSENT = "absent"
    INVALID = "invalid"
    VALID = "valid"


@dataclass(frozen=True)
class ArtifactSpec:
    """
    A registered artifact.

    Attributes:
        name: Logical name used by phases and remediation text
        path: Canonical workspace-relative POSIX path
        schema: Schema name for JSON artifacts, None for text artifacts
        producer: Who writes it (a comparator command or a collaborator)
        is_register: True for Registers
        requires_proof: Validated claims must be backed by critique evidence
    """
    name: str
    path: str
    schema: Optional[str]
    producer: str
    is_register: bool = False
    requires_proof: bool = False

    @property
    def filename(self) -> str:
        return PurePosixPath(self.path).name


# =============================================================================
# ARTIFACT REGISTRY
# =============================================================================

SOURCE_STRUCTURE = "source-structure"
MIGRATED_STRUCTURE = "migrated-structure"
SOURCE_BEHAVIOR = "source-behavior"
MIGRATED_BEHAVIOR = "migrated-behavior"
BEHAVIOR_REGISTER = "behavior-register"
STRUCTURAL_REGISTER = "structural-register"
STYLE_REGISTER = "style-register"
MIGRATION_SUMMARY = "migration-summary"
CONTENT_NAV = "content-nav"
CONTENT_NAV_PLAIN = "content-nav-plain"
HEADER_SCRIPT = "header-script"
HEADER_STYLE = "header-style"

ARTIFACTS: dict[str, ArtifactSpec] = {
    spec.name: spec for spec in (
        ArtifactSpec(
            SOURCE_STRUCTURE, "validation/source-structure.json", "structure-summary",
            producer="the capture subsystem (source page structure)",
        ),
        ArtifactSpec(
            MIGRATED_STRUCTURE, "validation/migrated-structure.json", "structure-summary",
            producer="the capture subsystem (migrated page structure)",
        ),
        ArtifactSpec(
            SOURCE_BEHAVIOR, "validation/source-behavior.json", "behavior-tree",
            producer="the capture subsystem (source interactions)",
        ),
        ArtifactSpec(
            MIGRATED_BEHAVIOR, "validation/migrated-behavior.json", "behavior-tree",
            producer="the capture subsystem (migrated interactions)",
        ),
        ArtifactSpec(
            BEHAVIOR_REGISTER, "validation/behavior-register.json", "register",
            producer=(
                "paritygate-behavior validation/source-behavior.json "
                "validation/migrated-behavior.json "
                "--output-register=validation/behavior-register.json"
            ),
            is_register=True,
        ),
        ArtifactSpec(
            STRUCTURAL_REGISTER, "validation/structural-register.json", "register",
            producer=(
                "paritygate-structure validation/source-structure.json "
                "validation/migrated-structure.json "
                "--output-register=validation/structural-register.json"
            ),
            is_register=True,
        ),
        ArtifactSpec(
            STYLE_REGISTER, "validation/style-register.json", "register",
            producer=(
                "paritygate-styles <source-styles.json> <migrated-styles.json> "
                "--component-id=<id> --output=<report.json> --source-ref=<source.png> "
                "--migrated-ref=<migrated.png> --output-register=validation/style-register.json"
            ),
            is_register=True,
            requires_proof=True,
        ),
        ArtifactSpec(
            MIGRATION_SUMMARY, "validation/migration-summary.json", "rollup",
            producer="paritygate rollup",
        ),
        ArtifactSpec(
            CONTENT_NAV, "content/nav.md", None,
            producer="the generation subsystem (navigation content)",
        ),
        ArtifactSpec(
            CONTENT_NAV_PLAIN, "content/nav.plain.html", None,
            producer="the content converter (nav.md -> nav.plain.html)",
        ),
        ArtifactSpec(
            HEADER_SCRIPT, "blocks/header/header.js", None,
            producer="the generation subsystem (header block script)",
        ),
        ArtifactSpec(
            HEADER_STYLE, "blocks/header/header.css", None,
            producer="the generation subsystem (header block styles)",
        ),
    )
}

REGISTERS = (BEHAVIOR_REGISTER, STRUCTURAL_REGISTER, STYLE_REGISTER)

# Integration code scanned by the content-integrity gate
INTEGRATION_CODE_PATTERNS = ("blocks/*/*.js",)


def find_artifact(relative_path: str) -> Optional[ArtifactSpec]:
    """The artifact whose canonical path is `relative_path`, if any."""
    for spec in ARTIFACTS.values():
        if spec.path == relative_path:
            return spec
    return None


def find_by_filename(relative_path: str) -> Optional[ArtifactSpec]:
    """The artifact whose file name matches the path's file name, if any."""
    name = PurePosixPath(relative_path).name
    for spec in ARTIFACTS.values():
        if spec.filename == name:
            return spec
    return None


def is_integration_code(relative_path: str) -> bool:
    return any(fnmatch.fnmatch(relative_path, p) for p in INTEGRATION_CODE_PATTERNS)


def find_integration_code(root: Path) -> list[str]:
    """Workspace-relative paths of every integration code file on disk, sorted."""
    found = set()
    for pattern in INTEGRATION_CODE_PATTERNS:
        found.update(p.relative_to(root).as_posix() for p in root.glob(pattern) if p.is_file())
    return sorted(found)


# =============================================================================
# DOCUMENT LOADING
# =============================================================================

def parse_json_document(text: str, schema: str, origin: str) -> Any:
    """
    Parse and schema-check a JSON document.

    Raises:
        DataError: If the text is not JSON or violates the schema
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DataError(origin, f"invalid JSON: {e}") from e

    errors = schema_errors(data, schema)
    if errors:
        raise DataError(origin, f"does not match {schema} schema: {errors[0]}")
    return data


def load_json_document(path: Path, schema: str) -> Any:
    """
    Read, parse and schema-check a JSON file.

    Raises:
        DataError: If the file is unreadable, not JSON, or off-schema
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DataError(str(path), f"cannot read: {e.strerror or e}") from e
    return parse_json_document(text, schema, str(path))


def write_json_document(path: Path, data: Any) -> None:
    """Write a JSON document, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


# =============================================================================
# SNAPSHOTS
# =============================================================================

@dataclass(frozen=True)
class ArtifactSnapshot:
    """The state of one artifact at read time."""
    spec: ArtifactSpec
    state: ArtifactState
    data: Any = None
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def present(self) -> bool:
        return self.state != ArtifactState.ABSENT

    @property
    def valid(self) -> bool:
        return self.state == ArtifactState.VALID


def snapshot_from_text(spec: ArtifactSpec, text: str) -> ArtifactSnapshot:
    """Classify artifact content. Never raises."""
    if spec.schema is None:
        return ArtifactSnapshot(spec, ArtifactState.VALID, text=text)
    try:
        data = parse_json_document(text, spec.schema, spec.path)
        if spec.is_register:
            data = Register.from_dict(data, name=spec.name)
    except DataError as e:
        return ArtifactSnapshot(spec, ArtifactState.INVALID, text=text, error=e.reason)
    return ArtifactSnapshot(spec, ArtifactState.VALID, data=data, text=text)


def read_artifact(ctx: WorkspaceContext, spec: ArtifactSpec) -> ArtifactSnapshot:
    """Read an artifact fresh from disk. Never raises."""
    path = ctx.resolve(spec.path)
    if not path.is_file():
        return ArtifactSnapshot(spec, ArtifactState.ABSENT)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Cannot read artifact %s: %s", spec.path, e)
        return ArtifactSnapshot(spec, ArtifactState.INVALID, error=f"unreadable: {e}")

    snapshot = snapshot_from_text(spec, text)
    if snapshot.state == ArtifactState.INVALID:
        logger.warning("Artifact %s is invalid: %s", spec.path, snapshot.error)
    return snapshot


class ArtifactSet:
    """
    Immutable snapshot of every registered artifact.

    Built once per evaluation from a fresh read of the workspace. Evidence
    paths are resolved against `root`.
    """

    def __init__(self, snapshots: dict[str, ArtifactSnapshot], root: Path):
        self._snapshots = dict(snapshots)
        self.root = root

    def __getitem__(self, name: str) -> ArtifactSnapshot:
        return self._snapshots[name]

    def register(self, name: str) -> Optional[Register]:
        """The parsed Register, or None if absent or invalid."""
        snapshot = self._snapshots[name]
        return snapshot.data if snapshot.valid else None

    def proof_violations(self, name: str) -> list[ProofViolation]:
        """Validated claims in the register that their evidence does not back."""
        register = self.register(name)
        if register is None or not self._snapshots[name].spec.requires_proof:
            return []
        return verify_register(register, self.root)

    def is_validated(self, name: str) -> bool:
        """True if the register is valid, consistent, fully validated and proven."""
        register = self.register(name)
        return (
            register is not None
            and register.is_consistent
            and register.all_validated
            and not self.proof_violations(name)
        )


def read_artifact_set(ctx: WorkspaceContext) -> ArtifactSet:
    """Read every registered artifact fresh from disk."""
    return ArtifactSet(
        {name: read_artifact(ctx, spec) for name, spec in ARTIFACTS.items()},
        root=ctx.root,
    )
