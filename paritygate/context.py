"""
Workspace context threaded through every comparator and gate call.

There is no module-level session state: the session id, the workspace
root, the audit log sink and the configuration all travel in one value.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .config import CONFIG_FILENAME, GateConfig, load_config


AUDIT_DIRNAME = ".paritygate"


def create_session_id() -> str:
    """Generate a session ID."""
    return f"ses_{uuid.uuid4().hex[:12]}"


def audit_log_path(root: Path, session_id: str) -> Path:
    return root / AUDIT_DIRNAME / f"audit-{session_id}.jsonl"


@dataclass(frozen=True)
class WorkspaceContext:
    """
    Immutable description of one migration workspace and session.

    Attributes:
        session_id: Identifies the session in the audit trail
        root: Workspace root; artifact paths are relative to it
        log_path: Audit log file, or None to disable audit logging
        config: Tunable thresholds
    """
    session_id: str
    root: Path
    log_path: Optional[Path] = None
    config: GateConfig = field(default_factory=GateConfig)

    def resolve(self, relative: str) -> Path:
        """Absolute path for a workspace-relative path."""
        path = Path(relative)
        if path.is_absolute():
            return path
        return self.root / path

    def relative(self, path: str) -> str:
        """
        Workspace-relative POSIX form of a path.

        Paths outside the workspace are returned unchanged (as POSIX).
        """
        candidate = Path(path)
        if candidate.is_absolute():
            try:
                candidate = candidate.resolve().relative_to(self.root.resolve())
            except ValueError:
                return candidate.as_posix()
        return candidate.as_posix()

    @classmethod
    def open(
        cls,
        root: Path,
        session_id: Optional[str] = None,
        config_path: Optional[Path] = None,
        audit: bool = True,
    ) -> WorkspaceContext:
        """
        Build a context for a workspace root.

        Loads `paritygate.yaml` from the root unless another config path
        is given. The audit log goes to `.paritygate/audit-<session>.jsonl`.

        Raises:
            DataError: If the configuration file is malformed
        """
        root = Path(root)
        session_id = session_id or create_session_id()
        config = load_config(config_path or root / CONFIG_FILENAME)
        log_path = audit_log_path(root, session_id) if audit else None
        return cls(session_id=session_id, root=root, log_path=log_path, config=config)
