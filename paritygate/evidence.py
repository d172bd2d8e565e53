"""
Critique Evidence: the on-disk proof behind a "validated" style claim.

SYSTEM INVARIANT:
    A style Item may be marked validated only if its Evidence bundle points
    at files that exist on durable storage and at least one critique
    iteration was recorded. A claimed similarity score never substitutes
    for evidence.

Evidence Fields:
    reportPath        Comparison report written by the style comparator
    sourceRefPath     Reference screenshot of the source component
    migratedRefPath   Reference screenshot of the migrated component
    iterationCount    Number of compare/fix iterations performed
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional


# Evidence field name -> JSON key
EVIDENCE_PATH_FIELDS = (
    ("report_path", "reportPath"),
    ("source_ref_path", "sourceRefPath"),
    ("migrated_ref_path", "migratedRefPath"),
)


class EvidenceValidationError(Exception):
    """Raised when an evidence bundle is structurally malformed."""
    pass


@dataclass(frozen=True)
class CritiqueEvidence:
    """
    The evidence bundle attached to a style Item.

    Structural invariants are enforced at construction time (paths are
    strings, iteration count is an integer). Whether the paths exist is
    checked by the proof verifier against the file system at evaluation
    time.
    """
    report_path: str
    source_ref_path: str
    migrated_ref_path: str
    iteration_count: int = 0

    def __post_init__(self):
        self._validate()

    def _validate(self) -> None:
        for attr, key in EVIDENCE_PATH_FIELDS:
            value = getattr(self, attr)
            if not isinstance(value, str):
                raise EvidenceValidationError(
                    f"evidence.{key} must be a string, got {type(value).__name__}"
                )
        # bool is an int subclass; reject it explicitly
        if isinstance(self.iteration_count, bool) or not isinstance(self.iteration_count, int):
            raise EvidenceValidationError(
                f"evidence.iterationCount must be an integer, got {self.iteration_count!r}"
            )

    def paths(self) -> list[tuple[str, str]]:
        """(JSON key, path) pairs in declaration order."""
        return [(key, getattr(self, attr)) for attr, key in EVIDENCE_PATH_FIELDS]

    def missing_paths(self, root: Path) -> list[tuple[str, str]]:
        """
        Return the (JSON key, path) pairs that do not exist on disk.

        Relative paths resolve against the workspace root. An empty path
        is always missing.
        """
        missing = []
        for key, raw in self.paths():
            if not raw or not resolve_evidence_path(root, raw).is_file():
                missing.append((key, raw))
        return missing

    def next_iteration(
        self,
        report_path: Optional[str] = None,
        source_ref_path: Optional[str] = None,
        migrated_ref_path: Optional[str] = None,
    ) -> CritiqueEvidence:
        """Evidence for the following critique iteration."""
        return CritiqueEvidence(
            report_path=report_path if report_path is not None else self.report_path,
            source_ref_path=(
                source_ref_path if source_ref_path is not None else self.source_ref_path
            ),
            migrated_ref_path=(
                migrated_ref_path if migrated_ref_path is not None else self.migrated_ref_path
            ),
            iteration_count=self.iteration_count + 1,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "reportPath": self.report_path,
            "sourceRefPath": self.source_ref_path,
            "migratedRefPath": self.migrated_ref_path,
            "iterationCount": self.iteration_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CritiqueEvidence:
        """
        Build evidence from its JSON form.

        Raises:
            EvidenceValidationError: If the mapping is malformed
        """
        if not isinstance(data, dict):
            raise EvidenceValidationError("evidence must be an object")
        return cls(
            report_path=data.get("reportPath", ""),
            source_ref_path=data.get("sourceRefPath", ""),
            migrated_ref_path=data.get("migratedRefPath", ""),
            iteration_count=data.get("iterationCount", 0),
        )


def resolve_evidence_path(root: Path, raw: str) -> Path:
    """Resolve an evidence path against the workspace root."""
    path = Path(raw)
    if not path.is_absolute():
        path = root / path
    return path


def create_evidence(
    report_path: str,
    source_ref_path: str = "",
    migrated_ref_path: str = "",
    previous: Optional[CritiqueEvidence] = None,
) -> CritiqueEvidence:
    """
    Factory for the evidence of a fresh comparator run.

    The iteration count continues from the previous bundle, so every run
    of the style comparator counts as one critique iteration.
    """
    if previous is not None:
        return previous.next_iteration(
            report_path=report_path,
            source_ref_path=source_ref_path or None,
            migrated_ref_path=migrated_ref_path or None,
        )
    return CritiqueEvidence(
        report_path=report_path,
        source_ref_path=source_ref_path,
        migrated_ref_path=migrated_ref_path,
        iteration_count=1,
    )
