"""
Gate rules for paritygate.

Each rule inspects one aspect of a proposed artifact and returns zero or
more Findings. Rules never raise: a document that cannot be read is
itself a Finding.

Rules:
    G1 check_ordering              prerequisites of the producing phase
    G2 check_placement             canonical artifact location
    G3 check_completeness          claimed sub-resources are referenced
    G4 check_proof                 validated style claims have evidence
    G5 check_content_integrity     no canonical content hand-embedded
    G7 check_register_consistency  allValidated agrees with items
    G8 check_document              artifact parses and matches its schema
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Iterator, Optional

from ..artifacts import (
    ARTIFACTS,
    CONTENT_NAV,
    SOURCE_BEHAVIOR,
    ArtifactSet,
    ArtifactSnapshot,
    ArtifactSpec,
    find_by_filename,
)
from ..config import GateConfig
from ..domain import Finding, GateRule, Outcome, Register
from .phases import producing_phase
from .proof import verify_register


# =============================================================================
# G2: PLACEMENT
# =============================================================================

def check_placement(relative_path: str) -> list[Finding]:
    """
    Block artifacts written outside their canonical location.

    An artifact is recognized by its file name; content is not inspected.
    """
    spec = find_by_filename(relative_path)
    if spec is None or spec.path == relative_path:
        return []
    return [Finding(
        rule=GateRule.G2_PLACEMENT,
        outcome=Outcome.BLOCK,
        reason=f"{spec.name} written to {relative_path}, canonical location is {spec.path}",
        remediation=f"Move {relative_path} to {spec.path}",
    )]


# =============================================================================
# G8: DOCUMENT VALIDITY
# =============================================================================

def check_document(snapshot: ArtifactSnapshot) -> list[Finding]:
    if snapshot.valid:
        return []
    spec = snapshot.spec
    if not snapshot.present:
        reason = f"{spec.name} ({spec.path}) is missing"
    else:
        reason = f"{spec.name} ({spec.path}) is invalid: {snapshot.error}"
    return [Finding(
        rule=GateRule.G8_INVALID_ARTIFACT,
        outcome=Outcome.BLOCK,
        reason=reason,
        remediation=f"Regenerate {spec.path} with {spec.producer}",
    )]


# =============================================================================
# G1: ORDERING
# =============================================================================

def check_ordering(spec: ArtifactSpec, artifacts: ArtifactSet) -> list[Finding]:
    """
    Block writes whose producing phase has unmet requirements.

    Remediation names the exact artifact and the command producing it.
    """
    phase = producing_phase(spec.name)
    if phase is None:
        return []
    return [
        Finding(
            rule=GateRule.G1_ORDERING,
            outcome=Outcome.BLOCK,
            reason=(
                f"cannot write {spec.name} ({phase.name} phase): "
                f"{requirement.describe(artifacts)}"
            ),
            remediation=requirement.remediation(),
        )
        for requirement in phase.unmet(artifacts)
    ]


# =============================================================================
# G7: REGISTER CONSISTENCY
# =============================================================================

def check_register_consistency(spec: ArtifactSpec, register: Register) -> list[Finding]:
    if register.is_consistent:
        return []
    counts = register.counts()
    return [Finding(
        rule=GateRule.G7_REGISTER_CONSISTENCY,
        outcome=Outcome.BLOCK,
        reason=(
            f"{spec.name} declares allValidated={register.declared_all_validated} "
            f"but {counts['validated']}/{counts['total']} items are validated"
        ),
        remediation=f"Regenerate {spec.path} with `{spec.producer}`; do not edit allValidated by hand",
    )]


# =============================================================================
# G3: COMPLETENESS
# =============================================================================

# claim flag -> key that must hold a reference when the flag is true
CLAIM_REFERENCES = (
    ("hasImages", "images"),
    ("hasMedia", "mediaSrc"),
    ("hasVideo", "videoSrc"),
)


def _walk(node: Any, path: str) -> Iterator[tuple[str, dict]]:
    """Yield (JSON path, mapping) for every mapping in a document."""
    if isinstance(node, dict):
        yield path, node
        for key, value in node.items():
            child = f"{path}.{key}" if path else key
            yield from _walk(value, child)
    elif isinstance(node, list):
        for index, value in enumerate(node):
            yield from _walk(value, f"{path}[{index}]")


def missing_references(document: Any) -> list[str]:
    """JSON paths of references required by a claim flag but absent."""
    missing = []
    for path, mapping in _walk(document, ""):
        for claim, reference in CLAIM_REFERENCES:
            if mapping.get(claim) is True and not mapping.get(reference):
                missing.append(f"{path}.{reference}" if path else reference)
    return missing


def check_completeness(spec: ArtifactSpec, document: Any) -> list[Finding]:
    missing = missing_references(document)
    if not missing:
        return []
    return [Finding(
        rule=GateRule.G3_COMPLETENESS,
        outcome=Outcome.BLOCK,
        reason=f"{spec.name} claims embedded media without references: {', '.join(missing)}",
        remediation=f"Add the missing references to {spec.path}: {', '.join(missing)}",
    )]


# =============================================================================
# G4: PROOF
# =============================================================================

def check_proof(spec: ArtifactSpec, register: Register, root: Path) -> list[Finding]:
    if not spec.requires_proof:
        return []
    return [
        Finding(
            rule=GateRule.G4_PROOF,
            outcome=Outcome.BLOCK,
            reason=violation.describe(),
            remediation=(
                f"Re-run `{spec.producer}` for '{violation.item_id}' so that the "
                f"report and both reference screenshots exist"
            ),
        )
        for violation in verify_register(register, root)
    ]


# =============================================================================
# G5: CONTENT INTEGRITY
# =============================================================================

_STRING_LITERAL = re.compile(
    r"'(?:\\.|[^'\\\n])*'|\"(?:\\.|[^\"\\\n])*\"|`(?:\\.|[^`\\])*`"
)
_ABSOLUTE_LINK = re.compile(r"https?://[^\s'\"`)<>]+")
_DECLARATION = re.compile(r"\b(?:function|const|let|var|class)\s+([A-Za-z_$][\w$]*)")


def _line_of(text: str, offset: int) -> int:
    return text.count("\n", 0, offset) + 1


def _snippet(text: str, limit: int = 40) -> str:
    text = " ".join(text.split())
    return text if len(text) <= limit else text[:limit] + "..."


def category_labels(artifacts: ArtifactSet) -> list[str]:
    """Top-level navigation category names from the source behavior capture."""
    snapshot = artifacts[SOURCE_BEHAVIOR]
    if not snapshot.valid:
        return []
    labels = []
    for trigger in snapshot.data.get("triggers", []):
        label = " ".join(str(trigger.get("label", "")).split())
        if len(re.sub(r"[^a-z0-9]", "", label.lower())) >= 3:
            labels.append(label)
    return labels


def scan_integration_code(
    text: str,
    labels: list[str],
    config: Optional[GateConfig] = None,
) -> list[str]:
    """
    Return a description of every content-duplication signal in the code.

    Signals:
    - string literals longer than max_literal_length
    - more than max_absolute_links absolute URLs
    - declarations or literal comparisons naming a specific category
    """
    config = config or GateConfig()
    signals = []

    for match in _STRING_LITERAL.finditer(text):
        body = match.group(0)[1:-1]
        if len(body) > config.max_literal_length:
            signals.append(
                f"long text literal ({len(body)} chars) at line "
                f"{_line_of(text, match.start())}: \"{_snippet(body)}\""
            )

    links = _ABSOLUTE_LINK.findall(text)
    if len(links) > config.max_absolute_links:
        signals.append(
            f"{len(links)} absolute links embedded (limit {config.max_absolute_links}), "
            f"e.g. {', '.join(links[:3])}"
        )

    for label in labels:
        compact = re.sub(r"[^a-z0-9]", "", label.lower())
        for match in _DECLARATION.finditer(text):
            identifier = match.group(1)
            if compact in identifier.lower():
                signals.append(
                    f"identifier `{identifier}` at line {_line_of(text, match.start())} "
                    f"bakes in category '{label}'"
                )
        quoted = r"(['\"`])" + re.escape(label) + r"\1"
        for pattern in (r"[=!]==?\s*" + quoted, quoted + r"\s*[=!]==?", r"\bcase\s+" + quoted):
            for match in re.finditer(pattern, text, re.IGNORECASE):
                signals.append(
                    f"comparison against category literal '{label}' at line "
                    f"{_line_of(text, match.start())}"
                )
    return signals


def check_content_integrity(
    relative_path: str,
    text: str,
    artifacts: ArtifactSet,
    config: GateConfig,
) -> list[Finding]:
    """Warn (never block) when integration code embeds canonical content."""
    content = ARTIFACTS[CONTENT_NAV]
    return [
        Finding(
            rule=GateRule.G5_CONTENT_INTEGRITY,
            outcome=Outcome.WARN,
            reason=f"{relative_path}: {signal}",
            remediation=(
                f"Source navigation content from {content.path} instead of "
                f"embedding it in {relative_path}"
            ),
        )
        for signal in scan_integration_code(text, category_labels(artifacts), config)
    ]
