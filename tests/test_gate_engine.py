"""
Tests for the Prerequisite Gate Engine.

These tests verify that:
1. Writes are blocked until the producing phase's requirements hold
2. Artifacts must be well-formed, placed canonically and backed by evidence
3. Content integrity problems warn but never block
4. The end of a session is blocked while any register is unvalidated
"""

import json

import pytest

from paritygate.domain import (
    Decision,
    EventType,
    Finding,
    GateEvent,
    GateRule,
    Outcome,
    UsageError,
)
from paritygate.evidence import CritiqueEvidence
from paritygate.gate.engine import evaluate
from paritygate.gate.rules import missing_references, scan_integration_code

from conftest import SOURCE_STRUCTURE


def rules_of(decision):
    return [f.rule for f in decision.findings]


# =============================================================================
# DECISION AGGREGATION
# =============================================================================

class TestDecisionAggregation:
    """Test how findings combine into one Decision."""

    def test_no_findings_allows(self):
        decision = Decision.from_findings([], subject="x.json")
        assert decision.outcome == Outcome.ALLOW
        assert decision.allowed
        assert decision.remediation == ()

    def test_block_dominates_warn(self):
        findings = [
            Finding(GateRule.G5_CONTENT_INTEGRITY, Outcome.WARN, "w", "fix w"),
            Finding(GateRule.G1_ORDERING, Outcome.BLOCK, "b", "fix b"),
            Finding(GateRule.G1_ORDERING, Outcome.BLOCK, "b2", "fix b"),
        ]
        decision = Decision.from_findings(findings, subject="x.json")

        assert decision.outcome == Outcome.BLOCK
        assert decision.reason == "x.json: b; b2"
        assert decision.remediation == ("fix w", "fix b")

    def test_to_dict_contract(self):
        decision = Decision.from_findings([], subject="x.json")
        assert set(decision.to_dict()) == {"outcome", "reason", "remediation"}

    def test_events(self):
        assert GateEvent.write("a.json").event_type == EventType.WRITE
        assert GateEvent.session_end().target_path is None


# =============================================================================
# ORDERING
# =============================================================================

class TestOrdering:
    """Test that phases cannot be skipped."""

    def test_structural_register_blocked_without_behavior_register(self, workspace):
        workspace.capture_source().migrate().validate_structure()

        decision = evaluate(
            GateEvent.write("validation/structural-register.json"),
            workspace.context(),
        )

        assert decision.outcome == Outcome.BLOCK
        assert rules_of(decision) == [GateRule.G1_ORDERING]
        assert "behavior-register (validation/behavior-register.json) is missing" in decision.reason
        assert "paritygate-behavior" in decision.remediation[0]

    def test_structural_register_allowed_once_behavior_validated(self, workspace):
        workspace.capture_source().migrate().validate_structure()
        assert not evaluate(
            GateEvent.write("validation/structural-register.json"), workspace.context()
        ).allowed

        workspace.validate_behavior()
        decision = evaluate(
            GateEvent.write("validation/structural-register.json"), workspace.context()
        )

        assert decision.outcome == Outcome.ALLOW

    def test_failed_behavior_register_still_blocks(self, workspace):
        behavior = workspace.capture_source().read_json("validation/source-behavior.json")
        behavior["triggers"][0]["hover"]["hasEffect"] = False
        workspace.migrate(behavior=behavior).validate_behavior().validate_structure()

        decision = evaluate(
            GateEvent.write("validation/structural-register.json"), workspace.context()
        )

        assert decision.outcome == Outcome.BLOCK
        assert "not fully validated" in decision.reason

    def test_migration_output_blocked_before_capture(self, workspace):
        workspace.write_text("content/nav.md", "# nav\n")

        decision = evaluate(GateEvent.write("content/nav.md"), workspace.context())

        assert decision.outcome == Outcome.BLOCK
        assert "source-structure" in decision.reason
        assert "source-behavior" in decision.reason

    def test_source_capture_always_allowed(self, workspace):
        decision = evaluate(
            GateEvent.write(
                "validation/source-structure.json",
                json.dumps(SOURCE_STRUCTURE),
            ),
            workspace.context(),
        )
        assert decision.outcome == Outcome.ALLOW

    def test_unregistered_files_pass(self, workspace):
        decision = evaluate(GateEvent.write("notes/todo.txt", "x"), workspace.context())
        assert decision.outcome == Outcome.ALLOW

    def test_absolute_target_inside_workspace(self, workspace):
        workspace.capture_source().migrate().validate_structure()
        target = str(workspace.path("validation/structural-register.json"))

        decision = evaluate(GateEvent.write(target), workspace.context())

        assert rules_of(decision) == [GateRule.G1_ORDERING]


# =============================================================================
# DOCUMENT CHECKS
# =============================================================================

class TestDocumentChecks:
    """Test placement, validity, consistency and completeness."""

    def test_misplaced_artifact_blocked(self, workspace):
        decision = evaluate(
            GateEvent.write("content/structural-register.json", "{}"),
            workspace.context(),
        )

        assert rules_of(decision) == [GateRule.G2_PLACEMENT]
        assert "canonical location is validation/structural-register.json" in decision.reason

    def test_unparseable_artifact_blocked(self, workspace):
        workspace.capture_source()

        decision = evaluate(
            GateEvent.write("validation/source-behavior.json", "{\"triggers\": ["),
            workspace.context(),
        )

        assert rules_of(decision) == [GateRule.G8_INVALID_ARTIFACT]
        assert "invalid JSON" in decision.reason

    def test_off_schema_artifact_blocked(self, workspace):
        decision = evaluate(
            GateEvent.write("validation/source-structure.json", json.dumps({"rows": []})),
            workspace.context(),
        )

        assert rules_of(decision) == [GateRule.G8_INVALID_ARTIFACT]
        assert "structure-summary schema" in decision.reason

    def test_inconsistent_register_blocked(self, workspace):
        workspace.capture_source().migrate().validate_behavior()
        register = workspace.read_json("validation/behavior-register.json")
        register["items"][0]["status"] = "failed"

        decision = evaluate(
            GateEvent.write("validation/behavior-register.json", json.dumps(register)),
            workspace.context(),
        )

        assert rules_of(decision) == [GateRule.G7_REGISTER_CONSISTENCY]
        assert "declares allValidated=True" in decision.reason

    def test_claimed_images_without_references_blocked(self, workspace):
        summary = json.loads(json.dumps(SOURCE_STRUCTURE))
        del summary["rows"][1]["images"]

        decision = evaluate(
            GateEvent.write("validation/source-structure.json", json.dumps(summary)),
            workspace.context(),
        )

        assert rules_of(decision) == [GateRule.G3_COMPLETENESS]
        assert "rows[1].images" in decision.reason

    def test_missing_references_paths(self):
        document = {
            "rows": [{"hasImages": True, "images": []}],
            "megamenu": {"columns": [{"hasImages": False}, {"hasImages": True}]},
            "triggers": [{"styling": {"hasMedia": True}}],
        }
        assert missing_references(document) == [
            "rows[0].images",
            "megamenu.columns[1].images",
            "triggers[0].styling.mediaSrc",
        ]


# =============================================================================
# PROOF
# =============================================================================

class TestProofGate:
    """Test that validated style claims are backed by files."""

    def _ready_for_styles(self, workspace):
        return workspace.capture_source().migrate().validate_behavior().validate_structure()

    def test_validated_style_register_allowed(self, workspace):
        self._ready_for_styles(workspace).validate_styles()

        decision = evaluate(GateEvent.write("validation/style-register.json"), workspace.context())

        assert decision.outcome == Outcome.ALLOW

    def test_missing_screenshot_blocked(self, workspace):
        evidence = self._ready_for_styles(workspace).critique_evidence()
        workspace.validate_styles(evidence)
        workspace.path(evidence.source_ref_path).unlink()

        decision = evaluate(GateEvent.write("validation/style-register.json"), workspace.context())

        assert rules_of(decision) == [GateRule.G4_PROOF]
        assert evidence.source_ref_path in decision.reason

    def test_zero_iterations_blocked(self, workspace):
        evidence = self._ready_for_styles(workspace).critique_evidence(iteration_count=0)
        workspace.validate_styles(evidence)

        decision = evaluate(GateEvent.write("validation/style-register.json"), workspace.context())

        assert rules_of(decision) == [GateRule.G4_PROOF]
        assert "iterationCount is 0" in decision.reason

    def test_unproven_register_blocks_rollup_write(self, workspace):
        self._ready_for_styles(workspace).validate_styles(
            CritiqueEvidence("nope.json", "a.png", "b.png", 0)
        )

        decision = evaluate(
            GateEvent.write("validation/migration-summary.json"), workspace.context()
        )

        assert decision.outcome == Outcome.BLOCK
        assert GateRule.G1_ORDERING in rules_of(decision)
        assert "style-register (validation/style-register.json) has unproven claims" in (
            decision.reason
        )
        assert "reportPath does not exist: nope.json" in decision.reason


# =============================================================================
# CONTENT INTEGRITY
# =============================================================================

class TestContentIntegrity:
    """Test that embedded canonical content warns without blocking."""

    def test_clean_script_allowed(self, workspace):
        workspace.capture_source().migrate()

        decision = evaluate(GateEvent.write("blocks/header/header.js"), workspace.context())

        assert decision.outcome == Outcome.ALLOW

    def test_category_comparison_warns(self, workspace):
        workspace.capture_source().migrate()
        script = "if (label === 'Products') {\n  openPanel();\n}\n"

        decision = evaluate(
            GateEvent.write("blocks/header/header.js", script), workspace.context()
        )

        assert decision.outcome == Outcome.WARN
        assert decision.allowed
        assert rules_of(decision) == [GateRule.G5_CONTENT_INTEGRITY]
        assert "content/nav.md" in decision.remediation[0]

    def test_other_blocks_are_scanned(self, workspace):
        workspace.capture_source()
        script = "function buildProductsPanel() {}\n"

        decision = evaluate(GateEvent.write("blocks/footer/footer.js", script), workspace.context())

        assert decision.outcome == Outcome.WARN

    def test_scan_signals(self):
        links = " ".join(f"'https://example.com/p{i}'" for i in range(6))
        script = (
            f"const text = '{'x' * 200}';\n"
            f"const links = [{links}];\n"
            "switch (name) { case \"Support\": break; }\n"
            "const productsMenu = {};\n"
        )

        signals = scan_integration_code(script, ["Products", "Support"])

        assert any("long text literal (200 chars) at line 1" in s for s in signals)
        assert any("6 absolute links" in s for s in signals)
        assert any("identifier `productsMenu` at line 4" in s for s in signals)
        assert any("comparison against category literal 'Support' at line 3" in s for s in signals)

    def test_scan_ignores_unrelated_code(self):
        script = "const panel = block.querySelector('.nav-sections');\n"
        assert scan_integration_code(script, ["Products"]) == []


# =============================================================================
# END OF SESSION
# =============================================================================

class TestSessionEnd:
    """Test the end-of-session sweep."""

    def test_complete_workspace_allows(self, workspace):
        workspace.complete()

        decision = evaluate(GateEvent.session_end(), workspace.context())

        assert decision.outcome == Outcome.ALLOW

    def test_empty_workspace_blocks_with_every_register(self, workspace):
        decision = evaluate(GateEvent.session_end(), workspace.context())

        assert decision.outcome == Outcome.BLOCK
        for name in ("behavior-register", "structural-register", "style-register"):
            assert name in decision.reason

    def test_unvalidated_register_blocks(self, workspace):
        behavior = workspace.capture_source().read_json("validation/source-behavior.json")
        behavior["triggers"][1]["click"]["target"] = "/help"
        workspace.migrate(behavior=behavior).validate_behavior()

        decision = evaluate(GateEvent.session_end(), workspace.context())

        assert decision.outcome == Outcome.BLOCK
        assert GateRule.G6_SESSION_COMPLETENESS in rules_of(decision)
        assert "behavior-register (validation/behavior-register.json) is not fully validated" in (
            decision.reason
        )

    def test_missing_rollup_blocks(self, workspace):
        (workspace.capture_source().migrate().validate_behavior()
         .validate_structure().validate_styles())

        decision = evaluate(GateEvent.session_end(), workspace.context())

        assert decision.outcome == Outcome.BLOCK
        assert "finalize output migration-summary" in decision.reason
        assert any("paritygate rollup" in r for r in decision.remediation)

    def test_other_blocks_are_rescanned(self, workspace):
        workspace.complete()
        workspace.write_text("blocks/footer/footer.js", "function buildProductsPanel() {}\n")
        workspace.write_text("blocks/footer/footer.css", "const productsMenu = {};\n")

        decision = evaluate(GateEvent.session_end(), workspace.context())

        assert decision.outcome == Outcome.WARN
        assert rules_of(decision) == [GateRule.G5_CONTENT_INTEGRITY]
        assert "blocks/footer/footer.js" in decision.reason
        assert "footer.css" not in decision.reason

    def test_evaluation_is_deterministic(self, workspace):
        workspace.capture_source().migrate()
        ctx = workspace.context()

        first = evaluate(GateEvent.session_end(), ctx)
        second = evaluate(GateEvent.session_end(), ctx)

        assert first == second

    def test_write_without_target_is_usage_error(self, workspace):
        with pytest.raises(UsageError):
            evaluate(GateEvent(EventType.WRITE), workspace.context())
