"""
Tests for Critique Evidence and the Proof Verifier.

These tests verify that:
1. Evidence bundles are structurally validated at construction
2. A validated style claim holds only if its files exist on disk
3. At least one critique iteration is required
"""

import pytest

from paritygate.domain import (
    DataError,
    ItemStatus,
    Register,
    RowItem,
    StyleItem,
    item_from_dict,
)
from paritygate.evidence import (
    CritiqueEvidence,
    EvidenceValidationError,
    create_evidence,
)
from paritygate.gate.proof import verify_item, verify_register


def make_style_item(evidence, status=ItemStatus.VALIDATED, item_id="header"):
    return StyleItem(id=item_id, label=item_id, status=status, similarity=97.0, evidence=evidence)


# =============================================================================
# EVIDENCE INVARIANTS
# =============================================================================

class TestEvidenceInvariants:
    """Test that malformed evidence cannot be constructed."""

    def test_paths_must_be_strings(self):
        with pytest.raises(EvidenceValidationError, match="reportPath must be a string"):
            CritiqueEvidence(report_path=None, source_ref_path="a", migrated_ref_path="b")

    @pytest.mark.parametrize("count", [True, 1.5, "2"])
    def test_iteration_count_must_be_integer(self, count):
        with pytest.raises(EvidenceValidationError, match="iterationCount must be an integer"):
            CritiqueEvidence("r.json", "a.png", "b.png", iteration_count=count)

    def test_json_round_trip_keys(self):
        evidence = CritiqueEvidence("r.json", "a.png", "b.png", 3)
        data = evidence.to_dict()

        assert data == {
            "reportPath": "r.json",
            "sourceRefPath": "a.png",
            "migratedRefPath": "b.png",
            "iterationCount": 3,
        }
        assert CritiqueEvidence.from_dict(data) == evidence

    def test_malformed_evidence_in_register_is_data_error(self):
        with pytest.raises(DataError, match="malformed style-target item"):
            item_from_dict({
                "id": "header",
                "type": "style-target",
                "status": "validated",
                "evidence": {"reportPath": 5},
            })


class TestEvidenceIterations:
    """Test that iteration counts continue across comparator runs."""

    def test_first_run_starts_at_one(self):
        assert create_evidence("r.json", "a.png", "b.png").iteration_count == 1

    def test_next_run_increments(self):
        first = create_evidence("r1.json", "a.png", "b.png")
        second = create_evidence("r2.json", previous=first)

        assert second.iteration_count == 2
        assert second.report_path == "r2.json"
        assert second.source_ref_path == "a.png"


# =============================================================================
# PROOF VERIFICATION
# =============================================================================

class TestProofVerifier:
    """Test zero-tolerance verification of validated claims."""

    def test_complete_evidence_passes(self, workspace):
        item = make_style_item(workspace.critique_evidence())
        assert verify_item(item, workspace.root) == []

    def test_missing_report_is_violation(self, workspace):
        evidence = workspace.critique_evidence()
        workspace.path(evidence.report_path).unlink()

        violations = verify_item(make_style_item(evidence), workspace.root)

        assert len(violations) == 1
        assert violations[0].missing_path == evidence.report_path
        assert "reportPath does not exist" in violations[0].describe()

    def test_missing_reference_image_is_violation(self, workspace):
        evidence = workspace.critique_evidence()
        workspace.path(evidence.migrated_ref_path).unlink()

        violations = verify_item(make_style_item(evidence), workspace.root)

        assert [v.missing_path for v in violations] == [evidence.migrated_ref_path]

    def test_zero_iterations_is_violation(self, workspace):
        evidence = workspace.critique_evidence(iteration_count=0)

        violations = verify_item(make_style_item(evidence), workspace.root)

        assert len(violations) == 1
        assert "iterationCount is 0" in violations[0].reason

    def test_no_evidence_is_violation(self, workspace):
        violations = verify_item(make_style_item(None), workspace.root)
        assert "no evidence bundle" in violations[0].reason

    def test_empty_path_is_violation(self, workspace):
        evidence = CritiqueEvidence("", "", "", 1)
        violations = verify_item(make_style_item(evidence), workspace.root)
        assert len(violations) == 3

    def test_similarity_never_substitutes_for_evidence(self, workspace):
        item = StyleItem(
            id="header", label="header", status=ItemStatus.VALIDATED,
            similarity=100.0, evidence=None,
        )
        assert verify_item(item, workspace.root) != []

    def test_unvalidated_items_need_no_proof(self, workspace):
        item = make_style_item(None, status=ItemStatus.FAILED)
        assert verify_item(item, workspace.root) == []

    def test_register_sweep(self, workspace):
        register = Register(name="style-register", items=[
            make_style_item(workspace.critique_evidence("header"), item_id="header"),
            make_style_item(None, item_id="footer"),
            RowItem(id="row-0", label="Row 1", status=ItemStatus.VALIDATED),
        ])

        violations = verify_register(register, workspace.root)

        assert [v.item_id for v in violations] == ["footer", "row-0"]

    def test_absolute_evidence_paths(self, workspace):
        evidence = workspace.critique_evidence()
        absolute = CritiqueEvidence(
            str(workspace.path(evidence.report_path)),
            str(workspace.path(evidence.source_ref_path)),
            str(workspace.path(evidence.migrated_ref_path)),
            1,
        )
        assert verify_item(make_style_item(absolute), workspace.root) == []
