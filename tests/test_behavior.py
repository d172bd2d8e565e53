"""
Tests for the Behavior Comparator.

These tests verify that:
1. Free text is compared by token overlap, not equality
2. Navigation targets are compared after normalization
3. Every visited node appears once in the register, with its facets
"""

import copy

import pytest

from paritygate.comparison.behavior import compare_behaviors, correlate_nodes
from paritygate.comparison.text import (
    normalize_label,
    normalize_target,
    text_matches,
    token_overlap,
)
from paritygate.domain import (
    FeaturedAreaItem,
    ItemStatus,
    PanelItem,
    TabItem,
    TriggerItem,
)

from conftest import SOURCE_BEHAVIOR


def overlap_texts(shared, only_a, only_b):
    shared_tokens = [f"t{i}" for i in range(shared)]
    a = shared_tokens + [f"a{i}" for i in range(only_a)]
    b = shared_tokens + [f"b{i}" for i in range(only_b)]
    return " ".join(a), " ".join(b)


# =============================================================================
# TEXT SIMILARITY
# =============================================================================

class TestTokenOverlap:
    """Test the free-text similarity measure."""

    def test_identical_texts(self):
        assert token_overlap("opens the menu", "Opens  the MENU") == 1.0

    def test_disjoint_texts(self):
        assert token_overlap("opens the menu", "navigates away now") == 0.0

    def test_empty_texts(self):
        assert token_overlap("", None) == 1.0
        assert token_overlap("", "something") == 0.0

    def test_boundary_0_60_passes(self):
        a, b = overlap_texts(shared=60, only_a=20, only_b=20)
        assert token_overlap(a, b) == pytest.approx(0.60)
        assert text_matches(a, b)

    def test_boundary_0_59_fails(self):
        a, b = overlap_texts(shared=59, only_a=21, only_b=20)
        assert token_overlap(a, b) == pytest.approx(0.59)
        assert not text_matches(a, b)

    def test_threshold_is_tunable(self):
        a, b = overlap_texts(shared=59, only_a=21, only_b=20)
        assert text_matches(a, b, threshold=0.5)

    def test_exact_match_short_circuits(self):
        assert text_matches("  same ", "same", threshold=1.1)


class TestNormalization:
    """Test label and target normalization."""

    def test_label(self):
        assert normalize_label("  Products\n & Services ") == "products & services"

    @pytest.mark.parametrize("target, expected", [
        ("https://www.example.com/Products.html", "/products"),
        ("/products/", "/products"),
        ("/products/index.html", "/products"),
        ("products", "/products"),
        ("//cdn.example.com/a//b", "/a/b"),
        ("/support?ref=nav#top", "/support"),
        ("/", "/"),
        ("#menu", ""),
        ("javascript:void(0)", ""),
        (None, ""),
    ])
    def test_target(self, target, expected):
        assert normalize_target(target) == expected


# =============================================================================
# CORRELATION
# =============================================================================

class TestCorrelation:
    """Test pairing of source and migrated nodes."""

    def test_label_match_beats_position(self):
        source = [{"label": "Products"}, {"label": "Support"}]
        migrated = [{"label": "support"}, {"label": "Products "}]

        pairs, unmatched = correlate_nodes(source, migrated)

        assert pairs == [(0, 1), (1, 0)]
        assert unmatched == []

    def test_position_fallback(self):
        source = [{"label": "Products"}, {"label": "Support"}]
        migrated = [{"label": "Products"}, {"label": "Help"}]

        pairs, _ = correlate_nodes(source, migrated)

        assert pairs == [(0, 0), (1, 1)]

    def test_missing_and_extra(self):
        source = [{"label": "Products"}]
        migrated = [{"label": "Blog"}, {"label": "Products"}, {"label": "Shop"}]

        pairs, unmatched = correlate_nodes(source, migrated)

        assert pairs == [(0, 1)]
        assert unmatched == [0, 2]


# =============================================================================
# TREE COMPARISON
# =============================================================================

class TestBehaviorComparison:
    """Test whole-tree comparison."""

    def test_identical_trees_are_validated(self):
        result = compare_behaviors(SOURCE_BEHAVIOR, copy.deepcopy(SOURCE_BEHAVIOR))

        assert result.all_validated
        assert result.failed == []
        assert result.to_register().to_dict()["allValidated"] is True

    def test_every_node_visited_in_pre_order(self):
        result = compare_behaviors(SOURCE_BEHAVIOR, copy.deepcopy(SOURCE_BEHAVIOR))

        assert [i.id for i in result.items] == [
            "trigger-0",
            "trigger-0/item-0",
            "trigger-0/item-1",
            "trigger-0/featured-0",
            "trigger-1",
        ]
        assert [type(i) for i in result.items] == [
            TriggerItem, PanelItem, PanelItem, FeaturedAreaItem, TriggerItem,
        ]
        assert result.items[1].parent_id == "trigger-0"

    def test_equivalent_targets_match(self):
        migrated = copy.deepcopy(SOURCE_BEHAVIOR)
        migrated["triggers"][0]["items"][0]["click"]["target"] = "/products/cameras"
        migrated["triggers"][0]["items"][1]["click"]["target"] = "/products/lenses.html"

        assert compare_behaviors(SOURCE_BEHAVIOR, migrated).all_validated

    def test_rephrased_description_matches(self):
        migrated = copy.deepcopy(SOURCE_BEHAVIOR)
        migrated["triggers"][0]["click"]["description"] = "opens the products megamenu"

        assert compare_behaviors(SOURCE_BEHAVIOR, migrated).all_validated

    def test_click_mismatch_fails_only_that_facet(self):
        migrated = copy.deepcopy(SOURCE_BEHAVIOR)
        migrated["triggers"][1]["click"]["target"] = "/help"

        result = compare_behaviors(SOURCE_BEHAVIOR, migrated)

        support = result.items[-1]
        assert support.status == ItemStatus.FAILED
        assert support.hover_match
        assert not support.click_match
        assert support.styling_match
        assert "click facet differs" in support.remediation
        assert "/help" in support.remediation

    def test_styling_media_mismatch(self):
        migrated = copy.deepcopy(SOURCE_BEHAVIOR)
        migrated["triggers"][0]["featured"][0]["styling"] = {"hasMedia": False}

        result = compare_behaviors(SOURCE_BEHAVIOR, migrated)

        featured = next(i for i in result.items if i.id == "trigger-0/featured-0")
        assert not featured.styling_match
        assert not result.all_validated

    def test_missing_trigger_fails_with_subtree(self):
        migrated = copy.deepcopy(SOURCE_BEHAVIOR)
        migrated["triggers"] = migrated["triggers"][1:]

        result = compare_behaviors(SOURCE_BEHAVIOR, migrated)

        failed_ids = [i.id for i in result.failed]
        assert failed_ids == [
            "trigger-0",
            "trigger-0/item-0",
            "trigger-0/item-1",
            "trigger-0/featured-0",
        ]
        assert "missing in migrated output" in result.failed[0].remediation

    def test_extra_migrated_node_fails(self):
        migrated = copy.deepcopy(SOURCE_BEHAVIOR)
        migrated["triggers"][0]["tabs"] = [{"label": "Bestsellers"}]

        result = compare_behaviors(SOURCE_BEHAVIOR, migrated)

        extra = next(i for i in result.items if isinstance(i, TabItem))
        assert extra.id == "trigger-0/tab-extra-0"
        assert extra.status == ItemStatus.FAILED

    def test_summary_counts(self):
        migrated = copy.deepcopy(SOURCE_BEHAVIOR)
        migrated["triggers"][1]["hover"]["hasEffect"] = False

        summary = compare_behaviors(SOURCE_BEHAVIOR, migrated).summary()

        assert summary["total"] == 5
        assert summary["validated"] == 4
        assert summary["hoverMatched"] == 4
        assert summary["clickMatched"] == 5

    def test_empty_trees_are_not_validated(self):
        assert not compare_behaviors({"triggers": []}, {"triggers": []}).all_validated
