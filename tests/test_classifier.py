"""
Tests for catalog_enricher/classifier.py

Tests both collection detection strategies.
"""

import pytest

from catalog_enricher.brand_profile import (
    BrandProfile,
    COLLECTION_NAMES,
    DEFAULT_PROFILE,
    EVERYDAY_COMFORTS,
    MIND_AND_MOOD,
    MOVEMENT_AND_FLOW,
    REST_AND_SLEEP,
    SUPPORTIVE_LIVING,
    profile_from_config,
)
from catalog_enricher.classifier import (
    classify_by_score,
    classify_first_match,
    classify_product,
    detect_collection,
    score_collections,
)


SCORING_PROFILE = BrandProfile(classifier_strategy="scoring")


class TestFirstMatch:
    """Tests for the priority-ordered strategy."""

    @pytest.mark.parametrize("title,description,expected", [
        ("Yoga Mat", "Great mat", MOVEMENT_AND_FLOW),
        ("Lavender Oil", "Calm your mind", MIND_AND_MOOD),
        ("Weighted Blanket", "Heavy and soft", REST_AND_SLEEP),
        ("Grab Bar", "Bathroom safety rail", SUPPORTIVE_LIVING),
        ("Ceramic Mug", "Holds 12 oz", EVERYDAY_COMFORTS),
    ])
    def test_detects_each_collection(self, title, description, expected):
        assert detect_collection(title, description) == expected

    def test_unmatched_text_gets_default(self):
        assert detect_collection("Widget", "A thing") == EVERYDAY_COMFORTS

    def test_empty_input_gets_default(self):
        assert detect_collection("", "") == EVERYDAY_COMFORTS
        assert classify_first_match(None, None, DEFAULT_PROFILE.priority_rules, EVERYDAY_COMFORTS) == EVERYDAY_COMFORTS

    def test_priority_order_breaks_ties(self):
        """Sleep and yoga keywords together resolve to the earlier rule."""
        assert detect_collection("Sleep Yoga Kit", "") == REST_AND_SLEEP
        assert detect_collection("Focus Pillow", "") == MIND_AND_MOOD

    def test_matching_is_case_insensitive(self):
        assert detect_collection("YOGA BLOCK", "") == MOVEMENT_AND_FLOW

    def test_result_is_always_a_known_collection(self):
        for title in ["", "x", "Sleep", "stretch band", "💆 spa"]:
            assert detect_collection(title, "") in COLLECTION_NAMES

    def test_custom_rules(self):
        rules = [("A", ["alpha"]), ("B", ["beta"])]
        assert classify_first_match("beta alpha", "", rules, "Z") == "A"
        assert classify_first_match("gamma", "", rules, "Z") == "Z"


class TestScoring:
    """Tests for the weighted keyword strategy."""

    def test_score_weighs_keyword_length(self):
        scores = score_collections("yoga", DEFAULT_PROFILE.collections)
        assert scores[MOVEMENT_AND_FLOW] == len("yoga")
        assert scores[MIND_AND_MOOD] == 0

    def test_highest_score_wins(self):
        text = "aromatherapy diffuser for a yoga studio"
        assert classify_by_score(text, DEFAULT_PROFILE.collections, EVERYDAY_COMFORTS) == MIND_AND_MOOD

    def test_ties_go_to_earlier_collection(self):
        collections = {
            "First": {"tags": [], "keywords": ["abcd"]},
            "Second": {"tags": [], "keywords": ["wxyz"]},
        }
        assert classify_by_score("abcd wxyz", collections, "Default") == "First"

    def test_no_hits_gets_default(self):
        assert classify_by_score("widget", DEFAULT_PROFILE.collections, EVERYDAY_COMFORTS) == EVERYDAY_COMFORTS

    def test_extra_fields_widen_search(self):
        assert detect_collection("Widget", "", SCORING_PROFILE) == EVERYDAY_COMFORTS
        assert detect_collection("Widget", "", SCORING_PROFILE, extra_fields=["Yoga Gear"]) == MOVEMENT_AND_FLOW

    def test_first_match_ignores_extra_fields(self):
        assert detect_collection("Widget", "", DEFAULT_PROFILE, extra_fields=["Yoga Gear"]) == EVERYDAY_COMFORTS


class TestClassifyProduct:
    """Tests for classify_product() on catalog records."""

    def test_uses_body_html(self):
        product = {"Title": "Gift Set", "Body (HTML)": "<p>Bedtime <b>tea</b> sampler</p>"}
        assert classify_product(product) == REST_AND_SLEEP

    def test_scoring_reads_vendor_and_type(self):
        product = {"Title": "Widget", "Type": "Fitness"}
        assert classify_product(product, SCORING_PROFILE) == MOVEMENT_AND_FLOW


class TestProfileFromConfig:
    """Tests for strategy selection through config."""

    def test_default_strategy(self):
        assert profile_from_config({}).classifier_strategy == "first_match"

    def test_scoring_strategy(self):
        assert profile_from_config({"CLASSIFIER_STRATEGY": "scoring"}).classifier_strategy == "scoring"

    def test_unknown_strategy_raises(self):
        with pytest.raises(ValueError, match="CLASSIFIER_STRATEGY"):
            profile_from_config({"CLASSIFIER_STRATEGY": "neural"})
