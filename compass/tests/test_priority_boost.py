"""Tests for the priority boost components."""
from __future__ import annotations

import pytest

from compass.priority_boost import (
    calculate_deployment_boost,
    calculate_feature_boost,
    calculate_priority_boost,
    calculate_speed_boost,
    calculate_top_priority_boost,
    normalize_priority,
)
from compass.tests.conftest import make_priorities, make_vendor


class TestNormalizePriority:
    def test_kebab_to_upper_snake(self):
        assert normalize_priority("kyc-aml") == "KYC_AML"
        assert normalize_priority("  transaction-monitoring ") == "TRANSACTION_MONITORING"
        assert normalize_priority("SANCTIONS") == "SANCTIONS"

    @pytest.mark.parametrize("value", [None, "", "   ", 42])
    def test_blank_or_non_string(self, value):
        assert normalize_priority(value) is None


class TestTopPriorityBoost:
    @pytest.mark.parametrize("categories,expected", [
        (["KYC_AML"], (20, "kyc-aml", 1)),
        (["SANCTIONS"], (15, "sanctions", 2)),
        (["REPORTING"], (10, "reporting", 3)),
        (["FRAUD"], (0, None, None)),
    ])
    def test_rank_points(self, categories, expected):
        priorities = make_priorities(ranked_priorities=["kyc-aml", "sanctions", "reporting"])
        assert calculate_top_priority_boost(make_vendor(categories=categories), priorities) == expected

    def test_only_highest_ranked_match_counts(self):
        priorities = make_priorities(ranked_priorities=["KYC_AML", "SANCTIONS", "REPORTING"])
        vendor = make_vendor(categories=["REPORTING", "SANCTIONS", "KYC_AML"])
        assert calculate_top_priority_boost(vendor, priorities) == (20, "KYC_AML", 1)


class TestFeatureBoost:
    def test_no_must_haves_gets_full(self):
        assert calculate_feature_boost(make_vendor(), make_priorities(must_have_features=[])) == (10, [])

    def test_two_points_per_match_case_insensitive(self):
        vendor = make_vendor(features=["API Access", "sso"])
        priorities = make_priorities(must_have_features=["api access", "SSO", "Audit Trail"])
        boost, missing = calculate_feature_boost(vendor, priorities)
        assert boost == 4
        assert missing == ["Audit Trail"]

    def test_capped_at_ten(self):
        features = ["a", "b", "c", "d", "e"]
        vendor = make_vendor(features=features)
        assert calculate_feature_boost(vendor, make_priorities(must_have_features=features)) == (10, [])

    def test_none_matched(self):
        boost, missing = calculate_feature_boost(make_vendor(), make_priorities(must_have_features=["SSO"]))
        assert boost == 0
        assert missing == ["SSO"]


class TestDeploymentBoost:
    def test_flexible_always_matches(self):
        assert calculate_deployment_boost(make_vendor(), make_priorities(deployment_preference="FLEXIBLE")) == 5

    def test_supported_preference(self):
        vendor = make_vendor(deployment_options=["CLOUD", "HYBRID"])
        assert calculate_deployment_boost(vendor, make_priorities(deployment_preference="HYBRID")) == 5

    def test_unsupported_preference(self):
        vendor = make_vendor(deployment_options=["CLOUD"])
        assert calculate_deployment_boost(vendor, make_priorities(deployment_preference="ON_PREMISE")) == 0


class TestSpeedBoost:
    def test_fast_vendor_when_urgent(self):
        vendor = make_vendor(implementation_timeline=90)
        assert calculate_speed_boost(vendor, make_priorities(implementation_urgency="IMMEDIATE")) == 5

    def test_slow_vendor_when_urgent(self):
        vendor = make_vendor(implementation_timeline=91)
        assert calculate_speed_boost(vendor, make_priorities(implementation_urgency="IMMEDIATE")) == 0

    def test_missing_timeline_treated_as_a_year(self):
        vendor = make_vendor(implementation_timeline=None)
        assert calculate_speed_boost(vendor, make_priorities(implementation_urgency="IMMEDIATE")) == 0

    def test_not_urgent(self):
        vendor = make_vendor(implementation_timeline=10)
        assert calculate_speed_boost(vendor, make_priorities(implementation_urgency="PLANNED")) == 0


def test_total_boost_is_plain_sum():
    vendor = make_vendor(
        categories=["KYC_AML"], features=["SSO"], deployment_options=["CLOUD"], implementation_timeline=30,
    )
    priorities = make_priorities(
        must_have_features=["SSO"], deployment_preference="CLOUD", implementation_urgency="IMMEDIATE",
    )
    boost = calculate_priority_boost(vendor, priorities)
    assert boost.top_priority_boost == 20
    assert boost.matched_rank == 1
    assert boost.feature_boost == 2
    assert boost.deployment_boost == 5
    assert boost.speed_boost == 5
    assert boost.total_boost == 32


class TestMalformedVendorData:
    def test_non_list_fields_give_no_boost(self):
        vendor = make_vendor(categories=5, features={"sso": True}, deployment_options="CLOUD")
        priorities = make_priorities(must_have_features=["SSO"])
        boost = calculate_priority_boost(vendor, priorities)
        assert boost.top_priority_boost == 0
        assert boost.matched_priority is None
        assert boost.feature_boost == 0
        assert boost.missing_features == ["SSO"]
        assert boost.deployment_boost == 0

    def test_failing_component_falls_back_to_zero(self):
        vendor = make_vendor(categories=["KYC_AML"], implementation_timeline="soon")
        boost = calculate_priority_boost(vendor, make_priorities(implementation_urgency="IMMEDIATE"))
        assert boost.speed_boost == 0
        assert boost.top_priority_boost == 20
        assert boost.total_boost == 20 + 10 + 0
