"""Tests for evidence-weighted scoring."""
from __future__ import annotations

from types import SimpleNamespace

import pytest

from compass.evidence import (
    calculate_evidence_weighted_result,
    calculate_final_score,
    confidence_level,
    evidence_distribution,
    get_best_tier,
    get_multiplier,
)
from compass.repositories import AssessmentStore
from compass.tests.conftest import add_answer


def _answers(tier2: int, tier1: int, tier0: int) -> list:
    return (
        [SimpleNamespace(evidence_tier="TIER_2")] * tier2
        + [SimpleNamespace(evidence_tier="TIER_1")] * tier1
        + [SimpleNamespace(evidence_tier="TIER_0")] * tier0
    )


class TestTiers:
    def test_multipliers(self):
        assert get_multiplier("TIER_0") == 0.6
        assert get_multiplier("TIER_1") == 0.8
        assert get_multiplier("TIER_2") == 1.0
        assert get_multiplier("UNKNOWN") == 0.6
        assert get_multiplier(None) == 0.6

    def test_final_score(self):
        assert calculate_final_score(5, "TIER_2") == 5
        assert calculate_final_score(5, "TIER_1") == 4
        assert calculate_final_score(5, "TIER_0") == pytest.approx(3)

    def test_best_tier(self):
        assert get_best_tier(["TIER_0", "TIER_2", "TIER_1"]) == "TIER_2"
        assert get_best_tier(["TIER_0", "TIER_1"]) == "TIER_1"
        assert get_best_tier([]) == "TIER_0"
        assert get_best_tier([None]) == "TIER_0"


class TestConfidence:
    @pytest.mark.parametrize("tier2,tier1,tier0,expected", [
        (60, 0, 40, "HIGH"),
        (59, 1, 40, "MEDIUM"),
        (50, 15, 35, "MEDIUM"),
        (10, 10, 80, "LOW"),
        (0, 0, 0, "LOW"),
    ])
    def test_levels(self, tier2, tier1, tier0, expected):
        assert confidence_level(evidence_distribution(_answers(tier2, tier1, tier0))) == expected

    def test_percentages_sum_to_100(self):
        dist = evidence_distribution(_answers(1, 1, 1))
        total = dist.tier0.percentage + dist.tier1.percentage + dist.tier2.percentage
        assert 99 <= total <= 101
        assert dist.tier2.count == 1

    def test_no_answers_is_all_zero(self):
        dist = evidence_distribution([])
        assert dist.model_dump() == {
            "tier0": {"count": 0, "percentage": 0},
            "tier1": {"count": 0, "percentage": 0},
            "tier2": {"count": 0, "percentage": 0},
        }


class TestEvidenceWeightedResult:
    def test_sections_and_overall(self, session, sections):
        # Governance (weight 0.3): final scores 4 and 3 -> mean 3.5 -> 70
        add_answer(session, "q1", score=5, tier="TIER_1", final_score=4)
        add_answer(session, "q2", score=5, tier="TIER_0", final_score=3)
        # Monitoring (weight 0.7): raw score only -> 5 -> 100
        add_answer(session, "q3", score=5, tier="TIER_2")
        store = AssessmentStore(session)
        result = calculate_evidence_weighted_result(store.list_answers("a1"), store.list_sections("t1"))

        gov, mon = result.section_breakdown
        assert (gov.section_name, gov.score, gov.weight, gov.answered) == ("Governance", 70, 30, 2)
        assert (mon.section_name, mon.score, mon.weight, mon.answered) == ("Monitoring", 100, 70, 1)
        assert gov.evidence_counts.model_dump() == {"tier0": 1, "tier1": 1, "tier2": 0}
        # (70*30 + 100*70) / 100 = 91
        assert result.overall_score == 91
        assert result.total_answers == 3
        assert result.confidence_level == "MEDIUM"  # tier2 33% + tier1 33% = 66%

    def test_unanswered_sections_do_not_drag_overall(self, session, sections):
        add_answer(session, "q3", score=4, tier="TIER_2")
        store = AssessmentStore(session)
        result = calculate_evidence_weighted_result(store.list_answers("a1"), store.list_sections("t1"))
        assert result.section_breakdown[0].score == 0
        assert result.section_breakdown[0].answered == 0
        assert result.overall_score == 80

    def test_no_answers(self, session, sections):
        store = AssessmentStore(session)
        result = calculate_evidence_weighted_result([], store.list_sections("t1"))
        assert result.overall_score == 0
        assert result.confidence_level == "LOW"
        assert result.total_answers == 0
