"""Evidence-weighted assessment results.

Every answer carries an evidence tier:

- ``TIER_0`` self-declared, scored at x0.6
- ``TIER_1`` policy documents, scored at x0.8
- ``TIER_2`` system-generated, scored at x1.0

The result reports the tier distribution, a confidence level derived from it,
a per-section 0-100 score and a weighted overall score.
"""
from __future__ import annotations

import logging
from typing import Iterable

from compass.schemas import (
    EvidenceCounts,
    EvidenceDistribution,
    EvidenceWeightedResult,
    Methodology,
    SectionBreakdown,
    TierShare,
)
from compass.utils import round_half_up

log = logging.getLogger(__name__)

TIERS = ("TIER_0", "TIER_1", "TIER_2")

TIER_MULTIPLIERS = {"TIER_0": 0.6, "TIER_1": 0.8, "TIER_2": 1.0}
DEFAULT_TIER = "TIER_0"

CONFIDENCE_THRESHOLD_PCT = 60
SCORE_SCALE = 20  # 0-5 answer scale -> 0-100

METHODOLOGY = Methodology(
    scoring_approach=(
        "Each answer receives a quality score (0-5) which is multiplied by an evidence tier "
        "multiplier: TIER_0 (self-declared) = x0.6, TIER_1 (claimed with evidence) = x0.8, "
        "TIER_2 (pre-filled from documents) = x1.0"
    ),
    weighting_explanation=(
        "Section scores average the answers in each section on a 0-100 scale, then the overall "
        "assessment score is a weighted average of the answered sections' scores"
    ),
    evidence_impact=(
        "Higher quality evidence (TIER_2) provides full scoring confidence, while lower tiers "
        "receive proportionally reduced scores to reflect uncertainty"
    ),
)


def get_multiplier(tier: str | None) -> float:
    return TIER_MULTIPLIERS.get(tier or DEFAULT_TIER, TIER_MULTIPLIERS[DEFAULT_TIER])


def calculate_final_score(raw_score: float, tier: str | None) -> float:
    return raw_score * get_multiplier(tier)


def get_best_tier(tiers: Iterable[str | None]) -> str:
    """Strongest tier present in *tiers*; ``TIER_0`` when none."""
    present = set(tiers)
    for tier in reversed(TIERS):
        if tier in present:
            return tier
    return DEFAULT_TIER


def _tier_key(tier: str) -> str:
    return tier.lower().replace("_", "")  # TIER_2 -> tier2


def evidence_distribution(answers: list) -> EvidenceDistribution:
    total = len(answers)
    shares = {}
    for tier in TIERS:
        count = sum(1 for a in answers if a.evidence_tier == tier)
        pct = round_half_up(count / total * 100) if total else 0
        shares[_tier_key(tier)] = TierShare(count=count, percentage=pct)
    return EvidenceDistribution(**shares)


def confidence_level(distribution: EvidenceDistribution) -> str:
    tier2 = distribution.tier2.percentage
    tier1 = distribution.tier1.percentage
    if tier2 >= CONFIDENCE_THRESHOLD_PCT:
        return "HIGH"
    if tier2 + tier1 >= CONFIDENCE_THRESHOLD_PCT:
        return "MEDIUM"
    return "LOW"


def _effective_score(answer) -> float:
    return answer.final_score or answer.score or 0


def section_breakdown(section, answers: list) -> SectionBreakdown:
    question_ids = {q.id for q in section.questions}
    section_answers = [a for a in answers if a.question_id in question_ids]
    if section_answers:
        mean = sum(_effective_score(a) for a in section_answers) / len(section_answers)
    else:
        mean = 0
    return SectionBreakdown(
        section_id=section.id,
        section_name=section.title,
        score=round_half_up(mean * SCORE_SCALE),
        weight=round_half_up((section.weight or 0) * 100),
        answered=len(section_answers),
        evidence_counts=EvidenceCounts(**{
            _tier_key(tier): sum(1 for a in section_answers if a.evidence_tier == tier)
            for tier in TIERS
        }),
    )


def overall_score(breakdown: list[SectionBreakdown]) -> int:
    """Weighted mean of answered sections' scores; 0 when nothing is answered."""
    answered = [s for s in breakdown if s.answered]
    total_weight = sum(s.weight for s in answered)
    if total_weight <= 0:
        return 0
    return round_half_up(sum(s.score * s.weight for s in answered) / total_weight)


def calculate_evidence_weighted_result(answers: list, sections: list) -> EvidenceWeightedResult:
    distribution = evidence_distribution(answers)
    breakdown = [section_breakdown(section, answers) for section in sections]
    result = EvidenceWeightedResult(
        overall_score=overall_score(breakdown),
        confidence_level=confidence_level(distribution),
        total_answers=len(answers),
        evidence_distribution=distribution,
        section_breakdown=breakdown,
    )
    log.debug("Evidence result: overall=%d confidence=%s answers=%d",
              result.overall_score, result.confidence_level, result.total_answers)
    return result
