"""Gap prioritization: severity, priority score, effort and cost for a gap.

Inputs are the answer's quality score (0-5), whether the question is
foundational, and the weight of its section (fraction of 1.0). Lower scores
and heavier sections push the priority score (1-10) up.
"""
from __future__ import annotations

from dataclasses import dataclass

from compass.utils import round_half_up

MIN_PRIORITY_SCORE = 1
MAX_PRIORITY_SCORE = 10
FOUNDATIONAL_BOOST = 2
SECTION_WEIGHT_FACTOR = 5


@dataclass(frozen=True)
class GapPrioritization:
    severity: str
    priority: str
    priority_score: int
    effort: str
    cost: str


def calculate_gap_severity(score: float) -> str:
    if score < 1.5:
        return "CRITICAL"
    if score < 2.5:
        return "HIGH"
    if score < 3.5:
        return "MEDIUM"
    return "LOW"


def calculate_priority_score(score: float, is_foundational: bool, section_weight: float) -> int:
    raw = (5 - score) * 2
    if is_foundational:
        raw += FOUNDATIONAL_BOOST
    raw += section_weight * SECTION_WEIGHT_FACTOR
    return max(MIN_PRIORITY_SCORE, min(MAX_PRIORITY_SCORE, round_half_up(raw)))


def score_to_priority(priority_score: int) -> str:
    if priority_score >= 9:
        return "IMMEDIATE"
    if priority_score >= 6:
        return "SHORT_TERM"
    if priority_score >= 3:
        return "MEDIUM_TERM"
    return "LONG_TERM"


def estimate_effort(section_weight: float, is_foundational: bool, score: float) -> str:
    if section_weight > 0.25 and is_foundational and score < 2.0:
        return "LARGE"
    if 0.15 <= section_weight <= 0.25 or is_foundational:
        return "MEDIUM"
    return "SMALL"


def estimate_cost(effort: str, severity: str, section_weight: float, is_foundational: bool) -> str:
    if effort == "LARGE" and severity == "CRITICAL" and section_weight > 0.20:
        return "OVER_250K"
    if effort == "LARGE" and severity == "CRITICAL":
        return "RANGE_100K_250K"
    if effort == "LARGE" or (effort == "MEDIUM" and is_foundational):
        return "RANGE_50K_100K"
    if effort == "MEDIUM" or (effort == "SMALL" and is_foundational):
        return "RANGE_10K_50K"
    return "UNDER_10K"


def calculate_gap_prioritization(score: float, is_foundational: bool, section_weight: float) -> GapPrioritization:
    severity = calculate_gap_severity(score)
    priority_score = calculate_priority_score(score, is_foundational, section_weight)
    effort = estimate_effort(section_weight, is_foundational, score)
    return GapPrioritization(
        severity=severity,
        priority=score_to_priority(priority_score),
        priority_score=priority_score,
        effort=effort,
        cost=estimate_cost(effort, severity, section_weight, is_foundational),
    )
