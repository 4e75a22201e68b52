"""Human-readable explanations for a vendor match score."""
from __future__ import annotations

from compass.base_scorer import SCORING_WEIGHTS
from compass.priority_boost import PRIORITY_BOOST_WEIGHTS
from compass.schemas import BaseScore, PriorityBoost
from compass.utils import round_half_up

MATCH_SUMMARIES = (
    (120, "Excellent match - Highly recommended"),
    (100, "Strong match - Recommended"),
    (80, "Good match - Worth considering"),
)
PARTIAL_SUMMARY = "Partial match - May require evaluation"


def _coverage_reason(base: BaseScore) -> str | None:
    if base.gap_count == 0:
        return "No open compliance gaps to cover"
    if base.covered_gap_count == 0:
        return None
    pct = round_half_up(base.covered_gap_count / base.gap_count * 100)
    return f"Addresses {pct}% of your identified compliance gaps ({base.covered_gap_count} of {base.gap_count})"


def _size_reason(base: BaseScore) -> str | None:
    if base.size_fit >= SCORING_WEIGHTS["size_fit"]:
        return "Designed for companies your size"
    if base.size_fit >= 15:
        return "Well-suited for companies your size"
    return None


def _geo_reason(base: BaseScore) -> str | None:
    if base.geo_coverage >= SCORING_WEIGHTS["geo_coverage"]:
        return "Full coverage for all your jurisdictions"
    if base.geo_coverage >= 15:
        return "Covers most of your required jurisdictions"
    if base.geo_coverage >= 10:
        return "Partial coverage for your jurisdictions"
    return None


def _price_reason(base: BaseScore) -> str | None:
    if base.price_score >= SCORING_WEIGHTS["price"]:
        return "Within your budget range"
    if base.price_score >= SCORING_WEIGHTS["price"] / 2:
        return "Slightly above budget but within 25% tolerance"
    return None


def _priority_reason(boost: PriorityBoost) -> str | None:
    if not boost.matched_priority:
        return None
    return f"Covers your #{boost.matched_rank} priority: {boost.matched_priority}"


def _feature_reason(boost: PriorityBoost) -> str | None:
    if not boost.missing_features:
        return "Has all must-have features you specified"
    if boost.feature_boost <= 0:
        return None
    missing = ", ".join(boost.missing_features)
    if len(boost.missing_features) == 1:
        return f"Has most features, missing: {missing}"
    return f"Has some features, missing {len(boost.missing_features)}: {missing}"


def _deployment_reason(boost: PriorityBoost) -> str | None:
    if boost.deployment_boost >= PRIORITY_BOOST_WEIGHTS["deployment_match"]:
        return "Supports your preferred deployment model"
    return None


def _speed_reason(boost: PriorityBoost) -> str | None:
    if boost.speed_boost >= PRIORITY_BOOST_WEIGHTS["speed"]:
        return "Fast implementation timeline (≤90 days)"
    return None


def generate_match_reasons(vendor, base_score: BaseScore, priority_boost: PriorityBoost) -> list[str]:
    """Explain a match: base dimensions first, then boosts. Deterministic."""
    candidates = (
        _coverage_reason(base_score),
        _size_reason(base_score),
        _geo_reason(base_score),
        _price_reason(base_score),
        _priority_reason(priority_boost),
        _feature_reason(priority_boost),
        _deployment_reason(priority_boost),
        _speed_reason(priority_boost),
    )
    return [reason for reason in candidates if reason]


def generate_match_summary(total_score: float) -> str:
    for threshold, label in MATCH_SUMMARIES:
        if total_score >= threshold:
            return label
    return PARTIAL_SUMMARY
