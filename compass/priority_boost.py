"""Priority boost: up to 40 bonus points on top of the base score."""
from __future__ import annotations

import logging
from typing import Callable, TypeVar

from compass.schemas import PriorityBoost
from compass.utils import as_str_list

log = logging.getLogger(__name__)

T = TypeVar("T")

PRIORITY_BOOST_WEIGHTS = {
    "top_priority_by_rank": (20.0, 15.0, 10.0),
    "feature_per_match": 2.0,
    "feature_cap": 10.0,
    "deployment_match": 5.0,
    "speed": 5.0,
}

FAST_IMPLEMENTATION_DAYS = 90
DEFAULT_IMPLEMENTATION_DAYS = 365


def normalize_priority(priority: str | None) -> str | None:
    """``"kyc-aml"`` -> ``"KYC_AML"``; blank or non-string -> ``None``."""
    if not isinstance(priority, str) or not priority.strip():
        return None
    return priority.strip().upper().replace("-", "_")


def calculate_top_priority_boost(vendor, priorities) -> tuple[float, str | None, int | None]:
    """Return ``(boost, matched_priority, matched_rank)`` for the best-ranked match."""
    categories = {normalize_priority(c) for c in as_str_list(vendor.categories) or []}
    categories.discard(None)
    for rank, (priority, points) in enumerate(
        zip(as_str_list(priorities.ranked_priorities) or [], PRIORITY_BOOST_WEIGHTS["top_priority_by_rank"]),
        start=1,
    ):
        normalized = normalize_priority(priority)
        if normalized and normalized in categories:
            return points, priority, rank
    return 0.0, None, None


def calculate_feature_boost(vendor, priorities) -> tuple[float, list[str]]:
    required = [f for f in as_str_list(priorities.must_have_features) or [] if f.strip()]
    cap = PRIORITY_BOOST_WEIGHTS["feature_cap"]
    if not required:
        return cap, []
    offered = {f.strip().lower() for f in as_str_list(vendor.features) or []}
    missing = [f for f in required if f.strip().lower() not in offered]
    matched = len(required) - len(missing)
    return min(matched * PRIORITY_BOOST_WEIGHTS["feature_per_match"], cap), missing


def calculate_deployment_boost(vendor, priorities) -> float:
    preference = (priorities.deployment_preference or "").strip().upper()
    if preference == "FLEXIBLE":
        return PRIORITY_BOOST_WEIGHTS["deployment_match"]
    options = {o.strip().upper() for o in as_str_list(vendor.deployment_options) or []}
    if preference and preference in options:
        return PRIORITY_BOOST_WEIGHTS["deployment_match"]
    return 0.0


def calculate_speed_boost(vendor, priorities) -> float:
    if (priorities.implementation_urgency or "").strip().upper() != "IMMEDIATE":
        return 0.0
    timeline = vendor.implementation_timeline
    if timeline is None:
        timeline = DEFAULT_IMPLEMENTATION_DAYS
    if timeline <= FAST_IMPLEMENTATION_DAYS:
        return PRIORITY_BOOST_WEIGHTS["speed"]
    return 0.0


def _guarded(component: str, fn: Callable[..., T], fallback: T, vendor, priorities) -> T:
    try:
        return fn(vendor, priorities)
    except Exception as exc:
        log.warning("Boost %s failed for vendor %s, using no boost: %s",
                    component, getattr(vendor, "id", "?"), exc)
        return fallback


def calculate_priority_boost(vendor, priorities) -> PriorityBoost:
    top, matched_priority, matched_rank = _guarded(
        "top_priority", calculate_top_priority_boost, (0.0, None, None), vendor, priorities)
    features, missing = _guarded("features", calculate_feature_boost, (0.0, []), vendor, priorities)
    deployment = _guarded("deployment", calculate_deployment_boost, 0.0, vendor, priorities)
    speed = _guarded("speed", calculate_speed_boost, 0.0, vendor, priorities)
    return PriorityBoost(
        vendor_id=vendor.id,
        top_priority_boost=top,
        matched_priority=matched_priority,
        matched_rank=matched_rank,
        feature_boost=features,
        missing_features=missing,
        deployment_boost=deployment,
        speed_boost=speed,
        total_boost=top + features + deployment + speed,
    )
