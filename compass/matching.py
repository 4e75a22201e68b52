"""Vendor matching orchestrator.

Loads an assessment's gaps and priorities, scores every APPROVED vendor
concurrently (base score + priority boost), and returns the matches sorted
by total score descending with vendor id as the tie-break.
"""
from __future__ import annotations

import logging
from typing import Any

from compass.base_scorer import calculate_base_score
from compass.cache import Cache, read_json, write_json
from compass.config import get_settings
from compass.errors import NotFoundError
from compass.match_reasons import generate_match_reasons, generate_match_summary
from compass.priority_boost import calculate_priority_boost
from compass.schemas import BaseScore, PriorityBoost, VendorMatchScore
from compass.utils import content_hash, gather_bounded

log = logging.getLogger(__name__)

MAX_TOTAL_SCORE = 140.0
CACHE_PREFIX = "vendor_matches:v2"

PRIORITY_FIELDS = (
    "company_size", "annual_revenue", "compliance_team_size", "jurisdictions",
    "existing_systems", "primary_goal", "implementation_urgency",
    "selected_use_cases", "ranked_priorities", "budget_range",
    "deployment_preference", "must_have_features", "critical_integrations",
    "vendor_maturity", "geographic_requirements", "support_model",
    "decision_factor_ranking",
)

_VENDOR_SCORING_FIELDS = (
    "id", "categories", "target_segments", "geographic_coverage", "pricing_range",
    "features", "deployment_options", "implementation_timeline", "updated_at",
)


def calculate_total_score(base: BaseScore, boost: PriorityBoost) -> float:
    return min(base.total_base + boost.total_boost, MAX_TOTAL_SCORE)


def priorities_payload(priorities) -> dict[str, Any]:
    """Canonical dict of the questionnaire answers, used for hashing."""
    return {field: getattr(priorities, field, None) for field in PRIORITY_FIELDS}


def _inputs_digest(gaps: list, vendors: list) -> str:
    return content_hash({
        "gaps": [[g.id, g.category] for g in gaps],
        "vendors": [[getattr(v, f, None) for f in _VENDOR_SCORING_FIELDS] for v in vendors],
    })


def match_cache_key(assessment_id: str, priorities, gaps: list, vendors: list) -> str:
    return (
        f"{CACHE_PREFIX}:{assessment_id}:"
        f"{content_hash(priorities_payload(priorities))}:{_inputs_digest(gaps, vendors)}"
    )


def score_vendor(vendor, gaps: list, priorities) -> VendorMatchScore:
    """Score one vendor. Pure; component failures degrade inside the scorers."""
    base = calculate_base_score(vendor, gaps, priorities)
    boost = calculate_priority_boost(vendor, priorities)
    total = calculate_total_score(base, boost)
    log.debug("Vendor %s: base=%.1f boost=%.1f total=%.1f",
              vendor.id, base.total_base, boost.total_boost, total)
    return VendorMatchScore(
        vendor_id=vendor.id,
        company_name=vendor.company_name or "",
        base_score=base,
        priority_boost=boost,
        total_score=total,
        match_summary=generate_match_summary(total),
        match_reasons=generate_match_reasons(vendor, base, boost),
    )


def sort_matches(matches: list[VendorMatchScore]) -> list[VendorMatchScore]:
    return sorted(matches, key=lambda m: (-m.total_score, m.vendor_id))


async def match_vendors_to_assessment(
    store,
    assessment_id: str,
    priorities_id: str,
    cache: Cache | None = None,
    *,
    max_concurrency: int | None = None,
    ttl: int | None = None,
) -> list[VendorMatchScore]:
    """Rank every APPROVED vendor for an assessment.

    Raises:
        NotFoundError: ``ASSESSMENT_NOT_FOUND`` or ``PRIORITIES_NOT_FOUND``,
            before any scoring happens.
    """
    settings = get_settings()
    if max_concurrency is None:
        max_concurrency = settings.max_concurrency
    if ttl is None:
        ttl = settings.match_cache_ttl

    assessment = store.get_assessment(assessment_id)
    if assessment is None:
        raise NotFoundError(f"Assessment {assessment_id} not found", code="ASSESSMENT_NOT_FOUND")
    priorities = store.get_priorities(priorities_id)
    if priorities is None:
        raise NotFoundError(f"Priorities {priorities_id} not found", code="PRIORITIES_NOT_FOUND")

    vendors = store.list_approved_vendors()
    gaps = store.list_gaps(assessment_id)
    if not vendors:
        log.info("No approved vendors to match for assessment %s", assessment_id)
        return []

    key = match_cache_key(assessment_id, priorities, gaps, vendors)
    cached = await read_json(cache, key)
    if cached is not None:
        log.info("Vendor matches cache hit for assessment %s", assessment_id)
        return [VendorMatchScore.model_validate(m) for m in cached]

    async def _score(vendor) -> VendorMatchScore:
        return score_vendor(vendor, gaps, priorities)

    matches = sort_matches(await gather_bounded(vendors, _score, limit=max_concurrency))
    log.info("Matched %d vendors for assessment %s (top score %.1f)",
             len(matches), assessment_id, matches[0].total_score)

    await write_json(cache, key, ttl, [m.model_dump(mode="json") for m in matches])
    return matches
