"""Strategy matrix: phase an assessment's gaps into a remediation roadmap.

Gaps are partitioned by ``priority_score`` into three timeline buckets:

=============  ===============  ===============
bucket         score            timeline
=============  ===============  ===============
immediate      >= 8             0-6 months
near_term      4 <= s < 8       6-18 months
strategic      < 4              18+ months
=============  ===============  ===============

Gaps without a priority score are left out of every bucket and reported as
``untriaged_count``. Each bucket carries its effort distribution, a rough
cost range and the vendors covering most of its gaps.
"""
from __future__ import annotations

import asyncio
import logging
from collections import Counter
from datetime import UTC, datetime

from compass.cache import Cache, invalidate, read_json, write_json
from compass.errors import EngineError, InternalError, NotFoundError
from compass.schemas import (
    EffortDistribution,
    GapOut,
    StrategyMatrix,
    TimelineBucket,
    VendorRecommendation,
)
from compass.utils import as_str_list, round_half_up

log = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 7 * 24 * 60 * 60

IMMEDIATE_MIN_SCORE = 8
NEAR_TERM_MIN_SCORE = 4

TIMELINES = {
    "immediate": "0-6 months",
    "near_term": "6-18 months",
    "strategic": "18+ months",
}

COST_RANGE_MIDPOINTS: dict[str, int] = {
    "UNDER_10K": 5_000,
    "RANGE_10K_50K": 30_000,
    "RANGE_50K_100K": 75_000,
    "RANGE_100K_250K": 175_000,
    "OVER_250K": 350_000,
}
DEFAULT_COST_RANGE = "UNDER_10K"
COST_VARIANCE = 0.3

EFFORT_LEVELS = ("SMALL", "MEDIUM", "LARGE")


def cache_key(assessment_id: str) -> str:
    return f"strategy_matrix:{assessment_id}"


def assign_bucket(priority_score: int | None) -> str | None:
    if priority_score is None:
        return None
    if priority_score >= IMMEDIATE_MIN_SCORE:
        return "immediate"
    if priority_score >= NEAR_TERM_MIN_SCORE:
        return "near_term"
    return "strategic"


def partition_gaps(gaps: list) -> tuple[dict[str, list], int]:
    """Split gaps into buckets, highest score first. Returns ``(buckets, untriaged)``."""
    buckets: dict[str, list] = {name: [] for name in TIMELINES}
    untriaged = 0
    for gap in sorted(gaps, key=lambda g: (-(g.priority_score or 0), g.id)):
        bucket = assign_bucket(gap.priority_score)
        if bucket is None:
            untriaged += 1
        else:
            buckets[bucket].append(gap)
    return buckets, untriaged


def sum_cost_ranges(gaps: list, midpoints: dict[str, int] | None = None) -> str:
    """Sum the gaps' cost-band midpoints into a human-readable estimate."""
    if not gaps:
        return "€0"
    table = midpoints or COST_RANGE_MIDPOINTS
    total = sum(table.get(g.estimated_cost or DEFAULT_COST_RANGE, 0) for g in gaps)
    if total < 10_000:
        return f"€{round_half_up(total / 1000)}K estimated"
    low = round_half_up(total * (1 - COST_VARIANCE))
    high = round_half_up(total * (1 + COST_VARIANCE))
    return f"€{round_half_up(low / 1000)}K-€{round_half_up(high / 1000)}K estimated"


def aggregate_bucket(gaps: list) -> dict:
    counts = Counter(g.estimated_effort for g in gaps)
    return {
        "gap_count": len(gaps),
        "effort_distribution": EffortDistribution(**{level: counts.get(level, 0) for level in EFFORT_LEVELS}),
        "estimated_cost_range": sum_cost_ranges(gaps),
    }


async def find_top_vendors(
    store, gaps: list, limit: int = 3, vendors: list | None = None,
) -> list[VendorRecommendation]:
    """APPROVED vendors covering the most gaps in *gaps*, vendor id breaking ties.

    *vendors* is an already loaded candidate list; when omitted the store is
    queried for the gaps' categories.
    """
    if not gaps:
        return []
    if vendors is None:
        vendors = store.list_approved_vendors_by_categories({g.category for g in gaps})
    recommendations = []
    for vendor in vendors:
        vendor_categories = set(as_str_list(vendor.categories) or [])
        covered = [g.id for g in gaps if g.category in vendor_categories]
        if not covered:
            continue
        recommendations.append(VendorRecommendation(
            vendor_id=vendor.id,
            company_name=vendor.company_name or "",
            gaps_covered=len(covered),
            covered_gap_ids=covered,
        ))
    recommendations.sort(key=lambda r: (-r.gaps_covered, r.vendor_id))
    return recommendations[:limit]


def _gap_out(gap) -> GapOut:
    return GapOut(
        id=gap.id, category=gap.category, title=gap.title or "",
        severity=gap.severity or "", priority=gap.priority or "",
        priority_score=gap.priority_score, estimated_cost=gap.estimated_cost,
        estimated_effort=gap.estimated_effort,
    )


async def build_bucket(store, gaps: list, timeline: str, vendors: list | None = None) -> TimelineBucket:
    return TimelineBucket(
        timeline=timeline,
        gaps=[_gap_out(g) for g in gaps],
        top_vendors=await find_top_vendors(store, gaps, limit=3, vendors=vendors),
        **aggregate_bucket(gaps),
    )


async def _build_matrix(store, assessment_id: str) -> StrategyMatrix:
    # The store wraps one synchronous session, so every query runs here up
    # front and the bucket coroutines only compute over loaded rows.
    buckets, untriaged = partition_gaps(store.list_gaps(assessment_id))
    categories = {g.category for gaps in buckets.values() for g in gaps}
    vendors = store.list_approved_vendors_by_categories(categories) if categories else []
    immediate, near_term, strategic = await asyncio.gather(
        *(build_bucket(store, buckets[name], TIMELINES[name], vendors) for name in TIMELINES)
    )
    return StrategyMatrix(
        assessment_id=assessment_id,
        generated_at=datetime.now(UTC),
        immediate=immediate,
        near_term=near_term,
        strategic=strategic,
        untriaged_count=untriaged,
    )


async def generate_strategy_matrix(store, assessment_id: str, cache: Cache | None = None) -> StrategyMatrix:
    """Build (or load from cache) the timeline-phased roadmap for an assessment."""
    if store.get_assessment(assessment_id) is None:
        raise NotFoundError(f"Assessment {assessment_id} not found", code="ASSESSMENT_NOT_FOUND")

    key = cache_key(assessment_id)
    cached = await read_json(cache, key)
    if cached is not None:
        log.info("Strategy matrix cache hit for %s", assessment_id)
        return StrategyMatrix.model_validate(cached)

    try:
        matrix = await _build_matrix(store, assessment_id)
    except EngineError:
        raise
    except Exception as exc:
        log.exception("Error generating strategy matrix for %s", assessment_id)
        raise InternalError(f"Failed to generate strategy matrix: {exc}") from exc

    if await write_json(cache, key, CACHE_TTL_SECONDS, matrix.model_dump(mode="json")):
        log.info("Strategy matrix generated and cached for %s", assessment_id)
    return matrix


async def invalidate_cache(cache: Cache | None, assessment_id: str) -> bool:
    """Drop the cached matrix; call whenever an assessment's gaps change."""
    removed = await invalidate(cache, cache_key(assessment_id))
    if removed:
        log.info("Strategy matrix cache invalidated for %s", assessment_id)
    return removed
