"""Base vendor score: four fit components summed into a 0-100 total.

Components
----------
- **Risk area coverage** (0-40): share of assessment gaps whose category the
  vendor lists.
- **Size fit** (0-20): exact segment match, adjacent segment, or mismatch.
- **Geo coverage** (0-20): share of required jurisdictions the vendor serves.
- **Price** (0-20): budget bands overlap, or vendor minimum within tolerance.

Missing data is never fatal. An organisation that leaves a dimension open
gets the full component; a vendor with missing or malformed data for a
dimension gets ``NEUTRAL`` (half the component max).
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Iterable

from compass.schemas import BaseScore
from compass.utils import as_str_list

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SCORING_WEIGHTS = {
    "risk_area_coverage": 40.0,
    "size_fit": 20.0,
    "geo_coverage": 20.0,
    "price": 20.0,
}

SIZE_FIT_SCORES = {"exact": 20.0, "adjacent": 15.0, "mismatch": 0.0}

PRICE_TOLERANCE = 1.25

GLOBAL_COVERAGE = "GLOBAL"

SIZE_ORDER = ("STARTUP", "SMB", "MIDMARKET", "ENTERPRISE")


@dataclass(frozen=True)
class PriceRange:
    min: float
    max: float


BUDGET_BANDS: dict[str, PriceRange] = {
    "UNDER_10K": PriceRange(0, 10_000),
    "RANGE_10K_50K": PriceRange(10_000, 50_000),
    "RANGE_50K_100K": PriceRange(50_000, 100_000),
    "RANGE_100K_250K": PriceRange(100_000, 250_000),
    "OVER_250K": PriceRange(250_000, math.inf),
}


def neutral(component: str) -> float:
    return SCORING_WEIGHTS[component] / 2


# ---------------------------------------------------------------------------
# Price helpers
# ---------------------------------------------------------------------------


def convert_budget_range(band: str | None) -> PriceRange | None:
    """Map a budget band name to its numeric range, ``None`` if unknown."""
    if not isinstance(band, str):
        return None
    return BUDGET_BANDS.get(band.strip().upper())


def price_ranges_overlap(a: PriceRange, b: PriceRange) -> bool:
    return not (a.min > b.max or a.max < b.min)


def price_within_tolerance(budget: PriceRange, vendor_price: PriceRange, tolerance: float = PRICE_TOLERANCE) -> bool:
    return vendor_price.min <= budget.max * tolerance


def adjacent_segments(size: str) -> set[str]:
    if size not in SIZE_ORDER:
        return set()
    idx = SIZE_ORDER.index(size)
    return {SIZE_ORDER[i] for i in (idx - 1, idx + 1) if 0 <= i < len(SIZE_ORDER)}


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


def count_covered_gaps(vendor, gaps: Iterable) -> int:
    categories = set(as_str_list(vendor.categories) or [])
    return sum(1 for gap in gaps if gap.category in categories)


def calculate_risk_area_coverage(vendor, gaps: list) -> float:
    max_points = SCORING_WEIGHTS["risk_area_coverage"]
    if not gaps:
        return max_points
    if as_str_list(vendor.categories) is None:
        return neutral("risk_area_coverage")
    return count_covered_gaps(vendor, gaps) / len(gaps) * max_points


def calculate_size_fit(vendor, priorities) -> float:
    size = (priorities.company_size or "").strip().upper()
    if not size:
        return SCORING_WEIGHTS["size_fit"]
    segments = as_str_list(vendor.target_segments)
    if not segments:
        return neutral("size_fit")
    segments_upper = {s.strip().upper() for s in segments}
    if size in segments_upper:
        return SIZE_FIT_SCORES["exact"]
    if adjacent_segments(size) & segments_upper:
        return SIZE_FIT_SCORES["adjacent"]
    return SIZE_FIT_SCORES["mismatch"]


def calculate_geo_coverage(vendor, priorities) -> float:
    max_points = SCORING_WEIGHTS["geo_coverage"]
    required = as_str_list(priorities.jurisdictions) or []
    if not required:
        return max_points
    coverage = as_str_list(vendor.geographic_coverage)
    if not coverage:
        return neutral("geo_coverage")
    coverage_lower = {c.strip().lower() for c in coverage}
    if GLOBAL_COVERAGE.lower() in coverage_lower:
        return max_points
    matched = sum(1 for j in required if j.strip().lower() in coverage_lower)
    return matched / len(required) * max_points


def calculate_price_score(vendor, priorities) -> float:
    max_points = SCORING_WEIGHTS["price"]
    if not priorities.budget_range:
        return max_points
    budget = convert_budget_range(priorities.budget_range)
    if budget is None:
        return max_points
    vendor_price = convert_budget_range(vendor.pricing_range)
    if vendor_price is None:
        return neutral("price")
    if price_ranges_overlap(budget, vendor_price):
        return max_points
    if price_within_tolerance(budget, vendor_price):
        return max_points / 2
    return 0.0


def _guarded(component: str, fn: Callable[..., float], vendor, *args) -> float:
    try:
        return float(fn(vendor, *args))
    except Exception as exc:
        log.warning("Component %s failed for vendor %s, using neutral: %s",
                    component, getattr(vendor, "id", "?"), exc)
        return neutral(component)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def calculate_base_score(vendor, gaps: list, priorities) -> BaseScore:
    """Score *vendor* against the assessment *gaps* and org *priorities*."""
    risk = _guarded("risk_area_coverage", calculate_risk_area_coverage, vendor, gaps)
    size = _guarded("size_fit", calculate_size_fit, vendor, priorities)
    geo = _guarded("geo_coverage", calculate_geo_coverage, vendor, priorities)
    price = _guarded("price", calculate_price_score, vendor, priorities)

    try:
        covered = count_covered_gaps(vendor, gaps)
    except Exception:
        covered = 0

    return BaseScore(
        vendor_id=vendor.id,
        risk_area_coverage=risk,
        size_fit=size,
        geo_coverage=geo,
        price_score=price,
        total_base=risk + size + geo + price,
        covered_gap_count=covered,
        gap_count=len(gaps),
    )
