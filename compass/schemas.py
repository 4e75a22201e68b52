"""Pydantic models for derived engine records and API payloads."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

# ---------------------------------------------------------------------------
# Vendor matching
# ---------------------------------------------------------------------------


class BaseScore(BaseModel):
    vendor_id: str
    risk_area_coverage: float
    size_fit: float
    geo_coverage: float
    price_score: float
    total_base: float
    covered_gap_count: int = 0
    gap_count: int = 0


class PriorityBoost(BaseModel):
    vendor_id: str
    top_priority_boost: float
    matched_priority: str | None = None
    matched_rank: int | None = None
    feature_boost: float
    missing_features: list[str] = []
    deployment_boost: float
    speed_boost: float
    total_boost: float


class VendorMatchScore(BaseModel):
    vendor_id: str
    company_name: str = ""
    base_score: BaseScore
    priority_boost: PriorityBoost
    total_score: float
    match_summary: str = ""
    match_reasons: list[str] = []


class VendorMatchesOut(BaseModel):
    matches: list[VendorMatchScore]
    count: int
    threshold: float
    generated_at: datetime


# ---------------------------------------------------------------------------
# Strategy matrix
# ---------------------------------------------------------------------------


class GapOut(BaseModel):
    id: str
    category: str
    title: str = ""
    severity: str = ""
    priority: str = ""
    priority_score: int | None = None
    estimated_cost: str | None = None
    estimated_effort: str | None = None


class EffortDistribution(BaseModel):
    SMALL: int = 0
    MEDIUM: int = 0
    LARGE: int = 0


class VendorRecommendation(BaseModel):
    vendor_id: str
    company_name: str = ""
    gaps_covered: int
    covered_gap_ids: list[str] = []


class TimelineBucket(BaseModel):
    timeline: str
    gaps: list[GapOut] = []
    gap_count: int = 0
    effort_distribution: EffortDistribution = Field(default_factory=EffortDistribution)
    estimated_cost_range: str = "€0"
    top_vendors: list[VendorRecommendation] = []


class StrategyMatrix(BaseModel):
    assessment_id: str
    generated_at: datetime
    immediate: TimelineBucket
    near_term: TimelineBucket
    strategic: TimelineBucket
    untriaged_count: int = 0


# ---------------------------------------------------------------------------
# Evidence-weighted results
# ---------------------------------------------------------------------------


class TierShare(BaseModel):
    count: int = 0
    percentage: int = 0


class EvidenceDistribution(BaseModel):
    tier0: TierShare = Field(default_factory=TierShare)
    tier1: TierShare = Field(default_factory=TierShare)
    tier2: TierShare = Field(default_factory=TierShare)


class EvidenceCounts(BaseModel):
    tier0: int = 0
    tier1: int = 0
    tier2: int = 0


class SectionBreakdown(BaseModel):
    section_id: str
    section_name: str
    score: int
    weight: int
    answered: int = 0
    evidence_counts: EvidenceCounts = Field(default_factory=EvidenceCounts)


class EvidenceWeightedResult(BaseModel):
    overall_score: int
    confidence_level: Literal["LOW", "MEDIUM", "HIGH"]
    total_answers: int
    evidence_distribution: EvidenceDistribution
    section_breakdown: list[SectionBreakdown] = []


class Methodology(BaseModel):
    scoring_approach: str
    weighting_explanation: str
    evidence_impact: str


class EnhancedResultsOut(EvidenceWeightedResult):
    methodology: Methodology
    has_priorities: bool


# ---------------------------------------------------------------------------
# Priorities questionnaire
# ---------------------------------------------------------------------------

CompanySize = Literal["STARTUP", "SMB", "MIDMARKET", "ENTERPRISE"]
BudgetRange = Literal["UNDER_10K", "RANGE_10K_50K", "RANGE_50K_100K", "RANGE_100K_250K", "OVER_250K"]


class PrioritiesIn(BaseModel):
    company_size: CompanySize | None = None
    annual_revenue: str | None = None
    compliance_team_size: str | None = None
    jurisdictions: list[str] = Field(min_length=1)
    existing_systems: list[str] = []
    primary_goal: str = Field(min_length=1)
    implementation_urgency: Literal["IMMEDIATE", "PLANNED", "STRATEGIC", "LONG_TERM"]
    selected_use_cases: list[str] = Field(min_length=3)
    ranked_priorities: list[str] = Field(min_length=3, max_length=3)
    budget_range: BudgetRange
    deployment_preference: Literal["CLOUD", "ON_PREMISE", "HYBRID", "FLEXIBLE"]
    must_have_features: list[str] = Field(default=[], max_length=5)
    critical_integrations: list[str] = []
    vendor_maturity: Literal["ENTERPRISE", "MID_MARKET", "STARTUP", "ANY"] = "ANY"
    geographic_requirements: str = ""
    support_model: str = ""
    decision_factor_ranking: list[str] = Field(min_length=6, max_length=6)

    @field_validator("jurisdictions", "selected_use_cases", "ranked_priorities",
                     "must_have_features", "decision_factor_ranking")
    @classmethod
    def _no_blank_entries(cls, v: list[str]) -> list[str]:
        cleaned = [item.strip() for item in v]
        if any(not item for item in cleaned):
            raise ValueError("entries must be non-empty strings")
        return cleaned

    @field_validator("ranked_priorities")
    @classmethod
    def _distinct_priorities(cls, v: list[str]) -> list[str]:
        if len(set(v)) != len(v):
            raise ValueError("ranked priorities must be distinct")
        return v


class PrioritiesOut(PrioritiesIn):
    id: str
    assessment_id: str
    content_hash: str


class ReprioritizeResult(BaseModel):
    assessment_id: str
    gaps_updated: int
    cache_invalidated: bool
