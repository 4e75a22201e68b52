"""Shared business logic for the Compass API and MCP server."""
from __future__ import annotations

import json
import logging
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from compass import strategy
from compass.cache import Cache
from compass.errors import EngineError, ForbiddenError, InternalError, NotFoundError, PreconditionFailedError
from compass.evidence import METHODOLOGY, calculate_evidence_weighted_result
from compass.matching import PRIORITY_FIELDS, match_vendors_to_assessment, priorities_payload
from compass.models import Assessment, AssessmentPriorities
from compass.prioritization import calculate_gap_prioritization
from compass.repositories import AssessmentStore
from compass.schemas import (
    EnhancedResultsOut,
    PrioritiesIn,
    PrioritiesOut,
    ReprioritizeResult,
    StrategyMatrix,
    VendorMatchesOut,
    VendorMatchScore,
)
from compass.utils import content_hash

log = logging.getLogger(__name__)

DEFAULT_MATCH_LIMIT = 50

# Questionnaire fields stored as JSON text columns
_LIST_FIELDS = (
    "jurisdictions", "existing_systems", "selected_use_cases", "ranked_priorities",
    "must_have_features", "critical_integrations", "decision_factor_ranking",
)

# ---------------------------------------------------------------------------
# Access checks
# ---------------------------------------------------------------------------


def require_assessment(store: AssessmentStore, assessment_id: str, organization_id: str | None = None) -> Assessment:
    """Load an assessment, enforcing organization ownership when a caller org is given."""
    assessment = store.get_assessment(assessment_id)
    if assessment is None:
        raise NotFoundError("Assessment not found", code="ASSESSMENT_NOT_FOUND")
    if organization_id is not None and assessment.organization_id != organization_id:
        raise ForbiddenError("Access denied", code="FORBIDDEN")
    return assessment


# ---------------------------------------------------------------------------
# Vendor matching
# ---------------------------------------------------------------------------


def filter_matches(
    matches: list[VendorMatchScore], threshold: float = 0, limit: int = DEFAULT_MATCH_LIMIT,
) -> list[VendorMatchScore]:
    return [m for m in matches if m.total_score >= threshold][:max(0, limit)]


async def vendor_matches(
    store: AssessmentStore,
    assessment_id: str,
    *,
    organization_id: str | None = None,
    threshold: float = 0,
    limit: int = DEFAULT_MATCH_LIMIT,
    cache: Cache | None = None,
) -> VendorMatchesOut:
    require_assessment(store, assessment_id, organization_id)
    priorities = store.get_priorities_for_assessment(assessment_id)
    if priorities is None:
        raise PreconditionFailedError(
            "Complete the priorities questionnaire before requesting vendor matches",
            code="PRIORITIES_REQUIRED",
        )
    matches = await match_vendors_to_assessment(store, assessment_id, priorities.id, cache)
    filtered = filter_matches(matches, threshold, limit)
    return VendorMatchesOut(
        matches=filtered, count=len(filtered), threshold=threshold, generated_at=datetime.now(UTC),
    )


# ---------------------------------------------------------------------------
# Strategy matrix & enhanced results
# ---------------------------------------------------------------------------


async def strategy_matrix(
    store: AssessmentStore, assessment_id: str, *,
    organization_id: str | None = None, cache: Cache | None = None,
) -> StrategyMatrix:
    require_assessment(store, assessment_id, organization_id)
    return await strategy.generate_strategy_matrix(store, assessment_id, cache)


def enhanced_results(
    store: AssessmentStore, assessment_id: str, *, organization_id: str | None = None,
) -> EnhancedResultsOut:
    assessment = require_assessment(store, assessment_id, organization_id)
    try:
        answers = store.list_answers(assessment_id)
        sections = store.list_sections(assessment.template_id)
        result = calculate_evidence_weighted_result(answers, sections)
    except EngineError:
        raise
    except Exception as exc:
        log.exception("Failed to compute enhanced results for %s", assessment_id)
        raise InternalError(f"Failed to compute enhanced results: {exc}") from exc
    return EnhancedResultsOut(
        **result.model_dump(),
        methodology=METHODOLOGY,
        has_priorities=store.get_priorities_for_assessment(assessment_id) is not None,
    )


# ---------------------------------------------------------------------------
# Priorities questionnaire
# ---------------------------------------------------------------------------


def priorities_out(priorities: AssessmentPriorities) -> PrioritiesOut:
    payload = priorities_payload(priorities)
    return PrioritiesOut(
        id=priorities.id,
        assessment_id=priorities.assessment_id,
        content_hash=content_hash(payload),
        **payload,
    )


def upsert_priorities(
    session: Session, assessment_id: str, body: PrioritiesIn, *, organization_id: str | None = None,
) -> PrioritiesOut:
    """Create or replace the questionnaire answers for an assessment."""
    store = AssessmentStore(session)
    require_assessment(store, assessment_id, organization_id)
    priorities = store.get_priorities_for_assessment(assessment_id)
    created = priorities is None
    if created:
        priorities = AssessmentPriorities(assessment_id=assessment_id)
        session.add(priorities)

    data = body.model_dump()
    for field in PRIORITY_FIELDS:
        if field in _LIST_FIELDS:
            setattr(priorities, f"{field}_json", json.dumps(data[field]))
        else:
            setattr(priorities, field, data[field])
    session.commit()
    log.info("%s priorities for assessment %s", "Created" if created else "Updated", assessment_id)
    return priorities_out(priorities)


# ---------------------------------------------------------------------------
# Gap reprioritization
# ---------------------------------------------------------------------------


async def reprioritize_gaps(
    session: Session, assessment_id: str, cache: Cache | None = None,
    *, organization_id: str | None = None,
) -> ReprioritizeResult:
    """Recompute prioritization fields for question-linked gaps and drop the cached matrix."""
    store = AssessmentStore(session)
    require_assessment(store, assessment_id, organization_id)
    answers = {a.question_id: a for a in store.list_answers(assessment_id)}

    updated = 0
    for gap in store.list_gaps(assessment_id):
        if gap.question_id is None or gap.question_id not in answers:
            continue
        question = store.get_question(gap.question_id)
        if question is None:
            continue
        answer = answers[gap.question_id]
        result = calculate_gap_prioritization(
            score=answer.final_score or answer.score or 0,
            is_foundational=bool(question.is_foundational),
            section_weight=question.section.weight or 0,
        )
        gap.severity = result.severity
        gap.priority = result.priority
        gap.priority_score = result.priority_score
        gap.estimated_effort = result.effort
        gap.estimated_cost = result.cost
        updated += 1
    session.commit()

    invalidated = await strategy.invalidate_cache(cache, assessment_id)
    log.info("Reprioritized %d gaps for assessment %s", updated, assessment_id)
    return ReprioritizeResult(assessment_id=assessment_id, gaps_updated=updated, cache_invalidated=invalidated)
