from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Generator

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from compass import services
from compass.cache import Cache, RedisCache, build_cache
from compass.db import current_db_path, init_db, session_generator
from compass.errors import EngineError
from compass.repositories import AssessmentStore
from compass.schemas import (
    EnhancedResultsOut,
    PrioritiesIn,
    PrioritiesOut,
    ReprioritizeResult,
    StrategyMatrix,
    VendorMatchesOut,
)

log = logging.getLogger(__name__)

_cache: Cache | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield
    if isinstance(_cache, RedisCache):
        await _cache.close()


app = FastAPI(
    title="Compass",
    version="0.1.0",
    description=(
        "Vendor matching and remediation strategy API for compliance assessments. "
        "Ranks approved vendors against an assessment's gaps and priorities, phases gaps "
        "into a timeline roadmap, and reports evidence-weighted results. "
        "Callers identify their organization with the X-Organization-Id header."
    ),
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Matching", "description": "Ranked vendor recommendations with explainable scores."},
        {"name": "Strategy", "description": "Timeline-phased remediation roadmap and gap prioritization."},
        {"name": "Results", "description": "Evidence-weighted assessment results."},
        {"name": "Priorities", "description": "Organization priorities questionnaire."},
        {"name": "Admin", "description": "Health and diagnostics."},
    ],
)


# ---------------------------------------------------------------------------
# Dependencies & Helpers
# ---------------------------------------------------------------------------


def db_session() -> Generator[Session, None, None]:
    yield from session_generator()


def get_cache() -> Cache:
    global _cache
    if _cache is None:
        _cache = build_cache()
    return _cache


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError):
    if exc.status_code >= 500:
        log.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ---------------------------------------------------------------------------
# Routes: Matching
# ---------------------------------------------------------------------------


@app.get("/api/assessments/{assessment_id}/vendor-matches-v2", response_model=VendorMatchesOut,
         tags=["Matching"], summary="Rank approved vendors for an assessment")
async def vendor_matches(
    assessment_id: str,
    threshold: float = Query(0, ge=0, le=140, description="Minimum total score (0-140)"),
    limit: int = Query(services.DEFAULT_MATCH_LIMIT, ge=1, le=500),
    organization_id: str | None = Header(None, alias="X-Organization-Id"),
    session: Session = Depends(db_session),
    cache: Cache = Depends(get_cache),
):
    return await services.vendor_matches(
        AssessmentStore(session), assessment_id,
        organization_id=organization_id, threshold=threshold, limit=limit, cache=cache,
    )


# ---------------------------------------------------------------------------
# Routes: Strategy
# ---------------------------------------------------------------------------


@app.get("/api/assessments/{assessment_id}/strategy-matrix", response_model=StrategyMatrix,
         tags=["Strategy"], summary="Timeline-phased remediation roadmap")
async def strategy_matrix(
    assessment_id: str,
    organization_id: str | None = Header(None, alias="X-Organization-Id"),
    session: Session = Depends(db_session),
    cache: Cache = Depends(get_cache),
):
    return await services.strategy_matrix(
        AssessmentStore(session), assessment_id, organization_id=organization_id, cache=cache,
    )


@app.post("/api/assessments/{assessment_id}/gaps/reprioritize", response_model=ReprioritizeResult,
          tags=["Strategy"], summary="Recompute gap prioritization and refresh the roadmap")
async def reprioritize_gaps(
    assessment_id: str,
    organization_id: str | None = Header(None, alias="X-Organization-Id"),
    session: Session = Depends(db_session),
    cache: Cache = Depends(get_cache),
):
    return await services.reprioritize_gaps(session, assessment_id, cache, organization_id=organization_id)


# ---------------------------------------------------------------------------
# Routes: Results
# ---------------------------------------------------------------------------


@app.get("/api/assessments/{assessment_id}/enhanced-results", response_model=EnhancedResultsOut,
         tags=["Results"], summary="Evidence-weighted assessment results")
async def enhanced_results(
    assessment_id: str,
    organization_id: str | None = Header(None, alias="X-Organization-Id"),
    session: Session = Depends(db_session),
):
    return services.enhanced_results(AssessmentStore(session), assessment_id, organization_id=organization_id)


# ---------------------------------------------------------------------------
# Routes: Priorities
# ---------------------------------------------------------------------------


@app.put("/api/assessments/{assessment_id}/priorities", response_model=PrioritiesOut,
         tags=["Priorities"], summary="Submit or update the priorities questionnaire")
async def put_priorities(
    assessment_id: str,
    body: PrioritiesIn,
    organization_id: str | None = Header(None, alias="X-Organization-Id"),
    session: Session = Depends(db_session),
):
    return services.upsert_priorities(session, assessment_id, body, organization_id=organization_id)


# ---------------------------------------------------------------------------
# Routes: Admin
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Admin"], summary="Service health and active database")
async def health():
    db_path = current_db_path()
    return {"ok": True, "db_path": str(db_path) if db_path else None,
            "cache": type(get_cache()).__name__}


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------


def main():
    import uvicorn
    uvicorn.run("compass.app:app", host="127.0.0.1", port=8001, reload=True)


if __name__ == "__main__":
    main()
