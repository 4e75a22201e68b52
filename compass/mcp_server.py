from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from mcp.server.fastmcp import FastMCP

from compass import services
from compass.cache import Cache, build_cache
from compass.db import init_db, session_scope
from compass.errors import EngineError
from compass.repositories import AssessmentStore

log = logging.getLogger(__name__)

_cache: Cache | None = None


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def compass_lifespan(server: FastMCP) -> AsyncIterator[None]:
    global _cache
    init_db()
    _cache = build_cache()
    yield


mcp = FastMCP(
    "Compass",
    instructions=(
        "Compass turns a completed compliance assessment into vendor recommendations, "
        "a remediation roadmap and evidence-weighted results. "
        "Start with get_enhanced_results(assessment_id) for the assessment's standing, "
        "then get_strategy_matrix(assessment_id) for the roadmap, "
        "then get_vendor_matches(assessment_id) for ranked vendors."
    ),
    lifespan=compass_lifespan,
    json_response=True,
)


def _error(exc: EngineError) -> dict:
    return {"error": exc.message, "code": exc.code}


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@mcp.tool()
async def get_vendor_matches(assessment_id: str, threshold: float = 0, limit: int = 10) -> dict:
    """Rank approved vendors for an assessment (requires a completed priorities questionnaire).

    Args:
        assessment_id: Assessment to match against.
        threshold: Minimum total score, 0-140.
        limit: Max results (default 10, max 500).
    """
    with session_scope() as session:
        try:
            result = await services.vendor_matches(
                AssessmentStore(session), assessment_id,
                threshold=threshold, limit=max(1, min(limit, 500)), cache=_cache,
            )
        except EngineError as exc:
            return _error(exc)
        return result.model_dump(mode="json")


@mcp.tool()
async def get_strategy_matrix(assessment_id: str) -> dict:
    """Phase an assessment's gaps into immediate / near-term / strategic buckets with top vendors."""
    with session_scope() as session:
        try:
            matrix = await services.strategy_matrix(AssessmentStore(session), assessment_id, cache=_cache)
        except EngineError as exc:
            return _error(exc)
        return matrix.model_dump(mode="json")


@mcp.tool()
def get_enhanced_results(assessment_id: str) -> dict:
    """Evidence-weighted score, confidence level and per-section breakdown for an assessment."""
    with session_scope() as session:
        try:
            result = services.enhanced_results(AssessmentStore(session), assessment_id)
        except EngineError as exc:
            return _error(exc)
        return result.model_dump(mode="json")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    """Run the Compass MCP server over stdio."""
    mcp.run()


if __name__ == "__main__":
    main()
