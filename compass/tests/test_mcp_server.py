"""MCP tools return plain dicts and report engine errors under an ``error`` key."""
from __future__ import annotations

import pytest
from sqlalchemy.orm import sessionmaker

import compass.db as db_mod
from compass import mcp_server
from compass.tests.conftest import add_answer, make_gap, make_priorities, make_vendor


@pytest.fixture()
def wired_db(engine, monkeypatch):
    monkeypatch.setattr(db_mod, "_engine", engine)
    monkeypatch.setattr(db_mod, "_SessionLocal",
                        sessionmaker(bind=engine, autoflush=False, expire_on_commit=False))
    monkeypatch.setattr(mcp_server, "_cache", None)
    return engine


@pytest.fixture()
def committed(wired_db, session, sections):
    add_answer(session, "q1", score=3, tier="TIER_2")
    session.add_all([
        make_gap("g1", "KYC_AML", priority_score=9),
        make_priorities(),
        make_vendor("v1", categories=["KYC_AML"]),
    ])
    session.commit()
    return wired_db


def test_enhanced_results_tool(committed):
    result = mcp_server.get_enhanced_results("a1")
    assert result["total_answers"] == 1
    assert result["confidence_level"] == "HIGH"
    assert result["has_priorities"] is True


def test_enhanced_results_unknown_assessment(committed):
    assert mcp_server.get_enhanced_results("nope") == {
        "error": "Assessment not found", "code": "ASSESSMENT_NOT_FOUND",
    }


@pytest.mark.asyncio
async def test_strategy_matrix_tool(committed):
    result = await mcp_server.get_strategy_matrix("a1")
    assert result["immediate"]["gap_count"] == 1
    assert result["immediate"]["top_vendors"][0]["vendor_id"] == "v1"


@pytest.mark.asyncio
async def test_vendor_matches_tool(committed):
    result = await mcp_server.get_vendor_matches("a1", limit=5)
    assert result["count"] == 1
    assert result["matches"][0]["vendor_id"] == "v1"


@pytest.mark.asyncio
async def test_vendor_matches_without_priorities(wired_db, session, assessment):
    session.commit()
    result = await mcp_server.get_vendor_matches("a1")
    assert result["code"] == "PRIORITIES_REQUIRED"
    assert "error" in result
