"""Shared fixtures: in-memory SQLite database and record factories."""
from __future__ import annotations

import json

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from compass.config import reset_settings
from compass.models import (
    Answer, Assessment, AssessmentPriorities, Base, Gap, Question, Section, Template, Vendor,
)

_VENDOR_LISTS = ("categories", "target_segments", "geographic_coverage", "features", "deployment_options")
_PRIORITY_LISTS = (
    "jurisdictions", "existing_systems", "selected_use_cases", "ranked_priorities",
    "must_have_features", "critical_integrations", "decision_factor_ranking",
)


def _jsonify(fields: dict, list_fields: tuple[str, ...]) -> dict:
    out = {}
    for key, value in fields.items():
        if key in list_fields:
            out[f"{key}_json"] = json.dumps(value)
        else:
            out[key] = value
    return out


def make_vendor(vendor_id: str = "v1", **fields) -> Vendor:
    defaults = {
        "company_name": f"Vendor {vendor_id}",
        "status": "APPROVED",
        "categories": [],
        "target_segments": [],
        "geographic_coverage": [],
        "features": [],
        "deployment_options": [],
    }
    defaults.update(fields)
    return Vendor(id=vendor_id, **_jsonify(defaults, _VENDOR_LISTS))


def make_priorities(priorities_id: str = "p1", assessment_id: str = "a1", **fields) -> AssessmentPriorities:
    defaults = {
        "company_size": "SMB",
        "jurisdictions": ["DE"],
        "implementation_urgency": "PLANNED",
        "ranked_priorities": ["KYC_AML", "SANCTIONS", "REPORTING"],
        "budget_range": "RANGE_10K_50K",
        "deployment_preference": "CLOUD",
        "must_have_features": [],
    }
    defaults.update(fields)
    return AssessmentPriorities(id=priorities_id, assessment_id=assessment_id, **_jsonify(defaults, _PRIORITY_LISTS))


def make_gap(gap_id: str, category: str = "KYC_AML", assessment_id: str = "a1", **fields) -> Gap:
    return Gap(id=gap_id, assessment_id=assessment_id, category=category, **fields)


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch):
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.delenv("COMPASS_CACHE_DISABLED", raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture()
def engine():
    eng = create_engine("sqlite:///:memory:", connect_args={"check_same_thread": False})
    Base.metadata.create_all(eng)
    return eng


@pytest.fixture()
def session(engine):
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    sess = SessionLocal()
    try:
        yield sess
    finally:
        sess.close()


@pytest.fixture()
def assessment(session: Session) -> Assessment:
    template = Template(id="t1", name="AML Readiness")
    session.add(template)
    session.flush()
    a = Assessment(id="a1", organization_id="org1", template_id=template.id, status="COMPLETED")
    session.add(a)
    session.flush()
    return a


@pytest.fixture()
def sections(session: Session, assessment: Assessment) -> list[Section]:
    """Two sections (weights 0.3 / 0.7), each with two questions."""
    gov = Section(id="s1", template_id="t1", title="Governance", weight=0.3, order=0)
    mon = Section(id="s2", template_id="t1", title="Monitoring", weight=0.7, order=1)
    session.add_all([gov, mon])
    session.flush()
    session.add_all([
        Question(id="q1", section_id="s1", text="Board oversight?", weight=0.5, is_foundational=True, order=0),
        Question(id="q2", section_id="s1", text="Policy owner?", weight=0.5, order=1),
        Question(id="q3", section_id="s2", text="Transaction monitoring?", weight=0.5, is_foundational=True, order=0),
        Question(id="q4", section_id="s2", text="Alert review SLA?", weight=0.5, order=1),
    ])
    session.flush()
    return [gov, mon]


def add_answer(session: Session, question_id: str, score: float | None, tier: str = "TIER_0",
               final_score: float | None = None, assessment_id: str = "a1") -> Answer:
    answer = Answer(assessment_id=assessment_id, question_id=question_id, score=score,
                    evidence_tier=tier, final_score=final_score, status="COMPLETED")
    session.add(answer)
    session.flush()
    return answer
