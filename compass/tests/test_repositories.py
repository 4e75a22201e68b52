from __future__ import annotations

from compass.repositories import AssessmentStore
from compass.tests.conftest import make_gap, make_priorities, make_vendor


class TestAssessmentStore:
    def test_vendors_by_categories_only_approved_and_overlapping(self, session, assessment):
        session.add_all([
            make_vendor("v1", categories=["KYC_AML", "SANCTIONS"]),
            make_vendor("v2", categories=["REPORTING"]),
            make_vendor("v3", categories=["KYC_AML"], status="PENDING"),
            make_vendor("v4", categories=["SANCTIONS"]),
        ])
        session.flush()
        store = AssessmentStore(session)

        found = store.list_approved_vendors_by_categories({"KYC_AML", "SANCTIONS"})
        assert [v.id for v in found] == ["v1", "v4"]
        assert store.list_approved_vendors_by_categories([]) == []

    def test_priorities_lookup(self, session, assessment):
        session.add(make_priorities("p1"))
        session.flush()
        store = AssessmentStore(session)

        assert store.get_priorities_for_assessment("a1").id == "p1"
        assert store.get_priorities("p1").assessment_id == "a1"
        assert store.get_priorities_for_assessment("missing") is None

    def test_gaps_ordered_by_id(self, session, assessment):
        session.add_all([make_gap("g2"), make_gap("g1"), make_gap("g3", assessment_id="other")])
        session.flush()
        assert [g.id for g in AssessmentStore(session).list_gaps("a1")] == ["g1", "g2"]

    def test_sections_without_template(self, session):
        assert AssessmentStore(session).list_sections(None) == []

    def test_sections_load_questions(self, session, sections):
        loaded = AssessmentStore(session).list_sections("t1")
        assert [s.id for s in loaded] == ["s1", "s2"]
        assert all(len(s.questions) == 2 for s in loaded)
