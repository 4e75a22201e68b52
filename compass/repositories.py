"""Read access to assessments, gaps, vendors, priorities and answers."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from compass.models import Answer, Assessment, AssessmentPriorities, Gap, Question, Section, Vendor
from compass.utils import as_str_list

log = logging.getLogger(__name__)

APPROVED = "APPROVED"


class AssessmentStore:
    """Query façade over a SQLAlchemy session.

    The engines only depend on these methods, so tests can pass any object
    exposing the same names.
    """

    def __init__(self, session: Session):
        self.session = session

    def get_assessment(self, assessment_id: str) -> Assessment | None:
        return self.session.execute(
            select(Assessment).where(Assessment.id == assessment_id)
        ).scalars().first()

    def list_gaps(self, assessment_id: str) -> list[Gap]:
        return list(self.session.execute(
            select(Gap).where(Gap.assessment_id == assessment_id).order_by(Gap.id)
        ).scalars().all())

    def list_approved_vendors(self) -> list[Vendor]:
        return list(self.session.execute(
            select(Vendor).where(Vendor.status == APPROVED).order_by(Vendor.id)
        ).scalars().all())

    def list_approved_vendors_by_categories(self, categories: set[str] | list[str]) -> list[Vendor]:
        # Categories live in a JSON column, so the intersection is done in Python.
        wanted = set(categories)
        if not wanted:
            return []
        matched = []
        for vendor in self.list_approved_vendors():
            vendor_categories = as_str_list(vendor.categories)
            if vendor_categories is None:
                log.warning("Skipping vendor %s: categories are not a list", vendor.id)
                continue
            if wanted.intersection(vendor_categories):
                matched.append(vendor)
        return matched

    def get_priorities(self, priorities_id: str) -> AssessmentPriorities | None:
        return self.session.execute(
            select(AssessmentPriorities).where(AssessmentPriorities.id == priorities_id)
        ).scalars().first()

    def get_priorities_for_assessment(self, assessment_id: str) -> AssessmentPriorities | None:
        return self.session.execute(
            select(AssessmentPriorities).where(AssessmentPriorities.assessment_id == assessment_id)
        ).scalars().first()

    def list_answers(self, assessment_id: str) -> list[Answer]:
        return list(self.session.execute(
            select(Answer).where(Answer.assessment_id == assessment_id).order_by(Answer.id)
        ).scalars().all())

    def list_sections(self, template_id: str | None) -> list[Section]:
        if template_id is None:
            return []
        return list(self.session.execute(
            select(Section)
            .where(Section.template_id == template_id)
            .options(selectinload(Section.questions))
            .order_by(Section.order, Section.id)
        ).scalars().all())

    def get_question(self, question_id: str) -> Question | None:
        return self.session.execute(
            select(Question).where(Question.id == question_id).options(selectinload(Question.section))
        ).scalars().first()
