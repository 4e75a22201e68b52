from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from compass.utils import json_parse


def _new_id() -> str:
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    pass


class Template(Base):
    __tablename__ = "templates"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(300), nullable=False)

    sections: Mapped[list[Section]] = relationship(
        "Section", back_populates="template", cascade="all, delete-orphan", order_by="Section.order",
    )


class Section(Base):
    __tablename__ = "sections"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    template_id: Mapped[str] = mapped_column(String(36), ForeignKey("templates.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    weight: Mapped[float] = mapped_column(Float, default=0.0)  # fraction of 1.0 across the template
    order: Mapped[int] = mapped_column(Integer, default=0)

    template: Mapped[Template] = relationship("Template", back_populates="sections")
    questions: Mapped[list[Question]] = relationship(
        "Question", back_populates="section", cascade="all, delete-orphan", order_by="Question.order",
    )


class Question(Base):
    __tablename__ = "questions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    section_id: Mapped[str] = mapped_column(String(36), ForeignKey("sections.id"), nullable=False)
    text: Mapped[str] = mapped_column(Text, default="")
    weight: Mapped[float] = mapped_column(Float, default=0.0)
    is_foundational: Mapped[bool] = mapped_column(Boolean, default=False)
    order: Mapped[int] = mapped_column(Integer, default=0)

    section: Mapped[Section] = relationship("Section", back_populates="questions")


class Assessment(Base):
    __tablename__ = "assessments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    organization_id: Mapped[str] = mapped_column(String(36), default="")
    template_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("templates.id"), nullable=True)
    status: Mapped[str] = mapped_column(String(30), default="DRAFT")  # DRAFT | IN_PROGRESS | COMPLETED | FAILED
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    template: Mapped[Template | None] = relationship("Template")
    gaps: Mapped[list[Gap]] = relationship("Gap", back_populates="assessment", cascade="all, delete-orphan")
    answers: Mapped[list[Answer]] = relationship("Answer", back_populates="assessment", cascade="all, delete-orphan")
    priorities: Mapped[AssessmentPriorities | None] = relationship(
        "AssessmentPriorities", back_populates="assessment", uselist=False, cascade="all, delete-orphan",
    )


class Gap(Base):
    __tablename__ = "gaps"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    assessment_id: Mapped[str] = mapped_column(String(36), ForeignKey("assessments.id"), nullable=False)
    question_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("questions.id"), nullable=True)
    category: Mapped[str] = mapped_column(String(60), nullable=False)
    title: Mapped[str] = mapped_column(String(300), default="")
    description: Mapped[str] = mapped_column(Text, default="")
    severity: Mapped[str] = mapped_column(String(20), default="MEDIUM")  # CRITICAL | HIGH | MEDIUM | LOW
    priority: Mapped[str] = mapped_column(String(20), default="MEDIUM_TERM")  # IMMEDIATE | SHORT_TERM | MEDIUM_TERM | LONG_TERM
    priority_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    estimated_cost: Mapped[str | None] = mapped_column(String(30), nullable=True)
    estimated_effort: Mapped[str | None] = mapped_column(String(20), nullable=True)  # SMALL | MEDIUM | LARGE
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    assessment: Mapped[Assessment] = relationship("Assessment", back_populates="gaps")


class Vendor(Base):
    __tablename__ = "vendors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    company_name: Mapped[str] = mapped_column(String(300), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="PENDING")  # PENDING | APPROVED | REJECTED | SUSPENDED
    categories_json: Mapped[str] = mapped_column(Text, default="[]")
    target_segments_json: Mapped[str] = mapped_column(Text, default="[]")
    geographic_coverage_json: Mapped[str] = mapped_column(Text, default="[]")
    pricing_range: Mapped[str | None] = mapped_column(String(30), nullable=True)
    features_json: Mapped[str] = mapped_column(Text, default="[]")
    deployment_options_json: Mapped[str] = mapped_column(Text, default="[]")
    implementation_timeline: Mapped[int | None] = mapped_column(Integer, nullable=True)  # days
    click_count: Mapped[int] = mapped_column(Integer, default=0)
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    @property
    def categories(self) -> list[str]:
        return json_parse(self.categories_json, [])

    @property
    def target_segments(self) -> list[str]:
        return json_parse(self.target_segments_json, [])

    @property
    def geographic_coverage(self) -> list[str]:
        return json_parse(self.geographic_coverage_json, [])

    @property
    def features(self) -> list[str]:
        return json_parse(self.features_json, [])

    @property
    def deployment_options(self) -> list[str]:
        return json_parse(self.deployment_options_json, [])


class AssessmentPriorities(Base):
    __tablename__ = "assessment_priorities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    assessment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("assessments.id"), nullable=False, unique=True,
    )
    company_size: Mapped[str | None] = mapped_column(String(20), nullable=True)
    annual_revenue: Mapped[str | None] = mapped_column(String(30), nullable=True)
    compliance_team_size: Mapped[str | None] = mapped_column(String(30), nullable=True)
    jurisdictions_json: Mapped[str] = mapped_column(Text, default="[]")
    existing_systems_json: Mapped[str] = mapped_column(Text, default="[]")
    primary_goal: Mapped[str] = mapped_column(Text, default="")
    implementation_urgency: Mapped[str] = mapped_column(String(20), default="PLANNED")
    selected_use_cases_json: Mapped[str] = mapped_column(Text, default="[]")
    ranked_priorities_json: Mapped[str] = mapped_column(Text, default="[]")
    budget_range: Mapped[str | None] = mapped_column(String(30), nullable=True)
    deployment_preference: Mapped[str] = mapped_column(String(20), default="FLEXIBLE")
    must_have_features_json: Mapped[str] = mapped_column(Text, default="[]")
    critical_integrations_json: Mapped[str] = mapped_column(Text, default="[]")
    vendor_maturity: Mapped[str] = mapped_column(String(20), default="ANY")
    geographic_requirements: Mapped[str] = mapped_column(Text, default="")
    support_model: Mapped[str] = mapped_column(Text, default="")
    decision_factor_ranking_json: Mapped[str] = mapped_column(Text, default="[]")
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    assessment: Mapped[Assessment] = relationship("Assessment", back_populates="priorities")

    @property
    def jurisdictions(self) -> list[str]:
        return json_parse(self.jurisdictions_json, [])

    @property
    def ranked_priorities(self) -> list[str]:
        return json_parse(self.ranked_priorities_json, [])

    @property
    def must_have_features(self) -> list[str]:
        return json_parse(self.must_have_features_json, [])

    @property
    def existing_systems(self) -> list[str]:
        return json_parse(self.existing_systems_json, [])

    @property
    def selected_use_cases(self) -> list[str]:
        return json_parse(self.selected_use_cases_json, [])

    @property
    def critical_integrations(self) -> list[str]:
        return json_parse(self.critical_integrations_json, [])

    @property
    def decision_factor_ranking(self) -> list[str]:
        return json_parse(self.decision_factor_ranking_json, [])


class Answer(Base):
    __tablename__ = "answers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    assessment_id: Mapped[str] = mapped_column(String(36), ForeignKey("assessments.id"), nullable=False)
    question_id: Mapped[str] = mapped_column(String(36), ForeignKey("questions.id"), nullable=False)
    score: Mapped[float | None] = mapped_column(Float, nullable=True)  # 0-5 quality score
    evidence_tier: Mapped[str] = mapped_column(String(10), default="TIER_0")  # TIER_0 | TIER_1 | TIER_2
    final_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[str] = mapped_column(String(30), default="PENDING")

    assessment: Mapped[Assessment] = relationship("Assessment", back_populates="answers")
