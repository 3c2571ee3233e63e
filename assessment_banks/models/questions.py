"""
Questions stored in banks, and their quiz-bound copies.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, BigIntId, TimestampMixin, WorkflowState, WorkflowStateType, utcnow


class AssessmentQuestion(Base, TimestampMixin):
    __tablename__ = "assessment_questions"
    __table_args__ = (
        Index("ix_assessment_questions_bank_state", "assessment_question_bank_id", "workflow_state"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    assessment_question_bank_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("assessment_question_banks.id", ondelete="CASCADE")
    )
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    position: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    question_data: Mapped[dict] = mapped_column(JSON, default=dict)
    workflow_state: Mapped[WorkflowState] = mapped_column(WorkflowStateType, default=WorkflowState.ACTIVE)

    bank: Mapped["AssessmentQuestionBank"] = relationship(back_populates="assessment_questions")

    @property
    def active(self) -> bool:
        return self.workflow_state != WorkflowState.DELETED


class QuizGroup(Base, TimestampMixin):
    """A quiz section that draws ``pick_count`` questions, optionally from a bank."""

    __tablename__ = "quiz_groups"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    quiz_id: Mapped[int] = mapped_column(BigIntId, index=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    pick_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    assessment_question_bank_id: Mapped[Optional[int]] = mapped_column(
        BigIntId, ForeignKey("assessment_question_banks.id", ondelete="SET NULL"), nullable=True
    )

    bank: Mapped[Optional["AssessmentQuestionBank"]] = relationship(back_populates="quiz_groups")


class QuizQuestion(Base, TimestampMixin):
    """A question bound to one quiz, quiz group and duplicate index."""

    __tablename__ = "quiz_questions"
    __table_args__ = (
        UniqueConstraint(
            "assessment_question_id", "quiz_id", "quiz_group_id", "duplicate_index",
            name="uq_quiz_questions_binding",
            postgresql_nulls_not_distinct=True,
        ),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    quiz_id: Mapped[int] = mapped_column(BigIntId, index=True)
    quiz_group_id: Mapped[Optional[int]] = mapped_column(
        BigIntId, ForeignKey("quiz_groups.id", ondelete="SET NULL"), nullable=True
    )
    assessment_question_id: Mapped[Optional[int]] = mapped_column(
        BigIntId, ForeignKey("assessment_questions.id", ondelete="SET NULL"), nullable=True
    )
    duplicate_index: Mapped[int] = mapped_column(Integer, default=0)
    question_data: Mapped[dict] = mapped_column(JSON, default=dict)
    workflow_state: Mapped[WorkflowState] = mapped_column(WorkflowStateType, default=WorkflowState.ACTIVE)
    generated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=True)

    assessment_question: Mapped[Optional[AssessmentQuestion]] = relationship()
