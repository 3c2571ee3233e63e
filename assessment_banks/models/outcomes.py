"""
Learning outcomes, their links into contexts, and alignments to banks.
"""
from typing import Optional

from sqlalchemy import CheckConstraint, Float, ForeignKey, Index, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base, BigIntId, TimestampMixin, WorkflowState, WorkflowStateType
from .contexts import ContextRef


class LearningOutcome(Base, TimestampMixin):
    __tablename__ = "learning_outcomes"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    short_description: Mapped[str] = mapped_column(String(255))
    workflow_state: Mapped[WorkflowState] = mapped_column(WorkflowStateType, default=WorkflowState.ACTIVE)

    def align(self, db: Session, bank, mastery_score: Optional[float] = None) -> "LearningOutcomeAlignment":
        """Create the live alignment between this outcome and ``bank``, or update its mastery score."""
        alignment = db.scalar(
            select(LearningOutcomeAlignment).where(
                LearningOutcomeAlignment.assessment_question_bank_id == bank.id,
                LearningOutcomeAlignment.learning_outcome_id == self.id,
                LearningOutcomeAlignment.workflow_state != WorkflowState.DELETED,
            ).order_by(LearningOutcomeAlignment.id).limit(1)
        )
        if alignment is None:
            alignment = LearningOutcomeAlignment(
                assessment_question_bank_id=bank.id,
                learning_outcome_id=self.id,
                context_code=bank.context_code,
                workflow_state=WorkflowState.ACTIVE,
            )
            db.add(alignment)
        alignment.mastery_score = mastery_score
        return alignment


class LearningOutcomeLink(Base, TimestampMixin):
    """Makes an outcome available inside an account or a course."""

    __tablename__ = "learning_outcome_links"
    __table_args__ = (
        CheckConstraint("(account_id IS NULL) <> (course_id IS NULL)", name="ck_outcome_links_one_context"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    learning_outcome_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("learning_outcomes.id"))
    account_id: Mapped[Optional[int]] = mapped_column(BigIntId, ForeignKey("accounts.id"), nullable=True)
    course_id: Mapped[Optional[int]] = mapped_column(BigIntId, ForeignKey("courses.id"), nullable=True)
    workflow_state: Mapped[WorkflowState] = mapped_column(WorkflowStateType, default=WorkflowState.ACTIVE)

    learning_outcome: Mapped[LearningOutcome] = relationship()


def linked_outcomes_query(ref: ContextRef):
    """Select the live outcomes linked into the context ``ref``."""
    column = LearningOutcomeLink.course_id if ref.kind == "Course" else LearningOutcomeLink.account_id
    return (
        select(LearningOutcome)
        .join(LearningOutcomeLink, LearningOutcomeLink.learning_outcome_id == LearningOutcome.id)
        .where(
            column == ref.id,
            LearningOutcomeLink.workflow_state != WorkflowState.DELETED,
            LearningOutcome.workflow_state != WorkflowState.DELETED,
        )
        .distinct()
    )


class LearningOutcomeAlignment(Base, TimestampMixin):
    """Soft-deletable link between a question bank and a learning outcome."""

    __tablename__ = "learning_outcome_alignments"
    __table_args__ = (
        Index("ix_outcome_alignments_bank", "assessment_question_bank_id", "workflow_state"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    assessment_question_bank_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("assessment_question_banks.id", ondelete="CASCADE")
    )
    learning_outcome_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("learning_outcomes.id"))
    context_code: Mapped[str] = mapped_column(String(64))
    mastery_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    workflow_state: Mapped[WorkflowState] = mapped_column(WorkflowStateType, default=WorkflowState.ACTIVE)

    learning_outcome: Mapped[LearningOutcome] = relationship()
