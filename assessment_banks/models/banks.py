"""
Assessment question banks.

A bank is owned by exactly one context, an account or a course, and holds the
questions that quiz groups draw from. Banks are never removed on ``destroy``;
they move to the ``deleted`` workflow state and keep their rows.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, delete, func, inspect, select, update
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from assessment_banks.core.cache import cache_fetch
from assessment_banks.core.i18n import t
from .base import Base, BigIntId, TimestampMixin, WorkflowState, WorkflowStateType, utcnow
from .contexts import Account, ContextRef, Course, User, context_code
from .outcomes import LearningOutcome, LearningOutcomeAlignment, linked_outcomes_query
from .questions import AssessmentQuestion, QuizGroup

logger = logging.getLogger(__name__)

Context = Union[Account, Course]


class AssessmentQuestionBankUser(Base, TimestampMixin):
    """A user's bookmark on a bank."""

    __tablename__ = "assessment_question_bank_users"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    assessment_question_bank_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("assessment_question_banks.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), index=True)

    user: Mapped[User] = relationship()


class AssessmentQuestionBank(Base, TimestampMixin):
    __tablename__ = "assessment_question_banks"
    __table_args__ = (
        CheckConstraint("(account_id IS NULL) <> (course_id IS NULL)", name="ck_banks_one_context"),
    )

    TITLE_MAX_LENGTH = 255

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    account_id: Mapped[Optional[int]] = mapped_column(BigIntId, ForeignKey("accounts.id"), nullable=True, index=True)
    course_id: Mapped[Optional[int]] = mapped_column(BigIntId, ForeignKey("courses.id"), nullable=True, index=True)
    root_account_id: Mapped[Optional[int]] = mapped_column(BigIntId, ForeignKey("accounts.id"), nullable=True)
    title: Mapped[Optional[str]] = mapped_column(String(TITLE_MAX_LENGTH), nullable=True)
    workflow_state: Mapped[WorkflowState] = mapped_column(WorkflowStateType, default=WorkflowState.ACTIVE, index=True)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    account: Mapped[Optional[Account]] = relationship(foreign_keys=[account_id])
    course: Mapped[Optional[Course]] = relationship()
    assessment_questions: Mapped[List[AssessmentQuestion]] = relationship(
        back_populates="bank",
        order_by=(AssessmentQuestion.name, AssessmentQuestion.position, AssessmentQuestion.created_at),
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    quiz_groups: Mapped[List[QuizGroup]] = relationship(back_populates="bank")
    bookmark_users: Mapped[List[AssessmentQuestionBankUser]] = relationship(
        cascade="all, delete-orphan", passive_deletes=True
    )
    learning_outcome_alignments: Mapped[List[LearningOutcomeAlignment]] = relationship(
        primaryjoin=lambda: (LearningOutcomeAlignment.assessment_question_bank_id == AssessmentQuestionBank.id)
        & (LearningOutcomeAlignment.workflow_state != WorkflowState.DELETED),
        viewonly=True,
    )

    errors = ()

    # ------------------------------------------------------------------ context

    @property
    def context(self) -> Optional[Context]:
        return self.course if self.course is not None else self.account

    @context.setter
    def context(self, value: Context) -> None:
        if isinstance(value, Course):
            self.course, self.account = value, None
        elif isinstance(value, Account):
            self.account, self.course = value, None
        else:
            raise TypeError(f"a question bank belongs to an account or a course, not {type(value).__name__}")

    @property
    def context_ref(self) -> ContextRef:
        return self.context.ref

    @property
    def context_code(self) -> str:
        return context_code(self.context_ref)

    def cached_context_short_name(self, client=None) -> str:
        if getattr(self, "_cached_context_name", None) is None:
            self._cached_context_name = cache_fetch(
                ["short_name_lookup", self.context_code],
                lambda: (self.context.short_name if self.context is not None else None) or "",
                client=client,
            )
        return self._cached_context_name

    # ------------------------------------------------------------------ defaults

    @classmethod
    def default_imported_title(cls) -> str:
        return t("default_imported_title", "Imported Questions")

    @classmethod
    def default_unfiled_title(cls) -> str:
        return t("default_unfiled_title", "Unfiled Questions")

    @classmethod
    def active(cls):
        return select(cls).where(cls.workflow_state != WorkflowState.DELETED)

    @classmethod
    def for_context(cls, ref: ContextRef):
        column = cls.course_id if ref.kind == "Course" else cls.account_id
        return select(cls).where(column == ref.id)

    @classmethod
    def unfiled_for_context(cls, db: Session, context: Optional[Context]) -> Optional["AssessmentQuestionBank"]:
        if context is None:
            return None
        title = cls.default_unfiled_title()
        bank = db.scalar(
            cls.for_context(context.ref)
            .where(cls.title == title, cls.workflow_state == WorkflowState.ACTIVE)
            .order_by(cls.id)
            .limit(1)
        )
        if bank is None:
            bank = cls(context=context, title=title)
            bank.save(db)
        return bank

    def infer_defaults(self) -> None:
        context = self.context
        if not (self.title or "").strip() and context is not None:
            self.title = t("default_title", "No Name - %{course}", course=context.name)
        if self.root_account_id is None and context is not None:
            self.root_account_id = context.resolved_root_account_id

    # ------------------------------------------------------------------ persistence

    def validate(self) -> List[str]:
        errors = []
        if self.context is None:
            errors.append("context can't be blank")
        if self.title is not None and len(self.title) > self.TITLE_MAX_LENGTH:
            errors.append(f"title is too long (maximum is {self.TITLE_MAX_LENGTH} characters)")
        return errors

    def save(self, db: Session) -> bool:
        """Validate and persist the bank. Returns False, with ``errors`` set, when rejected."""
        self.infer_defaults()
        self.errors = self.validate()
        if self.errors:
            if inspect(self).persistent:
                # drop the rejected edits so a later commit on the session cannot write them
                with db.no_autoflush:
                    db.refresh(self)
            return False
        state_changed = inspect(self).attrs.workflow_state.history.has_changes()
        db.add(self)
        db.flush()
        if state_changed and self.deleted:
            self.update_alignments(db)
        db.commit()
        return True

    @property
    def deleted(self) -> bool:
        return self.workflow_state == WorkflowState.DELETED

    def destroy(self, db: Session) -> bool:
        self.workflow_state = WorkflowState.DELETED
        self.deleted_at = utcnow()
        saved = self.save(db)
        if saved:
            logger.info("soft deleted question bank %s (%s)", self.id, self.context_code)
        return saved

    def destroy_permanently(self, db: Session) -> None:
        db.delete(self)
        db.commit()

    def clear_for_replacement(self, db: Session) -> None:
        """Remove every question and quiz group so the bank's contents can be replaced wholesale."""
        questions = db.execute(
            delete(AssessmentQuestion).where(AssessmentQuestion.assessment_question_bank_id == self.id)
        ).rowcount
        groups = db.execute(
            delete(QuizGroup).where(QuizGroup.assessment_question_bank_id == self.id)
        ).rowcount
        db.commit()
        logger.info("cleared question bank %s: %s questions, %s quiz groups", self.id, questions, groups)

    # ------------------------------------------------------------------ questions

    def active_questions(self):
        return select(AssessmentQuestion).where(
            AssessmentQuestion.assessment_question_bank_id == self.id,
            AssessmentQuestion.workflow_state != WorkflowState.DELETED,
        )

    def assessment_question_count(self, db: Session) -> int:
        return db.scalar(select(func.count()).select_from(self.active_questions().subquery())) or 0

    # ------------------------------------------------------------------ alignments

    def set_alignments(self, db: Session, alignments: Mapping[Any, Optional[float]]) -> List[LearningOutcomeAlignment]:
        """Reconcile the bank's outcome alignments with ``alignments`` (outcome id -> mastery score).

        Live alignments to outcomes missing from the mapping are marked deleted;
        outcomes in the mapping that are linked into the bank's context are aligned
        with the given mastery score. Ids not linked into the context are ignored.
        """
        wanted: Dict[int, Optional[float]] = {int(k): v for k, v in (alignments or {}).items()}
        outcomes = []
        if wanted:
            outcomes = db.scalars(
                linked_outcomes_query(self.context_ref).where(LearningOutcome.id.in_(list(wanted)))
            ).all()

        stale = update(LearningOutcomeAlignment).where(
            LearningOutcomeAlignment.assessment_question_bank_id == self.id,
            LearningOutcomeAlignment.workflow_state != WorkflowState.DELETED,
        )
        if outcomes:
            stale = stale.where(LearningOutcomeAlignment.learning_outcome_id.not_in([o.id for o in outcomes]))
        db.execute(stale.values(workflow_state=WorkflowState.DELETED))

        aligned = [outcome.align(db, self, mastery_score=wanted[outcome.id]) for outcome in outcomes]
        db.flush()
        return aligned

    def update_alignments(self, db: Session) -> None:
        self.set_alignments(db, {})

    # ------------------------------------------------------------------ bookmarks

    def _bookmarks(self, user: User):
        return select(AssessmentQuestionBankUser).where(
            AssessmentQuestionBankUser.assessment_question_bank_id == self.id,
            AssessmentQuestionBankUser.user_id == user.id,
        )

    def bookmark_for(self, db: Session, user: User, do_bookmark: bool = True) -> Optional[AssessmentQuestionBankUser]:
        if not do_bookmark:
            db.execute(
                delete(AssessmentQuestionBankUser).where(
                    AssessmentQuestionBankUser.assessment_question_bank_id == self.id,
                    AssessmentQuestionBankUser.user_id == user.id,
                )
            )
            db.commit()
            return None
        bookmark = db.scalar(self._bookmarks(user).limit(1))
        if bookmark is None:
            bookmark = AssessmentQuestionBankUser(assessment_question_bank_id=self.id, user_id=user.id)
            db.add(bookmark)
            db.commit()
        return bookmark

    def bookmarked_for(self, db: Session, user: Optional[User]) -> bool:
        if user is None:
            return False
        return db.scalar(select(self._bookmarks(user).exists())) or False
