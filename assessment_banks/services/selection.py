import copy
import logging
import random
from typing import Collection, Dict, List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from assessment_banks.models.banks import AssessmentQuestionBank
from assessment_banks.models.questions import AssessmentQuestion, QuizQuestion

logger = logging.getLogger(__name__)


def find_or_create_quiz_questions(db: Session, questions: Sequence[AssessmentQuestion], quiz_id: int,
                                  quiz_group_id: Optional[int], duplicate_index: int = 0) -> List[QuizQuestion]:
    """Bind each question to the quiz, reusing an existing binding when one exists.

    Rows are read and created in the order given; callers pass ``questions``
    sorted by id so that concurrent binders touch rows in the same order.
    """
    if not questions:
        return []
    ids = [q.id for q in questions]
    existing: Dict[int, QuizQuestion] = {}
    rows = db.scalars(
        select(QuizQuestion)
        .where(
            QuizQuestion.assessment_question_id.in_(ids),
            QuizQuestion.quiz_id == quiz_id,
            QuizQuestion.quiz_group_id == quiz_group_id,
            QuizQuestion.duplicate_index == duplicate_index,
        )
        .order_by(QuizQuestion.id)
    ).all()
    for row in rows:
        existing.setdefault(row.assessment_question_id, row)

    bound, created = [], []
    for question in questions:
        quiz_question = existing.get(question.id)
        if quiz_question is None:
            quiz_question = QuizQuestion(
                quiz_id=quiz_id,
                quiz_group_id=quiz_group_id,
                assessment_question_id=question.id,
                duplicate_index=duplicate_index,
                question_data=copy.deepcopy(question.question_data or {}),
            )
            created.append(quiz_question)
        bound.append(quiz_question)
    if created:
        db.add_all(created)
        db.flush()
    logger.debug("quiz %s group %s: bound %s questions (%s new)", quiz_id, quiz_group_id, len(bound), len(created))
    return bound


def select_for_submission(db: Session, bank: AssessmentQuestionBank, quiz_id: int, quiz_group_id: Optional[int],
                          count: int, exclude_ids: Collection[int] = (), duplicate_index: int = 0,
                          rng: Optional[random.Random] = None) -> List[QuizQuestion]:
    """Draw up to ``count`` random active questions from ``bank`` into a quiz group.

    The draw happens in the database; the drawn questions are bound in id order
    and the bound list is shuffled before it is returned.
    """
    if count < 0:
        raise ValueError("count must be non-negative")
    if duplicate_index < 0:
        raise ValueError("duplicate_index must be non-negative")
    if count == 0:
        return []

    stmt = bank.active_questions()
    if exclude_ids:
        stmt = stmt.where(AssessmentQuestion.id.not_in(list(exclude_ids)))
    stmt = stmt.order_by(func.random()).limit(count)

    questions = sorted(db.scalars(stmt).all(), key=lambda q: q.id)
    quiz_questions = find_or_create_quiz_questions(db, questions, quiz_id, quiz_group_id, duplicate_index)
    (rng or random).shuffle(quiz_questions)
    logger.info("selected %s of %s requested questions from bank %s for quiz %s",
                len(quiz_questions), count, bank.id, quiz_id)
    return quiz_questions
