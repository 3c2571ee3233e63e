from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from sqlalchemy.orm import Session
from assessment_banks.core.auth import get_current_db_user
from assessment_banks.core.database import get_db
from assessment_banks.models.banks import AssessmentQuestionBank
from assessment_banks.models.contexts import User
from assessment_banks.services.policy import BankRight, rights_for
from assessment_banks.services.selection import select_for_submission

router = APIRouter()

class BankOut(BaseModel):
    id: int
    title: str
    context_code: str
    workflow_state: str
    question_count: int
    bookmarked: bool
    rights: List[str]

class BookmarkIn(BaseModel):
    bookmark: bool = True

class AlignmentsIn(BaseModel):
    alignments: Dict[str, Optional[float]] = Field(default_factory=dict)

class AlignmentOut(BaseModel):
    learning_outcome_id: int
    mastery_score: Optional[float] = None

class SelectionIn(BaseModel):
    quiz_id: int
    quiz_group_id: Optional[int] = None
    count: int = Field(ge=0)
    exclude_ids: List[int] = Field(default_factory=list)
    duplicate_index: int = Field(ge=0, default=0)

class QuizQuestionOut(BaseModel):
    id: int
    assessment_question_id: Optional[int]
    quiz_group_id: Optional[int]
    duplicate_index: int
    question_data: dict

def _load_bank(db: Session, bank_id: int) -> AssessmentQuestionBank:
    bank = db.get(AssessmentQuestionBank, bank_id)
    if not bank: raise HTTPException(404, "Question bank not found")
    return bank

def _authorized_bank(db: Session, bank_id: int, user: User, right: BankRight) -> AssessmentQuestionBank:
    bank = _load_bank(db, bank_id)
    if right not in rights_for(db, bank, user): raise HTTPException(403, f"Not allowed to {right.value} this question bank")
    return bank

def _bank_out(db: Session, bank: AssessmentQuestionBank, user: User) -> BankOut:
    rights = rights_for(db, bank, user)
    return BankOut(id=bank.id, title=bank.title, context_code=bank.context_code, workflow_state=bank.workflow_state.value,
                   question_count=bank.assessment_question_count(db), bookmarked=bank.bookmarked_for(db, user),
                   rights=sorted(r.value for r in rights))

@router.get("/{bank_id}", response_model=BankOut)
def show_bank(bank_id: int, user: User = Depends(get_current_db_user), db: Session = Depends(get_db)):
    bank = _authorized_bank(db, bank_id, user, BankRight.READ)
    return _bank_out(db, bank, user)

@router.post("/{bank_id}/bookmark", response_model=BankOut)
def bookmark_bank(bank_id: int, payload: BookmarkIn, user: User = Depends(get_current_db_user), db: Session = Depends(get_db)):
    bank = _load_bank(db, bank_id)
    if payload.bookmark and BankRight.READ not in rights_for(db, bank, user):
        raise HTTPException(403, "Not allowed to read this question bank")
    bank.bookmark_for(db, user, payload.bookmark)
    return _bank_out(db, bank, user)

@router.delete("/{bank_id}", status_code=204)
def destroy_bank(bank_id: int, user: User = Depends(get_current_db_user), db: Session = Depends(get_db)):
    bank = _authorized_bank(db, bank_id, user, BankRight.DELETE)
    if not bank.destroy(db): raise HTTPException(422, "; ".join(bank.errors))

@router.post("/{bank_id}/clear", status_code=204)
def clear_bank(bank_id: int, user: User = Depends(get_current_db_user), db: Session = Depends(get_db)):
    bank = _authorized_bank(db, bank_id, user, BankRight.UPDATE)
    bank.clear_for_replacement(db)

@router.put("/{bank_id}/alignments", response_model=List[AlignmentOut])
def update_alignments(bank_id: int, payload: AlignmentsIn, user: User = Depends(get_current_db_user), db: Session = Depends(get_db)):
    bank = _authorized_bank(db, bank_id, user, BankRight.UPDATE)
    try:
        aligned = bank.set_alignments(db, payload.alignments)
    except ValueError:
        raise HTTPException(422, "Outcome ids must be integers")
    db.commit()
    return [AlignmentOut(learning_outcome_id=a.learning_outcome_id, mastery_score=a.mastery_score) for a in aligned]

@router.post("/{bank_id}/selections", response_model=List[QuizQuestionOut])
def select_questions(bank_id: int, payload: SelectionIn, user: User = Depends(get_current_db_user), db: Session = Depends(get_db)):
    bank = _load_bank(db, bank_id)
    quiz_questions = select_for_submission(db, bank, payload.quiz_id, payload.quiz_group_id, payload.count,
                                           set(payload.exclude_ids), payload.duplicate_index)
    db.commit()
    return [QuizQuestionOut(id=q.id, assessment_question_id=q.assessment_question_id, quiz_group_id=q.quiz_group_id,
                            duplicate_index=q.duplicate_index, question_data=q.question_data) for q in quiz_questions]
