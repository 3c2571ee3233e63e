"""
Authorization for question banks.

Rights are a pure function of the capabilities a user holds on the bank's
context plus whether the user has bookmarked the bank. ``bank_rights`` is that
function; the other helpers gather its inputs from the database.
"""
import enum
from typing import AbstractSet, FrozenSet, Optional, Tuple

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from assessment_banks.models.banks import AssessmentQuestionBank
from assessment_banks.models.contexts import Account, ContextPermission, Course, Group, User

READ_QUESTION_BANKS = "read_question_banks"
MANAGE_ASSIGNMENTS_ADD = "manage_assignments_add"
MANAGE_ASSIGNMENTS_EDIT = "manage_assignments_edit"
MANAGE_ASSIGNMENTS_DELETE = "manage_assignments_delete"
MANAGE_FILES_ADD = "manage_files_add"
MANAGE_WIKI_CREATE = "manage_wiki_create"


class BankRight(str, enum.Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    MANAGE = "manage"


# (capabilities that must all be held, rights granted)
BANK_POLICY: Tuple[Tuple[FrozenSet[str], FrozenSet[BankRight]], ...] = (
    (frozenset({READ_QUESTION_BANKS, MANAGE_ASSIGNMENTS_ADD}), frozenset({BankRight.READ, BankRight.CREATE})),
    (frozenset({READ_QUESTION_BANKS, MANAGE_ASSIGNMENTS_EDIT}),
     frozenset({BankRight.READ, BankRight.UPDATE, BankRight.MANAGE})),
    (frozenset({READ_QUESTION_BANKS, MANAGE_ASSIGNMENTS_DELETE}), frozenset({BankRight.READ, BankRight.DELETE})),
    (frozenset({READ_QUESTION_BANKS}), frozenset({BankRight.READ})),
)


def bank_rights(capabilities: AbstractSet[str], bookmarked: bool = False) -> FrozenSet[BankRight]:
    rights = set()
    for required, granted in BANK_POLICY:
        if required <= capabilities:
            rights |= granted
    if bookmarked:
        rights.add(BankRight.READ)
    return frozenset(rights)


def context_capabilities(db: Session, user: Optional[User], context) -> FrozenSet[str]:
    """Capabilities ``user`` holds on ``context``, including those inherited from its accounts."""
    if user is None or context is None:
        return frozenset()
    if isinstance(context, Group):
        context = context.context
    if isinstance(context, Course):
        account_ids = {context.account_id, context.resolved_root_account_id} - {None}
        scope = or_(ContextPermission.course_id == context.id, ContextPermission.account_id.in_(account_ids))
    elif isinstance(context, Account):
        account_ids = {context.id, context.resolved_root_account_id}
        scope = ContextPermission.account_id.in_(account_ids)
    else:
        raise TypeError(f"no capabilities are granted on {type(context).__name__}")
    rows = db.scalars(
        select(ContextPermission.capability).where(ContextPermission.user_id == user.id, scope)
    ).all()
    return frozenset(rows)


def grants_capability(db: Session, user: Optional[User], context, capability: str) -> bool:
    return capability in context_capabilities(db, user, context)


def rights_for(db: Session, bank: AssessmentQuestionBank, user: Optional[User]) -> FrozenSet[BankRight]:
    capabilities = context_capabilities(db, user, bank.context)
    return bank_rights(capabilities, bookmarked=bank.bookmarked_for(db, user))


def grants_right(db: Session, bank: AssessmentQuestionBank, user: Optional[User], right: BankRight) -> bool:
    return right in rights_for(db, bank, user)
