import pytest

from assessment_banks.models.contexts import Account, Course, User
from assessment_banks.services.policy import (
    MANAGE_ASSIGNMENTS_ADD,
    MANAGE_ASSIGNMENTS_DELETE,
    MANAGE_ASSIGNMENTS_EDIT,
    READ_QUESTION_BANKS,
    BankRight,
    bank_rights,
    context_capabilities,
    grants_right,
    rights_for,
)

R, C, U, D, M = BankRight.READ, BankRight.CREATE, BankRight.UPDATE, BankRight.DELETE, BankRight.MANAGE


@pytest.mark.parametrize("capabilities, expected", [
    (set(), set()),
    ({READ_QUESTION_BANKS}, {R}),
    ({READ_QUESTION_BANKS, MANAGE_ASSIGNMENTS_ADD}, {R, C}),
    ({READ_QUESTION_BANKS, MANAGE_ASSIGNMENTS_EDIT}, {R, U, M}),
    ({READ_QUESTION_BANKS, MANAGE_ASSIGNMENTS_DELETE}, {R, D}),
    ({READ_QUESTION_BANKS, MANAGE_ASSIGNMENTS_ADD, MANAGE_ASSIGNMENTS_EDIT, MANAGE_ASSIGNMENTS_DELETE},
     {R, C, U, D, M}),
    # management capabilities mean nothing without read_question_banks
    ({MANAGE_ASSIGNMENTS_ADD, MANAGE_ASSIGNMENTS_EDIT, MANAGE_ASSIGNMENTS_DELETE}, set()),
])
def test_bank_rights_table(capabilities, expected):
    assert bank_rights(capabilities) == expected


def test_bookmark_grants_read_only():
    assert bank_rights(set(), bookmarked=True) == {R}
    assert bank_rights({MANAGE_ASSIGNMENTS_EDIT}, bookmarked=True) == {R}


def test_course_inherits_account_capabilities(db, course, account, user, grant):
    grant(user, account, READ_QUESTION_BANKS)
    grant(user, course, MANAGE_ASSIGNMENTS_EDIT)

    assert context_capabilities(db, user, course) == {READ_QUESTION_BANKS, MANAGE_ASSIGNMENTS_EDIT}
    assert context_capabilities(db, user, account) == {READ_QUESTION_BANKS}


def test_sub_account_inherits_root_account_capabilities(db, account, user, grant):
    sub = Account(name="College of Science", root_account_id=account.id)
    db.add(sub)
    db.commit()
    grant(user, account, READ_QUESTION_BANKS)

    assert context_capabilities(db, user, sub) == {READ_QUESTION_BANKS}


def test_capabilities_do_not_leak_between_courses(db, course, account, user, grant):
    other = Course(name="Chemistry", account=account)
    db.add(other)
    db.commit()
    grant(user, other, READ_QUESTION_BANKS)

    assert context_capabilities(db, user, course) == frozenset()


def test_rights_for_bank(db, bank, course, user, grant):
    assert rights_for(db, bank, user) == frozenset()

    grant(user, course, READ_QUESTION_BANKS, MANAGE_ASSIGNMENTS_DELETE)

    assert rights_for(db, bank, user) == {R, D}
    assert grants_right(db, bank, user, BankRight.DELETE)
    assert not grants_right(db, bank, user, BankRight.UPDATE)


def test_bookmarked_user_can_read(db, bank, user):
    bank.bookmark_for(db, user)
    assert grants_right(db, bank, user, BankRight.READ)
    assert not grants_right(db, bank, user, BankRight.CREATE)


def test_anonymous_user_has_no_rights(db, bank):
    assert rights_for(db, bank, None) == frozenset()


def test_other_users_grants_do_not_apply(db, bank, course, user, grant):
    stranger = User(name="Stranger")
    db.add(stranger)
    db.commit()
    grant(stranger, course, READ_QUESTION_BANKS)

    assert not grants_right(db, bank, user, BankRight.READ)
