import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from assessment_banks.core.database import init_db
from assessment_banks.models.banks import AssessmentQuestionBank
from assessment_banks.models.contexts import Account, ContextPermission, Course, User
from assessment_banks.models.outcomes import LearningOutcome, LearningOutcomeLink
from assessment_banks.models.questions import AssessmentQuestion


class FakeRedis:
    """In-memory stand-in for the parts of the redis client the cache uses."""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, ex=None):
        self.store[key] = value
        return True


@pytest.fixture()
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, future=True)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def fake_redis(monkeypatch):
    client = FakeRedis()
    monkeypatch.setattr("assessment_banks.core.cache.redis_client", client)
    return client


@pytest.fixture()
def account(db):
    account = Account(name="State University")
    db.add(account)
    db.commit()
    return account


@pytest.fixture()
def course(db, account):
    course = Course(name="Biology 101", course_code="BIO101", account=account)
    db.add(course)
    db.commit()
    return course


@pytest.fixture()
def user(db):
    user = User(name="Ada Teacher")
    db.add(user)
    db.commit()
    return user


@pytest.fixture()
def bank(db, course):
    bank = AssessmentQuestionBank(context=course, title="Cell structure")
    assert bank.save(db)
    return bank


@pytest.fixture()
def add_questions(db):
    def add(bank, n, **kwargs):
        questions = [
            AssessmentQuestion(
                bank=bank,
                name=f"Question {i}",
                position=i,
                question_data={"question_text": f"What is {i}?", "points_possible": 1},
                **kwargs,
            )
            for i in range(1, n + 1)
        ]
        db.add_all(questions)
        db.commit()
        return questions
    return add


@pytest.fixture()
def grant(db):
    def grant(user, context, *capabilities):
        column = "course_id" if isinstance(context, Course) else "account_id"
        for capability in capabilities:
            db.add(ContextPermission(user_id=user.id, capability=capability, **{column: context.id}))
        db.commit()
    return grant


@pytest.fixture()
def link_outcome(db):
    def link(context, description):
        outcome = LearningOutcome(short_description=description)
        db.add(outcome)
        db.flush()
        column = "course_id" if isinstance(context, Course) else "account_id"
        db.add(LearningOutcomeLink(learning_outcome_id=outcome.id, **{column: context.id}))
        db.commit()
        return outcome
    return link
