import pytest
from fastapi.testclient import TestClient

from assessment_banks.core.auth import create_token
from assessment_banks.core.database import get_db
from assessment_banks.core.jwt_workflow import decode_service_token
from assessment_banks.main import app
from assessment_banks.models.banks import AssessmentQuestionBank
from assessment_banks.models.base import WorkflowState
from assessment_banks.services.policy import (
    MANAGE_ASSIGNMENTS_DELETE,
    MANAGE_ASSIGNMENTS_EDIT,
    READ_QUESTION_BANKS,
)


@pytest.fixture()
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def headers(user):
    return {"Authorization": f"Bearer {create_token(user.id)}"}


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200 and r.json() == {"status": "ok"}


def test_invalid_token_is_rejected(client, bank):
    r = client.get(f"/v1/banks/{bank.id}", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401


def test_show_requires_read(client, bank, headers):
    assert client.get(f"/v1/banks/{bank.id}", headers=headers).status_code == 403


def test_show_bank(client, bank, course, user, grant, add_questions, headers):
    add_questions(bank, 2)
    grant(user, course, READ_QUESTION_BANKS, MANAGE_ASSIGNMENTS_EDIT)

    r = client.get(f"/v1/banks/{bank.id}", headers=headers)

    assert r.status_code == 200
    body = r.json()
    assert body["title"] == "Cell structure"
    assert body["context_code"] == f"course_{course.id}"
    assert body["question_count"] == 2
    assert body["bookmarked"] is False
    assert body["rights"] == ["manage", "read", "update"]


def test_missing_bank(client, headers):
    assert client.get("/v1/banks/12345", headers=headers).status_code == 404


def test_bookmark_toggle(client, bank, course, user, grant, headers):
    grant(user, course, READ_QUESTION_BANKS)

    r = client.post(f"/v1/banks/{bank.id}/bookmark", json={"bookmark": True}, headers=headers)
    assert r.status_code == 200 and r.json()["bookmarked"] is True

    r = client.post(f"/v1/banks/{bank.id}/bookmark", json={"bookmark": False}, headers=headers)
    assert r.status_code == 200 and r.json()["bookmarked"] is False


def test_bookmark_requires_read(client, bank, headers):
    r = client.post(f"/v1/banks/{bank.id}/bookmark", json={"bookmark": True}, headers=headers)
    assert r.status_code == 403


def test_destroy(client, db, bank, course, user, grant, headers):
    grant(user, course, READ_QUESTION_BANKS)
    assert client.delete(f"/v1/banks/{bank.id}", headers=headers).status_code == 403

    grant(user, course, MANAGE_ASSIGNMENTS_DELETE)
    assert client.delete(f"/v1/banks/{bank.id}", headers=headers).status_code == 204

    reloaded = db.get(AssessmentQuestionBank, bank.id)
    assert reloaded.workflow_state == WorkflowState.DELETED


def test_clear_requires_update(client, bank, course, user, grant, add_questions, headers):
    add_questions(bank, 3)
    grant(user, course, READ_QUESTION_BANKS, MANAGE_ASSIGNMENTS_EDIT)

    assert client.post(f"/v1/banks/{bank.id}/clear", headers=headers).status_code == 204
    assert client.get(f"/v1/banks/{bank.id}", headers=headers).json()["question_count"] == 0


def test_update_alignments(client, bank, course, user, grant, link_outcome, headers):
    outcome = link_outcome(course, "Mitosis")
    grant(user, course, READ_QUESTION_BANKS, MANAGE_ASSIGNMENTS_EDIT)

    r = client.put(f"/v1/banks/{bank.id}/alignments", json={"alignments": {str(outcome.id): 0.75}}, headers=headers)

    assert r.status_code == 200
    assert r.json() == [{"learning_outcome_id": outcome.id, "mastery_score": 0.75}]


def test_select_questions(client, bank, add_questions, headers):
    questions = add_questions(bank, 5)

    r = client.post(f"/v1/banks/{bank.id}/selections", headers=headers,
                    json={"quiz_id": 7, "count": 3, "exclude_ids": [questions[0].id]})

    assert r.status_code == 200
    drawn = [q["assessment_question_id"] for q in r.json()]
    assert len(set(drawn)) == 3
    assert questions[0].id not in drawn


def test_select_rejects_negative_count(client, bank, headers):
    r = client.post(f"/v1/banks/{bank.id}/selections", headers=headers, json={"quiz_id": 7, "count": -1})
    assert r.status_code == 422


def test_issue_service_token(client, course, user, headers):
    r = client.post("/v1/jwts", headers=headers,
                    json={"workflows": ["rich_content", "ui"], "context_type": "Course", "context_id": course.id})

    assert r.status_code == 201
    body = r.json()
    assert body["requires_symmetric_encryption"] is True
    claims = decode_service_token(body["token"])
    assert claims["workflow_state"]["can_upload_files"] is False
    assert claims["context_id"] == course.id


def test_service_token_rejects_unknown_workflow(client, headers):
    r = client.post("/v1/jwts", headers=headers, json={"workflows": ["nope"]})
    assert r.status_code == 400


def test_rich_content_token_needs_context(client, headers):
    r = client.post("/v1/jwts", headers=headers, json={"workflows": ["rich_content"]})
    assert r.status_code == 400
