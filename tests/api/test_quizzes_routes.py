from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import UUID

from fastapi.testclient import TestClient

from app.api.routes import quizzes as quizzes_routes
from app.attempts.types import AttemptRecord, SubmitTrigger
from app.main import app
from app.quizzes import service as quiz_service
from app.quizzes.analytics import QuizAnalytics
from app.quizzes.types import Quiz, QuizSettings
from tests.api.api_fixtures import DummySessionLocal, _instructor_headers, _student_headers, _use_gateway_token

QUIZ_ID = UUID("3f0c9a52-8d4e-4b8e-9a53-2f1d6c7e8a90")
NOW_UTC = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

QUIZ_PAYLOAD = {
    "title": "Fractions",
    "description": "Warm-up",
    "questions": [
        {
            "id": "q1",
            "text": "1/2 + 1/2?",
            "options": [
                {"id": "a", "text": "1", "is_correct": True},
                {"id": "b", "text": "2"},
            ],
        },
        {"id": "q2", "text": "Draft question", "options": [{"id": "a", "text": "?"}]},
    ],
    "settings": {
        "grading_system": False,
        "negative_marking": True,
        "timer": "12.7",
        "points_per_question": "abc",
    },
}


def _stored_row(instructor_id: str = "instructor-1") -> SimpleNamespace:
    return SimpleNamespace(
        id=QUIZ_ID,
        instructor_id=instructor_id,
        title="Fractions",
        description="Warm-up",
        questions=[
            {
                "id": "q1",
                "text": "1/2 + 1/2?",
                "options": [{"id": "a", "text": "1", "isCorrect": True}, {"id": "b", "text": "2"}],
            }
        ],
        settings=QuizSettings().to_document(),
        created_at=NOW_UTC,
        updated_at=NOW_UTC,
    )


def _install_repo(monkeypatch, row: SimpleNamespace | None = None) -> list[object]:
    _use_gateway_token(monkeypatch)
    monkeypatch.setattr(quizzes_routes, "SessionLocal", DummySessionLocal())
    created: list[object] = []

    async def _fake_create(session, *, quiz):
        created.append(quiz)
        return quiz

    async def _fake_get(session, quiz_id):
        return row

    async def _fake_list(session, *, instructor_id: str):
        return [row] if row is not None and row.instructor_id == instructor_id else []

    async def _fake_delete(session, quiz_id):
        return 1

    monkeypatch.setattr(quiz_service.QuizzesRepo, "create", _fake_create)
    monkeypatch.setattr(quiz_service.QuizzesRepo, "get_by_id", _fake_get)
    monkeypatch.setattr(quiz_service.QuizzesRepo, "get_by_id_for_update", _fake_get)
    monkeypatch.setattr(quiz_service.QuizzesRepo, "list_for_instructor", _fake_list)
    monkeypatch.setattr(quiz_service.QuizzesRepo, "delete_by_id", _fake_delete)
    return created


def test_quiz_routes_require_instructor(monkeypatch) -> None:
    _install_repo(monkeypatch)
    client = TestClient(app)

    assert client.get("/quizzes").status_code == 401
    response = client.get("/quizzes", headers=_student_headers())
    assert response.status_code == 403
    assert response.json()["detail"] == {"code": "E_INSTRUCTOR_REQUIRED"}


def test_create_quiz_coerces_settings_and_reports_warnings(monkeypatch) -> None:
    created = _install_repo(monkeypatch)
    client = TestClient(app)

    response = client.post("/quizzes", headers=_instructor_headers(), json=QUIZ_PAYLOAD)

    assert response.status_code == 201
    payload = response.json()
    assert payload["settings"]["timer"] == 12
    assert payload["settings"]["points_per_question"] == 0.0
    assert payload["settings"]["negative_marking"] is False
    assert {(issue["code"], issue["question_id"]) for issue in payload["warnings"]} == {
        ("W_TOO_FEW_OPTIONS", "q2"),
        ("W_NO_CORRECT_OPTION", "q2"),
    }
    assert len(created) == 1


def test_create_quiz_without_title_is_rejected(monkeypatch) -> None:
    _install_repo(monkeypatch)
    client = TestClient(app)

    response = client.post("/quizzes", headers=_instructor_headers(), json={**QUIZ_PAYLOAD, "title": "  "})

    assert response.status_code == 422
    assert response.json()["detail"] == {"code": "E_QUIZ_INVALID", "issues": ["E_TITLE_REQUIRED"]}


def test_get_and_list_quiz(monkeypatch) -> None:
    _install_repo(monkeypatch, _stored_row())
    client = TestClient(app)

    single = client.get(f"/quizzes/{QUIZ_ID}", headers=_instructor_headers())
    listed = client.get("/quizzes", headers=_instructor_headers())

    assert single.status_code == 200
    assert single.json()["questions"][0]["options"][0]["is_correct"] is True
    assert listed.status_code == 200
    assert listed.json()["items"][0]["question_count"] == 1


def test_foreign_quiz_is_forbidden_and_missing_quiz_not_found(monkeypatch) -> None:
    _install_repo(monkeypatch, _stored_row(instructor_id="someone-else"))
    client = TestClient(app)

    forbidden = client.delete(f"/quizzes/{QUIZ_ID}", headers=_instructor_headers())
    assert forbidden.status_code == 403
    assert forbidden.json()["detail"] == {"code": "E_QUIZ_FORBIDDEN"}

    _install_repo(monkeypatch, None)
    missing = client.get(f"/quizzes/{QUIZ_ID}", headers=_instructor_headers())
    assert missing.status_code == 404
    assert missing.json()["detail"] == {"code": "E_QUIZ_NOT_FOUND"}


def test_delete_quiz_returns_204(monkeypatch) -> None:
    _install_repo(monkeypatch, _stored_row())
    client = TestClient(app)

    response = client.delete(f"/quizzes/{QUIZ_ID}", headers=_instructor_headers())

    assert response.status_code == 204


def test_apply_edits(monkeypatch) -> None:
    row = _stored_row()
    _install_repo(monkeypatch, row)
    client = TestClient(app)

    response = client.post(
        f"/quizzes/{QUIZ_ID}/edits",
        headers=_instructor_headers(),
        json={
            "edits": [
                {"op": "add_question", "question_id": "q2"},
                {"op": "set_question_text", "question_id": "q2", "text": "Which is bigger?"},
                {"op": "toggle_option_correct", "question_id": "q2", "option_id": "2"},
                {"op": "update_settings", "changes": {"timer": "15", "allow_retakes": True}},
            ]
        },
    )

    assert response.status_code == 200
    payload = response.json()
    assert [question["id"] for question in payload["questions"]] == ["q1", "q2"]
    assert payload["questions"][1]["options"][1]["is_correct"] is True
    assert payload["settings"]["timer"] == 15
    assert payload["settings"]["allow_retakes"] is True
    assert payload["warnings"] == []
    assert row.questions[1]["text"] == "Which is bigger?"


def test_apply_edits_with_unknown_question_is_rejected(monkeypatch) -> None:
    _install_repo(monkeypatch, _stored_row())
    client = TestClient(app)

    response = client.post(
        f"/quizzes/{QUIZ_ID}/edits",
        headers=_instructor_headers(),
        json={"edits": [{"op": "remove_question", "question_id": "missing"}]},
    )

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "E_QUIZ_EDIT_INVALID"


def test_quiz_analytics(monkeypatch) -> None:
    _install_repo(monkeypatch)
    quiz = Quiz(
        id=str(QUIZ_ID),
        instructor_id="instructor-1",
        title="Fractions",
        description="",
        questions=(),
        settings=QuizSettings(),
    )
    attempt = AttemptRecord(
        attempt_id="11111111-2222-4333-8444-555555555555",
        quiz_id=str(QUIZ_ID),
        quiz_title="Fractions",
        student_id="student-1",
        student_name="Ada Student",
        student_email="ada@school.test",
        student_number="48213",
        answers={"q1": "a"},
        question_order=("q1",),
        score=1.0,
        total_questions=1,
        completed_at=NOW_UTC,
        time_taken=42,
        settings=QuizSettings(),
        submit_trigger=SubmitTrigger.TIMEOUT,
    )

    async def _fake_analytics(session, *, viewer, quiz_id):
        assert viewer.user_id == "instructor-1"
        return QuizAnalytics(quiz=quiz, attempt_count=1, average_score=1.0, attempts=[attempt])

    monkeypatch.setattr(quizzes_routes, "load_quiz_analytics", _fake_analytics)
    client = TestClient(app)

    response = client.get(f"/quizzes/{QUIZ_ID}/analytics", headers=_instructor_headers())

    assert response.status_code == 200
    payload = response.json()
    assert payload["attempt_count"] == 1
    assert payload["average_score"] == 1.0
    assert payload["attempts"][0]["student_number"] == "48213"
    assert payload["attempts"][0]["submit_trigger"] == "TIMEOUT"
