from __future__ import annotations

import random

from fastapi.testclient import TestClient

from app.api.routes import attempts as attempts_routes
from app.attempts.service import AttemptService
from app.attempts.state_store import AttemptStateStore
from app.main import app
from app.quizzes.types import QuizSettings
from tests.api.api_fixtures import _instructor_headers, _student_headers, _use_gateway_token
from tests.attempts.attempt_fixtures import QUIZ_ID, FakeClock, FakeDataAccess, FakeRedis, _build_quiz

MISSING_QUIZ_ID = "00000000-0000-4000-8000-00000000abcd"


def _install_service(monkeypatch, *, settings: QuizSettings | None = None) -> FakeDataAccess:
    _use_gateway_token(monkeypatch)
    data_access = FakeDataAccess(_build_quiz(settings=settings))
    service = AttemptService(
        data_access=data_access,
        store=AttemptStateStore(FakeRedis(), ttl_seconds=3600, grace_seconds=60),  # type: ignore[arg-type]
        rng_factory=lambda: random.Random(7),
        clock=FakeClock(),
    )
    monkeypatch.setattr(attempts_routes, "get_attempt_service", lambda: service)
    return data_access


def test_attempt_routes_require_gateway_identity(monkeypatch) -> None:
    _install_service(monkeypatch)
    client = TestClient(app)

    response = client.get(f"/quizzes/{QUIZ_ID}/attempt")
    assert response.status_code == 401
    assert response.json()["detail"] == {"code": "E_UNAUTHENTICATED"}

    response = client.get(f"/quizzes/{QUIZ_ID}/attempt", headers=_instructor_headers())
    assert response.status_code == 403
    assert response.json()["detail"] == {"code": "E_STUDENT_REQUIRED"}


def test_open_attempt_returns_intro(monkeypatch) -> None:
    _install_service(monkeypatch, settings=QuizSettings(timer=20))
    client = TestClient(app)

    response = client.get(f"/quizzes/{QUIZ_ID}/attempt", headers=_student_headers())

    assert response.status_code == 200
    payload = response.json()
    assert payload["intro"]["question_count"] == 4
    assert payload["intro"]["timer_minutes"] == 20
    assert payload["attempt"] is None
    assert payload["submitted"] is None


def test_open_missing_quiz_returns_404(monkeypatch) -> None:
    _install_service(monkeypatch)
    client = TestClient(app)

    response = client.get(f"/quizzes/{MISSING_QUIZ_ID}/attempt", headers=_student_headers())

    assert response.status_code == 404
    assert response.json()["detail"] == {"code": "E_QUIZ_NOT_FOUND"}


def test_inactive_quiz_returns_message(monkeypatch) -> None:
    _install_service(monkeypatch, settings=QuizSettings(is_active=False))
    client = TestClient(app)

    response = client.post(f"/quizzes/{QUIZ_ID}/attempt/start", headers=_student_headers())

    assert response.status_code == 403
    assert response.json()["detail"] == {
        "code": "E_QUIZ_INACTIVE",
        "message": "This quiz is currently not accepting responses.",
    }


def test_full_attempt_flow(monkeypatch) -> None:
    data_access = _install_service(
        monkeypatch,
        settings=QuizSettings(negative_marking=True, negative_marking_points=0.25),
    )
    client = TestClient(app)
    headers = _student_headers()

    started = client.post(f"/quizzes/{QUIZ_ID}/attempt/start", headers=headers)
    assert started.status_code == 200
    attempt = started.json()
    assert attempt["phase"] == "IN_PROGRESS"
    assert "is_correct" not in attempt["questions"][0]["options"][0]

    for question_id, option_id in (("q1", "a"), ("q2", "b"), ("q3", "a")):
        answered = client.put(
            f"/quizzes/{QUIZ_ID}/attempt/answers/{question_id}",
            headers=headers,
            json={"option_id": option_id},
        )
        assert answered.status_code == 200
        assert answered.json()["accepted"] is True

    invalid = client.put(
        f"/quizzes/{QUIZ_ID}/attempt/answers/q4",
        headers=headers,
        json={"option_id": "zzz"},
    )
    assert invalid.status_code == 422
    assert invalid.json()["detail"] == {"code": "E_INVALID_ANSWER_OPTION"}

    submitted = client.post(f"/quizzes/{QUIZ_ID}/attempt/submit", headers=headers)
    assert submitted.status_code == 200
    body = submitted.json()
    assert body["saved"] is True
    assert body["message"] == "Quiz submitted!"
    assert body["result"]["score"] == 1.75
    assert body["result"]["correct_count"] == 2
    assert body["result"]["incorrect_count"] == 1
    assert body["result"]["skipped_count"] == 1

    again = client.post(f"/quizzes/{QUIZ_ID}/attempt/submit", headers=headers)
    assert again.status_code == 409
    assert again.json()["detail"]["code"] == "E_ATTEMPT_NOT_IN_PROGRESS"
    assert data_access.save_calls == 1

    retake = client.get(f"/quizzes/{QUIZ_ID}/attempt", headers=headers)
    assert retake.status_code == 403
    assert retake.json()["detail"]["code"] == "E_RETAKE_NOT_ALLOWED"

    listed = client.get("/attempts", headers=headers)
    assert listed.status_code == 200
    items = listed.json()["items"]
    assert len(items) == 1

    attempt_id = items[0]["attempt_id"]
    review = client.get(f"/attempts/{attempt_id}", headers=headers)
    assert review.status_code == 200
    assert review.json()["quiz_available"] is True
    assert review.json()["result"]["questions"][0]["correct_option_id"] is not None

    owner_review = client.get(f"/attempts/{attempt_id}", headers=_instructor_headers())
    assert owner_review.status_code == 200

    stranger = client.get(f"/attempts/{attempt_id}", headers=_student_headers("student-2"))
    assert stranger.status_code == 403
    assert stranger.json()["detail"] == {"code": "E_ATTEMPT_FORBIDDEN"}


def test_answer_without_started_attempt_is_conflict(monkeypatch) -> None:
    _install_service(monkeypatch)
    client = TestClient(app)

    response = client.put(
        f"/quizzes/{QUIZ_ID}/attempt/answers/q1",
        headers=_student_headers(),
        json={"option_id": "a"},
    )

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "E_ATTEMPT_NOT_IN_PROGRESS"


def test_review_unknown_attempt_returns_404(monkeypatch) -> None:
    _install_service(monkeypatch)
    client = TestClient(app)

    response = client.get(f"/attempts/{MISSING_QUIZ_ID}", headers=_student_headers())

    assert response.status_code == 404
    assert response.json()["detail"] == {"code": "E_ATTEMPT_NOT_FOUND"}
