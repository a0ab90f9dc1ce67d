from __future__ import annotations

from datetime import timedelta

import pytest

from app.attempts.errors import (
    AttemptNotInProgressError,
    AttemptNotStartedError,
    InvalidAnswerOptionError,
)
from app.attempts.state_machine import AttemptSession
from app.attempts.types import AttemptPhase, SubmitTrigger
from app.quizzes.types import QuizSettings
from tests.attempts.attempt_fixtures import STARTED_AT, _build_quiz


def _session(**settings: object) -> AttemptSession:
    quiz = _build_quiz(settings=QuizSettings(**settings))  # type: ignore[arg-type]
    return AttemptSession(
        quiz_id=quiz.id,
        student_id="student-1",
        quiz_title=quiz.title,
        questions=quiz.questions,
        settings=quiz.settings,
        student_name="Ada Student",
    )


def test_start_sets_deadline_for_timed_quiz() -> None:
    session = _session(timer=10)

    session.start(STARTED_AT)

    assert session.phase is AttemptPhase.IN_PROGRESS
    assert session.deadline_at == STARTED_AT + timedelta(minutes=10)
    assert session.remaining_seconds(STARTED_AT + timedelta(seconds=30)) == 570


def test_untimed_attempt_never_expires() -> None:
    session = _session(timer=0)
    session.start(STARTED_AT)

    assert session.deadline_at is None
    assert session.remaining_seconds(STARTED_AT + timedelta(days=3)) is None
    assert session.tick(STARTED_AT + timedelta(days=3)) is False


def test_start_twice_is_rejected() -> None:
    session = _session()
    session.start(STARTED_AT)

    with pytest.raises(AttemptNotInProgressError):
        session.start(STARTED_AT)


def test_answers_require_started_attempt() -> None:
    session = _session()

    with pytest.raises(AttemptNotStartedError):
        session.record_answer("q1", "a")


def test_answers_can_change_when_not_locked() -> None:
    session = _session()
    session.start(STARTED_AT)

    assert session.record_answer("q1", "a") is True
    assert session.record_answer("q1", "b") is True
    assert session.answers == {"q1": "b"}


def test_locked_answers_keep_first_choice() -> None:
    session = _session(locked_answers=True)
    session.start(STARTED_AT)

    assert session.record_answer("q1", "a") is True
    assert session.record_answer("q1", "b") is False
    assert session.record_answer("q1", "a") is True
    assert session.answers == {"q1": "a"}


def test_unknown_question_or_option_is_rejected() -> None:
    session = _session()
    session.start(STARTED_AT)

    with pytest.raises(InvalidAnswerOptionError):
        session.record_answer("missing", "a")
    with pytest.raises(InvalidAnswerOptionError):
        session.record_answer("q1", "z")


def test_tick_submits_exactly_once_at_deadline() -> None:
    session = _session(timer=1)
    session.start(STARTED_AT)

    assert session.tick(STARTED_AT + timedelta(seconds=59)) is False
    assert session.tick(STARTED_AT + timedelta(seconds=60)) is True
    assert session.tick(STARTED_AT + timedelta(seconds=61)) is False
    assert session.phase is AttemptPhase.SUBMITTED
    assert session.trigger is SubmitTrigger.TIMEOUT
    assert session.elapsed_seconds == 60


def test_submit_is_idempotent_and_freezes_answers() -> None:
    session = _session()
    session.start(STARTED_AT)
    session.record_answer("q1", "a")

    assert session.submit(STARTED_AT + timedelta(seconds=42)) is True
    assert session.submit(STARTED_AT + timedelta(seconds=50), SubmitTrigger.TIMEOUT) is False
    assert session.trigger is SubmitTrigger.MANUAL
    assert session.elapsed_seconds == 42
    with pytest.raises(AttemptNotInProgressError):
        session.record_answer("q2", "b")


def test_submit_before_start_is_rejected() -> None:
    with pytest.raises(AttemptNotStartedError):
        _session().submit(STARTED_AT)


def test_state_round_trip_keeps_display_order_and_answers() -> None:
    session = _session(timer=5, locked_answers=True)
    session.questions = tuple(reversed(session.questions))
    session.start(STARTED_AT)
    session.record_answer("q2", "b")

    restored = AttemptSession.from_state(session.to_state())

    assert restored.question_order == ("q4", "q3", "q2", "q1")
    assert restored.answers == {"q2": "b"}
    assert restored.deadline_at == session.deadline_at
    assert restored.settings == session.settings
    assert restored.student_name == "Ada Student"
    assert restored.phase is AttemptPhase.IN_PROGRESS
