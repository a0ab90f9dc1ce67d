from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

from app.attempts.types import AttemptRecord, SubmitTrigger
from app.quizzes.analytics import average_score, summarize_attempts
from app.quizzes.types import Quiz, QuizSettings

COMPLETED_AT = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

QUIZ = Quiz(
    id="3f0c9a52-8d4e-4b8e-9a53-2f1d6c7e8a90",
    instructor_id="instructor-1",
    title="Fractions",
    description="",
    questions=(),
    settings=QuizSettings(),
)

BASE_RECORD = AttemptRecord(
    quiz_id=QUIZ.id,
    quiz_title=QUIZ.title,
    student_id="student-1",
    student_name="Ada",
    student_email="ada@school.test",
    student_number="48213",
    answers={},
    question_order=(),
    score=0.0,
    total_questions=4,
    completed_at=COMPLETED_AT,
    time_taken=60,
    settings=QuizSettings(),
    submit_trigger=SubmitTrigger.MANUAL,
)


def test_average_score_is_zero_without_attempts() -> None:
    assert average_score([]) == 0.0


def test_average_score_rounds_to_one_decimal() -> None:
    attempts = [replace(BASE_RECORD, score=score) for score in (3.0, 2.5, 1.75)]

    assert average_score(attempts) == 2.4


def test_summarize_attempts_orders_newest_first() -> None:
    older = replace(BASE_RECORD, student_id="student-1", score=1.0)
    newer = replace(
        BASE_RECORD,
        student_id="student-2",
        score=-0.4,
        completed_at=COMPLETED_AT + timedelta(hours=1),
    )

    analytics = summarize_attempts(QUIZ, [older, newer])

    assert analytics.attempt_count == 2
    assert analytics.average_score == 0.3
    assert [attempt.student_id for attempt in analytics.attempts] == ["student-2", "student-1"]
