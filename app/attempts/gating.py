from __future__ import annotations

from collections.abc import Sequence

from app.attempts.errors import QuizInactiveError, RetakeNotAllowedError
from app.attempts.types import AttemptSummary
from app.quizzes.types import Quiz

QUIZ_INACTIVE_MESSAGE = "This quiz is currently not accepting responses."
RETAKE_NOT_ALLOWED_MESSAGE = "You have already taken this quiz."


def ensure_attempt_allowed(quiz: Quiz, existing_attempts: Sequence[AttemptSummary]) -> None:
    if not quiz.settings.is_active:
        raise QuizInactiveError(QUIZ_INACTIVE_MESSAGE)
    if existing_attempts and not quiz.settings.allow_retakes:
        raise RetakeNotAllowedError(RETAKE_NOT_ALLOWED_MESSAGE)
