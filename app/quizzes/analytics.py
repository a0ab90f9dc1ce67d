from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.attempts.data_access import attempt_record_from_row
from app.attempts.types import AttemptRecord
from app.db.repo.quiz_attempts_repo import QuizAttemptsRepo
from app.quizzes.service import QuizAuthoringService
from app.quizzes.types import Quiz
from app.services.identity import Viewer


@dataclass(slots=True)
class QuizAnalytics:
    quiz: Quiz
    attempt_count: int
    average_score: float
    attempts: list[AttemptRecord]


def average_score(attempts: Sequence[AttemptRecord]) -> float:
    """Mean score rounded to one decimal; 0 when nobody attempted."""
    if not attempts:
        return 0.0
    return round(sum(attempt.score for attempt in attempts) / len(attempts), 1)


def summarize_attempts(quiz: Quiz, attempts: Sequence[AttemptRecord]) -> QuizAnalytics:
    newest_first = sorted(attempts, key=lambda attempt: attempt.completed_at, reverse=True)
    return QuizAnalytics(
        quiz=quiz,
        attempt_count=len(newest_first),
        average_score=average_score(newest_first),
        attempts=newest_first,
    )


async def load_quiz_analytics(session: AsyncSession, *, viewer: Viewer, quiz_id: str | UUID) -> QuizAnalytics:
    quiz = await QuizAuthoringService.get_quiz(session, viewer=viewer, quiz_id=quiz_id)
    rows = await QuizAttemptsRepo.list_for_quiz(session, quiz_id=UUID(quiz.id))
    return summarize_attempts(quiz, [attempt_record_from_row(row) for row in rows])
