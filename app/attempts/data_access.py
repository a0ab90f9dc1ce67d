"""Boundary between the attempt engine and the document store.

The engine only sees `QuizDataAccess`; `SqlQuizDataAccess` backs it with the
repos, opening one short transaction per call.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID, uuid4

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.attempts.errors import AttemptPersistenceError
from app.attempts.types import AttemptRecord, AttemptSummary, SubmitTrigger, UserProfile
from app.db.models.quiz_attempts import QuizAttempt
from app.db.repo.quiz_attempts_repo import QuizAttemptsRepo
from app.db.repo.quizzes_repo import QuizzesRepo
from app.db.repo.users_repo import UsersRepo
from app.quizzes.errors import QuizNotFoundError
from app.quizzes.service import parse_quiz_id, quiz_from_row
from app.quizzes.types import Quiz, QuizSettings

logger = structlog.get_logger(__name__)


class QuizDataAccess(Protocol):
    async def load_quiz(self, quiz_id: str) -> Quiz | None: ...

    async def load_existing_attempts(self, quiz_id: str, student_id: str) -> list[AttemptSummary]: ...

    async def save_attempt(self, record: AttemptRecord) -> str: ...

    async def load_user_profile(self, user_id: str) -> UserProfile | None: ...

    async def load_attempt(self, attempt_id: str) -> AttemptRecord | None: ...

    async def list_attempts_for_student(self, student_id: str) -> list[AttemptRecord]: ...


def attempt_record_from_row(row: QuizAttempt) -> AttemptRecord:
    return AttemptRecord(
        attempt_id=str(row.id),
        quiz_id=str(row.quiz_id),
        quiz_title=row.quiz_title,
        student_id=row.student_id,
        student_name=row.student_name,
        student_email=row.student_email,
        student_number=row.student_number,
        answers={str(k): str(v) for k, v in (row.answers or {}).items()},
        question_order=tuple(str(question_id) for question_id in row.question_order or ()),
        score=float(row.score),
        total_questions=int(row.total_questions),
        completed_at=row.completed_at,
        time_taken=int(row.time_taken),
        settings=QuizSettings.from_document(row.settings),
        submit_trigger=SubmitTrigger(row.submit_trigger),
    )


def attempt_row_from_record(record: AttemptRecord, *, attempt_id: UUID) -> QuizAttempt:
    return QuizAttempt(
        id=attempt_id,
        quiz_id=parse_quiz_id(record.quiz_id),
        quiz_title=record.quiz_title,
        student_id=record.student_id,
        student_name=record.student_name,
        student_email=record.student_email,
        student_number=record.student_number,
        answers=dict(record.answers),
        question_order=list(record.question_order),
        score=record.score,
        total_questions=record.total_questions,
        completed_at=record.completed_at,
        time_taken=record.time_taken,
        settings=record.settings.to_document(),
        submit_trigger=record.submit_trigger.value,
    )


def _summary(row: QuizAttempt) -> AttemptSummary:
    return AttemptSummary(
        attempt_id=str(row.id),
        quiz_id=str(row.quiz_id),
        student_id=row.student_id,
        score=float(row.score),
        total_questions=int(row.total_questions),
        completed_at=row.completed_at,
    )


def _parse_uuid(raw: str) -> UUID | None:
    try:
        return UUID(str(raw))
    except ValueError:
        return None


class SqlQuizDataAccess:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def load_quiz(self, quiz_id: str) -> Quiz | None:
        try:
            parsed_id = parse_quiz_id(quiz_id)
        except QuizNotFoundError:
            return None
        async with self._session_factory.begin() as session:
            row = await QuizzesRepo.get_by_id(session, parsed_id)
            return quiz_from_row(row) if row is not None else None

    async def load_existing_attempts(self, quiz_id: str, student_id: str) -> list[AttemptSummary]:
        parsed_id = _parse_uuid(quiz_id)
        if parsed_id is None:
            return []
        async with self._session_factory.begin() as session:
            rows = await QuizAttemptsRepo.list_for_quiz_student(
                session,
                quiz_id=parsed_id,
                student_id=student_id,
            )
            return [_summary(row) for row in rows]

    async def save_attempt(self, record: AttemptRecord) -> str:
        attempt_id = uuid4()
        try:
            async with self._session_factory.begin() as session:
                await QuizAttemptsRepo.create(
                    session,
                    attempt=attempt_row_from_record(record, attempt_id=attempt_id),
                )
        except SQLAlchemyError as exc:
            logger.warning(
                "attempt_persist_failed",
                quiz_id=record.quiz_id,
                student_id=record.student_id,
                error_type=type(exc).__name__,
            )
            raise AttemptPersistenceError("Failed to save attempt.") from exc
        return str(attempt_id)

    async def load_user_profile(self, user_id: str) -> UserProfile | None:
        try:
            async with self._session_factory.begin() as session:
                user = await UsersRepo.get_by_id(session, user_id)
                if user is None:
                    return None
                return UserProfile(
                    display_name=user.display_name,
                    email=user.email,
                    student_number=user.student_number,
                )
        except SQLAlchemyError as exc:
            raise AttemptPersistenceError("profile lookup failed") from exc

    async def load_attempt(self, attempt_id: str) -> AttemptRecord | None:
        parsed_id = _parse_uuid(attempt_id)
        if parsed_id is None:
            return None
        async with self._session_factory.begin() as session:
            row = await QuizAttemptsRepo.get_by_id(session, parsed_id)
            return attempt_record_from_row(row) if row is not None else None

    async def list_attempts_for_student(self, student_id: str) -> list[AttemptRecord]:
        async with self._session_factory.begin() as session:
            rows = await QuizAttemptsRepo.list_for_student(session, student_id=student_id)
            return [attempt_record_from_row(row) for row in rows]
