from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.quiz_attempts import QuizAttempt


class QuizAttemptsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, attempt_id: UUID) -> QuizAttempt | None:
        return await session.get(QuizAttempt, attempt_id)

    @staticmethod
    async def create(session: AsyncSession, *, attempt: QuizAttempt) -> QuizAttempt:
        session.add(attempt)
        await session.flush()
        return attempt

    @staticmethod
    async def list_for_quiz_student(
        session: AsyncSession,
        *,
        quiz_id: UUID,
        student_id: str,
    ) -> list[QuizAttempt]:
        stmt = (
            select(QuizAttempt)
            .where(
                QuizAttempt.quiz_id == quiz_id,
                QuizAttempt.student_id == student_id,
            )
            .order_by(QuizAttempt.completed_at.desc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_for_quiz(session: AsyncSession, *, quiz_id: UUID) -> list[QuizAttempt]:
        stmt = (
            select(QuizAttempt)
            .where(QuizAttempt.quiz_id == quiz_id)
            .order_by(QuizAttempt.completed_at.desc(), QuizAttempt.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_for_student(session: AsyncSession, *, student_id: str) -> list[QuizAttempt]:
        stmt = (
            select(QuizAttempt)
            .where(QuizAttempt.student_id == student_id)
            .order_by(QuizAttempt.completed_at.desc(), QuizAttempt.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
