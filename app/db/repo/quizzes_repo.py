from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.quizzes import QuizDocument


class QuizzesRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, quiz_id: UUID) -> QuizDocument | None:
        return await session.get(QuizDocument, quiz_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, quiz_id: UUID) -> QuizDocument | None:
        stmt = select(QuizDocument).where(QuizDocument.id == quiz_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_for_instructor(session: AsyncSession, *, instructor_id: str) -> list[QuizDocument]:
        stmt = (
            select(QuizDocument)
            .where(QuizDocument.instructor_id == instructor_id)
            .order_by(QuizDocument.created_at.desc(), QuizDocument.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create(session: AsyncSession, *, quiz: QuizDocument) -> QuizDocument:
        session.add(quiz)
        await session.flush()
        return quiz

    @staticmethod
    async def delete_by_id(session: AsyncSession, quiz_id: UUID) -> int:
        result = await session.execute(delete(QuizDocument).where(QuizDocument.id == quiz_id))
        return int(result.rowcount or 0)
