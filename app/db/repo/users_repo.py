from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.users import User


class UsersRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, user_id: str) -> User | None:
        return await session.get(User, user_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, user_id: str) -> User | None:
        stmt = select(User).where(User.id == user_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def is_student_number_taken(session: AsyncSession, student_number: str) -> bool:
        stmt = select(User.id).where(User.student_number == student_number)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        user_id: str,
        email: str | None,
        display_name: str | None,
        student_number: str,
        role: str,
        now_utc: datetime,
    ) -> User:
        user = User(
            id=user_id,
            email=email,
            display_name=display_name,
            student_number=student_number,
            role=role,
            created_at=now_utc,
        )
        session.add(user)
        await session.flush()
        return user
