from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.student_numbers import generate_student_number
from app.db.models.users import User
from app.db.repo.users_repo import UsersRepo
from app.services.identity import Viewer

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class ProfileSnapshot:
    user_id: str
    role: str
    email: str | None
    display_name: str | None
    student_number: str
    created: bool


def _snapshot(user: User, *, created: bool) -> ProfileSnapshot:
    return ProfileSnapshot(
        user_id=user.id,
        role=user.role,
        email=user.email,
        display_name=user.display_name,
        student_number=user.student_number,
        created=created,
    )


class UserProfileService:
    @staticmethod
    async def _generate_unique_student_number(session: AsyncSession) -> str:
        for _ in range(10):
            student_number = generate_student_number()
            if not await UsersRepo.is_student_number_taken(session, student_number):
                return student_number
        raise RuntimeError("unable to generate unique student number")

    @staticmethod
    async def upsert_profile(
        session: AsyncSession,
        *,
        viewer: Viewer,
        display_name: str | None,
        email: str | None,
        now_utc: datetime | None = None,
    ) -> ProfileSnapshot:
        """The student number is assigned once on first upsert and never changed."""
        now_utc = now_utc or datetime.now(timezone.utc)
        resolved_name = display_name or viewer.display_name
        resolved_email = email or viewer.email

        user = await UsersRepo.get_by_id_for_update(session, viewer.user_id)
        if user is None:
            student_number = await UserProfileService._generate_unique_student_number(session)
            user = await UsersRepo.create(
                session,
                user_id=viewer.user_id,
                email=resolved_email,
                display_name=resolved_name,
                student_number=student_number,
                role=viewer.role.value,
                now_utc=now_utc,
            )
            logger.info("user_profile_created", user_id=user.id, role=user.role)
            return _snapshot(user, created=True)

        if resolved_name is not None:
            user.display_name = resolved_name
        if resolved_email is not None:
            user.email = resolved_email
        user.role = viewer.role.value
        user.updated_at = now_utc
        return _snapshot(user, created=False)

    @staticmethod
    async def get_profile(session: AsyncSession, *, user_id: str) -> ProfileSnapshot | None:
        user = await UsersRepo.get_by_id(session, user_id)
        if user is None:
            return None
        return _snapshot(user, created=False)
