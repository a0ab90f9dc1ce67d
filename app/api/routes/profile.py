from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from app.db.session import SessionLocal
from app.services.user_profiles import ProfileSnapshot, UserProfileService

from .viewer_access import require_viewer

router = APIRouter(prefix="/me", tags=["profile"])


class ProfileUpdateRequest(BaseModel):
    display_name: str | None = Field(default=None, max_length=200)
    email: str | None = Field(default=None, max_length=320)


class ProfileResponse(BaseModel):
    user_id: str
    role: str
    email: str | None = None
    display_name: str | None = None
    student_number: str
    created: bool = False


def _as_response(snapshot: ProfileSnapshot) -> ProfileResponse:
    return ProfileResponse(
        user_id=snapshot.user_id,
        role=snapshot.role,
        email=snapshot.email,
        display_name=snapshot.display_name,
        student_number=snapshot.student_number,
        created=snapshot.created,
    )


@router.put("/profile", response_model=ProfileResponse)
async def upsert_profile(payload: ProfileUpdateRequest, request: Request) -> ProfileResponse:
    viewer = require_viewer(request)
    async with SessionLocal.begin() as session:
        snapshot = await UserProfileService.upsert_profile(
            session,
            viewer=viewer,
            display_name=(payload.display_name or "").strip() or None,
            email=(payload.email or "").strip() or None,
        )
    return _as_response(snapshot)


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(request: Request) -> ProfileResponse:
    viewer = require_viewer(request)
    async with SessionLocal.begin() as session:
        snapshot = await UserProfileService.get_profile(session, user_id=viewer.user_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail={"code": "E_PROFILE_NOT_FOUND"})
    return _as_response(snapshot)
