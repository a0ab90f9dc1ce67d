from __future__ import annotations

import structlog
from fastapi import HTTPException, Request

from app.core.config import get_settings
from app.services.identity import IdentityError, Viewer, resolve_viewer

logger = structlog.get_logger(__name__)


def require_viewer(request: Request) -> Viewer:
    try:
        return resolve_viewer(request, expected_token=get_settings().gateway_token)
    except IdentityError as exc:
        logger.warning("viewer_auth_failed", reason=str(exc), path=request.url.path)
        raise HTTPException(status_code=401, detail={"code": "E_UNAUTHENTICATED"}) from exc


def require_instructor(request: Request) -> Viewer:
    viewer = require_viewer(request)
    if not viewer.is_instructor:
        raise HTTPException(status_code=403, detail={"code": "E_INSTRUCTOR_REQUIRED"})
    return viewer


def require_student(request: Request) -> Viewer:
    viewer = require_viewer(request)
    if not viewer.is_student:
        raise HTTPException(status_code=403, detail={"code": "E_STUDENT_REQUIRED"})
    return viewer
