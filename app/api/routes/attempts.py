from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, HTTPException, Request

from app.attempts.errors import (
    AttemptAccessError,
    AttemptError,
    AttemptNotFoundError,
    AttemptNotInProgressError,
    AttemptNotStartedError,
    InvalidAnswerOptionError,
    QuizInactiveError,
    RetakeNotAllowedError,
)
from app.attempts.runtime import get_attempt_service
from app.quizzes.errors import QuizNotFoundError

from .attempts_models import (
    AnswerRequest,
    AnswerResponse,
    AttemptListResponse,
    AttemptOpenResponse,
    AttemptProgressResponse,
    AttemptReviewResponse,
    SubmitResponse,
    intro_response,
    list_item_response,
    progress_response,
    review_response,
    submit_response,
)
from .viewer_access import require_student, require_viewer

router = APIRouter(tags=["attempts"])


def _attempt_http_error(exc: AttemptError | QuizNotFoundError) -> HTTPException:
    if isinstance(exc, (QuizNotFoundError, AttemptNotFoundError)):
        code = "E_QUIZ_NOT_FOUND" if isinstance(exc, QuizNotFoundError) else "E_ATTEMPT_NOT_FOUND"
        return HTTPException(status_code=404, detail={"code": code})
    if isinstance(exc, QuizInactiveError):
        return HTTPException(status_code=403, detail={"code": "E_QUIZ_INACTIVE", "message": str(exc)})
    if isinstance(exc, RetakeNotAllowedError):
        return HTTPException(status_code=403, detail={"code": "E_RETAKE_NOT_ALLOWED", "message": str(exc)})
    if isinstance(exc, AttemptAccessError):
        return HTTPException(status_code=403, detail={"code": "E_ATTEMPT_FORBIDDEN"})
    if isinstance(exc, AttemptNotStartedError):
        return HTTPException(status_code=409, detail={"code": "E_ATTEMPT_NOT_STARTED"})
    if isinstance(exc, AttemptNotInProgressError):
        return HTTPException(status_code=409, detail={"code": "E_ATTEMPT_NOT_IN_PROGRESS", "message": str(exc)})
    if isinstance(exc, InvalidAnswerOptionError):
        return HTTPException(status_code=422, detail={"code": "E_INVALID_ANSWER_OPTION"})
    return HTTPException(status_code=400, detail={"code": "E_ATTEMPT_ERROR"})


@router.get("/quizzes/{quiz_id}/attempt", response_model=AttemptOpenResponse)
async def open_attempt(quiz_id: UUID, request: Request) -> AttemptOpenResponse:
    viewer = require_student(request)
    try:
        result = await get_attempt_service().open(str(quiz_id), viewer)
    except (AttemptError, QuizNotFoundError) as exc:
        raise _attempt_http_error(exc) from exc
    return AttemptOpenResponse(
        intro=intro_response(result.intro),
        attempt=progress_response(result.progress) if result.progress is not None else None,
        submitted=submit_response(result.submitted) if result.submitted is not None else None,
    )


@router.post("/quizzes/{quiz_id}/attempt/start", response_model=AttemptProgressResponse)
async def start_attempt(quiz_id: UUID, request: Request) -> AttemptProgressResponse:
    viewer = require_student(request)
    try:
        progress = await get_attempt_service().start(str(quiz_id), viewer)
    except (AttemptError, QuizNotFoundError) as exc:
        raise _attempt_http_error(exc) from exc
    return progress_response(progress)


@router.put("/quizzes/{quiz_id}/attempt/answers/{question_id}", response_model=AnswerResponse)
async def record_answer(
    quiz_id: UUID,
    question_id: str,
    payload: AnswerRequest,
    request: Request,
) -> AnswerResponse:
    viewer = require_student(request)
    try:
        result = await get_attempt_service().record_answer(
            str(quiz_id),
            viewer,
            question_id=question_id,
            option_id=payload.option_id,
        )
    except (AttemptError, QuizNotFoundError) as exc:
        raise _attempt_http_error(exc) from exc
    return AnswerResponse(accepted=result.accepted, attempt=progress_response(result.progress))


@router.post("/quizzes/{quiz_id}/attempt/submit", response_model=SubmitResponse)
async def submit_attempt(quiz_id: UUID, request: Request) -> SubmitResponse:
    viewer = require_student(request)
    try:
        result = await get_attempt_service().submit(str(quiz_id), viewer)
    except (AttemptError, QuizNotFoundError) as exc:
        raise _attempt_http_error(exc) from exc
    return submit_response(result)


@router.get("/attempts", response_model=AttemptListResponse)
async def list_attempts(request: Request) -> AttemptListResponse:
    viewer = require_viewer(request)
    records = await get_attempt_service().list_for_student(viewer)
    return AttemptListResponse(items=[list_item_response(record) for record in records])


@router.get("/attempts/{attempt_id}", response_model=AttemptReviewResponse)
async def review_attempt(attempt_id: UUID, request: Request) -> AttemptReviewResponse:
    viewer = require_viewer(request)
    try:
        review = await get_attempt_service().review(str(attempt_id), viewer)
    except (AttemptError, QuizNotFoundError) as exc:
        raise _attempt_http_error(exc) from exc
    return review_response(review)
