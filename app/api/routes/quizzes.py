from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, HTTPException, Request, Response, status

from app.db.session import SessionLocal
from app.quizzes.analytics import load_quiz_analytics
from app.quizzes.errors import (
    QuizAccessError,
    QuizEditError,
    QuizError,
    QuizNotFoundError,
    QuizValidationError,
)
from app.quizzes.service import QuizAuthoringService

from .quiz_edits_models import QuizEditsRequest
from .quizzes_models import (
    AnalyticsAttemptResponse,
    QuizAnalyticsResponse,
    QuizListItemResponse,
    QuizListResponse,
    QuizPayload,
    QuizResponse,
    quiz_response,
)
from .viewer_access import require_instructor

router = APIRouter(prefix="/quizzes", tags=["quizzes"])


def _quiz_http_error(exc: QuizError) -> HTTPException:
    if isinstance(exc, QuizNotFoundError):
        return HTTPException(status_code=404, detail={"code": "E_QUIZ_NOT_FOUND"})
    if isinstance(exc, QuizAccessError):
        return HTTPException(status_code=403, detail={"code": "E_QUIZ_FORBIDDEN"})
    if isinstance(exc, QuizValidationError):
        return HTTPException(status_code=422, detail={"code": "E_QUIZ_INVALID", "issues": exc.issues})
    if isinstance(exc, QuizEditError):
        return HTTPException(status_code=422, detail={"code": "E_QUIZ_EDIT_INVALID", "message": str(exc)})
    return HTTPException(status_code=400, detail={"code": "E_QUIZ_ERROR"})


@router.post("", response_model=QuizResponse, status_code=status.HTTP_201_CREATED)
async def create_quiz(payload: QuizPayload, request: Request) -> QuizResponse:
    viewer = require_instructor(request)
    try:
        async with SessionLocal.begin() as session:
            quiz, report = await QuizAuthoringService.create_quiz(
                session,
                viewer=viewer,
                draft=payload.to_draft(),
            )
    except QuizError as exc:
        raise _quiz_http_error(exc) from exc
    return quiz_response(quiz, report)


@router.get("", response_model=QuizListResponse)
async def list_quizzes(request: Request) -> QuizListResponse:
    viewer = require_instructor(request)
    async with SessionLocal.begin() as session:
        quizzes = await QuizAuthoringService.list_quizzes(session, viewer=viewer)
    return QuizListResponse(
        items=[
            QuizListItemResponse(
                id=UUID(quiz.id),
                title=quiz.title,
                description=quiz.description,
                question_count=len(quiz.questions),
                is_active=quiz.settings.is_active,
                created_at=quiz.created_at,
            )
            for quiz in quizzes
        ]
    )


@router.get("/{quiz_id}", response_model=QuizResponse)
async def get_quiz(quiz_id: UUID, request: Request) -> QuizResponse:
    viewer = require_instructor(request)
    try:
        async with SessionLocal.begin() as session:
            quiz = await QuizAuthoringService.get_quiz(session, viewer=viewer, quiz_id=quiz_id)
    except QuizError as exc:
        raise _quiz_http_error(exc) from exc
    return quiz_response(quiz)


@router.put("/{quiz_id}", response_model=QuizResponse)
async def update_quiz(quiz_id: UUID, payload: QuizPayload, request: Request) -> QuizResponse:
    viewer = require_instructor(request)
    try:
        async with SessionLocal.begin() as session:
            quiz, report = await QuizAuthoringService.update_quiz(
                session,
                viewer=viewer,
                quiz_id=quiz_id,
                draft=payload.to_draft(),
            )
    except QuizError as exc:
        raise _quiz_http_error(exc) from exc
    return quiz_response(quiz, report)


@router.post("/{quiz_id}/edits", response_model=QuizResponse)
async def apply_quiz_edits(quiz_id: UUID, payload: QuizEditsRequest, request: Request) -> QuizResponse:
    viewer = require_instructor(request)
    try:
        async with SessionLocal.begin() as session:
            quiz, report = await QuizAuthoringService.apply_edits(
                session,
                viewer=viewer,
                quiz_id=quiz_id,
                edits=[edit.apply for edit in payload.edits],
            )
    except QuizError as exc:
        raise _quiz_http_error(exc) from exc
    return quiz_response(quiz, report)


@router.delete("/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_quiz(quiz_id: UUID, request: Request) -> Response:
    viewer = require_instructor(request)
    try:
        async with SessionLocal.begin() as session:
            await QuizAuthoringService.delete_quiz(session, viewer=viewer, quiz_id=quiz_id)
    except QuizError as exc:
        raise _quiz_http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{quiz_id}/analytics", response_model=QuizAnalyticsResponse)
async def get_quiz_analytics(quiz_id: UUID, request: Request) -> QuizAnalyticsResponse:
    viewer = require_instructor(request)
    try:
        async with SessionLocal.begin() as session:
            analytics = await load_quiz_analytics(session, viewer=viewer, quiz_id=quiz_id)
    except QuizError as exc:
        raise _quiz_http_error(exc) from exc
    return QuizAnalyticsResponse(
        quiz_id=UUID(analytics.quiz.id),
        title=analytics.quiz.title,
        attempt_count=analytics.attempt_count,
        average_score=analytics.average_score,
        attempts=[
            AnalyticsAttemptResponse(
                attempt_id=UUID(attempt.attempt_id) if attempt.attempt_id else None,
                student_id=attempt.student_id,
                student_name=attempt.student_name,
                student_email=attempt.student_email,
                student_number=attempt.student_number,
                score=attempt.score,
                total_questions=attempt.total_questions,
                time_taken=attempt.time_taken,
                completed_at=attempt.completed_at,
                submit_trigger=attempt.submit_trigger.value,
            )
            for attempt in analytics.attempts
        ],
    )
