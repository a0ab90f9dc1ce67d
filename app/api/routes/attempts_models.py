from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.attempts.scoring import QuestionResult, ScoreBreakdown
from app.attempts.types import (
    AttemptIntro,
    AttemptProgress,
    AttemptRecord,
    AttemptReview,
    SubmitResult,
)
from app.quizzes.types import Question

from .quizzes_models import OptionResponse, option_response


class StudentOptionResponse(BaseModel):
    id: str
    text: str
    image_url: str | None = None


class StudentQuestionResponse(BaseModel):
    id: str
    text: str
    image_url: str | None = None
    options: list[StudentOptionResponse]


class AttemptIntroResponse(BaseModel):
    quiz_id: UUID
    title: str
    description: str
    question_count: int = Field(ge=0)
    timer_minutes: int = Field(ge=0)
    points_per_question: float
    negative_marking: bool
    negative_marking_points: float = Field(ge=0.0)
    locked_answers: bool


class AttemptProgressResponse(BaseModel):
    quiz_id: UUID
    title: str
    phase: str
    questions: list[StudentQuestionResponse]
    answers: dict[str, str]
    locked_answers: bool
    remaining_seconds: int | None = None
    started_at: datetime | None = None


class AnswerRequest(BaseModel):
    option_id: str = Field(min_length=1, max_length=64)


class AnswerResponse(BaseModel):
    accepted: bool
    attempt: AttemptProgressResponse


class ReviewedQuestionResponse(BaseModel):
    id: str
    text: str
    image_url: str | None = None
    description: str | None = None
    options: list[OptionResponse]
    selected_option_id: str | None = None
    correct_option_id: str | None = None
    outcome: str
    points: float


class AttemptResultResponse(BaseModel):
    attempt_id: UUID | None = None
    quiz_id: UUID
    quiz_title: str
    student_name: str
    student_number: str
    score: float
    total_questions: int = Field(ge=0)
    correct_count: int = Field(ge=0)
    incorrect_count: int = Field(ge=0)
    skipped_count: int = Field(ge=0)
    time_taken: int = Field(ge=0)
    completed_at: datetime
    submit_trigger: str
    questions: list[ReviewedQuestionResponse]


class SubmitResponse(BaseModel):
    saved: bool
    message: str
    allow_retakes: bool
    result: AttemptResultResponse


class AttemptOpenResponse(BaseModel):
    intro: AttemptIntroResponse
    attempt: AttemptProgressResponse | None = None
    submitted: SubmitResponse | None = None


class AttemptReviewResponse(BaseModel):
    quiz_available: bool
    result: AttemptResultResponse


class AttemptListItemResponse(BaseModel):
    attempt_id: UUID | None
    quiz_id: UUID
    quiz_title: str
    score: float
    total_questions: int = Field(ge=0)
    time_taken: int = Field(ge=0)
    completed_at: datetime


class AttemptListResponse(BaseModel):
    items: list[AttemptListItemResponse]


def student_question_response(question: Question) -> StudentQuestionResponse:
    return StudentQuestionResponse(
        id=question.id,
        text=question.text,
        image_url=question.image_url,
        options=[
            StudentOptionResponse(id=option.id, text=option.text, image_url=option.image_url)
            for option in question.options
        ],
    )


def intro_response(intro: AttemptIntro) -> AttemptIntroResponse:
    return AttemptIntroResponse(
        quiz_id=UUID(intro.quiz_id),
        title=intro.title,
        description=intro.description,
        question_count=intro.question_count,
        timer_minutes=intro.timer_minutes,
        points_per_question=intro.points_per_question,
        negative_marking=intro.negative_marking,
        negative_marking_points=intro.negative_marking_points,
        locked_answers=intro.locked_answers,
    )


def progress_response(progress: AttemptProgress) -> AttemptProgressResponse:
    return AttemptProgressResponse(
        quiz_id=UUID(progress.quiz_id),
        title=progress.title,
        phase=progress.phase.value,
        questions=[student_question_response(question) for question in progress.questions],
        answers=dict(progress.answers),
        locked_answers=progress.locked_answers,
        remaining_seconds=progress.remaining_seconds,
        started_at=progress.started_at,
    )


def _reviewed_question(question: Question, result: QuestionResult | None) -> ReviewedQuestionResponse:
    return ReviewedQuestionResponse(
        id=question.id,
        text=question.text,
        image_url=question.image_url,
        description=question.description,
        options=[option_response(option) for option in question.options],
        selected_option_id=result.selected_option_id if result else None,
        correct_option_id=result.correct_option_id if result else None,
        outcome=result.outcome.value if result else "SKIPPED",
        points=result.points if result else 0.0,
    )


def result_response(
    record: AttemptRecord,
    breakdown: ScoreBreakdown,
    questions: tuple[Question, ...],
) -> AttemptResultResponse:
    by_question = {result.question_id: result for result in breakdown.results}
    return AttemptResultResponse(
        attempt_id=UUID(record.attempt_id) if record.attempt_id else None,
        quiz_id=UUID(record.quiz_id),
        quiz_title=record.quiz_title,
        student_name=record.student_name,
        student_number=record.student_number,
        score=record.score,
        total_questions=record.total_questions,
        correct_count=breakdown.correct_count,
        incorrect_count=breakdown.incorrect_count,
        skipped_count=breakdown.skipped_count,
        time_taken=record.time_taken,
        completed_at=record.completed_at,
        submit_trigger=record.submit_trigger.value,
        questions=[_reviewed_question(question, by_question.get(question.id)) for question in questions],
    )


def submit_response(result: SubmitResult) -> SubmitResponse:
    return SubmitResponse(
        saved=result.saved,
        message=result.message,
        allow_retakes=result.allow_retakes,
        result=result_response(result.record, result.breakdown, result.questions),
    )


def review_response(review: AttemptReview) -> AttemptReviewResponse:
    return AttemptReviewResponse(
        quiz_available=review.quiz_available,
        result=result_response(review.record, review.breakdown, review.questions),
    )


def list_item_response(record: AttemptRecord) -> AttemptListItemResponse:
    return AttemptListItemResponse(
        attempt_id=UUID(record.attempt_id) if record.attempt_id else None,
        quiz_id=UUID(record.quiz_id),
        quiz_title=record.quiz_title,
        score=record.score,
        total_questions=record.total_questions,
        time_taken=record.time_taken,
        completed_at=record.completed_at,
    )
