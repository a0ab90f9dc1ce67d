from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.quizzes.coercion import coerce_minutes, coerce_non_negative
from app.quizzes.types import (
    NEW_QUIZ_NEGATIVE_MARKING_POINTS,
    NEW_QUIZ_TIMER_MINUTES,
    Option,
    Question,
    Quiz,
    QuizDraft,
    QuizSettings,
)
from app.quizzes.validation import QuizValidationReport

NumericInput = int | float | str | None


class OptionPayload(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    text: str = Field(default="", max_length=2000)
    is_correct: bool = False
    image_url: str | None = Field(default=None, max_length=2048)


class QuestionPayload(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    text: str = Field(default="", max_length=5000)
    options: list[OptionPayload] = Field(default_factory=list, max_length=26)
    image_url: str | None = Field(default=None, max_length=2048)
    description: str | None = Field(default=None, max_length=5000)
    randomize_options: bool = False


class QuizSettingsPayload(BaseModel):
    grading_system: bool = True
    timer: NumericInput = NEW_QUIZ_TIMER_MINUTES
    negative_marking: bool = False
    negative_marking_points: NumericInput = NEW_QUIZ_NEGATIVE_MARKING_POINTS
    points_per_question: NumericInput = 1
    randomize_questions: bool = False
    locked_answers: bool = False
    is_active: bool = True
    allow_retakes: bool = False

    def to_settings(self) -> QuizSettings:
        return QuizSettings(
            grading_system=self.grading_system,
            timer=coerce_minutes(self.timer),
            negative_marking=self.negative_marking,
            negative_marking_points=coerce_non_negative(self.negative_marking_points),
            points_per_question=coerce_non_negative(self.points_per_question),
            randomize_questions=self.randomize_questions,
            locked_answers=self.locked_answers,
            is_active=self.is_active,
            allow_retakes=self.allow_retakes,
        )


class QuizPayload(BaseModel):
    title: str = Field(default="", max_length=300)
    description: str = Field(default="", max_length=5000)
    questions: list[QuestionPayload] = Field(default_factory=list, max_length=500)
    settings: QuizSettingsPayload = Field(default_factory=QuizSettingsPayload)

    def to_draft(self) -> QuizDraft:
        return QuizDraft(
            title=self.title,
            description=self.description,
            questions=tuple(
                Question(
                    id=question.id,
                    text=question.text,
                    options=tuple(
                        Option(
                            id=option.id,
                            text=option.text,
                            is_correct=option.is_correct,
                            image_url=option.image_url or None,
                        )
                        for option in question.options
                    ),
                    image_url=question.image_url or None,
                    description=question.description or None,
                    randomize_options=question.randomize_options,
                )
                for question in self.questions
            ),
            settings=self.settings.to_settings(),
        )


class OptionResponse(BaseModel):
    id: str
    text: str
    is_correct: bool
    image_url: str | None = None


class QuestionResponse(BaseModel):
    id: str
    text: str
    options: list[OptionResponse]
    image_url: str | None = None
    description: str | None = None
    randomize_options: bool


class QuizSettingsResponse(BaseModel):
    grading_system: bool
    timer: int = Field(ge=0)
    negative_marking: bool
    negative_marking_points: float = Field(ge=0.0)
    points_per_question: float = Field(ge=0.0)
    randomize_questions: bool
    locked_answers: bool
    is_active: bool
    allow_retakes: bool


class ValidationIssueResponse(BaseModel):
    code: str
    question_id: str | None = None


class QuizResponse(BaseModel):
    id: UUID
    title: str
    description: str
    questions: list[QuestionResponse]
    settings: QuizSettingsResponse
    created_at: datetime | None = None
    updated_at: datetime | None = None
    warnings: list[ValidationIssueResponse] = Field(default_factory=list)


class QuizListItemResponse(BaseModel):
    id: UUID
    title: str
    description: str
    question_count: int = Field(ge=0)
    is_active: bool
    created_at: datetime | None = None


class QuizListResponse(BaseModel):
    items: list[QuizListItemResponse]


class AnalyticsAttemptResponse(BaseModel):
    attempt_id: UUID | None
    student_id: str
    student_name: str
    student_email: str
    student_number: str
    score: float
    total_questions: int = Field(ge=0)
    time_taken: int = Field(ge=0)
    completed_at: datetime
    submit_trigger: str


class QuizAnalyticsResponse(BaseModel):
    quiz_id: UUID
    title: str
    attempt_count: int = Field(ge=0)
    average_score: float
    attempts: list[AnalyticsAttemptResponse]


def option_response(option: Option) -> OptionResponse:
    return OptionResponse(
        id=option.id,
        text=option.text,
        is_correct=option.is_correct,
        image_url=option.image_url,
    )


def question_response(question: Question) -> QuestionResponse:
    return QuestionResponse(
        id=question.id,
        text=question.text,
        options=[option_response(option) for option in question.options],
        image_url=question.image_url,
        description=question.description,
        randomize_options=question.randomize_options,
    )


def settings_response(settings: QuizSettings) -> QuizSettingsResponse:
    return QuizSettingsResponse(
        grading_system=settings.grading_system,
        timer=settings.timer,
        negative_marking=settings.negative_marking,
        negative_marking_points=settings.negative_marking_points,
        points_per_question=settings.points_per_question,
        randomize_questions=settings.randomize_questions,
        locked_answers=settings.locked_answers,
        is_active=settings.is_active,
        allow_retakes=settings.allow_retakes,
    )


def quiz_response(quiz: Quiz, report: QuizValidationReport | None = None) -> QuizResponse:
    return QuizResponse(
        id=UUID(quiz.id),
        title=quiz.title,
        description=quiz.description,
        questions=[question_response(question) for question in quiz.questions],
        settings=settings_response(quiz.settings),
        created_at=quiz.created_at,
        updated_at=quiz.updated_at,
        warnings=[
            ValidationIssueResponse(code=issue.code, question_id=issue.question_id)
            for issue in (report.warnings if report is not None else ())
        ],
    )
