from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from app.attempts.scoring import ScoreBreakdown
from app.quizzes.types import Question, QuizSettings


class AttemptPhase(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    SUBMITTED = "SUBMITTED"


class SubmitTrigger(str, Enum):
    MANUAL = "MANUAL"
    TIMEOUT = "TIMEOUT"


@dataclass(frozen=True, slots=True)
class AttemptKey:
    quiz_id: str
    student_id: str

    def as_member(self) -> str:
        return f"{self.quiz_id}:{self.student_id}"

    @classmethod
    def from_member(cls, member: str) -> AttemptKey:
        quiz_id, _, student_id = member.partition(":")
        return cls(quiz_id=quiz_id, student_id=student_id)


@dataclass(frozen=True, slots=True)
class UserProfile:
    display_name: str | None
    email: str | None
    student_number: str | None


@dataclass(frozen=True, slots=True)
class AttemptSummary:
    attempt_id: str
    quiz_id: str
    student_id: str
    score: float
    total_questions: int
    completed_at: datetime


@dataclass(frozen=True, slots=True)
class AttemptRecord:
    """Immutable result of one submission; field names of the document are a stable contract."""

    quiz_id: str
    quiz_title: str
    student_id: str
    student_name: str
    student_email: str
    student_number: str
    answers: dict[str, str]
    question_order: tuple[str, ...]
    score: float
    total_questions: int
    completed_at: datetime
    time_taken: int
    settings: QuizSettings
    submit_trigger: SubmitTrigger
    attempt_id: str | None = None

    def to_document(self) -> dict[str, Any]:
        return {
            "quizId": self.quiz_id,
            "quizTitle": self.quiz_title,
            "studentId": self.student_id,
            "studentName": self.student_name,
            "studentEmail": self.student_email,
            "studentIdNum": self.student_number,
            "answers": dict(self.answers),
            "questionOrder": list(self.question_order),
            "score": self.score,
            "totalQuestions": self.total_questions,
            "completedAt": self.completed_at,
            "timeTaken": self.time_taken,
            "settings": self.settings.to_document(),
            "submitTrigger": self.submit_trigger.value,
        }


@dataclass(frozen=True, slots=True)
class AttemptIntro:
    quiz_id: str
    title: str
    description: str
    question_count: int
    timer_minutes: int
    points_per_question: float
    negative_marking: bool
    negative_marking_points: float
    locked_answers: bool


@dataclass(frozen=True, slots=True)
class AttemptProgress:
    quiz_id: str
    title: str
    phase: AttemptPhase
    questions: tuple[Question, ...]
    answers: dict[str, str]
    locked_answers: bool
    remaining_seconds: int | None
    started_at: datetime | None


@dataclass(frozen=True, slots=True)
class AnswerResult:
    accepted: bool
    progress: AttemptProgress


@dataclass(frozen=True, slots=True)
class SubmitResult:
    record: AttemptRecord
    breakdown: ScoreBreakdown
    questions: tuple[Question, ...]
    trigger: SubmitTrigger
    saved: bool
    message: str
    allow_retakes: bool = False


@dataclass(frozen=True, slots=True)
class AttemptOpenResult:
    intro: AttemptIntro
    progress: AttemptProgress | None = None
    submitted: SubmitResult | None = None


@dataclass(frozen=True, slots=True)
class AttemptReview:
    record: AttemptRecord
    breakdown: ScoreBreakdown
    questions: tuple[Question, ...]
    quiz_available: bool = True
