"""Per-student attempt lifecycle: NOT_STARTED -> IN_PROGRESS -> SUBMITTED.

The session owns the display-ordered questions and the settings captured at
start, so later edits to the quiz never change an attempt already running.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.attempts.errors import (
    AttemptNotInProgressError,
    AttemptNotStartedError,
    InvalidAnswerOptionError,
)
from app.attempts.timer import deadline_for, remaining_seconds
from app.attempts.types import AttemptKey, AttemptPhase, SubmitTrigger
from app.quizzes.types import Question, QuizSettings


@dataclass(slots=True)
class AttemptSession:
    quiz_id: str
    student_id: str
    quiz_title: str
    questions: tuple[Question, ...]
    settings: QuizSettings
    student_name: str | None = None
    student_email: str | None = None
    phase: AttemptPhase = AttemptPhase.NOT_STARTED
    answers: dict[str, str] = field(default_factory=dict)
    started_at: datetime | None = None
    deadline_at: datetime | None = None
    submitted_at: datetime | None = None
    trigger: SubmitTrigger | None = None

    @property
    def key(self) -> AttemptKey:
        return AttemptKey(quiz_id=self.quiz_id, student_id=self.student_id)

    @property
    def question_order(self) -> tuple[str, ...]:
        return tuple(question.id for question in self.questions)

    def start(self, now_utc: datetime) -> None:
        if self.phase is not AttemptPhase.NOT_STARTED:
            raise AttemptNotInProgressError(f"attempt already {self.phase.value.lower()}")
        self.phase = AttemptPhase.IN_PROGRESS
        self.started_at = now_utc
        self.deadline_at = deadline_for(now_utc, self.settings.timer)

    def record_answer(self, question_id: str, option_id: str) -> bool:
        """Returns False when locked mode keeps an earlier answer."""
        if self.phase is AttemptPhase.NOT_STARTED:
            raise AttemptNotStartedError("attempt not started")
        if self.phase is not AttemptPhase.IN_PROGRESS:
            raise AttemptNotInProgressError("attempt already submitted")

        question = next((q for q in self.questions if q.id == question_id), None)
        if question is None:
            raise InvalidAnswerOptionError(f"unknown question {question_id!r}")
        if question.find_option(option_id) is None:
            raise InvalidAnswerOptionError(f"unknown option {option_id!r} for question {question_id!r}")

        previous = self.answers.get(question_id)
        if self.settings.locked_answers and previous:
            return previous == option_id
        self.answers[question_id] = option_id
        return True

    def remaining_seconds(self, now_utc: datetime) -> int | None:
        if self.deadline_at is None:
            return None
        return remaining_seconds(self.deadline_at, now_utc)

    def is_expired(self, now_utc: datetime) -> bool:
        remaining = self.remaining_seconds(now_utc)
        return remaining is not None and remaining <= 0

    def tick(self, now_utc: datetime) -> bool:
        """Fires the timeout submission once; True only on the tick that did it."""
        if self.phase is not AttemptPhase.IN_PROGRESS or not self.is_expired(now_utc):
            return False
        return self.submit(now_utc, SubmitTrigger.TIMEOUT)

    def submit(self, now_utc: datetime, trigger: SubmitTrigger = SubmitTrigger.MANUAL) -> bool:
        if self.phase is AttemptPhase.NOT_STARTED:
            raise AttemptNotStartedError("attempt not started")
        if self.phase is AttemptPhase.SUBMITTED:
            return False
        self.phase = AttemptPhase.SUBMITTED
        self.submitted_at = now_utc
        self.trigger = trigger
        return True

    @property
    def elapsed_seconds(self) -> int:
        if self.started_at is None or self.submitted_at is None:
            return 0
        return max(0, int((self.submitted_at - self.started_at).total_seconds()))

    def to_state(self) -> dict[str, Any]:
        return {
            "quizId": self.quiz_id,
            "studentId": self.student_id,
            "quizTitle": self.quiz_title,
            "studentName": self.student_name,
            "studentEmail": self.student_email,
            "phase": self.phase.value,
            "questions": [question.to_document() for question in self.questions],
            "settings": self.settings.to_document(),
            "answers": dict(self.answers),
            "startedAt": _dump_time(self.started_at),
            "deadlineAt": _dump_time(self.deadline_at),
            "submittedAt": _dump_time(self.submitted_at),
            "trigger": self.trigger.value if self.trigger is not None else None,
        }

    @classmethod
    def from_state(cls, raw: dict[str, Any]) -> AttemptSession:
        trigger = raw.get("trigger")
        return cls(
            quiz_id=str(raw["quizId"]),
            student_id=str(raw["studentId"]),
            quiz_title=str(raw.get("quizTitle") or ""),
            questions=tuple(Question.from_document(question) for question in raw.get("questions") or ()),
            settings=QuizSettings.from_document(raw.get("settings")),
            student_name=raw.get("studentName"),
            student_email=raw.get("studentEmail"),
            phase=AttemptPhase(raw.get("phase", AttemptPhase.NOT_STARTED.value)),
            answers={str(k): str(v) for k, v in (raw.get("answers") or {}).items()},
            started_at=_load_time(raw.get("startedAt")),
            deadline_at=_load_time(raw.get("deadlineAt")),
            submitted_at=_load_time(raw.get("submittedAt")),
            trigger=SubmitTrigger(trigger) if trigger else None,
        )


def _dump_time(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _load_time(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None
