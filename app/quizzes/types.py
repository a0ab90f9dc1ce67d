from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.quizzes.coercion import coerce_flag, coerce_minutes, coerce_non_negative

DEFAULT_POINTS_PER_QUESTION = 1.0
NEW_QUIZ_TIMER_MINUTES = 30
NEW_QUIZ_NEGATIVE_MARKING_POINTS = 0.25


@dataclass(frozen=True, slots=True)
class Option:
    id: str
    text: str = ""
    is_correct: bool = False
    image_url: str | None = None

    @classmethod
    def from_document(cls, raw: Mapping[str, Any]) -> Option:
        return cls(
            id=str(raw.get("id", "")),
            text=str(raw.get("text") or ""),
            is_correct=coerce_flag(raw.get("isCorrect")),
            image_url=raw.get("imageUrl") or None,
        )

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {"id": self.id, "text": self.text, "isCorrect": self.is_correct}
        if self.image_url is not None:
            document["imageUrl"] = self.image_url
        return document


@dataclass(frozen=True, slots=True)
class Question:
    id: str
    text: str = ""
    options: tuple[Option, ...] = ()
    image_url: str | None = None
    description: str | None = None
    randomize_options: bool = False

    @property
    def correct_option(self) -> Option | None:
        """First option flagged correct; a question without one is never scoreable."""
        return next((option for option in self.options if option.is_correct), None)

    @property
    def option_ids(self) -> tuple[str, ...]:
        return tuple(option.id for option in self.options)

    def find_option(self, option_id: str) -> Option | None:
        return next((option for option in self.options if option.id == option_id), None)

    @classmethod
    def from_document(cls, raw: Mapping[str, Any]) -> Question:
        return cls(
            id=str(raw.get("id", "")),
            text=str(raw.get("text") or ""),
            options=tuple(Option.from_document(option) for option in raw.get("options") or ()),
            image_url=raw.get("imageUrl") or None,
            description=raw.get("description") or None,
            randomize_options=coerce_flag(raw.get("randomizeOptions")),
        )

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "options": [option.to_document() for option in self.options],
            "randomizeOptions": self.randomize_options,
        }
        if self.image_url is not None:
            document["imageUrl"] = self.image_url
        if self.description is not None:
            document["description"] = self.description
        return document


@dataclass(frozen=True, slots=True)
class QuizSettings:
    grading_system: bool = True
    timer: int = 0
    negative_marking: bool = False
    negative_marking_points: float = 0.0
    points_per_question: float = DEFAULT_POINTS_PER_QUESTION
    randomize_questions: bool = False
    locked_answers: bool = False
    is_active: bool = True
    allow_retakes: bool = False

    @property
    def is_timed(self) -> bool:
        return self.timer > 0

    @property
    def effective_points_per_question(self) -> float:
        if self.points_per_question > 0:
            return self.points_per_question
        return DEFAULT_POINTS_PER_QUESTION

    @classmethod
    def from_document(cls, raw: Mapping[str, Any] | None) -> QuizSettings:
        raw = raw or {}
        return cls(
            grading_system=coerce_flag(raw.get("gradingSystem"), default=True),
            timer=coerce_minutes(raw.get("timer", 0)),
            negative_marking=coerce_flag(raw.get("negativeMarking")),
            negative_marking_points=coerce_non_negative(raw.get("negativeMarkingPoints", 0)),
            points_per_question=coerce_non_negative(
                raw.get("pointsPerQuestion", DEFAULT_POINTS_PER_QUESTION)
            ),
            randomize_questions=coerce_flag(raw.get("randomizeQuestions")),
            locked_answers=coerce_flag(raw.get("lockedAnswers")),
            is_active=coerce_flag(raw.get("isActive"), default=True),
            allow_retakes=coerce_flag(raw.get("allowRetakes")),
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "gradingSystem": self.grading_system,
            "timer": self.timer,
            "negativeMarking": self.negative_marking,
            "negativeMarkingPoints": self.negative_marking_points,
            "pointsPerQuestion": self.points_per_question,
            "randomizeQuestions": self.randomize_questions,
            "lockedAnswers": self.locked_answers,
            "isActive": self.is_active,
            "allowRetakes": self.allow_retakes,
        }


def new_quiz_settings() -> QuizSettings:
    return QuizSettings(
        timer=NEW_QUIZ_TIMER_MINUTES,
        negative_marking_points=NEW_QUIZ_NEGATIVE_MARKING_POINTS,
    )


@dataclass(frozen=True, slots=True)
class QuizDraft:
    title: str = ""
    description: str = ""
    questions: tuple[Question, ...] = ()
    settings: QuizSettings = field(default_factory=new_quiz_settings)

    def find_question(self, question_id: str) -> Question | None:
        return next((question for question in self.questions if question.id == question_id), None)

    @classmethod
    def from_document(cls, raw: Mapping[str, Any]) -> QuizDraft:
        return cls(
            title=str(raw.get("title") or ""),
            description=str(raw.get("description") or ""),
            questions=tuple(Question.from_document(question) for question in raw.get("questions") or ()),
            settings=QuizSettings.from_document(raw.get("settings")),
        )


@dataclass(frozen=True, slots=True)
class Quiz:
    id: str
    instructor_id: str
    title: str
    description: str
    questions: tuple[Question, ...]
    settings: QuizSettings
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_draft(self) -> QuizDraft:
        return QuizDraft(
            title=self.title,
            description=self.description,
            questions=self.questions,
            settings=self.settings,
        )

    def is_owned_by(self, user_id: str) -> bool:
        return self.instructor_id == user_id
