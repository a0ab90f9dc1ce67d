"""Pure edit transitions over a quiz draft.

Every function takes a draft and returns a new one; the input is never
mutated. Unknown question or option ids raise QuizEditError.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from typing import Any
from uuid import uuid4

from app.quizzes.coercion import coerce_flag, coerce_minutes, coerce_non_negative
from app.quizzes.errors import QuizEditError
from app.quizzes.types import Option, Question, QuizDraft, QuizSettings

NEW_QUESTION_OPTION_IDS = ("1", "2")

_SETTINGS_COERCERS: dict[str, Callable[[Any], Any]] = {
    "timer": coerce_minutes,
    "points_per_question": coerce_non_negative,
    "negative_marking_points": coerce_non_negative,
    "randomize_questions": coerce_flag,
    "locked_answers": coerce_flag,
    "is_active": coerce_flag,
    "allow_retakes": coerce_flag,
}


def _new_id() -> str:
    return uuid4().hex[:12]


def _require_question(draft: QuizDraft, question_id: str) -> Question:
    question = draft.find_question(question_id)
    if question is None:
        raise QuizEditError(f"unknown question {question_id!r}")
    return question


def _replace_question(
    draft: QuizDraft,
    question_id: str,
    update: Callable[[Question], Question],
) -> QuizDraft:
    _require_question(draft, question_id)
    return replace(
        draft,
        questions=tuple(update(q) if q.id == question_id else q for q in draft.questions),
    )


def _replace_option(
    draft: QuizDraft,
    question_id: str,
    option_id: str,
    update: Callable[[Option], Option],
) -> QuizDraft:
    question = _require_question(draft, question_id)
    if question.find_option(option_id) is None:
        raise QuizEditError(f"unknown option {option_id!r} in question {question_id!r}")
    return _replace_question(
        draft,
        question_id,
        lambda q: replace(
            q,
            options=tuple(update(o) if o.id == option_id else o for o in q.options),
        ),
    )


def add_question(draft: QuizDraft, *, question_id: str | None = None) -> QuizDraft:
    question = Question(
        id=question_id or _new_id(),
        options=tuple(Option(id=option_id) for option_id in NEW_QUESTION_OPTION_IDS),
    )
    return replace(draft, questions=(*draft.questions, question))


def remove_question(draft: QuizDraft, *, question_id: str) -> QuizDraft:
    _require_question(draft, question_id)
    return replace(draft, questions=tuple(q for q in draft.questions if q.id != question_id))


def set_question_text(draft: QuizDraft, *, question_id: str, text: str) -> QuizDraft:
    return _replace_question(draft, question_id, lambda q: replace(q, text=text))


def set_question_description(draft: QuizDraft, *, question_id: str, description: str | None) -> QuizDraft:
    return _replace_question(draft, question_id, lambda q: replace(q, description=description or None))


def set_question_image(draft: QuizDraft, *, question_id: str, image_url: str | None) -> QuizDraft:
    return _replace_question(draft, question_id, lambda q: replace(q, image_url=image_url or None))


def set_question_randomize_options(draft: QuizDraft, *, question_id: str, enabled: bool) -> QuizDraft:
    return _replace_question(draft, question_id, lambda q: replace(q, randomize_options=enabled))


def add_option(draft: QuizDraft, *, question_id: str, option_id: str | None = None) -> QuizDraft:
    new_option = Option(id=option_id or _new_id())
    question = _require_question(draft, question_id)
    if question.find_option(new_option.id) is not None:
        raise QuizEditError(f"option {new_option.id!r} already exists in question {question_id!r}")
    return _replace_question(draft, question_id, lambda q: replace(q, options=(*q.options, new_option)))


def remove_option(draft: QuizDraft, *, question_id: str, option_id: str) -> QuizDraft:
    question = _require_question(draft, question_id)
    if question.find_option(option_id) is None:
        raise QuizEditError(f"unknown option {option_id!r} in question {question_id!r}")
    return _replace_question(
        draft,
        question_id,
        lambda q: replace(q, options=tuple(o for o in q.options if o.id != option_id)),
    )


def set_option_text(draft: QuizDraft, *, question_id: str, option_id: str, text: str) -> QuizDraft:
    return _replace_option(draft, question_id, option_id, lambda o: replace(o, text=text))


def toggle_option_correct(draft: QuizDraft, *, question_id: str, option_id: str) -> QuizDraft:
    return _replace_option(draft, question_id, option_id, lambda o: replace(o, is_correct=not o.is_correct))


def set_option_image(draft: QuizDraft, *, question_id: str, option_id: str, image_url: str | None) -> QuizDraft:
    return _replace_option(draft, question_id, option_id, lambda o: replace(o, image_url=image_url or None))


def set_grading_system(draft: QuizDraft, *, enabled: bool) -> QuizDraft:
    settings = replace(draft.settings, grading_system=enabled)
    if not enabled:
        settings = replace(settings, negative_marking=False)
    return replace(draft, settings=settings)


def set_negative_marking(draft: QuizDraft, *, enabled: bool, points: Any = None) -> QuizDraft:
    if enabled and not draft.settings.grading_system:
        raise QuizEditError("negative marking requires the grading system")
    settings = replace(draft.settings, negative_marking=enabled)
    if points is not None:
        settings = replace(settings, negative_marking_points=coerce_non_negative(points))
    return replace(draft, settings=settings)


def update_settings(draft: QuizDraft, **changes: Any) -> QuizDraft:
    """Coerces plain setting fields; grading and negative marking go through their own transitions."""
    unknown = set(changes) - set(_SETTINGS_COERCERS)
    if unknown:
        raise QuizEditError(f"unsupported settings: {', '.join(sorted(unknown))}")
    coerced = {name: _SETTINGS_COERCERS[name](value) for name, value in changes.items()}
    settings: QuizSettings = replace(draft.settings, **coerced)
    return replace(draft, settings=settings)


def set_title(draft: QuizDraft, *, title: str) -> QuizDraft:
    return replace(draft, title=title)


def set_description(draft: QuizDraft, *, description: str) -> QuizDraft:
    return replace(draft, description=description)
