from __future__ import annotations

import pytest

from app.quizzes.errors import QuizValidationError
from app.quizzes.types import Option, Question, QuizDraft, QuizSettings
from app.quizzes.validation import (
    E_QUESTIONS_REQUIRED,
    E_TITLE_REQUIRED,
    W_DUPLICATE_OPTION_ID,
    W_DUPLICATE_QUESTION_ID,
    W_NO_CORRECT_OPTION,
    W_TOO_FEW_OPTIONS,
    normalize_settings,
    prepare_quiz_for_save,
    validate_quiz,
)


def _valid_question(question_id: str = "q1") -> Question:
    return Question(
        id=question_id,
        text="2 + 2?",
        options=(Option(id="a", text="3"), Option(id="b", text="4", is_correct=True)),
    )


def test_validate_quiz_requires_title_and_questions() -> None:
    report = validate_quiz(QuizDraft(title="   "))

    assert not report.is_valid
    assert [issue.code for issue in report.errors] == [E_TITLE_REQUIRED, E_QUESTIONS_REQUIRED]


def test_validate_quiz_reports_malformed_questions_as_warnings() -> None:
    draft = QuizDraft(
        title="Mixed",
        questions=(
            Question(id="q1", options=(Option(id="a"),)),
            Question(id="q2", options=(Option(id="x", is_correct=True), Option(id="x"))),
            _valid_question("q2"),
        ),
    )

    report = validate_quiz(draft)

    assert report.is_valid
    codes = {(issue.code, issue.question_id) for issue in report.warnings}
    assert (W_TOO_FEW_OPTIONS, "q1") in codes
    assert (W_NO_CORRECT_OPTION, "q1") in codes
    assert (W_DUPLICATE_OPTION_ID, "q2") in codes
    assert (W_DUPLICATE_QUESTION_ID, "q2") in codes


def test_normalize_settings_turns_negative_marking_off_without_grading() -> None:
    settings = QuizSettings(grading_system=False, negative_marking=True, negative_marking_points=0.5)

    normalized = normalize_settings(settings)

    assert normalized.negative_marking is False
    assert normalized.negative_marking_points == 0.5


def test_normalize_settings_never_reenables_negative_marking() -> None:
    settings = QuizSettings(grading_system=True, negative_marking=False)

    assert normalize_settings(settings) is settings


def test_prepare_quiz_for_save_rejects_invalid_draft() -> None:
    with pytest.raises(QuizValidationError) as exc_info:
        prepare_quiz_for_save(QuizDraft(title="", questions=(_valid_question(),)))

    assert exc_info.value.issues == [E_TITLE_REQUIRED]


def test_prepare_quiz_for_save_returns_normalized_draft() -> None:
    draft = QuizDraft(
        title="Graded off",
        questions=(_valid_question(),),
        settings=QuizSettings(grading_system=False, negative_marking=True),
    )

    prepared, report = prepare_quiz_for_save(draft)

    assert report.warnings == ()
    assert prepared.settings.negative_marking is False
    assert draft.settings.negative_marking is True
