from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, replace

from app.quizzes.errors import QuizValidationError
from app.quizzes.types import QuizDraft, QuizSettings

MIN_OPTIONS_PER_QUESTION = 2

E_TITLE_REQUIRED = "E_TITLE_REQUIRED"
E_QUESTIONS_REQUIRED = "E_QUESTIONS_REQUIRED"
W_TOO_FEW_OPTIONS = "W_TOO_FEW_OPTIONS"
W_NO_CORRECT_OPTION = "W_NO_CORRECT_OPTION"
W_DUPLICATE_OPTION_ID = "W_DUPLICATE_OPTION_ID"
W_DUPLICATE_QUESTION_ID = "W_DUPLICATE_QUESTION_ID"


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    code: str
    question_id: str | None = None


@dataclass(frozen=True, slots=True)
class QuizValidationReport:
    errors: tuple[ValidationIssue, ...]
    warnings: tuple[ValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return not self.errors


def normalize_settings(settings: QuizSettings) -> QuizSettings:
    """Grading off forces negative marking off; the reverse never re-enables it."""
    if not settings.grading_system and settings.negative_marking:
        return replace(settings, negative_marking=False)
    return settings


def validate_quiz(draft: QuizDraft) -> QuizValidationReport:
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []

    if not draft.title.strip():
        errors.append(ValidationIssue(E_TITLE_REQUIRED))
    if not draft.questions:
        errors.append(ValidationIssue(E_QUESTIONS_REQUIRED))

    question_id_counts = Counter(question.id for question in draft.questions)
    for question_id, count in question_id_counts.items():
        if count > 1:
            warnings.append(ValidationIssue(W_DUPLICATE_QUESTION_ID, question_id))

    # Malformed option sets are reported, never rejected: such questions just score 0.
    for question in draft.questions:
        if len(question.options) < MIN_OPTIONS_PER_QUESTION:
            warnings.append(ValidationIssue(W_TOO_FEW_OPTIONS, question.id))
        if question.correct_option is None:
            warnings.append(ValidationIssue(W_NO_CORRECT_OPTION, question.id))
        if len(set(question.option_ids)) != len(question.options):
            warnings.append(ValidationIssue(W_DUPLICATE_OPTION_ID, question.id))

    return QuizValidationReport(errors=tuple(errors), warnings=tuple(warnings))


def ensure_valid_quiz(draft: QuizDraft) -> QuizValidationReport:
    report = validate_quiz(draft)
    if not report.is_valid:
        raise QuizValidationError([issue.code for issue in report.errors])
    return report


def prepare_quiz_for_save(draft: QuizDraft) -> tuple[QuizDraft, QuizValidationReport]:
    report = ensure_valid_quiz(draft)
    return replace(draft, settings=normalize_settings(draft.settings)), report
