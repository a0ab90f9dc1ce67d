from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

from app.quizzes.types import Question, QuizSettings


class AnswerOutcome(str, Enum):
    CORRECT = "CORRECT"
    INCORRECT = "INCORRECT"
    SKIPPED = "SKIPPED"


@dataclass(frozen=True, slots=True)
class QuestionResult:
    question_id: str
    selected_option_id: str | None
    correct_option_id: str | None
    outcome: AnswerOutcome
    points: float


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    score: float
    total_questions: int
    results: tuple[QuestionResult, ...]

    def _count(self, outcome: AnswerOutcome) -> int:
        return sum(1 for result in self.results if result.outcome is outcome)

    @property
    def correct_count(self) -> int:
        return self._count(AnswerOutcome.CORRECT)

    @property
    def incorrect_count(self) -> int:
        return self._count(AnswerOutcome.INCORRECT)

    @property
    def skipped_count(self) -> int:
        return self._count(AnswerOutcome.SKIPPED)


def classify_answer(question: Question, selected_option_id: str | None) -> AnswerOutcome:
    if not selected_option_id:
        return AnswerOutcome.SKIPPED
    correct = question.correct_option
    if correct is not None and selected_option_id == correct.id:
        return AnswerOutcome.CORRECT
    return AnswerOutcome.INCORRECT


def points_for(outcome: AnswerOutcome, settings: QuizSettings) -> float:
    if outcome is AnswerOutcome.CORRECT:
        return settings.effective_points_per_question
    if outcome is AnswerOutcome.INCORRECT and settings.negative_marking:
        return -settings.negative_marking_points
    return 0.0


def score_answers(
    questions: Sequence[Question],
    answers: Mapping[str, str],
    settings: QuizSettings,
) -> ScoreBreakdown:
    """Scores by option id, so display order never matters. No floor at zero."""
    results: list[QuestionResult] = []
    score = 0.0
    for question in questions:
        selected = answers.get(question.id) or None
        outcome = classify_answer(question, selected)
        points = points_for(outcome, settings)
        score += points
        correct = question.correct_option
        results.append(
            QuestionResult(
                question_id=question.id,
                selected_option_id=selected,
                correct_option_id=correct.id if correct is not None else None,
                outcome=outcome,
                points=points,
            )
        )
    return ScoreBreakdown(score=score, total_questions=len(questions), results=tuple(results))
