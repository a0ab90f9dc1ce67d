from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import replace

from app.quizzes.types import Question, QuizSettings


def shuffled(items: Sequence, rng: random.Random) -> list:
    """Uniform permutation of a copy; `random.shuffle` is Fisher-Yates."""
    permuted = list(items)
    rng.shuffle(permuted)
    return permuted


def randomize_for_display(
    questions: Sequence[Question],
    settings: QuizSettings,
    rng: random.Random,
) -> list[Question]:
    """Derives the student-visible ordering once per attempt.

    Question order follows the quiz-wide flag; option order follows each
    question's own flag. Options keep their ids and correctness flags, only
    their positions change.
    """
    display = shuffled(questions, rng) if settings.randomize_questions else list(questions)
    return [
        replace(question, options=tuple(shuffled(question.options, rng)))
        if question.randomize_options
        else question
        for question in display
    ]


def order_for_review(questions: Sequence[Question], question_order: Sequence[str]) -> list[Question]:
    """Restores the order a student saw; questions added later go last in canonical order."""
    by_id = {question.id: question for question in questions}
    ordered = [by_id[question_id] for question_id in question_order if question_id in by_id]
    seen = {question.id for question in ordered}
    ordered.extend(question for question in questions if question.id not in seen)
    return ordered
