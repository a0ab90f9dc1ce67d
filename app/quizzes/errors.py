from __future__ import annotations


class QuizError(Exception):
    pass


class QuizNotFoundError(QuizError):
    pass


class QuizAccessError(QuizError):
    pass


class QuizEditError(QuizError):
    pass


class QuizValidationError(QuizError):
    def __init__(self, issues: list[str]) -> None:
        super().__init__("; ".join(issues))
        self.issues = issues
