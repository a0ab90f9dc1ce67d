from app.db.models.base import Base
from app.db.models.quiz_attempts import QuizAttempt
from app.db.models.quizzes import QuizDocument
from app.db.models.users import User

__all__ = [
    "Base",
    "QuizAttempt",
    "QuizDocument",
    "User",
]
