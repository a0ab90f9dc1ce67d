from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"
    __table_args__ = (
        CheckConstraint("total_questions >= 0", name="ck_quiz_attempts_total_questions_non_negative"),
        CheckConstraint("time_taken >= 0", name="ck_quiz_attempts_time_taken_non_negative"),
        CheckConstraint(
            "submit_trigger IN ('MANUAL','TIMEOUT')",
            name="ck_quiz_attempts_submit_trigger",
        ),
        Index("idx_quiz_attempts_quiz_completed", "quiz_id", "completed_at"),
        Index("idx_quiz_attempts_student_completed", "student_id", "completed_at"),
        Index("idx_quiz_attempts_quiz_student", "quiz_id", "student_id"),
    )

    # quiz_id is a plain reference: deleting a quiz keeps its attempts.
    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    quiz_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), nullable=False)
    quiz_title: Mapped[str] = mapped_column(Text, nullable=False)
    student_id: Mapped[str] = mapped_column(String(128), nullable=False)
    student_name: Mapped[str] = mapped_column(Text, nullable=False)
    student_email: Mapped[str] = mapped_column(Text, nullable=False)
    student_number: Mapped[str] = mapped_column(String(16), nullable=False)
    answers: Mapped[dict[str, str]] = mapped_column(JSONB, nullable=False)
    question_order: Mapped[list[str]] = mapped_column(JSONB, nullable=False)
    score: Mapped[float] = mapped_column(Float, nullable=False)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    time_taken: Mapped[int] = mapped_column(Integer, nullable=False)
    settings: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    submit_trigger: Mapped[str] = mapped_column(String(16), nullable=False)
