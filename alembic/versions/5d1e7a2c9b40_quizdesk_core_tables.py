"""quizdesk_core_tables

Revision ID: 5d1e7a2c9b40
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5d1e7a2c9b40"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("display_name", sa.Text(), nullable=True),
        sa.Column("student_number", sa.String(16), nullable=False),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("role IN ('INSTRUCTOR','STUDENT')", name="ck_users_role"),
        sa.UniqueConstraint("student_number", name="uq_users_student_number"),
    )
    op.create_index("idx_users_email", "users", ["email"])
    op.create_index("idx_users_created_at", "users", ["created_at"])

    op.create_table(
        "quizzes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("instructor_id", sa.String(128), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("questions", postgresql.JSONB(), nullable=False),
        sa.Column("settings", postgresql.JSONB(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("length(btrim(title)) > 0", name="ck_quizzes_title_not_blank"),
    )
    op.create_index("idx_quizzes_instructor_created", "quizzes", ["instructor_id", "created_at"])

    op.create_table(
        "quiz_attempts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("quiz_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("quiz_title", sa.Text(), nullable=False),
        sa.Column("student_id", sa.String(128), nullable=False),
        sa.Column("student_name", sa.Text(), nullable=False),
        sa.Column("student_email", sa.Text(), nullable=False),
        sa.Column("student_number", sa.String(16), nullable=False),
        sa.Column("answers", postgresql.JSONB(), nullable=False),
        sa.Column("question_order", postgresql.JSONB(), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("total_questions", sa.Integer(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("time_taken", sa.Integer(), nullable=False),
        sa.Column("settings", postgresql.JSONB(), nullable=False),
        sa.Column("submit_trigger", sa.String(16), nullable=False),
        sa.CheckConstraint("total_questions >= 0", name="ck_quiz_attempts_total_questions_non_negative"),
        sa.CheckConstraint("time_taken >= 0", name="ck_quiz_attempts_time_taken_non_negative"),
        sa.CheckConstraint("submit_trigger IN ('MANUAL','TIMEOUT')", name="ck_quiz_attempts_submit_trigger"),
    )
    op.create_index("idx_quiz_attempts_quiz_completed", "quiz_attempts", ["quiz_id", "completed_at"])
    op.create_index("idx_quiz_attempts_student_completed", "quiz_attempts", ["student_id", "completed_at"])
    op.create_index("idx_quiz_attempts_quiz_student", "quiz_attempts", ["quiz_id", "student_id"])


def downgrade() -> None:
    op.drop_index("idx_quiz_attempts_quiz_student", table_name="quiz_attempts")
    op.drop_index("idx_quiz_attempts_student_completed", table_name="quiz_attempts")
    op.drop_index("idx_quiz_attempts_quiz_completed", table_name="quiz_attempts")
    op.drop_table("quiz_attempts")

    op.drop_index("idx_quizzes_instructor_created", table_name="quizzes")
    op.drop_table("quizzes")

    op.drop_index("idx_users_created_at", table_name="users")
    op.drop_index("idx_users_email", table_name="users")
    op.drop_table("users")
