from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.quizzes import QuizDocument
from app.db.repo.quizzes_repo import QuizzesRepo
from app.quizzes.errors import QuizAccessError, QuizNotFoundError
from app.quizzes.types import Question, Quiz, QuizDraft, QuizSettings
from app.quizzes.validation import QuizValidationReport, prepare_quiz_for_save
from app.services.identity import Viewer

logger = structlog.get_logger(__name__)

QuizEdit = Callable[[QuizDraft], QuizDraft]


def parse_quiz_id(raw: str | UUID) -> UUID:
    if isinstance(raw, UUID):
        return raw
    try:
        return UUID(str(raw))
    except ValueError as exc:
        raise QuizNotFoundError(f"quiz {raw!r} not found") from exc


def quiz_from_row(row: QuizDocument) -> Quiz:
    return Quiz(
        id=str(row.id),
        instructor_id=row.instructor_id,
        title=row.title,
        description=row.description or "",
        questions=tuple(Question.from_document(question) for question in row.questions or ()),
        settings=QuizSettings.from_document(row.settings),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _write_draft(row: QuizDocument, draft: QuizDraft) -> None:
    row.title = draft.title.strip()
    row.description = draft.description
    row.questions = [question.to_document() for question in draft.questions]
    row.settings = draft.settings.to_document()


def _require_instructor(viewer: Viewer) -> None:
    if not viewer.is_instructor:
        raise QuizAccessError("instructor role required")


class QuizAuthoringService:
    @staticmethod
    async def _get_owned_row(
        session: AsyncSession,
        *,
        viewer: Viewer,
        quiz_id: str | UUID,
        for_update: bool = False,
    ) -> QuizDocument:
        _require_instructor(viewer)
        parsed_id = parse_quiz_id(quiz_id)
        if for_update:
            row = await QuizzesRepo.get_by_id_for_update(session, parsed_id)
        else:
            row = await QuizzesRepo.get_by_id(session, parsed_id)
        if row is None:
            raise QuizNotFoundError(f"quiz {quiz_id} not found")
        if row.instructor_id != viewer.user_id:
            raise QuizAccessError("Unauthorized")
        return row

    @staticmethod
    async def create_quiz(
        session: AsyncSession,
        *,
        viewer: Viewer,
        draft: QuizDraft,
        now_utc: datetime | None = None,
    ) -> tuple[Quiz, QuizValidationReport]:
        _require_instructor(viewer)
        now_utc = now_utc or datetime.now(timezone.utc)
        normalized, report = prepare_quiz_for_save(draft)

        row = QuizDocument(
            id=uuid4(),
            instructor_id=viewer.user_id,
            created_at=now_utc,
            updated_at=now_utc,
        )
        _write_draft(row, normalized)
        await QuizzesRepo.create(session, quiz=row)
        logger.info(
            "quiz_created",
            quiz_id=str(row.id),
            instructor_id=viewer.user_id,
            question_count=len(normalized.questions),
            warnings=[issue.code for issue in report.warnings],
        )
        return quiz_from_row(row), report

    @staticmethod
    async def list_quizzes(session: AsyncSession, *, viewer: Viewer) -> list[Quiz]:
        _require_instructor(viewer)
        rows = await QuizzesRepo.list_for_instructor(session, instructor_id=viewer.user_id)
        return [quiz_from_row(row) for row in rows]

    @staticmethod
    async def get_quiz(session: AsyncSession, *, viewer: Viewer, quiz_id: str | UUID) -> Quiz:
        row = await QuizAuthoringService._get_owned_row(session, viewer=viewer, quiz_id=quiz_id)
        return quiz_from_row(row)

    @staticmethod
    async def update_quiz(
        session: AsyncSession,
        *,
        viewer: Viewer,
        quiz_id: str | UUID,
        draft: QuizDraft,
        now_utc: datetime | None = None,
    ) -> tuple[Quiz, QuizValidationReport]:
        row = await QuizAuthoringService._get_owned_row(
            session,
            viewer=viewer,
            quiz_id=quiz_id,
            for_update=True,
        )
        normalized, report = prepare_quiz_for_save(draft)
        _write_draft(row, normalized)
        row.updated_at = now_utc or datetime.now(timezone.utc)
        logger.info(
            "quiz_updated",
            quiz_id=str(row.id),
            question_count=len(normalized.questions),
            warnings=[issue.code for issue in report.warnings],
        )
        return quiz_from_row(row), report

    @staticmethod
    async def apply_edits(
        session: AsyncSession,
        *,
        viewer: Viewer,
        quiz_id: str | UUID,
        edits: Sequence[QuizEdit],
        now_utc: datetime | None = None,
    ) -> tuple[Quiz, QuizValidationReport]:
        """Runs the edits in order on the stored draft and saves only the final result."""
        row = await QuizAuthoringService._get_owned_row(
            session,
            viewer=viewer,
            quiz_id=quiz_id,
            for_update=True,
        )
        draft = quiz_from_row(row).to_draft()
        for edit in edits:
            draft = edit(draft)

        normalized, report = prepare_quiz_for_save(draft)
        _write_draft(row, normalized)
        row.updated_at = now_utc or datetime.now(timezone.utc)
        logger.info("quiz_edited", quiz_id=str(row.id), edits=len(edits))
        return quiz_from_row(row), report

    @staticmethod
    async def delete_quiz(session: AsyncSession, *, viewer: Viewer, quiz_id: str | UUID) -> None:
        row = await QuizAuthoringService._get_owned_row(
            session,
            viewer=viewer,
            quiz_id=quiz_id,
            for_update=True,
        )
        await QuizzesRepo.delete_by_id(session, row.id)
        logger.info("quiz_deleted", quiz_id=str(row.id), instructor_id=viewer.user_id)
