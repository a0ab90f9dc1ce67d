from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime

import structlog

from app.attempts.data_access import QuizDataAccess
from app.attempts.errors import (
    AttemptAccessError,
    AttemptNotFoundError,
    AttemptNotInProgressError,
    AttemptPersistenceError,
)
from app.attempts.gating import ensure_attempt_allowed
from app.attempts.randomizer import order_for_review, randomize_for_display
from app.attempts.scoring import score_answers
from app.attempts.state_machine import AttemptSession
from app.attempts.state_store import AttemptStateStore
from app.attempts.timer import Clock, CountdownRegistry, utc_now
from app.attempts.types import (
    AnswerResult,
    AttemptIntro,
    AttemptKey,
    AttemptOpenResult,
    AttemptPhase,
    AttemptProgress,
    AttemptRecord,
    AttemptReview,
    SubmitResult,
    SubmitTrigger,
    UserProfile,
)
from app.core.student_numbers import UNKNOWN_STUDENT_NUMBER
from app.quizzes.errors import QuizNotFoundError
from app.quizzes.types import Quiz
from app.services.identity import Viewer

logger = structlog.get_logger(__name__)

UNKNOWN_STUDENT_NAME = "Unknown"
SUBMITTED_MESSAGE = "Quiz submitted!"
TIMEOUT_MESSAGE = "Time's up! Quiz submitted automatically."
SAVE_FAILED_MESSAGE = "Failed to save attempt."


def build_intro(quiz: Quiz) -> AttemptIntro:
    return AttemptIntro(
        quiz_id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        question_count=len(quiz.questions),
        timer_minutes=quiz.settings.timer,
        points_per_question=quiz.settings.effective_points_per_question,
        negative_marking=quiz.settings.negative_marking,
        negative_marking_points=quiz.settings.negative_marking_points,
        locked_answers=quiz.settings.locked_answers,
    )


def build_progress(session: AttemptSession, now_utc: datetime) -> AttemptProgress:
    return AttemptProgress(
        quiz_id=session.quiz_id,
        title=session.quiz_title,
        phase=session.phase,
        questions=session.questions,
        answers=dict(session.answers),
        locked_answers=session.settings.locked_answers,
        remaining_seconds=session.remaining_seconds(now_utc),
        started_at=session.started_at,
    )


def submit_message(trigger: SubmitTrigger, *, saved: bool) -> str:
    if not saved:
        return SAVE_FAILED_MESSAGE
    if trigger is SubmitTrigger.TIMEOUT:
        return TIMEOUT_MESSAGE
    return SUBMITTED_MESSAGE


class AttemptService:
    """Runs a student's attempt from intro to saved result.

    Working state lives in the state store between requests; the saved
    attempt is written once, when the state is claimed for evaluation.
    """

    def __init__(
        self,
        *,
        data_access: QuizDataAccess,
        store: AttemptStateStore,
        countdowns: CountdownRegistry | None = None,
        rng_factory: Callable[[], random.Random] = random.Random,
        clock: Clock = utc_now,
    ) -> None:
        self._data_access = data_access
        self._store = store
        self._countdowns = countdowns
        self._rng_factory = rng_factory
        self._clock = clock

    async def _load_quiz(self, quiz_id: str) -> Quiz:
        quiz = await self._data_access.load_quiz(quiz_id)
        if quiz is None:
            raise QuizNotFoundError(f"quiz {quiz_id} not found")
        return quiz

    async def _ensure_allowed(self, quiz: Quiz, viewer: Viewer) -> None:
        existing = await self._data_access.load_existing_attempts(quiz.id, viewer.user_id)
        ensure_attempt_allowed(quiz, existing)

    def _schedule_countdown(self, session: AttemptSession) -> None:
        if self._countdowns is None or session.deadline_at is None:
            return
        key = session.key
        self._countdowns.schedule(
            key,
            deadline_at=session.deadline_at,
            on_expire=lambda: self.expire(key),
        )

    async def _load_running(self, key: AttemptKey, now_utc: datetime) -> tuple[AttemptSession | None, SubmitResult | None]:
        """Returns the live session, or the timeout result when its deadline already passed."""
        session = await self._store.load(key)
        if session is None or session.phase is not AttemptPhase.IN_PROGRESS:
            return None, None
        if session.is_expired(now_utc):
            return None, await self._claim_and_finalize(key, SubmitTrigger.TIMEOUT, now_utc)
        return session, None

    async def open(self, quiz_id: str, viewer: Viewer) -> AttemptOpenResult:
        if not viewer.is_student:
            raise AttemptAccessError("student role required")
        now_utc = self._clock()
        quiz = await self._load_quiz(quiz_id)
        intro = build_intro(quiz)

        session, timed_out = await self._load_running(AttemptKey(quiz.id, viewer.user_id), now_utc)
        if timed_out is not None:
            return AttemptOpenResult(intro=intro, submitted=timed_out)
        if session is not None:
            self._schedule_countdown(session)
            return AttemptOpenResult(intro=intro, progress=build_progress(session, now_utc))

        await self._ensure_allowed(quiz, viewer)
        return AttemptOpenResult(intro=intro)

    async def start(self, quiz_id: str, viewer: Viewer) -> AttemptProgress:
        if not viewer.is_student:
            raise AttemptAccessError("student role required")
        now_utc = self._clock()
        quiz = await self._load_quiz(quiz_id)
        key = AttemptKey(quiz.id, viewer.user_id)

        # A second tab resumes the running attempt instead of reshuffling it.
        session, timed_out = await self._load_running(key, now_utc)
        if timed_out is not None:
            raise AttemptNotInProgressError(TIMEOUT_MESSAGE)
        if session is not None:
            self._schedule_countdown(session)
            return build_progress(session, now_utc)

        await self._ensure_allowed(quiz, viewer)

        session = AttemptSession(
            quiz_id=quiz.id,
            student_id=viewer.user_id,
            quiz_title=quiz.title,
            questions=tuple(randomize_for_display(quiz.questions, quiz.settings, self._rng_factory())),
            settings=quiz.settings,
            student_name=viewer.display_name,
            student_email=viewer.email,
        )
        session.start(now_utc)
        await self._store.save(session, now_utc=now_utc)
        self._schedule_countdown(session)
        logger.info(
            "attempt_started",
            quiz_id=quiz.id,
            student_id=viewer.user_id,
            question_count=len(session.questions),
            timer_minutes=quiz.settings.timer,
        )
        return build_progress(session, now_utc)

    async def record_answer(
        self,
        quiz_id: str,
        viewer: Viewer,
        *,
        question_id: str,
        option_id: str,
    ) -> AnswerResult:
        now_utc = self._clock()
        key = AttemptKey(quiz_id, viewer.user_id)
        session, timed_out = await self._load_running(key, now_utc)
        if timed_out is not None:
            raise AttemptNotInProgressError(TIMEOUT_MESSAGE)
        if session is None:
            raise AttemptNotInProgressError("no attempt in progress")

        accepted = session.record_answer(question_id, option_id)
        if accepted:
            if not await self._store.update(session, now_utc=now_utc):
                # Submitted from another request or the countdown while this answer was in flight.
                raise AttemptNotInProgressError("no attempt in progress")
        else:
            logger.info(
                "attempt_answer_locked",
                quiz_id=quiz_id,
                student_id=viewer.user_id,
                question_id=question_id,
            )
        return AnswerResult(accepted=accepted, progress=build_progress(session, now_utc))

    async def submit(self, quiz_id: str, viewer: Viewer) -> SubmitResult:
        now_utc = self._clock()
        result = await self._claim_and_finalize(
            AttemptKey(quiz_id, viewer.user_id),
            SubmitTrigger.MANUAL,
            now_utc,
        )
        if result is None:
            raise AttemptNotInProgressError("no attempt in progress")
        return result

    async def expire(self, key: AttemptKey) -> SubmitResult | None:
        """Timeout submission; None when the attempt is gone or not yet due."""
        now_utc = self._clock()
        session = await self._store.load(key)
        if session is None or not session.is_expired(now_utc):
            return None
        return await self._claim_and_finalize(key, SubmitTrigger.TIMEOUT, now_utc)

    async def _claim_and_finalize(
        self,
        key: AttemptKey,
        trigger: SubmitTrigger,
        now_utc: datetime,
    ) -> SubmitResult | None:
        session = await self._store.claim(key)
        if self._countdowns is not None:
            self._countdowns.cancel(key)
        if session is None or session.phase is not AttemptPhase.IN_PROGRESS:
            return None

        if session.is_expired(now_utc) and session.deadline_at is not None:
            # Late submissions are recorded as ending at the deadline.
            trigger = SubmitTrigger.TIMEOUT
            now_utc = min(now_utc, session.deadline_at)
        session.submit(now_utc, trigger)
        return await self._finalize(session, trigger)

    async def _load_profile(self, student_id: str) -> UserProfile | None:
        try:
            return await self._data_access.load_user_profile(student_id)
        except AttemptPersistenceError:
            logger.warning("attempt_profile_lookup_failed", student_id=student_id)
            return None

    async def _finalize(self, session: AttemptSession, trigger: SubmitTrigger) -> SubmitResult:
        breakdown = score_answers(session.questions, session.answers, session.settings)
        profile = await self._load_profile(session.student_id)
        record = AttemptRecord(
            quiz_id=session.quiz_id,
            quiz_title=session.quiz_title,
            student_id=session.student_id,
            student_name=(profile.display_name if profile else None) or session.student_name or UNKNOWN_STUDENT_NAME,
            student_email=(profile.email if profile else None) or session.student_email or "",
            student_number=(profile.student_number if profile else None) or UNKNOWN_STUDENT_NUMBER,
            answers=dict(session.answers),
            question_order=session.question_order,
            score=breakdown.score,
            total_questions=breakdown.total_questions,
            completed_at=session.submitted_at or self._clock(),
            time_taken=session.elapsed_seconds,
            settings=session.settings,
            submit_trigger=trigger,
        )

        saved = True
        try:
            attempt_id = await self._data_access.save_attempt(record)
        except AttemptPersistenceError:
            saved = False
            logger.error(
                "attempt_save_failed",
                quiz_id=session.quiz_id,
                student_id=session.student_id,
                trigger=trigger.value,
            )
        else:
            record = replace(record, attempt_id=attempt_id)
            logger.info(
                "attempt_submitted",
                attempt_id=attempt_id,
                quiz_id=session.quiz_id,
                student_id=session.student_id,
                trigger=trigger.value,
                score=breakdown.score,
                total_questions=breakdown.total_questions,
                time_taken=record.time_taken,
            )

        return SubmitResult(
            record=record,
            breakdown=breakdown,
            questions=session.questions,
            trigger=trigger,
            saved=saved,
            message=submit_message(trigger, saved=saved),
            allow_retakes=session.settings.allow_retakes,
        )

    async def review(self, attempt_id: str, viewer: Viewer) -> AttemptReview:
        record = await self._data_access.load_attempt(attempt_id)
        if record is None:
            raise AttemptNotFoundError(f"attempt {attempt_id} not found")
        quiz = await self._data_access.load_quiz(record.quiz_id)

        is_student_owner = record.student_id == viewer.user_id
        is_quiz_owner = quiz is not None and quiz.is_owned_by(viewer.user_id)
        if not (is_student_owner or is_quiz_owner):
            raise AttemptAccessError("Unauthorized")

        questions = tuple(order_for_review(quiz.questions, record.question_order)) if quiz else ()
        return AttemptReview(
            record=record,
            breakdown=score_answers(questions, record.answers, record.settings),
            questions=questions,
            quiz_available=quiz is not None,
        )

    async def list_for_student(self, viewer: Viewer) -> list[AttemptRecord]:
        return await self._data_access.list_attempts_for_student(viewer.user_id)