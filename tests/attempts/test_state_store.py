from __future__ import annotations

from datetime import timedelta

from app.attempts.state_machine import AttemptSession
from app.attempts.state_store import DEADLINES_KEY, AttemptStateStore, state_key
from app.attempts.types import AttemptKey
from app.quizzes.types import QuizSettings
from tests.attempts.attempt_fixtures import STARTED_AT, FakeRedis, _build_quiz

TTL_SECONDS = 3600
GRACE_SECONDS = 120


def _started_session(*, student_id: str = "student-1", timer: int = 0) -> AttemptSession:
    quiz = _build_quiz(settings=QuizSettings(timer=timer))
    session = AttemptSession(
        quiz_id=quiz.id,
        student_id=student_id,
        quiz_title=quiz.title,
        questions=quiz.questions,
        settings=quiz.settings,
    )
    session.start(STARTED_AT)
    return session


def _store(redis: FakeRedis) -> AttemptStateStore:
    return AttemptStateStore(redis, ttl_seconds=TTL_SECONDS, grace_seconds=GRACE_SECONDS)  # type: ignore[arg-type]


def test_state_key_layout() -> None:
    assert state_key(AttemptKey("quiz-1", "student-1")) == "quiz_attempt:quiz-1:student-1"


async def test_untimed_state_uses_default_ttl_and_no_deadline_index() -> None:
    redis = FakeRedis()
    session = _started_session()

    await _store(redis).save(session, now_utc=STARTED_AT)

    assert redis.expiry[state_key(session.key)] == TTL_SECONDS
    assert await redis.zcard(DEADLINES_KEY) == 0


async def test_timed_state_expires_after_deadline_plus_grace() -> None:
    redis = FakeRedis()
    session = _started_session(timer=10)

    await _store(redis).save(session, now_utc=STARTED_AT + timedelta(minutes=4))

    assert redis.expiry[state_key(session.key)] == 6 * 60 + GRACE_SECONDS
    assert redis.sorted_sets[DEADLINES_KEY] == {session.key.as_member(): session.deadline_at.timestamp()}


async def test_load_round_trips_session() -> None:
    redis = FakeRedis()
    store = _store(redis)
    session = _started_session(timer=10)
    session.record_answer("q1", "a")
    await store.save(session, now_utc=STARTED_AT)

    loaded = await store.load(session.key)

    assert loaded is not None
    assert loaded.answers == {"q1": "a"}
    assert loaded.deadline_at == session.deadline_at


async def test_claim_hands_state_to_a_single_caller() -> None:
    redis = FakeRedis()
    store = _store(redis)
    session = _started_session(timer=10)
    await store.save(session, now_utc=STARTED_AT)

    first = await store.claim(session.key)
    second = await store.claim(session.key)

    assert first is not None
    assert second is None
    assert await redis.zcard(DEADLINES_KEY) == 0


async def test_corrupted_state_is_treated_as_missing() -> None:
    redis = FakeRedis()
    key = AttemptKey("quiz-1", "student-1")
    await redis.set(state_key(key), "{not json")

    assert await _store(redis).load(key) is None


async def test_due_keys_returns_expired_deadlines_in_order() -> None:
    redis = FakeRedis()
    store = _store(redis)
    for student_id, timer in (("late", 1), ("later", 2), ("future", 30)):
        await store.save(_started_session(student_id=student_id, timer=timer), now_utc=STARTED_AT)

    due = await store.due_keys(now_utc=STARTED_AT + timedelta(minutes=5), limit=10)
    limited = await store.due_keys(now_utc=STARTED_AT + timedelta(minutes=5), limit=1)

    assert [key.student_id for key in due] == ["late", "later"]
    assert [key.student_id for key in limited] == ["late"]


async def test_clear_and_forget_deadline() -> None:
    redis = FakeRedis()
    store = _store(redis)
    session = _started_session(timer=10)
    await store.save(session, now_utc=STARTED_AT)

    await store.forget_deadline(session.key)
    assert await redis.zcard(DEADLINES_KEY) == 0
    assert await store.load(session.key) is not None

    await store.clear(session.key)
    assert await store.load(session.key) is None


async def test_update_skips_claimed_state() -> None:
    redis = FakeRedis()
    store = _store(redis)
    session = _started_session(timer=10)
    await store.save(session, now_utc=STARTED_AT)
    session.record_answer("q1", "a")

    assert await store.update(session, now_utc=STARTED_AT) is True
    assert (await store.load(session.key)).answers == {"q1": "a"}  # type: ignore[union-attr]

    await store.claim(session.key)

    assert await store.update(session, now_utc=STARTED_AT) is False
    assert await store.load(session.key) is None
    assert await redis.zcard(DEADLINES_KEY) == 0
