from __future__ import annotations

import random
from datetime import timedelta

from app.attempts.service import AttemptService
from app.attempts.state_store import DEADLINES_KEY, AttemptStateStore, state_key
from app.attempts.types import AttemptKey, SubmitTrigger
from app.quizzes.types import QuizSettings
from app.workers.tasks import attempt_timeouts
from tests.attempts.attempt_fixtures import QUIZ_ID, FakeClock, FakeDataAccess, FakeRedis, _build_quiz, _student


def test_run_attempt_timeout_sweep_task_wrapper(monkeypatch) -> None:
    async def fake_async() -> dict[str, int]:
        return {"due": 2, "submitted": 1, "saved": 1, "skipped": 1}

    monkeypatch.setattr(attempt_timeouts, "run_attempt_timeout_sweep_async", fake_async)

    result = attempt_timeouts.run_attempt_timeout_sweep()
    assert result == {"due": 2, "submitted": 1, "saved": 1, "skipped": 1}


def test_sweep_is_registered_in_beat_schedule() -> None:
    entry = attempt_timeouts.celery_app.conf.beat_schedule["attempt-timeout-sweep"]

    assert entry["task"] == "app.workers.tasks.attempt_timeouts.run_attempt_timeout_sweep"
    assert entry["schedule"] >= 5


async def test_sweep_submits_expired_attempts_and_drops_stale_deadlines() -> None:
    clock = FakeClock()
    redis = FakeRedis()
    data_access = FakeDataAccess(_build_quiz(settings=QuizSettings(timer=1)))
    store = AttemptStateStore(redis, ttl_seconds=3600, grace_seconds=60)  # type: ignore[arg-type]
    service = AttemptService(
        data_access=data_access,
        store=store,
        rng_factory=lambda: random.Random(3),
        clock=clock,
    )

    await service.start(QUIZ_ID, _student("student-1"))
    await service.start(QUIZ_ID, _student("student-2"))
    await redis.delete(state_key(AttemptKey(QUIZ_ID, "student-2")))
    clock.advance(minutes=2)

    result = await attempt_timeouts.sweep_expired_attempts(
        service,
        store,
        now_utc=clock(),
        batch_size=10,
    )

    assert result == {"due": 2, "submitted": 1, "saved": 1, "skipped": 1}
    assert [record.student_id for record in data_access.attempts] == ["student-1"]
    assert data_access.attempts[0].submit_trigger is SubmitTrigger.TIMEOUT
    assert await redis.zcard(DEADLINES_KEY) == 0


async def test_sweep_leaves_running_attempts_alone() -> None:
    clock = FakeClock()
    redis = FakeRedis()
    data_access = FakeDataAccess(_build_quiz(settings=QuizSettings(timer=10)))
    store = AttemptStateStore(redis, ttl_seconds=3600, grace_seconds=60)  # type: ignore[arg-type]
    service = AttemptService(data_access=data_access, store=store, clock=clock)
    await service.start(QUIZ_ID, _student())
    clock.advance(minutes=3)

    result = await attempt_timeouts.sweep_expired_attempts(service, store, now_utc=clock(), batch_size=10)

    assert result == {"due": 0, "submitted": 0, "saved": 0, "skipped": 0}
    assert data_access.attempts == []
    assert await redis.zcard(DEADLINES_KEY) == 1
