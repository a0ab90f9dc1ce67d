from __future__ import annotations

from datetime import datetime, timezone

import structlog
from app.attempts.data_access import SqlQuizDataAccess
from app.attempts.service import AttemptService
from app.attempts.state_store import AttemptStateStore
from app.core.config import get_settings
from app.db.session import SessionLocal
from app.workers.job_runtime import run_in_fresh_loop, worker_redis
from app.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)
settings = get_settings()

SWEEP_INTERVAL_SECONDS = max(5, int(settings.attempt_timeout_sweep_seconds))
SWEEP_BATCH_SIZE = max(1, int(settings.attempt_timeout_sweep_batch_size))


async def sweep_expired_attempts(
    service: AttemptService,
    store: AttemptStateStore,
    *,
    now_utc: datetime,
    batch_size: int,
) -> dict[str, int]:
    due_keys = await store.due_keys(now_utc=now_utc, limit=batch_size)
    submitted = 0
    saved = 0
    skipped = 0
    for key in due_keys:
        result = await service.expire(key)
        if result is None:
            if await store.load(key) is None:
                await store.forget_deadline(key)
            skipped += 1
            continue
        submitted += 1
        if result.saved:
            saved += 1
    return {
        "due": len(due_keys),
        "submitted": submitted,
        "saved": saved,
        "skipped": skipped,
    }


async def run_attempt_timeout_sweep_async(*, batch_size: int = SWEEP_BATCH_SIZE) -> dict[str, int]:
    now_utc = datetime.now(timezone.utc)
    async with worker_redis() as redis_client:
        store = AttemptStateStore(
            redis_client,
            ttl_seconds=settings.attempt_state_ttl_seconds,
            grace_seconds=settings.attempt_state_grace_seconds,
        )
        service = AttemptService(data_access=SqlQuizDataAccess(SessionLocal), store=store)
        result = await sweep_expired_attempts(
            service,
            store,
            now_utc=now_utc,
            batch_size=max(1, int(batch_size)),
        )

    logger.info("attempt_timeout_sweep_finished", **result)
    return result


@celery_app.task(name="app.workers.tasks.attempt_timeouts.run_attempt_timeout_sweep")
def run_attempt_timeout_sweep() -> dict[str, int]:
    return run_in_fresh_loop(run_attempt_timeout_sweep_async())


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
celery_app.conf.beat_schedule.update(
    {
        "attempt-timeout-sweep": {
            "task": "app.workers.tasks.attempt_timeouts.run_attempt_timeout_sweep",
            "schedule": float(SWEEP_INTERVAL_SECONDS),
            "options": {"queue": "q_normal"},
        },
    }
)
