from __future__ import annotations

from functools import lru_cache

from app.attempts.data_access import SqlQuizDataAccess
from app.attempts.service import AttemptService
from app.attempts.state_store import AttemptStateStore
from app.attempts.timer import CountdownRegistry
from app.core.config import get_settings
from app.core.redis_client import get_redis
from app.db.session import SessionLocal


def build_state_store() -> AttemptStateStore:
    settings = get_settings()
    return AttemptStateStore(
        get_redis(),
        ttl_seconds=settings.attempt_state_ttl_seconds,
        grace_seconds=settings.attempt_state_grace_seconds,
    )


@lru_cache(maxsize=1)
def get_countdown_registry() -> CountdownRegistry:
    return CountdownRegistry(interval_seconds=get_settings().attempt_countdown_interval_seconds)


def build_attempt_service(*, countdowns: CountdownRegistry | None = None) -> AttemptService:
    return AttemptService(
        data_access=SqlQuizDataAccess(SessionLocal),
        store=build_state_store(),
        countdowns=countdowns,
    )


@lru_cache(maxsize=1)
def get_attempt_service() -> AttemptService:
    return build_attempt_service(countdowns=get_countdown_registry())
