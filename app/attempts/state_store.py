"""Redis-backed working state of in-progress attempts.

One JSON document per (quiz, student) under `quiz_attempt:{quiz_id}:{student_id}`.
Timed attempts are also indexed by deadline in a sorted set so the periodic
sweep can submit attempts whose countdown died with its process.
"""

from __future__ import annotations

import json
from datetime import datetime

import structlog
from redis.asyncio import Redis

from app.attempts.state_machine import AttemptSession
from app.attempts.timer import remaining_seconds
from app.attempts.types import AttemptKey

logger = structlog.get_logger(__name__)

STATE_KEY_PREFIX = "quiz_attempt"
DEADLINES_KEY = "quiz_attempt_deadlines"


def state_key(key: AttemptKey) -> str:
    return f"{STATE_KEY_PREFIX}:{key.quiz_id}:{key.student_id}"


class AttemptStateStore:
    def __init__(self, redis: Redis, *, ttl_seconds: int, grace_seconds: int) -> None:
        self._redis = redis
        self._ttl_seconds = ttl_seconds
        self._grace_seconds = grace_seconds

    def ttl_for(self, session: AttemptSession, now_utc: datetime) -> int:
        if session.deadline_at is None:
            return self._ttl_seconds
        return remaining_seconds(session.deadline_at, now_utc) + self._grace_seconds

    async def save(self, session: AttemptSession, *, now_utc: datetime) -> None:
        payload = json.dumps(session.to_state(), separators=(",", ":"))
        await self._redis.set(state_key(session.key), payload, ex=max(1, self.ttl_for(session, now_utc)))
        if session.deadline_at is not None:
            await self._redis.zadd(DEADLINES_KEY, {session.key.as_member(): session.deadline_at.timestamp()})

    async def update(self, session: AttemptSession, *, now_utc: datetime) -> bool:
        """Rewrites a running attempt only while its state still exists; False once it was claimed."""
        payload = json.dumps(session.to_state(), separators=(",", ":"))
        written = await self._redis.set(
            state_key(session.key),
            payload,
            ex=max(1, self.ttl_for(session, now_utc)),
            xx=True,
        )
        if not written:
            return False
        if session.deadline_at is not None:
            await self._redis.zadd(DEADLINES_KEY, {session.key.as_member(): session.deadline_at.timestamp()})
        return True

    async def load(self, key: AttemptKey) -> AttemptSession | None:
        return self._decode(key, await self._redis.get(state_key(key)))

    async def claim(self, key: AttemptKey) -> AttemptSession | None:
        """Removes and returns the state; concurrent claimers get None."""
        raw = await self._redis.getdel(state_key(key))
        await self._redis.zrem(DEADLINES_KEY, key.as_member())
        return self._decode(key, raw)

    async def clear(self, key: AttemptKey) -> None:
        await self._redis.delete(state_key(key))
        await self._redis.zrem(DEADLINES_KEY, key.as_member())

    async def forget_deadline(self, key: AttemptKey) -> None:
        await self._redis.zrem(DEADLINES_KEY, key.as_member())

    async def due_keys(self, *, now_utc: datetime, limit: int) -> list[AttemptKey]:
        members = await self._redis.zrangebyscore(
            DEADLINES_KEY,
            min="-inf",
            max=now_utc.timestamp(),
            start=0,
            num=limit,
        )
        return [AttemptKey.from_member(_as_text(member)) for member in members]

    def _decode(self, key: AttemptKey, raw: str | bytes | None) -> AttemptSession | None:
        if raw is None:
            return None
        try:
            return AttemptSession.from_state(json.loads(raw))
        except (KeyError, TypeError, ValueError):
            logger.warning(
                "attempt_state_corrupted",
                quiz_id=key.quiz_id,
                student_id=key.student_id,
            )
            return None


def _as_text(value: str | bytes) -> str:
    return value.decode() if isinstance(value, bytes) else value
