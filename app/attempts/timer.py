from __future__ import annotations

import asyncio
import math
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone

import structlog

from app.attempts.types import AttemptKey

logger = structlog.get_logger(__name__)

ExpiryCallback = Callable[[], Awaitable[object]]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def deadline_for(started_at: datetime, timer_minutes: int) -> datetime | None:
    if timer_minutes <= 0:
        return None
    return started_at + timedelta(minutes=timer_minutes)


def remaining_seconds(deadline_at: datetime, now_utc: datetime) -> int:
    return max(0, math.ceil((deadline_at - now_utc).total_seconds()))


class AttemptCountdown:
    """Ticks until the deadline, then awaits the expiry callback exactly once."""

    def __init__(
        self,
        *,
        deadline_at: datetime,
        on_expire: ExpiryCallback,
        interval_seconds: float = 1.0,
        clock: Clock = utc_now,
    ) -> None:
        self.deadline_at = deadline_at
        self._on_expire = on_expire
        self._interval_seconds = interval_seconds
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self.fired = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task[None]:
        if self._task is None:
            self._task = asyncio.create_task(self._run())
        return self._task

    def cancel(self) -> None:
        # Once fired, the task is running the expiry callback itself and must finish it.
        if self._task is not None and not self._task.done() and not self.fired:
            self._task.cancel()

    async def wait(self) -> None:
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while remaining_seconds(self.deadline_at, self._clock()) > 0:
            await asyncio.sleep(self._interval_seconds)
        self.fired = True
        try:
            await self._on_expire()
        except Exception:
            logger.exception("attempt_countdown_expire_failed", deadline_at=self.deadline_at.isoformat())


class CountdownRegistry:
    """One running countdown per attempt key within this process."""

    def __init__(self, *, interval_seconds: float = 1.0, clock: Clock = utc_now) -> None:
        self._interval_seconds = interval_seconds
        self._clock = clock
        self._countdowns: dict[AttemptKey, AttemptCountdown] = {}

    def __contains__(self, key: AttemptKey) -> bool:
        countdown = self._countdowns.get(key)
        return countdown is not None and countdown.running

    def __len__(self) -> int:
        return sum(1 for countdown in self._countdowns.values() if countdown.running)

    def schedule(self, key: AttemptKey, *, deadline_at: datetime, on_expire: ExpiryCallback) -> AttemptCountdown:
        existing = self._countdowns.get(key)
        if existing is not None and existing.running and existing.deadline_at == deadline_at:
            return existing
        if existing is not None:
            existing.cancel()

        countdown = AttemptCountdown(
            deadline_at=deadline_at,
            on_expire=on_expire,
            interval_seconds=self._interval_seconds,
            clock=self._clock,
        )
        self._countdowns[key] = countdown
        task = countdown.start()
        task.add_done_callback(lambda _task: self._forget(key, countdown))
        return countdown

    def cancel(self, key: AttemptKey) -> bool:
        countdown = self._countdowns.pop(key, None)
        if countdown is None:
            return False
        countdown.cancel()
        return True

    async def shutdown(self) -> None:
        countdowns = list(self._countdowns.values())
        self._countdowns.clear()
        for countdown in countdowns:
            countdown.cancel()
        for countdown in countdowns:
            await countdown.wait()

    def _forget(self, key: AttemptKey, countdown: AttemptCountdown) -> None:
        if self._countdowns.get(key) is countdown:
            del self._countdowns[key]
