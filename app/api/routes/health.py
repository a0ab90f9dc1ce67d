from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.attempts.runtime import get_countdown_registry
from app.attempts.state_store import DEADLINES_KEY
from app.core.redis_client import get_redis
from app.db.session import SessionLocal
from app.workers.celery_app import celery_app

router = APIRouter(tags=["health"])
logger = structlog.get_logger(__name__)

Probe = Callable[[], Awaitable[dict[str, Any]]]


class ProbeFailed(Exception):
    """Dependency answered, but not the way a healthy one would. The message is safe to expose."""


async def _probe_database() -> dict[str, Any]:
    async with SessionLocal() as session:
        await session.execute(text("SELECT 1"))
    return {}


async def _probe_redis() -> dict[str, Any]:
    redis_client = get_redis()
    pong = await redis_client.ping()
    if pong is not True:
        raise ProbeFailed(f"unexpected redis ping response: {pong!r}")
    return {"timed_attempts": int(await redis_client.zcard(DEADLINES_KEY))}


def _ping_celery_workers() -> dict[str, Any]:
    inspector = celery_app.control.inspect(timeout=1.0)
    if inspector is None:
        raise ProbeFailed("celery inspector is unavailable")
    replies = inspector.ping() or {}
    if not replies:
        raise ProbeFailed("no celery workers responded to ping")
    return {"workers": len(replies)}


async def _probe_celery() -> dict[str, Any]:
    return await asyncio.to_thread(_ping_celery_workers)


PROBES: dict[str, Probe] = {
    "database": _probe_database,
    "redis": _probe_redis,
    "celery": _probe_celery,
}
# Celery only runs the timeout backstop; attempts are served without it.
READINESS_PROBES = ("database", "redis")


async def run_probe(name: str) -> dict[str, Any]:
    try:
        extra = await PROBES[name]()
    except ProbeFailed as exc:
        return {"status": "failed", "error": str(exc)}
    except Exception:
        # Raw driver errors can carry DSNs and passwords; only the probe name leaves the process.
        logger.warning("health_probe_failed", probe=name, exc_info=True)
        return {"status": "failed", "error": f"{name}_unavailable"}
    return {"status": "ok", **extra}


async def _run_probes(names: tuple[str, ...]) -> tuple[bool, dict[str, dict[str, Any]]]:
    results = await asyncio.gather(*(run_probe(name) for name in names))
    checks = dict(zip(names, results))
    return all(check["status"] == "ok" for check in results), checks


def _report(*, passed: bool, label: str, checks: dict[str, dict[str, Any]]) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_200_OK if passed else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": label, "checks": checks},
    )


@router.get("/live")
async def live() -> dict[str, Any]:
    return {"status": "live", "running_countdowns": len(get_countdown_registry())}


@router.get("/health")
async def health() -> JSONResponse:
    passed, checks = await _run_probes(tuple(PROBES))
    return _report(passed=passed, label="ok" if passed else "degraded", checks=checks)


@router.get("/ready")
async def ready() -> JSONResponse:
    passed, checks = await _run_probes(READINESS_PROBES)
    return _report(passed=passed, label="ready" if passed else "not_ready", checks=checks)
