from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Coroutine
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from redis.asyncio import Redis

from app.core.config import get_settings
from app.db.session import dispose_engine

ResultT = TypeVar("ResultT")


@asynccontextmanager
async def worker_redis() -> AsyncIterator[Redis]:
    """Redis client scoped to a single job; the API-side singleton is bound to another loop."""
    client = Redis.from_url(get_settings().redis_url, decode_responses=True)
    try:
        yield client
    finally:
        await client.aclose()


async def _with_job_scoped_pool(job: Coroutine[Any, Any, ResultT]) -> ResultT:
    # asyncpg connections cannot cross event loops, and every job gets a new loop.
    await dispose_engine()
    try:
        return await job
    finally:
        await dispose_engine()


def run_in_fresh_loop(job: Coroutine[Any, Any, ResultT]) -> ResultT:
    return asyncio.run(_with_job_scoped_pool(job))
