from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI

from app.api.routes.attempts import router as attempts_router
from app.api.routes.health import router as health_router
from app.api.routes.profile import router as profile_router
from app.api.routes.quizzes import router as quizzes_router
from app.attempts.runtime import get_countdown_registry
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.core.redis_client import close_redis
from app.db.session import dispose_engine

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    yield
    countdowns = get_countdown_registry()
    running = len(countdowns)
    await countdowns.shutdown()
    await close_redis()
    await dispose_engine()
    # Attempts still running are submitted by the timeout sweep.
    logger.info("app_shutdown", cancelled_countdowns=running)


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, app_env=settings.app_env)

    app = FastAPI(
        title="Quizdesk API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.include_router(health_router)
    app.include_router(profile_router)
    app.include_router(quizzes_router)
    app.include_router(attempts_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
