from __future__ import annotations

import pytest
from sqlalchemy import text

from app.core.integration_db_safety import assert_safe_integration_db, truncate_statement
from app.db.session import dispose_engine, engine


@pytest.fixture(scope="session", autouse=True)
def refuse_shared_databases() -> None:
    assert_safe_integration_db(str(engine.url))


@pytest.fixture(autouse=True)
async def empty_quizdesk_tables() -> None:
    # Each test runs on its own event loop; pooled asyncpg connections must not leak across.
    await dispose_engine()
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:  # pragma: no cover - environment-dependent
        pytest.skip(f"Postgres is required for integration tests: {exc}")

    async with engine.begin() as conn:
        await conn.execute(text(truncate_statement()))

    yield

    await dispose_engine()
