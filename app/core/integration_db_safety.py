from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from sqlalchemy.engine import URL, make_url

LOCAL_DB_HOSTS = frozenset({"localhost", "127.0.0.1", "::1", "postgres", "quizdesk_postgres"})
# Child tables first; CASCADE covers anything added later.
QUIZDESK_TABLES = ("quiz_attempts", "quizzes", "users")


@dataclass(frozen=True, slots=True)
class IntegrationDbSafetyResult:
    is_safe: bool
    reason: str
    database_name: str
    host: str


def _require_postgres(url: URL) -> str | None:
    if url.get_backend_name() != "postgresql":
        return "Integration tests run only against PostgreSQL test databases."
    return None


def _require_test_name(url: URL) -> str | None:
    name = (url.database or "").strip()
    if not name:
        return "Database name is empty."
    if "test" not in name.lower():
        return "Database name must clearly indicate a test database (contain 'test')."
    return None


def _require_local_host(url: URL) -> str | None:
    if (url.host or "").strip().lower() not in LOCAL_DB_HOSTS:
        return "Host is not in allowed local integration-test hosts."
    return None


SAFETY_RULES: tuple[Callable[[URL], str | None], ...] = (
    _require_postgres,
    _require_test_name,
    _require_local_host,
)


def assess_integration_db_safety(database_url: str) -> IntegrationDbSafetyResult:
    url = make_url(database_url)
    reason = next((found for found in (rule(url) for rule in SAFETY_RULES) if found), None)
    return IntegrationDbSafetyResult(
        is_safe=reason is None,
        reason=reason or "ok",
        database_name=(url.database or "").strip(),
        host=(url.host or "").strip().lower(),
    )


def assert_safe_integration_db(database_url: str) -> None:
    result = assess_integration_db_safety(database_url)
    if not result.is_safe:
        raise RuntimeError(
            "Refusing to wipe quizdesk tables before integration tests.\n"
            f"Reason: {result.reason}\n"
            f"Target: name='{result.database_name}' host='{result.host}'\n"
            "Point DATABASE_URL at a local PostgreSQL test DB such as 'quizdesk_test'."
        )


def truncate_statement(tables: Sequence[str] = QUIZDESK_TABLES) -> str:
    if not tables:
        raise ValueError("at least one table is required")
    return f"TRUNCATE TABLE {', '.join(tables)} RESTART IDENTITY CASCADE"
