import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

SERVICE_NAME = "quizdesk"
REDACTED = "***"
# Student contact details and the gateway secret never reach log sinks.
SENSITIVE_FIELDS = frozenset({"authorization", "email", "gateway_token", "x_gateway_token"})


def redact_sensitive_fields(
    _logger: Any,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    for field in SENSITIVE_FIELDS.intersection(event_dict):
        if event_dict[field]:
            event_dict[field] = REDACTED
    return event_dict


def _renderer(app_env: str) -> Any:
    if app_env == "dev" and sys.stdout.isatty():
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def configure_logging(log_level: str = "INFO", *, component: str = "api", app_env: str = "prod") -> None:
    level = logging.getLevelName(log_level.upper())
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level if isinstance(level, int) else logging.INFO,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_sensitive_fields,
            structlog.processors.format_exc_info,
            _renderer(app_env),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(service=SERVICE_NAME, component=component)
