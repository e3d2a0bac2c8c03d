"""Structured logging configuration using structlog."""

import logging
import sys
from typing import Any, Sequence
import structlog
from gallery.config import settings

REDACTED = "***REDACTED***"

SENSITIVE_KEYS = {
    "password",
    "token",
    "secret",
    "session",
    "cookie",
    "authorization",
}


def _is_sensitive(name: Any) -> bool:
    name = str(name).lower()
    return any(marker in name for marker in SENSITIVE_KEYS)


def redact_sensitive_data(data: dict[str, Any]) -> dict[str, Any]:
    """Redact sensitive fields from log data.

    Keys are matched by substring, so ``admin_password`` and ``session_secret``
    are caught as well as ``password``. Nested dicts and lists of dicts are
    walked.
    """
    redacted = {}
    for key, value in data.items():
        if _is_sensitive(key):
            redacted[key] = REDACTED
        elif isinstance(value, dict):
            redacted[key] = redact_sensitive_data(value)
        elif isinstance(value, list):
            redacted[key] = [
                redact_sensitive_data(item) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            redacted[key] = value

    return redacted


def redact_validation_errors(errors: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
    """Hide the rejected input of request-validation errors on sensitive fields.

    FastAPI reports the offending value under ``input`` and the field path
    under ``loc``, e.g. ``("body", "password")``.
    """
    redacted = []
    for error in errors:
        if any(_is_sensitive(part) for part in error.get("loc", ())):
            error = {**error, "input": REDACTED}
        redacted.append(redact_sensitive_data(error))
    return redacted


def redact_event(logger, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog processor applying redact_sensitive_data to every event."""
    return redact_sensitive_data(event_dict)


def configure_logging():
    """Configure structured logging for the application."""

    # Configure stdlib logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper()),
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        redact_event,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.log_format == "json":
        processors.extend([
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ])
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()

logger = structlog.get_logger("gallery")
