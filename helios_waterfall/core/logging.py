"""Structured logging setup using structlog."""

import logging
import sys
from typing import Any

import structlog

from helios_waterfall.core.config import settings


def setup_logging(level: str | None = None, log_format: str | None = None) -> None:
    """
    Configure structlog for the service.

    Loggers emit event-style messages ("criteria_evaluated", ...) with
    keyword context. Request-scoped values bound through
    structlog.contextvars (request_id, user_id) are merged into every line.

    Args:
        level: Log level name (defaults to settings.log_level)
        log_format: "json" for production, anything else for console output
    """
    level_name = (level or settings.log_level).upper()
    level_value = getattr(logging, level_name, logging.INFO)
    fmt = (log_format or settings.log_format).strip().lower()

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )
