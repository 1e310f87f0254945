"""Structured logging with structlog.

Usage::

    from agency_spine.core.logging import configure_logging, get_logger

    configure_logging(level="INFO", json_format=True)
    logger = get_logger(__name__)
    logger.info("resource_listed", resource="Properties", rows=12)

Events are snake_case strings; everything else goes in keyword fields.
"""

from __future__ import annotations

import logging
import sys
from functools import lru_cache
from typing import TextIO

import structlog


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog for the application.

    ``json_format=None`` picks JSON when stdout is not a terminal and the
    colored console renderer otherwise. ``stream`` defaults to stdout.
    """
    if json_format is None:
        json_format = not sys.stdout.isatty()

    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if json_format:
        formatter = structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
        )
    else:
        formatter = structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=True),
        )

    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


@lru_cache(maxsize=100)
def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Bind context variables for structured logging."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear context variables."""
    structlog.contextvars.clear_contextvars()
