"""Observability helpers: structured logging through structlog.

Import `init_observability` and call it early, before the FastAPI app is
created, to activate.
"""
from __future__ import annotations

import logging

import structlog

from settings import get_settings

__all__ = [
    "init_observability",
]


def _setup_logging() -> None:
    """Configure structlog for structured logging (JSON or console)."""

    settings = get_settings()
    log_format = settings.log_format.lower()
    log_level = settings.log_level.upper()

    # Define shared processors
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    # Choose renderer based on format
    if log_format == "json":
        final_processor = structlog.processors.JSONRenderer()
    else:
        final_processor = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared_processors + [final_processor],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Configure standard logging root logger
    root_logger = logging.getLogger()
    handler = logging.StreamHandler()
    # No formatter needed here, structlog handles it via processors
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # Silence noisy loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def init_observability() -> None:
    """Setup logging. Call once at process start."""

    _setup_logging()

    structlog.get_logger(__name__).info("Observability initialized")
