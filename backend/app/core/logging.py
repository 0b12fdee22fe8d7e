"""
Structured logging setup.

Every module logs through ``get_logger(__name__)`` and emits event-style
messages with key/value context:

    logger.info("generation_completed", content_type="pillar", word_count=1620)
"""

import logging
import sys

import structlog

from app.core.config import settings


def setup_logging(level: str = None, fmt: str = None) -> None:
    """
    Configure stdlib logging and structlog.

    Args:
        level: Log level name (default from settings.LOG_LEVEL)
        fmt: "json" or "text" (default from settings.LOG_FORMAT)
    """
    level = (level or settings.LOG_LEVEL).upper()
    fmt = fmt or settings.LOG_FORMAT

    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stdout,
    )

    # Quieten down noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DB_ECHO else logging.WARNING
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if fmt == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structured logger for a given module."""
    return structlog.get_logger(name)
