"""
Structured logging configuration.
"""

import logging
import sys
from typing import Any

import structlog


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structured logger
    """
    return structlog.get_logger(name)


def log_cache_hit(question: str, mode: str, **kwargs: Any) -> None:
    """Log a cache hit (question is truncated)."""
    logger = get_logger("cache")
    logger.info("cache_hit", question=question[:100], mode=mode, **kwargs)


def log_cache_miss(question: str, mode: str, **kwargs: Any) -> None:
    """Log a cache miss (question is truncated)."""
    logger = get_logger("cache")
    logger.info("cache_miss", question=question[:100], mode=mode, **kwargs)


def log_error(error: Exception, context: str, **kwargs: Any) -> None:
    """
    Log error with context.

    Args:
        error: Exception that occurred
        context: Error context (e.g. "cache_lookup")
        **kwargs: Additional context
    """
    logger = get_logger("error")
    logger.error(
        "error_occurred",
        error=str(error),
        error_type=type(error).__name__,
        context=context,
        **kwargs,
    )
