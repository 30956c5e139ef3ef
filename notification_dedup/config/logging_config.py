"""Structured logging for the deduplication engine (structlog).

Every entry carries the application name and the engine component that
emitted it (``deduplicator``, ``similarity_cache`` ...), plus whatever
context is bound through ``bind_context`` (the batch correlation id).
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

APP_NAME = "notification_dedup"


def add_app_context(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Tag entries with the application and the emitting component.

    The component is the last segment of the logger name, so
    ``notification_dedup.services.deduplicator`` becomes ``deduplicator``.
    """
    event_dict["app"] = APP_NAME
    logger_name = event_dict.get("logger")
    if isinstance(logger_name, str) and logger_name.startswith(APP_NAME):
        event_dict["component"] = logger_name.rsplit(".", 1)[-1]
    return event_dict


def build_processors(json_logs: bool) -> list[Processor]:
    """Processor chain ending in a JSON or console renderer."""
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
    ]

    if json_logs:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    return processors


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    cache_loggers: bool = True,
) -> None:
    """Configure structlog on top of the standard library logging module.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render JSON lines instead of colored console output
        cache_loggers: Freeze logger configuration on first use; disable when
            the configuration will be swapped later (log capture in tests)

    Example:
        >>> setup_logging(log_level="INFO", json_logs=True)
        >>> setup_logging(log_level="DEBUG")
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=build_processors(json_logs),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=cache_loggers,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("duplicate_notification_detected", category="budget", similarity=0.93)
    """
    return structlog.get_logger(name)  # type: ignore[no-any-return]


def bind_context(**kwargs: Any) -> None:
    """Bind context variables for all subsequent log entries in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)
