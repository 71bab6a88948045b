"""Structured logging with structlog.

Provides:
- JSON-formatted log output for production
- Context binding for request_id, user_id, generation_id
- Factory function for creating loggers
"""

import logging
import sys
from typing import Optional
from uuid import UUID

import structlog
from structlog.types import EventDict, WrappedLogger

SERVICE_NAME = "newsletter-engine"


def add_service_info(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add service information to log entries."""
    event_dict["service"] = SERVICE_NAME
    return event_dict


def configure_structlog(
    json_format: bool = True,
    log_level: str = "INFO",
) -> None:
    """Configure structlog for the application.

    Args:
        json_format: If True, output JSON logs (for production).
                     If False, output human-readable logs (for development).
        log_level: The minimum log level to output (DEBUG, INFO, WARNING, ERROR).
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_service_info,
        structlog.processors.format_exc_info,
    ]

    if json_format:
        renderers: list = [
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=True)]

    structlog.configure(
        processors=shared_processors + renderers,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger with the given name.

    Example:
        logger = get_logger(__name__)
        logger.info("generation_dispatched", generation_id=str(generation.id))
    """
    return structlog.get_logger(name)


def bind_context(
    request_id: Optional[str] = None,
    user_id: Optional[UUID] = None,
    generation_id: Optional[UUID] = None,
) -> None:
    """Bind context variables for the current request scope.

    These values are included in all subsequent log entries from the same
    task or thread until clear_context() is called.
    """
    values = {}
    if request_id:
        values["request_id"] = request_id
    if user_id:
        values["user_id"] = str(user_id)
    if generation_id:
        values["generation_id"] = str(generation_id)
    if values:
        structlog.contextvars.bind_contextvars(**values)


def clear_context() -> None:
    """Clear all bound context variables.

    Should be called at the end of request processing.
    """
    structlog.contextvars.clear_contextvars()


# Initialize with sensible defaults
# Can be reconfigured by calling configure_structlog() in api/main.py
configure_structlog(json_format=False, log_level="INFO")
