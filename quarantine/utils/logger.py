"""Structured logging utilities for the quarantine engine.

All diagnostics go through structlog. Logs are written to stderr: stdout is
reserved for sanitized content handed to the consumer.
"""

import logging
import sys
import time
from contextvars import ContextVar
from typing import Optional

import structlog
from structlog.types import EventDict, Processor

# Tag of the payload currently being processed (url, command, ...)
source_var: ContextVar[Optional[str]] = ContextVar("source", default=None)


def add_source(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add the current payload source to log context if available."""
    source = source_var.get()
    if source:
        event_dict.setdefault("source", source)
    return event_dict


def add_timestamp(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add a Unix epoch timestamp (float seconds) to every log line."""
    event_dict["timestamp"] = time.time()
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = True
) -> None:
    """Configure structured logging for the engine.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output JSON format. If False, use console format.
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_source,
        add_timestamp,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.extend([
            structlog.dev.ConsoleRenderer(colors=False),
        ])

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "quarantine") -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance.

    Args:
        name: Logger name (typically module name)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def set_source(source: str) -> None:
    """Tag all subsequent logs in this context with the payload source."""
    source_var.set(source)


def clear_source() -> None:
    source_var.set(None)


# Sensible defaults; the CLI reconfigures from its --log-level flag
configure_logging()
