"""
TimeTally Structured Logging

structlog configured for a command-line timer: entries go to stderr so the
countdown printed on stdout stays readable, or to a log file when one is
configured. Durations logged in seconds get a human-readable companion
field, so ``remaining=330`` also shows ``remaining_text="5m 30s"``.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Literal

import structlog
from structlog.typing import EventDict, WrappedLogger

LogFormat = Literal["auto", "json", "console"]

# Event keys that carry a duration in whole seconds
DURATION_KEYS = ("remaining", "remaining_seconds", "duration_seconds", "seconds_left")


def add_app_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add TimeTally application context to all log entries."""
    event_dict["app"] = "timetally"
    return event_dict


def add_duration_text(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add ``<key>_text`` next to every integer duration field."""
    from timetally.timer.formatting import format_duration

    for key in DURATION_KEYS:
        value = event_dict.get(key)
        if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
            event_dict[f"{key}_text"] = format_duration(value)
    return event_dict


def resolve_format(format: LogFormat, log_file: Path | None = None) -> str:
    """Pick the renderer: 'auto' means console on a terminal, JSON otherwise."""
    if format != "auto":
        return format
    if log_file is None and sys.stderr.isatty():
        return "console"
    return "json"


def setup_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO",
    format: LogFormat = "auto",
    log_file: Path | None = None,
) -> None:
    """
    Configure structured logging for TimeTally.

    Args:
        level: Minimum log level to output
        format: 'json', 'console', or 'auto' to decide from the output stream
        log_file: Write entries to this file instead of stderr
    """
    log_level = getattr(logging, level.upper())
    renderer_format = resolve_format(format, log_file)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
        add_duration_text,
    ]

    if renderer_format == "json":
        processors = shared_processors + [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(
                colors=log_file is None,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        stream = log_file.open("a", encoding="utf-8")
    else:
        stream = sys.stderr

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )

    # Third-party libraries log through stdlib; send them to the same place
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s", stream=stream, level=log_level)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def bind_list(list_name: str) -> None:
    """Tag subsequent entries with the list being worked on."""
    structlog.contextvars.bind_contextvars(list_name=list_name)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """
    Get a logger instance.

    Args:
        name: Logger name (usually __name__ of the calling module)

    Returns:
        Configured structlog BoundLogger
    """
    return structlog.get_logger(name)
