"""Structured logging configuration."""

import logging
import sys
from typing import Any, TextIO

import structlog


def resolve_level(level: int | str) -> int:
    """Convert a level name such as ``"debug"`` to its numeric value.

    Args:
        level: Numeric level or case-insensitive level name.

    Returns:
        Numeric logging level.

    Raises:
        ValueError: If the name is not a known level.
    """
    if isinstance(level, int):
        return level
    numeric = logging.getLevelNamesMapping().get(level.strip().upper())
    if numeric is None:
        msg = f"Unknown log level: {level!r}"
        raise ValueError(msg)
    return numeric


def configure_logging(
    level: int | str = logging.INFO,
    output: TextIO | None = None,
    json_format: bool = True,
) -> None:
    """Configure structured logging for the matching engine.

    JSON lines by default, one event per ranking stage, with the bound
    request ID merged into every event.

    Args:
        level: Logging level or level name (default: INFO).
        output: Output stream (default: stderr, leaving stdout for responses).
        json_format: Whether to use JSON format (default: True).
    """
    numeric_level = resolve_level(level)
    stream = output or sys.stderr

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=stream.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=stream,
        level=numeric_level,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a bound logger instance.

    Args:
        name: Optional logger name.

    Returns:
        Bound logger instance.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


def bind_request_context(request_id: str, **context: Any) -> None:
    """Bind a matching request's context to all subsequent log messages.

    Args:
        request_id: Unique matching request identifier.
        **context: Extra request-scoped fields, e.g. the CLI command.
    """
    structlog.contextvars.bind_contextvars(request_id=request_id, **context)


def clear_request_context() -> None:
    """Clear all request-scoped context from log messages."""
    structlog.contextvars.clear_contextvars()
