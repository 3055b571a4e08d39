"""Structured logging for Waymark.

structlog renders every event (JSON lines in production, a coloured console
view for humans) and hands the rendered line to one stdlib handler: a size
rotated file when logging.file is set, otherwise a stream. Two kinds of
context ride along on each event:

- the correlation ID of the HTTP request being served
- the phase (and project) a recalculation is working on

    >>> from waymark.config import LoggingConfig
    >>> setup_logging(LoggingConfig(format="console"))
    >>> bind_phase_context(phase_id="3f1c...", project_id="9a0e...")
    >>> get_logger(__name__).info("phase_recalculated", progress=50.0)
"""

from __future__ import annotations

import contextvars
import logging
import logging.handlers
import sys
from typing import Any, TextIO

import structlog

from waymark.config import LoggingConfig

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)


def add_correlation_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor copying the request correlation ID into the event."""
    correlation_id = _correlation_id.get()
    if correlation_id is not None:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def set_correlation_id(correlation_id: str | None) -> None:
    """Bind (or with None, clear) the correlation ID for this context."""
    _correlation_id.set(correlation_id)


def get_correlation_id() -> str | None:
    """Return the correlation ID bound to this context, if any."""
    return _correlation_id.get()


def bind_phase_context(phase_id: str, project_id: str | None = None) -> None:
    """Bind phase (and optionally project) identifiers to subsequent logs.

    Args:
        phase_id: Phase identifier to bind
        project_id: Owning project identifier, if known
    """
    if project_id is None:
        structlog.contextvars.bind_contextvars(phase_id=phase_id)
    else:
        structlog.contextvars.bind_contextvars(phase_id=phase_id, project_id=project_id)


def clear_phase_context() -> None:
    """Remove phase and project identifiers bound by bind_phase_context."""
    structlog.contextvars.unbind_contextvars("phase_id", "project_id")


def setup_logging(config: LoggingConfig, stream: TextIO | None = None) -> None:
    """Install the root handler and the structlog processor chain.

    Replaces any handlers already on the root logger, so calling it again
    (each CLI invocation does) reconfigures rather than duplicates output.

    Args:
        config: The logging section of WaymarkConfig.
        stream: Where to write when no log file is configured. The CLI
            passes stderr so command output on stdout stays clean.
    """
    log_level = getattr(logging, config.level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    handler: logging.Handler
    if config.file is not None:
        config.file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            filename=config.file,
            maxBytes=config.rotation_size_mb * 1024 * 1024,
            backupCount=config.retention_count,
            encoding="utf-8",
        )
    else:
        handler = logging.StreamHandler(stream or sys.stdout)

    handler.setLevel(log_level)
    root_logger.addHandler(handler)

    if config.format == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.contextvars.merge_contextvars,
            add_correlation_id,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            # Hand the rendered line to the stdlib handler chosen above
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger named after the calling module."""
    return structlog.get_logger(name)
