"""Structured logging setup for watch sessions."""

import logging
import sys
from typing import TextIO

import structlog


# httpx logs every request at INFO; our hooks already cover that
_CHATTY_LOGGERS = ("httpx", "httpcore")


def _renderer(json_format: bool, output: TextIO) -> structlog.types.Processor:
    if json_format:
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=output.isatty())


def configure_logging(
    level: int = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Configure structlog and the stdlib root logger.

    Every event carries its level, an ISO timestamp and any context bound
    with ``bind_watch_context``.

    Args:
        level: Minimum level emitted.
        output: Stream receiving log lines.
        json_format: Emit JSON lines instead of console output.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(json_format, output),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        stream=output,
        level=level,
    )
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, optionally named."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]


def bind_watch_context(session_id: str) -> None:
    """Add ``session_id`` to every following log event.

    Args:
        session_id: Identifier of the current watch session.
    """
    structlog.contextvars.bind_contextvars(session_id=session_id)


def clear_watch_context() -> None:
    """Drop ``session_id`` from log events."""
    structlog.contextvars.unbind_contextvars("session_id")


def parse_log_level(name: str) -> int:
    """Convert a level name such as ``"debug"`` into a logging level.

    Raises:
        ValueError: If the name is not a known level.
    """
    level = logging.getLevelNamesMapping().get(name.upper())
    if level is None:
        msg = f"Invalid logging level: {name}"
        raise ValueError(msg)
    return level
