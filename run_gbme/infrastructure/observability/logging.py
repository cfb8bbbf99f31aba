"""Logging utilities for run_gbme.

This module provides centralised logging configuration and helpers for
contextual logging around each collaborator step.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator


# ---------------------------------------------------------------------------
# Context variables for structured logging
# ---------------------------------------------------------------------------

_log_context: ContextVar[dict[str, Any]] = ContextVar(
    "log_context", default={})

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ContextualFormatter(logging.Formatter):
    """Formatter that appends context fields to log messages."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = _log_context.get()
        if ctx:
            ctx_str = " ".join(f"{k}={v}" for k, v in ctx.items())
            record = logging.makeLogRecord(record.__dict__)
            record.msg = f"{record.getMessage()} [{ctx_str}]"
            record.args = None
        return super().format(record)


class StderrHandler(logging.StreamHandler):
    """Stream handler bound to whatever ``sys.stderr`` is at emit time.

    Click's test runner swaps ``sys.stderr`` per invocation, so a handler that
    captured the stream once would keep writing to a closed buffer.
    """

    @property
    def stream(self) -> Any:
        return sys.stderr

    @stream.setter
    def stream(self, _value: Any) -> None:
        pass


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Temporarily add context fields to all log messages.

    Usage::

        with log_context(step="analysis", tool="sna"):
            logger.info("Launching collaborator")  # message includes context

    Fields are merged with any existing context and restored on exit.
    """
    current = _log_context.get()
    merged = {**current, **fields}
    token = _log_context.set(merged)
    try:
        yield
    finally:
        _log_context.reset(token)


# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

_configured = False


def configure_logging(level: int = logging.INFO) -> None:
    """Configure application-wide logging.

    Call this from the CLI entry point. Repeated calls only adjust the level,
    so a second invocation in the same process (tests, the interactive
    interpreter) does not stack handlers.

    Args:
        level: Log level for the root logger (default INFO).
    """
    global _configured
    root = logging.getLogger()
    root.setLevel(level)
    if _configured:
        return
    _configured = True

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = StderrHandler()
    handler.setFormatter(ContextualFormatter(LOG_FORMAT))
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given name (typically ``__name__``)."""
    return logging.getLogger(name)


# ---------------------------------------------------------------------------
# Convenience helpers
# ---------------------------------------------------------------------------


def log_exception(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    **context: Any,
) -> None:
    """Log an exception with its traceback at debug level plus context fields.

    The CLI reports fatal errors to the user itself, so the traceback only
    shows up when verbose logging is enabled.
    """
    with log_context(**context):
        logger.debug(f"{message}: {exc}", exc_info=exc)
