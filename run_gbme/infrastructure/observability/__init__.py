"""Observability and logging facades."""

from .logging import (
    ContextualFormatter,
    configure_logging,
    get_logger,
    log_context,
    log_exception,
)

__all__ = [
    "ContextualFormatter",
    "configure_logging",
    "get_logger",
    "log_context",
    "log_exception",
]
