"""Context management for structured logging.

A contextvars-backed dict is merged into every log record by
ContextInjectingFilter. The delivery manager binds the notification id and
recipient for the duration of a delivery pass so channel senders, the
retry queue and repositories all log with the same correlation fields.
Each asyncio task works on its own copy of the context.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


def set_log_context(**kwargs: Any) -> None:
    """Add fields to the logging context of the current task.

    Example:
        set_log_context(notification_id=str(notification.id), recipient_id=recipient)
        logger.info("Delivering")  # record carries both fields
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """Return a copy of the current logging context."""
    return _log_context.get().copy()


def clear_log_context() -> None:
    """Drop every field from the current logging context."""
    _log_context.set({})


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Bind fields for the duration of a block, restoring the previous context after.

    Example:
        with log_context(notification_id=str(notification.id)):
            await deliver(notification)
    """
    token = _log_context.set({**_log_context.get(), **kwargs})
    try:
        yield
    finally:
        _log_context.reset(token)


class ContextInjectingFilter(logging.Filter):
    """Copy the current logging context onto each LogRecord.

    Existing record attributes are never overwritten.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class ContextBoundLogger(logging.LoggerAdapter):
    """Logger adapter with permanently bound context fields.

    Example:
        queue_logger = ContextBoundLogger(logger, component="retry_queue")
        queue_logger.info("Tick", extra={"due": 3})
    """

    def __init__(self, logger: logging.Logger, **context: Any) -> None:
        super().__init__(logger, context)

    def bind(self, **context: Any) -> ContextBoundLogger:
        """Return a new logger with additional bound context."""
        return ContextBoundLogger(self.logger, **{**self.extra, **context})

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = kwargs.get("extra", {})
        kwargs["extra"] = {**self.extra, **extra}
        return msg, kwargs


def get_logger(name: str, **context: Any) -> ContextBoundLogger:
    """Get a logger with bound context."""
    return ContextBoundLogger(logging.getLogger(name), **context)
