"""Lazy evaluation support for logging.

Debug messages in the delivery path describe whole notification payloads
and channel result maps. Building those strings on every call is wasted
work in production, so the adapter here accepts callables and only
invokes them when the level is enabled.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any


class LazyString:
    """String whose value is computed only when formatted.

    Example:
        logger.debug("Results: %s", LazyString(lambda: summarize(results)))
    """

    __slots__ = ("_func",)

    def __init__(self, func: Callable[[], Any]) -> None:
        self._func = func

    def __str__(self) -> str:
        return str(self._func())

    def __repr__(self) -> str:
        return f"LazyString({self._func!r})"


class LazyLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that evaluates callable messages and arguments lazily.

    Example:
        logger = LazyLoggerAdapter(logging.getLogger(__name__))
        logger.debug(lambda: f"Channel results: {results!r}")
        logger.info("Queue size: %s", lambda: len(queue))
    """

    def log(self, level: int, msg: Any, *args: Any, **kwargs: Any) -> None:
        if not self.isEnabledFor(level):
            return

        if callable(msg):
            msg = msg()

        if args:
            args = tuple(arg() if callable(arg) else arg for arg in args)

        super().log(level, msg, *args, **kwargs)

    def debug(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self.log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self.log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self.log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self.log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("exc_info", True)
        self.log(logging.ERROR, msg, *args, **kwargs)


def get_lazy_logger(name: str, **context: Any) -> LazyLoggerAdapter:
    """Get a logger with lazy evaluation support.

    Args:
        name: Logger name (usually __name__ or a class name).
        **context: Optional context bound to every record.
    """
    return LazyLoggerAdapter(logging.getLogger(name), context or {})


def lazy(func: Callable[[], Any]) -> LazyString:
    """Wrap a callable in a LazyString."""
    return LazyString(func)
