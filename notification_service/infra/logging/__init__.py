"""Logging infrastructure.

Basic usage:
    import logging
    from notification_service.infra.logging import get_lazy_logger, log_context

    logger = logging.getLogger(__name__)
    lazy_logger = get_lazy_logger(__name__)

    with log_context(notification_id="0190..."):
        logger.info("Delivering")
        lazy_logger.debug(lambda: f"Payload: {payload!r}")
"""

from notification_service.infra.logging.config import configure_logging, setup_logging
from notification_service.infra.logging.context import (
    ContextBoundLogger,
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    get_logger,
    log_context,
    set_log_context,
)
from notification_service.infra.logging.formatters import JSONFormatter
from notification_service.infra.logging.lazy import (
    LazyLoggerAdapter,
    LazyString,
    get_lazy_logger,
    lazy,
)

__all__ = [
    "ContextBoundLogger",
    "ContextInjectingFilter",
    "JSONFormatter",
    "LazyLoggerAdapter",
    "LazyString",
    "clear_log_context",
    "configure_logging",
    "get_lazy_logger",
    "get_log_context",
    "get_logger",
    "lazy",
    "log_context",
    "set_log_context",
    "setup_logging",
]
