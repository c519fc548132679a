"""Logging configuration via dictConfig.

All handlers hang off the root logger; module and class loggers propagate.
The context filter is attached to the handler so records from every logger
pick up the current notification/recipient context.
"""

from __future__ import annotations

import logging
import logging.config
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from notification_service.core.settings.logs import LoggingSettings

logger = logging.getLogger(__name__)
_LOGGING_INITIALIZED = False


def configure_logging(
    log_level: str = "INFO",
    *,
    json_logs: bool = True,
    service_name: str = "notification-service",
    include_process_info: bool = False,
    logger_levels: dict[str, str] | None = None,
) -> None:
    """Configure root logging for the process.

    Args:
        log_level: Root logger level.
        json_logs: Emit JSONL (True) or human-readable text (False).
        service_name: Static ``service`` field on JSON records.
        include_process_info: Add process id/name to JSON records.
        logger_levels: Per-logger level overrides, e.g. {"sqlalchemy.engine": "WARNING"}.
    """
    formatter: dict[str, Any]
    if json_logs:
        formatter = {
            "()": "notification_service.infra.logging.formatters.JSONFormatter",
            "static": {"service": service_name},
            "include_process_info": include_process_info,
        }
    else:
        formatter = {
            "format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        }

    config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "context": {"()": "notification_service.infra.logging.context.ContextInjectingFilter"},
        },
        "formatters": {"default": formatter},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "filters": ["context"],
                "stream": "ext://sys.stderr",
            },
        },
        "root": {"level": log_level, "handlers": ["console"]},
        "loggers": {
            name: {"level": level} for name, level in (logger_levels or {}).items()
        },
    }
    logging.config.dictConfig(config)
    logger.debug("Logging configured", extra={"level": log_level, "json": json_logs})


def setup_logging(log_settings: LoggingSettings | None = None, *, force: bool = False) -> None:
    """Configure logging once per process from LoggingSettings."""
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    if log_settings is None:
        from notification_service.core.settings import get_logging_settings

        log_settings = get_logging_settings()

    configure_logging(**log_settings.to_logging_kwargs())
    _LOGGING_INITIALIZED = True
