"""Modular settings, one pydantic-settings class per concern."""

from .database import DatabaseSettings
from .loader import (
    clear_all_caches,
    get_db_settings,
    get_logging_settings,
    get_notification_settings,
    get_websocket_settings,
)
from .logs import LoggingSettings
from .notifications import NotificationSettings
from .websocket import WebSocketSettings

__all__ = [
    "DatabaseSettings",
    "LoggingSettings",
    "NotificationSettings",
    "WebSocketSettings",
    "clear_all_caches",
    "get_db_settings",
    "get_logging_settings",
    "get_notification_settings",
    "get_websocket_settings",
]
