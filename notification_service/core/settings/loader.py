"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the
process. In tests, clear the caches to force a reload:

    get_notification_settings.cache_clear()
"""

from __future__ import annotations

from functools import lru_cache

from .database import DatabaseSettings
from .logs import LoggingSettings
from .notifications import NotificationSettings
from .websocket import WebSocketSettings


@lru_cache(maxsize=1)
def get_notification_settings() -> NotificationSettings:
    """Get cached notification engine settings."""
    return NotificationSettings()


@lru_cache(maxsize=1)
def get_db_settings() -> DatabaseSettings:
    """Get cached database settings."""
    return DatabaseSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings."""
    return LoggingSettings()


@lru_cache(maxsize=1)
def get_websocket_settings() -> WebSocketSettings:
    """Get cached live-session settings."""
    return WebSocketSettings()


def clear_all_caches() -> None:
    """Clear every settings cache (useful in tests)."""
    get_notification_settings.cache_clear()
    get_db_settings.cache_clear()
    get_logging_settings.cache_clear()
    get_websocket_settings.cache_clear()
