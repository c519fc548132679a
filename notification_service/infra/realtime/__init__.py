"""Live-session transport."""

from notification_service.infra.realtime.manager import (
    ConnectionManager,
    LiveSession,
    get_connection_manager,
    start_connection_manager,
    stop_connection_manager,
)

__all__ = [
    "ConnectionManager",
    "LiveSession",
    "get_connection_manager",
    "start_connection_manager",
    "stop_connection_manager",
]
