"""Per-context notification handlers."""

from notification_service.features.notifications.handlers.base import (
    ContextNotificationHandler,
    HandledNotification,
)
from notification_service.features.notifications.handlers.dating import (
    DATING_EVENTS,
    DatingNotificationHandler,
)
from notification_service.features.notifications.handlers.social import (
    SOCIAL_EVENTS,
    SocialNotificationHandler,
)

__all__ = [
    "DATING_EVENTS",
    "SOCIAL_EVENTS",
    "ContextNotificationHandler",
    "DatingNotificationHandler",
    "HandledNotification",
    "SocialNotificationHandler",
]
