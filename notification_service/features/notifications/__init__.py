"""Notification delivery engine for the social and dating contexts.

Usage:
    from notification_service.features.notifications import (
        NotificationCreate,
        build_notification_engine,
    )

    engine = build_notification_engine(
        session_factory=get_session_factory(),
        publisher=connection_manager,
        identity_provider=identity_provider,
    )
    async with get_async_session() as session:
        await engine.service.create(
            session,
            NotificationCreate(context="social", type="post_like", recipient_id=..., sender_id=...),
        )
"""

from notification_service.features.notifications.engine import (
    NotificationEngine,
    build_notification_engine,
)
from notification_service.features.notifications.enums import (
    DeliveryChannel,
    DeliveryStatus,
    NotificationContext,
    NotificationPriority,
    NotificationStatus,
)
from notification_service.features.notifications.models import Notification, NotificationPreferences
from notification_service.features.notifications.schemas import (
    NotificationCreate,
    NotificationFilters,
    NotificationMatch,
)

__all__ = [
    "DeliveryChannel",
    "DeliveryStatus",
    "Notification",
    "NotificationContext",
    "NotificationCreate",
    "NotificationEngine",
    "NotificationFilters",
    "NotificationMatch",
    "NotificationPreferences",
    "NotificationPriority",
    "NotificationStatus",
    "build_notification_engine",
]
