"""Notification type catalogs and the registry that serves them."""

from notification_service.features.notifications.types.dating import DATING_TYPES
from notification_service.features.notifications.types.registry import (
    ChannelDefaults,
    NotificationTypeRegistry,
    TypeConfig,
    TypeLookup,
    ValidationOutcome,
    build_default_registry,
    coerce_context,
)
from notification_service.features.notifications.types.social import SOCIAL_TYPES

__all__ = [
    "DATING_TYPES",
    "SOCIAL_TYPES",
    "ChannelDefaults",
    "NotificationTypeRegistry",
    "TypeConfig",
    "TypeLookup",
    "ValidationOutcome",
    "build_default_registry",
    "coerce_context",
]
