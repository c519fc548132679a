"""Closed vocabularies shared by the notification feature.

Values are stored as plain strings in the database; StrEnum members compare
equal to their values so ORM attributes can be checked against them directly.
"""

from __future__ import annotations

from enum import StrEnum


class NotificationContext(StrEnum):
    """Top-level notification namespace with its own type catalog."""

    SOCIAL = "social"
    DATING = "dating"


class DeliveryChannel(StrEnum):
    """Delivery transports, in fan-out order."""

    IN_APP = "in_app"
    PUSH = "push"
    EMAIL = "email"
    SMS = "sms"


class NotificationPriority(StrEnum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class NotificationStatus(StrEnum):
    """User-facing lifecycle state."""

    UNREAD = "unread"
    READ = "read"
    ARCHIVED = "archived"
    DELETED = "deleted"


class DeliveryStatus(StrEnum):
    """System-facing aggregate of the per-channel outcomes."""

    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"


class ContentType(StrEnum):
    POST = "post"
    STORY = "story"
    MESSAGE = "message"
    CALL = "call"
    USER = "user"
    MATCH = "match"
    LIKE = "like"
    DATE = "date"


class PushPlatform(StrEnum):
    IOS = "ios"
    ANDROID = "android"
    WEB = "web"


class GlobalFrequency(StrEnum):
    IMMEDIATE = "immediate"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"


class EmailFrequency(StrEnum):
    IMMEDIATE = "immediate"
    DAILY = "daily"
    WEEKLY = "weekly"


class DigestFrequency(StrEnum):
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"


CHANNEL_ORDER: tuple[DeliveryChannel, ...] = (
    DeliveryChannel.IN_APP,
    DeliveryChannel.PUSH,
    DeliveryChannel.EMAIL,
    DeliveryChannel.SMS,
)
