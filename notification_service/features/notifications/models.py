"""SQLAlchemy models for the notifications feature."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from notification_service.core.database import (
    Base,
    TimestampMixin,
    UTCDateTime,
    UUIDv7PKMixin,
    utcnow,
)
from notification_service.features.notifications.enums import (
    CHANNEL_ORDER,
    DeliveryChannel,
    DeliveryStatus,
    NotificationStatus,
)

JSONType = JSONB().with_variant(JSON(), "sqlite")


@dataclass(slots=True, frozen=True)
class ChannelState:
    """Snapshot of one channel's delivery fields."""

    channel: DeliveryChannel
    attempted: bool
    delivered: bool
    delivered_at: datetime | None
    suppressed: bool


def aggregate_delivery_status(outcomes: Iterable[bool]) -> DeliveryStatus:
    """Aggregate the delivered flags of the *attempted* channels.

    Channels that were skipped or gated off must not be passed in. With no
    attempted channel at all the notification is still pending.
    """
    results = list(outcomes)
    if not results:
        return DeliveryStatus.PENDING
    if all(results):
        return DeliveryStatus.DELIVERED
    if any(results):
        return DeliveryStatus.SENT
    return DeliveryStatus.FAILED


class Notification(Base, UUIDv7PKMixin, TimestampMixin):
    """A notification addressed to one recipient.

    ``status`` is the user-facing lifecycle (unread/read/archived/deleted);
    ``delivery_status`` is derived from the per-channel columns and only
    counts channels that were actually attempted.

    Indexes:
        - (recipient_id, status, created_at) for inbox listing
        - (context, type, created_at) for type-level queries
        - (delivery_status, scheduled_for) for the scheduled-delivery sweep
        - (recipient_id, context, status) for unread counts per context
    """

    __tablename__ = "notifications"

    # Identity
    context: Mapped[str] = mapped_column(String(20), nullable=False, comment="social | dating")
    notification_type: Mapped[str] = mapped_column(
        "type",
        String(50),
        nullable=False,
        comment="Type key within the context",
    )
    recipient_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    sender_id: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        comment="Absent for system notifications",
    )

    # Content
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    message: Mapped[str] = mapped_column(String(500), nullable=False)
    image: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    action_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Classification
    content_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    content_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    content_metadata: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict, nullable=False)

    data: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict, nullable=False)

    # State
    status: Mapped[str] = mapped_column(
        String(20),
        default=NotificationStatus.UNREAD.value,
        nullable=False,
    )
    delivery_status: Mapped[str] = mapped_column(
        String(20),
        default=DeliveryStatus.PENDING.value,
        nullable=False,
    )
    priority: Mapped[str] = mapped_column(String(20), nullable=False)

    # In-app channel
    in_app_attempted: Mapped[bool] = mapped_column(Boolean(), default=False, nullable=False)
    in_app_delivered: Mapped[bool] = mapped_column(Boolean(), default=False, nullable=False)
    in_app_delivered_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    # Push channel
    push_attempted: Mapped[bool] = mapped_column(Boolean(), default=False, nullable=False)
    push_delivered: Mapped[bool] = mapped_column(Boolean(), default=False, nullable=False)
    push_delivered_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    push_device_tokens: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    push_retry_attempts: Mapped[int] = mapped_column(Integer(), default=0, nullable=False)
    push_permanently_failed: Mapped[bool] = mapped_column(Boolean(), default=False, nullable=False)

    # Email channel
    email_attempted: Mapped[bool] = mapped_column(Boolean(), default=False, nullable=False)
    email_delivered: Mapped[bool] = mapped_column(Boolean(), default=False, nullable=False)
    email_delivered_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    email_address: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # SMS channel
    sms_attempted: Mapped[bool] = mapped_column(Boolean(), default=False, nullable=False)
    sms_delivered: Mapped[bool] = mapped_column(Boolean(), default=False, nullable=False)
    sms_delivered_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)

    # Per-notification suppression set at creation time
    skip_in_app: Mapped[bool] = mapped_column(Boolean(), default=False, nullable=False)
    skip_push: Mapped[bool] = mapped_column(Boolean(), default=False, nullable=False)
    skip_email: Mapped[bool] = mapped_column(Boolean(), default=False, nullable=False)
    skip_sms: Mapped[bool] = mapped_column(Boolean(), default=False, nullable=False)

    # Scheduling
    scheduled_for: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True, index=True)

    # User actions and analytics
    read_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    archived_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    open_count: Mapped[int] = mapped_column(Integer(), default=0, nullable=False)
    click_count: Mapped[int] = mapped_column(Integer(), default=0, nullable=False)
    last_opened_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    last_clicked_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    __table_args__ = (
        Index("ix_notifications_recipient_status_created", "recipient_id", "status", "created_at"),
        Index("ix_notifications_context_type_created", "context", "type", "created_at"),
        Index("ix_notifications_delivery_scheduled", "delivery_status", "scheduled_for"),
        Index("ix_notifications_recipient_context_status", "recipient_id", "context", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Notification(id={self.id}, context={self.context}, type={self.notification_type}, "
            f"recipient={self.recipient_id}, delivery_status={self.delivery_status})>"
        )

    # ──────────────────────────────────────────────────────────────
    # Channel state
    # ──────────────────────────────────────────────────────────────

    def channel_state(self, channel: DeliveryChannel) -> ChannelState:
        prefix = DeliveryChannel(channel).value
        return ChannelState(
            channel=DeliveryChannel(channel),
            attempted=getattr(self, f"{prefix}_attempted"),
            delivered=getattr(self, f"{prefix}_delivered"),
            delivered_at=getattr(self, f"{prefix}_delivered_at"),
            suppressed=self.is_suppressed(channel),
        )

    def is_suppressed(self, channel: DeliveryChannel) -> bool:
        """Whether a creation-time override switched the channel off."""
        return bool(getattr(self, f"skip_{DeliveryChannel(channel).value}"))

    def record_channel_outcome(
        self,
        channel: DeliveryChannel,
        *,
        delivered: bool,
        at: datetime | None = None,
    ) -> None:
        """Mark a channel as attempted and store whether it delivered.

        A channel that already delivered stays delivered.
        """
        prefix = DeliveryChannel(channel).value
        setattr(self, f"{prefix}_attempted", True)
        if delivered:
            setattr(self, f"{prefix}_delivered", True)
            setattr(self, f"{prefix}_delivered_at", at or utcnow())

    def recompute_delivery_status(self) -> DeliveryStatus:
        attempted = [
            state.delivered
            for state in (self.channel_state(channel) for channel in CHANNEL_ORDER)
            if state.attempted
        ]
        status = aggregate_delivery_status(attempted)
        self.delivery_status = status.value
        return status

    # ──────────────────────────────────────────────────────────────
    # User actions
    # ──────────────────────────────────────────────────────────────

    def mark_as_read(self, now: datetime | None = None) -> bool:
        """Transition unread -> read; returns False when nothing changed."""
        if self.status != NotificationStatus.UNREAD:
            return False
        now = now or utcnow()
        self.status = NotificationStatus.READ.value
        self.read_at = now
        self.open_count = (self.open_count or 0) + 1
        self.last_opened_at = now
        return True

    def mark_as_unread(self) -> bool:
        if self.status != NotificationStatus.READ:
            return False
        self.status = NotificationStatus.UNREAD.value
        self.read_at = None
        return True

    def archive(self, now: datetime | None = None) -> None:
        self.status = NotificationStatus.ARCHIVED.value
        self.archived_at = now or utcnow()

    def soft_delete(self) -> None:
        self.status = NotificationStatus.DELETED.value

    def record_click(self, now: datetime | None = None) -> None:
        now = now or utcnow()
        self.click_count = (self.click_count or 0) + 1
        self.last_clicked_at = now

    def to_event_payload(self) -> dict[str, Any]:
        """Payload published to live sessions for in-app delivery."""
        return {
            "id": str(self.id),
            "context": self.context,
            "type": self.notification_type,
            "title": self.title,
            "message": self.message,
            "data": dict(self.data or {}),
            "related_content": {
                "content_type": self.content_type,
                "content_id": self.content_id,
                "metadata": dict(self.content_metadata or {}),
            },
            "priority": self.priority,
            "image": self.image,
            "action_url": self.action_url,
            "timestamp": (self.created_at or utcnow()).isoformat(),
        }


class NotificationPreferences(Base, UUIDv7PKMixin, TimestampMixin):
    """Per-user preference document, created lazily with defaults.

    The nested settings are stored as JSON and validated through
    ``PreferenceDocument`` whenever they are read or written.
    """

    __tablename__ = "notification_preferences"

    user_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    global_settings: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    channels: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    contexts: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    advanced: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)

    def __repr__(self) -> str:
        return f"<NotificationPreferences(user_id={self.user_id})>"


__all__ = [
    "ChannelState",
    "Notification",
    "NotificationPreferences",
    "aggregate_delivery_status",
]
