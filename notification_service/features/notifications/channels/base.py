"""Result type and protocol shared by the channel senders."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

from notification_service.features.notifications.enums import DeliveryChannel

if TYPE_CHECKING:
    from notification_service.features.notifications.models import Notification
    from notification_service.features.notifications.preferences import PreferenceDocument

TRANSIENT = "transient"
PERMANENT = "permanent"


@dataclass
class DeliveryResult:
    """Outcome of one channel for one notification.

    Attributes:
        channel: Channel the result belongs to
        delivered: Whether the channel delivered
        attempted: False for gate skips and soft no-ops; those are left out
            of the aggregate delivery status
        error: Error description if the attempt failed
        error_category: ``transient`` or ``permanent`` for failed attempts
        skip_reason: Why the channel was not attempted
        retry_scheduled: A push retry was queued for this notification
        delivered_at: When the channel delivered
        response_time_ms: Time spent in the sender
        metadata: Channel-specific details (device tokens, recipient address)
    """

    channel: DeliveryChannel
    delivered: bool = False
    attempted: bool = True
    error: str | None = None
    error_category: str | None = None
    skip_reason: str | None = None
    retry_scheduled: bool = False
    delivered_at: datetime | None = None
    response_time_ms: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(
        cls,
        channel: DeliveryChannel,
        *,
        delivered_at: datetime | None = None,
        response_time_ms: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> DeliveryResult:
        return cls(
            channel=channel,
            delivered=True,
            delivered_at=delivered_at,
            response_time_ms=response_time_ms,
            metadata=metadata or {},
        )

    @classmethod
    def failure(
        cls,
        channel: DeliveryChannel,
        error: str,
        *,
        category: str = TRANSIENT,
        response_time_ms: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> DeliveryResult:
        return cls(
            channel=channel,
            delivered=False,
            error=error,
            error_category=category,
            response_time_ms=response_time_ms,
            metadata=metadata or {},
        )

    @classmethod
    def skipped(cls, channel: DeliveryChannel, reason: str) -> DeliveryResult:
        return cls(channel=channel, attempted=False, skip_reason=reason)

    @property
    def is_transient_failure(self) -> bool:
        return self.attempted and not self.delivered and self.error_category == TRANSIENT

    def as_dict(self) -> dict[str, Any]:
        """Caller-facing shape: ``{delivered, error}`` plus diagnostics."""
        return {
            "delivered": self.delivered,
            "error": self.error,
            "attempted": self.attempted,
            "skip_reason": self.skip_reason,
            "retry_scheduled": self.retry_scheduled,
        }


class ChannelSender(Protocol):
    """Sends one notification over one channel.

    Senders never raise for delivery problems and never touch the database;
    the delivery manager applies the returned result to the notification.
    """

    channel: DeliveryChannel

    async def send(
        self,
        notification: Notification,
        preferences: PreferenceDocument,
    ) -> DeliveryResult: ...


def elapsed_ms(start_time: float, end_time: float) -> int:
    return int((end_time - start_time) * 1000)
