"""Pydantic schemas and result containers for the notifications feature."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from notification_service.features.notifications.enums import (
    NotificationContext,
    NotificationPriority,
    NotificationStatus,
)

if TYPE_CHECKING:
    from notification_service.features.notifications.models import Notification


# ============================================================================
# Creation
# ============================================================================


class NotificationCreate(BaseModel):
    """Options for creating a notification.

    ``context`` and ``notification_type`` are plain strings on purpose: the
    registry decides whether they are valid and reports a precise error.
    """

    model_config = ConfigDict(populate_by_name=True)

    context: str = Field(default=NotificationContext.SOCIAL.value)
    notification_type: str = Field(..., alias="type", min_length=1)
    recipient_id: str | None = Field(default=None, description="Canonical 24-hex user id")
    sender_id: str | None = Field(default=None, description="Absent for system notifications")
    data: dict[str, Any] = Field(default_factory=dict)
    title: str | None = None
    message: str | None = None
    placeholders: dict[str, Any] | None = None
    priority: NotificationPriority | None = None
    channels: dict[str, bool] | None = Field(
        default=None,
        description="Per-notification channel overrides, e.g. {'push': False}",
    )
    scheduled_for: datetime | None = None
    expires_at: datetime | None = None


class NotificationImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    alt: str | None = None


class RelatedContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    content_type: str | None = None
    content_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ChannelSkips(BaseModel):
    """Channels suppressed for one notification at creation time."""

    model_config = ConfigDict(frozen=True)

    in_app: bool = False
    push: bool = False
    email: bool = False
    sms: bool = False


class NotificationPayload(BaseModel):
    """Immutable, fully rendered notification ready to persist."""

    model_config = ConfigDict(frozen=True)

    context: NotificationContext
    notification_type: str
    recipient_id: str
    sender_id: str | None = None
    title: str = Field(..., max_length=100)
    message: str = Field(..., max_length=500)
    image: NotificationImage | None = None
    action_url: str | None = Field(default=None, max_length=500)
    related_content: RelatedContent = Field(default_factory=RelatedContent)
    data: dict[str, Any] = Field(default_factory=dict)
    priority: NotificationPriority
    email_address: str | None = None
    phone_number: str | None = None
    skip: ChannelSkips = Field(default_factory=ChannelSkips)
    scheduled_for: datetime | None = None
    expires_at: datetime


# ============================================================================
# Queries
# ============================================================================


class NotificationFilters(BaseModel):
    """Filters for listing a user's notifications."""

    page: int = Field(default=1, ge=1)
    limit: int | None = Field(default=None, ge=1)
    status: Literal["all"] | NotificationStatus = "all"
    notification_type: str | None = None
    context: NotificationContext | None = None
    priority: NotificationPriority | None = None


class NotificationMatch(BaseModel):
    """Selects notifications for bulk mutation by type, recipient and payload.

    Every key/value in ``data`` must be present in the notification's data.
    """

    notification_type: str
    recipient_id: str
    sender_id: str | None = None
    context: NotificationContext | None = None
    data: dict[str, Any] = Field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class NotificationPage:
    items: Sequence[Notification]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 1

    @property
    def pagination(self) -> dict[str, int]:
        return {"page": self.page, "limit": self.limit, "total": self.total, "pages": self.pages}


@dataclass(slots=True, frozen=True)
class BulkMutationResult:
    matched: int
    modified: int


@dataclass(slots=True)
class PendingDeliveryReport:
    """Outcome of one notification in a scheduled-delivery sweep."""

    notification_id: UUID
    success: bool
    results: dict[str, Any] = field(default_factory=dict)
    error: str | None = None


__all__ = [
    "BulkMutationResult",
    "ChannelSkips",
    "NotificationCreate",
    "NotificationFilters",
    "NotificationImage",
    "NotificationMatch",
    "NotificationPage",
    "NotificationPayload",
    "PendingDeliveryReport",
    "RelatedContent",
]
