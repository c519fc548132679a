"""Notification feature exceptions.

Creation errors map onto the application's problem-details hierarchy so a
router can surface them directly. Channel errors are raised by transports
and converted into per-channel results by the senders; they never reach
the caller of a delivery pass.
"""

from __future__ import annotations

from typing import Any

from notification_service.core.exceptions import (
    NotFoundException,
    ServiceUnavailableException,
    ValidationException,
)


class NotificationValidationError(ValidationException):
    """Creation request rejected by the registry or the factory."""

    def __init__(self, errors: list[str] | tuple[str, ...], *, extra: dict[str, Any] | None = None) -> None:
        self.errors = list(errors)
        super().__init__(
            detail="; ".join(self.errors) or "Invalid notification",
            type="notification-validation-error",
            extra={"errors": self.errors, **(extra or {})},
        )


class RecipientNotFoundError(NotFoundException):
    """Recipient or sender id does not resolve to a user."""

    def __init__(self, user_id: str, *, role: str = "recipient") -> None:
        self.user_id = user_id
        self.role = role
        super().__init__(
            detail=f"{role.capitalize()} not found: {user_id}",
            type=f"{role}-not-found",
            extra={"user_id": user_id, "role": role},
        )


class NotificationNotFoundError(NotFoundException):
    """Notification absent, or not owned by the acting user."""

    def __init__(self, notification_id: Any, *, user_id: str | None = None) -> None:
        self.notification_id = notification_id
        extra: dict[str, Any] = {"notification_id": str(notification_id)}
        if user_id is not None:
            extra["user_id"] = user_id
        super().__init__(
            detail=f"Notification not found: {notification_id}",
            type="notification-not-found",
            extra=extra,
        )


class ChannelError(ServiceUnavailableException):
    """Base class for delivery transport failures."""

    def __init__(
        self,
        message: str,
        *,
        channel: str,
        code: str | None = None,
        type: str = "channel-error",
    ) -> None:
        self.channel = channel
        self.code = code
        super().__init__(detail=message, type=type, extra={"channel": channel, "code": code})


class TransientChannelError(ChannelError):
    """Timeout, rate limit or unknown transport failure; eligible for push retry."""

    def __init__(self, message: str, *, channel: str, code: str | None = None) -> None:
        super().__init__(message, channel=channel, code=code, type="transient-channel-error")


class PermanentChannelError(ChannelError):
    """Failure that will not succeed on retry, e.g. an unregistered device token."""

    def __init__(self, message: str, *, channel: str, code: str | None = None) -> None:
        super().__init__(message, channel=channel, code=code, type="permanent-channel-error")


__all__ = [
    "ChannelError",
    "NotificationNotFoundError",
    "NotificationValidationError",
    "PermanentChannelError",
    "RecipientNotFoundError",
    "TransientChannelError",
]
