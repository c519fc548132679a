"""Interfaces of the collaborators the engine talks to.

Transports and the identity provider live outside this package; these
protocols are what the delivery manager, the channel senders and the
factory depend on. Test doubles implement them directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from notification_service.features.notifications.enums import PushPlatform

# Push error codes that mean the token will never work again
INVALID_TOKEN_CODES = frozenset(
    {
        "messaging/invalid-registration-token",
        "messaging/registration-token-not-registered",
    }
)


@dataclass(slots=True, frozen=True)
class DeviceToken:
    token: str
    platform: PushPlatform
    active: bool = True


@dataclass(slots=True, frozen=True)
class UserIdentity:
    """What the engine needs to know about a user."""

    user_id: str
    username: str | None = None
    full_name: str | None = None
    email: str | None = None
    phone_number: str | None = None
    device_tokens: tuple[DeviceToken, ...] = ()

    @property
    def display_name(self) -> str:
        return self.username or self.full_name or "Someone"

    @property
    def active_device_tokens(self) -> tuple[DeviceToken, ...]:
        return tuple(token for token in self.device_tokens if token.active)


@dataclass(slots=True)
class PushSendResult:
    """Outcome of one push send for one token.

    Attributes:
        token: Device token the result belongs to
        success: Whether the transport accepted the message
        error: Transport error message, if any
        code: Transport error code, if any
        should_remove: The token is invalid/unregistered and must be pruned
    """

    token: str
    success: bool
    error: str | None = None
    code: str | None = None
    should_remove: bool = False

    def __post_init__(self) -> None:
        if self.code in INVALID_TOKEN_CODES:
            self.should_remove = True


@dataclass(slots=True, frozen=True)
class PushMessage:
    title: str
    body: str
    image_url: str | None = None
    data: dict[str, str] = field(default_factory=dict)


class LiveEventPublisher(Protocol):
    """Publishes events to a recipient's live sessions."""

    async def publish(self, recipient_id: str, event_name: str, payload: dict[str, Any]) -> int:
        """Publish and return how many live sessions received the event."""
        ...


class PushTransport(Protocol):
    async def send_to_device(
        self,
        token: str,
        platform: PushPlatform,
        message: PushMessage,
    ) -> PushSendResult: ...

    async def send_to_multiple_devices(
        self,
        tokens: list[str],
        platform: PushPlatform,
        message: PushMessage,
    ) -> list[PushSendResult]: ...


class EmailTransport(Protocol):
    async def send_email(self, *, to: str, subject: str, text: str, html: str) -> bool:
        """Send one email; return False or raise on failure."""
        ...


class SmsTransport(Protocol):
    async def send_sms(self, *, to: str, body: str) -> bool: ...


class IdentityProvider(Protocol):
    async def get_user(self, user_id: str) -> UserIdentity | None:
        """Resolve a user id, or None when no such user exists."""
        ...

    async def remove_device_token(self, user_id: str, token: str) -> None:
        """Remove a device token; removing an absent token is a no-op."""
        ...


__all__ = [
    "INVALID_TOKEN_CODES",
    "DeviceToken",
    "EmailTransport",
    "IdentityProvider",
    "LiveEventPublisher",
    "PushMessage",
    "PushSendResult",
    "PushTransport",
    "SmsTransport",
    "UserIdentity",
]
