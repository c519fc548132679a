"""Notification factory.

Turns a creation request into an immutable ``NotificationPayload``:
validates against the registry, resolves recipient and sender, renders the
title and message, classifies the related content, computes expiry and
seeds the per-channel targets. Persisting the payload is the caller's job.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from notification_service.core.database import utcnow
from notification_service.features.notifications.enums import (
    ContentType,
    DeliveryChannel,
    NotificationContext,
)
from notification_service.features.notifications.exceptions import (
    NotificationValidationError,
    RecipientNotFoundError,
)
from notification_service.features.notifications.ports import IdentityProvider, UserIdentity
from notification_service.features.notifications.schemas import (
    ChannelSkips,
    NotificationCreate,
    NotificationImage,
    NotificationPayload,
    RelatedContent,
)
from notification_service.features.notifications.types import NotificationTypeRegistry, TypeConfig
from notification_service.infra.logging import get_lazy_logger

logger = logging.getLogger(__name__)
_lazy = get_lazy_logger(__name__)

TITLE_MAX_LENGTH = 100
MESSAGE_MAX_LENGTH = 500
ACTION_URL_MAX_LENGTH = 500

_USER_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")
_WRAPPED_USER_ID_PATTERN = re.compile(r"""^ObjectId\(\s*['"]?([0-9a-fA-F]{24})['"]?\s*\)$""")

CONTENT_TYPE_BY_NOTIFICATION_TYPE: Mapping[str, ContentType] = {
    "post_like": ContentType.POST,
    "post_comment": ContentType.POST,
    "post_share": ContentType.POST,
    "post_mention": ContentType.POST,
    "story_view": ContentType.STORY,
    "story_reaction": ContentType.STORY,
    "story_reply": ContentType.STORY,
    "story_mention": ContentType.STORY,
    "message_received": ContentType.MESSAGE,
    "message_request": ContentType.MESSAGE,
    "call_incoming": ContentType.CALL,
    "call_missed": ContentType.CALL,
    "call_ended": ContentType.CALL,
    "follow_request": ContentType.USER,
    "follow_accepted": ContentType.USER,
    "follow": ContentType.USER,
    "match": ContentType.MATCH,
    "match_request": ContentType.MATCH,
    "match_accepted": ContentType.MATCH,
    "match_rejected": ContentType.MATCH,
    "like": ContentType.USER,
    "super_like": ContentType.USER,
    "date_suggestion": ContentType.DATE,
    "date_accepted": ContentType.DATE,
    "date_rejected": ContentType.DATE,
}

# First present key wins
CONTENT_ID_KEYS: tuple[str, ...] = (
    "content_id",
    "post_id",
    "story_id",
    "message_id",
    "call_id",
    "user_id",
    "match_id",
)

RESERVED_DATA_KEYS: frozenset[str] = frozenset(
    {
        "title",
        "message",
        "image",
        "action_url",
        "content_type",
        "metadata",
        "placeholders",
        *CONTENT_ID_KEYS,
    }
)


def normalize_user_id(value: Any, *, field_name: str = "recipient_id") -> str:
    """Return the canonical lowercase 24-hex id or raise a validation error.

    A stringified ``ObjectId('...')`` wrapper is unwrapped; anything else that
    is not a 24-hex string is rejected.
    """
    text = str(value).strip() if value is not None else ""
    if _USER_ID_PATTERN.match(text):
        return text.lower()
    wrapped = _WRAPPED_USER_ID_PATTERN.match(text)
    if wrapped:
        return wrapped.group(1).lower()
    raise NotificationValidationError([f"Invalid {field_name}: {value!r}"])


def split_data(data: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Separate reserved keys from the free-form payload."""
    payload = {key: value for key, value in data.items() if key not in RESERVED_DATA_KEYS}
    reserved = {key: value for key, value in data.items() if key in RESERVED_DATA_KEYS}
    return payload, reserved


def substitute(template: str, tokens: Mapping[str, Any]) -> str:
    """Replace every ``{name}`` token whose name is in ``tokens``.

    Unknown tokens are left untouched.
    """
    rendered = template
    for name, value in tokens.items():
        rendered = rendered.replace(f"{{{name}}}", str(value))
    return rendered


def classify_content(notification_type: str, reserved: Mapping[str, Any]) -> RelatedContent:
    content_type: str | None = None
    mapped = CONTENT_TYPE_BY_NOTIFICATION_TYPE.get(notification_type)
    if mapped is not None:
        content_type = mapped.value
    elif reserved.get("content_type"):
        content_type = str(reserved["content_type"])

    content_id = next(
        (str(reserved[key]) for key in CONTENT_ID_KEYS if reserved.get(key) not in (None, "")),
        None,
    )

    metadata = reserved.get("metadata") or {}
    if not isinstance(metadata, Mapping):
        raise NotificationValidationError(["data.metadata must be a mapping"])
    return RelatedContent(content_type=content_type, content_id=content_id, metadata=dict(metadata))


def _fit(text: str, limit: int) -> str:
    return text.strip()[:limit]


class NotificationFactory:
    """Builds notification payloads from creation requests."""

    def __init__(
        self,
        registry: NotificationTypeRegistry,
        identity_provider: IdentityProvider,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._registry = registry
        self._identity = identity_provider
        self._clock = clock

    async def create(self, request: NotificationCreate) -> NotificationPayload:
        """Validate and render a notification.

        Raises:
            NotificationValidationError: Unknown context/type, missing or
                malformed recipient, or invalid overrides.
            RecipientNotFoundError: Recipient or sender does not exist.
        """
        outcome = self._registry.validate(
            request.context,
            request.notification_type,
            recipient_id=request.recipient_id,
        )
        if not outcome.valid or outcome.type_config is None:
            logger.info(
                "Notification request rejected",
                extra={"context": request.context, "type": request.notification_type, "errors": list(outcome.errors)},
            )
            raise NotificationValidationError(outcome.errors)
        config = outcome.type_config

        recipient_id = normalize_user_id(request.recipient_id)
        sender_id = normalize_user_id(request.sender_id, field_name="sender_id") if request.sender_id else None

        recipient, sender = await self._resolve_identities(recipient_id, sender_id)

        data, reserved = split_data(request.data)
        title, message = self._render(request, config, reserved, sender)
        skip = self._channel_skips(request.channels)

        payload = NotificationPayload(
            context=NotificationContext(config.context),
            notification_type=config.notification_type,
            recipient_id=recipient_id,
            sender_id=sender_id,
            title=title,
            message=message,
            image=self._image(reserved.get("image")),
            action_url=self._action_url(reserved.get("action_url")),
            related_content=classify_content(config.notification_type, reserved),
            data=data,
            priority=request.priority or config.priority,
            email_address=recipient.email,
            phone_number=recipient.phone_number,
            skip=skip,
            scheduled_for=request.scheduled_for,
            expires_at=request.expires_at or self._clock() + config.expiry,
        )
        _lazy.debug(lambda: f"Built {payload.context}:{payload.notification_type} payload for {recipient_id}: {payload.title!r}")
        return payload

    async def _resolve_identities(
        self,
        recipient_id: str,
        sender_id: str | None,
    ) -> tuple[UserIdentity, UserIdentity | None]:
        if sender_id is None:
            recipient = await self._identity.get_user(recipient_id)
            sender = None
        else:
            recipient, sender = await asyncio.gather(
                self._identity.get_user(recipient_id),
                self._identity.get_user(sender_id),
            )
        if recipient is None:
            raise RecipientNotFoundError(recipient_id)
        if sender_id is not None and sender is None:
            raise RecipientNotFoundError(sender_id, role="sender")
        return recipient, sender

    def _render(
        self,
        request: NotificationCreate,
        config: TypeConfig,
        reserved: Mapping[str, Any],
        sender: UserIdentity | None,
    ) -> tuple[str, str]:
        placeholders: dict[str, Any] = {}
        if isinstance(reserved.get("placeholders"), Mapping):
            placeholders.update(reserved["placeholders"])
        placeholders.update(request.placeholders or {})

        caller_title = request.title or reserved.get("title")
        caller_message = request.message or reserved.get("message")
        errors = []
        if caller_title and len(str(caller_title)) > TITLE_MAX_LENGTH:
            errors.append(f"title exceeds {TITLE_MAX_LENGTH} characters")
        if caller_message and len(str(caller_message)) > MESSAGE_MAX_LENGTH:
            errors.append(f"message exceeds {MESSAGE_MAX_LENGTH} characters")
        if errors:
            raise NotificationValidationError(errors)

        sender_name = sender.display_name if sender else "Someone"
        if caller_title:
            title = str(caller_title)
        else:
            title = substitute(config.default_title, {"sender": sender_name})
        if caller_message:
            message = str(caller_message)
        else:
            message = substitute(config.default_message, {"sender": sender_name})

        title = substitute(title, placeholders)
        message = substitute(message, placeholders)
        return _fit(title, TITLE_MAX_LENGTH), _fit(message, MESSAGE_MAX_LENGTH)

    @staticmethod
    def _channel_skips(overrides: Mapping[str, bool] | None) -> ChannelSkips:
        if not overrides:
            return ChannelSkips()
        known = {channel.value for channel in DeliveryChannel}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise NotificationValidationError([f"Unknown channel override: {name}" for name in unknown])
        return ChannelSkips(**{name: not enabled for name, enabled in overrides.items()})

    @staticmethod
    def _image(value: Any) -> NotificationImage | None:
        if not value:
            return None
        if isinstance(value, str):
            return NotificationImage(url=value)
        if isinstance(value, Mapping) and value.get("url"):
            return NotificationImage(url=str(value["url"]), alt=value.get("alt"))
        raise NotificationValidationError(["data.image must be a URL or {url, alt}"])

    @staticmethod
    def _action_url(value: Any) -> str | None:
        if not value:
            return None
        url = str(value)
        if len(url) > ACTION_URL_MAX_LENGTH:
            raise NotificationValidationError([f"action_url exceeds {ACTION_URL_MAX_LENGTH} characters"])
        return url


__all__ = [
    "CONTENT_TYPE_BY_NOTIFICATION_TYPE",
    "RESERVED_DATA_KEYS",
    "NotificationFactory",
    "classify_content",
    "normalize_user_id",
    "split_data",
    "substitute",
]
