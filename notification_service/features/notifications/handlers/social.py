"""Social context handler."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from notification_service.features.notifications.enums import (
    NotificationContext,
    NotificationPriority,
)
from notification_service.features.notifications.handlers.base import (
    ContextNotificationHandler,
    HandledNotification,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.ext.asyncio import AsyncSession

SOCIAL_EVENTS: dict[str, str] = {
    "post_like": "post_liked",
    "post_comment": "post_commented",
    "post_share": "post_shared",
    "post_mention": "post_mentioned",
    "story_view": "story_viewed",
    "story_reaction": "story_reacted",
    "story_reply": "story_replied",
    "story_mention": "story_mentioned",
    "follow_request": "follow_requested",
    "follow_accepted": "follow_accepted",
    "follow": "followed",
    "message_received": "message_received",
    "message_request": "message_requested",
    "call_incoming": "call_incoming",
    "call_missed": "call_missed",
    "call_ended": "call_ended",
}


class SocialNotificationHandler(ContextNotificationHandler):
    context: ClassVar[NotificationContext] = NotificationContext.SOCIAL
    events: ClassVar[Mapping[str, str]] = SOCIAL_EVENTS

    async def create_post_like(
        self, session: AsyncSession, recipient_id: str, sender_id: str, data: dict[str, Any] | None = None
    ) -> HandledNotification:
        return await self._create(session, "post_like", recipient_id, sender_id, data)

    async def create_post_comment(
        self, session: AsyncSession, recipient_id: str, sender_id: str, data: dict[str, Any] | None = None
    ) -> HandledNotification:
        return await self._create(session, "post_comment", recipient_id, sender_id, data)

    async def create_follow_request(
        self, session: AsyncSession, recipient_id: str, sender_id: str, data: dict[str, Any] | None = None
    ) -> HandledNotification:
        return await self._create(session, "follow_request", recipient_id, sender_id, data)

    async def create_follow_accepted(
        self, session: AsyncSession, recipient_id: str, sender_id: str, data: dict[str, Any] | None = None
    ) -> HandledNotification:
        return await self._create(session, "follow_accepted", recipient_id, sender_id, data)

    async def create_follow(
        self, session: AsyncSession, recipient_id: str, sender_id: str, data: dict[str, Any] | None = None
    ) -> HandledNotification:
        return await self._create(session, "follow", recipient_id, sender_id, data)

    async def create_message_received(
        self, session: AsyncSession, recipient_id: str, sender_id: str, data: dict[str, Any] | None = None
    ) -> HandledNotification:
        return await self._create(session, "message_received", recipient_id, sender_id, data)

    async def create_message_request(
        self, session: AsyncSession, recipient_id: str, sender_id: str, data: dict[str, Any] | None = None
    ) -> HandledNotification:
        return await self._create(session, "message_request", recipient_id, sender_id, data)

    async def create_call_incoming(
        self, session: AsyncSession, recipient_id: str, sender_id: str, data: dict[str, Any] | None = None
    ) -> HandledNotification:
        return await self._create(
            session, "call_incoming", recipient_id, sender_id, data, priority=NotificationPriority.URGENT
        )

    async def create_call_missed(
        self, session: AsyncSession, recipient_id: str, sender_id: str, data: dict[str, Any] | None = None
    ) -> HandledNotification:
        return await self._create(session, "call_missed", recipient_id, sender_id, data)

    async def create_system_announcement(
        self, session: AsyncSession, recipient_id: str, data: dict[str, Any] | None = None
    ) -> HandledNotification:
        return await self._create(session, "system_announcement", recipient_id, None, data)

    async def create_content_moderation(
        self, session: AsyncSession, recipient_id: str, data: dict[str, Any] | None = None
    ) -> HandledNotification:
        return await self._create(
            session, "content_moderation", recipient_id, None, data, priority=NotificationPriority.HIGH
        )
