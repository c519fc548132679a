"""Dating context handler."""

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

DATING_EVENTS: dict[str, str] = {
    "match": "matched",
    "like": "liked",
    "super_like": "super_liked",
    "message_received": "message_received",
    "match_request": "match_requested",
    "match_accepted": "match_accepted",
    "match_rejected": "match_rejected",
    "date_suggestion": "date_suggested",
    "date_accepted": "date_accepted",
    "date_rejected": "date_rejected",
    "reminder": "reminder",
}

HIGH = NotificationPriority.HIGH


class DatingNotificationHandler(ContextNotificationHandler):
    context: ClassVar[NotificationContext] = NotificationContext.DATING
    events: ClassVar[Mapping[str, str]] = DATING_EVENTS

    async def create_match(
        self, session: AsyncSession, recipient_id: str, sender_id: str, data: dict[str, Any] | None = None
    ) -> HandledNotification:
        return await self._create(session, "match", recipient_id, sender_id, data, priority=HIGH)

    async def create_like(
        self, session: AsyncSession, recipient_id: str, sender_id: str, data: dict[str, Any] | None = None
    ) -> HandledNotification:
        return await self._create(session, "like", recipient_id, sender_id, data)

    async def create_super_like(
        self, session: AsyncSession, recipient_id: str, sender_id: str, data: dict[str, Any] | None = None
    ) -> HandledNotification:
        return await self._create(session, "super_like", recipient_id, sender_id, data, priority=HIGH)

    async def create_message_received(
        self, session: AsyncSession, recipient_id: str, sender_id: str, data: dict[str, Any] | None = None
    ) -> HandledNotification:
        return await self._create(session, "message_received", recipient_id, sender_id, data, priority=HIGH)

    async def create_match_request(
        self, session: AsyncSession, recipient_id: str, sender_id: str, data: dict[str, Any] | None = None
    ) -> HandledNotification:
        return await self._create(session, "match_request", recipient_id, sender_id, data, priority=HIGH)

    async def create_match_accepted(
        self, session: AsyncSession, recipient_id: str, sender_id: str, data: dict[str, Any] | None = None
    ) -> HandledNotification:
        return await self._create(session, "match_accepted", recipient_id, sender_id, data, priority=HIGH)

    async def create_match_rejected(
        self, session: AsyncSession, recipient_id: str, sender_id: str, data: dict[str, Any] | None = None
    ) -> HandledNotification:
        return await self._create(session, "match_rejected", recipient_id, sender_id, data)

    async def create_date_suggestion(
        self, session: AsyncSession, recipient_id: str, sender_id: str, data: dict[str, Any] | None = None
    ) -> HandledNotification:
        return await self._create(session, "date_suggestion", recipient_id, sender_id, data, priority=HIGH)

    async def create_date_accepted(
        self, session: AsyncSession, recipient_id: str, sender_id: str, data: dict[str, Any] | None = None
    ) -> HandledNotification:
        return await self._create(session, "date_accepted", recipient_id, sender_id, data, priority=HIGH)

    async def create_date_rejected(
        self, session: AsyncSession, recipient_id: str, sender_id: str, data: dict[str, Any] | None = None
    ) -> HandledNotification:
        return await self._create(session, "date_rejected", recipient_id, sender_id, data)
