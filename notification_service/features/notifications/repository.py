"""Repositories for the notifications feature."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, func, select, update
from sqlalchemy import delete as sql_delete

from notification_service.core.database import utcnow
from notification_service.core.database.repository import BaseRepository, SearchResult
from notification_service.features.notifications.enums import (
    DeliveryStatus,
    NotificationStatus,
)
from notification_service.features.notifications.models import (
    Notification,
    NotificationPreferences,
)
from notification_service.features.notifications.preferences import PreferenceDocument

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from notification_service.features.notifications.schemas import (
        NotificationFilters,
        NotificationMatch,
        NotificationPayload,
    )

# Statuses a listing with status="all" returns; deleted rows never show up
VISIBLE_STATUSES: tuple[str, ...] = (
    NotificationStatus.UNREAD.value,
    NotificationStatus.READ.value,
    NotificationStatus.ARCHIVED.value,
)


def data_contains(data: Mapping[str, Any] | None, subset: Mapping[str, Any]) -> bool:
    """Whether every key/value of ``subset`` is present in ``data``."""
    data = data or {}
    return all(key in data and data[key] == value for key, value in subset.items())


class NotificationRepository(BaseRepository[Notification]):
    """Repository for Notification model.

    Provides creation from factory payloads, inbox listing, bulk status
    updates and the queries behind the scheduled-delivery and expiry sweeps.
    """

    def __init__(self) -> None:
        super().__init__(Notification)

    async def create_from_payload(
        self,
        session: AsyncSession,
        payload: NotificationPayload,
    ) -> Notification:
        """Persist a rendered payload with every channel marked not delivered."""
        notification = Notification(
            context=payload.context.value,
            notification_type=payload.notification_type,
            recipient_id=payload.recipient_id,
            sender_id=payload.sender_id,
            title=payload.title,
            message=payload.message,
            image=payload.image.model_dump() if payload.image else None,
            action_url=payload.action_url,
            content_type=payload.related_content.content_type,
            content_id=payload.related_content.content_id,
            content_metadata=dict(payload.related_content.metadata),
            data=dict(payload.data),
            status=NotificationStatus.UNREAD.value,
            delivery_status=DeliveryStatus.PENDING.value,
            priority=payload.priority.value,
            in_app_attempted=False,
            in_app_delivered=False,
            push_attempted=False,
            push_delivered=False,
            push_device_tokens=[],
            push_retry_attempts=0,
            push_permanently_failed=False,
            email_attempted=False,
            email_delivered=False,
            email_address=payload.email_address,
            sms_attempted=False,
            sms_delivered=False,
            phone_number=payload.phone_number,
            skip_in_app=payload.skip.in_app,
            skip_push=payload.skip.push,
            skip_email=payload.skip.email,
            skip_sms=payload.skip.sms,
            scheduled_for=payload.scheduled_for,
            expires_at=payload.expires_at,
            open_count=0,
            click_count=0,
        )
        return await self.create(session, notification)

    async def get_for_user(
        self,
        session: AsyncSession,
        notification_id: UUID,
        user_id: str,
    ) -> Notification | None:
        """Get a recipient's notification; deleted notifications are not returned."""
        stmt = select(Notification).where(
            and_(
                Notification.id == notification_id,
                Notification.recipient_id == user_id,
                Notification.status != NotificationStatus.DELETED.value,
            ),
        )
        result = await session.execute(stmt)
        notification = result.scalars().first()
        self._lazy.debug(
            lambda: f"db.get_for_user({notification_id}, {user_id=}) -> {'found' if notification else 'not found'}"
        )
        return notification

    async def list_for_user(
        self,
        session: AsyncSession,
        user_id: str,
        filters: NotificationFilters,
        *,
        limit: int,
        timeout: float | None = None,
    ) -> SearchResult[Notification]:
        """List a user's notifications, newest first.

        Args:
            session: Database session
            user_id: Recipient id
            filters: Status/type/context/priority filters and the page number
            limit: Page size
            timeout: Upper bound in seconds for the whole query

        Raises:
            TimeoutError: The query did not finish within ``timeout``
        """
        stmt = select(Notification).where(Notification.recipient_id == user_id)

        if filters.status == "all":
            stmt = stmt.where(Notification.status.in_(VISIBLE_STATUSES))
        else:
            stmt = stmt.where(Notification.status == filters.status)

        if filters.notification_type:
            stmt = stmt.where(Notification.notification_type == filters.notification_type)
        if filters.context is not None:
            stmt = stmt.where(Notification.context == filters.context.value)
        if filters.priority is not None:
            stmt = stmt.where(Notification.priority == filters.priority.value)

        stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc())
        offset = (filters.page - 1) * limit

        async with asyncio.timeout(timeout):
            return await self.search(session, stmt, limit=limit, offset=offset)

    async def count_unread(
        self,
        session: AsyncSession,
        user_id: str,
        context: str | None = None,
    ) -> int:
        stmt = select(func.count()).where(
            and_(
                Notification.recipient_id == user_id,
                Notification.status == NotificationStatus.UNREAD.value,
            ),
        )
        if context is not None:
            stmt = stmt.where(Notification.context == context)

        count = (await session.execute(stmt)).scalar() or 0
        self._lazy.debug(lambda: f"db.count_unread({user_id=}, {context=}) -> {count}")
        return count

    async def mark_all_as_read(
        self,
        session: AsyncSession,
        user_id: str,
        context: str | None = None,
        *,
        now: datetime | None = None,
    ) -> int:
        """Bulk transition unread -> read.

        Returns:
            Number of notifications updated
        """
        now = now or utcnow()
        criteria = [
            Notification.recipient_id == user_id,
            Notification.status == NotificationStatus.UNREAD.value,
        ]
        if context is not None:
            criteria.append(Notification.context == context)

        stmt = (
            update(Notification)
            .where(and_(*criteria))
            .values(
                status=NotificationStatus.READ.value,
                read_at=now,
            )
            .execution_options(synchronize_session="fetch")
        )
        result = await session.execute(stmt)
        await session.flush()

        count = result.rowcount or 0
        self._logger.info(
            "Marked notifications as read",
            extra={"user_id": user_id, "context": context, "count": count, "operation": "db.mark_all_as_read"},
        )
        return count

    async def find_pending_scheduled(
        self,
        session: AsyncSession,
        *,
        now: datetime | None = None,
        limit: int = 100,
    ) -> Sequence[Notification]:
        """Notifications whose schedule has come due and that were never delivered."""
        now = now or utcnow()
        stmt = (
            select(Notification)
            .where(
                and_(
                    Notification.delivery_status == DeliveryStatus.PENDING.value,
                    Notification.scheduled_for.isnot(None),
                    Notification.scheduled_for <= now,
                ),
            )
            .order_by(Notification.scheduled_for.asc())
            .limit(limit)
        )
        items = (await session.execute(stmt)).scalars().all()
        self._lazy.debug(lambda: f"db.find_pending_scheduled() -> {len(items)} notifications")
        return items

    async def delete_expired(self, session: AsyncSession, *, now: datetime | None = None) -> int:
        """Hard-delete notifications whose expiry has passed.

        Returns:
            Number of rows deleted
        """
        now = now or utcnow()
        stmt = (
            sql_delete(Notification)
            .where(
                and_(
                    Notification.expires_at.isnot(None),
                    Notification.expires_at <= now,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        await session.flush()

        count = result.rowcount or 0
        self._logger.info(
            "Expired notifications deleted",
            extra={"count": count, "operation": "db.delete_expired"},
        )
        return count

    async def find_matching(
        self,
        session: AsyncSession,
        match: NotificationMatch,
    ) -> list[Notification]:
        """Notifications of one type for one recipient whose data contains ``match.data``.

        Type, recipient, sender and context narrow the query through the
        indexes; the data subset is compared in Python.
        """
        stmt = select(Notification).where(
            and_(
                Notification.notification_type == match.notification_type,
                Notification.recipient_id == match.recipient_id,
            ),
        )
        if match.sender_id is not None:
            stmt = stmt.where(Notification.sender_id == match.sender_id)
        if match.context is not None:
            stmt = stmt.where(Notification.context == match.context.value)

        candidates = (await session.execute(stmt)).scalars().all()
        matched = [n for n in candidates if data_contains(n.data, match.data)]
        self._lazy.debug(
            lambda: f"db.find_matching({match.notification_type}, {match.recipient_id}) -> {len(matched)}/{len(candidates)}"
        )
        return matched


class NotificationPreferencesRepository(BaseRepository[NotificationPreferences]):
    """Repository for per-user preference documents."""

    def __init__(self) -> None:
        super().__init__(NotificationPreferences)

    async def get_for_user(
        self,
        session: AsyncSession,
        user_id: str,
    ) -> NotificationPreferences | None:
        return await self.get_by(session, NotificationPreferences.user_id, user_id)

    async def get_or_create(
        self,
        session: AsyncSession,
        user_id: str,
    ) -> NotificationPreferences:
        """Load a user's preferences, creating the default document on first read."""
        existing = await self.get_for_user(session, user_id)
        if existing is not None:
            return existing

        row = NotificationPreferences(user_id=user_id, **PreferenceDocument().to_columns())
        created = await self.create(session, row)
        self._logger.info(
            "Default notification preferences created",
            extra={"user_id": user_id, "operation": "db.get_or_create"},
        )
        return created

    async def save(
        self,
        session: AsyncSession,
        row: NotificationPreferences,
        document: PreferenceDocument,
    ) -> NotificationPreferences:
        """Write a validated document back to its row."""
        for name, value in document.to_columns().items():
            setattr(row, name, value)
        await session.flush()
        self._lazy.debug(lambda: f"db.save_preferences({row.user_id})")
        return row


_notification_repository: NotificationRepository | None = None
_preferences_repository: NotificationPreferencesRepository | None = None


def get_notification_repository() -> NotificationRepository:
    """Get NotificationRepository singleton instance."""
    global _notification_repository
    if _notification_repository is None:
        _notification_repository = NotificationRepository()
    return _notification_repository


def get_notification_preferences_repository() -> NotificationPreferencesRepository:
    """Get NotificationPreferencesRepository singleton instance."""
    global _preferences_repository
    if _preferences_repository is None:
        _preferences_repository = NotificationPreferencesRepository()
    return _preferences_repository


__all__ = [
    "VISIBLE_STATUSES",
    "NotificationPreferencesRepository",
    "NotificationRepository",
    "data_contains",
    "get_notification_preferences_repository",
    "get_notification_repository",
]
