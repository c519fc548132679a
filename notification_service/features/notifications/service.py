"""Notification service: the engine's surface for the rest of the application."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any

from notification_service.core.database import utcnow
from notification_service.core.exceptions import ServiceUnavailableException
from notification_service.core.services.base import BaseService
from notification_service.features.notifications.enums import (
    DeliveryChannel,
    NotificationContext,
    NotificationStatus,
)
from notification_service.features.notifications.exceptions import (
    NotificationNotFoundError,
    NotificationValidationError,
)
from notification_service.features.notifications.factory import MESSAGE_MAX_LENGTH, TITLE_MAX_LENGTH
from notification_service.features.notifications.repository import (
    NotificationRepository,
    get_notification_repository,
)
from notification_service.features.notifications.schemas import (
    BulkMutationResult,
    NotificationFilters,
    NotificationPage,
    PendingDeliveryReport,
)
from notification_service.features.notifications.types import coerce_context

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from notification_service.core.settings import NotificationSettings
    from notification_service.features.notifications.delivery import DeliveryManager
    from notification_service.features.notifications.handlers import (
        ContextNotificationHandler,
        HandledNotification,
    )
    from notification_service.features.notifications.models import Notification
    from notification_service.features.notifications.preference_service import PreferenceService
    from notification_service.features.notifications.preferences import PreferenceDocument
    from notification_service.features.notifications.schemas import (
        NotificationCreate,
        NotificationMatch,
    )

UPDATABLE_FIELDS = frozenset({"status", "title", "message", "data"})


class NotificationService(BaseService):
    """Creates notifications and manages their lifecycle.

    Provides:
    - Creation routed to the handler of the request's context
    - Inbox listing, unread counts and per-notification user actions
    - Bulk update/delete of notifications matching type, recipient and data
    - Preference reads and writes (delegated to PreferenceService)
    - The scheduled-delivery and expiry sweeps
    """

    def __init__(
        self,
        handlers: Mapping[NotificationContext, ContextNotificationHandler],
        delivery: DeliveryManager,
        preferences: PreferenceService,
        settings: NotificationSettings,
        *,
        repository: NotificationRepository | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        super().__init__()
        self._handlers = dict(handlers)
        self._delivery = delivery
        self._preferences = preferences
        self._settings = settings
        self._repository = repository or get_notification_repository()
        self._clock = clock

    # ──────────────────────────────────────────────────────────────
    # Creation
    # ──────────────────────────────────────────────────────────────

    def handler_for(self, context: NotificationContext | str) -> ContextNotificationHandler:
        parsed = coerce_context(context)
        if parsed is None or parsed not in self._handlers:
            raise NotificationValidationError([f"Invalid context: {context}"])
        return self._handlers[parsed]

    async def create(self, session: AsyncSession, request: NotificationCreate) -> HandledNotification:
        """Create, persist and (unless scheduled) deliver a notification."""
        return await self.handler_for(request.context).handle(session, request)

    # ──────────────────────────────────────────────────────────────
    # Queries
    # ──────────────────────────────────────────────────────────────

    async def get_user_notifications(
        self,
        session: AsyncSession,
        user_id: str,
        filters: NotificationFilters | None = None,
    ) -> NotificationPage:
        """List a user's notifications, newest first.

        Raises:
            ServiceUnavailableException: The listing query timed out
        """
        filters = filters or NotificationFilters()
        limit = min(filters.limit or self._settings.default_page_size, self._settings.max_page_size)
        try:
            result = await self._repository.list_for_user(
                session,
                user_id,
                filters,
                limit=limit,
                timeout=self._settings.list_query_timeout_seconds,
            )
        except TimeoutError as exc:
            self.logger.warning("Notification listing timed out", extra={"user_id": user_id})
            raise ServiceUnavailableException(
                detail="Notification listing timed out",
                type="notification-query-timeout",
            ) from exc
        return NotificationPage(items=result.items, page=filters.page, limit=limit, total=result.total)

    async def get_unread_count(
        self,
        session: AsyncSession,
        user_id: str,
        context: NotificationContext | str = "all",
    ) -> int:
        if context == "all":
            return await self._repository.count_unread(session, user_id)
        parsed = coerce_context(context)
        if parsed is None:
            raise NotificationValidationError([f"Invalid context: {context}"])
        return await self._repository.count_unread(session, user_id, parsed.value)

    async def get_notification(self, session: AsyncSession, notification_id: UUID, user_id: str) -> Notification:
        notification = await self._repository.get_for_user(session, notification_id, user_id)
        if notification is None:
            raise NotificationNotFoundError(notification_id, user_id=user_id)
        return notification

    # ──────────────────────────────────────────────────────────────
    # User actions
    # ──────────────────────────────────────────────────────────────

    async def mark_as_read(self, session: AsyncSession, notification_id: UUID, user_id: str) -> Notification:
        notification = await self.get_notification(session, notification_id, user_id)
        if notification.mark_as_read(self._clock()):
            await session.flush()
            self._lazy.debug(lambda: f"Notification {notification_id} marked as read")
        return notification

    async def mark_as_unread(self, session: AsyncSession, notification_id: UUID, user_id: str) -> Notification:
        notification = await self.get_notification(session, notification_id, user_id)
        if notification.mark_as_unread():
            await session.flush()
        return notification

    async def archive(self, session: AsyncSession, notification_id: UUID, user_id: str) -> Notification:
        notification = await self.get_notification(session, notification_id, user_id)
        notification.archive(self._clock())
        await session.flush()
        return notification

    async def delete(self, session: AsyncSession, notification_id: UUID, user_id: str) -> Notification:
        """Soft delete: the row stays but disappears from every listing."""
        notification = await self.get_notification(session, notification_id, user_id)
        notification.soft_delete()
        await session.flush()
        self.logger.info(
            "Notification deleted",
            extra={"notification_id": str(notification_id), "user_id": user_id},
        )
        return notification

    async def record_click(self, session: AsyncSession, notification_id: UUID, user_id: str) -> Notification:
        notification = await self.get_notification(session, notification_id, user_id)
        notification.record_click(self._clock())
        await session.flush()
        return notification

    async def mark_all_as_read(
        self,
        session: AsyncSession,
        user_id: str,
        context: NotificationContext | str | None = None,
    ) -> int:
        if context is None or context == "all":
            return await self._repository.mark_all_as_read(session, user_id, now=self._clock())
        parsed = coerce_context(context)
        if parsed is None:
            raise NotificationValidationError([f"Invalid context: {context}"])
        return await self._repository.mark_all_as_read(session, user_id, parsed.value, now=self._clock())

    # ──────────────────────────────────────────────────────────────
    # Bulk mutation by type and data
    # ──────────────────────────────────────────────────────────────

    async def update_by_type_and_data(
        self,
        session: AsyncSession,
        match: NotificationMatch,
        update_data: dict[str, Any],
    ) -> BulkMutationResult:
        """Update notifications whose data contains ``match.data``.

        ``update_data`` may set ``status``, ``title`` and ``message``; a
        ``data`` mapping is merged into the existing data.
        """
        unknown = sorted(set(update_data) - UPDATABLE_FIELDS)
        if unknown:
            raise NotificationValidationError([f"Field cannot be updated: {name}" for name in unknown])
        status = self._parse_status(update_data.get("status"))

        notifications = await self._repository.find_matching(session, match)
        modified = 0
        now = self._clock()
        for notification in notifications:
            changed = False
            if status is not None and notification.status != status:
                notification.status = status.value
                if status == NotificationStatus.READ and notification.read_at is None:
                    notification.read_at = now
                elif status == NotificationStatus.ARCHIVED:
                    notification.archived_at = now
                changed = True
            if "title" in update_data:
                title = str(update_data["title"]).strip()[:TITLE_MAX_LENGTH]
                if title != notification.title:
                    notification.title = title
                    changed = True
            if "message" in update_data:
                message = str(update_data["message"]).strip()[:MESSAGE_MAX_LENGTH]
                if message != notification.message:
                    notification.message = message
                    changed = True
            if isinstance(update_data.get("data"), Mapping):
                merged = {**(notification.data or {}), **update_data["data"]}
                if merged != notification.data:
                    # Reassign so the JSON column is flagged dirty
                    notification.data = merged
                    changed = True
            modified += int(changed)

        await session.flush()
        self.logger.info(
            "Notifications updated by type and data",
            extra={"type": match.notification_type, "matched": len(notifications), "modified": modified},
        )
        return BulkMutationResult(matched=len(notifications), modified=modified)

    async def delete_by_type_and_data(self, session: AsyncSession, match: NotificationMatch) -> int:
        """Hard-delete notifications whose data contains ``match.data``."""
        notifications = await self._repository.find_matching(session, match)
        return await self._repository.delete_many(session, [n.id for n in notifications])

    @staticmethod
    def _parse_status(value: Any) -> NotificationStatus | None:
        if value is None:
            return None
        try:
            return NotificationStatus(value)
        except ValueError as exc:
            raise NotificationValidationError([f"Invalid status: {value}"]) from exc

    # ──────────────────────────────────────────────────────────────
    # Preferences
    # ──────────────────────────────────────────────────────────────

    async def get_user_preferences(self, session: AsyncSession, user_id: str) -> PreferenceDocument:
        return await self._preferences.get_preferences(session, user_id)

    async def update_user_preferences(
        self,
        session: AsyncSession,
        user_id: str,
        patch: dict[str, Any],
    ) -> PreferenceDocument:
        return await self._preferences.update_user_preferences(session, user_id, patch)

    async def reset_preferences(self, session: AsyncSession, user_id: str) -> PreferenceDocument:
        return await self._preferences.reset_to_defaults(session, user_id)

    # ──────────────────────────────────────────────────────────────
    # Sweeps
    # ──────────────────────────────────────────────────────────────

    async def cleanup_expired(self, session: AsyncSession) -> int:
        return await self._repository.delete_expired(session, now=self._clock())

    async def process_pending_deliveries(
        self,
        session: AsyncSession,
        *,
        limit: int = 100,
    ) -> list[PendingDeliveryReport]:
        """Deliver notifications whose schedule has come due.

        The schedule is consumed once the delivery manager returns, so a
        notification whose channels were all gated off is not picked up
        again. A delivery that raises keeps its schedule for the next sweep.
        """
        due = await self._repository.find_pending_scheduled(session, now=self._clock(), limit=limit)
        reports: list[PendingDeliveryReport] = []
        for notification in due:
            scheduled_for = notification.scheduled_for
            notification.scheduled_for = None
            try:
                outcome = await self._delivery.deliver(session, notification)
            except Exception as exc:
                notification.scheduled_for = scheduled_for
                self.logger.exception(
                    "Scheduled delivery failed",
                    extra={"notification_id": str(notification.id)},
                )
                reports.append(PendingDeliveryReport(notification.id, success=False, error=str(exc)))
                continue

            in_app = outcome.results.get(DeliveryChannel.IN_APP)
            handler = self._handlers.get(NotificationContext(notification.context))
            if handler is not None and in_app is not None and in_app.delivered:
                await handler.publish_companion_event(notification)
            reports.append(PendingDeliveryReport(notification.id, success=True, results=outcome.as_dict()))

        await session.flush()
        if reports:
            self.logger.info(
                "Scheduled deliveries processed",
                extra={"count": len(reports), "failed": sum(not r.success for r in reports)},
            )
        return reports


__all__ = ["NotificationService"]
