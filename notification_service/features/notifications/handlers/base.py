"""Shared create -> persist -> deliver -> companion-event flow for a context."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar

from notification_service.core.database import utcnow
from notification_service.features.notifications.enums import (
    DeliveryChannel,
    NotificationContext,
    NotificationPriority,
)
from notification_service.features.notifications.metrics import notification_created_total
from notification_service.features.notifications.schemas import NotificationCreate
from notification_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from notification_service.features.notifications.delivery import (
        DeliveryManager,
        DeliveryOutcome,
    )
    from notification_service.features.notifications.factory import NotificationFactory
    from notification_service.features.notifications.models import Notification
    from notification_service.features.notifications.ports import LiveEventPublisher
    from notification_service.features.notifications.repository import NotificationRepository


@dataclass(slots=True)
class HandledNotification:
    """A persisted notification plus what happened on delivery.

    ``delivery`` is None while the notification waits for its schedule.
    """

    notification: Notification
    delivery: DeliveryOutcome | None = None
    companion_event: str | None = None


class ContextNotificationHandler:
    """Creates and delivers notifications for one context.

    Subclasses set ``context`` and ``events``, the map from notification
    type to the companion event published as ``"{context}:{event}"`` after
    the in-app channel delivered.
    """

    context: ClassVar[NotificationContext]
    events: ClassVar[Mapping[str, str]] = {}

    def __init__(
        self,
        factory: NotificationFactory,
        repository: NotificationRepository,
        delivery: DeliveryManager,
        publisher: LiveEventPublisher,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._factory = factory
        self._repository = repository
        self._delivery = delivery
        self._publisher = publisher
        self._clock = clock
        self._logger = logging.getLogger(self.__class__.__name__)
        self._lazy = get_lazy_logger(self.__class__.__name__)

    def event_for(self, notification_type: str) -> str | None:
        return self.events.get(notification_type)

    async def handle(self, session: AsyncSession, request: NotificationCreate) -> HandledNotification:
        """Create, persist and deliver one notification.

        Raises:
            NotificationValidationError: The request is invalid for this context
            RecipientNotFoundError: Recipient or sender does not exist
        """
        request = request.model_copy(update={"context": self.context.value})
        payload = await self._factory.create(request)
        notification = await self._repository.create_from_payload(session, payload)

        notification_created_total.labels(
            context=notification.context,
            type=notification.notification_type,
            priority=notification.priority,
        ).inc()
        self._logger.info(
            "Notification created",
            extra={
                "notification_id": str(notification.id),
                "context": notification.context,
                "type": notification.notification_type,
                "recipient_id": notification.recipient_id,
            },
        )

        if notification.scheduled_for is not None and notification.scheduled_for > self._clock():
            self._lazy.debug(lambda: f"Notification {notification.id} scheduled for {notification.scheduled_for}")
            return HandledNotification(notification=notification)

        # The sweep only picks up rows that still carry a schedule
        notification.scheduled_for = None
        outcome = await self._delivery.deliver(session, notification)
        handled = HandledNotification(notification=notification, delivery=outcome)

        in_app = outcome.results.get(DeliveryChannel.IN_APP)
        if in_app is not None and in_app.delivered:
            handled.companion_event = await self.publish_companion_event(notification)
        return handled

    async def publish_companion_event(self, notification: Notification) -> str | None:
        """Publish the context-specific event; failures are logged, not raised."""
        event = self.event_for(notification.notification_type)
        if event is None:
            return None

        event_name = f"{self.context.value}:{event}"
        payload = notification.to_event_payload()
        try:
            await self._publisher.publish(
                notification.recipient_id,
                event_name,
                {
                    "notification": payload["id"],
                    "data": payload["data"],
                    "related_content": payload["related_content"],
                },
            )
        except Exception:
            self._logger.exception(
                "Companion event publish failed",
                extra={"notification_id": str(notification.id), "event": event_name},
            )
            return None
        return event_name

    async def _create(
        self,
        session: AsyncSession,
        notification_type: str,
        recipient_id: str,
        sender_id: str | None = None,
        data: dict[str, Any] | None = None,
        *,
        priority: NotificationPriority | None = None,
    ) -> HandledNotification:
        request = NotificationCreate(
            context=self.context.value,
            notification_type=notification_type,
            recipient_id=recipient_id,
            sender_id=sender_id,
            data=data or {},
            priority=priority,
        )
        return await self.handle(session, request)
