"""Wiring of the notification engine.

Everything is constructed explicitly and passed by reference; the registry
is built once and shared by the factory, the handlers and the preference
service.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from notification_service.core.database import utcnow
from notification_service.core.settings import get_notification_settings
from notification_service.features.notifications.channels import (
    EmailChannelSender,
    InAppChannelSender,
    PushChannelSender,
    SmsChannelSender,
)
from notification_service.features.notifications.delivery import DeliveryManager
from notification_service.features.notifications.enums import DeliveryChannel, NotificationContext
from notification_service.features.notifications.factory import NotificationFactory
from notification_service.features.notifications.handlers import (
    ContextNotificationHandler,
    DatingNotificationHandler,
    SocialNotificationHandler,
)
from notification_service.features.notifications.preference_service import PreferenceService
from notification_service.features.notifications.repository import (
    get_notification_preferences_repository,
    get_notification_repository,
)
from notification_service.features.notifications.retry_queue import PushRetryQueue
from notification_service.features.notifications.service import NotificationService
from notification_service.features.notifications.types import (
    NotificationTypeRegistry,
    build_default_registry,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from notification_service.core.settings import NotificationSettings
    from notification_service.features.notifications.ports import (
        EmailTransport,
        IdentityProvider,
        LiveEventPublisher,
        PushTransport,
        SmsTransport,
    )


@dataclass(slots=True, frozen=True)
class NotificationEngine:
    registry: NotificationTypeRegistry
    factory: NotificationFactory
    delivery: DeliveryManager
    retry_queue: PushRetryQueue
    preferences: PreferenceService
    handlers: dict[NotificationContext, ContextNotificationHandler]
    service: NotificationService

    async def start(self) -> None:
        await self.retry_queue.start()

    async def stop(self) -> None:
        await self.retry_queue.stop()


def build_notification_engine(
    *,
    session_factory: async_sessionmaker[AsyncSession],
    publisher: LiveEventPublisher,
    identity_provider: IdentityProvider,
    push_transport: PushTransport | None = None,
    email_transport: EmailTransport | None = None,
    sms_transport: SmsTransport | None = None,
    settings: NotificationSettings | None = None,
    registry: NotificationTypeRegistry | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> NotificationEngine:
    """Assemble the engine from its collaborators.

    Transports left as None make their channel a soft no-op (SMS falls
    back to marking delivered when a phone number exists).
    """
    settings = settings or get_notification_settings()
    registry = registry or build_default_registry()
    notification_repository = get_notification_repository()
    preferences_repository = get_notification_preferences_repository()

    retry_queue = PushRetryQueue(settings, session_factory, clock=clock)
    delivery = DeliveryManager(
        preferences_repository,
        {
            DeliveryChannel.IN_APP: InAppChannelSender(publisher),
            DeliveryChannel.PUSH: PushChannelSender(push_transport, identity_provider),
            DeliveryChannel.EMAIL: EmailChannelSender(email_transport),
            DeliveryChannel.SMS: SmsChannelSender(sms_transport),
        },
        quiet_hours_bypass=settings.quiet_hours_bypass_types,
        retry_queue=retry_queue,
        clock=clock,
    )
    retry_queue.set_redeliver(delivery.redeliver_push)

    factory = NotificationFactory(registry, identity_provider, clock=clock)
    handler_args = (factory, notification_repository, delivery, publisher)
    handlers: dict[NotificationContext, ContextNotificationHandler] = {
        NotificationContext.SOCIAL: SocialNotificationHandler(*handler_args, clock=clock),
        NotificationContext.DATING: DatingNotificationHandler(*handler_args, clock=clock),
    }
    preferences = PreferenceService(registry, preferences_repository)
    service = NotificationService(
        handlers,
        delivery,
        preferences,
        settings,
        repository=notification_repository,
        clock=clock,
    )
    return NotificationEngine(
        registry=registry,
        factory=factory,
        delivery=delivery,
        retry_queue=retry_queue,
        preferences=preferences,
        handlers=handlers,
        service=service,
    )


__all__ = ["NotificationEngine", "build_notification_engine"]
