"""In-app channel: publishes the notification to the recipient's live sessions."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from notification_service.core.database import utcnow
from notification_service.features.notifications.channels.base import (
    DeliveryResult,
    elapsed_ms,
)
from notification_service.features.notifications.enums import DeliveryChannel
from notification_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from notification_service.features.notifications.models import Notification
    from notification_service.features.notifications.ports import LiveEventPublisher
    from notification_service.features.notifications.preferences import PreferenceDocument

NOTIFICATION_EVENT = "notification"


class InAppChannelSender:
    """Publishes the ``notification`` event once per delivery.

    A recipient with no live session is a soft no-op: the notification row
    still shows up in their inbox.
    """

    channel = DeliveryChannel.IN_APP

    def __init__(self, publisher: LiveEventPublisher) -> None:
        self._publisher = publisher
        self._logger = logging.getLogger(__name__)
        self._lazy = get_lazy_logger(__name__)

    async def send(
        self,
        notification: Notification,
        preferences: PreferenceDocument,
    ) -> DeliveryResult:
        start_time = time.time()

        try:
            sessions = await self._publisher.publish(
                notification.recipient_id,
                NOTIFICATION_EVENT,
                notification.to_event_payload(),
            )
        except Exception as exc:
            self._logger.exception(
                "In-app publish failed",
                extra={"notification_id": str(notification.id)},
            )
            return DeliveryResult.failure(
                self.channel,
                str(exc),
                response_time_ms=elapsed_ms(start_time, time.time()),
            )

        if not sessions:
            self._lazy.debug(lambda: f"No live session for {notification.recipient_id}; in-app skipped")
            return DeliveryResult.skipped(self.channel, "no_live_session")

        return DeliveryResult.success(
            self.channel,
            delivered_at=utcnow(),
            response_time_ms=elapsed_ms(start_time, time.time()),
            metadata={"sessions": sessions},
        )
