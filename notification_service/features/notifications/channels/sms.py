"""SMS channel.

With the default ``emergency_only`` setting only urgent notifications go
out. Without a transport the channel counts as delivered whenever a phone
number is on file.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from notification_service.core.database import utcnow
from notification_service.features.notifications.channels.base import (
    DeliveryResult,
    elapsed_ms,
)
from notification_service.features.notifications.enums import (
    DeliveryChannel,
    NotificationPriority,
)

if TYPE_CHECKING:
    from notification_service.features.notifications.models import Notification
    from notification_service.features.notifications.ports import SmsTransport
    from notification_service.features.notifications.preferences import PreferenceDocument


class SmsChannelSender:
    channel = DeliveryChannel.SMS

    def __init__(self, transport: SmsTransport | None = None) -> None:
        self._transport = transport
        self._logger = logging.getLogger(__name__)

    async def send(
        self,
        notification: Notification,
        preferences: PreferenceDocument,
    ) -> DeliveryResult:
        if preferences.channels.sms.emergency_only and notification.priority != NotificationPriority.URGENT:
            return DeliveryResult.skipped(self.channel, "sms_emergency_only")
        if not notification.phone_number:
            return DeliveryResult.skipped(self.channel, "no_phone_number")

        if self._transport is None:
            return DeliveryResult.success(
                self.channel,
                delivered_at=utcnow(),
                metadata={"recipient": notification.phone_number, "stub": True},
            )

        start_time = time.time()
        body = f"{notification.title}: {notification.message}"
        try:
            sent = await self._transport.send_sms(to=notification.phone_number, body=body)
        except Exception as exc:
            self._logger.exception(
                "Exception sending SMS",
                extra={"notification_id": str(notification.id)},
            )
            return DeliveryResult.failure(
                self.channel,
                str(exc),
                response_time_ms=elapsed_ms(start_time, time.time()),
            )

        response_time_ms = elapsed_ms(start_time, time.time())
        if not sent:
            return DeliveryResult.failure(
                self.channel,
                "SMS transport reported failure",
                response_time_ms=response_time_ms,
            )
        return DeliveryResult.success(
            self.channel,
            delivered_at=utcnow(),
            response_time_ms=response_time_ms,
            metadata={"recipient": notification.phone_number},
        )
