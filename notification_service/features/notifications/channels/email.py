"""Email channel.

Only users whose email frequency is ``immediate`` get a message right away;
digest frequencies are a silent no-op until digests exist.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from notification_service.core.database import utcnow
from notification_service.features.notifications.channels.base import (
    PERMANENT,
    DeliveryResult,
    elapsed_ms,
)
from notification_service.features.notifications.enums import DeliveryChannel, EmailFrequency
from notification_service.features.notifications.exceptions import PermanentChannelError
from notification_service.features.notifications.templates import (
    TemplateRenderer,
    get_template_renderer,
)

if TYPE_CHECKING:
    from notification_service.features.notifications.models import Notification
    from notification_service.features.notifications.ports import EmailTransport
    from notification_service.features.notifications.preferences import PreferenceDocument


class EmailChannelSender:
    channel = DeliveryChannel.EMAIL

    def __init__(
        self,
        transport: EmailTransport | None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self._transport = transport
        self._renderer = renderer or get_template_renderer()
        self._logger = logging.getLogger(__name__)

    async def send(
        self,
        notification: Notification,
        preferences: PreferenceDocument,
    ) -> DeliveryResult:
        if preferences.channels.email.frequency != EmailFrequency.IMMEDIATE:
            return DeliveryResult.skipped(self.channel, "email_digest_frequency")
        if not notification.email_address:
            return DeliveryResult.skipped(self.channel, "no_email_address")
        if self._transport is None:
            return DeliveryResult.skipped(self.channel, "transport_not_configured")

        start_time = time.time()
        recipient = notification.email_address
        try:
            email = self._renderer.render_email(notification)
            sent = await self._transport.send_email(
                to=recipient,
                subject=email.subject,
                text=email.text,
                html=email.html,
            )
        except PermanentChannelError as exc:
            self._logger.warning(
                "Email rejected",
                extra={"notification_id": str(notification.id), "code": exc.code},
            )
            return DeliveryResult.failure(
                self.channel,
                exc.detail,
                category=PERMANENT,
                response_time_ms=elapsed_ms(start_time, time.time()),
            )
        except Exception as exc:
            self._logger.exception(
                "Exception sending email",
                extra={"notification_id": str(notification.id)},
            )
            return DeliveryResult.failure(
                self.channel,
                str(exc),
                response_time_ms=elapsed_ms(start_time, time.time()),
            )

        response_time_ms = elapsed_ms(start_time, time.time())
        if not sent:
            self._logger.warning(
                "Email delivery failed",
                extra={"notification_id": str(notification.id)},
            )
            return DeliveryResult.failure(
                self.channel,
                "Email transport reported failure",
                response_time_ms=response_time_ms,
                metadata={"recipient": recipient},
            )

        return DeliveryResult.success(
            self.channel,
            delivered_at=utcnow(),
            response_time_ms=response_time_ms,
            metadata={"recipient": recipient},
        )
