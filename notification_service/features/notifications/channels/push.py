"""Mobile push channel.

Tokens are grouped by platform: one token goes out as a single-device send,
several as one multicast call. Tokens the transport reports as invalid or
unregistered are pruned from the recipient's profile after the send loop
and never retried.
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from typing import TYPE_CHECKING

from notification_service.core.database import utcnow
from notification_service.features.notifications.channels.base import (
    PERMANENT,
    TRANSIENT,
    DeliveryResult,
    elapsed_ms,
)
from notification_service.features.notifications.enums import DeliveryChannel, PushPlatform
from notification_service.features.notifications.exceptions import (
    ChannelError,
    PermanentChannelError,
)
from notification_service.features.notifications.metrics import (
    notification_push_tokens_pruned_total,
)
from notification_service.features.notifications.ports import PushMessage, PushSendResult
from notification_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from notification_service.features.notifications.models import Notification
    from notification_service.features.notifications.ports import (
        DeviceToken,
        IdentityProvider,
        PushTransport,
    )
    from notification_service.features.notifications.preferences import PreferenceDocument

logger = logging.getLogger(__name__)


def build_push_message(notification: Notification) -> PushMessage:
    data = {
        "notification_id": str(notification.id),
        "context": notification.context,
        "type": notification.notification_type,
    }
    if notification.action_url:
        data["action_url"] = notification.action_url
    image_url = (notification.image or {}).get("url")
    return PushMessage(
        title=notification.title,
        body=notification.message,
        image_url=image_url,
        data=data,
    )


def group_by_platform(tokens: tuple[DeviceToken, ...]) -> dict[PushPlatform, list[str]]:
    """Group tokens by platform; tokens on an unknown platform are dropped."""
    grouped: dict[PushPlatform, list[str]] = defaultdict(list)
    for device in tokens:
        try:
            platform = PushPlatform(device.platform)
        except ValueError:
            logger.warning(
                "Skipping device token with unknown platform",
                extra={"platform": str(device.platform)},
            )
            continue
        grouped[platform].append(device.token)
    return dict(grouped)


class PushChannelSender:
    """Sends push messages to every active device of the recipient."""

    channel = DeliveryChannel.PUSH

    def __init__(
        self,
        transport: PushTransport | None,
        identity_provider: IdentityProvider,
    ) -> None:
        self._transport = transport
        self._identity = identity_provider
        self._logger = logging.getLogger(__name__)
        self._lazy = get_lazy_logger(__name__)

    async def send(
        self,
        notification: Notification,
        preferences: PreferenceDocument,
    ) -> DeliveryResult:
        if self._transport is None:
            return DeliveryResult.skipped(self.channel, "transport_not_configured")

        start_time = time.time()
        try:
            recipient = await self._identity.get_user(notification.recipient_id)
        except Exception as exc:
            self._logger.exception(
                "Device token lookup failed",
                extra={"notification_id": str(notification.id)},
            )
            return DeliveryResult.failure(
                self.channel,
                str(exc),
                category=TRANSIENT,
                response_time_ms=elapsed_ms(start_time, time.time()),
            )

        devices = recipient.active_device_tokens if recipient else ()
        if not devices:
            return DeliveryResult.skipped(self.channel, "no_device_tokens")

        grouped = group_by_platform(devices)
        if not grouped:
            return DeliveryResult.skipped(self.channel, "no_device_tokens")

        message = build_push_message(notification)
        results: list[PushSendResult] = []
        for platform, tokens in grouped.items():
            results.extend(await self._send_platform(self._transport, platform, tokens, message))

        await self._prune(notification.recipient_id, [r.token for r in results if r.should_remove])

        attempted_tokens = [token for tokens in grouped.values() for token in tokens]
        response_time_ms = elapsed_ms(start_time, time.time())
        succeeded = [r for r in results if r.success]
        if succeeded:
            self._lazy.debug(
                lambda: f"Push delivered to {len(succeeded)}/{len(results)} devices for {notification.id}"
            )
            return DeliveryResult.success(
                self.channel,
                delivered_at=utcnow(),
                response_time_ms=response_time_ms,
                metadata={"device_tokens": attempted_tokens, "success_count": len(succeeded)},
            )

        failures = [r for r in results if not r.success]
        transient = [r for r in failures if not r.should_remove]
        category = TRANSIENT if transient else PERMANENT
        error = (transient or failures)[0].error or "Push delivery failed"
        self._logger.warning(
            "Push delivery failed",
            extra={
                "notification_id": str(notification.id),
                "failure_count": len(failures),
                "error_category": category,
            },
        )
        return DeliveryResult.failure(
            self.channel,
            error,
            category=category,
            response_time_ms=response_time_ms,
            metadata={"device_tokens": attempted_tokens},
        )

    async def _send_platform(
        self,
        transport: PushTransport,
        platform: PushPlatform,
        tokens: list[str],
        message: PushMessage,
    ) -> list[PushSendResult]:
        """Send to one platform's tokens; transport errors become per-token failures."""
        try:
            if len(tokens) == 1:
                return [await transport.send_to_device(tokens[0], platform, message)]
            return list(await transport.send_to_multiple_devices(tokens, platform, message))
        except ChannelError as exc:
            permanent = isinstance(exc, PermanentChannelError)
            return [
                PushSendResult(
                    token=token,
                    success=False,
                    error=exc.detail,
                    code=exc.code,
                    should_remove=permanent,
                )
                for token in tokens
            ]
        except Exception as exc:
            self._logger.exception("Push transport error", extra={"platform": platform.value})
            return [PushSendResult(token=token, success=False, error=str(exc)) for token in tokens]

    async def _prune(self, user_id: str, tokens: list[str]) -> None:
        for token in tokens:
            try:
                await self._identity.remove_device_token(user_id, token)
            except Exception:
                self._logger.exception("Failed to prune device token", extra={"user_id": user_id})
                continue
            notification_push_tokens_pruned_total.inc()
            self._logger.info("Pruned invalid device token", extra={"user_id": user_id})
