"""Delivery manager: fans a persisted notification out to its channels.

For each channel, in order in_app, push, email, sms:

1. skip when the notification itself suppresses the channel;
2. skip SMS unless the priority is urgent or the user enabled SMS;
3. run the preference gates;
4. hand the notification to the channel sender.

Senders run concurrently and never raise; their results are applied to the
notification once all of them have settled, the aggregate delivery status
is recomputed from the attempted channels, and the row is flushed once.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol
from uuid import UUID

from notification_service.core.database import utcnow
from notification_service.features.notifications.channels import (
    PERMANENT,
    ChannelSender,
    DeliveryResult,
)
from notification_service.features.notifications.enums import (
    CHANNEL_ORDER,
    DeliveryChannel,
    DeliveryStatus,
    NotificationPriority,
)
from notification_service.features.notifications.metrics import (
    notification_delivered_total,
    notification_delivery_duration_seconds,
)
from notification_service.features.notifications.preferences import (
    PreferenceDocument,
    PreferenceGate,
)
from notification_service.infra.logging import get_lazy_logger, log_context

if TYPE_CHECKING:
    from collections.abc import Collection

    from sqlalchemy.ext.asyncio import AsyncSession

    from notification_service.features.notifications.models import Notification
    from notification_service.features.notifications.repository import (
        NotificationPreferencesRepository,
    )

logger = logging.getLogger(__name__)
_lazy = get_lazy_logger(__name__)


class RetryScheduler(Protocol):
    async def enqueue(self, notification_id: UUID, attempt: int) -> bool: ...


@dataclass(slots=True)
class DeliveryOutcome:
    """Per-channel results of one delivery pass."""

    notification_id: UUID
    results: dict[DeliveryChannel, DeliveryResult] = field(default_factory=dict)
    delivery_status: DeliveryStatus = DeliveryStatus.PENDING

    @property
    def delivered(self) -> bool:
        return any(result.delivered for result in self.results.values())

    def as_dict(self) -> dict[str, Any]:
        return {channel.value: result.as_dict() for channel, result in self.results.items()}


class DeliveryManager:
    """Applies preferences and dispatches notifications to channel senders."""

    def __init__(
        self,
        preferences_repository: NotificationPreferencesRepository,
        senders: Mapping[DeliveryChannel, ChannelSender],
        *,
        quiet_hours_bypass: Collection[str],
        retry_queue: RetryScheduler | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._preferences = preferences_repository
        self._senders = dict(senders)
        self._quiet_hours_bypass = frozenset(quiet_hours_bypass)
        self._retry_queue = retry_queue
        self._clock = clock

    async def load_preferences(self, session: AsyncSession, user_id: str) -> PreferenceDocument:
        row = await self._preferences.get_or_create(session, user_id)
        return PreferenceDocument.from_columns(row)

    async def deliver(self, session: AsyncSession, notification: Notification) -> DeliveryOutcome:
        """Deliver a notification on every eligible channel.

        Preference loading errors propagate; channel errors never do.
        """
        with log_context(notification_id=str(notification.id), recipient_id=notification.recipient_id):
            preferences = await self.load_preferences(session, notification.recipient_id)
            outcome = DeliveryOutcome(
                notification_id=notification.id,
                delivery_status=DeliveryStatus(notification.delivery_status),
            )

            blocked_by = self._blocked_for_notification(notification, preferences)
            if blocked_by is not None:
                logger.info(
                    "Notification blocked by user preferences",
                    extra={"gate": blocked_by.value, "type": notification.notification_type},
                )
                for channel in CHANNEL_ORDER:
                    outcome.results[channel] = DeliveryResult.skipped(channel, blocked_by.value)
                return outcome

            now = self._clock()
            eligible: list[DeliveryChannel] = []
            for channel in CHANNEL_ORDER:
                reason = self._skip_reason(notification, preferences, channel, now)
                if reason is None and channel in self._senders:
                    eligible.append(channel)
                    continue
                reason = reason or "no_sender"
                _lazy.debug(lambda channel=channel, reason=reason: f"{channel} skipped: {reason}")
                notification_delivered_total.labels(channel=channel.value, status="skipped").inc()
                outcome.results[channel] = DeliveryResult.skipped(channel, reason)

            settled = await asyncio.gather(
                *(self._dispatch(channel, notification, preferences) for channel in eligible),
                return_exceptions=True,
            )
            for channel, item in zip(eligible, settled, strict=True):
                result = item if isinstance(item, DeliveryResult) else DeliveryResult.failure(channel, str(item))
                self._apply(notification, result)
                outcome.results[channel] = result

            push = outcome.results.get(DeliveryChannel.PUSH)
            if push is not None and push.is_transient_failure and self._retry_queue is not None:
                push.retry_scheduled = await self._retry_queue.enqueue(notification.id, 0)

            # Keep the caller's channel order in the report
            outcome.results = {channel: outcome.results[channel] for channel in CHANNEL_ORDER}
            outcome.delivery_status = notification.recompute_delivery_status()
            await session.flush()

            logger.info(
                "Notification delivery pass finished",
                extra={
                    "delivery_status": outcome.delivery_status.value,
                    "attempted": [c.value for c, r in outcome.results.items() if r.attempted],
                },
            )
            return outcome

    async def redeliver_push(self, session: AsyncSession, notification: Notification) -> DeliveryResult:
        """Re-run the push sender for a retry; the retry queue owns rescheduling."""
        with log_context(notification_id=str(notification.id), recipient_id=notification.recipient_id):
            sender = self._senders.get(DeliveryChannel.PUSH)
            if sender is None:
                return DeliveryResult.skipped(DeliveryChannel.PUSH, "no_sender")
            preferences = await self.load_preferences(session, notification.recipient_id)
            result = await self._dispatch(DeliveryChannel.PUSH, notification, preferences)
            self._apply(notification, result)
            notification.recompute_delivery_status()
            await session.flush()
            return result

    def _blocked_for_notification(
        self,
        notification: Notification,
        preferences: PreferenceDocument,
    ) -> PreferenceGate | None:
        """Gates that stop every channel before any attempt is made."""
        if not preferences.global_settings.enable_notifications:
            return PreferenceGate.GLOBAL
        if not preferences.is_context_enabled(notification.context):
            return PreferenceGate.CONTEXT
        type_pref = preferences.type_preference(notification.context, notification.notification_type)
        if type_pref is not None and not type_pref.enabled:
            return PreferenceGate.TYPE
        return None

    def _skip_reason(
        self,
        notification: Notification,
        preferences: PreferenceDocument,
        channel: DeliveryChannel,
        now: datetime,
    ) -> str | None:
        if notification.is_suppressed(channel):
            return "suppressed"
        if (
            channel == DeliveryChannel.SMS
            and notification.priority != NotificationPriority.URGENT
            and not preferences.channels.sms.enabled
        ):
            return "sms_not_eligible"
        decision = preferences.evaluate(
            notification.context,
            notification.notification_type,
            channel,
            now=now,
            quiet_hours_bypass=self._quiet_hours_bypass,
        )
        if not decision.allowed and decision.blocked_by is not None:
            return decision.blocked_by.value
        return None

    async def _dispatch(
        self,
        channel: DeliveryChannel,
        notification: Notification,
        preferences: PreferenceDocument,
    ) -> DeliveryResult:
        sender = self._senders[channel]
        with notification_delivery_duration_seconds.labels(channel=channel.value).time():
            return await sender.send(notification, preferences)

    @staticmethod
    def _apply(notification: Notification, result: DeliveryResult) -> None:
        channel = result.channel
        if not result.attempted:
            notification_delivered_total.labels(channel=channel.value, status="skipped").inc()
            _lazy.debug(lambda: f"{channel} not attempted: {result.skip_reason}")
            return

        notification.record_channel_outcome(channel, delivered=result.delivered, at=result.delivered_at)
        if channel == DeliveryChannel.PUSH:
            tokens = result.metadata.get("device_tokens")
            if tokens is not None:
                notification.push_device_tokens = list(tokens)
            if not result.delivered and result.error_category == PERMANENT:
                notification.push_permanently_failed = True

        if result.delivered:
            notification_delivered_total.labels(channel=channel.value, status="delivered").inc()
            _lazy.debug(lambda: f"{channel} delivered in {result.response_time_ms}ms")
        else:
            notification_delivered_total.labels(channel=channel.value, status="failed").inc()
            logger.warning(
                "Channel delivery failed",
                extra={"channel": channel.value, "error": result.error, "error_category": result.error_category},
            )


__all__ = ["DeliveryManager", "DeliveryOutcome", "RetryScheduler"]
