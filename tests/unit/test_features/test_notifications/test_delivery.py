"""Unit tests for DeliveryManager against an in-memory database."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from notification_service.features.notifications.channels import DeliveryResult
from notification_service.features.notifications.delivery import DeliveryManager
from notification_service.features.notifications.enums import (
    CHANNEL_ORDER,
    DeliveryChannel,
    DeliveryStatus,
    NotificationPriority,
)
from notification_service.features.notifications.ports import PushSendResult
from notification_service.features.notifications.repository import (
    get_notification_preferences_repository,
    get_notification_repository,
)
from notification_service.features.notifications.schemas import NotificationCreate

RECIPIENT_ID = "65f1a2b3c4d5e6f7a8b9c0d1"
SENDER_ID = "65f1a2b3c4d5e6f7a8b9c0d2"


async def create_row(engine, session, notification_type="post_like", context="social", **options):
    payload = await engine.factory.create(
        NotificationCreate(
            context=context,
            type=notification_type,
            recipient_id=RECIPIENT_ID,
            sender_id=SENDER_ID,
            **options,
        )
    )
    return await get_notification_repository().create_from_payload(session, payload)


async def enable_push_for(engine, session, notification_type="post_like", context="social"):
    await engine.preferences.update_type_preference(session, RECIPIENT_ID, context, notification_type, enabled=True)


@pytest.mark.unit
class TestDeliver:
    @pytest.mark.asyncio
    async def test_default_preferences_deliver_in_app_only(self, engine, db_session, publisher):
        notification = await create_row(engine, db_session)

        outcome = await engine.delivery.deliver(db_session, notification)

        assert list(outcome.results) == list(CHANNEL_ORDER)
        assert outcome.results[DeliveryChannel.IN_APP].delivered is True
        assert outcome.results[DeliveryChannel.PUSH].skip_reason == "type_channel"
        assert outcome.results[DeliveryChannel.EMAIL].skip_reason == "type_channel"
        assert outcome.results[DeliveryChannel.SMS].skip_reason == "sms_not_eligible"
        assert outcome.delivery_status == DeliveryStatus.DELIVERED
        assert notification.delivery_status == "delivered"
        assert notification.in_app_attempted is True
        assert notification.in_app_delivered_at is not None
        assert notification.push_attempted is False
        assert publisher.event_names() == ["notification"]

    @pytest.mark.asyncio
    async def test_result_shape(self, engine, db_session):
        notification = await create_row(engine, db_session)

        outcome = await engine.delivery.deliver(db_session, notification)

        assert outcome.as_dict()["in_app"]["delivered"] is True
        assert outcome.as_dict()["push"] == {
            "delivered": False,
            "error": None,
            "attempted": False,
            "skip_reason": "type_channel",
            "retry_scheduled": False,
        }

    @pytest.mark.asyncio
    async def test_global_switch_short_circuits(self, engine, db_session, publisher, push_transport):
        await engine.preferences.update_global_settings(db_session, RECIPIENT_ID, {"enable_notifications": False})
        notification = await create_row(engine, db_session)

        outcome = await engine.delivery.deliver(db_session, notification)

        assert all(result.skip_reason == "global" for result in outcome.results.values())
        assert outcome.delivery_status == DeliveryStatus.PENDING
        assert notification.delivery_status == "pending"
        assert publisher.events == []
        assert push_transport.calls == []

    @pytest.mark.asyncio
    async def test_disabled_type_short_circuits(self, engine, db_session, publisher):
        await engine.preferences.update_type_preference(db_session, RECIPIENT_ID, "social", "post_like", enabled=False)
        notification = await create_row(engine, db_session)

        outcome = await engine.delivery.deliver(db_session, notification)

        assert {result.skip_reason for result in outcome.results.values()} == {"type"}
        assert publisher.events == []

    @pytest.mark.asyncio
    async def test_configured_type_delivers_push(self, engine, db_session, push_transport):
        await enable_push_for(engine, db_session)
        notification = await create_row(engine, db_session)

        outcome = await engine.delivery.deliver(db_session, notification)

        assert outcome.results[DeliveryChannel.PUSH].delivered is True
        assert notification.push_delivered is True
        assert notification.push_device_tokens == ["ios-token-1"]
        assert notification.delivery_status == "delivered"
        assert len(push_transport.calls) == 1

    @pytest.mark.asyncio
    async def test_transient_push_failure_schedules_retry(self, engine, db_session, push_transport):
        await enable_push_for(engine, db_session)
        push_transport.outcomes["ios-token-1"] = PushSendResult(token="ios-token-1", success=False, error="timeout")
        notification = await create_row(engine, db_session)

        outcome = await engine.delivery.deliver(db_session, notification)

        push = outcome.results[DeliveryChannel.PUSH]
        assert push.delivered is False
        assert push.error == "timeout"
        assert push.retry_scheduled is True
        assert [entry.notification_id for entry in engine.retry_queue.entries()] == [notification.id]
        # in_app delivered, push failed
        assert outcome.delivery_status == DeliveryStatus.SENT
        assert notification.push_attempted is True
        assert notification.push_permanently_failed is False

    @pytest.mark.asyncio
    async def test_permanent_push_failure_is_not_retried(self, engine, db_session, push_transport, identity_provider):
        await enable_push_for(engine, db_session)
        push_transport.outcomes["ios-token-1"] = PushSendResult(
            token="ios-token-1",
            success=False,
            code="messaging/registration-token-not-registered",
        )
        notification = await create_row(engine, db_session)

        outcome = await engine.delivery.deliver(db_session, notification)

        assert outcome.results[DeliveryChannel.PUSH].retry_scheduled is False
        assert len(engine.retry_queue) == 0
        assert notification.push_permanently_failed is True
        assert identity_provider.removed_tokens == [(RECIPIENT_ID, "ios-token-1")]

    @pytest.mark.asyncio
    async def test_suppressed_channel(self, engine, db_session, publisher):
        notification = await create_row(engine, db_session, channels={"in_app": False})

        outcome = await engine.delivery.deliver(db_session, notification)

        assert outcome.results[DeliveryChannel.IN_APP].skip_reason == "suppressed"
        assert publisher.events == []
        # Nothing was attempted
        assert outcome.delivery_status == DeliveryStatus.PENDING

    @pytest.mark.asyncio
    async def test_offline_recipient_keeps_pending(self, engine, db_session, publisher):
        publisher.sessions = 0
        notification = await create_row(engine, db_session)

        outcome = await engine.delivery.deliver(db_session, notification)

        assert outcome.results[DeliveryChannel.IN_APP].skip_reason == "no_live_session"
        assert notification.in_app_attempted is False
        assert outcome.delivery_status == DeliveryStatus.PENDING

    @pytest.mark.asyncio
    async def test_urgent_sms_uses_stub_without_transport(self, engine, db_session):
        await engine.preferences.update_channel_settings(db_session, RECIPIENT_ID, "sms", {"enabled": True})
        await engine.preferences.update_type_preference(
            db_session,
            RECIPIENT_ID,
            "social",
            "call_incoming",
            channels={"sms": True},
        )
        notification = await create_row(engine, db_session, notification_type="call_incoming")

        outcome = await engine.delivery.deliver(db_session, notification)

        assert notification.priority == NotificationPriority.URGENT
        assert outcome.results[DeliveryChannel.SMS].delivered is True
        assert notification.sms_delivered is True

    @pytest.mark.asyncio
    async def test_sender_exception_becomes_failure(self, db_session, publisher):
        in_app = AsyncMock()
        in_app.send.side_effect = RuntimeError("boom")
        manager = DeliveryManager(
            get_notification_preferences_repository(),
            {DeliveryChannel.IN_APP: in_app},
            quiet_hours_bypass=(),
        )
        notification = await _bare_row(db_session)

        outcome = await manager.deliver(db_session, notification)

        assert outcome.results[DeliveryChannel.IN_APP].error == "boom"
        assert outcome.results[DeliveryChannel.PUSH].skip_reason == "type_channel"
        assert outcome.delivery_status == DeliveryStatus.FAILED

    @pytest.mark.asyncio
    async def test_missing_sender_is_skipped(self, db_session):
        manager = DeliveryManager(get_notification_preferences_repository(), {}, quiet_hours_bypass=())
        notification = await _bare_row(db_session)

        outcome = await manager.deliver(db_session, notification)

        assert outcome.results[DeliveryChannel.IN_APP].skip_reason == "no_sender"


@pytest.mark.unit
class TestRedeliverPush:
    @pytest.mark.asyncio
    async def test_redeliver_updates_push_state(self, engine, db_session, push_transport):
        await enable_push_for(engine, db_session)
        push_transport.outcomes["ios-token-1"] = PushSendResult(token="ios-token-1", success=False, error="timeout")
        notification = await create_row(engine, db_session)
        await engine.delivery.deliver(db_session, notification)
        push_transport.outcomes.clear()

        result = await engine.delivery.redeliver_push(db_session, notification)

        assert result.delivered is True
        assert notification.push_delivered is True
        assert notification.delivery_status == "delivered"

    @pytest.mark.asyncio
    async def test_redeliver_without_push_sender(self, db_session):
        manager = DeliveryManager(get_notification_preferences_repository(), {}, quiet_hours_bypass=())
        notification = await _bare_row(db_session)

        result = await manager.redeliver_push(db_session, notification)

        assert result == DeliveryResult.skipped(DeliveryChannel.PUSH, "no_sender")


async def _bare_row(session):
    from datetime import UTC, datetime, timedelta

    from notification_service.features.notifications.models import Notification

    notification = Notification(
        context="social",
        notification_type="post_like",
        recipient_id=RECIPIENT_ID,
        title="New Like",
        message="Someone liked your post",
        priority="normal",
        data={},
        content_metadata={},
        expires_at=datetime.now(UTC) + timedelta(days=7),
    )
    return await get_notification_repository().create(session, notification)
