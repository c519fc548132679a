"""Unit tests for the in-app, email and SMS channel senders."""

from __future__ import annotations

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from notification_service.features.notifications.channels import (
    PERMANENT,
    TRANSIENT,
    DeliveryResult,
    EmailChannelSender,
    InAppChannelSender,
    SmsChannelSender,
)
from notification_service.features.notifications.enums import (
    DeliveryChannel,
    NotificationPriority,
)
from notification_service.features.notifications.exceptions import PermanentChannelError
from notification_service.features.notifications.models import Notification
from notification_service.features.notifications.preferences import PreferenceDocument
from notification_service.features.notifications.templates import TemplateRenderer


def make_notification(**overrides) -> Notification:
    values = {
        "id": uuid4(),
        "context": "social",
        "notification_type": "post_like",
        "recipient_id": "65f1a2b3c4d5e6f7a8b9c0d1",
        "title": "New Like",
        "message": "alex liked your post",
        "priority": NotificationPriority.NORMAL.value,
        "data": {},
        "content_metadata": {},
        "email_address": "dana@example.com",
        "phone_number": "+15550100",
    }
    values.update(overrides)
    return Notification(**values)


def immediate_email() -> PreferenceDocument:
    return PreferenceDocument.model_validate({"channels": {"email": {"frequency": "immediate"}}})


@pytest.mark.unit
class TestDeliveryResult:
    def test_skipped_is_not_attempted(self):
        result = DeliveryResult.skipped(DeliveryChannel.PUSH, "no_device_tokens")

        assert result.attempted is False
        assert result.delivered is False
        assert result.is_transient_failure is False
        assert result.as_dict() == {
            "delivered": False,
            "error": None,
            "attempted": False,
            "skip_reason": "no_device_tokens",
            "retry_scheduled": False,
        }

    def test_failure_defaults_to_transient(self):
        result = DeliveryResult.failure(DeliveryChannel.PUSH, "timeout")

        assert result.error_category == TRANSIENT
        assert result.is_transient_failure is True

    def test_permanent_failure_is_not_transient(self):
        result = DeliveryResult.failure(DeliveryChannel.PUSH, "unregistered", category=PERMANENT)

        assert result.is_transient_failure is False


@pytest.mark.unit
class TestInAppChannelSender:
    @pytest.mark.asyncio
    async def test_publishes_notification_event(self, publisher):
        publisher.sessions = 2
        notification = make_notification()

        result = await InAppChannelSender(publisher).send(notification, PreferenceDocument())

        assert result.delivered is True
        assert result.metadata == {"sessions": 2}
        assert result.delivered_at is not None
        recipient_id, event_name, payload = publisher.events[0]
        assert recipient_id == notification.recipient_id
        assert event_name == "notification"
        assert payload["id"] == str(notification.id)
        assert payload["title"] == "New Like"

    @pytest.mark.asyncio
    async def test_offline_recipient_is_soft_no_op(self, publisher):
        publisher.sessions = 0

        result = await InAppChannelSender(publisher).send(make_notification(), PreferenceDocument())

        assert result.attempted is False
        assert result.skip_reason == "no_live_session"

    @pytest.mark.asyncio
    async def test_publisher_error_becomes_failure(self):
        publisher = AsyncMock()
        publisher.publish.side_effect = ConnectionError("socket closed")

        result = await InAppChannelSender(publisher).send(make_notification(), PreferenceDocument())

        assert result.attempted is True
        assert result.delivered is False
        assert result.error == "socket closed"


@pytest.mark.unit
class TestEmailChannelSender:
    @pytest.mark.asyncio
    async def test_digest_frequency_is_soft_no_op(self):
        transport = AsyncMock()

        result = await EmailChannelSender(transport).send(make_notification(), PreferenceDocument())

        assert result.attempted is False
        assert result.skip_reason == "email_digest_frequency"
        transport.send_email.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sends_rendered_email(self):
        transport = AsyncMock()
        transport.send_email.return_value = True
        notification = make_notification(title="<b>Hi</b>")

        result = await EmailChannelSender(transport).send(notification, immediate_email())

        assert result.delivered is True
        assert result.metadata == {"recipient": "dana@example.com"}
        kwargs = transport.send_email.await_args.kwargs
        assert kwargs["to"] == "dana@example.com"
        assert kwargs["subject"] == "<b>Hi</b>"
        assert kwargs["text"] == "alex liked your post"
        assert "&lt;b&gt;Hi&lt;/b&gt;" in kwargs["html"]

    @pytest.mark.asyncio
    async def test_missing_address(self):
        transport = AsyncMock()

        result = await EmailChannelSender(transport).send(make_notification(email_address=None), immediate_email())

        assert result.skip_reason == "no_email_address"
        transport.send_email.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_transport(self):
        result = await EmailChannelSender(None).send(make_notification(), immediate_email())

        assert result.skip_reason == "transport_not_configured"

    @pytest.mark.asyncio
    async def test_transport_reports_failure(self):
        transport = AsyncMock()
        transport.send_email.return_value = False

        result = await EmailChannelSender(transport).send(make_notification(), immediate_email())

        assert result.attempted is True
        assert result.delivered is False
        assert result.error_category == TRANSIENT

    @pytest.mark.asyncio
    async def test_permanent_rejection(self):
        transport = AsyncMock()
        transport.send_email.side_effect = PermanentChannelError("mailbox does not exist", channel="email", code="550")

        result = await EmailChannelSender(transport).send(make_notification(), immediate_email())

        assert result.error == "mailbox does not exist"
        assert result.error_category == PERMANENT


@pytest.mark.unit
class TestSmsChannelSender:
    @pytest.mark.asyncio
    async def test_emergency_only_skips_non_urgent(self):
        result = await SmsChannelSender().send(make_notification(), PreferenceDocument())

        assert result.attempted is False
        assert result.skip_reason == "sms_emergency_only"

    @pytest.mark.asyncio
    async def test_without_transport_marks_delivered(self):
        notification = make_notification(priority=NotificationPriority.URGENT.value)

        result = await SmsChannelSender().send(notification, PreferenceDocument())

        assert result.delivered is True
        assert result.metadata["stub"] is True

    @pytest.mark.asyncio
    async def test_sends_title_and_message(self):
        transport = AsyncMock()
        transport.send_sms.return_value = True
        notification = make_notification(priority=NotificationPriority.URGENT.value, title="Call", message="alex is calling")

        result = await SmsChannelSender(transport).send(notification, PreferenceDocument())

        assert result.delivered is True
        transport.send_sms.assert_awaited_once_with(to="+15550100", body="Call: alex is calling")

    @pytest.mark.asyncio
    async def test_emergency_only_disabled_allows_normal_priority(self):
        transport = AsyncMock()
        transport.send_sms.return_value = True
        preferences = PreferenceDocument.model_validate({"channels": {"sms": {"enabled": True, "emergency_only": False}}})

        result = await SmsChannelSender(transport).send(make_notification(), preferences)

        assert result.delivered is True

    @pytest.mark.asyncio
    async def test_missing_phone_number(self):
        notification = make_notification(priority=NotificationPriority.URGENT.value, phone_number=None)

        result = await SmsChannelSender().send(notification, PreferenceDocument())

        assert result.skip_reason == "no_phone_number"

    @pytest.mark.asyncio
    async def test_transport_error_becomes_failure(self):
        transport = AsyncMock()
        transport.send_sms.side_effect = TimeoutError("gateway timeout")
        notification = make_notification(priority=NotificationPriority.URGENT.value)

        result = await SmsChannelSender(transport).send(notification, PreferenceDocument())

        assert result.delivered is False
        assert result.error == "gateway timeout"


@pytest.mark.unit
class TestTemplateRenderer:
    def test_html_includes_image_and_action(self):
        notification = make_notification(
            image={"url": "https://cdn.example.com/a.png", "alt": "avatar"},
            action_url="/posts/p-1",
        )

        email = TemplateRenderer().render_email(notification)

        assert email.subject == "New Like"
        assert email.text == "alex liked your post"
        assert 'src="https://cdn.example.com/a.png"' in email.html
        assert 'href="/posts/p-1"' in email.html

    def test_user_content_is_escaped(self):
        html = TemplateRenderer().render_html({"title": "<script>x</script>", "message": "hi"})

        assert "<script>" not in html
        assert "&lt;script&gt;" in html
