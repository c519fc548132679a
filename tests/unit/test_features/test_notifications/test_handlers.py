"""Unit tests for the social and dating notification handlers."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from notification_service.features.notifications.enums import NotificationContext, NotificationPriority
from notification_service.features.notifications.exceptions import NotificationValidationError
from notification_service.features.notifications.handlers import DATING_EVENTS, SOCIAL_EVENTS
from notification_service.features.notifications.schemas import NotificationCreate
from notification_service.features.notifications.types import build_default_registry

RECIPIENT_ID = "65f1a2b3c4d5e6f7a8b9c0d1"
SENDER_ID = "65f1a2b3c4d5e6f7a8b9c0d2"
FIXED_NOW = datetime(2026, 3, 14, 12, 0, tzinfo=UTC)


@pytest.fixture
def social(engine):
    return engine.handlers[NotificationContext.SOCIAL]


@pytest.fixture
def dating(engine):
    return engine.handlers[NotificationContext.DATING]


@pytest.mark.unit
class TestSocialHandler:
    @pytest.mark.asyncio
    async def test_post_like_publishes_companion_event(self, social, db_session, publisher):
        handled = await social.create_post_like(db_session, RECIPIENT_ID, SENDER_ID, {"post_id": "p-1"})

        assert handled.notification.context == "social"
        assert handled.notification.message == "alex liked your post"
        assert handled.delivery.delivered is True
        assert handled.companion_event == "social:post_liked"
        assert publisher.event_names() == ["notification", "social:post_liked"]
        _, _, payload = publisher.events[1]
        assert payload == {
            "notification": str(handled.notification.id),
            "data": {},
            "related_content": {"content_type": "post", "content_id": "p-1", "metadata": {}},
        }

    @pytest.mark.asyncio
    async def test_no_companion_event_when_in_app_not_delivered(self, social, db_session, publisher):
        publisher.sessions = 0

        handled = await social.create_follow(db_session, RECIPIENT_ID, SENDER_ID)

        assert handled.companion_event is None
        assert publisher.event_names() == ["notification"]

    @pytest.mark.asyncio
    async def test_call_incoming_is_urgent(self, social, db_session):
        handled = await social.create_call_incoming(db_session, RECIPIENT_ID, SENDER_ID, {"call_id": "c-1"})

        assert handled.notification.priority == NotificationPriority.URGENT
        assert handled.notification.content_type == "call"
        assert handled.notification.content_id == "c-1"

    @pytest.mark.asyncio
    async def test_system_announcement_has_no_sender(self, social, db_session, publisher):
        handled = await social.create_system_announcement(
            db_session,
            RECIPIENT_ID,
            {"placeholders": {"message": "We are updating our terms"}},
        )

        assert handled.notification.sender_id is None
        assert handled.notification.message == "We are updating our terms"
        # No companion event is mapped for announcements
        assert handled.companion_event is None

    @pytest.mark.asyncio
    async def test_context_is_forced(self, social, db_session):
        with pytest.raises(NotificationValidationError, match="Invalid type: match for context: social"):
            await social.handle(
                db_session,
                NotificationCreate(context="dating", type="match", recipient_id=RECIPIENT_ID),
            )

    @pytest.mark.asyncio
    async def test_future_schedule_is_not_delivered(self, social, db_session, publisher):
        scheduled_for = FIXED_NOW + timedelta(hours=1)

        handled = await social.handle(
            db_session,
            NotificationCreate(type="post_comment", recipient_id=RECIPIENT_ID, sender_id=SENDER_ID, scheduled_for=scheduled_for),
        )

        assert handled.delivery is None
        assert handled.notification.scheduled_for == scheduled_for
        assert handled.notification.delivery_status == "pending"
        assert publisher.events == []

    @pytest.mark.asyncio
    async def test_past_schedule_delivers_now(self, social, db_session, publisher):
        handled = await social.handle(
            db_session,
            NotificationCreate(
                type="post_comment",
                recipient_id=RECIPIENT_ID,
                scheduled_for=FIXED_NOW - timedelta(minutes=5),
            ),
        )

        assert handled.delivery is not None
        assert handled.notification.scheduled_for is None
        assert "notification" in publisher.event_names()

    @pytest.mark.asyncio
    async def test_companion_publish_failure_is_swallowed(self, engine, db_session):
        from notification_service.features.notifications.handlers import SocialNotificationHandler
        from notification_service.features.notifications.repository import get_notification_repository

        publisher = AsyncMock()
        publisher.publish.side_effect = ConnectionError("socket closed")
        handler = SocialNotificationHandler(
            engine.factory,
            get_notification_repository(),
            engine.delivery,
            publisher,
        )
        handled = await handler.create_post_like(db_session, RECIPIENT_ID, SENDER_ID)

        assert await handler.publish_companion_event(handled.notification) is None

    def test_every_event_maps_a_registered_type(self):
        registry = build_default_registry()

        assert all(("social", t) in registry for t in SOCIAL_EVENTS)
        assert all(("dating", t) in registry for t in DATING_EVENTS)


@pytest.mark.unit
class TestConvenienceCreators:
    @pytest.mark.parametrize(
        ("context", "creator", "notification_type", "priority"),
        [
            ("social", "create_post_comment", "post_comment", None),
            ("social", "create_follow_request", "follow_request", None),
            ("social", "create_follow_accepted", "follow_accepted", None),
            ("social", "create_message_request", "message_request", None),
            ("social", "create_call_missed", "call_missed", None),
            ("dating", "create_super_like", "super_like", NotificationPriority.HIGH),
            ("dating", "create_match_request", "match_request", NotificationPriority.HIGH),
            ("dating", "create_match_accepted", "match_accepted", NotificationPriority.HIGH),
            ("dating", "create_match_rejected", "match_rejected", None),
            ("dating", "create_date_accepted", "date_accepted", NotificationPriority.HIGH),
            ("dating", "create_date_rejected", "date_rejected", None),
        ],
    )
    @pytest.mark.asyncio
    async def test_creator(self, engine, db_session, context, creator, notification_type, priority):
        handler = engine.handlers[NotificationContext(context)]

        handled = await getattr(handler, creator)(db_session, RECIPIENT_ID, SENDER_ID)

        config = build_default_registry().get_type(context, notification_type)
        assert handled.notification.notification_type == notification_type
        assert handled.notification.priority == (priority or config.priority)
        assert handled.companion_event == f"{context}:{handler.events[notification_type]}"

    @pytest.mark.asyncio
    async def test_content_moderation_is_high_priority_system_notice(self, social, db_session):
        handled = await social.create_content_moderation(db_session, RECIPIENT_ID, {"post_id": "p-9"})

        assert handled.notification.sender_id is None
        assert handled.notification.priority == NotificationPriority.HIGH
        assert handled.companion_event is None


@pytest.mark.unit
class TestDatingHandler:
    @pytest.mark.asyncio
    async def test_match(self, dating, db_session, publisher):
        handled = await dating.create_match(db_session, RECIPIENT_ID, SENDER_ID, {"match_id": "m-1"})

        assert handled.notification.context == "dating"
        assert handled.notification.title == "New Match!"
        assert handled.notification.message == "You and alex liked each other"
        assert handled.notification.priority == NotificationPriority.HIGH
        assert handled.notification.content_id == "m-1"
        assert handled.companion_event == "dating:matched"
        assert publisher.event_names() == ["notification", "dating:matched"]

    @pytest.mark.asyncio
    async def test_like_keeps_normal_priority(self, dating, db_session):
        handled = await dating.create_like(db_session, RECIPIENT_ID, SENDER_ID)

        assert handled.notification.priority == NotificationPriority.NORMAL
        assert handled.companion_event == "dating:liked"

    @pytest.mark.asyncio
    async def test_message_received_in_dating_is_high_priority(self, dating, db_session):
        handled = await dating.create_message_received(db_session, RECIPIENT_ID, SENDER_ID, {"message_id": "msg-1"})

        assert handled.notification.priority == NotificationPriority.HIGH
        assert handled.notification.content_type == "message"

    @pytest.mark.asyncio
    async def test_date_suggestion(self, dating, db_session):
        handled = await dating.create_date_suggestion(db_session, RECIPIENT_ID, SENDER_ID, {"date_id": "d-1"})

        assert handled.notification.content_type == "date"
        assert handled.notification.data == {"date_id": "d-1"}
        assert handled.companion_event == "dating:date_suggested"
