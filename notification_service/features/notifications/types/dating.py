"""Dating context notification catalog."""

from __future__ import annotations

from datetime import timedelta

from notification_service.features.notifications.enums import (
    NotificationContext,
    NotificationPriority,
)
from notification_service.features.notifications.types.registry import (
    ChannelDefaults,
    TypeConfig,
)

DATING = NotificationContext.DATING

ONE_HOUR = timedelta(hours=1)
ONE_DAY = timedelta(days=1)
ONE_WEEK = timedelta(days=7)
THIRTY_DAYS = timedelta(days=30)

DATING_TYPES: tuple[TypeConfig, ...] = (
    TypeConfig(
        context=DATING,
        notification_type="match",
        default_title="New Match!",
        default_message="You and {sender} liked each other",
        priority=NotificationPriority.HIGH,
        default_channels=ChannelDefaults(in_app=True, push=True, email=False, sms=False),
        expiry=THIRTY_DAYS,
    ),
    TypeConfig(
        context=DATING,
        notification_type="like",
        default_title="New Like",
        default_message="{sender} liked your profile",
        priority=NotificationPriority.NORMAL,
        default_channels=ChannelDefaults(in_app=True, push=True, email=False, sms=False),
        expiry=ONE_WEEK,
    ),
    TypeConfig(
        context=DATING,
        notification_type="super_like",
        default_title="Super Like!",
        default_message="{sender} super liked your profile",
        priority=NotificationPriority.HIGH,
        default_channels=ChannelDefaults(in_app=True, push=True, email=False, sms=False),
        expiry=ONE_WEEK,
    ),
    TypeConfig(
        context=DATING,
        notification_type="message_received",
        default_title="New Message",
        default_message="{sender} sent you a message",
        priority=NotificationPriority.HIGH,
        default_channels=ChannelDefaults(in_app=True, push=True, email=False, sms=False),
        expiry=THIRTY_DAYS,
    ),
    TypeConfig(
        context=DATING,
        notification_type="match_request",
        default_title="Match Request",
        default_message="{sender} wants to match with you",
        priority=NotificationPriority.HIGH,
        default_channels=ChannelDefaults(in_app=True, push=True, email=True, sms=False),
        expiry=THIRTY_DAYS,
    ),
    TypeConfig(
        context=DATING,
        notification_type="match_accepted",
        default_title="Match Accepted",
        default_message="{sender} accepted your match request",
        priority=NotificationPriority.HIGH,
        default_channels=ChannelDefaults(in_app=True, push=True, email=False, sms=False),
        expiry=ONE_WEEK,
    ),
    TypeConfig(
        context=DATING,
        notification_type="match_rejected",
        default_title="Match Rejected",
        default_message="{sender} rejected your match request",
        priority=NotificationPriority.NORMAL,
        default_channels=ChannelDefaults(in_app=True, push=False, email=False, sms=False),
        expiry=ONE_WEEK,
    ),
    TypeConfig(
        context=DATING,
        notification_type="date_suggestion",
        default_title="Date Suggestion",
        default_message="{sender} suggested a date",
        priority=NotificationPriority.HIGH,
        default_channels=ChannelDefaults(in_app=True, push=True, email=True, sms=False),
        expiry=ONE_WEEK,
    ),
    TypeConfig(
        context=DATING,
        notification_type="date_accepted",
        default_title="Date Accepted",
        default_message="{sender} accepted your date suggestion",
        priority=NotificationPriority.HIGH,
        default_channels=ChannelDefaults(in_app=True, push=True, email=False, sms=False),
        expiry=ONE_WEEK,
    ),
    TypeConfig(
        context=DATING,
        notification_type="date_rejected",
        default_title="Date Rejected",
        default_message="{sender} rejected your date suggestion",
        priority=NotificationPriority.NORMAL,
        default_channels=ChannelDefaults(in_app=True, push=False, email=False, sms=False),
        expiry=ONE_WEEK,
    ),
    TypeConfig(
        context=DATING,
        notification_type="reminder",
        default_title="Date Reminder",
        default_message="You have a date coming up with {sender}",
        priority=NotificationPriority.HIGH,
        default_channels=ChannelDefaults(in_app=True, push=True, email=True, sms=False),
        expiry=ONE_DAY,
    ),
    TypeConfig(
        context=DATING,
        notification_type="safety_alert",
        default_title="Safety Alert",
        default_message="{message}",
        priority=NotificationPriority.URGENT,
        default_channels=ChannelDefaults(in_app=True, push=True, email=True, sms=True),
        expiry=ONE_WEEK,
    ),
    TypeConfig(
        context=DATING,
        notification_type="call_incoming",
        default_title="Incoming Call",
        default_message="{sender} is calling you",
        priority=NotificationPriority.URGENT,
        default_channels=ChannelDefaults(in_app=True, push=True, email=False, sms=False),
        expiry=ONE_HOUR,
    ),
    TypeConfig(
        context=DATING,
        notification_type="call_missed",
        default_title="Missed Call",
        default_message="You missed a call from {sender}",
        priority=NotificationPriority.HIGH,
        default_channels=ChannelDefaults(in_app=True, push=True, email=False, sms=False),
        expiry=ONE_WEEK,
    ),
)
