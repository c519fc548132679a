"""Social context notification catalog."""

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

SOCIAL = NotificationContext.SOCIAL

ONE_HOUR = timedelta(hours=1)
ONE_DAY = timedelta(days=1)
ONE_WEEK = timedelta(days=7)
THIRTY_DAYS = timedelta(days=30)

SOCIAL_TYPES: tuple[TypeConfig, ...] = (
    TypeConfig(
        context=SOCIAL,
        notification_type="post_like",
        default_title="New Like",
        default_message="{sender} liked your post",
        priority=NotificationPriority.NORMAL,
        default_channels=ChannelDefaults(in_app=True, push=True, email=False, sms=False),
        expiry=ONE_WEEK,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="post_comment",
        default_title="New Comment",
        default_message="{sender} commented on your post",
        priority=NotificationPriority.NORMAL,
        default_channels=ChannelDefaults(in_app=True, push=True, email=False, sms=False),
        expiry=ONE_WEEK,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="post_share",
        default_title="Post Shared",
        default_message="{sender} shared your post",
        priority=NotificationPriority.NORMAL,
        default_channels=ChannelDefaults(in_app=True, push=False, email=False, sms=False),
        expiry=ONE_WEEK,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="post_mention",
        default_title="You were mentioned",
        default_message="{sender} mentioned you in a post",
        priority=NotificationPriority.HIGH,
        default_channels=ChannelDefaults(in_app=True, push=True, email=True, sms=False),
        expiry=ONE_WEEK,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="story_view",
        default_title="Story View",
        default_message="{sender} viewed your story",
        priority=NotificationPriority.LOW,
        default_channels=ChannelDefaults(in_app=False, push=False, email=False, sms=False),
        expiry=ONE_DAY,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="story_reaction",
        default_title="Story Reaction",
        default_message="{sender} reacted to your story",
        priority=NotificationPriority.NORMAL,
        default_channels=ChannelDefaults(in_app=True, push=True, email=False, sms=False),
        expiry=ONE_DAY,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="story_reply",
        default_title="Story Reply",
        default_message="{sender} replied to your story",
        priority=NotificationPriority.NORMAL,
        default_channels=ChannelDefaults(in_app=True, push=True, email=False, sms=False),
        expiry=ONE_DAY,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="story_mention",
        default_title="You were mentioned",
        default_message="{sender} mentioned you in a story",
        priority=NotificationPriority.HIGH,
        default_channels=ChannelDefaults(in_app=True, push=True, email=True, sms=False),
        expiry=ONE_DAY,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="follow_request",
        default_title="Follow Request",
        default_message="{sender} sent you a follow request",
        priority=NotificationPriority.HIGH,
        default_channels=ChannelDefaults(in_app=True, push=True, email=True, sms=False),
        expiry=THIRTY_DAYS,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="follow_accepted",
        default_title="Follow Request Accepted",
        default_message="{sender} accepted your follow request",
        priority=NotificationPriority.NORMAL,
        default_channels=ChannelDefaults(in_app=True, push=False, email=False, sms=False),
        expiry=ONE_WEEK,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="follow",
        default_title="New Follower",
        default_message="{sender} started following you",
        priority=NotificationPriority.NORMAL,
        default_channels=ChannelDefaults(in_app=True, push=True, email=False, sms=False),
        expiry=ONE_WEEK,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="message_received",
        default_title="New Message",
        default_message="{sender} sent you a message",
        priority=NotificationPriority.HIGH,
        default_channels=ChannelDefaults(in_app=True, push=True, email=False, sms=False),
        expiry=THIRTY_DAYS,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="message_request",
        default_title="Message Request",
        default_message="{sender} sent you a message request",
        priority=NotificationPriority.HIGH,
        default_channels=ChannelDefaults(in_app=True, push=True, email=True, sms=False),
        expiry=THIRTY_DAYS,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="call_incoming",
        default_title="Incoming Call",
        default_message="{sender} is calling you",
        priority=NotificationPriority.URGENT,
        default_channels=ChannelDefaults(in_app=True, push=True, email=False, sms=False),
        expiry=ONE_HOUR,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="call_missed",
        default_title="Missed Call",
        default_message="You missed a call from {sender}",
        priority=NotificationPriority.NORMAL,
        default_channels=ChannelDefaults(in_app=True, push=True, email=True, sms=False),
        expiry=ONE_WEEK,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="call_ended",
        default_title="Call Ended",
        default_message="Call with {sender} ended",
        priority=NotificationPriority.LOW,
        default_channels=ChannelDefaults(in_app=False, push=False, email=False, sms=False),
        expiry=ONE_HOUR,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="system_announcement",
        default_title="System Announcement",
        default_message="{message}",
        priority=NotificationPriority.HIGH,
        default_channels=ChannelDefaults(in_app=True, push=True, email=True, sms=False),
        expiry=THIRTY_DAYS,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="content_moderation",
        default_title="Content Warning",
        default_message="Your content has been flagged for review",
        priority=NotificationPriority.HIGH,
        default_channels=ChannelDefaults(in_app=True, push=True, email=True, sms=False),
        expiry=THIRTY_DAYS,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="account_update",
        default_title="Account Update",
        default_message="Your account has been updated",
        priority=NotificationPriority.NORMAL,
        default_channels=ChannelDefaults(in_app=True, push=True, email=True, sms=False),
        expiry=ONE_WEEK,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="highlight_added",
        default_title="Highlight Added",
        default_message="{sender} added a highlight",
        priority=NotificationPriority.LOW,
        default_channels=ChannelDefaults(in_app=True, push=False, email=False, sms=False),
        expiry=ONE_WEEK,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="highlight_view",
        default_title="Highlight View",
        default_message="{sender} viewed your highlight",
        priority=NotificationPriority.LOW,
        default_channels=ChannelDefaults(in_app=False, push=False, email=False, sms=False),
        expiry=ONE_WEEK,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="poll_vote",
        default_title="Poll Vote",
        default_message="{sender} voted on your poll",
        priority=NotificationPriority.NORMAL,
        default_channels=ChannelDefaults(in_app=True, push=False, email=False, sms=False),
        expiry=ONE_WEEK,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="poll_ended",
        default_title="Poll Ended",
        default_message="Your poll has ended",
        priority=NotificationPriority.NORMAL,
        default_channels=ChannelDefaults(in_app=True, push=False, email=False, sms=False),
        expiry=ONE_WEEK,
    ),
    TypeConfig(
        context=SOCIAL,
        notification_type="question_answer",
        default_title="Question Answered",
        default_message="{sender} answered your question",
        priority=NotificationPriority.NORMAL,
        default_channels=ChannelDefaults(in_app=True, push=True, email=False, sms=False),
        expiry=ONE_WEEK,
    ),
)
