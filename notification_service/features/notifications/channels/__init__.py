"""Channel senders for notification delivery."""

from notification_service.features.notifications.channels.base import (
    PERMANENT,
    TRANSIENT,
    ChannelSender,
    DeliveryResult,
)
from notification_service.features.notifications.channels.email import EmailChannelSender
from notification_service.features.notifications.channels.in_app import (
    NOTIFICATION_EVENT,
    InAppChannelSender,
)
from notification_service.features.notifications.channels.push import PushChannelSender
from notification_service.features.notifications.channels.sms import SmsChannelSender

__all__ = [
    "NOTIFICATION_EVENT",
    "PERMANENT",
    "TRANSIENT",
    "ChannelSender",
    "DeliveryResult",
    "EmailChannelSender",
    "InAppChannelSender",
    "PushChannelSender",
    "SmsChannelSender",
]
