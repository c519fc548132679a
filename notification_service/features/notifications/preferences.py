"""Notification preference document and eligibility evaluation.

The document mirrors what is stored per user: global settings (master
switch, quiet hours, frequency), per-channel settings, and a
context -> type -> channel matrix. Evaluation is a pure function of the
document and the current time; gates run in a fixed order and the first
failing gate decides:

    global -> context -> quiet hours -> channel -> type -> type channel

Quiet hours only block types outside the urgent allow-list. A type with no
entry in the matrix falls back to ``default_channel_policy``.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from enum import StrEnum
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

from notification_service.features.notifications.enums import (
    DeliveryChannel,
    DigestFrequency,
    EmailFrequency,
    GlobalFrequency,
    NotificationContext,
)

logger = logging.getLogger(__name__)

DEFAULT_QUIET_HOURS_BYPASS: frozenset[str] = frozenset(
    {"call_incoming", "system_announcement", "match"}
)

_HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


def default_channel_policy(channel: DeliveryChannel | str) -> bool:
    """Eligibility of a channel for a type the user never configured.

    Unconfigured types are delivered in-app only.
    """
    return DeliveryChannel(channel) == DeliveryChannel.IN_APP


def _minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def is_within_window(current: str | int, start: str, end: str) -> bool:
    """Whether ``current`` falls in ``[start, end)``, wrapping past midnight.

    ``current`` is an "HH:MM" string or minutes since midnight. An empty
    window (start == end) contains nothing.
    """
    now_minutes = current if isinstance(current, int) else _minutes(current)
    start_minutes = _minutes(start)
    end_minutes = _minutes(end)
    if start_minutes == end_minutes:
        return False
    if start_minutes < end_minutes:
        return start_minutes <= now_minutes < end_minutes
    return now_minutes >= start_minutes or now_minutes < end_minutes


# ──────────────────────────────────────────────────────────────
# Document
# ──────────────────────────────────────────────────────────────


class QuietHours(BaseModel):
    enabled: bool = False
    start_time: str = Field(default="22:00", pattern=_HHMM_PATTERN)
    end_time: str = Field(default="08:00", pattern=_HHMM_PATTERN)
    timezone: str = "UTC"

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        if value == "UTC":
            return value
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            msg = f"Unknown timezone: {value}"
            raise ValueError(msg) from exc
        return value

    def zone(self) -> tzinfo:
        """Configured zone; unknown zones degrade to UTC."""
        if self.timezone == "UTC":
            return UTC
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown quiet-hours timezone, using UTC", extra={"timezone": self.timezone})
            return UTC

    def is_active(self, now: datetime) -> bool:
        """Whether quiet hours are enabled and ``now`` falls inside the window."""
        if not self.enabled:
            return False
        if now.tzinfo is None:
            now = now.replace(tzinfo=UTC)
        local = now.astimezone(self.zone())
        return is_within_window(local.hour * 60 + local.minute, self.start_time, self.end_time)


class GlobalSettings(BaseModel):
    enable_notifications: bool = True
    quiet_hours: QuietHours = Field(default_factory=QuietHours)
    frequency: GlobalFrequency = GlobalFrequency.IMMEDIATE


class InAppChannelSettings(BaseModel):
    enabled: bool = True
    sound: bool = True
    vibration: bool = True


class PushChannelSettings(BaseModel):
    enabled: bool = True
    sound: bool = True
    badge: bool = True


class EmailChannelSettings(BaseModel):
    enabled: bool = True
    frequency: EmailFrequency = EmailFrequency.DAILY


class SmsChannelSettings(BaseModel):
    enabled: bool = False
    emergency_only: bool = True


class ChannelSettings(BaseModel):
    in_app: InAppChannelSettings = Field(default_factory=InAppChannelSettings)
    push: PushChannelSettings = Field(default_factory=PushChannelSettings)
    email: EmailChannelSettings = Field(default_factory=EmailChannelSettings)
    sms: SmsChannelSettings = Field(default_factory=SmsChannelSettings)

    def is_enabled(self, channel: DeliveryChannel | str) -> bool:
        return bool(getattr(self, DeliveryChannel(channel).value).enabled)


class TypeChannels(BaseModel):
    in_app: bool = True
    push: bool = True
    email: bool = True
    sms: bool = False

    def is_enabled(self, channel: DeliveryChannel | str) -> bool:
        return bool(getattr(self, DeliveryChannel(channel).value))


class TypePreference(BaseModel):
    enabled: bool = True
    channels: TypeChannels = Field(default_factory=TypeChannels)


class ContextPreference(BaseModel):
    enabled: bool = True
    types: dict[str, TypePreference] = Field(default_factory=dict)


class AdvancedSettings(BaseModel):
    group_similar: bool = True
    max_notifications_per_hour: int = Field(default=10, ge=1, le=1000)
    digest_notifications: bool = False
    digest_frequency: DigestFrequency = DigestFrequency.DAILY


def _default_contexts() -> dict[NotificationContext, ContextPreference]:
    return {context: ContextPreference() for context in NotificationContext}


class PreferenceGate(StrEnum):
    """Evaluation stage that blocked a channel."""

    GLOBAL = "global"
    CONTEXT = "context"
    QUIET_HOURS = "quiet_hours"
    CHANNEL = "channel"
    TYPE = "type"
    TYPE_CHANNEL = "type_channel"


@dataclass(slots=True, frozen=True)
class GateDecision:
    allowed: bool
    blocked_by: PreferenceGate | None = None


ALLOWED = GateDecision(allowed=True)


class PreferenceDocument(BaseModel):
    """A user's complete notification preferences."""

    model_config = ConfigDict(extra="ignore")

    global_settings: GlobalSettings = Field(default_factory=GlobalSettings)
    channels: ChannelSettings = Field(default_factory=ChannelSettings)
    contexts: dict[NotificationContext, ContextPreference] = Field(default_factory=_default_contexts)
    advanced: AdvancedSettings = Field(default_factory=AdvancedSettings)

    @field_validator("contexts")
    @classmethod
    def fill_missing_contexts(
        cls,
        value: dict[NotificationContext, ContextPreference],
    ) -> dict[NotificationContext, ContextPreference]:
        """Every known context has an entry; absent ones get the defaults."""
        return {**_default_contexts(), **value}

    def context_preference(self, context: NotificationContext | str) -> ContextPreference | None:
        try:
            return self.contexts.get(NotificationContext(context))
        except ValueError:
            return None

    def type_preference(
        self,
        context: NotificationContext | str,
        notification_type: str,
    ) -> TypePreference | None:
        context_pref = self.context_preference(context)
        if context_pref is None:
            return None
        return context_pref.types.get(notification_type)

    def is_context_enabled(self, context: NotificationContext | str) -> bool:
        context_pref = self.context_preference(context)
        return context_pref is not None and context_pref.enabled

    def evaluate(
        self,
        context: NotificationContext | str,
        notification_type: str,
        channel: DeliveryChannel | str,
        *,
        now: datetime | None = None,
        quiet_hours_bypass: Collection[str] = DEFAULT_QUIET_HOURS_BYPASS,
    ) -> GateDecision:
        """Run the gates in order and report the first one that blocks."""
        if not self.global_settings.enable_notifications:
            return GateDecision(False, PreferenceGate.GLOBAL)

        if not self.is_context_enabled(context):
            return GateDecision(False, PreferenceGate.CONTEXT)

        now = now or datetime.now(UTC)
        if self.global_settings.quiet_hours.is_active(now) and notification_type not in quiet_hours_bypass:
            return GateDecision(False, PreferenceGate.QUIET_HOURS)

        if not self.channels.is_enabled(channel):
            return GateDecision(False, PreferenceGate.CHANNEL)

        type_pref = self.type_preference(context, notification_type)
        if type_pref is None:
            if default_channel_policy(channel):
                return ALLOWED
            return GateDecision(False, PreferenceGate.TYPE_CHANNEL)

        if not type_pref.enabled:
            return GateDecision(False, PreferenceGate.TYPE)
        if not type_pref.channels.is_enabled(channel):
            return GateDecision(False, PreferenceGate.TYPE_CHANNEL)
        return ALLOWED

    def is_notification_enabled(
        self,
        context: NotificationContext | str,
        notification_type: str,
        channel: DeliveryChannel | str,
        *,
        now: datetime | None = None,
        quiet_hours_bypass: Collection[str] = DEFAULT_QUIET_HOURS_BYPASS,
    ) -> bool:
        return self.evaluate(
            context,
            notification_type,
            channel,
            now=now,
            quiet_hours_bypass=quiet_hours_bypass,
        ).allowed

    def to_columns(self) -> dict[str, Any]:
        """JSON-ready values for the NotificationPreferences columns."""
        dumped = self.model_dump(mode="json")
        return {
            "global_settings": dumped["global_settings"],
            "channels": dumped["channels"],
            "contexts": dumped["contexts"],
            "advanced": dumped["advanced"],
        }

    @classmethod
    def from_columns(cls, row: Any) -> PreferenceDocument:
        """Build from a NotificationPreferences row (or anything with the same attributes)."""
        values = {
            name: getattr(row, name, None)
            for name in ("global_settings", "channels", "contexts", "advanced")
        }
        return cls.model_validate({name: value for name, value in values.items() if value})


def deep_merge(base: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``patch`` into a copy of ``base``."""
    merged = dict(base)
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


__all__ = [
    "DEFAULT_QUIET_HOURS_BYPASS",
    "AdvancedSettings",
    "ChannelSettings",
    "ContextPreference",
    "GateDecision",
    "GlobalSettings",
    "PreferenceDocument",
    "PreferenceGate",
    "QuietHours",
    "TypeChannels",
    "TypePreference",
    "deep_merge",
    "default_channel_policy",
    "is_within_window",
]
