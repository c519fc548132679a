"""Notification type registry.

The registry is an immutable catalog built once at startup and handed to the
factory, the preference service and the context handlers. It never changes
after construction, so it is safe to share between tasks.

Example:
    registry = build_default_registry()
    config = registry.get_type("dating", "match")
    outcome = registry.validate("social", "post_like", recipient_id="65f1...")
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from datetime import timedelta
from types import MappingProxyType

from notification_service.features.notifications.enums import (
    DeliveryChannel,
    NotificationContext,
    NotificationPriority,
)


@dataclass(slots=True, frozen=True)
class ChannelDefaults:
    """Default per-channel enablement of a notification type."""

    in_app: bool = True
    push: bool = False
    email: bool = False
    sms: bool = False

    def is_enabled(self, channel: DeliveryChannel | str) -> bool:
        return bool(getattr(self, DeliveryChannel(channel).value))

    def as_dict(self) -> dict[str, bool]:
        return {channel.value: self.is_enabled(channel) for channel in DeliveryChannel}


@dataclass(slots=True, frozen=True)
class TypeConfig:
    """Code-defined defaults for one notification type within a context.

    Attributes:
        context: Context the type belongs to
        notification_type: Type key, unique within its context
        default_title: Title used when the caller supplies none
        default_message: Message template with ``{sender}``/``{placeholder}`` tokens
        priority: Default priority
        default_channels: Channels the type is meant for by default
        expiry: Lifetime added to the creation time to compute expires_at
    """

    context: NotificationContext
    notification_type: str
    default_title: str
    default_message: str
    priority: NotificationPriority
    default_channels: ChannelDefaults
    expiry: timedelta


@dataclass(slots=True, frozen=True)
class TypeLookup:
    """Explicit result of a registry lookup.

    ``config`` is set when ``found``; otherwise ``error`` says why not.
    """

    found: bool
    config: TypeConfig | None = None
    error: str | None = None


@dataclass(slots=True, frozen=True)
class ValidationOutcome:
    valid: bool
    errors: tuple[str, ...] = ()
    type_config: TypeConfig | None = None


def coerce_context(value: NotificationContext | str | None) -> NotificationContext | None:
    """Parse a context name, returning None for unknown values."""
    if isinstance(value, NotificationContext):
        return value
    try:
        return NotificationContext(value)
    except ValueError:
        return None


class NotificationTypeRegistry:
    """Immutable catalog of notification types per context."""

    __slots__ = ("_catalog",)

    def __init__(self, catalogs: Mapping[NotificationContext, Iterable[TypeConfig]]) -> None:
        catalog: dict[NotificationContext, Mapping[str, TypeConfig]] = {}
        for context, configs in catalogs.items():
            entries: dict[str, TypeConfig] = {}
            for config in configs:
                if config.context != context:
                    msg = f"Type {config.notification_type} declares context {config.context}, registered under {context}"
                    raise ValueError(msg)
                if config.notification_type in entries:
                    msg = f"Duplicate notification type {config.notification_type} in context {context}"
                    raise ValueError(msg)
                entries[config.notification_type] = config
            catalog[context] = MappingProxyType(entries)
        self._catalog: Mapping[NotificationContext, Mapping[str, TypeConfig]] = MappingProxyType(catalog)

    def contexts(self) -> tuple[NotificationContext, ...]:
        return tuple(self._catalog)

    def types_for(self, context: NotificationContext | str) -> Mapping[str, TypeConfig]:
        """All types registered for a context (empty mapping if unknown)."""
        parsed = coerce_context(context)
        if parsed is None or parsed not in self._catalog:
            return MappingProxyType({})
        return self._catalog[parsed]

    def lookup(self, context: NotificationContext | str, notification_type: str) -> TypeLookup:
        parsed = coerce_context(context)
        if parsed is None or parsed not in self._catalog:
            return TypeLookup(found=False, error=f"Invalid context: {context}")
        config = self._catalog[parsed].get(notification_type)
        if config is None:
            return TypeLookup(
                found=False,
                error=f"Invalid type: {notification_type} for context: {parsed.value}",
            )
        return TypeLookup(found=True, config=config)

    def get_type(self, context: NotificationContext | str, notification_type: str) -> TypeConfig | None:
        return self.lookup(context, notification_type).config

    def is_valid_type(self, context: NotificationContext | str, notification_type: str) -> bool:
        return self.lookup(context, notification_type).found

    def validate(
        self,
        context: NotificationContext | str,
        notification_type: str,
        *,
        recipient_id: str | None,
    ) -> ValidationOutcome:
        """Validate a creation request; the first failing check wins."""
        lookup = self.lookup(context, notification_type)
        if not lookup.found:
            return ValidationOutcome(valid=False, errors=(lookup.error or "Invalid type",))
        if not recipient_id:
            return ValidationOutcome(valid=False, errors=("recipient_id is required",))
        return ValidationOutcome(valid=True, type_config=lookup.config)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        context, notification_type = key
        return self.is_valid_type(context, notification_type)

    def __iter__(self) -> Iterator[TypeConfig]:
        for entries in self._catalog.values():
            yield from entries.values()

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._catalog.values())


def build_default_registry() -> NotificationTypeRegistry:
    """Registry with the built-in social and dating catalogs."""
    from notification_service.features.notifications.types.dating import DATING_TYPES
    from notification_service.features.notifications.types.social import SOCIAL_TYPES

    return NotificationTypeRegistry(
        {
            NotificationContext.SOCIAL: SOCIAL_TYPES,
            NotificationContext.DATING: DATING_TYPES,
        }
    )


__all__ = [
    "ChannelDefaults",
    "NotificationTypeRegistry",
    "TypeConfig",
    "TypeLookup",
    "ValidationOutcome",
    "build_default_registry",
    "coerce_context",
]
