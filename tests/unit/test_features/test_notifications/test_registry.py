"""Unit tests for the notification type registry."""

from __future__ import annotations

from datetime import timedelta

import pytest

from notification_service.features.notifications.enums import (
    NotificationContext,
    NotificationPriority,
)
from notification_service.features.notifications.types import (
    ChannelDefaults,
    NotificationTypeRegistry,
    TypeConfig,
    build_default_registry,
    coerce_context,
)


def _config(context: NotificationContext, notification_type: str) -> TypeConfig:
    return TypeConfig(
        context=context,
        notification_type=notification_type,
        default_title="Title",
        default_message="{sender} did something",
        priority=NotificationPriority.NORMAL,
        default_channels=ChannelDefaults(),
        expiry=timedelta(days=1),
    )


@pytest.mark.unit
class TestDefaultRegistry:
    @pytest.fixture
    def registry(self) -> NotificationTypeRegistry:
        return build_default_registry()

    def test_contexts(self, registry):
        assert registry.contexts() == (NotificationContext.SOCIAL, NotificationContext.DATING)

    def test_same_type_key_in_both_contexts(self, registry):
        social = registry.get_type("social", "message_received")
        dating = registry.get_type("dating", "message_received")

        assert social is not None
        assert dating is not None
        assert social.context == NotificationContext.SOCIAL
        assert dating.context == NotificationContext.DATING
        assert dating.priority == NotificationPriority.HIGH

    def test_call_incoming_is_urgent_and_short_lived(self, registry):
        config = registry.get_type("social", "call_incoming")

        assert config.priority == NotificationPriority.URGENT
        assert config.expiry == timedelta(hours=1)

    def test_lookup_unknown_context(self, registry):
        lookup = registry.lookup("gaming", "post_like")

        assert lookup.found is False
        assert lookup.config is None
        assert lookup.error == "Invalid context: gaming"

    def test_lookup_unknown_type(self, registry):
        lookup = registry.lookup("dating", "post_like")

        assert lookup.found is False
        assert lookup.error == "Invalid type: post_like for context: dating"

    def test_contains(self, registry):
        assert ("social", "post_like") in registry
        assert ("dating", "post_like") not in registry
        assert "post_like" not in registry

    def test_types_for_unknown_context_is_empty(self, registry):
        assert dict(registry.types_for("gaming")) == {}
        assert "match" in registry.types_for(NotificationContext.DATING)

    def test_iteration_covers_every_type(self, registry):
        assert len(list(registry)) == len(registry)
        assert len(registry) == len(registry.types_for("social")) + len(registry.types_for("dating"))

    def test_catalog_is_read_only(self, registry):
        with pytest.raises(TypeError):
            registry.types_for("social")["new_type"] = _config(NotificationContext.SOCIAL, "new_type")


@pytest.mark.unit
class TestValidate:
    def test_valid_request(self):
        outcome = build_default_registry().validate("social", "post_like", recipient_id="65f1a2b3c4d5e6f7a8b9c0d1")

        assert outcome.valid is True
        assert outcome.errors == ()
        assert outcome.type_config.notification_type == "post_like"

    def test_type_error_reported_before_missing_recipient(self):
        outcome = build_default_registry().validate("social", "nope", recipient_id=None)

        assert outcome.valid is False
        assert outcome.errors == ("Invalid type: nope for context: social",)

    def test_missing_recipient(self):
        outcome = build_default_registry().validate("dating", "match", recipient_id="")

        assert outcome.valid is False
        assert outcome.errors == ("recipient_id is required",)


@pytest.mark.unit
class TestRegistryConstruction:
    def test_duplicate_type_rejected(self):
        with pytest.raises(ValueError, match="Duplicate notification type"):
            NotificationTypeRegistry(
                {
                    NotificationContext.SOCIAL: [
                        _config(NotificationContext.SOCIAL, "ping"),
                        _config(NotificationContext.SOCIAL, "ping"),
                    ]
                }
            )

    def test_context_mismatch_rejected(self):
        with pytest.raises(ValueError, match="declares context"):
            NotificationTypeRegistry({NotificationContext.SOCIAL: [_config(NotificationContext.DATING, "ping")]})

    def test_coerce_context(self):
        assert coerce_context("dating") is NotificationContext.DATING
        assert coerce_context(NotificationContext.SOCIAL) is NotificationContext.SOCIAL
        assert coerce_context("gaming") is None
        assert coerce_context(None) is None

    def test_channel_defaults_as_dict(self):
        defaults = ChannelDefaults(in_app=True, push=True)

        assert defaults.as_dict() == {"in_app": True, "push": True, "email": False, "sms": False}
