"""Unit tests for PreferenceService."""

from __future__ import annotations

import pytest

from notification_service.features.notifications.exceptions import NotificationValidationError
from notification_service.features.notifications.preference_service import PreferenceService
from notification_service.features.notifications.types import build_default_registry

USER_ID = "65f1a2b3c4d5e6f7a8b9c0d1"


@pytest.fixture
def preferences() -> PreferenceService:
    return PreferenceService(build_default_registry())


@pytest.mark.unit
class TestPartialUpdates:
    @pytest.mark.asyncio
    async def test_get_creates_default_document(self, preferences, db_session):
        document = await preferences.get_preferences(db_session, USER_ID)

        assert document.channels.sms.enabled is False
        assert document.channels.sms.emergency_only is True
        assert document.is_context_enabled("social")
        assert document.is_context_enabled("dating")

    @pytest.mark.asyncio
    async def test_update_is_deep_merged_and_persisted(self, preferences, db_session):
        await preferences.update_user_preferences(db_session, USER_ID, {"channels": {"email": {"enabled": False}}})
        await preferences.update_user_preferences(db_session, USER_ID, {"channels": {"push": {"enabled": False}}})

        document = await preferences.get_preferences(db_session, USER_ID)
        assert document.channels.email.enabled is False
        assert document.channels.push.enabled is False
        assert document.channels.in_app.enabled is True

    @pytest.mark.asyncio
    async def test_invalid_value_is_rejected(self, preferences, db_session):
        with pytest.raises(NotificationValidationError) as exc_info:
            await preferences.update_user_preferences(
                db_session,
                USER_ID,
                {"global_settings": {"quiet_hours": {"timezone": "Mars/Olympus"}}},
            )

        assert exc_info.value.status_code == 422
        assert exc_info.value.errors

    @pytest.mark.asyncio
    async def test_channel_settings(self, preferences, db_session):
        document = await preferences.update_channel_settings(db_session, USER_ID, "sms", {"enabled": True})

        assert document.channels.sms.enabled is True
        assert document.channels.sms.emergency_only is True

    @pytest.mark.asyncio
    async def test_unknown_channel(self, preferences, db_session):
        with pytest.raises(NotificationValidationError, match="Invalid channel: pigeon"):
            await preferences.update_channel_settings(db_session, USER_ID, "pigeon", {"enabled": True})

    @pytest.mark.asyncio
    async def test_context_settings(self, preferences, db_session):
        document = await preferences.update_context_settings(db_session, USER_ID, "dating", {"enabled": False})

        assert document.is_context_enabled("dating") is False
        assert document.is_context_enabled("social") is True

    @pytest.mark.asyncio
    async def test_unknown_context(self, preferences, db_session):
        with pytest.raises(NotificationValidationError, match="Invalid context: gaming"):
            await preferences.update_context_settings(db_session, USER_ID, "gaming", {"enabled": False})


@pytest.mark.unit
class TestTypePreferences:
    @pytest.mark.asyncio
    async def test_first_configuration_starts_from_registry_defaults(self, preferences, db_session):
        document = await preferences.update_type_preference(db_session, USER_ID, "dating", "match", enabled=True)

        type_pref = document.type_preference("dating", "match")
        assert type_pref is not None
        assert type_pref.enabled is True
        assert type_pref.channels.is_enabled("in_app")
        assert type_pref.channels.is_enabled("push")

    @pytest.mark.asyncio
    async def test_channel_override_keeps_other_defaults(self, preferences, db_session):
        document = await preferences.update_type_preference(
            db_session,
            USER_ID,
            "dating",
            "match",
            channels={"push": False},
        )

        type_pref = document.type_preference("dating", "match")
        assert type_pref.channels.is_enabled("push") is False
        assert type_pref.channels.is_enabled("in_app") is True

    @pytest.mark.asyncio
    async def test_disable_type(self, preferences, db_session):
        await preferences.update_type_preference(db_session, USER_ID, "social", "post_like", enabled=False)

        document = await preferences.get_preferences(db_session, USER_ID)
        assert document.type_preference("social", "post_like").enabled is False

    @pytest.mark.asyncio
    async def test_unknown_type(self, preferences, db_session):
        with pytest.raises(NotificationValidationError):
            await preferences.update_type_preference(db_session, USER_ID, "social", "match", enabled=True)

    @pytest.mark.asyncio
    async def test_unknown_channel_key(self, preferences, db_session):
        with pytest.raises(NotificationValidationError, match="Invalid channel: fax"):
            await preferences.update_type_preference(
                db_session,
                USER_ID,
                "social",
                "post_like",
                channels={"fax": True},
            )

    @pytest.mark.asyncio
    async def test_reset_drops_type_entries(self, preferences, db_session):
        await preferences.update_type_preference(db_session, USER_ID, "social", "post_like", enabled=False)
        await preferences.update_channel_settings(db_session, USER_ID, "email", {"enabled": False})

        document = await preferences.reset_to_defaults(db_session, USER_ID)

        assert document.type_preference("social", "post_like") is None
        assert document.channels.email.enabled is True
        stored = await preferences.get_preferences(db_session, USER_ID)
        assert stored.type_preference("social", "post_like") is None
