"""Reading and updating per-user notification preferences."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from notification_service.core.services.base import BaseService
from notification_service.features.notifications.enums import DeliveryChannel
from notification_service.features.notifications.exceptions import NotificationValidationError
from notification_service.features.notifications.preferences import PreferenceDocument, deep_merge
from notification_service.features.notifications.repository import (
    NotificationPreferencesRepository,
    get_notification_preferences_repository,
)
from notification_service.features.notifications.types import coerce_context

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from notification_service.features.notifications.types import NotificationTypeRegistry


def _format_errors(exc: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]


class PreferenceService(BaseService):
    """Create-on-read preference documents with validated partial updates."""

    def __init__(
        self,
        registry: NotificationTypeRegistry,
        repository: NotificationPreferencesRepository | None = None,
    ) -> None:
        super().__init__()
        self._registry = registry
        self._repository = repository or get_notification_preferences_repository()

    async def get_preferences(self, session: AsyncSession, user_id: str) -> PreferenceDocument:
        row = await self._repository.get_or_create(session, user_id)
        return PreferenceDocument.from_columns(row)

    async def update_user_preferences(
        self,
        session: AsyncSession,
        user_id: str,
        patch: dict[str, Any],
    ) -> PreferenceDocument:
        """Deep-merge ``patch`` into the stored document and validate the result.

        Raises:
            NotificationValidationError: The merged document is invalid
        """
        row = await self._repository.get_or_create(session, user_id)
        current = PreferenceDocument.from_columns(row).model_dump(mode="json")
        try:
            document = PreferenceDocument.model_validate(deep_merge(current, patch))
        except ValidationError as exc:
            raise NotificationValidationError(_format_errors(exc)) from exc

        await self._repository.save(session, row, document)
        self.logger.info(
            "Notification preferences updated",
            extra={"user_id": user_id, "sections": sorted(patch)},
        )
        return document

    async def update_global_settings(
        self,
        session: AsyncSession,
        user_id: str,
        settings: dict[str, Any],
    ) -> PreferenceDocument:
        return await self.update_user_preferences(session, user_id, {"global_settings": settings})

    async def update_channel_settings(
        self,
        session: AsyncSession,
        user_id: str,
        channel: DeliveryChannel | str,
        settings: dict[str, Any],
    ) -> PreferenceDocument:
        try:
            channel = DeliveryChannel(channel)
        except ValueError as exc:
            raise NotificationValidationError([f"Invalid channel: {channel}"]) from exc
        return await self.update_user_preferences(
            session, user_id, {"channels": {channel.value: settings}}
        )

    async def update_context_settings(
        self,
        session: AsyncSession,
        user_id: str,
        context: str,
        settings: dict[str, Any],
    ) -> PreferenceDocument:
        known = coerce_context(context)
        if known is None:
            raise NotificationValidationError([f"Invalid context: {context}"])
        return await self.update_user_preferences(
            session, user_id, {"contexts": {known.value: settings}}
        )

    async def update_type_preference(
        self,
        session: AsyncSession,
        user_id: str,
        context: str,
        notification_type: str,
        *,
        enabled: bool | None = None,
        channels: dict[str, bool] | None = None,
    ) -> PreferenceDocument:
        """Configure one type; a type configured for the first time starts
        from the registry's default channels.
        """
        lookup = self._registry.lookup(context, notification_type)
        if not lookup.found or lookup.config is None:
            raise NotificationValidationError([lookup.error or f"Invalid type: {notification_type}"])
        config = lookup.config

        document = await self.get_preferences(session, user_id)
        type_patch: dict[str, Any] = {}
        if document.type_preference(config.context, notification_type) is None:
            type_patch = {"enabled": True, "channels": config.default_channels.as_dict()}
        if enabled is not None:
            type_patch["enabled"] = enabled
        if channels:
            unknown = sorted(set(channels) - {c.value for c in DeliveryChannel})
            if unknown:
                raise NotificationValidationError([f"Invalid channel: {name}" for name in unknown])
            type_patch["channels"] = {**type_patch.get("channels", {}), **channels}

        patch = {"contexts": {config.context.value: {"types": {notification_type: type_patch}}}}
        return await self.update_user_preferences(session, user_id, patch)

    async def reset_to_defaults(self, session: AsyncSession, user_id: str) -> PreferenceDocument:
        """Restore the default document, dropping every per-type entry."""
        row = await self._repository.get_or_create(session, user_id)
        document = PreferenceDocument()
        await self._repository.save(session, row, document)
        self.logger.info("Notification preferences reset", extra={"user_id": user_id})
        return document


__all__ = ["PreferenceService"]
