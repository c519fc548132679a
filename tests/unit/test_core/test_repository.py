"""Unit tests for the generic BaseRepository."""
from __future__ import annotations

from uuid import uuid4

import pytest
from sqlalchemy import select

from notification_service.core.database import BaseRepository, NotFoundError, RepositoryError
from notification_service.features.notifications.models import NotificationPreferences
from notification_service.features.notifications.preferences import PreferenceDocument


@pytest.fixture
def repository() -> BaseRepository[NotificationPreferences]:
    return BaseRepository(NotificationPreferences)


async def add_preferences(repository, session, user_id: str) -> NotificationPreferences:
    row = NotificationPreferences(user_id=user_id, **PreferenceDocument().to_columns())
    return await repository.create(session, row)


@pytest.mark.unit
class TestBaseRepository:
    @pytest.mark.asyncio
    async def test_create_and_lookups(self, repository, db_session):
        created = await add_preferences(repository, db_session, "user-1")

        assert created.id is not None
        assert await repository.get(db_session, created.id) is created
        assert await repository.get_by(db_session, NotificationPreferences.user_id, "user-1") is created
        assert await repository.get_by(db_session, NotificationPreferences.user_id, "user-2") is None

    @pytest.mark.asyncio
    async def test_get_or_raise(self, repository, db_session):
        missing = uuid4()

        with pytest.raises(NotFoundError) as exc_info:
            await repository.get_or_raise(db_session, missing)

        assert isinstance(exc_info.value, RepositoryError)
        assert exc_info.value.details == {"model": "NotificationPreferences", "id": missing}
        assert "No NotificationPreferences row where id=" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_list_and_search(self, repository, db_session):
        for index in range(5):
            await add_preferences(repository, db_session, f"user-{index}")

        assert len(await repository.list(db_session, limit=3)) == 3

        statement = select(NotificationPreferences).order_by(NotificationPreferences.user_id)
        result = await repository.search(db_session, statement, limit=2, offset=2)

        assert [row.user_id for row in result.items] == ["user-2", "user-3"]
        assert (result.total, result.page, result.pages) == (5, 2, 3)

    @pytest.mark.asyncio
    async def test_delete_and_delete_many(self, repository, db_session):
        rows = [await add_preferences(repository, db_session, f"user-{index}") for index in range(3)]

        await repository.delete(db_session, rows[0])
        deleted = await repository.delete_many(db_session, [row.id for row in rows[1:]])

        assert deleted == 2
        assert await repository.delete_many(db_session, []) == 0
        assert await repository.list(db_session) == []
