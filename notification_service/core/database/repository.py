"""Generic async repository with explicit session passing.

Feature repositories subclass ``BaseRepository`` and add their own queries;
the session always comes from the caller so one unit of work can span
several repositories.

Example:
    class NotificationPreferencesRepository(BaseRepository[NotificationPreferences]):
        async def get_for_user(self, session, user_id):
            return await self.get_by(session, NotificationPreferences.user_id, user_id)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import Select, func, select
from sqlalchemy import delete as sql_delete

from notification_service.core.database.exceptions import NotFoundError
from notification_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.orm import InstrumentedAttribute


@dataclass(slots=True, frozen=True)
class SearchResult[T]:
    """One page of a filtered query plus the unpaginated total."""

    items: Sequence[T]
    total: int
    limit: int
    offset: int

    @property
    def page(self) -> int:
        return self.offset // self.limit + 1 if self.limit else 1

    @property
    def pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 1


class BaseRepository[T]:
    """CRUD for one mapped model.

    - get / get_or_raise / get_by: single-row lookups
    - list: unfiltered page of rows
    - search: page + total for a caller-built statement
    - create / delete / delete_many: writes, flushed but never committed
    """

    __slots__ = ("_lazy", "_logger", "model")

    def __init__(self, model: type[T]) -> None:
        self.model = model
        name = f"repository.{model.__name__}"
        self._logger = logging.getLogger(name)
        self._lazy = get_lazy_logger(name)

    async def get(self, session: AsyncSession, id: Any) -> T | None:  # noqa: A002
        row = await session.get(self.model, id)
        self._lazy.debug(lambda: f"get {self.model.__name__} {id}: {'hit' if row else 'miss'}")
        return row

    async def get_or_raise(self, session: AsyncSession, id: Any) -> T:  # noqa: A002
        """Like ``get`` but a missing row raises NotFoundError."""
        row = await self.get(session, id)
        if row is None:
            raise NotFoundError(self.model.__name__, {"id": id})
        return row

    async def get_by(
        self,
        session: AsyncSession,
        attr: InstrumentedAttribute[Any],
        value: Any,
    ) -> T | None:
        """First row whose ``attr`` equals ``value``."""
        row = (await session.execute(select(self.model).where(attr == value))).scalars().first()
        self._lazy.debug(lambda: f"get_by {self.model.__name__}.{attr.key}={value!r}: {'hit' if row else 'miss'}")
        return row

    async def list(
        self,
        session: AsyncSession,
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> Sequence[T]:
        stmt = select(self.model).limit(limit).offset(offset)
        return (await session.execute(stmt)).scalars().all()

    async def search(
        self,
        session: AsyncSession,
        statement: Select[Any],
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> SearchResult[T]:
        """Run an already filtered and ordered statement as one page.

        The total is counted over the statement without its ORDER BY.
        """
        count_stmt = select(func.count()).select_from(statement.order_by(None).subquery())
        total = (await session.execute(count_stmt)).scalar_one()
        items = (await session.execute(statement.limit(limit).offset(offset))).scalars().all()

        self._lazy.debug(
            lambda: f"search {self.model.__name__}: {len(items)} of {total} (limit={limit}, offset={offset})"
        )
        return SearchResult(items=items, total=total, limit=limit, offset=offset)

    async def create(self, session: AsyncSession, instance: T) -> T:
        """Add and flush ``instance``; refreshed so column defaults are loaded."""
        session.add(instance)
        await session.flush()
        await session.refresh(instance)
        self._lazy.debug(lambda: f"created {self.model.__name__} {getattr(instance, 'id', None)}")
        return instance

    async def delete(self, session: AsyncSession, instance: T) -> None:
        await session.delete(instance)
        await session.flush()
        self._logger.debug(
            "Row deleted",
            extra={"entity": self.model.__name__, "id": str(getattr(instance, "id", None))},
        )

    async def delete_many(self, session: AsyncSession, ids: Iterable[Any]) -> int:
        """Delete rows by primary key in one statement and return the count."""
        keys = list(ids)
        if not keys:
            return 0

        mapper = getattr(self.model, "__mapper__")
        pk = getattr(self.model, mapper.primary_key[0].key)
        stmt = sql_delete(self.model).where(pk.in_(keys)).execution_options(synchronize_session=False)
        result = await session.execute(stmt)
        await session.flush()

        deleted = result.rowcount or 0
        self._logger.info("Rows deleted", extra={"entity": self.model.__name__, "count": deleted})
        return deleted


__all__ = ["BaseRepository", "SearchResult"]
