"""Database building blocks: declarative base, mixins, repository."""

from notification_service.core.database.base import (
    Base,
    TimestampMixin,
    UUIDv7PKMixin,
    generate_uuid7,
    utcnow,
)
from notification_service.core.database.exceptions import NotFoundError, RepositoryError
from notification_service.core.database.repository import BaseRepository, SearchResult
from notification_service.core.database.types import UTCDateTime

__all__ = [
    "Base",
    "BaseRepository",
    "NotFoundError",
    "RepositoryError",
    "SearchResult",
    "TimestampMixin",
    "UTCDateTime",
    "UUIDv7PKMixin",
    "generate_uuid7",
    "utcnow",
]
