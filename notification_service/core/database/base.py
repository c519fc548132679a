"""Declarative base and composable model mixins.

Models mix and match capabilities by inheriting from specific mixins:

    class Notification(Base, UUIDv7PKMixin, TimestampMixin):
        __tablename__ = "notifications"
        title: Mapped[str] = mapped_column(String(100))
"""

from __future__ import annotations

import os
import time
import uuid
from datetime import UTC, datetime

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

from notification_service.core.database.types import UTCDateTime

# Predictable constraint names for migrations
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base with constraint naming and automatic table names.

    The automatic table naming can be overridden by setting __tablename__
    explicitly on the model class.
    """

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return cls.__name__.lower()


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(UTC)


def generate_uuid7() -> uuid.UUID:
    """Generate a time-ordered UUID v7."""
    timestamp_ms = int(time.time() * 1000)
    random_bytes = os.urandom(10)

    uuid_bytes = bytearray(16)
    uuid_bytes[0:6] = timestamp_ms.to_bytes(6, byteorder="big")
    uuid_bytes[6] = (random_bytes[0] & 0x0F) | 0x70  # Version 7
    uuid_bytes[7] = random_bytes[1]
    uuid_bytes[8] = (random_bytes[2] & 0x3F) | 0x80  # Variant
    uuid_bytes[9:16] = random_bytes[3:10]

    return uuid.UUID(bytes=bytes(uuid_bytes))


class UUIDv7PKMixin:
    """UUID v7 primary key (time-sortable).

    Later ids sort after earlier ones, which keeps B-tree inserts local and
    lets notification ids double as a coarse creation order.
    """

    __allow_unmapped__ = True

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid7,
        comment="UUID v7 primary key (time-sortable)",
    )


class TimestampMixin:
    """UTC created_at/updated_at tracking."""

    __allow_unmapped__ = True

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utcnow,
        nullable=False,
        comment="Timestamp of record creation",
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
        comment="Timestamp of last update",
    )


__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "TimestampMixin",
    "UUIDv7PKMixin",
    "generate_uuid7",
    "utcnow",
]
