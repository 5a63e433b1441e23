"""
Declarative base for the material ORM models.

Column conventions shared by every table:

* ``id``: uuid4 primary key, stored as ``String(36)`` so SQLite and
  PostgreSQL agree on the representation.
* ``Decimal`` columns are ``Numeric(38, 9)``.  Quantities never touch float.
* ``datetime`` columns are timezone-aware and always come back in UTC.
* ``TrackedBase`` adds ``created_at``/``updated_at`` and the ``is_active``
  flag that repositories filter on instead of deleting rows.

Nothing in here imports services, domain code or modules.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """``uuid.UUID`` in Python, 36-character text in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class UTCDateTime(TypeDecorator):
    """
    Aware datetimes only; written as UTC and read back tagged as UTC.

    SQLite loses the offset on the round trip, which would otherwise make
    event-time equality filters backend dependent.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError(f"naive datetime not allowed: {value!r}")
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        UUID: UUIDString(),
        Decimal: Numeric(38, 9),
        datetime: UTCDateTime(),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
    # Deactivated rows stay in the table but repositories never return them.
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)


__all__ = ["Base", "TrackedBase", "UUIDString", "UTCDateTime", "UUID"]
