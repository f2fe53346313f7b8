"""
Declarative base shared by every amctrack table.

Timestamps are stored as naive UTC and handed back timezone-aware. Money
columns (`Mapped[Decimal]`) default to two decimal places.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Dialect, Numeric, TypeDecorator, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

MONEY = Numeric(12, 2)


class UTCDateTime(TypeDecorator):
    impl = DateTime
    cache_ok = True

    def process_bind_param(
        self, value: datetime | None, dialect: Dialect
    ) -> datetime | None:
        if value is None:
            return value

        if not value.tzinfo or value.tzinfo.utcoffset(value) is None:
            raise TypeError(f"Naive datetime {value!r} cannot be stored as UTC")

        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(
        self, value: datetime | None, dialect: Dialect
    ) -> datetime | None:
        if value is None:
            return value

        return value.replace(tzinfo=timezone.utc)


def _utcnow(_context: Any = None) -> datetime:
    return datetime.now(timezone.utc)


class BaseDbModel(DeclarativeBase):
    type_annotation_map = {Decimal: MONEY}

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), server_default=func.now(), default=_utcnow
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(), onupdate=_utcnow
    )
