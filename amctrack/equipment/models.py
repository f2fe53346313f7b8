from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from amctrack.base.models import BaseDbModel

if TYPE_CHECKING:
    from amctrack.maintenance.models import MaintenanceRecord


class Equipment(BaseDbModel):
    __tablename__ = "equipment"

    name: Mapped[str] = mapped_column(String, nullable=False)
    model_number: Mapped[str] = mapped_column(String, nullable=False)
    buy_price: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal("0")
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    maintenance_records: Mapped[list[MaintenanceRecord]] = relationship(
        back_populates="equipment"
    )
