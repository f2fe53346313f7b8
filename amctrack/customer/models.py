from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from amctrack.base.models import BaseDbModel

if TYPE_CHECKING:
    from amctrack.maintenance.models import MaintenanceRecord


class Customer(BaseDbModel):
    __tablename__ = "customers"

    hospital_name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False)
    contact_info: Mapped[str] = mapped_column(String, nullable=False, default="")
    hod_name: Mapped[str] = mapped_column(String, nullable=False, default="")

    maintenance_records: Mapped[list[MaintenanceRecord]] = relationship(
        back_populates="customer"
    )
