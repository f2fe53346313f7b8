from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import Date, Enum, ForeignKey, Integer, String, Text, event
from sqlalchemy.orm import Mapped, Mapper, mapped_column, relationship

from amctrack.base.models import BaseDbModel
from amctrack.customer.models import Customer
from amctrack.equipment.models import Equipment
from amctrack.maintenance import dates


class ServiceStatus(enum.Enum):
    WARRANTY = "warranty"
    AMC = "AMC"
    CAMC = "CAMC"
    CALIBRATION = "calibration"
    ON_CALL_SERVICE = "On call service"


WARRANTY_YEARS_OPTIONS = (1, 2, 3, 4, 5, 6)


class MaintenanceRecord(BaseDbModel):
    """
    One piece of equipment installed at one customer, under one contract.

    `warranty_end_date` and `amc_end_date` are outputs, not inputs: they are
    stored so the reminder scan can filter on them, and rewritten from the
    installation/AMC fields on every insert and update.
    """

    __tablename__ = "maintenance_records"

    customer_id: Mapped[UUID] = mapped_column(
        ForeignKey("customers.id"), nullable=False
    )
    equipment_id: Mapped[UUID] = mapped_column(
        ForeignKey("equipment.id"), nullable=False
    )
    serial_no: Mapped[str] = mapped_column(String, nullable=False)
    installation_date: Mapped[date] = mapped_column(Date, nullable=False)
    warranty_years: Mapped[int] = mapped_column(Integer, nullable=False)
    warranty_end_date: Mapped[date] = mapped_column(Date, nullable=False)
    service_status: Mapped[ServiceStatus] = mapped_column(
        Enum(ServiceStatus), nullable=False
    )
    amc_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    amc_end_date: Mapped[date | None] = mapped_column(
        Date, nullable=True, index=True
    )
    invoice_amount: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal("0")
    )
    responsibility: Mapped[str] = mapped_column(String, nullable=False, default="")

    customer: Mapped[Customer] = relationship(back_populates="maintenance_records")
    equipment: Mapped[Equipment] = relationship(back_populates="maintenance_records")
    visits: Mapped[list[ServiceVisit]] = relationship(
        back_populates="maintenance_record",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ServiceVisit.visit_date.desc()",
    )

    def refresh_derived_dates(self) -> None:
        self.warranty_end_date = dates.warranty_end_date(
            self.installation_date, self.warranty_years
        )
        self.amc_end_date = dates.amc_end_date(self.amc_start_date)


@event.listens_for(MaintenanceRecord, "before_insert")
@event.listens_for(MaintenanceRecord, "before_update")
def _derive_dates(
    mapper: Mapper[Any], connection: Any, target: MaintenanceRecord
) -> None:
    target.refresh_derived_dates()


class ServiceVisit(BaseDbModel):
    __tablename__ = "service_visits"

    maintenance_record_id: Mapped[UUID] = mapped_column(
        ForeignKey("maintenance_records.id", ondelete="CASCADE"), nullable=False
    )
    visit_date: Mapped[date] = mapped_column(Date, nullable=False)
    technician_name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    maintenance_record: Mapped[MaintenanceRecord] = relationship(
        back_populates="visits"
    )
