from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from amctrack.base.errors import QueryFailure
from amctrack.customer.models import Customer
from amctrack.equipment.models import Equipment
from amctrack.maintenance.models import MaintenanceRecord


@dataclass(frozen=True)
class DueReminder:
    """A contract whose AMC ends on a scanned target date, detached from the DB."""

    record_id: UUID
    customer_email: str
    customer_name: str
    equipment_name: str
    amc_end_date: date


async def get_due_reminders(session: AsyncSession, target: date) -> list[DueReminder]:
    """Return every maintenance record whose AMC ends exactly on `target`."""
    stmt = (
        select(
            MaintenanceRecord.id,
            Customer.email,
            Customer.hospital_name,
            Equipment.name,
            MaintenanceRecord.amc_end_date,
        )
        .join(Customer, MaintenanceRecord.customer_id == Customer.id)
        .join(Equipment, MaintenanceRecord.equipment_id == Equipment.id)
        .where(MaintenanceRecord.amc_end_date == target)
        .order_by(MaintenanceRecord.id)
    )
    try:
        rows = (await session.execute(stmt)).all()
    except SQLAlchemyError as e:
        raise QueryFailure(f"AMC query for {target.isoformat()} failed") from e

    return [
        DueReminder(
            record_id=row[0],
            customer_email=row[1],
            customer_name=row[2],
            equipment_name=row[3],
            amc_end_date=row[4],
        )
        for row in rows
    ]
