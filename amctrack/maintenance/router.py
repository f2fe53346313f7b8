import enum
from collections.abc import Callable, Sequence
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from amctrack.base.clock import Clock
from amctrack.base.dependencies import get_clock, get_session
from amctrack.base.errors import InvalidInputError
from amctrack.base.schemas import PartialUpdate
from amctrack.base.search import filter_by_substring
from amctrack.customer.router import get_customer_or_404
from amctrack.equipment.router import get_equipment_or_404
from amctrack.maintenance import dates
from amctrack.maintenance.models import (
    WARRANTY_YEARS_OPTIONS,
    MaintenanceRecord,
    ServiceStatus,
    ServiceVisit,
)

router = APIRouter(prefix="/maintenance-records")


class MaintenanceSearchField(enum.Enum):
    HOSPITAL_NAME = "hospital_name"
    EQUIPMENT_NAME = "equipment_name"
    SERIAL_NO = "serial_no"
    SERVICE_STATUS = "service_status"
    RESPONSIBILITY = "responsibility"
    EQUIPMENT_AGE = "equipment_age"


_WARRANTY_YEARS_MIN = min(WARRANTY_YEARS_OPTIONS)
_WARRANTY_YEARS_MAX = max(WARRANTY_YEARS_OPTIONS)


class MaintenanceRecordCreate(BaseModel):
    customer_id: UUID
    equipment_id: UUID
    serial_no: str
    installation_date: date
    warranty_years: int = Field(ge=_WARRANTY_YEARS_MIN, le=_WARRANTY_YEARS_MAX)
    service_status: ServiceStatus
    amc_start_date: date | None = None
    invoice_amount: Decimal = Field(default=Decimal("0"), ge=0)
    responsibility: str = ""


class MaintenanceRecordUpdate(PartialUpdate):
    nullable = frozenset({"amc_start_date"})

    customer_id: UUID | None = None
    equipment_id: UUID | None = None
    serial_no: str | None = None
    installation_date: date | None = None
    warranty_years: int | None = Field(
        default=None, ge=_WARRANTY_YEARS_MIN, le=_WARRANTY_YEARS_MAX
    )
    service_status: ServiceStatus | None = None
    amc_start_date: date | None = None
    invoice_amount: Decimal | None = Field(default=None, ge=0)
    responsibility: str | None = None


class CustomerSummary(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID
    hospital_name: str


class EquipmentSummary(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID
    name: str
    model_number: str


class MaintenanceRecordResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID
    customer_id: UUID
    equipment_id: UUID
    serial_no: str
    installation_date: date
    warranty_years: int
    warranty_end_date: date
    service_status: ServiceStatus
    amc_start_date: date | None
    amc_end_date: date | None
    invoice_amount: Decimal
    responsibility: str
    equipment_age: str = ""
    customer: CustomerSummary
    equipment: EquipmentSummary
    created_at: datetime
    updated_at: datetime | None


class ServiceVisitCreate(BaseModel):
    visit_date: date
    technician_name: str
    description: str = ""


class ServiceVisitResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID
    maintenance_record_id: UUID
    visit_date: date
    technician_name: str
    description: str
    created_at: datetime


_SEARCH_VALUES: dict[
    MaintenanceSearchField, Callable[[MaintenanceRecordResponse], object]
] = {
    MaintenanceSearchField.HOSPITAL_NAME: lambda r: r.customer.hospital_name,
    MaintenanceSearchField.EQUIPMENT_NAME: lambda r: r.equipment.name,
    MaintenanceSearchField.SERIAL_NO: lambda r: r.serial_no,
    MaintenanceSearchField.SERVICE_STATUS: lambda r: r.service_status.value,
    MaintenanceSearchField.RESPONSIBILITY: lambda r: r.responsibility,
    MaintenanceSearchField.EQUIPMENT_AGE: lambda r: r.equipment_age,
}


def to_response(record: MaintenanceRecord, today: date) -> MaintenanceRecordResponse:
    """Serialize a record, recomputing every derived field from its inputs."""
    response = MaintenanceRecordResponse.model_validate(record)
    return response.model_copy(
        update={
            "warranty_end_date": dates.warranty_end_date(
                record.installation_date, record.warranty_years
            ),
            "amc_end_date": dates.amc_end_date(record.amc_start_date),
            "equipment_age": dates.format_equipment_age(
                record.installation_date, today
            ),
        }
    )


def _apply_derived_dates(record: MaintenanceRecord) -> None:
    try:
        record.refresh_derived_dates()
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


async def _get_record_or_404(
    record_id: UUID, session: AsyncSession
) -> MaintenanceRecord:
    stmt = (
        select(MaintenanceRecord)
        .where(MaintenanceRecord.id == record_id)
        .options(
            selectinload(MaintenanceRecord.customer),
            selectinload(MaintenanceRecord.equipment),
        )
    )
    record = (await session.execute(stmt)).scalar_one_or_none()
    if record is None:
        raise HTTPException(status_code=404, detail="Maintenance record not found")
    return record


@router.get("", response_model=list[MaintenanceRecordResponse])
async def list_maintenance_records(
    q: str | None = None,
    field: MaintenanceSearchField = MaintenanceSearchField.HOSPITAL_NAME,
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> list[MaintenanceRecordResponse]:
    stmt = (
        select(MaintenanceRecord)
        .options(
            selectinload(MaintenanceRecord.customer),
            selectinload(MaintenanceRecord.equipment),
        )
        .order_by(MaintenanceRecord.installation_date.desc())
    )
    records: Sequence[MaintenanceRecord] = (
        (await session.execute(stmt)).scalars().all()
    )
    today = clock.today()
    responses = [to_response(r, today) for r in records]
    return filter_by_substring(responses, q, _SEARCH_VALUES[field])


@router.post("", response_model=MaintenanceRecordResponse, status_code=201)
async def create_maintenance_record(
    body: MaintenanceRecordCreate,
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> MaintenanceRecordResponse:
    await get_customer_or_404(body.customer_id, session)
    await get_equipment_or_404(body.equipment_id, session)

    record = MaintenanceRecord(**body.model_dump())
    _apply_derived_dates(record)
    session.add(record)
    await session.flush()
    await session.refresh(record, attribute_names=["customer", "equipment"])
    return to_response(record, clock.today())


@router.get("/{record_id}", response_model=MaintenanceRecordResponse)
async def get_maintenance_record(
    record_id: UUID,
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> MaintenanceRecordResponse:
    record = await _get_record_or_404(record_id, session)
    return to_response(record, clock.today())


@router.patch("/{record_id}", response_model=MaintenanceRecordResponse)
async def update_maintenance_record(
    record_id: UUID,
    body: MaintenanceRecordUpdate,
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> MaintenanceRecordResponse:
    record = await _get_record_or_404(record_id, session)
    changes = body.model_dump(exclude_unset=True)

    if "customer_id" in changes:
        await get_customer_or_404(changes["customer_id"], session)
    if "equipment_id" in changes:
        await get_equipment_or_404(changes["equipment_id"], session)

    for key, value in changes.items():
        setattr(record, key, value)
    _apply_derived_dates(record)
    await session.flush()
    await session.refresh(record, attribute_names=["customer", "equipment"])
    return to_response(record, clock.today())


@router.delete("/{record_id}", status_code=204)
async def delete_maintenance_record(
    record_id: UUID,
    session: AsyncSession = Depends(get_session),
) -> None:
    record = await _get_record_or_404(record_id, session)
    await session.delete(record)


@router.get("/{record_id}/visits", response_model=list[ServiceVisitResponse])
async def list_service_visits(
    record_id: UUID,
    session: AsyncSession = Depends(get_session),
) -> list[ServiceVisit]:
    await _get_record_or_404(record_id, session)
    stmt = (
        select(ServiceVisit)
        .where(ServiceVisit.maintenance_record_id == record_id)
        .order_by(ServiceVisit.visit_date.desc())
    )
    return list((await session.execute(stmt)).scalars().all())


@router.post(
    "/{record_id}/visits", response_model=ServiceVisitResponse, status_code=201
)
async def create_service_visit(
    record_id: UUID,
    body: ServiceVisitCreate,
    session: AsyncSession = Depends(get_session),
) -> ServiceVisit:
    await _get_record_or_404(record_id, session)
    visit = ServiceVisit(maintenance_record_id=record_id, **body.model_dump())
    session.add(visit)
    await session.flush()
    return visit


@router.delete("/{record_id}/visits/{visit_id}", status_code=204)
async def delete_service_visit(
    record_id: UUID,
    visit_id: UUID,
    session: AsyncSession = Depends(get_session),
) -> None:
    stmt = select(ServiceVisit).where(
        ServiceVisit.id == visit_id,
        ServiceVisit.maintenance_record_id == record_id,
    )
    visit = (await session.execute(stmt)).scalar_one_or_none()
    if visit is None:
        raise HTTPException(status_code=404, detail="Service visit not found")
    await session.delete(visit)
