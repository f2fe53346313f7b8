import enum
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from amctrack.base.dependencies import get_session
from amctrack.base.schemas import PartialUpdate
from amctrack.base.search import filter_by_substring
from amctrack.equipment.models import Equipment
from amctrack.maintenance.models import MaintenanceRecord

router = APIRouter(prefix="/equipment")


class EquipmentSearchField(enum.Enum):
    NAME = "name"
    MODEL_NUMBER = "model_number"
    NOTES = "notes"


class EquipmentCreate(BaseModel):
    name: str
    model_number: str
    buy_price: Decimal = Field(default=Decimal("0"), ge=0)
    notes: str | None = None


class EquipmentUpdate(PartialUpdate):
    nullable = frozenset({"notes"})

    name: str | None = None
    model_number: str | None = None
    buy_price: Decimal | None = Field(default=None, ge=0)
    notes: str | None = None


class EquipmentResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID
    name: str
    model_number: str
    buy_price: Decimal
    notes: str | None
    created_at: datetime
    updated_at: datetime | None


async def get_equipment_or_404(
    equipment_id: UUID, session: AsyncSession
) -> Equipment:
    equipment = await session.get(Equipment, equipment_id)
    if equipment is None:
        raise HTTPException(status_code=404, detail="Equipment not found")
    return equipment


@router.get("", response_model=list[EquipmentResponse])
async def list_equipment(
    q: str | None = None,
    field: EquipmentSearchField = EquipmentSearchField.NAME,
    session: AsyncSession = Depends(get_session),
) -> list[Equipment]:
    stmt = select(Equipment).order_by(Equipment.name)
    items = (await session.execute(stmt)).scalars().all()
    return filter_by_substring(items, q, lambda e: getattr(e, field.value))


@router.post("", response_model=EquipmentResponse, status_code=201)
async def create_equipment(
    body: EquipmentCreate,
    session: AsyncSession = Depends(get_session),
) -> Equipment:
    equipment = Equipment(**body.model_dump())
    session.add(equipment)
    await session.flush()
    return equipment


@router.get("/{equipment_id}", response_model=EquipmentResponse)
async def get_equipment(
    equipment_id: UUID,
    session: AsyncSession = Depends(get_session),
) -> Equipment:
    return await get_equipment_or_404(equipment_id, session)


@router.patch("/{equipment_id}", response_model=EquipmentResponse)
async def update_equipment(
    equipment_id: UUID,
    body: EquipmentUpdate,
    session: AsyncSession = Depends(get_session),
) -> Equipment:
    equipment = await get_equipment_or_404(equipment_id, session)
    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(equipment, key, value)
    await session.flush()
    return equipment


@router.delete("/{equipment_id}", status_code=204)
async def delete_equipment(
    equipment_id: UUID,
    session: AsyncSession = Depends(get_session),
) -> None:
    equipment = await get_equipment_or_404(equipment_id, session)
    stmt = select(func.count()).where(MaintenanceRecord.equipment_id == equipment.id)
    if await session.scalar(stmt):
        raise HTTPException(
            status_code=409, detail="Equipment is used by maintenance records"
        )
    await session.delete(equipment)
