import enum
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from amctrack.base.dependencies import get_session
from amctrack.base.schemas import PartialUpdate
from amctrack.base.search import filter_by_substring
from amctrack.customer.models import Customer
from amctrack.maintenance.models import MaintenanceRecord

router = APIRouter(prefix="/customers")


class CustomerSearchField(enum.Enum):
    HOSPITAL_NAME = "hospital_name"
    EMAIL = "email"
    CONTACT_INFO = "contact_info"
    HOD_NAME = "hod_name"


class CustomerCreate(BaseModel):
    hospital_name: str
    email: str
    contact_info: str = ""
    hod_name: str = ""


class CustomerUpdate(PartialUpdate):
    hospital_name: str | None = None
    email: str | None = None
    contact_info: str | None = None
    hod_name: str | None = None


class CustomerResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID
    hospital_name: str
    email: str
    contact_info: str
    hod_name: str
    created_at: datetime
    updated_at: datetime | None


async def get_customer_or_404(customer_id: UUID, session: AsyncSession) -> Customer:
    customer = await session.get(Customer, customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.get("", response_model=list[CustomerResponse])
async def list_customers(
    q: str | None = None,
    field: CustomerSearchField = CustomerSearchField.HOSPITAL_NAME,
    session: AsyncSession = Depends(get_session),
) -> list[Customer]:
    stmt = select(Customer).order_by(Customer.hospital_name)
    customers = (await session.execute(stmt)).scalars().all()
    return filter_by_substring(customers, q, lambda c: getattr(c, field.value))


@router.post("", response_model=CustomerResponse, status_code=201)
async def create_customer(
    body: CustomerCreate,
    session: AsyncSession = Depends(get_session),
) -> Customer:
    customer = Customer(**body.model_dump())
    session.add(customer)
    await session.flush()
    return customer


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: UUID,
    session: AsyncSession = Depends(get_session),
) -> Customer:
    return await get_customer_or_404(customer_id, session)


@router.patch("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: UUID,
    body: CustomerUpdate,
    session: AsyncSession = Depends(get_session),
) -> Customer:
    customer = await get_customer_or_404(customer_id, session)
    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(customer, key, value)
    await session.flush()
    return customer


@router.delete("/{customer_id}", status_code=204)
async def delete_customer(
    customer_id: UUID,
    session: AsyncSession = Depends(get_session),
) -> None:
    customer = await get_customer_or_404(customer_id, session)
    stmt = select(func.count()).where(MaintenanceRecord.customer_id == customer.id)
    if await session.scalar(stmt):
        raise HTTPException(
            status_code=409, detail="Customer still has maintenance records"
        )
    await session.delete(customer)
