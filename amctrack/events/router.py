from datetime import datetime
from typing import Self
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import AwareDatetime, BaseModel, model_validator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from amctrack.base.dependencies import get_session
from amctrack.base.schemas import PartialUpdate
from amctrack.events.models import CalendarEvent

router = APIRouter(prefix="/events")


class EventCreate(BaseModel):
    title: str
    description: str | None = None
    start_at: AwareDatetime
    end_at: AwareDatetime

    @model_validator(mode="after")
    def _end_after_start(self) -> Self:
        if self.end_at < self.start_at:
            raise ValueError("end_at must not be before start_at")
        return self


class EventUpdate(PartialUpdate):
    nullable = frozenset({"description"})

    title: str | None = None
    description: str | None = None
    start_at: AwareDatetime | None = None
    end_at: AwareDatetime | None = None


class EventResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: UUID
    title: str
    description: str | None
    start_at: datetime
    end_at: datetime
    created_at: datetime
    updated_at: datetime | None


async def _get_event_or_404(event_id: UUID, session: AsyncSession) -> CalendarEvent:
    event = await session.get(CalendarEvent, event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.get("", response_model=list[EventResponse])
async def list_events(
    start: AwareDatetime | None = None,
    end: AwareDatetime | None = None,
    session: AsyncSession = Depends(get_session),
) -> list[CalendarEvent]:
    """Events ordered by start, optionally only those overlapping a window."""
    stmt = select(CalendarEvent).order_by(CalendarEvent.start_at)
    if start is not None:
        stmt = stmt.where(CalendarEvent.end_at >= start)
    if end is not None:
        stmt = stmt.where(CalendarEvent.start_at <= end)
    return list((await session.execute(stmt)).scalars().all())


@router.post("", response_model=EventResponse, status_code=201)
async def create_event(
    body: EventCreate,
    session: AsyncSession = Depends(get_session),
) -> CalendarEvent:
    event = CalendarEvent(**body.model_dump())
    session.add(event)
    await session.flush()
    return event


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: UUID,
    session: AsyncSession = Depends(get_session),
) -> CalendarEvent:
    return await _get_event_or_404(event_id, session)


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: UUID,
    body: EventUpdate,
    session: AsyncSession = Depends(get_session),
) -> CalendarEvent:
    event = await _get_event_or_404(event_id, session)
    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(event, key, value)
    if event.end_at < event.start_at:
        raise HTTPException(
            status_code=422, detail="end_at must not be before start_at"
        )
    await session.flush()
    return event


@router.delete("/{event_id}", status_code=204)
async def delete_event(
    event_id: UUID,
    session: AsyncSession = Depends(get_session),
) -> None:
    event = await _get_event_or_404(event_id, session)
    await session.delete(event)
