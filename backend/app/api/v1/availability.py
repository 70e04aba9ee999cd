"""Availability API router — weekly visit template and host-wide blocked dates."""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.api.deps import get_current_active_user, get_db, get_session_factory
from app.errors import NotFoundError
from app.models.availability import WeeklyAvailability
from app.models.user import User
from app.schemas.auth import MessageResponse
from app.schemas.availability import (
    AvailabilityCreate,
    AvailabilityResponse,
    AvailabilityUpdate,
    BlockDateRequest,
    BlockedDateResponse,
)
from app.services import booking_service
from app.services.availability import OpenWindow, Weekday

router = APIRouter(prefix="/api/v1/availability", tags=["availability"])


async def _get_window_or_404(db: AsyncSession, availability_id: uuid.UUID) -> WeeklyAvailability:
    window = await db.get(WeeklyAvailability, availability_id)
    if window is None:
        raise NotFoundError("Availability not found")
    return window


# ---------------------------------------------------------------------------
# Weekly template
# ---------------------------------------------------------------------------


@router.get("", response_model=list[AvailabilityResponse], summary="Weekly visiting hours")
async def list_availability(db: AsyncSession = Depends(get_db)) -> list[WeeklyAvailability]:
    """Return every template window, Monday first."""
    result = await db.execute(select(WeeklyAvailability).order_by(WeeklyAvailability.start_time))
    weekdays = list(Weekday)
    return sorted(result.scalars().all(), key=lambda r: (weekdays.index(r.day_of_week), r.start_time))


@router.post(
    "",
    response_model=AvailabilityResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a visiting-hours window",
)
async def create_availability(
    body: AvailabilityCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_current_active_user),
) -> WeeklyAvailability:
    window = WeeklyAvailability(**body.model_dump())
    db.add(window)
    await db.flush()
    await db.refresh(window)
    return window


@router.put("/{availability_id}", response_model=AvailabilityResponse, summary="Update a visiting-hours window")
async def update_availability(
    availability_id: uuid.UUID,
    body: AvailabilityUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_current_active_user),
) -> WeeklyAvailability:
    """Partially update a window. The resulting hours must stay non-empty."""
    window = await _get_window_or_404(db, availability_id)

    update_data = body.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(window, field, value)
    OpenWindow(window.start_time, window.end_time)

    await db.flush()
    await db.refresh(window)
    return window


@router.delete("/{availability_id}", response_model=MessageResponse, summary="Delete a visiting-hours window")
async def delete_availability(
    availability_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_current_active_user),
) -> MessageResponse:
    window = await _get_window_or_404(db, availability_id)
    await db.delete(window)
    await db.flush()
    return MessageResponse(message="Availability deleted")


# ---------------------------------------------------------------------------
# Host-wide blocked dates
# ---------------------------------------------------------------------------


@router.get("/blocked-dates", response_model=list[BlockedDateResponse], summary="Host-wide blocked dates")
async def list_host_blocks(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_current_active_user),
) -> list[BlockedDateResponse]:
    blocks = await booking_service.list_blocks(db, None)
    return [BlockedDateResponse.model_validate(b) for b in blocks]


@router.post(
    "/blocked-dates",
    response_model=BlockedDateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Block a day or slot for every property",
)
async def create_host_block(
    body: BlockDateRequest,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    _admin: User = Depends(get_current_active_user),
) -> BlockedDateResponse:
    block = await booking_service.block_date(session_factory, None, body.date, body.time, body.reason)
    return BlockedDateResponse.model_validate(block)


@router.delete("/blocked-dates/{block_id}", response_model=MessageResponse, summary="Remove a host-wide block")
async def delete_host_block(
    block_id: uuid.UUID,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    _admin: User = Depends(get_current_active_user),
) -> MessageResponse:
    await booking_service.remove_host_block(session_factory, block_id)
    return MessageResponse(message="Unavailable date removed")
