"""Bookings API router — short-term stays.

Guests submit stay requests anonymously; everything else is for the
dashboard. Creating, cancelling and deleting go through the booking service,
which owns its transaction, so those routes depend on the session factory
rather than on the request session.
"""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from app.api.deps import get_current_active_user, get_db, get_session_factory
from app.errors import NotFoundError
from app.models.booking import Booking
from app.models.property import Property
from app.models.user import User
from app.schemas.auth import MessageResponse
from app.schemas.booking import (
    BookingCreate,
    BookingDetailResponse,
    BookingListResponse,
    BookingResponse,
    BookingStatusUpdate,
    BookingUpdate,
)
from app.services import booking_service

router = APIRouter(prefix="/api/v1/bookings", tags=["bookings"])


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a stay",
)
async def create_booking(
    body: BookingCreate,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> Booking:
    """Book a short-term rental for an inclusive range of days.

    Returns 409 when the range touches or overlaps an existing stay or a
    blocked day, and 400 when the range is inverted or in the past.
    """
    return await booking_service.book_property(session_factory, body)


@router.get(
    "",
    response_model=BookingListResponse,
    summary="List bookings",
)
async def list_bookings(
    property_id: uuid.UUID | None = Query(None, description="Filter by property"),
    status_filter: str | None = Query(None, alias="status", description="Filter by booking status"),
    start_from: date | None = Query(None, description="Bookings with start_date >= this date"),
    start_to: date | None = Query(None, description="Bookings with start_date <= this date"),
    skip: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(20, ge=1, le=100, description="Pagination limit"),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_current_active_user),
) -> dict:
    """Return a paginated list of bookings, newest first."""
    await booking_service.expire_stale_bookings(db, property_id)

    filters = []
    if property_id is not None:
        filters.append(Booking.property_id == property_id)
    if status_filter is not None:
        filters.append(Booking.status == status_filter)
    if start_from is not None:
        filters.append(Booking.start_date >= start_from)
    if start_to is not None:
        filters.append(Booking.start_date <= start_to)

    # Total count
    total_result = await db.execute(select(func.count()).select_from(Booking).where(*filters))
    total = total_result.scalar_one()

    # Fetch page
    items_query = select(Booking).where(*filters).order_by(Booking.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(items_query)
    items = list(result.scalars().all())

    return {"items": items, "total": total}


@router.get(
    "/property/{property_id}",
    response_model=list[BookingResponse],
    summary="List bookings of one property",
)
async def list_property_bookings(
    property_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_current_active_user),
) -> list[Booking]:
    """Return every booking of the property in date order."""
    if await db.get(Property, property_id) is None:
        raise NotFoundError("Property not found")
    await booking_service.expire_stale_bookings(db, property_id)

    result = await db.execute(
        select(Booking).where(Booking.property_id == property_id).order_by(Booking.start_date.asc())
    )
    return list(result.scalars().all())


@router.get(
    "/{booking_id}",
    response_model=BookingDetailResponse,
    summary="Get booking detail with nested property",
)
async def get_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_current_active_user),
) -> Booking:
    """Retrieve a single booking with its property."""
    result = await db.execute(
        select(Booking).options(selectinload(Booking.property)).where(Booking.id == booking_id)
    )
    booking = result.scalar_one_or_none()

    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


@router.patch(
    "/{booking_id}/cancel",
    response_model=BookingResponse,
    summary="Cancel a booking",
)
async def cancel_booking(
    booking_id: uuid.UUID,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    _admin: User = Depends(get_current_active_user),
) -> Booking:
    """Cancel a stay and free its days. Cancelling twice is a no-op."""
    return await booking_service.cancel_booking(session_factory, booking_id)


@router.patch(
    "/{booking_id}/status",
    response_model=BookingResponse,
    summary="Change a booking's status",
)
async def update_booking_status(
    booking_id: uuid.UUID,
    body: BookingStatusUpdate,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    _admin: User = Depends(get_current_active_user),
) -> Booking:
    """Confirm, complete, cancel or expire a booking.

    Returns 400 for transitions the lifecycle does not allow, e.g. confirming
    a cancelled booking.
    """
    return await booking_service.update_booking_status(session_factory, booking_id, body.status)


@router.put(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Edit a booking",
)
async def update_booking(
    booking_id: uuid.UUID,
    body: BookingUpdate,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    _admin: User = Depends(get_current_active_user),
) -> Booking:
    """Edit client details, guests, price, notes or dates.

    Moving the dates frees the old days and holds the new ones; returns 409
    when the new range touches another stay or a blocked day.
    """
    return await booking_service.update_booking(session_factory, booking_id, body)


@router.delete(
    "/{booking_id}",
    response_model=MessageResponse,
    summary="Delete a booking",
)
async def delete_booking(
    booking_id: uuid.UUID,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    _admin: User = Depends(get_current_active_user),
) -> dict:
    """Delete a booking and the days it held."""
    await booking_service.delete_booking(session_factory, booking_id)
    return {"message": "Booking deleted"}
