"""Reservations API router — property visits on hourly slots."""

import uuid
from datetime import date, datetime, timedelta

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from app.api.deps import get_current_active_user, get_db, get_session_factory
from app.errors import NotFoundError
from app.models.reservation import Reservation
from app.models.user import User
from app.schemas.auth import MessageResponse
from app.schemas.reservation import (
    ReservationCreate,
    ReservationDetailResponse,
    ReservationListResponse,
    ReservationResponse,
    ReservationStatistics,
    ReservationUpdate,
)
from app.services import reservation_service
from app.services.availability import CONFIRMED, PENDING, format_slot

router = APIRouter(prefix="/api/v1/reservations", tags=["reservations"])


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------


@router.get(
    "/available-slots/{property_id}/{day}",
    response_model=list[str],
    summary="Free visit slots for a day",
)
async def get_available_slots(
    property_id: uuid.UUID,
    day: date,
    db: AsyncSession = Depends(get_db),
) -> list[str]:
    """Return the still-bookable slots of ``day`` as ``HH:MM`` strings."""
    slots = await reservation_service.available_slots(db, property_id, day)
    return [format_slot(s) for s in slots]


@router.post(
    "/public",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a visit (public form)",
)
async def create_public_reservation(
    body: ReservationCreate,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> Reservation:
    """Reserve a visit slot from the public property page. Always starts ``pending``."""
    return await reservation_service.reserve_slot(session_factory, body, status=PENDING)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a visit from the dashboard",
)
async def create_reservation(
    body: ReservationCreate,
    confirm: bool = Query(False, description="Create the visit already confirmed"),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    current_user: User = Depends(get_current_active_user),
) -> Reservation:
    """Reserve a visit slot on behalf of a client."""
    return await reservation_service.reserve_slot(
        session_factory,
        body,
        status=CONFIRMED if confirm else PENDING,
        created_by_id=current_user.id,
    )


@router.get(
    "",
    response_model=ReservationListResponse,
    summary="List visit reservations",
)
async def list_reservations(
    status_filter: str | None = Query(None, alias="status"),
    visit_type: str | None = Query(None, alias="type"),
    property_id: uuid.UUID | None = Query(None, alias="propertyId"),
    date_from: date | None = Query(None, alias="dateFrom"),
    date_to: date | None = Query(None, alias="dateTo"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_current_active_user),
) -> ReservationListResponse:
    """Return reservations ordered by meeting date."""
    await reservation_service.expire_stale_reservations(db, property_id)

    filters = []
    if status_filter is not None:
        filters.append(Reservation.status == status_filter)
    if visit_type is not None:
        filters.append(Reservation.visit_type == visit_type)
    if property_id is not None:
        filters.append(Reservation.property_id == property_id)
    if date_from is not None:
        filters.append(Reservation.meeting_date >= datetime.combine(date_from, datetime.min.time()))
    if date_to is not None:
        filters.append(Reservation.meeting_date < datetime.combine(date_to + timedelta(days=1), datetime.min.time()))

    total = (await db.execute(select(func.count()).select_from(Reservation).where(*filters))).scalar_one()

    result = await db.execute(
        select(Reservation).where(*filters).order_by(Reservation.meeting_date.asc()).offset(skip).limit(limit)
    )
    items = list(result.scalars().all())

    return ReservationListResponse(
        items=[ReservationResponse.model_validate(r) for r in items],
        total=total,
    )


@router.get(
    "/statistics",
    response_model=ReservationStatistics,
    summary="Reservation counts per status",
)
async def get_statistics(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_current_active_user),
) -> dict:
    return await reservation_service.reservation_statistics(db)


@router.get(
    "/{reservation_id}",
    response_model=ReservationDetailResponse,
    summary="Get a reservation with its property",
)
async def get_reservation(
    reservation_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_current_active_user),
) -> Reservation:
    result = await db.execute(
        select(Reservation).options(selectinload(Reservation.property)).where(Reservation.id == reservation_id)
    )
    reservation = result.scalar_one_or_none()
    if reservation is None:
        raise NotFoundError("Reservation not found")
    return reservation


@router.patch(
    "/{reservation_id}",
    response_model=ReservationResponse,
    summary="Update a reservation's status or notes",
)
async def update_reservation(
    reservation_id: uuid.UUID,
    body: ReservationUpdate,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    _admin: User = Depends(get_current_active_user),
) -> Reservation:
    """Confirm, complete or cancel a visit, or edit its notes."""
    return await reservation_service.update_reservation(
        session_factory, reservation_id, status=body.status, notes=body.notes
    )


@router.patch(
    "/{reservation_id}/cancel",
    response_model=ReservationResponse,
    summary="Cancel a reservation",
)
async def cancel_reservation(
    reservation_id: uuid.UUID,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    _admin: User = Depends(get_current_active_user),
) -> Reservation:
    """Cancel a visit and free its slot. Cancelling twice is a no-op."""
    return await reservation_service.cancel_reservation(session_factory, reservation_id)


@router.delete(
    "/{reservation_id}",
    response_model=MessageResponse,
    summary="Delete a reservation",
)
async def delete_reservation(
    reservation_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_current_active_user),
) -> MessageResponse:
    reservation = await db.get(Reservation, reservation_id)
    if reservation is None:
        raise NotFoundError("Reservation not found")
    await db.delete(reservation)
    await db.flush()
    return MessageResponse(message="Reservation deleted")
