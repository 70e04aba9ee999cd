"""Reservation service — visit slots for properties on sale or long-term rent."""

import logging
import uuid
from datetime import date, datetime, time, timedelta

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import settings
from app.errors import ConflictError, NotFoundError, ValidationError
from app.models.availability import WeeklyAvailability
from app.models.property import VISIT_LISTING_TYPES, Property
from app.models.reservation import Reservation
from app.models.unavailable_date import UnavailableDate
from app.schemas.reservation import ReservationCreate
from app.services.availability import (
    CANCELLED,
    EXPIRED,
    OCCUPYING_STATUSES,
    PENDING,
    STATUSES,
    OpenWindow,
    Weekday,
    compute_available_slots,
    ensure_transition,
    is_expired,
    slot_grid,
)
from app.services.booking_service import pending_expiry
from app.services.transaction import property_transaction

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Template and snapshots
# ---------------------------------------------------------------------------


def default_windows(weekday: Weekday) -> list[OpenWindow]:
    """Open hours from settings, used while no weekly template is configured."""
    if weekday.value not in settings.visit_working_days:
        return []
    return [OpenWindow(settings.visit_day_start, settings.visit_day_end)]


async def load_windows(session: AsyncSession, weekday: Weekday) -> list[OpenWindow]:
    """Return the open-hours windows for ``weekday``.

    Once any active template row exists the template is authoritative, and a
    weekday without active rows is closed. Otherwise the settings fallback
    applies.
    """
    result = await session.execute(
        select(WeeklyAvailability)
        .where(WeeklyAvailability.is_active.is_(True))
        .order_by(WeeklyAvailability.start_time)
    )
    rows = list(result.scalars().all())
    if not rows:
        return default_windows(weekday)
    return [row.to_window() for row in rows if row.day_of_week == weekday]


async def _occupied_times(session: AsyncSession, property_id: uuid.UUID, day: date) -> list[datetime]:
    start = datetime.combine(day, time.min)
    result = await session.execute(
        select(Reservation.meeting_date).where(
            Reservation.property_id == property_id,
            Reservation.status.in_(OCCUPYING_STATUSES),
            Reservation.meeting_date >= start,
            Reservation.meeting_date < start + timedelta(days=1),
        )
    )
    return list(result.scalars().all())


async def _blocks_on(session: AsyncSession, property_id: uuid.UUID, day: date) -> list[UnavailableDate]:
    result = await session.execute(
        select(UnavailableDate).where(
            or_(UnavailableDate.property_id == property_id, UnavailableDate.property_id.is_(None)),
            UnavailableDate.day == day,
        )
    )
    return list(result.scalars().all())


async def _get_visit_property(session: AsyncSession, property_id: uuid.UUID) -> Property:
    prop = await session.get(Property, property_id)
    if prop is None:
        raise NotFoundError("Property not found")
    if prop.listing_type not in VISIT_LISTING_TYPES:
        raise ValidationError("Visits are only offered for properties on sale or long-term rent")
    return prop


async def expire_stale_reservations(
    session: AsyncSession,
    property_id: uuid.UUID | None = None,
    now: datetime | None = None,
) -> int:
    """Flip pending reservations past their deadline to ``expired``."""
    now = now or datetime.now()
    query = select(Reservation).where(Reservation.status == PENDING, Reservation.expires_at <= now)
    if property_id is not None:
        query = query.where(Reservation.property_id == property_id)

    stale = list((await session.execute(query)).scalars().all())
    for reservation in stale:
        reservation.status = EXPIRED
        logger.info("Reservation %s at %s expired unconfirmed", reservation.id, reservation.meeting_date)
    if stale:
        await session.flush()
    return len(stale)


async def available_slots(
    session: AsyncSession,
    property_id: uuid.UUID,
    day: date,
    now: datetime | None = None,
) -> list[time]:
    """Return the free visit slots of ``day`` for the property, in order."""
    await _get_visit_property(session, property_id)
    now = now or datetime.now()
    await expire_stale_reservations(session, property_id, now)

    windows = await load_windows(session, Weekday.of(day))
    occupied = await _occupied_times(session, property_id, day)
    blocks = [b.to_block() for b in await _blocks_on(session, property_id, day)]
    return compute_available_slots(
        day,
        windows,
        occupied,
        blocks,
        slot_minutes=settings.visit_slot_minutes,
        lunch_break_hour=settings.visit_lunch_break_hour,
        now=now,
    )


# ---------------------------------------------------------------------------
# Reserving
# ---------------------------------------------------------------------------


def _normalize_meeting_date(meeting_date: datetime) -> datetime:
    if meeting_date.tzinfo is not None:
        meeting_date = meeting_date.astimezone().replace(tzinfo=None)
    if meeting_date.second or meeting_date.microsecond:
        raise ValidationError("meeting_date must fall on a slot boundary")
    return meeting_date


async def reserve_slot(
    session_factory: async_sessionmaker[AsyncSession],
    data: ReservationCreate,
    *,
    status: str = PENDING,
    created_by_id: uuid.UUID | None = None,
    now: datetime | None = None,
) -> Reservation:
    """Reserve a visit slot, re-checking availability inside the transaction.

    The free slots are recomputed after the property row is locked, so a
    request that lost the race for the same slot sees the winner's row and
    is rejected.

    Raises:
        ValidationError: Past date, time outside the visiting grid, wrong
            listing type, or a ``type`` that does not match the listing.
        NotFoundError: Unknown property.
        ConflictError: The slot is taken or blocked.
    """
    now = now or datetime.now()
    meeting_date = _normalize_meeting_date(data.meeting_date)
    if meeting_date <= now:
        raise ValidationError("meeting_date cannot be in the past")

    async def work(session: AsyncSession, prop: Property | None) -> Reservation:
        assert prop is not None
        prop = await _get_visit_property(session, prop.id)
        if data.type is not None and data.type != prop.visit_type:
            raise ValidationError(f"This property only accepts '{prop.visit_type}' visits")

        day, slot = meeting_date.date(), meeting_date.time()
        free = await available_slots(session, prop.id, day, now=now)
        if slot not in free:
            windows = await load_windows(session, Weekday.of(day))
            grid = slot_grid(windows, settings.visit_slot_minutes, settings.visit_lunch_break_hour)
            if slot not in grid:
                raise ValidationError("meeting_date is outside visiting hours")
            logger.info("Rejected visit on property %s at %s: slot taken", prop.id, meeting_date)
            raise ConflictError("This time slot is no longer available")

        reservation = Reservation(
            property_id=prop.id,
            client_name=data.client_name,
            client_email=data.client_email,
            client_phone=data.client_phone,
            visit_type=prop.visit_type,
            meeting_date=meeting_date,
            notes=data.notes,
            status=status,
            expires_at=pending_expiry(now) if status == PENDING else None,
            created_by_id=created_by_id,
        )
        session.add(reservation)
        await session.flush()
        await session.refresh(reservation)
        logger.info("Reserved visit on property %s at %s (reservation %s)", prop.id, meeting_date, reservation.id)
        return reservation

    return await property_transaction(session_factory, data.property_id, work, guard_host_blocks=True)


async def _get_reservation(session: AsyncSession, reservation_id: uuid.UUID, *, for_update: bool = False) -> Reservation:
    query = select(Reservation).where(Reservation.id == reservation_id)
    if for_update:
        query = query.with_for_update()
    reservation = (await session.execute(query)).scalar_one_or_none()
    if reservation is None:
        raise NotFoundError("Reservation not found")
    return reservation


async def update_reservation(
    session_factory: async_sessionmaker[AsyncSession],
    reservation_id: uuid.UUID,
    status: str | None = None,
    notes: str | None = None,
) -> Reservation:
    """Change a reservation's status and/or notes.

    Cancelling an already cancelled or expired reservation is a no-op.
    """
    async with session_factory() as session:
        property_id = (await _get_reservation(session, reservation_id)).property_id

    async def work(session: AsyncSession, prop: Property | None) -> Reservation:
        reservation = await _get_reservation(session, reservation_id, for_update=True)
        if is_expired(reservation.status, reservation.expires_at, datetime.now()):
            reservation.status = EXPIRED
            logger.info("Reservation %s expired unconfirmed", reservation.id)

        if notes is not None:
            reservation.notes = notes

        # An expired visit already freed its slot; cancelling it changes nothing.
        if status is not None and status != reservation.status:
            if not (status == CANCELLED and reservation.status == EXPIRED):
                ensure_transition(reservation.status, status)
                reservation.status = status
                if status != PENDING:
                    reservation.expires_at = None
                logger.info("Reservation %s is now %s", reservation.id, status)

        await session.flush()
        await session.refresh(reservation)
        return reservation

    return await property_transaction(session_factory, property_id, work)


async def cancel_reservation(session_factory: async_sessionmaker[AsyncSession], reservation_id: uuid.UUID) -> Reservation:
    """Cancel a visit, freeing its slot. Idempotent."""
    return await update_reservation(session_factory, reservation_id, status=CANCELLED)


async def reservation_statistics(session: AsyncSession, now: datetime | None = None) -> dict:
    """Count reservations per status, plus upcoming occupying visits."""
    now = now or datetime.now()
    await expire_stale_reservations(session, now=now)

    rows = await session.execute(select(Reservation.status, func.count()).group_by(Reservation.status))
    by_status = {s: 0 for s in STATUSES}
    by_status.update({s: n for s, n in rows.all()})

    upcoming = (
        await session.execute(
            select(func.count())
            .select_from(Reservation)
            .where(Reservation.status.in_(OCCUPYING_STATUSES), Reservation.meeting_date > now)
        )
    ).scalar_one()

    return {"total": sum(by_status.values()), "by_status": by_status, "upcoming": upcoming}
