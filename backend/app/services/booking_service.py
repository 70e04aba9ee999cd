"""Booking service — stay bookings and blocked dates.

A stay occupies an inclusive range of days. Accepting one also materializes
one ``UnavailableDate`` row per day (``booking_id`` set) so that the public
calendar is a plain lookup; cancelling or expiring the stay removes exactly
those rows. Both halves always happen in the same transaction.
"""

import logging
import uuid
from datetime import date, datetime, time, timedelta

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import settings
from app.errors import ConflictError, NotFoundError, ValidationError
from app.models.booking import Booking
from app.models.property import STAY_LISTING_TYPES, Property
from app.models.unavailable_date import UnavailableDate
from app.schemas.booking import BookingCreate, BookingUpdate
from app.services.availability import (
    CANCELLED,
    EXPIRED,
    OCCUPYING_STATUSES,
    PENDING,
    DateRange,
    ensure_transition,
    find_overlapping,
    is_expired,
)
from app.services.transaction import property_transaction

logger = logging.getLogger(__name__)

BOOKED_REASON = "Booked"


def pending_expiry(now: datetime) -> datetime:
    """Deadline for confirming a commitment created at ``now``."""
    return now + timedelta(hours=settings.pending_expiry_hours)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def _occupying_bookings(session: AsyncSession, property_id: uuid.UUID, window: DateRange) -> list[Booking]:
    result = await session.execute(
        select(Booking).where(
            Booking.property_id == property_id,
            Booking.status.in_(OCCUPYING_STATUSES),
            Booking.start_date <= window.end,
            Booking.end_date >= window.start,
        )
    )
    return list(result.scalars().all())


async def _manual_day_blocks(session: AsyncSession, property_id: uuid.UUID, window: DateRange) -> list[UnavailableDate]:
    """Whole-day manual blocks (property or host-wide) inside ``window``."""
    result = await session.execute(
        select(UnavailableDate)
        .where(
            or_(UnavailableDate.property_id == property_id, UnavailableDate.property_id.is_(None)),
            UnavailableDate.booking_id.is_(None),
            UnavailableDate.slot_time.is_(None),
            UnavailableDate.day >= window.start,
            UnavailableDate.day <= window.end,
        )
        .order_by(UnavailableDate.day)
    )
    return list(result.scalars().all())


async def _release_days(session: AsyncSession, booking: Booking) -> None:
    await session.execute(delete(UnavailableDate).where(UnavailableDate.booking_id == booking.id))


def _hold_days(session: AsyncSession, booking: Booking, window: DateRange) -> None:
    session.add_all(
        UnavailableDate(property_id=booking.property_id, day=day, reason=BOOKED_REASON, booking_id=booking.id)
        for day in window.days()
    )


async def _ensure_range_free(
    session: AsyncSession,
    property_id: uuid.UUID,
    candidate: DateRange,
    exclude_booking_id: uuid.UUID | None = None,
) -> None:
    """Raise ``ConflictError`` if ``candidate`` touches another stay or a blocked day."""
    others = [
        b.as_range()
        for b in await _occupying_bookings(session, property_id, candidate)
        if b.id != exclude_booking_id
    ]
    overlapping = find_overlapping(others, candidate)
    if overlapping:
        logger.info("Rejected stay %s on property %s: overlaps %s", candidate, property_id, overlapping)
        raise ConflictError("Property is already booked for these dates")

    blocked = await _manual_day_blocks(session, property_id, candidate)
    if blocked:
        logger.info("Rejected stay %s on property %s: %d blocked day(s)", candidate, property_id, len(blocked))
        raise ConflictError(f"Property is unavailable on {blocked[0].day.isoformat()}")


async def _get_booking(session: AsyncSession, booking_id: uuid.UUID, *, for_update: bool = False) -> Booking:
    query = select(Booking).where(Booking.id == booking_id)
    if for_update:
        query = query.with_for_update()
    booking = (await session.execute(query)).scalar_one_or_none()
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


async def _booking_property_id(session_factory: async_sessionmaker[AsyncSession], booking_id: uuid.UUID) -> uuid.UUID:
    async with session_factory() as session:
        return (await _get_booking(session, booking_id)).property_id


async def expire_stale_bookings(
    session: AsyncSession,
    property_id: uuid.UUID | None = None,
    now: datetime | None = None,
) -> int:
    """Flip pending bookings past their deadline to ``expired`` and free their days.

    Called lazily from the read and write paths; returns how many bookings
    expired.
    """
    now = now or datetime.now()
    query = select(Booking).where(Booking.status == PENDING, Booking.expires_at <= now)
    if property_id is not None:
        query = query.where(Booking.property_id == property_id)

    stale = list((await session.execute(query)).scalars().all())
    for booking in stale:
        booking.status = EXPIRED
        await _release_days(session, booking)
        logger.info("Booking %s expired unconfirmed, released %s", booking.id, booking.as_range())
    if stale:
        await session.flush()
    return len(stale)


async def list_unavailable_dates(session: AsyncSession, property_id: uuid.UUID) -> list[date]:
    """Return the sorted, distinct days on which the property cannot be booked."""
    if await session.get(Property, property_id) is None:
        raise NotFoundError("Property not found")

    await expire_stale_bookings(session, property_id)
    result = await session.execute(
        select(UnavailableDate.day)
        .where(
            or_(UnavailableDate.property_id == property_id, UnavailableDate.property_id.is_(None)),
            UnavailableDate.slot_time.is_(None),
        )
        .distinct()
        .order_by(UnavailableDate.day)
    )
    return list(result.scalars().all())


async def list_blocks(session: AsyncSession, property_id: uuid.UUID | None) -> list[UnavailableDate]:
    """Return block records for a property, or host-wide blocks when ``property_id`` is None."""
    if property_id is None:
        query = select(UnavailableDate).where(UnavailableDate.property_id.is_(None))
    else:
        if await session.get(Property, property_id) is None:
            raise NotFoundError("Property not found")
        query = select(UnavailableDate).where(UnavailableDate.property_id == property_id)
    result = await session.execute(query.order_by(UnavailableDate.day, UnavailableDate.slot_time))
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Stay bookings
# ---------------------------------------------------------------------------


async def book_property(
    session_factory: async_sessionmaker[AsyncSession],
    data: BookingCreate,
    today: date | None = None,
) -> Booking:
    """Accept a stay request or reject it as a conflict.

    The range is validated before any store access. Inside the property's
    transaction the existing non-cancelled stays and manual blocks are
    re-read, the overlap check runs, and the booking plus its per-day
    ``UnavailableDate`` rows are inserted.

    Raises:
        ValidationError: Inverted range, start in the past, or the property
            is not a short-term rental.
        NotFoundError: Unknown property.
        ConflictError: The range touches or overlaps an existing stay or a
            blocked day.
    """
    candidate = DateRange(data.start_date, data.end_date)
    if candidate.start < (today or date.today()):
        raise ValidationError("start_date cannot be in the past")

    async def work(session: AsyncSession, prop: Property | None) -> Booking:
        assert prop is not None
        if prop.listing_type not in STAY_LISTING_TYPES:
            raise ValidationError("Stays can only be booked on short-term rentals")

        now = datetime.now()
        await expire_stale_bookings(session, prop.id, now)

        await _ensure_range_free(session, prop.id, candidate)

        booking = Booking(**data.model_dump(), status=PENDING, expires_at=pending_expiry(now))
        session.add(booking)
        await session.flush()

        _hold_days(session, booking, candidate)
        await session.flush()
        await session.refresh(booking)
        logger.info("Booked property %s for %s (booking %s)", prop.id, candidate, booking.id)
        return booking

    return await property_transaction(session_factory, data.property_id, work, guard_host_blocks=True)


async def update_booking_status(
    session_factory: async_sessionmaker[AsyncSession],
    booking_id: uuid.UUID,
    target: str,
) -> Booking:
    """Move a booking through its lifecycle.

    Cancelling an already-cancelled booking is a no-op. Leaving an occupying
    status removes the booking's materialized days in the same transaction.
    """
    property_id = await _booking_property_id(session_factory, booking_id)

    async def work(session: AsyncSession, prop: Property | None) -> Booking:
        booking = await _get_booking(session, booking_id, for_update=True)
        if is_expired(booking.status, booking.expires_at, datetime.now()):
            booking.status = EXPIRED
            await _release_days(session, booking)
            logger.info("Booking %s expired unconfirmed", booking.id)

        # Already free: cancelling again changes nothing.
        if target == CANCELLED and booking.status in (CANCELLED, EXPIRED):
            await session.flush()
            await session.refresh(booking)
            return booking

        ensure_transition(booking.status, target)
        booking.status = target
        if target != PENDING:
            booking.expires_at = None
        if target in (CANCELLED, EXPIRED):
            await _release_days(session, booking)

        await session.flush()
        await session.refresh(booking)
        logger.info("Booking %s is now %s", booking.id, target)
        return booking

    return await property_transaction(session_factory, property_id, work)


async def update_booking(
    session_factory: async_sessionmaker[AsyncSession],
    booking_id: uuid.UUID,
    data: BookingUpdate,
    today: date | None = None,
) -> Booking:
    """Edit a booking's client details, party, price, notes or dates.

    Moving the dates re-runs the overlap and blocked-day checks against every
    other stay on the property, then swaps the booking's materialized days
    for the new range in the same transaction. Only pending and confirmed
    bookings can be moved.

    Raises:
        ValidationError: Inverted range, new start in the past, or the
            booking no longer holds its days.
        NotFoundError: Unknown booking.
        ConflictError: The new range touches another stay or a blocked day.
    """
    changes = data.model_dump(exclude_unset=True)
    property_id = await _booking_property_id(session_factory, booking_id)

    async def work(session: AsyncSession, prop: Property | None) -> Booking:
        booking = await _get_booking(session, booking_id, for_update=True)
        if is_expired(booking.status, booking.expires_at, datetime.now()):
            booking.status = EXPIRED
            await _release_days(session, booking)
            logger.info("Booking %s expired unconfirmed", booking.id)

        new_range = DateRange(
            changes.get("start_date", booking.start_date),
            changes.get("end_date", booking.end_date),
        )
        moved = new_range != booking.as_range()
        if moved:
            if booking.status not in OCCUPYING_STATUSES:
                raise ValidationError(f"A {booking.status} booking cannot be rescheduled")
            if new_range.start < (today or date.today()):
                raise ValidationError("start_date cannot be in the past")
            await _ensure_range_free(session, booking.property_id, new_range, exclude_booking_id=booking.id)

        for field, value in changes.items():
            setattr(booking, field, value)

        if moved:
            await _release_days(session, booking)
            _hold_days(session, booking, new_range)
            logger.info("Booking %s moved to %s", booking.id, new_range)

        await session.flush()
        await session.refresh(booking)
        return booking

    return await property_transaction(session_factory, property_id, work, guard_host_blocks=True)


async def cancel_booking(session_factory: async_sessionmaker[AsyncSession], booking_id: uuid.UUID) -> Booking:
    """Cancel a stay and free its days. Idempotent."""
    return await update_booking_status(session_factory, booking_id, CANCELLED)


async def delete_booking(session_factory: async_sessionmaker[AsyncSession], booking_id: uuid.UUID) -> None:
    """Hard-delete a booking together with its materialized days."""
    property_id = await _booking_property_id(session_factory, booking_id)

    async def work(session: AsyncSession, prop: Property | None) -> None:
        booking = await _get_booking(session, booking_id, for_update=True)
        await _release_days(session, booking)
        await session.delete(booking)
        logger.info("Deleted booking %s", booking_id)

    await property_transaction(session_factory, property_id, work)


# ---------------------------------------------------------------------------
# Manual blocks
# ---------------------------------------------------------------------------


async def block_date(
    session_factory: async_sessionmaker[AsyncSession],
    property_id: uuid.UUID | None,
    day: date,
    slot_time: time | None = None,
    reason: str | None = None,
) -> UnavailableDate:
    """Block a whole day or one visit slot, for a property or host-wide."""

    async def work(session: AsyncSession, prop: Property | None) -> UnavailableDate:
        existing = await _find_manual_blocks(session, property_id, day, slot_time)
        if existing:
            raise ConflictError("This date is already blocked")

        block = UnavailableDate(property_id=property_id, day=day, slot_time=slot_time, reason=reason)
        session.add(block)
        await session.flush()
        await session.refresh(block)
        logger.info("Blocked %s %s for %s", day, slot_time or "(whole day)", property_id or "all properties")
        return block

    return await property_transaction(session_factory, property_id, work)


async def unblock_date(
    session_factory: async_sessionmaker[AsyncSession],
    property_id: uuid.UUID | None,
    day: date,
    slot_time: time | None = None,
) -> None:
    """Remove a manual block. Days held by a booking are freed by cancelling it instead."""

    async def work(session: AsyncSession, prop: Property | None) -> None:
        existing = await _find_manual_blocks(session, property_id, day, slot_time)
        if not existing:
            raise NotFoundError("Unavailable date not found")
        for block in existing:
            await session.delete(block)
        logger.info("Unblocked %s %s for %s", day, slot_time or "(whole day)", property_id or "all properties")

    await property_transaction(session_factory, property_id, work)


async def remove_host_block(session_factory: async_sessionmaker[AsyncSession], block_id: uuid.UUID) -> None:
    """Remove a host-wide block by id."""
    async with session_factory() as session:
        block = await session.get(UnavailableDate, block_id)
        if block is None or block.property_id is not None:
            raise NotFoundError("Unavailable date not found")
        day, slot_time = block.day, block.slot_time

    await unblock_date(session_factory, None, day, slot_time)


async def _find_manual_blocks(
    session: AsyncSession,
    property_id: uuid.UUID | None,
    day: date,
    slot_time: time | None,
) -> list[UnavailableDate]:
    query = select(UnavailableDate).where(
        UnavailableDate.day == day,
        UnavailableDate.booking_id.is_(None),
        UnavailableDate.property_id.is_(None) if property_id is None else UnavailableDate.property_id == property_id,
        UnavailableDate.slot_time.is_(None) if slot_time is None else UnavailableDate.slot_time == slot_time,
    )
    return list((await session.execute(query)).scalars().all())
