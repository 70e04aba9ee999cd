"""Overlap resolution and slot-grid computation.

Pure functions only: callers load snapshots from the store and pass them in,
nothing here touches a session. Two kinds of commitments are handled:

* stay bookings, which occupy an inclusive range of calendar days, and
* visit reservations, which occupy one discrete slot on a given day.

Ranges are compared as closed intervals, so a stay ending on the 20th and
another starting on the 20th overlap (no same-day checkout/check-in).
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from app.errors import ValidationError

# ---------------------------------------------------------------------------
# Status state machine (shared by bookings and reservations)
# ---------------------------------------------------------------------------

PENDING = "pending"
CONFIRMED = "confirmed"
COMPLETED = "completed"
CANCELLED = "cancelled"
EXPIRED = "expired"

STATUSES: tuple[str, ...] = (PENDING, CONFIRMED, COMPLETED, CANCELLED, EXPIRED)

# Only these count toward overlap and slot occupation.
OCCUPYING_STATUSES: frozenset[str] = frozenset({PENDING, CONFIRMED})
TERMINAL_STATUSES: frozenset[str] = frozenset({COMPLETED, CANCELLED, EXPIRED})

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    PENDING: frozenset({CONFIRMED, CANCELLED, EXPIRED}),
    CONFIRMED: frozenset({COMPLETED, CANCELLED}),
    COMPLETED: frozenset(),
    CANCELLED: frozenset(),
    EXPIRED: frozenset(),
}


def ensure_transition(current: str, target: str) -> None:
    """Raise ``ValidationError`` unless ``current -> target`` is allowed.

    Re-applying the current status is not a transition and is rejected here;
    callers that want idempotent cancellation check for it first.
    """
    if target not in ALLOWED_TRANSITIONS:
        raise ValidationError(f"Unknown status '{target}'")
    if target not in ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise ValidationError(f"Cannot change status from '{current}' to '{target}'")


def is_expired(status: str, expires_at: datetime | None, now: datetime) -> bool:
    """True when a pending commitment has outlived its confirmation window."""
    return status == PENDING and expires_at is not None and expires_at <= now


# ---------------------------------------------------------------------------
# Date ranges (stay bookings)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DateRange:
    """An inclusive range of calendar days."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValidationError("end_date must be on or after start_date")

    def days(self) -> Iterator[date]:
        """Yield every calendar day from ``start`` to ``end`` inclusive."""
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def overlaps(self, other: DateRange) -> bool:
        return self.start <= other.end and other.start <= self.end

    def __len__(self) -> int:
        return (self.end - self.start).days + 1


def find_overlapping(existing: Iterable[DateRange], candidate: DateRange) -> list[DateRange]:
    """Return every range in ``existing`` that intersects ``candidate``."""
    return [r for r in existing if r.overlaps(candidate)]


def ranges_overlap(existing: Iterable[DateRange], candidate: DateRange) -> bool:
    """True if ``candidate`` intersects any of ``existing``.

    ``existing`` must already be restricted to non-cancelled ranges of the
    target property.
    """
    return any(r.overlaps(candidate) for r in existing)


# ---------------------------------------------------------------------------
# Weekdays and blocks
# ---------------------------------------------------------------------------


class Weekday(str, enum.Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def of(cls, day: date) -> Weekday:
        return _WEEKDAYS_BY_INDEX[day.weekday()]


_WEEKDAYS_BY_INDEX: tuple[Weekday, ...] = tuple(Weekday)


@dataclass(frozen=True)
class WholeDayBlock:
    """The whole day is unavailable."""

    day: date


@dataclass(frozen=True)
class SlotBlock:
    """A single slot on ``day`` starting at ``start`` is unavailable."""

    day: date
    start: time


Block = WholeDayBlock | SlotBlock


def is_day_blocked(day: date, blocks: Iterable[Block]) -> bool:
    return any(isinstance(b, WholeDayBlock) and b.day == day for b in blocks)


# ---------------------------------------------------------------------------
# Slot grid (visit reservations)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OpenWindow:
    """An interval of open hours on one weekday, end exclusive."""

    start: time
    end: time

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise ValidationError("end_time must be later than start_time")


def _minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def slot_grid(
    windows: Iterable[OpenWindow],
    slot_minutes: int = 60,
    lunch_break_hour: int | None = None,
) -> list[time]:
    """Build the chronological candidate slots for one day.

    A slot is emitted for every start time from the window opening where the
    whole slot still fits before closing. Slots starting inside the lunch hour
    are dropped. Overlapping windows never produce duplicate slots.
    """
    if slot_minutes <= 0:
        raise ValidationError("slot length must be positive")

    slots: set[time] = set()
    for window in windows:
        cursor = _minutes(window.start)
        close = _minutes(window.end)
        while cursor + slot_minutes <= close:
            slots.add(time(cursor // 60, cursor % 60))
            cursor += slot_minutes

    if lunch_break_hour is not None:
        slots = {s for s in slots if s.hour != lunch_break_hour}
    return sorted(slots)


def compute_available_slots(
    day: date,
    windows: Iterable[OpenWindow],
    occupied: Iterable[datetime],
    blocks: Iterable[Block],
    *,
    slot_minutes: int = 60,
    lunch_break_hour: int | None = None,
    now: datetime | None = None,
) -> list[time]:
    """Return the still-bookable slots of ``day`` in chronological order.

    Args:
        day: The calendar day being queried.
        windows: Open-hour windows configured for ``day``'s weekday. An empty
            iterable means the day is not a working day.
        occupied: ``meeting_date`` of every reservation in an occupying
            status for the property. Entries on other days are ignored.
        blocks: Property and host-wide blocks. Entries on other days are
            ignored.
        slot_minutes: Slot length.
        lunch_break_hour: Hour removed from the grid, if any.
        now: When given, slots starting at or before ``now`` are dropped.
    """
    windows = list(windows)
    if not windows:
        return []

    blocks = list(blocks)
    if is_day_blocked(day, blocks):
        return []

    taken = {m.time() for m in occupied if m.date() == day}
    taken.update(b.start for b in blocks if isinstance(b, SlotBlock) and b.day == day)

    slots = [s for s in slot_grid(windows, slot_minutes, lunch_break_hour) if s not in taken]
    if now is not None:
        slots = [s for s in slots if datetime.combine(day, s) > now]
    return slots


def format_slot(slot: time) -> str:
    """Render a slot as ``HH:MM``."""
    return slot.strftime("%H:%M")
