"""Unit tests for the overlap resolver and slot grid (no database)."""

from datetime import date, datetime, time

import pytest

from app.errors import ValidationError
from app.services.availability import (
    CANCELLED,
    COMPLETED,
    CONFIRMED,
    EXPIRED,
    PENDING,
    DateRange,
    OpenWindow,
    SlotBlock,
    Weekday,
    WholeDayBlock,
    compute_available_slots,
    ensure_transition,
    find_overlapping,
    format_slot,
    is_expired,
    ranges_overlap,
    slot_grid,
)

WORKDAY = [OpenWindow(time(9), time(17))]


def _hhmm(slots: list[time]) -> list[str]:
    return [format_slot(s) for s in slots]


class TestDateRange:
    """Test inclusive day ranges."""

    def test_single_day_range(self):
        r = DateRange(date(2030, 5, 1), date(2030, 5, 1))
        assert len(r) == 1
        assert list(r.days()) == [date(2030, 5, 1)]

    def test_inverted_range_rejected(self):
        with pytest.raises(ValidationError):
            DateRange(date(2030, 5, 2), date(2030, 5, 1))

    def test_days_are_inclusive(self):
        r = DateRange(date(2030, 2, 27), date(2030, 3, 2))
        assert list(r.days()) == [date(2030, 2, 27), date(2030, 2, 28), date(2030, 3, 1), date(2030, 3, 2)]


class TestRangesOverlap:
    """Test the closed-interval overlap rule."""

    existing = [DateRange(date(2025, 10, 15), date(2025, 10, 20))]

    def test_touching_endpoint_overlaps(self):
        assert ranges_overlap(self.existing, DateRange(date(2025, 10, 20), date(2025, 10, 25))) is True

    def test_touching_start_overlaps(self):
        assert ranges_overlap(self.existing, DateRange(date(2025, 10, 10), date(2025, 10, 15))) is True

    def test_day_after_is_free(self):
        assert ranges_overlap(self.existing, DateRange(date(2025, 10, 21), date(2025, 10, 25))) is False

    def test_contained_range_overlaps(self):
        assert ranges_overlap(self.existing, DateRange(date(2025, 10, 16), date(2025, 10, 17))) is True

    def test_enclosing_range_overlaps(self):
        assert ranges_overlap(self.existing, DateRange(date(2025, 10, 1), date(2025, 10, 31))) is True

    def test_empty_existing(self):
        assert ranges_overlap([], DateRange(date(2025, 10, 1), date(2025, 10, 31))) is False

    def test_find_overlapping_returns_conflicts_only(self):
        existing = [
            DateRange(date(2025, 10, 1), date(2025, 10, 3)),
            DateRange(date(2025, 10, 10), date(2025, 10, 12)),
            DateRange(date(2025, 10, 20), date(2025, 10, 22)),
        ]
        found = find_overlapping(existing, DateRange(date(2025, 10, 3), date(2025, 10, 10)))
        assert found == existing[:2]


class TestStatusTransitions:
    """Test the shared booking/reservation lifecycle."""

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (PENDING, CONFIRMED),
            (PENDING, CANCELLED),
            (PENDING, EXPIRED),
            (CONFIRMED, COMPLETED),
            (CONFIRMED, CANCELLED),
        ],
    )
    def test_allowed(self, current, target):
        ensure_transition(current, target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (CANCELLED, CONFIRMED),
            (COMPLETED, CANCELLED),
            (EXPIRED, CONFIRMED),
            (CONFIRMED, PENDING),
            (PENDING, COMPLETED),
        ],
    )
    def test_forbidden(self, current, target):
        with pytest.raises(ValidationError):
            ensure_transition(current, target)

    def test_unknown_status(self):
        with pytest.raises(ValidationError, match="Unknown status"):
            ensure_transition(PENDING, "archived")

    def test_is_expired(self):
        now = datetime(2030, 1, 1, 12)
        assert is_expired(PENDING, datetime(2030, 1, 1, 11), now) is True
        assert is_expired(PENDING, datetime(2030, 1, 1, 13), now) is False
        assert is_expired(CONFIRMED, datetime(2030, 1, 1, 11), now) is False
        assert is_expired(PENDING, None, now) is False


class TestSlotGrid:
    """Test the candidate slot grid."""

    def test_hourly_grid_without_lunch(self):
        assert _hhmm(slot_grid(WORKDAY)) == [
            "09:00", "10:00", "11:00", "12:00", "13:00", "14:00", "15:00", "16:00",
        ]  # fmt: skip

    def test_lunch_hour_removed(self):
        assert "13:00" not in _hhmm(slot_grid(WORKDAY, lunch_break_hour=13))

    def test_slot_must_fit_before_closing(self):
        grid = slot_grid([OpenWindow(time(9), time(11, 30))])
        assert _hhmm(grid) == ["09:00", "10:00"]

    def test_split_windows(self):
        grid = slot_grid([OpenWindow(time(14), time(16)), OpenWindow(time(9), time(11))])
        assert _hhmm(grid) == ["09:00", "10:00", "14:00", "15:00"]

    def test_overlapping_windows_do_not_duplicate(self):
        grid = slot_grid([OpenWindow(time(9), time(12)), OpenWindow(time(10), time(13))])
        assert _hhmm(grid) == ["09:00", "10:00", "11:00", "12:00"]

    def test_half_hour_slots(self):
        grid = slot_grid([OpenWindow(time(9), time(10, 30))], slot_minutes=30)
        assert _hhmm(grid) == ["09:00", "09:30", "10:00"]

    def test_empty_window_rejected(self):
        with pytest.raises(ValidationError):
            OpenWindow(time(10), time(10))


class TestComputeAvailableSlots:
    """Test free-slot computation for one day."""

    day = date(2030, 3, 4)  # a Monday

    def test_reservation_and_lunch_removed(self):
        slots = compute_available_slots(
            self.day,
            WORKDAY,
            occupied=[datetime(2030, 3, 4, 14)],
            blocks=[],
            lunch_break_hour=13,
        )
        assert _hhmm(slots) == ["09:00", "10:00", "11:00", "12:00", "15:00", "16:00"]

    def test_non_working_day_is_empty(self):
        assert compute_available_slots(self.day, [], occupied=[], blocks=[]) == []

    def test_whole_day_block_empties_grid(self):
        slots = compute_available_slots(self.day, WORKDAY, occupied=[], blocks=[WholeDayBlock(self.day)])
        assert slots == []

    def test_slot_block_removes_one_slot(self):
        slots = compute_available_slots(self.day, WORKDAY, occupied=[], blocks=[SlotBlock(self.day, time(10))])
        assert "10:00" not in _hhmm(slots)
        assert len(slots) == 7

    def test_other_days_ignored(self):
        other = date(2030, 3, 5)
        slots = compute_available_slots(
            self.day,
            WORKDAY,
            occupied=[datetime(2030, 3, 5, 9)],
            blocks=[WholeDayBlock(other), SlotBlock(other, time(10))],
        )
        assert len(slots) == 8

    def test_past_slots_dropped(self):
        slots = compute_available_slots(
            self.day, WORKDAY, occupied=[], blocks=[], now=datetime(2030, 3, 4, 11, 15)
        )
        assert _hhmm(slots) == ["12:00", "13:00", "14:00", "15:00", "16:00"]

    def test_slot_starting_now_is_dropped(self):
        slots = compute_available_slots(self.day, WORKDAY, occupied=[], blocks=[], now=datetime(2030, 3, 4, 16))
        assert slots == []


class TestWeekday:
    def test_of(self):
        assert Weekday.of(date(2030, 3, 4)) is Weekday.MONDAY
        assert Weekday.of(date(2030, 3, 10)) is Weekday.SUNDAY
