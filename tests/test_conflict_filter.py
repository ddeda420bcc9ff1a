"""
Tests for buffer-aware conflict detection and booking caps.
"""

import pendulum

from bookingslots.domain.conflict_filter import ConflictFilter, is_slot_conflicting
from bookingslots.domain.models import BusyInterval, EventConstraints, Slot


def _utc(value: str):
    return pendulum.parse(value, tz="UTC")


def _busy(start: str, end: str, source: str = "booking") -> BusyInterval:
    return BusyInterval(start=_utc(start), end=_utc(end), source=source)


def _slot(start: str, duration: int = 30) -> Slot:
    instant = _utc(start)
    return Slot(start_utc=instant, local_time=instant.format("HH:mm"), duration_minutes=duration)


class TestIsSlotConflicting:
    """Tests for is_slot_conflicting."""

    def test_no_busy_intervals(self):
        assert not is_slot_conflicting(_utc("2026-03-09 09:00"), _utc("2026-03-09 09:30"), [], 0, 0)

    def test_adjacent_booking_does_not_conflict(self):
        busy = [_busy("2026-03-09 09:30", "2026-03-09 10:00")]

        assert not is_slot_conflicting(_utc("2026-03-09 09:00"), _utc("2026-03-09 09:30"), busy, 0, 0)
        assert not is_slot_conflicting(_utc("2026-03-09 10:00"), _utc("2026-03-09 10:30"), busy, 0, 0)

    def test_buffers_are_applied_once(self):
        """A 10 minute buffer blocks exactly 10 minutes on each side."""
        busy = [_busy("2026-03-09 10:00", "2026-03-09 10:30")]

        # Slot ending exactly where the before-buffer starts
        assert not is_slot_conflicting(_utc("2026-03-09 09:20"), _utc("2026-03-09 09:50"), busy, 10, 10)
        # Slot starting exactly where the after-buffer ends
        assert not is_slot_conflicting(_utc("2026-03-09 10:40"), _utc("2026-03-09 11:10"), busy, 10, 10)
        # One minute into either buffer conflicts
        assert is_slot_conflicting(_utc("2026-03-09 09:21"), _utc("2026-03-09 09:51"), busy, 10, 10)
        assert is_slot_conflicting(_utc("2026-03-09 10:39"), _utc("2026-03-09 11:09"), busy, 10, 10)


class TestConflictFilter:
    """Tests for ConflictFilter."""

    def test_overlapping_slots_are_removed(self):
        conflict_filter = ConflictFilter(EventConstraints(duration=30), "UTC")
        slots = [_slot("2026-03-09 09:00"), _slot("2026-03-09 09:30"), _slot("2026-03-09 10:00")]

        available = conflict_filter.filter_slots(
            slots,
            committed_bookings=[_busy("2026-03-09 09:30", "2026-03-09 10:00")]
        )

        assert [s.local_time for s in available] == ["09:00", "10:00"]

    def test_external_busy_blocks_slots(self):
        conflict_filter = ConflictFilter(EventConstraints(duration=30), "UTC")
        slots = [_slot("2026-03-09 09:00"), _slot("2026-03-09 09:30")]

        available = conflict_filter.filter_slots(
            slots,
            committed_bookings=[],
            external_busy=[_busy("2026-03-09 09:15", "2026-03-09 09:20", source="google")]
        )

        assert [s.local_time for s in available] == ["09:30"]

    def test_daily_cap_blocks_the_whole_day(self):
        constraints = EventConstraints(duration=30, max_bookings_per_day=1)
        conflict_filter = ConflictFilter(constraints, "UTC")
        slots = [_slot("2026-03-09 09:00"), _slot("2026-03-10 09:00")]

        available = conflict_filter.filter_slots(
            slots,
            committed_bookings=[_busy("2026-03-09 15:00", "2026-03-09 15:30")]
        )

        assert [s.start_utc for s in available] == [_utc("2026-03-10 09:00")]

    def test_external_busy_does_not_count_towards_caps(self):
        constraints = EventConstraints(duration=30, max_bookings_per_day=1)
        conflict_filter = ConflictFilter(constraints, "UTC")

        available = conflict_filter.filter_slots(
            [_slot("2026-03-09 09:00")],
            committed_bookings=[],
            external_busy=[_busy("2026-03-09 15:00", "2026-03-09 15:30", source="google")]
        )

        assert len(available) == 1

    def test_weekly_cap_uses_monday_weeks(self):
        constraints = EventConstraints(duration=30, max_bookings_per_week=2)
        conflict_filter = ConflictFilter(constraints, "UTC")
        bookings = [
            _busy("2026-03-09 15:00", "2026-03-09 15:30"),  # Monday
            _busy("2026-03-10 15:00", "2026-03-10 15:30"),  # Tuesday
        ]
        slots = [
            _slot("2026-03-08 09:00"),  # Sunday of the previous week
            _slot("2026-03-12 09:00"),  # Thursday, capped
            _slot("2026-03-16 09:00"),  # Next Monday
        ]

        available = conflict_filter.filter_slots(slots, committed_bookings=bookings)

        assert [s.start_utc for s in available] == [_utc("2026-03-08 09:00"), _utc("2026-03-16 09:00")]

    def test_caps_use_schedule_timezone_days(self):
        """A booking at 23:30 UTC belongs to the next day in Berlin."""
        constraints = EventConstraints(duration=30, max_bookings_per_day=1)
        conflict_filter = ConflictFilter(constraints, "Europe/Berlin")
        booking = [_busy("2026-03-09 23:30", "2026-03-10 00:00")]

        assert conflict_filter.count_bookings_on_day(pendulum.date(2026, 3, 9), booking) == 0
        assert conflict_filter.count_bookings_on_day(pendulum.date(2026, 3, 10), booking) == 1

    def test_order_is_preserved(self):
        conflict_filter = ConflictFilter(EventConstraints(duration=30), "UTC")
        slots = [_slot("2026-03-09 09:00"), _slot("2026-03-09 10:00"), _slot("2026-03-09 11:00")]

        assert conflict_filter.filter_slots(slots, committed_bookings=[]) == slots
