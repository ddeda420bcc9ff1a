"""
Tests for slot calculator.
"""

import pendulum

from bookingslots.domain.models import (
    AvailabilityWindow,
    BusyInterval,
    DateOverride,
    EventConstraints,
    Schedule,
)
from bookingslots.domain.slot_calculator import SlotCalculator

NOW = pendulum.parse("2026-03-01 00:00", tz="UTC")
MONDAY = pendulum.date(2026, 3, 9)


def _weekday_schedule(timezone: str = "UTC", start: str = "09:00", end: str = "17:00", overrides=()) -> Schedule:
    return Schedule(
        timezone=timezone,
        availability=[AvailabilityWindow(day_of_week=d, start_time=start, end_time=end) for d in range(1, 6)],
        date_overrides=overrides
    )


def _utc(value: str):
    return pendulum.parse(value, tz="UTC")


class TestSlotCalculator:
    """Tests for SlotCalculator."""

    def test_find_slots_no_bookings(self):
        """A free Monday 09:00-17:00 yields 16 half-hour slots."""
        calculator = SlotCalculator(EventConstraints(duration=30), _weekday_schedule())

        slots = calculator.find_available_slots(
            start_date=MONDAY,
            end_date=MONDAY,
            timezone="UTC",
            now=NOW
        )

        assert len(slots) == 16
        assert slots[0].local_time == "09:00"
        assert slots[-1].local_time == "16:30"
        assert slots[0].time == "2026-03-09T09:00:00Z"

    def test_booking_with_buffers_blocks_neighbours(self):
        """A 10:00-10:30 booking with 15 minute buffers removes 09:30, 10:00 and 10:30."""
        constraints = EventConstraints(duration=30, before_buffer_minutes=15, after_buffer_minutes=15)
        calculator = SlotCalculator(constraints, _weekday_schedule())

        slots = calculator.find_available_slots(
            start_date=MONDAY,
            end_date=MONDAY,
            timezone="UTC",
            now=NOW,
            committed_bookings=[BusyInterval(start=_utc("2026-03-09 10:00"), end=_utc("2026-03-09 10:30"))]
        )

        times = [s.local_time for s in slots]
        assert len(slots) == 13
        assert "09:00" in times
        assert "11:00" in times
        for blocked in ("09:30", "10:00", "10:30"):
            assert blocked not in times

    def test_unavailable_override(self):
        schedule = _weekday_schedule(overrides=[DateOverride(date=MONDAY, is_unavailable=True)])
        calculator = SlotCalculator(EventConstraints(duration=30), schedule)

        slots = calculator.find_available_slots(start_date=MONDAY, end_date=MONDAY, timezone="UTC", now=NOW)

        assert slots == []

    def test_multi_day_range_is_sorted(self):
        calculator = SlotCalculator(EventConstraints(duration=60), _weekday_schedule(start="09:00", end="11:00"))

        slots = calculator.find_available_slots(
            start_date=pendulum.date(2026, 3, 6),  # Friday
            end_date=MONDAY,
            timezone="UTC",
            now=NOW
        )

        assert [s.start_utc for s in slots] == [
            _utc("2026-03-06 09:00"),
            _utc("2026-03-06 10:00"),
            _utc("2026-03-09 09:00"),
            _utc("2026-03-09 10:00"),
        ]

    def test_attendee_timezone_sets_local_time(self):
        """Berlin hours seen from New York: same instants, different labels."""
        calculator = SlotCalculator(EventConstraints(duration=30), _weekday_schedule("Europe/Berlin"))

        slots = calculator.find_available_slots(
            start_date=MONDAY,
            end_date=MONDAY,
            timezone="America/New_York",
            now=NOW
        )

        assert len(slots) == 16
        assert slots[0].start_utc == _utc("2026-03-09 08:00")
        assert slots[0].local_time == "04:00"

    def test_local_hours_survive_dst_switch(self):
        """New York springs forward on 2026-03-08: 09:00 local moves from 14:00Z to 13:00Z."""
        calculator = SlotCalculator(
            EventConstraints(duration=60),
            _weekday_schedule("America/New_York", start="09:00", end="10:00")
        )

        slots = calculator.find_available_slots(
            start_date=pendulum.date(2026, 3, 6),
            end_date=MONDAY,
            timezone="America/New_York",
            now=NOW
        )

        assert [s.local_time for s in slots] == ["09:00", "09:00"]
        assert [s.start_utc for s in slots] == [_utc("2026-03-06 14:00"), _utc("2026-03-09 13:00")]
        assert [s.time for s in slots] == ["2026-03-06T14:00:00Z", "2026-03-09T13:00:00Z"]

    def test_range_is_clipped_to_attendee_day(self):
        """Monday in Auckland ends at 11:00 UTC, cutting the Berlin day short."""
        calculator = SlotCalculator(EventConstraints(duration=30), _weekday_schedule("Europe/Berlin"))

        slots = calculator.find_available_slots(
            start_date=MONDAY,
            end_date=MONDAY,
            timezone="Pacific/Auckland",
            now=NOW
        )

        assert [s.start_utc for s in slots] == [
            _utc("2026-03-09 08:00"),
            _utc("2026-03-09 08:30"),
            _utc("2026-03-09 09:00"),
            _utc("2026-03-09 09:30"),
            _utc("2026-03-09 10:00"),
            _utc("2026-03-09 10:30"),
        ]
        assert slots[0].local_time == "21:00"

    def test_future_limit(self):
        constraints = EventConstraints(duration=30, future_limit_days=7)
        calculator = SlotCalculator(constraints, _weekday_schedule())

        slots = calculator.find_available_slots(
            start_date=pendulum.date(2026, 3, 6),
            end_date=MONDAY,
            timezone="UTC",
            now=pendulum.parse("2026-03-02 09:30", tz="UTC")
        )

        assert slots
        assert all(s.start_utc <= _utc("2026-03-09 09:30") for s in slots)
        assert slots[-1].start_utc == _utc("2026-03-09 09:30")

    def test_lookup_range_covers_weeks_and_buffers(self):
        constraints = EventConstraints(duration=30, before_buffer_minutes=30, after_buffer_minutes=45)
        calculator = SlotCalculator(constraints, _weekday_schedule())
        query = calculator.query_range(MONDAY, MONDAY, "UTC")

        lookup = calculator.lookup_range(query)

        assert query.start == _utc("2026-03-09 00:00")
        assert query.end == _utc("2026-03-10 00:00")
        assert lookup.start == _utc("2026-03-08 23:15")
        assert lookup.end == _utc("2026-03-16 00:00")
