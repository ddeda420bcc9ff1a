"""
Tests for interval and timezone helpers.
"""

import pendulum
import pytest

from bookingslots.domain.intervals import (
    day_bounds_utc,
    day_of_week,
    expand_with_buffers,
    local_date,
    overlaps,
    parse_wall_clock,
    to_local_time,
    validate_timezone,
    wall_clock_to_utc,
    week_bounds_utc,
)


def _utc(value: str):
    return pendulum.parse(value, tz="UTC")


class TestOverlaps:
    """Tests for half-open overlap detection."""

    def test_partial_overlap(self):
        assert overlaps(_utc("2026-03-09 09:00"), _utc("2026-03-09 10:00"),
                        _utc("2026-03-09 09:30"), _utc("2026-03-09 10:30"))

    def test_touching_intervals_do_not_overlap(self):
        assert not overlaps(_utc("2026-03-09 09:00"), _utc("2026-03-09 10:00"),
                            _utc("2026-03-09 10:00"), _utc("2026-03-09 11:00"))
        assert not overlaps(_utc("2026-03-09 10:00"), _utc("2026-03-09 11:00"),
                            _utc("2026-03-09 09:00"), _utc("2026-03-09 10:00"))

    def test_containment_overlaps(self):
        assert overlaps(_utc("2026-03-09 09:00"), _utc("2026-03-09 17:00"),
                        _utc("2026-03-09 12:00"), _utc("2026-03-09 12:15"))

    def test_expand_with_buffers(self):
        start, end = expand_with_buffers(_utc("2026-03-09 10:00"), _utc("2026-03-09 10:30"), 10, 20)

        assert start == _utc("2026-03-09 09:50")
        assert end == _utc("2026-03-09 10:50")


class TestTimezones:
    """Tests for wall-clock conversion across zones and DST."""

    def test_validate_timezone_accepts_iana_names(self):
        assert validate_timezone("Europe/Berlin") == "Europe/Berlin"

    @pytest.mark.parametrize("name", ["", "Nowhere/Special", "Europe/Berlinn"])
    def test_validate_timezone_rejects_unknown(self, name):
        with pytest.raises(ValueError):
            validate_timezone(name)

    def test_parse_wall_clock(self):
        parsed = parse_wall_clock("07:05")

        assert (parsed.hour, parsed.minute) == (7, 5)

    @pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "1200"])
    def test_parse_wall_clock_rejects_garbage(self, value):
        with pytest.raises(ValueError):
            parse_wall_clock(value)

    def test_wall_clock_uses_offset_of_the_date(self):
        """09:00 New York maps to different UTC instants around the DST switch."""
        before_switch = wall_clock_to_utc(pendulum.date(2026, 3, 2), "09:00", "America/New_York")
        after_switch = wall_clock_to_utc(pendulum.date(2026, 3, 9), "09:00", "America/New_York")

        assert before_switch == _utc("2026-03-02 14:00")  # EST, UTC-5
        assert after_switch == _utc("2026-03-09 13:00")   # EDT, UTC-4

    def test_day_bounds_on_dst_day_are_23_hours(self):
        start, end = day_bounds_utc(pendulum.date(2026, 3, 29), "Europe/Berlin")

        assert start == _utc("2026-03-28 23:00")
        assert (end - start).in_hours() == 23

    def test_week_bounds_start_on_monday(self):
        start, end = week_bounds_utc(pendulum.date(2026, 3, 12), "UTC")  # Thursday

        assert start == _utc("2026-03-09 00:00")
        assert end == _utc("2026-03-16 00:00")

    def test_local_date_and_time(self):
        instant = _utc("2026-03-09 23:30")

        assert local_date(instant, "Europe/Berlin") == pendulum.date(2026, 3, 10)
        assert to_local_time(instant, "Europe/Berlin") == "00:30"
        assert to_local_time(instant, "UTC") == "23:30"

    def test_day_of_week_starts_on_sunday(self):
        assert day_of_week(pendulum.date(2026, 3, 8)) == 0   # Sunday
        assert day_of_week(pendulum.date(2026, 3, 9)) == 1   # Monday
        assert day_of_week(pendulum.date(2026, 3, 14)) == 6  # Saturday
