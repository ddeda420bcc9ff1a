"""
Interval arithmetic and timezone conversion helpers.

Everything inside the engine works on UTC instants. Wall-clock values only
appear at the edges: when a schedule's ``HH:MM`` entries are turned into
instants, and when a slot's start is formatted for the attendee.
"""

from datetime import time
from typing import Tuple

import pendulum
from pendulum import Date, DateTime


def overlaps(a_start: DateTime, a_end: DateTime, b_start: DateTime, b_end: DateTime) -> bool:
    """
    Check whether two half-open intervals overlap.

    Touching endpoints never overlap: ``[09:00, 10:00)`` and ``[10:00, 11:00)``
    are adjacent.
    """
    return a_start < b_end and b_start < a_end


def expand_with_buffers(
    busy_start: DateTime,
    busy_end: DateTime,
    before_minutes: int,
    after_minutes: int
) -> Tuple[DateTime, DateTime]:
    """
    Widen a committed interval by its pre/post buffers.

    Only the busy interval is widened; the candidate slot is always tested
    as-is, so a 15 minute buffer blocks exactly 15 minutes.
    """
    return (
        busy_start.subtract(minutes=before_minutes),
        busy_end.add(minutes=after_minutes),
    )


def validate_timezone(name: str) -> str:
    """
    Validate an IANA timezone identifier.

    Raises:
        ValueError: If the identifier is not a known zone
    """
    if not name or not isinstance(name, str):
        raise ValueError("Timezone must be a non-empty IANA identifier")
    try:
        pendulum.timezone(name)
    except (ValueError, KeyError) as exc:
        raise ValueError(f"Unknown timezone: '{name}'") from exc
    return name


def parse_wall_clock(value: str) -> time:
    """Parse an ``HH:MM`` wall-clock string."""
    try:
        hour_str, minute_str = value.split(":")
        hour, minute = int(hour_str), int(minute_str)
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid wall-clock time '{value}', expected HH:MM") from exc

    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Invalid wall-clock time '{value}', expected HH:MM")

    return time(hour=hour, minute=minute)


def to_date(value) -> Date:
    """Coerce a ``datetime.date`` (or pendulum Date) to a pendulum Date."""
    return pendulum.date(value.year, value.month, value.day)


def wall_clock_to_utc(day: Date, value: str, timezone: str) -> DateTime:
    """
    Interpret ``HH:MM`` on ``day`` in ``timezone`` and return the UTC instant.

    The zone's offset on that particular date is used, so the same wall-clock
    time maps to different instants on either side of a DST transition.
    """
    wall = parse_wall_clock(value)
    local = pendulum.datetime(
        day.year,
        day.month,
        day.day,
        wall.hour,
        wall.minute,
        tz=timezone
    )
    return local.in_timezone("UTC")


def start_of_day_utc(day: Date, timezone: str) -> DateTime:
    """Return the first instant of ``day`` in ``timezone``, expressed in UTC."""
    return pendulum.datetime(day.year, day.month, day.day, tz=timezone).in_timezone("UTC")


def day_bounds_utc(day: Date, timezone: str) -> Tuple[DateTime, DateTime]:
    """Return the half-open UTC bounds of a calendar day in ``timezone``."""
    return start_of_day_utc(day, timezone), start_of_day_utc(day.add(days=1), timezone)


def week_bounds_utc(day: Date, timezone: str) -> Tuple[DateTime, DateTime]:
    """Return the half-open UTC bounds of the Monday-Sunday week containing ``day``."""
    monday = day.subtract(days=day.isoweekday() - 1)
    return start_of_day_utc(monday, timezone), start_of_day_utc(monday.add(days=7), timezone)


def local_date(instant: DateTime, timezone: str) -> Date:
    """Return the calendar date of ``instant`` as observed in ``timezone``."""
    return instant.in_timezone(timezone).date()


def day_of_week(day: Date) -> int:
    """Return the weekday of ``day`` with 0 = Sunday and 6 = Saturday."""
    return day.isoweekday() % 7


def to_local_time(instant: DateTime, timezone: str) -> str:
    """Format ``instant`` as ``HH:MM`` in ``timezone``."""
    return instant.in_timezone(timezone).format("HH:mm")
