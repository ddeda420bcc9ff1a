"""
Domain models for schedules, constraints, busy intervals and slots.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from pendulum import Date, DateTime

from .intervals import expand_with_buffers, overlaps, parse_wall_clock, validate_timezone


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return overlaps(self.start, self.end, other.start, other.end)

    def contains(self, instant: DateTime) -> bool:
        """Check if an instant falls inside the range."""
        return self.start <= instant < self.end

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class BusyInterval(TimeRange):
    """
    An already-committed obligation: an existing booking or a block reported
    by an external calendar. The conflict filter does not care which.
    """
    source: str = "booking"

    def blocked_range(self, before_minutes: int, after_minutes: int) -> TimeRange:
        """Return the interval widened by the event's buffers."""
        start, end = expand_with_buffers(self.start, self.end, before_minutes, after_minutes)
        return TimeRange(start=start, end=end)


@dataclass(frozen=True)
class EventConstraints:
    """
    Booking rules of an event type, all expressed in minutes except
    ``future_limit_days``.
    """
    duration: int
    slot_interval_minutes: int | None = None
    before_buffer_minutes: int = 0
    after_buffer_minutes: int = 0
    minimum_notice_minutes: int = 0
    future_limit_days: int = 60
    max_bookings_per_day: int | None = None
    max_bookings_per_week: int | None = None

    def __post_init__(self):
        if self.duration <= 0:
            raise ValueError(f"duration must be greater than zero, got {self.duration}")
        if self.slot_interval_minutes is not None and self.slot_interval_minutes <= 0:
            raise ValueError(
                f"slot_interval_minutes must be greater than zero, got {self.slot_interval_minutes}"
            )
        for name in ("before_buffer_minutes", "after_buffer_minutes", "minimum_notice_minutes"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative, got {getattr(self, name)}")
        if self.future_limit_days <= 0:
            raise ValueError(f"future_limit_days must be greater than zero, got {self.future_limit_days}")
        for name in ("max_bookings_per_day", "max_bookings_per_week"):
            value = getattr(self, name)
            if value is not None and value < 1:
                raise ValueError(f"{name} must be at least 1, got {value}")

    @property
    def step_minutes(self) -> int:
        """Distance between consecutive candidate slot starts."""
        return self.slot_interval_minutes or self.duration


@dataclass(frozen=True)
class AvailabilityWindow:
    """
    One weekly recurring window, e.g. Monday 09:00-12:00.

    ``day_of_week`` uses 0 = Sunday through 6 = Saturday.
    """
    day_of_week: int
    start_time: str
    end_time: str

    def __post_init__(self):
        if self.day_of_week not in range(7):
            raise ValueError(f"day_of_week must be between 0 and 6, got {self.day_of_week}")
        parse_wall_clock(self.start_time)
        parse_wall_clock(self.end_time)


@dataclass(frozen=True)
class DateOverride:
    """
    Per-date exception to the weekly schedule.

    An unavailable override blocks the whole date; otherwise its start/end
    replace the weekly windows for that date.
    """
    date: Date
    is_unavailable: bool = False
    start_time: str | None = None
    end_time: str | None = None

    def __post_init__(self):
        for value in (self.start_time, self.end_time):
            if value is not None:
                parse_wall_clock(value)

    @property
    def has_window(self) -> bool:
        return self.start_time is not None and self.end_time is not None


@dataclass(frozen=True)
class Schedule:
    """A host's weekly availability plus date overrides, in one IANA timezone."""
    timezone: str
    availability: Tuple[AvailabilityWindow, ...] = ()
    date_overrides: Tuple[DateOverride, ...] = ()

    def __post_init__(self):
        validate_timezone(self.timezone)
        # Accept lists from callers but keep the snapshot immutable
        object.__setattr__(self, "availability", tuple(self.availability))
        object.__setattr__(self, "date_overrides", tuple(self.date_overrides))

    def find_override(self, day: Date) -> DateOverride | None:
        """Return the first override for ``day``, if any."""
        for override in self.date_overrides:
            if override.date == day:
                return override
        return None

    def windows_for_weekday(self, day_of_week: int) -> Tuple[AvailabilityWindow, ...]:
        """Return all weekly windows configured for a weekday (0 = Sunday)."""
        return tuple(w for w in self.availability if w.day_of_week == day_of_week)


class SchedulingType(str, Enum):
    """How a team event type combines its members' availability."""
    COLLECTIVE = "COLLECTIVE"
    ROUND_ROBIN = "ROUND_ROBIN"


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"

    @property
    def is_committed(self) -> bool:
        """Pending and accepted bookings hold their time; the rest do not."""
        return self in (BookingStatus.PENDING, BookingStatus.ACCEPTED)


@dataclass(frozen=True)
class EventType:
    """
    Read-only snapshot of a bookable event definition.

    ``team_id`` and ``scheduling_type`` are only set for team-owned events.
    """
    id: str
    owner_id: str
    constraints: EventConstraints
    schedule: Schedule | None = None
    is_active: bool = True
    team_id: str | None = None
    scheduling_type: SchedulingType | None = None
    created_at: DateTime | None = None

    @property
    def is_team_event(self) -> bool:
        return self.team_id is not None


@dataclass(frozen=True)
class BookingRecord:
    """A booking as known to the booking store, used for load balancing."""
    id: str
    event_id: str
    member_id: str
    start: DateTime
    end: DateTime
    created_at: DateTime
    status: BookingStatus = BookingStatus.ACCEPTED

    def to_busy_interval(self) -> BusyInterval:
        return BusyInterval(start=self.start, end=self.end, source="booking")


@dataclass(frozen=True)
class TeamMember:
    """An accepted team member together with the event type describing their availability."""
    user_id: str
    event_type: EventType


@dataclass(frozen=True)
class Slot:
    """
    A bookable start time offered to an attendee.

    ``local_time`` is the start formatted as ``HH:MM`` in the requesting timezone.
    """
    start_utc: DateTime
    local_time: str
    duration_minutes: int

    @property
    def end_utc(self) -> DateTime:
        return self.start_utc.add(minutes=self.duration_minutes)

    @property
    def time(self) -> str:
        """ISO 8601 representation of the start, e.g. ``2026-03-10T09:00:00Z``."""
        return self.start_utc.in_timezone("UTC").to_iso8601_string()
