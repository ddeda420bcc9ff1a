"""
Core business logic for calculating bookable slots of a single owner.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

from typing import List, Sequence

from pendulum import Date, DateTime

from .conflict_filter import ConflictFilter
from .intervals import local_date, start_of_day_utc, week_bounds_utc
from .models import BusyInterval, EventConstraints, Schedule, Slot, TimeRange
from .schedule_resolver import ScheduleResolver
from .slot_generator import generate_slots


class SlotCalculator:
    """
    Calculates bookable slots for one event type from a schedule snapshot.

    Algorithm:
    1. Translate the requested calendar dates (attendee timezone) to a UTC range
    2. For each schedule-timezone date touched by that range, resolve windows
    3. Generate fixed-step candidates inside each window
    4. Keep candidates that start inside the requested range
    5. Drop candidates clashing with busy time or exceeding booking caps
    """

    def __init__(self, constraints: EventConstraints, schedule: Schedule):
        self.constraints = constraints
        self.schedule = schedule
        self._resolver = ScheduleResolver(schedule)
        self._conflict_filter = ConflictFilter(constraints, schedule.timezone)

    @staticmethod
    def query_range(start_date: Date, end_date: Date, timezone: str) -> TimeRange:
        """
        Convert an inclusive range of calendar dates in ``timezone`` to a
        half-open UTC range.
        """
        return TimeRange(
            start=start_of_day_utc(start_date, timezone),
            end=start_of_day_utc(end_date.add(days=1), timezone)
        )

    def lookup_range(self, query: TimeRange) -> TimeRange:
        """
        Return the UTC range whose bookings can influence slots in ``query``.

        Covers the buffers around the query as well as full weeks, so that
        daily and weekly caps see every booking they need.
        """
        first_day, last_day = self._schedule_date_bounds(query)
        week_start, _ = week_bounds_utc(first_day, self.schedule.timezone)
        _, week_end = week_bounds_utc(last_day, self.schedule.timezone)

        return TimeRange(
            start=min(week_start, query.start.subtract(minutes=self.constraints.after_buffer_minutes)),
            end=max(week_end, query.end.add(minutes=self.constraints.before_buffer_minutes))
        )

    def find_available_slots(
        self,
        *,
        start_date: Date,
        end_date: Date,
        timezone: str,
        now: DateTime,
        committed_bookings: Sequence[BusyInterval] = (),
        external_busy: Sequence[BusyInterval] = ()
    ) -> List[Slot]:
        """
        Find all bookable slots between two calendar dates.

        Args:
            start_date: First calendar date, in the attendee's timezone
            end_date: Last calendar date (inclusive), in the attendee's timezone
            timezone: Attendee IANA timezone, used for the range and ``local_time``
            now: Reference instant for minimum notice and the future limit
            committed_bookings: Pending/accepted bookings of the event
            external_busy: Busy intervals reported by external calendars

        Returns:
            Slots ordered by start time
        """
        query = self.query_range(start_date, end_date, timezone)
        future_limit = now.add(days=self.constraints.future_limit_days)

        candidates = [
            slot
            for window in self._get_windows(query)
            for slot in generate_slots(
                window=window,
                constraints=self.constraints,
                now=now,
                future_limit=future_limit,
                timezone=timezone
            )
            if query.contains(slot.start_utc)
        ]

        available = self._conflict_filter.filter_slots(
            candidates,
            committed_bookings=committed_bookings,
            external_busy=external_busy
        )

        return sorted(available, key=lambda s: s.start_utc)

    def _get_windows(self, query: TimeRange) -> List[TimeRange]:
        """
        Resolve availability windows for every schedule date touched by the query.
        """
        windows: List[TimeRange] = []
        first_day, last_day = self._schedule_date_bounds(query)

        current = first_day
        while current <= last_day:
            windows.extend(self._resolver.resolve_windows_for_date(current))
            current = current.add(days=1)

        return windows

    def _schedule_date_bounds(self, query: TimeRange) -> tuple[Date, Date]:
        """First and last calendar date of the query as seen by the schedule."""
        return (
            local_date(query.start, self.schedule.timezone),
            local_date(query.end.subtract(microseconds=1), self.schedule.timezone)
        )
