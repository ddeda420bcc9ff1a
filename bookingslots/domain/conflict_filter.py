"""
Removes candidate slots that clash with committed time or exceed booking caps.
"""

from typing import Dict, Iterable, List, Sequence, Tuple

from pendulum import Date, DateTime

from .intervals import day_bounds_utc, expand_with_buffers, local_date, overlaps, week_bounds_utc
from .models import BusyInterval, EventConstraints, Slot


def is_slot_conflicting(
    slot_start: DateTime,
    slot_end: DateTime,
    busy_intervals: Iterable[BusyInterval],
    before_buffer: int,
    after_buffer: int
) -> bool:
    """
    Check a candidate slot against busy intervals.

    Each busy interval is widened by the buffers; the slot itself is tested
    unchanged.
    """
    for busy in busy_intervals:
        blocked_start, blocked_end = expand_with_buffers(
            busy.start, busy.end, before_buffer, after_buffer
        )
        if overlaps(slot_start, slot_end, blocked_start, blocked_end):
            return True
    return False


class ConflictFilter:
    """
    Filters candidate slots for one event type.

    Internal bookings and external busy intervals both block time. Only
    committed bookings count toward the daily and weekly caps, which are
    evaluated per calendar date / Monday-Sunday week in the schedule's
    timezone.
    """

    def __init__(self, constraints: EventConstraints, schedule_timezone: str):
        self.constraints = constraints
        self.schedule_timezone = schedule_timezone

    def filter_slots(
        self,
        slots: Sequence[Slot],
        committed_bookings: Sequence[BusyInterval],
        external_busy: Sequence[BusyInterval] = ()
    ) -> List[Slot]:
        """
        Return the slots that survive conflict and cap checks, order preserved.
        """
        busy_intervals = sorted(
            list(committed_bookings) + list(external_busy),
            key=lambda b: b.start
        )
        day_counts: Dict[Date, int] = {}
        week_counts: Dict[Date, int] = {}
        available: List[Slot] = []

        for slot in slots:
            day = local_date(slot.start_utc, self.schedule_timezone)

            if self._is_day_capped(day, committed_bookings, day_counts):
                continue
            if self._is_week_capped(day, committed_bookings, week_counts):
                continue

            if is_slot_conflicting(
                slot.start_utc,
                slot.end_utc,
                busy_intervals,
                self.constraints.before_buffer_minutes,
                self.constraints.after_buffer_minutes
            ):
                continue

            available.append(slot)

        return available

    def count_bookings_on_day(self, day: Date, committed_bookings: Sequence[BusyInterval]) -> int:
        """Count committed bookings overlapping a calendar date."""
        return self._count_overlapping(committed_bookings, day_bounds_utc(day, self.schedule_timezone))

    def count_bookings_in_week(self, day: Date, committed_bookings: Sequence[BusyInterval]) -> int:
        """Count committed bookings overlapping the Monday-Sunday week of ``day``."""
        return self._count_overlapping(committed_bookings, week_bounds_utc(day, self.schedule_timezone))

    def _is_day_capped(
        self,
        day: Date,
        committed_bookings: Sequence[BusyInterval],
        cache: Dict[Date, int]
    ) -> bool:
        limit = self.constraints.max_bookings_per_day
        if limit is None:
            return False
        if day not in cache:
            cache[day] = self.count_bookings_on_day(day, committed_bookings)
        return cache[day] >= limit

    def _is_week_capped(
        self,
        day: Date,
        committed_bookings: Sequence[BusyInterval],
        cache: Dict[Date, int]
    ) -> bool:
        limit = self.constraints.max_bookings_per_week
        if limit is None:
            return False
        monday = day.subtract(days=day.isoweekday() - 1)
        if monday not in cache:
            cache[monday] = self.count_bookings_in_week(day, committed_bookings)
        return cache[monday] >= limit

    @staticmethod
    def _count_overlapping(
        committed_bookings: Sequence[BusyInterval],
        bounds: Tuple[DateTime, DateTime]
    ) -> int:
        start, end = bounds
        return sum(1 for b in committed_bookings if overlaps(b.start, b.end, start, end))
