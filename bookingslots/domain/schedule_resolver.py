"""
Resolves a host's weekly schedule and date overrides into concrete UTC windows.
"""

import logging
from typing import List

from pendulum import Date

from .intervals import day_of_week, wall_clock_to_utc
from .models import Schedule, TimeRange

logger = logging.getLogger(__name__)


class ScheduleResolver:
    """
    Turns one calendar date of a schedule into the UTC windows the host is
    available in.

    Precedence:
    1. An unavailable override blocks the date entirely
    2. An override with start/end replaces the weekly windows
    3. Otherwise the weekly windows of the date's weekday apply
    """

    def __init__(self, schedule: Schedule):
        self.schedule = schedule

    def resolve_windows_for_date(self, day: Date) -> List[TimeRange]:
        """
        Resolve the available windows for a calendar date.

        Args:
            day: Calendar date as observed in the schedule's timezone

        Returns:
            UTC windows, empty when the host is not available that day
        """
        override = self.schedule.find_override(day)

        if override is not None:
            if override.is_unavailable:
                return []
            if override.has_window:
                window = self._to_window(day, override.start_time, override.end_time)
                return [window] if window else []

        windows: List[TimeRange] = []
        for entry in self.schedule.windows_for_weekday(day_of_week(day)):
            window = self._to_window(day, entry.start_time, entry.end_time)
            if window:
                windows.append(window)

        return sorted(windows, key=lambda w: w.start)

    def _to_window(self, day: Date, start_time: str, end_time: str) -> TimeRange | None:
        """
        Convert a wall-clock window on ``day`` to UTC.

        Returns None for empty or inverted windows, which can also arise when a
        DST gap swallows the window.
        """
        start = wall_clock_to_utc(day, start_time, self.schedule.timezone)
        end = wall_clock_to_utc(day, end_time, self.schedule.timezone)

        if start >= end:
            logger.debug("Skipping empty window %s-%s on %s", start_time, end_time, day)
            return None

        return TimeRange(start=start, end=end)
