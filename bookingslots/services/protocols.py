"""
Protocols describing the collaborators the services depend on.

Storage, rosters and external calendars live outside the engine; the services
only see these narrow async interfaces, which keeps them easy to stub.
"""

from __future__ import annotations

from typing import List, Protocol, Sequence

from pendulum import DateTime

from ..domain.models import BookingRecord, BusyInterval, EventType


class ScheduleProviderProtocol(Protocol):
    """Source of event type definitions and their schedules."""

    async def get_event_type(self, event_id: str) -> EventType | None:
        """Return the event type, or None when it does not exist."""

    async def find_personal_event_type(self, member_id: str) -> EventType | None:
        """Return the member's earliest active non-team event type that has a schedule."""


class BookingStoreProtocol(Protocol):
    """Source of committed bookings."""

    async def get_committed_bookings(
        self,
        member_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[BookingRecord]:
        """
        Return pending/accepted bookings assigned to the member that overlap
        ``[start, end)``, across all of their event types.
        """


class BusyTimeSourceProtocol(Protocol):
    """External calendar free/busy source. Failures are tolerated by the caller."""

    async def get_busy_times(
        self,
        member_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[BusyInterval]:
        """Return busy intervals of the member overlapping ``[start, end)``."""


class TeamRosterProviderProtocol(Protocol):
    """Source of team membership and per-member booking history."""

    async def get_accepted_member_ids(self, team_id: str) -> List[str]:
        """Return ids of members who accepted their invitation."""

    async def get_booking_history(
        self,
        event_id: str,
        member_ids: Sequence[str],
    ) -> List[BookingRecord]:
        """Return bookings of the event assigned to any of ``member_ids``."""
