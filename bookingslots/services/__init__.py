"""
Service layer helpers that orchestrate collaborators and domain logic.
"""

from .availability import AvailabilityService
from .protocols import (
    BookingStoreProtocol,
    BusyTimeSourceProtocol,
    ScheduleProviderProtocol,
    TeamRosterProviderProtocol,
)
from .queries import SlotQuery
from .team_scheduling import TeamSchedulingService

__all__ = [
    "AvailabilityService",
    "BookingStoreProtocol",
    "BusyTimeSourceProtocol",
    "ScheduleProviderProtocol",
    "SlotQuery",
    "TeamRosterProviderProtocol",
    "TeamSchedulingService",
]
