"""
Domain layer - Pure business logic without external dependencies.
"""

from .conflict_filter import ConflictFilter, is_slot_conflicting
from .models import (
    AvailabilityWindow,
    BookingRecord,
    BookingStatus,
    BusyInterval,
    DateOverride,
    EventConstraints,
    EventType,
    Schedule,
    SchedulingType,
    Slot,
    TeamMember,
    TimeRange,
)
from .round_robin import select_round_robin_member
from .schedule_resolver import ScheduleResolver
from .slot_calculator import SlotCalculator
from .slot_generator import generate_slots

__all__ = [
    "AvailabilityWindow",
    "BookingRecord",
    "BookingStatus",
    "BusyInterval",
    "ConflictFilter",
    "DateOverride",
    "EventConstraints",
    "EventType",
    "Schedule",
    "ScheduleResolver",
    "SchedulingType",
    "Slot",
    "SlotCalculator",
    "TeamMember",
    "TimeRange",
    "generate_slots",
    "is_slot_conflicting",
    "select_round_robin_member",
]
