"""
Adapters layer - Data snapshots and external calendar integrations.
"""

from .calendar_source import CalendarBusyTimeSource
from .google_calendar import GoogleCalendarClient
from .graph_client import GraphClient
from .snapshot import Snapshot, SnapshotRepository

__all__ = [
    "CalendarBusyTimeSource",
    "GoogleCalendarClient",
    "GraphClient",
    "Snapshot",
    "SnapshotRepository",
]
