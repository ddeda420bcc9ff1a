"""
Busy-time source backed by members' connected external calendars.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Protocol, Sequence

from pendulum import DateTime

from ..config import CalendarConnection
from ..domain.models import BusyInterval
from .google_calendar import GoogleCalendarClient
from .graph_client import GraphClient

logger = logging.getLogger(__name__)


class CalendarClientProtocol(Protocol):
    """Blocking calendar client returning busy intervals for one connection."""

    def get_busy_times(self, start_time: DateTime, end_time: DateTime) -> List[BusyInterval]:
        """Return busy intervals overlapping the window."""


def build_client(connection: CalendarConnection) -> CalendarClientProtocol:
    """Create the API client matching a configured connection."""
    if connection.provider == "microsoft":
        return GraphClient(access_token=connection.access_token, account=connection.account)
    return GoogleCalendarClient(access_token=connection.access_token)


class CalendarBusyTimeSource:
    """
    Merges busy times from every calendar a member has connected.

    Connections are queried concurrently in worker threads. A failing
    connection is logged and skipped so the remaining calendars still count.
    """

    def __init__(self, clients: Dict[str, Sequence[CalendarClientProtocol]]):
        self._clients = {member_id: list(member_clients) for member_id, member_clients in clients.items()}

    @classmethod
    def from_connections(cls, connections: Sequence[CalendarConnection]) -> "CalendarBusyTimeSource":
        clients: Dict[str, List[CalendarClientProtocol]] = {}
        for connection in connections:
            clients.setdefault(connection.member_id, []).append(build_client(connection))
        return cls(clients)

    async def get_busy_times(
        self,
        member_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[BusyInterval]:
        clients = self._clients.get(member_id, [])
        if not clients:
            return []

        results = await asyncio.gather(
            *(asyncio.to_thread(client.get_busy_times, start, end) for client in clients),
            return_exceptions=True,
        )

        busy: List[BusyInterval] = []
        for client, result in zip(clients, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Failed to fetch busy times from %s for %s: %s",
                    type(client).__name__,
                    member_id,
                    result,
                )
                continue
            busy.extend(result)

        return busy
