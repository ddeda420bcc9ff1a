"""
Team scheduling strategies layered on top of per-member availability.

- Collective: a slot is offered only when every accepted member is free
- Round-robin: a slot is offered when any accepted member is free; the
  booking is then routed to the least loaded free member
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import date
from typing import Dict, List, Sequence

from pendulum import DateTime

from ..domain.exceptions import (
    BookingStoreError,
    InvalidQueryError,
    ScheduleProviderError,
    SlotEngineError,
)
from ..domain.intervals import local_date, validate_timezone
from ..domain.models import BookingRecord, EventType, SchedulingType, Slot, TeamMember
from ..domain.round_robin import (
    count_bookings_by_member,
    last_assigned_by_member,
    select_round_robin_member,
)
from .availability import AvailabilityService
from .protocols import ScheduleProviderProtocol, TeamRosterProviderProtocol
from .queries import SlotQuery, parse_instant

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 8
DEFAULT_LOOKBACK_DAYS = 30


class TeamSchedulingService:
    """
    Computes team availability by fanning out to ``AvailabilityService``.

    Member computations run concurrently, at most ``max_concurrency`` at a
    time. A member whose own data cannot be loaded is treated as unavailable
    instead of failing the whole query.
    """

    def __init__(
        self,
        availability_service: AvailabilityService,
        schedule_provider: ScheduleProviderProtocol,
        roster_provider: TeamRosterProviderProtocol,
        *,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        if lookback_days < 1:
            raise ValueError("lookback_days must be at least 1")

        self._availability = availability_service
        self._schedule_provider = schedule_provider
        self._roster_provider = roster_provider
        self._max_concurrency = max_concurrency
        self._lookback_days = lookback_days

    async def get_slots(
        self,
        event_id: str,
        start_date: str | date,
        end_date: str | date,
        timezone: str,
        *,
        now: DateTime | None = None,
    ) -> List[Slot]:
        """
        Dispatch to the algorithm matching the event's scheduling type.

        Personal event types (no scheduling type) use the single-owner computation.
        """
        query = SlotQuery.build(event_id=event_id, start_date=start_date, end_date=end_date, timezone=timezone)
        event_type = await self._availability.get_event_type(event_id)
        now = now if now is not None else self._availability.now()

        if event_type is not None and event_type.scheduling_type is SchedulingType.ROUND_ROBIN:
            return await self._round_robin_slots(event_type, query, now)
        if event_type is not None and event_type.scheduling_type is SchedulingType.COLLECTIVE:
            return await self._collective_slots(event_type, query, now)

        return await self._availability.compute_for_event_type(event_type, query, now=now)

    async def get_collective_slots(
        self,
        event_id: str,
        start_date: str | date,
        end_date: str | date,
        timezone: str,
        *,
        now: DateTime | None = None,
    ) -> List[Slot]:
        """
        Return slots at which every accepted member is free.

        A single member without availability empties the result. With one
        member the result is that member's slots.
        """
        query = SlotQuery.build(event_id=event_id, start_date=start_date, end_date=end_date, timezone=timezone)
        event_type = await self._availability.get_event_type(event_id)
        return await self._collective_slots(
            event_type,
            query,
            now if now is not None else self._availability.now(),
        )

    async def get_round_robin_slots(
        self,
        event_id: str,
        start_date: str | date,
        end_date: str | date,
        timezone: str,
        *,
        now: DateTime | None = None,
    ) -> List[Slot]:
        """Return slots at which at least one accepted member is free."""
        query = SlotQuery.build(event_id=event_id, start_date=start_date, end_date=end_date, timezone=timezone)
        event_type = await self._availability.get_event_type(event_id)
        return await self._round_robin_slots(
            event_type,
            query,
            now if now is not None else self._availability.now(),
        )

    async def get_round_robin_assignment(
        self,
        event_id: str,
        slot_time: str | DateTime,
        timezone: str = "UTC",
        *,
        now: DateTime | None = None,
    ) -> str | None:
        """
        Choose the member who should receive a booking at ``slot_time``.

        Selection priority:
        1. Member must be free at the requested slot time
        2. Fewest committed bookings for this event within the lookback window
        3. Least recently assigned, members without history first

        Args:
            event_id: Team event type id
            slot_time: ISO 8601 start of the slot being booked
            timezone: Attendee timezone used to pick the calendar date to check

        Returns:
            The member id, or None when nobody can take the booking
        """
        slot_start = parse_instant(slot_time)
        try:
            slot_day = local_date(slot_start, validate_timezone(timezone))
        except ValueError as exc:
            raise InvalidQueryError(str(exc)) from exc
        query = SlotQuery.build(event_id=event_id, start_date=slot_day, end_date=slot_day, timezone=timezone)
        now = now if now is not None else self._availability.now()

        event_type = await self._availability.get_event_type(event_id)
        member_ids = await self._get_accepted_member_ids(event_type)
        if not member_ids:
            return None

        member_slots = await self._compute_member_slots(event_type, member_ids, query, now)
        available_ids = [
            member_id
            for member_id in member_ids
            if any(slot.start_utc == slot_start for slot in member_slots[member_id])
        ]

        if len(available_ids) <= 1:
            return available_ids[0] if available_ids else None

        history = await self._get_booking_history(event_id, available_ids)
        booking_counts = count_bookings_by_member(
            history,
            available_ids,
            since=now.subtract(days=self._lookback_days),
        )
        last_assigned = last_assigned_by_member(history, available_ids)

        chosen = select_round_robin_member(available_ids, booking_counts, last_assigned)
        logger.info(
            "Round-robin assignment for %s at %s: %s (counts=%s)",
            event_id,
            slot_start.to_iso8601_string(),
            chosen,
            booking_counts,
        )
        return chosen

    async def get_booking_count_by_member(
        self,
        event_id: str,
        member_ids: Sequence[str],
        *,
        now: DateTime | None = None,
    ) -> Dict[str, int]:
        """Count committed bookings per member within the lookback window."""
        now = now if now is not None else self._availability.now()
        history = await self._get_booking_history(event_id, list(member_ids))
        return count_bookings_by_member(history, member_ids, since=now.subtract(days=self._lookback_days))

    async def _collective_slots(
        self,
        event_type: EventType | None,
        query: SlotQuery,
        now: DateTime,
    ) -> List[Slot]:
        member_ids = await self._get_accepted_member_ids(event_type)
        if not member_ids:
            return []

        member_slots = await self._compute_member_slots(event_type, member_ids, query, now)
        slot_sets = [member_slots[member_id] for member_id in member_ids]

        common = {slot.start_utc for slot in slot_sets[0]}
        for slots in slot_sets[1:]:
            common &= {slot.start_utc for slot in slots}
            if not common:
                return []

        # Same start means same local time; keep the first member's slot objects
        return sorted(
            (slot for slot in slot_sets[0] if slot.start_utc in common),
            key=lambda s: s.start_utc,
        )

    async def _round_robin_slots(
        self,
        event_type: EventType | None,
        query: SlotQuery,
        now: DateTime,
    ) -> List[Slot]:
        member_ids = await self._get_accepted_member_ids(event_type)
        if not member_ids:
            return []

        member_slots = await self._compute_member_slots(event_type, member_ids, query, now)

        union: Dict[DateTime, Slot] = {}
        for member_id in member_ids:
            for slot in member_slots[member_id]:
                union.setdefault(slot.start_utc, slot)

        return [union[start] for start in sorted(union)]

    async def _get_accepted_member_ids(self, event_type: EventType | None) -> List[str]:
        """Return the accepted roster, or nothing for inactive and personal events."""
        if event_type is None or not event_type.is_active or not event_type.is_team_event:
            return []

        try:
            member_ids = await self._roster_provider.get_accepted_member_ids(event_type.team_id)
        except SlotEngineError:
            raise
        except Exception as exc:
            raise ScheduleProviderError(f"Could not load members of team {event_type.team_id}: {exc}") from exc

        return list(dict.fromkeys(member_ids))

    async def _get_booking_history(self, event_id: str, member_ids: Sequence[str]) -> List[BookingRecord]:
        try:
            return list(await self._roster_provider.get_booking_history(event_id, member_ids))
        except SlotEngineError:
            raise
        except Exception as exc:
            raise BookingStoreError(f"Could not load booking history of event {event_id}: {exc}") from exc

    async def _compute_member_slots(
        self,
        team_event: EventType,
        member_ids: Sequence[str],
        query: SlotQuery,
        now: DateTime,
    ) -> Dict[str, List[Slot]]:
        """Compute every member's slots concurrently, bounded by the worker limit."""
        semaphore = asyncio.Semaphore(min(len(member_ids), self._max_concurrency))

        async def run(member_id: str) -> List[Slot]:
            async with semaphore:
                return await self._member_slots(team_event, member_id, query, now)

        # Let every member finish before surfacing an unexpected failure
        results = await asyncio.gather(*(run(member_id) for member_id in member_ids), return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result

        return dict(zip(member_ids, results))

    async def _member_slots(
        self,
        team_event: EventType,
        member_id: str,
        query: SlotQuery,
        now: DateTime,
    ) -> List[Slot]:
        try:
            member = await self._resolve_member(team_event, member_id)
            return await self._availability.compute_for_event_type(member.event_type, query, now=now)
        except SlotEngineError as exc:
            logger.warning("Treating member %s as unavailable for %s: %s", member_id, team_event.id, exc)
            return []

    async def _resolve_member(self, team_event: EventType, member_id: str) -> TeamMember:
        """
        Build the event type used to compute a member's availability.

        The booking rules always come from the team event. The owner uses the
        team event as is. Other members keep the team event's constraints and
        id but use the schedule of their personal event type, falling back to
        the team schedule when they have not configured one. Re-owning the
        event makes the member's own bookings and calendars block their time.
        """
        if team_event.owner_id == member_id:
            return TeamMember(user_id=member_id, event_type=team_event)

        try:
            personal = await self._schedule_provider.find_personal_event_type(member_id)
        except SlotEngineError:
            raise
        except Exception as exc:
            raise ScheduleProviderError(f"Could not load schedule of member {member_id}: {exc}") from exc

        schedule = personal.schedule if personal is not None and personal.schedule is not None else team_event.schedule
        return TeamMember(
            user_id=member_id,
            event_type=replace(team_event, owner_id=member_id, schedule=schedule),
        )
