"""
Application service computing bookable slots for a single owner.

The service loads the event type, committed bookings and external busy times
through protocol-typed collaborators and delegates the actual computation to
the domain-level ``SlotCalculator``. Keeping the I/O here lets the domain stay
pure and lets tests swap every collaborator for a stub.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, List

import pendulum
from pendulum import DateTime

from ..domain.exceptions import BookingStoreError, ScheduleProviderError, SlotEngineError
from ..domain.models import BookingRecord, BusyInterval, EventType, Slot, TimeRange
from ..domain.slot_calculator import SlotCalculator
from .protocols import BookingStoreProtocol, BusyTimeSourceProtocol, ScheduleProviderProtocol
from .queries import SlotQuery

logger = logging.getLogger(__name__)

Clock = Callable[[], DateTime]


def utc_now() -> DateTime:
    return pendulum.now("UTC")


class AvailabilityService:
    """
    Orchestrates data loading and slot calculation for personal event types.

    "Not found", "inactive" and "no schedule" all produce an empty slot list;
    telling them apart is the API layer's job.
    """

    def __init__(
        self,
        schedule_provider: ScheduleProviderProtocol,
        booking_store: BookingStoreProtocol,
        busy_time_source: BusyTimeSourceProtocol | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._schedule_provider = schedule_provider
        self._booking_store = booking_store
        self._busy_time_source = busy_time_source
        self._clock = clock

    def now(self) -> DateTime:
        """Read the injected clock once, normalised to UTC."""
        return self._clock().in_timezone("UTC")

    async def compute_available_slots(
        self,
        event_id: str,
        start_date: str | date,
        end_date: str | date,
        timezone: str,
        *,
        now: DateTime | None = None,
    ) -> List[Slot]:
        """
        Compute bookable slots of an event type between two calendar dates.

        Args:
            event_id: Event type id
            start_date: First date (``YYYY-MM-DD``) in the attendee's timezone
            end_date: Last date (inclusive) in the attendee's timezone
            timezone: Attendee IANA timezone
            now: Reference instant; defaults to the service clock

        Returns:
            Slots ordered by start time

        Raises:
            InvalidQueryError: If the query parameters are malformed
            BookingStoreError: If committed bookings cannot be loaded
        """
        query = SlotQuery.build(
            event_id=event_id,
            start_date=start_date,
            end_date=end_date,
            timezone=timezone,
        )
        event_type = await self.get_event_type(event_id)

        return await self.compute_for_event_type(
            event_type,
            query,
            now=now if now is not None else self.now(),
        )

    async def get_event_type(self, event_id: str) -> EventType | None:
        """Load an event type, wrapping provider failures."""
        try:
            return await self._schedule_provider.get_event_type(event_id)
        except SlotEngineError:
            raise
        except Exception as exc:
            raise ScheduleProviderError(f"Could not load event type {event_id}: {exc}") from exc

    async def compute_for_event_type(
        self,
        event_type: EventType | None,
        query: SlotQuery,
        *,
        now: DateTime,
    ) -> List[Slot]:
        """Compute slots for an already loaded event type."""
        if event_type is None or not event_type.is_active or event_type.schedule is None:
            logger.debug("No availability for event %s: missing, inactive or unscheduled", query.event_id)
            return []

        calculator = SlotCalculator(event_type.constraints, event_type.schedule)
        lookup = calculator.lookup_range(
            calculator.query_range(query.first_day, query.last_day, query.timezone)
        )

        owner_bookings = await self.fetch_committed_bookings(event_type.owner_id, lookup)
        external_busy = await self.fetch_external_busy_times(event_type.owner_id, lookup)

        # Only this event's bookings count toward its caps; the owner's other
        # bookings still block their time
        committed_bookings = [b.to_busy_interval() for b in owner_bookings if b.event_id == event_type.id]
        external_busy.extend(b.to_busy_interval() for b in owner_bookings if b.event_id != event_type.id)

        slots = calculator.find_available_slots(
            start_date=query.first_day,
            end_date=query.last_day,
            timezone=query.timezone,
            now=now,
            committed_bookings=committed_bookings,
            external_busy=external_busy,
        )

        logger.debug(
            "Event %s: %d slot(s) between %s and %s (%d booking(s), %d external busy)",
            event_type.id,
            len(slots),
            query.start_date,
            query.end_date,
            len(committed_bookings),
            len(external_busy),
        )
        return slots

    async def fetch_committed_bookings(self, owner_id: str, lookup: TimeRange) -> List[BookingRecord]:
        """
        Load every committed booking assigned to the owner, whichever event
        type it belongs to. This data is load-bearing, so failures propagate.
        """
        try:
            return list(
                await self._booking_store.get_committed_bookings(
                    member_id=owner_id,
                    start=lookup.start,
                    end=lookup.end,
                )
            )
        except SlotEngineError:
            raise
        except Exception as exc:
            raise BookingStoreError(f"Could not load bookings of {owner_id}: {exc}") from exc

    async def fetch_external_busy_times(self, owner_id: str, lookup: TimeRange) -> List[BusyInterval]:
        """
        Load external calendar busy times on a best-effort basis.

        An unreachable calendar must not make the host look fully booked, so
        any failure is logged and treated as "no busy times".
        """
        if self._busy_time_source is None:
            return []

        try:
            return list(
                await self._busy_time_source.get_busy_times(
                    member_id=owner_id,
                    start=lookup.start,
                    end=lookup.end,
                )
            )
        except Exception as exc:
            logger.warning("Failed to fetch external busy times for %s: %s", owner_id, exc)
            return []
