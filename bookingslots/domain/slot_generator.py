"""
Candidate slot generation inside a single availability window.

Generation knows nothing about existing bookings; conflicts are removed in a
separate pass by the conflict filter.
"""

from typing import List

from pendulum import DateTime

from .intervals import to_local_time
from .models import EventConstraints, Slot, TimeRange


def generate_slots(
    window: TimeRange,
    constraints: EventConstraints,
    now: DateTime,
    future_limit: DateTime,
    timezone: str = "UTC"
) -> List[Slot]:
    """
    Walk a window in fixed steps and emit every start time that may be booked.

    A start ``t`` is kept when:
    - the whole slot fits, i.e. ``t + duration <= window.end``
    - it honours the minimum notice, i.e. ``t >= now + minimum_notice``
    - it is not beyond the booking horizon, i.e. ``t <= future_limit``

    Args:
        window: UTC availability window
        constraints: Event booking rules
        now: Reference instant of the query
        future_limit: Latest bookable start, computed once per query
        timezone: Timezone used to format ``Slot.local_time``

    Returns:
        Slots in ascending start order
    """
    earliest_start = now.add(minutes=constraints.minimum_notice_minutes)
    slots: List[Slot] = []

    current = window.start
    while True:
        if current.add(minutes=constraints.duration) > window.end:
            break
        if current > future_limit:
            break

        if current >= earliest_start:
            slots.append(
                Slot(
                    start_utc=current,
                    local_time=to_local_time(current, timezone),
                    duration_minutes=constraints.duration
                )
            )

        current = current.add(minutes=constraints.step_minutes)

    return slots
