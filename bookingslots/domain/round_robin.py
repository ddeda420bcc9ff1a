"""
Load-balancing rules for round-robin host assignment.
"""

from typing import Dict, Iterable, List, Sequence

import pendulum
from pendulum import DateTime

from .models import BookingRecord

# Members without any booking history sort before everyone else
NEVER_ASSIGNED = pendulum.datetime(1970, 1, 1, tz="UTC")


def count_bookings_by_member(
    history: Iterable[BookingRecord],
    member_ids: Sequence[str],
    since: DateTime
) -> Dict[str, int]:
    """
    Count committed bookings per member created at or after ``since``.

    Every requested member appears in the result, with 0 when they have none.
    """
    counts: Dict[str, int] = {member_id: 0 for member_id in member_ids}

    for booking in history:
        if booking.member_id not in counts:
            continue
        if not booking.status.is_committed:
            continue
        if booking.created_at < since:
            continue
        counts[booking.member_id] += 1

    return counts


def last_assigned_by_member(
    history: Iterable[BookingRecord],
    member_ids: Sequence[str]
) -> Dict[str, DateTime]:
    """Return the ``created_at`` of each member's most recent committed booking."""
    wanted = set(member_ids)
    last_assigned: Dict[str, DateTime] = {}

    for booking in history:
        if booking.member_id not in wanted or not booking.status.is_committed:
            continue
        previous = last_assigned.get(booking.member_id)
        if previous is None or booking.created_at > previous:
            last_assigned[booking.member_id] = booking.created_at

    return last_assigned


def select_round_robin_member(
    available_ids: Sequence[str],
    booking_counts: Dict[str, int],
    last_assigned: Dict[str, DateTime]
) -> str | None:
    """
    Pick the member who should receive the next booking.

    Ranking:
    1. Fewest recent bookings
    2. Least recently assigned (no history counts as the epoch)
    3. Member id, so identical timestamps still give a stable answer

    Returns:
        The chosen member id, or None when nobody is available
    """
    candidates: List[str] = list(dict.fromkeys(available_ids))

    if not candidates:
        return None

    if len(candidates) == 1:
        return candidates[0]

    return min(
        candidates,
        key=lambda member_id: (
            booking_counts.get(member_id, 0),
            last_assigned.get(member_id, NEVER_ASSIGNED),
            member_id
        )
    )
