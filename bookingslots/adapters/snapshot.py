"""
In-memory collaborators backed by a YAML/JSON data snapshot.

The snapshot plays the role of the product database for the CLI and for
tests: it holds event types, schedules, bookings and team rosters, and serves
them through the same protocols a real storage adapter would implement.
"""

from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pendulum
import yaml
from pendulum import DateTime
from pydantic import BaseModel, Field, model_validator

from ..domain.intervals import overlaps, to_date
from ..domain.models import (
    AvailabilityWindow,
    BookingRecord,
    BookingStatus,
    DateOverride,
    EventConstraints,
    EventType,
    Schedule,
    SchedulingType,
)

logger = logging.getLogger(__name__)


def _to_instant(value: dt.datetime) -> DateTime:
    """Naive datetimes in the snapshot are read as UTC."""
    return pendulum.instance(value, tz="UTC").in_timezone("UTC")


class AvailabilityRecord(BaseModel):
    day: int
    start_time: str
    end_time: str


class DateOverrideRecord(BaseModel):
    date: dt.date
    is_unavailable: bool = False
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class ScheduleRecord(BaseModel):
    id: str
    timezone: str = "UTC"
    availability: List[AvailabilityRecord] = Field(default_factory=list)
    date_overrides: List[DateOverrideRecord] = Field(default_factory=list)

    def to_domain(self) -> Schedule:
        return Schedule(
            timezone=self.timezone,
            availability=[
                AvailabilityWindow(day_of_week=a.day, start_time=a.start_time, end_time=a.end_time)
                for a in self.availability
            ],
            date_overrides=[
                DateOverride(
                    date=to_date(o.date),
                    is_unavailable=o.is_unavailable,
                    start_time=o.start_time,
                    end_time=o.end_time,
                )
                for o in self.date_overrides
            ],
        )


class EventTypeRecord(BaseModel):
    id: str
    owner_id: str
    duration: int
    slot_interval: Optional[int] = None
    before_buffer: int = 0
    after_buffer: int = 0
    minimum_notice: int = 0
    future_limit: int = 60
    max_bookings_per_day: Optional[int] = None
    max_bookings_per_week: Optional[int] = None
    schedule_id: Optional[str] = None
    is_active: bool = True
    team_id: Optional[str] = None
    scheduling_type: Optional[SchedulingType] = None
    created_at: dt.datetime = dt.datetime(1970, 1, 1)

    def to_domain(self, schedule: Schedule | None) -> EventType:
        return EventType(
            id=self.id,
            owner_id=self.owner_id,
            constraints=EventConstraints(
                duration=self.duration,
                slot_interval_minutes=self.slot_interval,
                before_buffer_minutes=self.before_buffer,
                after_buffer_minutes=self.after_buffer,
                minimum_notice_minutes=self.minimum_notice,
                future_limit_days=self.future_limit,
                max_bookings_per_day=self.max_bookings_per_day,
                max_bookings_per_week=self.max_bookings_per_week,
            ),
            schedule=schedule,
            is_active=self.is_active,
            team_id=self.team_id,
            scheduling_type=self.scheduling_type,
            created_at=_to_instant(self.created_at),
        )


class BookingRecordModel(BaseModel):
    id: str
    event_type_id: str
    user_id: str
    start_time: dt.datetime
    end_time: dt.datetime
    created_at: dt.datetime
    status: BookingStatus = BookingStatus.ACCEPTED

    def to_domain(self) -> BookingRecord:
        return BookingRecord(
            id=self.id,
            event_id=self.event_type_id,
            member_id=self.user_id,
            start=_to_instant(self.start_time),
            end=_to_instant(self.end_time),
            created_at=_to_instant(self.created_at),
            status=self.status,
        )


class TeamMemberRecord(BaseModel):
    user_id: str
    accepted: bool = False


class TeamRecord(BaseModel):
    id: str
    members: List[TeamMemberRecord] = Field(default_factory=list)


class Snapshot(BaseModel):
    """Root document of a data snapshot file."""
    schedules: List[ScheduleRecord] = Field(default_factory=list)
    event_types: List[EventTypeRecord] = Field(default_factory=list)
    bookings: List[BookingRecordModel] = Field(default_factory=list)
    teams: List[TeamRecord] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_references(self) -> "Snapshot":
        """Ensure ids are unique and event types reference known schedules."""
        for name, records in (("schedule", self.schedules), ("event type", self.event_types), ("team", self.teams)):
            ids = [r.id for r in records]
            duplicates = sorted({i for i in ids if ids.count(i) > 1})
            if duplicates:
                raise ValueError(f"Duplicate {name} id(s): {', '.join(duplicates)}")

        schedule_ids = {s.id for s in self.schedules}
        for event_type in self.event_types:
            if event_type.schedule_id and event_type.schedule_id not in schedule_ids:
                raise ValueError(
                    f"Event type '{event_type.id}' references unknown schedule '{event_type.schedule_id}'"
                )
        return self


class SnapshotRepository:
    """
    Serves a snapshot through the schedule, booking and roster protocols.
    """

    def __init__(self, snapshot: Snapshot):
        schedules = {s.id: s.to_domain() for s in snapshot.schedules}

        self._event_types: Dict[str, EventType] = {
            e.id: e.to_domain(schedules.get(e.schedule_id) if e.schedule_id else None)
            for e in snapshot.event_types
        }
        self._bookings: List[BookingRecord] = [b.to_domain() for b in snapshot.bookings]
        self._teams: Dict[str, TeamRecord] = {t.id: t for t in snapshot.teams}

    @classmethod
    def load(cls, data_file: Path) -> "SnapshotRepository":
        """
        Load a snapshot from a YAML (or JSON) file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file is not a valid snapshot
        """
        if not data_file.exists():
            raise FileNotFoundError(f"Data file not found: {data_file}")

        try:
            with open(data_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {data_file}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Data file must contain a mapping at the root level.")

        repository = cls(Snapshot(**data))
        logger.debug(
            "Loaded snapshot %s: %d event type(s), %d booking(s)",
            data_file,
            len(repository._event_types),
            len(repository._bookings),
        )
        return repository

    async def get_event_type(self, event_id: str) -> EventType | None:
        return self._event_types.get(event_id)

    async def find_personal_event_type(self, member_id: str) -> EventType | None:
        candidates = [
            e for e in self._event_types.values()
            if e.owner_id == member_id and e.is_active and e.team_id is None and e.schedule is not None
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda e: (e.created_at, e.id))

    async def get_committed_bookings(
        self,
        member_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[BookingRecord]:
        return [
            b
            for b in self._bookings
            if b.member_id == member_id
            and b.status.is_committed
            and overlaps(b.start, b.end, start, end)
        ]

    async def get_accepted_member_ids(self, team_id: str) -> List[str]:
        team = self._teams.get(team_id)
        if team is None:
            return []
        return [m.user_id for m in team.members if m.accepted]

    async def get_booking_history(
        self,
        event_id: str,
        member_ids: Sequence[str],
    ) -> List[BookingRecord]:
        wanted = set(member_ids)
        return [b for b in self._bookings if b.event_id == event_id and b.member_id in wanted]
