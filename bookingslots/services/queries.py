"""
Validated query objects accepted by the services.
"""

from datetime import date

import pendulum
from pendulum import Date, DateTime
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from ..domain.exceptions import InvalidQueryError
from ..domain.intervals import to_date, validate_timezone


class SlotQuery(BaseModel):
    """Date range and requesting timezone of an availability query."""
    model_config = ConfigDict(frozen=True)

    event_id: str
    start_date: date
    end_date: date
    timezone: str = "UTC"

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA zone."""
        return validate_timezone(value)

    @model_validator(mode="after")
    def validate_range_order(self) -> "SlotQuery":
        """Ensure the range does not end before it starts."""
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self

    @classmethod
    def build(cls, **kwargs) -> "SlotQuery":
        """
        Build a query, converting validation failures to ``InvalidQueryError``.

        Raises:
            InvalidQueryError: If any parameter is malformed
        """
        try:
            return cls(**kwargs)
        except ValidationError as exc:
            raise InvalidQueryError(f"Invalid slot query: {exc}") from exc

    @property
    def first_day(self) -> Date:
        return to_date(self.start_date)

    @property
    def last_day(self) -> Date:
        return to_date(self.end_date)


def parse_instant(value: str | DateTime) -> DateTime:
    """
    Parse an ISO 8601 instant and normalise it to UTC.

    Strings without an offset are read as UTC.

    Raises:
        InvalidQueryError: If the value is not a datetime
    """
    if isinstance(value, DateTime):
        return value.in_timezone("UTC")

    try:
        parsed = pendulum.parse(value)
    except (TypeError, ValueError) as exc:
        raise InvalidQueryError(f"Invalid slot time: '{value}'") from exc

    if not isinstance(parsed, DateTime):
        raise InvalidQueryError(f"Slot time must be a date and time: '{value}'")

    return parsed.in_timezone("UTC")
