"""
Domain-specific exception hierarchy for the booking slot engine.
"""


class SlotEngineError(Exception):
    """Base class for all application-level errors."""


class InvalidQueryError(SlotEngineError):
    """Raised when a slot query is malformed and must be rejected up front."""


class ScheduleProviderError(SlotEngineError):
    """Raised when event type or schedule data cannot be loaded."""


class BookingStoreError(SlotEngineError):
    """Raised when committed bookings cannot be loaded."""


class CalendarAPIError(SlotEngineError):
    """Raised when external calendar data cannot be fetched or parsed."""

    def __init__(self, message: str, code: str = "unknown"):
        super().__init__(message)
        self.code = code
