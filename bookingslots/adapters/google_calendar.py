"""
Google Calendar client for fetching free/busy data.
"""

import logging
from typing import Any, Dict, List

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import CalendarAPIError
from ..domain.models import BusyInterval

logger = logging.getLogger(__name__)


def _error_for_status(status: int, body: str) -> CalendarAPIError:
    """Map an HTTP error response to a categorised ``CalendarAPIError``."""
    if status in (401, 403):
        return CalendarAPIError(f"Google Calendar authentication failed ({status}): {body}", code="auth")
    if status == 429:
        return CalendarAPIError(f"Google Calendar quota exceeded: {body}", code="quota")
    if status == 404:
        return CalendarAPIError(f"Google Calendar resource not found: {body}", code="not_found")
    return CalendarAPIError(f"Google Calendar request failed ({status}): {body}", code="unknown")


class GoogleCalendarClient:
    """
    Client for the Google Calendar free/busy endpoint.

    Only the primary calendar is queried. Token refresh is the caller's
    concern; the client takes a ready-to-use access token.
    """

    API_ENDPOINT = "https://www.googleapis.com/calendar/v3"

    def __init__(self, access_token: str, timeout: int = 30):
        """
        Initialize the Google Calendar client.

        Args:
            access_token: Valid OAuth access token with calendar read scope
            timeout: Request timeout in seconds
        """
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json"
        }

    def get_busy_times(self, start_time: DateTime, end_time: DateTime) -> List[BusyInterval]:
        """
        Get busy intervals of the primary calendar.

        Args:
            start_time: Start of the time window
            end_time: End of the time window

        Returns:
            Busy intervals in UTC

        Raises:
            CalendarAPIError: If the API call fails
        """
        payload = {
            "timeMin": start_time.in_timezone("UTC").to_iso8601_string(),
            "timeMax": end_time.in_timezone("UTC").to_iso8601_string(),
            "items": [{"id": "primary"}]
        }

        try:
            response = requests.post(
                f"{self.API_ENDPOINT}/freeBusy",
                headers=self.headers,
                json=payload,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as exc:
            raise CalendarAPIError(f"getBusyTimes network error: {exc}", code="network") from exc

        if not response.ok:
            raise _error_for_status(response.status_code, response.text)

        return self._parse_free_busy_response(response.json())

    def _parse_free_busy_response(self, response_data: Dict[str, Any]) -> List[BusyInterval]:
        """
        Parse the freeBusy API response into our domain model.

        Response format:
        {
            "calendars": {
                "primary": {
                    "busy": [{"start": "...", "end": "..."}]
                }
            }
        }
        """
        periods = response_data.get("calendars", {}).get("primary", {}).get("busy", [])
        busy: List[BusyInterval] = []

        for period in periods:
            try:
                start = pendulum.parse(period["start"]).in_timezone("UTC")
                end = pendulum.parse(period["end"]).in_timezone("UTC")
                busy.append(BusyInterval(start=start, end=end, source="google"))
            except (KeyError, ValueError) as exc:
                logger.warning("Could not parse Google busy period %s: %s", period, exc)

        return busy
