"""
Microsoft Graph API client for fetching calendar busy times.
"""

import logging
from typing import Any, Dict, List

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import CalendarAPIError
from ..domain.models import BusyInterval

logger = logging.getLogger(__name__)


class GraphClient:
    """
    Client for Microsoft Graph API calendar operations.

    Uses the /calendar/getSchedule endpoint to fetch free/busy information
    for a single mailbox.
    """

    GRAPH_API_ENDPOINT = "https://graph.microsoft.com/v1.0"

    # Schedule item statuses that block time
    BUSY_STATUSES = ("busy", "tentative", "oof", "workingelsewhere")

    def __init__(self, access_token: str, account: str, timeout: int = 30):
        """
        Initialize the Graph API client.

        Args:
            access_token: Valid Microsoft Graph access token
            account: Mailbox whose schedule is queried
            timeout: Request timeout in seconds
        """
        self.account = account
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json"
        }

    def get_busy_times(self, start_time: DateTime, end_time: DateTime) -> List[BusyInterval]:
        """
        Get busy intervals of the configured mailbox.

        Times are requested in UTC so no zone translation is needed on the
        way back.

        Raises:
            CalendarAPIError: If the API call fails
        """
        url = f"{self.GRAPH_API_ENDPOINT}/me/calendar/getSchedule"

        payload = {
            "schedules": [self.account],
            "startTime": {
                "dateTime": start_time.in_timezone("UTC").format("YYYY-MM-DDTHH:mm:ss"),
                "timeZone": "UTC"
            },
            "endTime": {
                "dateTime": end_time.in_timezone("UTC").format("YYYY-MM-DDTHH:mm:ss"),
                "timeZone": "UTC"
            },
            "availabilityViewInterval": 15
        }

        try:
            response = requests.post(
                url,
                headers=self.headers,
                json=payload,
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.HTTPError as exc:
            code = "auth" if exc.response is not None and exc.response.status_code in (401, 403) else "unknown"
            raise CalendarAPIError(f"Failed to fetch schedule from Microsoft Graph: {exc}", code=code) from exc
        except requests.exceptions.RequestException as exc:
            raise CalendarAPIError(f"Failed to fetch schedule from Microsoft Graph: {exc}", code="network") from exc

        return self._parse_schedule_response(data)

    def _parse_schedule_response(self, response_data: Dict[str, Any]) -> List[BusyInterval]:
        """
        Parse the getSchedule API response into our domain model.

        Response format:
        {
            "value": [
                {
                    "scheduleId": "user@example.com",
                    "scheduleItems": [
                        {
                            "status": "busy",
                            "start": {"dateTime": "...", "timeZone": "UTC"},
                            "end": {"dateTime": "...", "timeZone": "UTC"}
                        }
                    ]
                }
            ]
        }
        """
        busy: List[BusyInterval] = []

        for schedule in response_data.get("value", []):
            if schedule.get("scheduleId", "").lower() != self.account.lower():
                continue

            for item in schedule.get("scheduleItems", []):
                if item.get("status", "").lower() not in self.BUSY_STATUSES:
                    continue

                try:
                    start = self._parse_datetime(item["start"])
                    end = self._parse_datetime(item["end"])
                    busy.append(BusyInterval(start=start, end=end, source="microsoft"))
                except (KeyError, ValueError) as exc:
                    logger.warning("Could not parse schedule item: %s", exc)

        return busy

    @staticmethod
    def _parse_datetime(value: Dict[str, str]) -> DateTime:
        """Parse a Graph ``dateTimeTimeZone`` object into a UTC instant."""
        dt = pendulum.parse(value["dateTime"], tz=value.get("timeZone", "UTC"))

        if isinstance(dt, DateTime):
            return dt.in_timezone("UTC")

        raise ValueError(f"Could not parse datetime: {value['dateTime']}")
