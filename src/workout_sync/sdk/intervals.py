"""
Intervals.icu HTTP client and SDK functions.

Authentication is HTTP Basic with the literal user ``API_KEY`` and the
athlete's personal API key as password.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

API_URL = "https://intervals.icu/api/v1"


class IntervalsClient:
    """
    Intervals.icu HTTP transport for one athlete.

    Domain-specific endpoint calls are the module-level functions below.
    """

    def __init__(
        self,
        athlete_id: str,
        api_key: str,
        api_url: str = API_URL,
        timeout: float = 30,
    ):
        self._athlete_id = athlete_id
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        self._session.auth = ("API_KEY", api_key)

    @property
    def athlete_id(self) -> str:
        return self._athlete_id

    def make_request(
        self,
        method: str,
        path: str,
        params: Dict = None,
        json_data: Any = None,
    ) -> Any:
        """
        Make an authenticated API request.

        Args:
            method: HTTP method
            path: Path relative to the API root (e.g. "athlete/i123/events")
            params: Query parameters
            json_data: JSON body

        Returns:
            Decoded JSON body, or None for empty responses

        Raises:
            requests.HTTPError: On non-2xx status codes
        """
        url = f"{self._api_url}/{path}"
        response = self._session.request(
            method.upper(),
            url,
            params=params,
            json=json_data,
            timeout=self._timeout,
        )
        response.raise_for_status()
        if response.status_code == 204 or not response.content:
            return None
        return response.json()


def get_athlete(client: IntervalsClient) -> Dict[str, Any]:
    """GET athlete/{id}: profile, also the connection check."""
    return client.make_request("GET", f"athlete/{client.athlete_id}") or {}


def list_activities(client: IntervalsClient, oldest: date, newest: date) -> List[Dict[str, Any]]:
    """
    GET athlete/{id}/activities?oldest=&newest=

    Returns:
        Activities with id, name, type, distance, moving_time, elapsed_time,
        start_date_local, avg_hr, max_hr, avg_speed
    """
    return client.make_request(
        "GET",
        f"athlete/{client.athlete_id}/activities",
        params={"oldest": oldest.isoformat(), "newest": newest.isoformat()},
    ) or []


def get_sport_settings(client: IntervalsClient, sport: str) -> Dict[str, Any]:
    """GET athlete/{id}/sport-settings/{Run|Ride|Swim}: max_hr, threshold_hr, ..."""
    return client.make_request(
        "GET", f"athlete/{client.athlete_id}/sport-settings/{sport}",
    ) or {}


def list_events(client: IntervalsClient, oldest: date, newest: date) -> List[Dict[str, Any]]:
    """GET athlete/{id}/events?oldest=&newest=: calendar events."""
    return client.make_request(
        "GET",
        f"athlete/{client.athlete_id}/events",
        params={"oldest": oldest.isoformat(), "newest": newest.isoformat()},
    ) or []


def create_event(client: IntervalsClient, event: Dict[str, Any]) -> Dict[str, Any]:
    """POST athlete/{id}/events: returns the created event with its id."""
    return client.make_request(
        "POST", f"athlete/{client.athlete_id}/events", json_data=event,
    ) or {}


def update_event(
    client: IntervalsClient, event_id: str, event: Dict[str, Any]
) -> Optional[Dict[str, Any]]:
    """PUT athlete/{id}/events/{eventId}: full event update."""
    return client.make_request(
        "PUT", f"athlete/{client.athlete_id}/events/{event_id}", json_data=event,
    )


def delete_event(client: IntervalsClient, event_id: str) -> None:
    """DELETE athlete/{id}/events/{eventId}"""
    client.make_request("DELETE", f"athlete/{client.athlete_id}/events/{event_id}")
