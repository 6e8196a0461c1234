"""
Intervals.icu operations.

Intervals.icu has no structured-step upload for planned workouts that we
rely on; a workout is a calendar event whose description uses the
workout-builder text syntax, rendered by ``converters.to_description``.
"""

import logging
import re
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional

import requests

from workout_sync import resolver
from workout_sync.cache import ResultCache
from workout_sync.config import SyncSettings
from workout_sync.converters import to_description
from workout_sync.errors import AuthInvalid, NotFound, VendorUnavailable, is_auth_error, http_status
from workout_sync.model import Activity, PushResult, RescheduleResult, Workout
from workout_sync.sdk import intervals as sdk
from workout_sync.sdk.intervals import IntervalsClient
from workout_sync.sdk.types import INTERVALS_SPORTS, INTERVALS_TYPE_TO_LOCAL, INTERVALS_WORKOUT_CATEGORY
from workout_sync.sessions import SessionManager
from workout_sync.sync import VendorSync
from workout_sync.utils import date_part, next_month, speed_to_pace

logger = logging.getLogger(__name__)

ACTIVITY_LOOKBACK_DAYS = 90
CALENDAR_PAST_DAYS = 7
CALENDAR_FUTURE_DAYS = 90


class IntervalsSync(VendorSync):
    """Intervals.icu operation set for all users of this process."""

    vendor = "intervals"
    tag = "Intervals"

    def __init__(
        self,
        settings: SyncSettings,
        cache: ResultCache,
        sessions: Optional[SessionManager] = None,
        today: Callable[[], date] = date.today,
        is_marked_connected: Optional[Callable[[str], bool]] = None,
    ):
        if sessions is None:
            sessions = SessionManager(
                self.vendor,
                login=self._login,
                probe=sdk.get_athlete,
                liveness_window=settings.liveness_window_seconds,
                is_marked_connected=is_marked_connected,
            )
        super().__init__(settings, cache, sessions)
        self._today = today

    def _login(self, credentials) -> IntervalsClient:
        athlete_id, api_key = credentials
        client = IntervalsClient(
            athlete_id,
            api_key,
            api_url=self.settings.intervals_api_url,
            timeout=self.settings.http_timeout_seconds,
        )
        try:
            sdk.get_athlete(client)
        except requests.HTTPError as e:
            if http_status(e) == 404:
                raise AuthInvalid(self.vendor, "Intervals.icu athlete id not found.") from e
            raise
        return client

    def connect(self, user_id: str, athlete_id: str, api_key: str) -> None:
        """
        Verify the athlete id / API key pair and keep the client for this user.

        Raises:
            AuthInvalid: Wrong API key or unknown athlete id
            VendorUnavailable: Intervals.icu could not be reached
        """
        self._connect(user_id, (athlete_id, api_key))

    # ── Reads ─────────────────────────────────────────────────────────────

    def fetch_activities(self, user_id: str, count: int = 10) -> List[Activity]:
        """Most recent activities of the last 90 days, newest first."""
        today = self._today()
        oldest = today - timedelta(days=ACTIVITY_LOOKBACK_DAYS)

        def fetch(client):
            raw = sdk.list_activities(client, oldest, today)
            raw.sort(key=lambda a: a.get("start_date_local") or "", reverse=True)
            return [_to_activity(a) for a in raw[:count]]

        return self._run(
            user_id,
            "fetch activities",
            fetch,
            cache_resource="activities",
            cache_params=(today.isoformat(), count),
        )

    def fetch_calendar(
        self, user_id: str, year: Optional[int] = None, month: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Get raw calendar events.

        Without ``month`` the window is the last week plus the next 90 days.
        With it, the given (ZERO-based) month of ``year`` (default: this year)
        is listed.

        Raises:
            ValueError: ``year`` given without ``month``
        """
        if month is not None:
            if year is None:
                year = self._today().year
            oldest = date(year, month + 1, 1)
            next_year, next_month0 = next_month(year, month)
            newest = date(next_year, next_month0 + 1, 1) - timedelta(days=1)
        elif year is not None:
            raise ValueError("A month is required when a year is given for Intervals.icu")
        else:
            oldest, newest = self._default_window()
        return self._list_events(user_id, oldest, newest)

    # ── Writes ────────────────────────────────────────────────────────────

    def push_workout(self, user_id: str, workout: Workout, age: Optional[int] = None) -> PushResult:
        """
        Create a WORKOUT event carrying the rendered description.

        Heart-rate targets are written as % of max HR, taken from the
        athlete's sport settings, else estimated as 220 - age when ``age``
        is known. Undated workouts go on tomorrow.
        """
        sport = INTERVALS_SPORTS.get(workout.sport_type, "Run")
        day = workout.scheduled_date or self._today() + timedelta(days=1)

        def push(client):
            max_hr = _athlete_max_hr(client, sport)
            if not max_hr and age:
                max_hr = round(220 - age)
                logger.info("[Intervals] Using estimated max HR from age %s: %s", age, max_hr)
            event = {
                "category": INTERVALS_WORKOUT_CATEGORY,
                "type": sport,
                "name": workout.name,
                "description": to_description(
                    workout, max_hr, default_repeat_count=self.settings.default_repeat_count,
                ),
                "start_date_local": f"{day.isoformat()}T00:00:00",
            }
            if workout.sport_type == "cycling":
                event["indoor"] = True
            return sdk.create_event(client, event)

        created = self._run(user_id, "push workout", push, mutates=True)
        event_id = (created or {}).get("id")
        if event_id is None:
            raise VendorUnavailable(self.vendor, "push workout", "no event id in response")
        logger.info("[Intervals] Workout pushed: %s", event_id)
        return PushResult(
            vendor_workout_id=str(event_id),
            scheduled=True,
            scheduled_date=day.isoformat(),
        )

    def reschedule_workout(
        self,
        user_id: str,
        event_id: str,
        new_date: date,
        current_date: Optional[date] = None,
    ) -> RescheduleResult:
        """
        Move a workout event to ``new_date`` with a full-event PUT.

        The event is matched by id (and ``current_date``), falling back to
        any workout event on ``current_date``.

        Raises:
            NotFound: No matching workout event in the calendar window
        """
        oldest, newest = self._default_window()
        if current_date is not None:
            oldest, newest = min(oldest, current_date), max(newest, current_date)

        def reschedule(client):
            events = sdk.list_events(client, oldest, newest)
            event = resolver.find_intervals_event(events, event_id, current_date)
            if event is None:
                raise NotFound(
                    self.vendor,
                    "Workout not found in the Intervals.icu calendar.",
                    hint="Make sure the workout is scheduled.",
                )
            updated = dict(event, start_date_local=f"{new_date.isoformat()}T00:00:00")
            sdk.update_event(client, event["id"], updated)
            return event

        event = self._run(user_id, "reschedule workout", reschedule, mutates=True)
        logger.info(
            "[Intervals] Event %s moved %s -> %s",
            event.get("id"), date_part(event.get("start_date_local")), new_date,
        )
        return RescheduleResult(scheduled_date=new_date.isoformat())

    def delete_workout(self, user_id: str, event_id: str) -> None:
        self._run(
            user_id,
            "delete workout",
            lambda client: sdk.delete_event(client, event_id),
            mutates=True,
            retry_only_on_auth=True,
        )
        logger.info("[Intervals] Event %s deleted", event_id)

    # ── Internal helpers ──────────────────────────────────────────────────

    def _default_window(self):
        today = self._today()
        return today - timedelta(days=CALENDAR_PAST_DAYS), today + timedelta(days=CALENDAR_FUTURE_DAYS)

    def _list_events(self, user_id: str, oldest: date, newest: date) -> List[Dict[str, Any]]:
        return self._run(
            user_id,
            "fetch calendar",
            lambda client: sdk.list_events(client, oldest, newest),
            cache_resource="calendar",
            cache_params=(oldest.isoformat(), newest.isoformat()),
        )


def _athlete_max_hr(client: IntervalsClient, sport: str) -> Optional[float]:
    """Max HR from sport settings; None when unset or unavailable."""
    try:
        settings = sdk.get_sport_settings(client, sport)
    except requests.RequestException as e:
        if is_auth_error(e):
            raise
        logger.info("[Intervals] Sport settings for %s unavailable: %s", sport, e)
        return None
    max_hr = settings.get("max_hr")
    if max_hr and max_hr > 0:
        return max_hr
    return None


def _to_activity(raw: dict) -> Activity:
    activity_id = raw.get("id") or 0
    if isinstance(activity_id, str):
        # Intervals ids look like "i12345678"
        digits = re.sub(r"\D", "", activity_id)
        activity_id = int(digits) if digits else 0
    return Activity(
        activity_id=activity_id,
        name=raw.get("name") or "Workout",
        activity_type=INTERVALS_TYPE_TO_LOCAL.get(raw.get("type"), raw.get("type") or "unknown"),
        distance=raw.get("distance") or 0,
        duration=raw.get("moving_time") or raw.get("elapsed_time") or 0,
        start_time_local=raw.get("start_date_local") or "",
        average_hr=raw.get("average_heartrate") or raw.get("avg_hr") or None,
        max_hr=raw.get("max_heartrate") or raw.get("max_hr") or None,
        average_pace=speed_to_pace(raw.get("average_speed") or raw.get("avg_speed")),
    )
