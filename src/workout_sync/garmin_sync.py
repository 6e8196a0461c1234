"""
Garmin Connect operations.

Composes the session manager, step converter and result cache behind the
uniform retry policy in ``VendorSync._run``.
"""

import logging
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional

from workout_sync import resolver
from workout_sync.cache import ResultCache
from workout_sync.config import SyncSettings
from workout_sync.converters import to_description, to_garmin_workout
from workout_sync.errors import (
    NotFound,
    SyncError,
    UnsupportedOperation,
    VendorUnavailable,
    is_auth_error,
)
from workout_sync.model import Activity, DailyStats, PushResult, RescheduleResult, Workout
from workout_sync.sdk import garmin as sdk
from workout_sync.sessions import SessionManager
from workout_sync.sync import VendorSync
from workout_sync.utils import next_month, speed_to_pace

logger = logging.getLogger(__name__)


def _login(credentials):
    email, password = credentials
    return sdk.login(email, password)


class GarminSync(VendorSync):
    """Garmin Connect operation set for all users of this process."""

    vendor = "garmin"
    tag = "Garmin"

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
                login=_login,
                probe=sdk.get_user_profile,
                liveness_window=settings.liveness_window_seconds,
                is_marked_connected=is_marked_connected,
            )
        super().__init__(settings, cache, sessions)
        self._today = today

    def connect(self, user_id: str, email: str, password: str) -> None:
        """
        Log in to Garmin Connect and keep the session for this user.

        Raises:
            AuthInvalid: Wrong email/password
            VendorUnavailable: Garmin could not be reached
        """
        self._connect(user_id, (email, password))

    # ── Reads ─────────────────────────────────────────────────────────────

    def fetch_activities(self, user_id: str, count: int = 10) -> List[Activity]:
        return self._run(
            user_id,
            "fetch activities",
            lambda client: [_to_activity(a) for a in sdk.get_activities(client, 0, count)],
            cache_resource="activities",
            cache_params=count,
        )

    def fetch_calendar(
        self, user_id: str, year: Optional[int] = None, month: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Get the raw calendar feed for a month.

        Args:
            year: Defaults to the current year
            month: ZERO-based month (0 = January); defaults to the current month
        """
        today = self._today()
        year = today.year if year is None else year
        month = today.month - 1 if month is None else month
        return self._run(
            user_id,
            "fetch calendar",
            lambda client: sdk.get_calendar(client, year, month),
            cache_resource="calendar",
            cache_params=(year, month),
        )

    def fetch_daily_stats(self, user_id: str) -> DailyStats:
        """
        Get today's stress, body battery and step counts.

        Each metric is fetched on its own; a failing metric is left as None
        instead of failing the whole result. When every metric fails the call
        goes through the reconnect-retry and surfaces a typed error.
        """
        today = self._today()
        return self._run(
            user_id,
            "fetch daily stats",
            lambda client: self._collect_daily_stats(client, today),
            cache_resource="daily_stats",
            cache_params=today.isoformat(),
        )

    # ── Writes ────────────────────────────────────────────────────────────

    def push_workout(
        self, user_id: str, workout: Workout, supports_structured_swim: bool = True
    ) -> PushResult:
        """
        Create the workout in the Garmin library, then schedule it if dated.

        A scheduling failure does not undo the push; it is reported in
        ``PushResult.schedule_error`` with ``scheduled=False``.

        Raises:
            UnsupportedOperation: Swimming workout on a device without
                structured swim support (carries the text rendition)
        """
        if workout.sport_type == "swimming" and not supports_structured_swim:
            raise UnsupportedOperation(
                self.vendor,
                "Structured swim workouts are not supported on this device.",
                fallback_description=to_description(
                    workout, default_repeat_count=self.settings.default_repeat_count,
                ),
            )

        payload = to_garmin_workout(
            workout,
            pool_length=self.settings.pool_length_meters,
            default_repeat_count=self.settings.default_repeat_count,
        )
        logger.info("[Garmin] Pushing workout '%s' for user %s", workout.name, user_id)
        created = self._run(
            user_id,
            "push workout",
            lambda client: sdk.add_workout(client, payload),
            mutates=True,
        )
        workout_id = created.get("workoutId")
        if not workout_id:
            raise VendorUnavailable(self.vendor, "push workout", "no workoutId in response")

        result = PushResult(vendor_workout_id=str(workout_id))
        if workout.scheduled_date is None:
            return result

        try:
            self.schedule_workout(user_id, str(workout_id), workout.scheduled_date)
        except SyncError as e:
            logger.warning("[Garmin] Workout %s pushed but scheduling failed: %s", workout_id, e)
            result.schedule_error = e.message
            return result

        result.scheduled = True
        result.scheduled_date = workout.scheduled_date.isoformat()
        return result

    def schedule_workout(self, user_id: str, workout_id: str, day: date) -> RescheduleResult:
        """Bind an already pushed workout to a calendar date."""
        self._run(
            user_id,
            "schedule workout",
            lambda client: sdk.schedule_workout(client, workout_id, day),
            mutates=True,
        )
        logger.info("[Garmin] Workout %s scheduled for %s", workout_id, day)
        return RescheduleResult(scheduled_date=day.isoformat())

    def reschedule_workout(
        self,
        user_id: str,
        workout_id: str,
        new_date: date,
        current_date: Optional[date] = None,
    ) -> RescheduleResult:
        """
        Move a scheduled workout: delete its schedule entry, schedule the new date.

        The entry is searched in the month of ``current_date`` (or this month)
        and the month after.

        Raises:
            NotFound: No schedule entry for this workout in the scanned months
        """
        anchor = current_date or self._today()
        # Survives the retry: a deleted entry is not searched for again.
        progress = {"deleted": False}

        def reschedule(client):
            if not progress["deleted"]:
                entry = self._find_schedule(client, workout_id, anchor, current_date)
                if entry is None:
                    raise NotFound(
                        self.vendor,
                        f"No single scheduled occurrence of workout {workout_id} found in the calendar.",
                        hint="Schedule the workout first, or pass the current date of the occurrence to move.",
                    )
                logger.info("[Garmin] Removing schedule %s (%s)", entry["id"], entry.get("date"))
                sdk.delete_schedule(client, entry["id"])
                progress["deleted"] = True
            sdk.schedule_workout(client, workout_id, new_date)

        self._run(user_id, "reschedule workout", reschedule, mutates=True)
        logger.info("[Garmin] Workout %s rescheduled to %s", workout_id, new_date)
        return RescheduleResult(scheduled_date=new_date.isoformat())

    def delete_workout(self, user_id: str, workout_id: str) -> None:
        """Delete the workout definition (and with it every schedule entry)."""
        self._run(
            user_id,
            "delete workout",
            lambda client: sdk.delete_workout(client, workout_id),
            mutates=True,
            retry_only_on_auth=True,
        )
        logger.info("[Garmin] Workout %s deleted", workout_id)

    # ── Internal helpers ──────────────────────────────────────────────────

    def _find_schedule(
        self, client, workout_id: str, anchor: date, current_date: Optional[date]
    ) -> Optional[dict]:
        year, month = anchor.year, anchor.month - 1
        feeds = [sdk.get_calendar(client, year, month)]
        try:
            feeds.append(sdk.get_calendar(client, *next_month(year, month)))
        except Exception as e:
            if is_auth_error(e):
                raise
            logger.warning("[Garmin] Next month calendar unavailable: %s", e)
        return resolver.find_garmin_schedule(feeds, workout_id, current_date)

    def _collect_daily_stats(self, client, today: date) -> DailyStats:
        stats = DailyStats()
        errors = []

        def attempt(metric, fetch):
            try:
                return fetch()
            except Exception as e:
                logger.warning("[Garmin] %s fetch failed: %s", metric, e)
                errors.append(e)
                return None

        summary = attempt("Steps", lambda: sdk.get_user_summary(client, today))
        if summary:
            stats.steps = summary.get("totalSteps")

        yesterday = attempt("Steps yesterday", lambda: sdk.get_user_summary(client, today - timedelta(days=1)))
        if yesterday:
            stats.steps_yesterday = yesterday.get("totalSteps")

        stress = attempt("Stress", lambda: sdk.get_stress_data(client, today))
        if stress:
            stats.stress_level = _stress_level(stress)

        battery = attempt("Body battery", lambda: sdk.get_body_battery(client, today))
        if battery:
            stats.body_battery = body_battery_level(battery)

        # Isolation covers partial failure only; all four failing is an outage.
        if len(errors) == 4:
            raise errors[0]
        return stats


# ── Module-level mappers ─────────────────────────────────────────────────


def _to_activity(raw: dict) -> Activity:
    return Activity(
        activity_id=raw.get("activityId"),
        name=raw.get("activityName") or "Workout",
        activity_type=(raw.get("activityType") or {}).get("typeKey") or "unknown",
        distance=raw.get("distance") or 0,
        duration=raw.get("duration") or 0,
        start_time_local=raw.get("startTimeLocal") or "",
        average_hr=raw.get("averageHR") or None,
        max_hr=raw.get("maxHR") or None,
        average_pace=speed_to_pace(raw.get("averageSpeed")),
        start_latitude=raw.get("startLatitude") or None,
        start_longitude=raw.get("startLongitude") or None,
        location_name=raw.get("locationName") or None,
    )


def _stress_level(report: dict) -> Optional[int]:
    # Garmin reports 0 or -1 when there is no stress data for the day.
    level = report.get("avgStressLevel", report.get("averageStressLevel"))
    if level is None or level <= 0:
        return None
    return level


def body_battery_level(report: Any) -> Optional[int]:
    """
    Current body battery from a Garmin body battery report.

    Uses the latest reading when the report has one, otherwise estimates
    100 + charged - drained, clamped to 0..100.
    """
    day = report[0] if isinstance(report, list) and report else report
    if not isinstance(day, dict):
        return None

    stat_list = day.get("bodyBatteryStatList") or []
    if stat_list and stat_list[-1].get("bodyBatteryLevel") is not None:
        return stat_list[-1]["bodyBatteryLevel"]

    values = day.get("bodyBatteryValuesArray") or []
    if values and isinstance(values[-1], list) and len(values[-1]) >= 2 and values[-1][1] is not None:
        return values[-1][1]

    charged, drained = day.get("charged"), day.get("drained")
    if charged is not None and drained is not None:
        return max(0, min(100, 100 + charged - drained))
    return None
