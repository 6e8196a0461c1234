"""
Garmin Connect SDK functions.

Each function maps 1:1 to a Garmin Connect endpoint and takes an
authenticated ``garminconnect.Garmin`` handle. No retry, no caching.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from garminconnect import Garmin

CALENDAR_URL = "/calendar-service/year/{year}/month/{month}"
WORKOUT_URL = "/workout-service/workout"
SCHEDULE_URL = "/workout-service/schedule"


def login(email: str, password: str) -> Garmin:
    """
    Authenticate with Garmin Connect.

    Returns:
        Logged-in Garmin handle

    Raises:
        garminconnect.GarminConnectAuthenticationError: On bad credentials
    """
    client = Garmin(email, password)
    client.login()
    return client


def get_user_profile(client: Garmin) -> Dict[str, Any]:
    """Cheap authenticated call, used as the session liveness probe."""
    return client.get_user_profile()


def get_activities(client: Garmin, start: int = 0, limit: int = 10) -> List[Dict[str, Any]]:
    """
    List recent activities, newest first.

    Returns:
        Raw activity summaries (activityId, activityName, activityType{typeKey},
        distance, duration, startTimeLocal, averageHR, maxHR, averageSpeed, ...)
    """
    return client.get_activities(start, limit) or []


def get_calendar(client: Garmin, year: int, month: int) -> Dict[str, Any]:
    """
    Get the calendar feed for a month.

    GET calendar-service/year/{year}/month/{month}

    Args:
        year: Four digit year
        month: ZERO-based month (0 = January), as the endpoint expects

    Returns:
        {calendarItems: [{id, itemType, workoutId, date, title, ...}], ...}
    """
    return client.connectapi(CALENDAR_URL.format(year=year, month=month)) or {}


def add_workout(client: Garmin, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a structured workout in the workout library.

    POST workout-service/workout

    Returns:
        Created workout, including its ``workoutId``
    """
    return client.connectapi(WORKOUT_URL, method="POST", json=payload) or {}


def schedule_workout(client: Garmin, workout_id: str, day: date) -> Optional[Dict[str, Any]]:
    """
    Bind a workout to a calendar date.

    POST workout-service/schedule/{workoutId}
    """
    return client.connectapi(
        f"{SCHEDULE_URL}/{workout_id}",
        method="POST",
        json={"date": day.isoformat()},
    )


def delete_schedule(client: Garmin, schedule_id: str) -> None:
    """
    Remove a schedule entry (the workout itself stays in the library).

    DELETE workout-service/schedule/{scheduleId}
    """
    client.connectapi(f"{SCHEDULE_URL}/{schedule_id}", method="DELETE")


def delete_workout(client: Garmin, workout_id: str) -> None:
    """
    Delete a workout definition and all of its schedule entries.

    DELETE workout-service/workout/{workoutId}
    """
    client.connectapi(f"{WORKOUT_URL}/{workout_id}", method="DELETE")


def get_user_summary(client: Garmin, day: date) -> Dict[str, Any]:
    """Daily summary: totalSteps, averageStressLevel, bodyBatteryMostRecentValue, ..."""
    return client.get_user_summary(day.isoformat()) or {}


def get_body_battery(client: Garmin, day: date) -> Any:
    """Body battery report for a single day (list of day reports)."""
    return client.get_body_battery(day.isoformat(), day.isoformat())


def get_stress_data(client: Garmin, day: date) -> Dict[str, Any]:
    """Daily stress report: avgStressLevel, maxStressLevel, stressValuesArray."""
    return client.get_stress_data(day.isoformat()) or {}
