"""
Workout sync tools for the workout sync MCP server.

Push structured workouts to Garmin Connect or Intervals.icu, and
schedule, reschedule or delete them afterwards.
"""

import asyncio
import json

from fastmcp import Context

from workout_sync.client_factory import error_response, get_engine, get_user_id
from workout_sync.errors import SyncError
from workout_sync.model import Workout
from workout_sync.utils import parse_date


def register_tools(app):
    """Register workout sync tools with the MCP app."""

    @app.tool()
    async def push_workout(
        ctx: Context,
        workout: dict,
        vendor: str = "garmin",
        supports_structured_swim: bool = True,
        age: int = None,
    ) -> str:
        """
        Push a structured workout and schedule it when it has a date.

        Args:
            workout: Workout dict with:
                - name, sportType ("running", "cycling", "swimming"), description
                - scheduledDate: YYYY-MM-DD (optional)
                - steps: list of steps, each with stepType (warmup, interval,
                  recovery, rest, cooldown, repeat), durationType (time,
                  distance, lap.button), durationValue (seconds or meters),
                  targetType (no.target, pace.zone, heart.rate.zone,
                  power.zone, cadence), targetValueLow/High (sec/km, bpm,
                  watts, rpm), repeatCount + childSteps for repeats
                Example: {"name": "5x1k", "sportType": "running",
                          "scheduledDate": "2026-03-01", "steps": [
                    {"stepType": "warmup", "durationType": "time", "durationValue": 600},
                    {"stepType": "repeat", "repeatCount": 5, "childSteps": [
                        {"stepType": "interval", "durationType": "distance", "durationValue": 1000,
                         "targetType": "pace.zone", "targetValueLow": 240, "targetValueHigh": 250},
                        {"stepType": "recovery", "durationType": "time", "durationValue": 120}]},
                    {"stepType": "cooldown", "durationType": "time", "durationValue": 300}]}
            vendor: "garmin" or "intervals" (default: garmin)
            supports_structured_swim: Set false for Garmin devices without
                structured pool workouts; swims then come back as text
            age: Athlete age, used to estimate max HR for Intervals.icu

        Returns:
            JSON with vendor_workout_id, scheduled, scheduled_date and
            schedule_error when scheduling failed after a successful push
        """
        user_id = get_user_id(ctx)
        try:
            parsed = Workout.from_dict(workout)
            parsed.validate()
            engine = get_engine()
            vendor_sync = engine.vendor(vendor)
            if vendor_sync is engine.garmin:
                result = await asyncio.to_thread(
                    vendor_sync.push_workout, user_id, parsed, supports_structured_swim,
                )
            else:
                result = await asyncio.to_thread(vendor_sync.push_workout, user_id, parsed, age=age)
        except (SyncError, ValueError) as e:
            return error_response(e)

        return json.dumps({"success": True, "vendor": vendor_sync.vendor, **result.to_dict()}, indent=2)

    @app.tool()
    async def schedule_workout(ctx: Context, workout_id: str, date: str) -> str:
        """
        Schedule an already pushed Garmin workout on a date.

        Args:
            workout_id: Garmin workout id returned by push_workout
            date: YYYY-MM-DD
        """
        user_id = get_user_id(ctx)
        try:
            result = await asyncio.to_thread(
                get_engine().garmin.schedule_workout, user_id, workout_id, parse_date(date),
            )
        except (SyncError, ValueError) as e:
            return error_response(e)
        return json.dumps({"success": True, **result.to_dict()}, indent=2)

    @app.tool()
    async def reschedule_workout(
        ctx: Context,
        workout_id: str,
        new_date: str,
        vendor: str = "garmin",
        current_date: str = None,
    ) -> str:
        """
        Move a scheduled workout to another date.

        Args:
            workout_id: Garmin workout id or Intervals.icu event id
            new_date: Target date, YYYY-MM-DD
            vendor: "garmin" or "intervals" (default: garmin)
            current_date: Date the workout is on now, YYYY-MM-DD. Picks the
                right occurrence, and for Intervals.icu finds the workout
                when the event id is unknown.
        """
        user_id = get_user_id(ctx)
        try:
            target = parse_date(new_date)
            if target is None:
                raise ValueError("new_date is required")
            result = await asyncio.to_thread(
                get_engine().vendor(vendor).reschedule_workout,
                user_id, workout_id, target, parse_date(current_date),
            )
        except (SyncError, ValueError) as e:
            return error_response(e)
        return json.dumps({"success": True, **result.to_dict()}, indent=2)

    @app.tool()
    async def delete_workout(ctx: Context, workout_id: str, vendor: str = "garmin") -> str:
        """
        Delete a workout from the vendor.

        Garmin deletes the workout and all its schedule entries; Intervals.icu
        deletes the calendar event.

        Args:
            workout_id: Garmin workout id or Intervals.icu event id
            vendor: "garmin" or "intervals" (default: garmin)
        """
        user_id = get_user_id(ctx)
        try:
            await asyncio.to_thread(get_engine().vendor(vendor).delete_workout, user_id, workout_id)
        except (SyncError, ValueError) as e:
            return error_response(e)
        return json.dumps({"success": True, "deleted": workout_id}, indent=2)

    return app
