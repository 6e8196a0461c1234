"""
Read tools for the workout sync MCP server.

Recent activities, calendar feeds and daily health stats. Results are
served from the engine's 5 minute cache when fresh.
"""

import asyncio
import json

from fastmcp import Context

from workout_sync.client_factory import error_response, get_engine, get_user_id
from workout_sync.errors import SyncError


def register_tools(app):
    """Register read tools with the MCP app."""

    @app.tool()
    async def get_activities(ctx: Context, vendor: str = "garmin", count: int = 10) -> str:
        """
        Get recent completed activities.

        Args:
            vendor: "garmin" or "intervals" (default: garmin)
            count: Number of activities, newest first (default: 10, max: 100)

        Returns:
            JSON list of activities with distance (m), duration (s),
            average pace (sec/km) and heart rate
        """
        user_id = get_user_id(ctx)
        try:
            vendor_sync = get_engine().vendor(vendor)
            activities = await asyncio.to_thread(vendor_sync.fetch_activities, user_id, min(count, 100))
        except (SyncError, ValueError) as e:
            return error_response(e)

        return json.dumps({
            "vendor": vendor_sync.vendor,
            "count": len(activities),
            "activities": [a.to_dict() for a in activities],
        }, indent=2)

    @app.tool()
    async def get_calendar(
        ctx: Context,
        vendor: str = "garmin",
        year: int = None,
        month: int = None,
    ) -> str:
        """
        Get the vendor calendar feed.

        Args:
            vendor: "garmin" or "intervals" (default: garmin)
            year: Calendar year (default: current year)
            month: Calendar month, 1-12 (default: current month). For
                Intervals.icu without a month, the last 7 and next 90 days;
                a year without a month is rejected there.

        Returns:
            JSON with the raw vendor calendar (Garmin calendarItems or
            Intervals.icu events)
        """
        user_id = get_user_id(ctx)
        month0 = month - 1 if month is not None else None
        try:
            if month0 is not None and not 0 <= month0 <= 11:
                raise ValueError("month must be between 1 and 12")
            vendor_sync = get_engine().vendor(vendor)
            calendar = await asyncio.to_thread(vendor_sync.fetch_calendar, user_id, year, month0)
        except (SyncError, ValueError) as e:
            return error_response(e)

        return json.dumps({"vendor": vendor_sync.vendor, "calendar": calendar}, indent=2)

    @app.tool()
    async def get_daily_stats(ctx: Context) -> str:
        """
        Get today's Garmin health stats.

        Each value is null when Garmin has no data for it (yet).

        Returns:
            JSON with stress_level, body_battery, steps and steps_yesterday
        """
        user_id = get_user_id(ctx)
        try:
            stats = await asyncio.to_thread(get_engine().garmin.fetch_daily_stats, user_id)
        except SyncError as e:
            return error_response(e)
        return json.dumps(stats.to_dict(), indent=2)

    return app
