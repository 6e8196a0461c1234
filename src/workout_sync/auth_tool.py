"""
Connection tools for the workout sync MCP server.

Connect, disconnect and inspect vendor accounts.
"""

import asyncio
import json
import logging

from fastmcp import Context

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

from workout_sync.client_factory import error_response, get_engine, get_user_id
from workout_sync.errors import SyncError


def register_tools(app):
    """Register connection tools with the MCP app."""

    @app.tool()
    async def connect_garmin(email: str, password: str, ctx: Context) -> str:
        """
        Connect a Garmin Connect account.

        Logs in with the Garmin credentials. They are kept in memory only,
        to silently re-login when the Garmin session expires.

        Args:
            email: Garmin Connect account email
            password: Garmin Connect account password

        Returns:
            JSON with connection result or error
        """
        engine = get_engine()
        user_id = get_user_id(ctx)
        try:
            await asyncio.to_thread(engine.garmin.connect, user_id, email, password)
        except SyncError as e:
            return error_response(e)
        engine.store.mark(user_id, "garmin", True, account=email)
        return json.dumps({"success": True, "vendor": "garmin", "account": email}, indent=2)

    @app.tool()
    async def connect_intervals(athlete_id: str, api_key: str, ctx: Context) -> str:
        """
        Connect an Intervals.icu account.

        Args:
            athlete_id: Intervals.icu athlete id (e.g. "i123456")
            api_key: Personal API key from Intervals.icu settings

        Returns:
            JSON with connection result or error
        """
        engine = get_engine()
        user_id = get_user_id(ctx)
        try:
            await asyncio.to_thread(engine.intervals.connect, user_id, athlete_id, api_key)
        except SyncError as e:
            return error_response(e)
        engine.store.mark(user_id, "intervals", True, account=athlete_id)
        return json.dumps({"success": True, "vendor": "intervals", "account": athlete_id}, indent=2)

    @app.tool()
    async def disconnect_vendor(vendor: str, ctx: Context) -> str:
        """
        Disconnect a vendor account and forget its cached credentials.

        Args:
            vendor: "garmin" or "intervals"
        """
        engine = get_engine()
        user_id = get_user_id(ctx)
        try:
            vendor_sync = engine.vendor(vendor)
        except ValueError as e:
            return error_response(e)
        vendor_sync.disconnect(user_id)
        engine.store.mark(user_id, vendor_sync.vendor, False)
        return json.dumps({"success": True, "vendor": vendor_sync.vendor}, indent=2)

    @app.tool()
    async def get_connection_status(ctx: Context) -> str:
        """
        Show which vendors are connected for this session.

        ``session_live`` is false after a server restart until the next
        connect; ``previously_connected`` tells the account was connected before.

        Returns:
            JSON with per-vendor status
        """
        engine = get_engine()
        user_id = get_user_id(ctx)
        markers = engine.store.load(user_id)
        status = {}
        for vendor_sync in (engine.garmin, engine.intervals):
            marker = markers.get(vendor_sync.vendor) or {}
            status[vendor_sync.vendor] = {
                "session_live": vendor_sync.is_connected(user_id),
                "previously_connected": bool(marker.get("connected")),
                "account": marker.get("account"),
            }
        return json.dumps(status, indent=2)

    return app
