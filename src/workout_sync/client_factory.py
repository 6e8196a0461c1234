"""
Engine factory for the workout sync MCP server.

One engine per process: vendor sessions and the read cache live in memory
and are shared by every MCP connection. Each connection is its own user,
identified by ``ctx.session_id`` (the mcp-session-id header).

Connection markers:
- Credentials are never written anywhere; a restart needs an explicit connect.
- Whether a user HAD connected a vendor is persisted per session in
  /data/workout_sync_sessions/{session_id}.json, so after a restart the user
  is told their session expired rather than that they never connected.
"""

import json
import logging
import os
import threading
from pathlib import Path
from typing import Optional

from fastmcp import Context

from workout_sync.cache import ResultCache
from workout_sync.config import SyncSettings, load_settings
from workout_sync.errors import SyncError
from workout_sync.garmin_sync import GarminSync
from workout_sync.intervals_sync import IntervalsSync

logger = logging.getLogger(__name__)

LOCAL_USER_ID = "local"
SESSION_STORE_DIR = Path(os.environ.get("WORKOUT_SYNC_SESSION_DIR", "/data/workout_sync_sessions"))


class ConnectionStore:
    """File-backed record of which vendors each user has connected."""

    def __init__(self, directory: Path = SESSION_STORE_DIR):
        self.directory = Path(directory)

    def _path(self, user_id: str) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        # Sanitize user_id to prevent path traversal
        safe_user_id = "".join(c for c in user_id if c.isalnum() or c in "-_")
        return self.directory / f"{safe_user_id}.json"

    def load(self, user_id: str) -> dict:
        try:
            path = self._path(user_id)
            if not path.exists():
                return {}
            with open(path, "r") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not read connection markers for %s: %s", user_id, e)
            return {}

    def mark(self, user_id: str, vendor: str, connected: bool, account: Optional[str] = None) -> None:
        data = self.load(user_id)
        if connected:
            data[vendor] = {"connected": True, "account": account}
        else:
            data.pop(vendor, None)
        try:
            with open(self._path(user_id), "w") as f:
                json.dump(data, f)
        except OSError as e:
            # Markers are advisory; the in-memory session is still usable.
            logger.warning("Could not save connection markers for %s: %s", user_id, e)

    def is_connected(self, user_id: str, vendor: str) -> bool:
        return bool(self.load(user_id).get(vendor, {}).get("connected"))


class SyncEngine:
    """Both vendor operation sets plus the cache and marker store they share."""

    def __init__(self, settings: Optional[SyncSettings] = None, store: Optional[ConnectionStore] = None):
        self.settings = settings or load_settings()
        self.store = store or ConnectionStore()
        self.cache = ResultCache(ttl_seconds=self.settings.cache_ttl_seconds)

        self.garmin = GarminSync(
            self.settings, self.cache, is_marked_connected=self._marker_lookup("garmin"),
        )
        self.intervals = IntervalsSync(
            self.settings, self.cache, is_marked_connected=self._marker_lookup("intervals"),
        )

    def _marker_lookup(self, vendor: str):
        return lambda user_id: self.store.is_connected(user_id, vendor)

    def vendor(self, name: str):
        """
        Look up a vendor operation set by name.

        Raises:
            ValueError: Unknown vendor
        """
        vendors = {"garmin": self.garmin, "intervals": self.intervals}
        key = (name or "").strip().lower()
        if key not in vendors:
            raise ValueError(f"Unknown vendor '{name}'. Use 'garmin' or 'intervals'.")
        return vendors[key]


_engine: Optional[SyncEngine] = None
_engine_lock = threading.Lock()


def get_engine() -> SyncEngine:
    """Return the process-wide engine, creating it on first use."""
    global _engine
    with _engine_lock:
        if _engine is None:
            _engine = SyncEngine()
        return _engine


def get_user_id(ctx: Context) -> str:
    """
    Identify the user behind an MCP request.

    Usage in tools:
        @app.tool()
        async def get_activities(ctx: Context) -> str:
            user_id = get_user_id(ctx)
            return json.dumps(get_engine().garmin.fetch_activities(user_id))

    Returns:
        The MCP session id, or "local" for stdio (single-user) usage
    """
    try:
        return ctx.session_id or LOCAL_USER_ID
    except (RuntimeError, AttributeError):
        # session_id not available (not in request context)
        return LOCAL_USER_ID


def error_response(error: Exception) -> str:
    """Render an engine or argument error as the tool's JSON result."""
    if isinstance(error, SyncError):
        return json.dumps(error.to_dict(), indent=2)
    return json.dumps({"error": str(error), "error_code": "INVALID_ARGUMENT"}, indent=2)
