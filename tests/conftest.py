"""
Shared pytest fixtures for workout sync testing.
"""
import pytest
from datetime import date
from unittest.mock import Mock, patch

# Monkey-patch: production uses fastmcp.FastMCP, tests use mcp.server.fastmcp.
# Patch fastmcp.Context to match mcp.server.fastmcp.Context so tools work
# with the test FastMCP.
import fastmcp
from mcp.server.fastmcp import server as mcp_server
fastmcp.Context = mcp_server.Context

from mcp.server.fastmcp import FastMCP

from workout_sync.cache import ResultCache
from workout_sync.config import SyncSettings
from workout_sync.garmin_sync import GarminSync
from workout_sync.intervals_sync import IntervalsSync
from workout_sync.sessions import SessionManager

TEST_USER = "user-1"
TODAY = date(2026, 2, 20)


def get_tool_result_text(result):
    """Extract text from tool result.

    FastMCP call_tool returns a tuple (list_of_TextContent, metadata_dict).
    This helper extracts the text from the first TextContent item.
    """
    # Handle tuple return: (content_list, metadata)
    if isinstance(result, tuple) and len(result) > 0:
        result = result[0]
    if isinstance(result, list) and len(result) > 0:
        if hasattr(result[0], 'text'):
            return result[0].text
    return str(result)


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return SyncSettings()


@pytest.fixture
def cache(clock):
    return ResultCache(ttl_seconds=300, clock=clock)


@pytest.fixture
def garmin_handle():
    """Stand-in for a logged-in garminconnect.Garmin."""
    return Mock(name="garmin_handle")


@pytest.fixture
def garmin_login(garmin_handle):
    return Mock(return_value=garmin_handle)


@pytest.fixture
def garmin(settings, cache, clock, garmin_login):
    """GarminSync with a connected TEST_USER and a mocked login."""
    sessions = SessionManager(
        "garmin",
        login=garmin_login,
        probe=Mock(),
        liveness_window=600,
        clock=clock,
    )
    sync = GarminSync(settings, cache, sessions=sessions, today=lambda: TODAY)
    sync.connect(TEST_USER, "runner@example.com", "secret")
    return sync


@pytest.fixture
def intervals_handle():
    return Mock(name="intervals_client", athlete_id="i123")


@pytest.fixture
def intervals_login(intervals_handle):
    return Mock(return_value=intervals_handle)


@pytest.fixture
def intervals(settings, cache, clock, intervals_login):
    """IntervalsSync with a connected TEST_USER and a mocked login."""
    sessions = SessionManager(
        "intervals",
        login=intervals_login,
        probe=Mock(),
        liveness_window=600,
        clock=clock,
    )
    sync = IntervalsSync(settings, cache, sessions=sessions, today=lambda: TODAY)
    sync.connect(TEST_USER, "i123", "api-key")
    return sync


@pytest.fixture
def mock_engine():
    """Engine with mocked vendor operation sets, for tool tests."""
    engine = Mock()
    engine.garmin = Mock(vendor="garmin")
    engine.intervals = Mock(vendor="intervals")
    vendors = {"garmin": engine.garmin, "intervals": engine.intervals}

    def vendor(name):
        if name not in vendors:
            raise ValueError(f"Unknown vendor '{name}'. Use 'garmin' or 'intervals'.")
        return vendors[name]

    engine.vendor = Mock(side_effect=vendor)
    engine.store = Mock()
    engine.store.load = Mock(return_value={})
    return engine


@pytest.fixture(autouse=True)
def mock_tool_context(mock_engine):
    """Auto-mock get_engine and get_user_id in all tool modules.

    Tool functions then see the mock engine and a fixed user id instead of
    building real vendor sessions from the request context.

    Yields the mock engine so tests can set return values and side effects.
    """
    modules_to_patch = [
        "workout_sync.auth_tool",
        "workout_sync.activities",
        "workout_sync.workouts",
    ]

    patchers = []
    for module in modules_to_patch:
        for name, value in (
            ("get_engine", Mock(return_value=mock_engine)),
            ("get_user_id", Mock(return_value=TEST_USER)),
        ):
            p = patch(f"{module}.{name}", value)
            p.start()
            patchers.append(p)

    yield mock_engine

    for p in patchers:
        p.stop()


def create_test_app(module):
    """Helper to create a FastMCP app with a specific module registered."""
    app = FastMCP(f"Test Workout Sync {module.__name__}")
    app = module.register_tools(app)
    return app
