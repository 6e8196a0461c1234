"""
Engine configuration.

Values come from environment variables so the same build can run locally
(stdio) and as a multi-user HTTP deployment.
"""

import os
from dataclasses import dataclass

from workout_sync.sdk.intervals import API_URL as INTERVALS_API_URL


@dataclass(frozen=True)
class SyncSettings:
    """Tunables for caching, session liveness and vendor I/O."""
    cache_ttl_seconds: float = 5 * 60
    liveness_window_seconds: float = 10 * 60
    http_timeout_seconds: float = 30
    intervals_api_url: str = INTERVALS_API_URL
    pool_length_meters: int = 25
    default_repeat_count: int = 2


def load_settings() -> SyncSettings:
    """Build settings from the environment.

    Environment variables:
    - SYNC_CACHE_TTL_SECONDS: Read cache TTL (default: 300)
    - SYNC_LIVENESS_WINDOW_SECONDS: Skip the liveness probe for sessions used
      more recently than this (default: 600)
    - SYNC_HTTP_TIMEOUT_SECONDS: Intervals.icu request timeout (default: 30)
    - INTERVALS_API_URL: Intervals.icu API root
    - SYNC_POOL_LENGTH_METERS: Pool length for swim workouts (default: 25)
    - SYNC_DEFAULT_REPEAT_COUNT: Iterations for repeats without a count (default: 2)
    """
    return SyncSettings(
        cache_ttl_seconds=float(os.environ.get("SYNC_CACHE_TTL_SECONDS", "300")),
        liveness_window_seconds=float(os.environ.get("SYNC_LIVENESS_WINDOW_SECONDS", "600")),
        http_timeout_seconds=float(os.environ.get("SYNC_HTTP_TIMEOUT_SECONDS", "30")),
        intervals_api_url=os.environ.get("INTERVALS_API_URL", INTERVALS_API_URL),
        pool_length_meters=int(os.environ.get("SYNC_POOL_LENGTH_METERS", "25")),
        default_repeat_count=int(os.environ.get("SYNC_DEFAULT_REPEAT_COUNT", "2")),
    )
