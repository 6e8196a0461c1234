"""
Shared plumbing for per-vendor sync operations.

Every vendor call runs under the same policy: ensure a live session, try the
call, and on failure evict the session, reconnect once from cached
credentials, and retry exactly once. No loops, no backoff; vendor calls are
user-triggered so one retry keeps latency predictable.
"""

import logging
from typing import Any, Callable, Hashable, Optional

from workout_sync.cache import ResultCache
from workout_sync.config import SyncSettings
from workout_sync.errors import (
    AuthExpired,
    NotFound,
    SyncError,
    VendorUnavailable,
    is_auth_error,
    is_not_found_error,
)
from workout_sync.sessions import Credentials, SessionManager

logger = logging.getLogger(__name__)


class VendorSync:
    """Base class for vendor operation sets (GarminSync, IntervalsSync)."""

    vendor = ""
    tag = ""

    def __init__(
        self,
        settings: SyncSettings,
        cache: ResultCache,
        sessions: SessionManager,
    ):
        self.settings = settings
        self.cache = cache
        self.sessions = sessions

    # ── Session surface ───────────────────────────────────────────────────

    def _connect(self, user_id: str, credentials: Credentials) -> Any:
        handle = self.sessions.connect(user_id, credentials)
        self.cache.invalidate_user(user_id)
        return handle

    def disconnect(self, user_id: str) -> None:
        self.sessions.disconnect(user_id)
        self.cache.invalidate_user(user_id)

    def is_connected(self, user_id: str) -> bool:
        return self.sessions.is_connected(user_id)

    # ── Operation runner ──────────────────────────────────────────────────

    def _run(
        self,
        user_id: str,
        action: str,
        call: Callable[[Any], Any],
        cache_resource: Optional[str] = None,
        cache_params: Hashable = None,
        mutates: bool = False,
        retry_only_on_auth: bool = False,
    ) -> Any:
        """
        Run ``call(handle)`` under the session/retry/cache policy.

        Args:
            user_id: Owning user
            action: Human-readable action name used in errors and logs
            call: Vendor call taking a live handle
            cache_resource: Cache reads under this resource kind (reads only)
            cache_params: Parameters distinguishing cache entries
            mutates: Invalidate the user's whole cache on success
            retry_only_on_auth: Retry only when the vendor rejected the
                session (for non-idempotent calls such as delete)

        Raises:
            SyncError: Always typed; vendor exceptions never escape
        """
        with self.sessions.user_lock(user_id):
            handle = self.sessions.ensure_session(user_id)

            key = None
            if cache_resource is not None:
                key = self.cache.key(user_id, f"{self.vendor}:{cache_resource}", cache_params)
                cached = self.cache.get(key)
                if cached is not ResultCache.MISS:
                    logger.debug("[%s] %s cache hit for user %s", self.tag, cache_resource, user_id)
                    return cached

            try:
                result = call(handle)
            except SyncError:
                raise
            except Exception as e:
                if is_not_found_error(e):
                    raise NotFound(self.vendor, f"Not found while trying to {action}.") from e
                if retry_only_on_auth and not is_auth_error(e):
                    logger.warning("[%s] %s failed for user %s: %s", self.tag, action, user_id, e)
                    raise VendorUnavailable(self.vendor, action, str(e)) from e
                result = self._retry_after_reconnect(user_id, action, call, e)

            self.sessions.touch(user_id)
            if key is not None:
                self.cache.set(key, result)
            if mutates:
                self.cache.invalidate_user(user_id)
            return result

    def _retry_after_reconnect(
        self, user_id: str, action: str, call: Callable[[Any], Any], error: Exception,
    ) -> Any:
        logger.warning("[%s] %s failed, attempting reconnect: %s", self.tag, action, error)
        self.sessions.evict(user_id)
        handle = self.sessions.reconnect(user_id)
        if handle is None:
            raise AuthExpired(self.vendor) from error

        try:
            return call(handle)
        except SyncError:
            raise
        except Exception as retry_error:
            logger.error("[%s] Retry after reconnect also failed: %s", self.tag, retry_error)
            if is_not_found_error(retry_error):
                raise NotFound(self.vendor, f"Not found while trying to {action}.") from retry_error
            raise VendorUnavailable(self.vendor, action, str(retry_error)) from retry_error
