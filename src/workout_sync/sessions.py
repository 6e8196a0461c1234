"""
Per-user vendor session management.

One authenticated handle per (user, vendor). The state machine is
Absent -> Authenticating -> Live -> (Dead | Absent):

- A handle used within the liveness window is trusted without a probe.
- An older handle is probed; a failed probe evicts it.
- An evicted/absent session is silently rebuilt from the credentials captured
  at the last explicit connect. Those credentials are process-local and never
  persisted, so a restart always requires an explicit reconnect.

State is only written after a vendor login has fully succeeded, so an
interrupted connect/reconnect leaves the user either Absent or Live.
"""

import logging
import threading
import time
import weakref
from typing import Any, Callable, MutableMapping, NamedTuple, Optional, Tuple

from workout_sync.errors import (
    AuthExpired,
    AuthInvalid,
    NotConnected,
    SyncError,
    VendorUnavailable,
    is_auth_error,
)

logger = logging.getLogger(__name__)

Credentials = Tuple[str, ...]


class Session(NamedTuple):
    """A live vendor handle and when it last talked to the vendor successfully."""
    handle: Any
    last_used: float


class SessionManager:
    """
    Owns vendor sessions and the in-memory credential cache for one vendor.

    Args:
        vendor: Vendor key ("garmin", "intervals")
        login: Callable taking the credential tuple and returning a live handle
        probe: Cheap authenticated call used to check liveness
        liveness_window: Seconds during which a used handle is trusted
        clock: Monotonic time source (injectable for tests)
        sessions: Storage for Session objects, keyed by user id
        credentials: Storage for credential tuples, keyed by user id
        is_marked_connected: Credential-store lookup telling whether the user
            has this vendor connected (used to tell "expired" from "never connected")
    """

    def __init__(
        self,
        vendor: str,
        login: Callable[[Credentials], Any],
        probe: Callable[[Any], Any],
        liveness_window: float = 600,
        clock: Callable[[], float] = time.monotonic,
        sessions: Optional[MutableMapping[str, Session]] = None,
        credentials: Optional[MutableMapping[str, Credentials]] = None,
        is_marked_connected: Optional[Callable[[str], bool]] = None,
    ):
        self.vendor = vendor
        self._login = login
        self._probe = probe
        self._liveness_window = liveness_window
        self._clock = clock
        self._sessions = sessions if sessions is not None else {}
        self._credentials = credentials if credentials is not None else {}
        self._is_marked_connected = is_marked_connected
        # Entries go away once no caller holds or waits on the lock.
        self._user_locks: MutableMapping[str, threading.RLock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def user_lock(self, user_id: str) -> threading.RLock:
        """Per-user mutex; operations for different users never contend."""
        with self._locks_guard:
            lock = self._user_locks.get(user_id)
            if lock is None:
                lock = self._user_locks[user_id] = threading.RLock()
            return lock

    # ── Explicit lifecycle ────────────────────────────────────────────────

    def connect(self, user_id: str, credentials: Credentials) -> Any:
        """
        Log in with fresh credentials and store the session.

        Raises:
            AuthInvalid: If the vendor rejects the credentials
            VendorUnavailable: If the vendor cannot be reached
        """
        with self.user_lock(user_id):
            try:
                handle = self._login(credentials)
            except SyncError:
                raise
            except Exception as e:
                logger.warning("[%s] Connect failed for user %s: %s", self.vendor, user_id, e)
                if is_auth_error(e):
                    raise AuthInvalid(self.vendor) from e
                raise VendorUnavailable(self.vendor, "connect", str(e)) from e

            self._store(user_id, handle, credentials)
            logger.info("[%s] Connected user %s", self.vendor, user_id)
            return handle

    def disconnect(self, user_id: str) -> None:
        """Drop the handle and cached credentials. Idempotent."""
        with self.user_lock(user_id):
            self._sessions.pop(user_id, None)
            self._credentials.pop(user_id, None)
        logger.info("[%s] Disconnected user %s", self.vendor, user_id)

    def is_connected(self, user_id: str) -> bool:
        return user_id in self._sessions

    def has_credentials(self, user_id: str) -> bool:
        return user_id in self._credentials

    # ── Liveness and reconnect ────────────────────────────────────────────

    def ensure_session(self, user_id: str) -> Any:
        """
        Return a live handle, probing and reconnecting as needed.

        Raises:
            NotConnected: No session, no cached credentials, never connected
            AuthExpired: Session died and the silent reconnect failed
        """
        with self.user_lock(user_id):
            session = self._sessions.get(user_id)
            if session is not None:
                if self._clock() - session.last_used < self._liveness_window:
                    return session.handle
                try:
                    self._probe(session.handle)
                    self.touch(user_id)
                    return session.handle
                except Exception as e:
                    logger.info("[%s] Session expired for user %s: %s", self.vendor, user_id, e)
                    self.evict(user_id)

            handle = self.reconnect(user_id)
            if handle is not None:
                return handle

            if session is not None or self.has_credentials(user_id) or self._marked_connected(user_id):
                raise AuthExpired(self.vendor)
            raise NotConnected(self.vendor)

    def reconnect(self, user_id: str) -> Optional[Any]:
        """
        Rebuild the session from cached credentials.

        Returns:
            New live handle, or None if there are no credentials or login failed
        """
        with self.user_lock(user_id):
            credentials = self._credentials.get(user_id)
            if credentials is None:
                return None
            logger.info("[%s] Re-authenticating from cached credentials for user %s", self.vendor, user_id)
            try:
                handle = self._login(credentials)
            except Exception as e:
                logger.error("[%s] Re-auth from cache failed for user %s: %s", self.vendor, user_id, e)
                return None
            self._store(user_id, handle, credentials)
            return handle

    def evict(self, user_id: str) -> None:
        """Forget the handle but keep credentials for a later reconnect."""
        self._sessions.pop(user_id, None)

    def touch(self, user_id: str) -> None:
        session = self._sessions.get(user_id)
        if session is not None:
            self._sessions[user_id] = session._replace(last_used=self._clock())

    # ── Internal helpers ──────────────────────────────────────────────────

    def _store(self, user_id: str, handle: Any, credentials: Credentials) -> None:
        self._sessions[user_id] = Session(handle=handle, last_used=self._clock())
        self._credentials[user_id] = tuple(credentials)

    def _marked_connected(self, user_id: str) -> bool:
        if self._is_marked_connected is None:
            return False
        try:
            return bool(self._is_marked_connected(user_id))
        except Exception as e:
            logger.warning("[%s] Credential store lookup failed for user %s: %s", self.vendor, user_id, e)
            return False
