"""
Per-process TTL cache for read-heavy vendor data.

Keys are (user_id, resource_kind, params). Entries are replaced atomically
(one dict assignment of an immutable tuple), so readers never see a
half-written entry.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str, Hashable]

_MISS = object()


class ResultCache:
    """TTL key→value cache with per-user invalidation."""

    MISS = _MISS

    def __init__(self, ttl_seconds: float = 300, clock: Callable[[], float] = time.monotonic):
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[CacheKey, Tuple[Any, float]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def key(user_id: str, resource: str, params: Hashable = None) -> CacheKey:
        return (str(user_id), resource, params)

    def get(self, key: CacheKey) -> Any:
        """
        Look up a value.

        Returns:
            The cached value, or ``ResultCache.MISS`` if absent or older than the TTL
        """
        entry = self._entries.get(key)
        if entry is None:
            return _MISS
        value, stored_at = entry
        if self._clock() - stored_at > self._ttl:
            with self._lock:
                # Only drop the entry we looked at, not a fresher replacement.
                if self._entries.get(key) is entry:
                    del self._entries[key]
            return _MISS
        logger.debug("Cache hit for %s/%s", key[0], key[1])
        return value

    def set(self, key: CacheKey, value: Any) -> None:
        entry = (value, self._clock())
        with self._lock:
            self._entries[key] = entry

    def invalidate_user(self, user_id: str) -> int:
        """
        Drop every entry belonging to a user, across all resource kinds.

        Returns:
            Number of entries removed
        """
        user_id = str(user_id)
        with self._lock:
            stale = [k for k in self._entries if k[0] == user_id]
            for k in stale:
                del self._entries[k]
        if stale:
            logger.info("Invalidated %d cache entries for user %s", len(stale), user_id)
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
