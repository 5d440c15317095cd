"""
Time-boxed memoization of ledger reads and computed reports.

Entries are keyed by a canonical JSON serialization of (query type, params)
and remember the group they belong to, so a write to one group only drops
that group's entries.
"""

import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


def make_cache_key(query_type: str, params: Dict[str, Any]) -> str:
    """Canonical, order-independent key for a query."""
    return json.dumps([query_type, params], sort_keys=True, default=str)


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    group_id: Optional[str]
    expires_at: float


class AnalyticsCache:
    """Thread-safe TTL cache with per-group invalidation."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        """
        Look up a live entry.

        Args:
            key: Cache key from make_cache_key

        Returns:
            The cached value, or None on a miss or expired entry
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug("Cache miss: %s", key)
                return None
            if entry.expires_at <= self._clock():
                del self._entries[key]
                logger.debug("Cache expired: %s", key)
                return None
        logger.debug("Cache hit: %s", key)
        return entry.value

    def set(self, key: str, value: Any, group_id: Optional[str], ttl_seconds: float) -> None:
        """Store (or wholesale replace) an entry."""
        entry = CacheEntry(value=value, group_id=group_id,
                           expires_at=self._clock() + ttl_seconds)
        with self._lock:
            self._entries[key] = entry

    def invalidate_group(self, group_id: Optional[str]) -> int:
        """
        Drop every entry belonging to a group.

        Returns:
            Number of entries removed
        """
        with self._lock:
            keys = [k for k, e in self._entries.items() if e.group_id == group_id]
            for key in keys:
                del self._entries[key]
        if keys:
            logger.debug("Invalidated %d cache entries for group %s", len(keys), group_id)
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
