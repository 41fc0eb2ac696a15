"""
Short-lived read cache for mockup polling.

Clients poll the status and detail endpoints every couple of seconds while a
job runs. Entries are keyed by (user_id, mockup_id, view) and dropped on every
write to that mockup, so a TTL miss is the only way a read can be stale.
"""
import logging
import time
from typing import Any, Dict, Optional, Set, Tuple

from config.app_config import MOCKUP_CACHE_TTL

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str, str]


class MockupCache:
    def __init__(self, ttl: float = MOCKUP_CACHE_TTL, max_entries: int = 1000):
        self.ttl = ttl
        self.max_entries = max_entries
        self._cache: Dict[CacheKey, Dict[str, Any]] = {}
        self._keys_by_mockup: Dict[str, Set[CacheKey]] = {}
        self._stats = {"hits": 0, "misses": 0, "sets": 0, "invalidations": 0}

    @staticmethod
    def make_key(user_id: str, mockup_id: str, view: str) -> CacheKey:
        return (str(user_id), str(mockup_id), view)

    def get(self, user_id: str, mockup_id: str, view: str, default=None) -> Any:
        key = self.make_key(user_id, mockup_id, view)
        entry = self._cache.get(key)
        if entry is not None:
            if entry["expires_at"] > time.monotonic():
                self._stats["hits"] += 1
                return entry["value"]
            self._drop(key)

        self._stats["misses"] += 1
        return default

    def set(self, user_id: str, mockup_id: str, view: str, value: Any, ttl: Optional[float] = None) -> None:
        if (ttl if ttl is not None else self.ttl) <= 0:
            return
        key = self.make_key(user_id, mockup_id, view)
        now = time.monotonic()
        self._cache[key] = {
            "value": value,
            "expires_at": now + (ttl if ttl is not None else self.ttl),
            "created_at": now,
        }
        self._keys_by_mockup.setdefault(key[1], set()).add(key)
        self._stats["sets"] += 1

        if len(self._cache) > self.max_entries:
            self._evict_oldest()

    def invalidate(self, mockup_id: str) -> None:
        """Drop every cached view of a mockup, for every user."""
        keys = self._keys_by_mockup.pop(str(mockup_id), set())
        for key in keys:
            self._cache.pop(key, None)
        if keys:
            self._stats["invalidations"] += 1
            logger.debug(f"Invalidated {len(keys)} cached view(s) of mockup {mockup_id}")

    def clear(self) -> None:
        count = len(self._cache)
        self._cache.clear()
        self._keys_by_mockup.clear()
        logger.info(f"Mockup cache cleared: {count} entries removed")

    def get_stats(self) -> Dict[str, Any]:
        total = self._stats["hits"] + self._stats["misses"]
        hit_rate = (self._stats["hits"] / total * 100) if total > 0 else 0
        return {"entries": len(self._cache), "hit_rate": round(hit_rate, 2), **self._stats}

    def _drop(self, key: CacheKey) -> None:
        self._cache.pop(key, None)
        keys = self._keys_by_mockup.get(key[1])
        if keys is not None:
            keys.discard(key)
            if not keys:
                del self._keys_by_mockup[key[1]]

    def _evict_oldest(self) -> None:
        entries_to_remove = max(1, len(self._cache) // 10)
        oldest = sorted(self._cache.items(), key=lambda item: item[1]["created_at"])
        for key, _ in oldest[:entries_to_remove]:
            self._drop(key)
        logger.debug(f"Evicted {entries_to_remove} mockup cache entries")


# Global cache instance
mockup_cache = MockupCache()
