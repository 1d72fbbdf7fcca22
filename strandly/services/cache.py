"""In-process TTL cache for CMS reads."""

import json
import logging
import time
from collections import OrderedDict
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from strandly.config import Config, get_config

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    collection: str
    expires_at: float
    value: Any


class ResponseCache:
    """Caches decoded CMS responses for a short time.

    Entries are grouped by collection so a CMS publish event can drop every
    cached read of that collection at once. For multi-process deployments a
    shared cache would be needed; each process here keeps its own.
    """

    def __init__(
        self,
        ttl_seconds: int = 60,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(collection: str, params: Mapping[str, Any] | None = None) -> str:
        """Build a cache key that does not depend on parameter order."""
        payload = json.dumps(params or {}, sort_keys=True, default=str)
        return f"{collection}:{payload}"

    def get(self, key: str) -> Any | None:
        """Return a cached value, or None on miss or expiry."""
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None

        if entry.expires_at <= self._clock():
            del self._entries[key]
            self.misses += 1
            return None

        self.hits += 1
        return entry.value

    def set(self, collection: str, key: str, value: Any) -> None:
        """Store a value under ``key`` for the configured TTL."""
        if self.ttl_seconds <= 0:
            return

        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Cache full, evicted {evicted}")

        self._entries[key] = _Entry(
            collection=collection,
            expires_at=self._clock() + self.ttl_seconds,
            value=value,
        )

    def invalidate(self, collection: str) -> int:
        """Drop every cached read of a collection.

        Returns:
            Number of entries removed
        """
        keys = [k for k, e in self._entries.items() if e.collection == collection]
        for key in keys:
            del self._entries[key]
        if keys:
            logger.info(f"Invalidated {len(keys)} cached entries for {collection}")
        return len(keys)

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def cleanup_expired(self) -> int:
        """Remove expired entries.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def stats(self) -> dict[str, int]:
        return {"hits": self.hits, "misses": self.misses, "size": len(self._entries)}


# Global cache instance
_response_cache: ResponseCache | None = None


def get_response_cache(cfg: Config | None = None) -> ResponseCache:
    """Get the process-wide ResponseCache, creating it from config on first use.

    Returns:
        ResponseCache singleton
    """
    global _response_cache
    if _response_cache is None:
        if cfg is None:
            cfg = get_config()
        _response_cache = ResponseCache(
            ttl_seconds=cfg.cache_ttl_seconds, max_entries=cfg.cache_max_entries
        )
    return _response_cache
