"""In-memory TTL cache for search result sets.

Scraper searches take tens of seconds, so identical (query, max_results)
requests within the TTL window are answered from memory. Entries are replaced
whole; the oldest entry is evicted once the cache exceeds its size limit.
"""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

from models.video import VideoRecord

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Cached result set with its absolute expiry time."""

    results: list[VideoRecord]
    expires_at: float


class SearchCache:
    """Memoizes recent search result sets keyed by query and result limit."""

    DEFAULT_TTL_SECONDS = 3600  # 1 hour
    DEFAULT_MAX_ENTRIES = 100

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the search cache.

        Args:
            ttl_seconds: Lifetime of a cached result set
            max_entries: Maximum number of cached queries before eviction
            enabled: When False every lookup misses and nothing is stored
            clock: Time source, injectable for tests
        """
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.enabled = enabled
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

        # Statistics tracking
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(query: str, max_results: int) -> str:
        """Cache key: case-insensitive query plus result limit."""
        return f"{query.strip().lower()}_{max_results}"

    def get(self, query: str, max_results: int) -> Optional[list[VideoRecord]]:
        """Return cached results, or None on a miss or expired entry."""
        if not self.enabled:
            return None

        key = self.make_key(query, max_results)
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None

        if entry.expires_at <= self._clock():
            # Expired, remove it
            del self._entries[key]
            self.misses += 1
            return None

        self.hits += 1
        logger.debug(f"[SearchCache] Hit for '{query}' (hit rate: {self.hit_rate:.1%})")
        return list(entry.results)

    def set(self, query: str, max_results: int, results: list[VideoRecord]) -> None:
        """Store a result set, evicting the oldest entries past the size limit."""
        if not self.enabled:
            return

        key = self.make_key(query, max_results)
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(
            results=list(results),
            expires_at=self._clock() + self.ttl_seconds,
        )

        while len(self._entries) > self.max_entries:
            evicted_key, _ = self._entries.popitem(last=False)
            logger.debug(f"[SearchCache] Evicted oldest entry '{evicted_key}'")

    def clear(self) -> int:
        """Clear all cached entries.

        Returns:
            Number of entries that were cleared
        """
        count = len(self._entries)
        self._entries.clear()
        self.hits = 0
        self.misses = 0
        return count

    def clear_expired(self) -> int:
        """Drop expired entries. Returns count cleared."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def hit_rate(self) -> float:
        """Hit rate as a float between 0.0 and 1.0."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def get_stats(self) -> dict:
        return {
            "enabled": self.enabled,
            "entries": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hit_rate,
            "ttl_seconds": self.ttl_seconds,
            "max_entries": self.max_entries,
        }


def load_search_cache_from_config(config: dict) -> SearchCache:
    """Build a SearchCache from the application config."""
    return SearchCache(
        ttl_seconds=config.get("search_cache_ttl_seconds", SearchCache.DEFAULT_TTL_SECONDS),
        max_entries=config.get("search_cache_max_entries", SearchCache.DEFAULT_MAX_ENTRIES),
        enabled=config.get("search_cache_enabled", True),
    )
