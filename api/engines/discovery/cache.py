"""
Search Session Cache

Exact-key memo of search pages. Entries older than the TTL are treated as
absent (not purged on read); inserting a new key beyond capacity evicts the
single entry with the oldest timestamp.
"""
import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from api.core.config import settings

from .schemas import SearchFilters, SearchResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """Cached page of search results"""

    key: str
    results: List[SearchResult]
    timestamp: float
    total_count: Optional[int] = None


class SearchSessionCache:
    """TTL and capacity bounded search result cache, safe for concurrent use"""

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        max_entries: Optional[int] = None,
        clock: Optional[Callable[[], float]] = None
    ):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.cache_ttl
        self.max_entries = max_entries if max_entries is not None else settings.search_cache_max_entries
        self.clock = clock or time.monotonic
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

        logger.info(f"SearchSessionCache initialized - TTL: {self.ttl_seconds}s, capacity: {self.max_entries}")

    @staticmethod
    def make_key(filters: SearchFilters, page: int, page_size: int) -> str:
        """Stable signature of (filters, page, page_size)"""
        payload = json.dumps(
            {"filters": filters.model_dump(mode="json"), "page": page, "page_size": page_size},
            sort_keys=True,
            separators=(",", ":"),
        )
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the entry for key, or None if absent or older than the TTL"""
        with self._lock:
            entry = self._entries.get(key)

        if entry is None:
            return None

        if self.clock() - entry.timestamp >= self.ttl_seconds:
            logger.debug(f"Cache entry {key[:12]} is stale")
            return None

        return entry

    def put(self, key: str, results: List[SearchResult], total_count: Optional[int] = None) -> CacheEntry:
        """Store results under key, evicting the oldest entry when over capacity"""
        entry = CacheEntry(key=key, results=list(results), timestamp=self.clock(), total_count=total_count)

        with self._lock:
            self._entries[key] = entry
            if len(self._entries) > self.max_entries:
                oldest_key = min(self._entries, key=lambda k: self._entries[k].timestamp)
                del self._entries[oldest_key]
                logger.debug(f"Evicted cache entry {oldest_key[:12]}")

        return entry

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
