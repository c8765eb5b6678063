"""Recommendation Cache - bounded, sharded, TTL-based in-process cache."""
import logging
import threading
import time
from abc import ABC, abstractmethod
from collections import Counter, OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from core.utils import RecommendationFingerprinter, shard_index

logger = logging.getLogger(__name__)

# 30 minutes in seconds
CACHE_TTL_SECONDS = 30 * 60
DEFAULT_MAX_ENTRIES = 1000
DEFAULT_SHARDS = 16


@dataclass
class CacheEntry:
    key: str
    user_id: Optional[str]
    value: Any
    inserted_at: float
    ttl_seconds: float

    def is_expired(self, now: float) -> bool:
        return now - self.inserted_at >= self.ttl_seconds


class EvictionPolicy(ABC):
    """Chooses which entries leave a full shard. Entries are in insertion order."""

    def on_access(self, entries: "OrderedDict[str, CacheEntry]", key: str) -> None:
        pass

    @abstractmethod
    def choose_victims(self, entries: "OrderedDict[str, CacheEntry]", count: int) -> List[str]:
        pass


class OldestInsertionEviction(EvictionPolicy):
    """Evict the entries inserted first."""

    def choose_victims(self, entries, count):
        return list(entries.keys())[:count]


class LeastRecentlyUsedEviction(EvictionPolicy):
    """Evict the entries read least recently."""

    def on_access(self, entries, key):
        entries.move_to_end(key)

    def choose_victims(self, entries, count):
        return list(entries.keys())[:count]


EVICTION_POLICIES = {
    'oldest': OldestInsertionEviction,
    'lru': LeastRecentlyUsedEviction,
}


class _Shard:
    def __init__(self):
        self.lock = threading.Lock()
        self.entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        # Guarded by lock, like entries
        self.counts: Counter = Counter()


class RecommendationCache:
    """
    Cache for computed recommendation pages.

    Keys embed the user id (see RecommendationFingerprinter) so a user's
    entries can be invalidated together. Expired entries are dropped lazily
    on read and proactively by sweep(), which an injected scheduler runs.
    Bookkeeping errors are logged and never raised to callers.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        shards: int = DEFAULT_SHARDS,
        eviction_policy: Optional[EvictionPolicy] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self.eviction_policy = eviction_policy or OldestInsertionEviction()
        self._clock = clock

        shard_count = max(1, min(shards, max_entries))
        self._shards = [_Shard() for _ in range(shard_count)]
        self._shard_capacity = max_entries // shard_count

    def _shard_for(self, key: str) -> _Shard:
        return self._shards[shard_index(key, len(self._shards))]

    @staticmethod
    def _user_from_key(key: str) -> Optional[str]:
        parts = key.split(':', 2)
        if len(parts) == 3 and parts[0] == RecommendationFingerprinter.KEY_PREFIX:
            return parts[1]
        return None

    def get(self, key: str) -> Optional[Any]:
        """Get a cached value, or None on miss or expiry."""
        try:
            shard = self._shard_for(key)
            with shard.lock:
                entry = shard.entries.get(key)
                if entry is None:
                    shard.counts['misses'] += 1
                    return None
                if entry.is_expired(self._clock()):
                    del shard.entries[key]
                    shard.counts['misses'] += 1
                    shard.counts['expirations'] += 1
                    return None
                self.eviction_policy.on_access(shard.entries, key)
                shard.counts['hits'] += 1
                return entry.value
        except Exception as e:
            logger.warning(f"Recommendation cache get failed for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: Optional[float] = None, user_id: Optional[str] = None) -> bool:
        """Store a value. Returns False if the write failed."""
        try:
            entry = CacheEntry(
                key=key,
                user_id=user_id if user_id is not None else self._user_from_key(key),
                value=value,
                inserted_at=self._clock(),
                ttl_seconds=ttl if ttl is not None else self.ttl_seconds,
            )
            shard = self._shard_for(key)
            evicted = 0
            with shard.lock:
                shard.entries.pop(key, None)
                shard.entries[key] = entry
                overflow = len(shard.entries) - self._shard_capacity
                if overflow > 0:
                    for victim in self.eviction_policy.choose_victims(shard.entries, overflow):
                        if shard.entries.pop(victim, None) is not None:
                            evicted += 1
                    shard.counts['evictions'] += evicted
            if evicted:
                logger.debug(f"Evicted {evicted} cache entr(ies) to stay within capacity")
            return True
        except Exception as e:
            logger.warning(f"Recommendation cache set failed for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        try:
            shard = self._shard_for(key)
            with shard.lock:
                return shard.entries.pop(key, None) is not None
        except Exception as e:
            logger.warning(f"Recommendation cache delete failed for {key}: {e}")
            return False

    def invalidate_for_user(self, user_id: str) -> int:
        """Remove every entry belonging to a user. Returns the number removed."""
        prefix = RecommendationFingerprinter.user_prefix(user_id)
        removed = 0
        try:
            for shard in self._shards:
                with shard.lock:
                    doomed = [
                        k for k, e in shard.entries.items()
                        if e.user_id == user_id or k.startswith(prefix)
                    ]
                    for k in doomed:
                        del shard.entries[k]
                    removed += len(doomed)
        except Exception as e:
            logger.warning(f"Recommendation cache invalidation failed for user {user_id}: {e}")
        if removed:
            logger.info(f"Invalidated {removed} cached recommendation page(s) for user {user_id}")
        return removed

    def sweep(self) -> int:
        """Drop expired entries. Returns the number removed."""
        removed = 0
        try:
            now = self._clock()
            for shard in self._shards:
                with shard.lock:
                    expired = [k for k, e in shard.entries.items() if e.is_expired(now)]
                    for k in expired:
                        del shard.entries[k]
                    shard.counts['expirations'] += len(expired)
                    removed += len(expired)
        except Exception as e:
            logger.warning(f"Recommendation cache sweep failed: {e}")
        if removed:
            logger.debug(f"Swept {removed} expired cache entr(ies)")
        return removed

    def clear(self) -> int:
        removed = 0
        for shard in self._shards:
            with shard.lock:
                removed += len(shard.entries)
                shard.entries.clear()
        logger.info(f"Cleared {removed} cached recommendation page(s)")
        return removed

    def size(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.entries)
        return total

    def stats(self) -> Dict[str, Any]:
        size = 0
        totals = Counter()
        for shard in self._shards:
            with shard.lock:
                size += len(shard.entries)
                totals.update(shard.counts)
        hits, misses = totals['hits'], totals['misses']
        lookups = hits + misses
        return {
            'size': size,
            'max_entries': self.max_entries,
            'shards': len(self._shards),
            'ttl_seconds': self.ttl_seconds,
            'hits': hits,
            'misses': misses,
            'hit_rate': round(hits / lookups, 4) if lookups else 0.0,
            'evictions': totals['evictions'],
            'expirations': totals['expirations'],
        }

    def schedule_sweep(self, scheduler, interval_seconds: float) -> None:
        """Register periodic sweeping on an injected scheduler."""
        scheduler.schedule_interval("recommendation-cache-sweep", interval_seconds, self.sweep)
