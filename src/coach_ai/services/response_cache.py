"""Exact-match response cache.

LRU ordering with per-entry TTL, persisted to a KeyValueStore after every
mutating call. Keys are produced only by :func:`generate_key`, so equal
parameters always map to the same key regardless of dict ordering.
"""

import hashlib
import json
import logging
import math
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, NewType

from coach_ai.config import settings
from coach_ai.entities import CacheEntry
from coach_ai.exceptions import StorageError
from coach_ai.protocols import KeyValueStore

logger = logging.getLogger(__name__)

CacheKey = NewType("CacheKey", str)

HOUR = 60 * 60
DAY = 24 * HOUR

TTL_BY_FEATURE: dict[str, float] = {
    "motivation": 1 * HOUR,
    "coaching": 2 * HOUR,
    "progressive_overload": 6 * HOUR,
    "suggestion_explanation": 1 * DAY,
    "form_guide": 7 * DAY,
    "program_explanation": 7 * DAY,
    "workout_summary": 30 * DAY,
}

STORAGE_KEY = "coach-ai-cache"


@dataclass(frozen=True)
class CacheConfig:
    max_entries: int = 500
    default_ttl: float = 1 * DAY
    persist: bool = True
    emergency_evict_fraction: float = 0.3

    @classmethod
    def from_settings(cls) -> "CacheConfig":
        return cls(
            max_entries=settings.cache_max_entries,
            default_ttl=settings.cache_default_ttl,
            persist=settings.cache_persist,
        )


def generate_key(feature: str, params: dict[str, Any]) -> CacheKey:
    """Build a deterministic cache key.

    Args:
        feature: Feature name, used as the key prefix
        params: Request parameters; key order (including nested dicts)
            does not affect the result

    Returns:
        ``"{feature}:{sha256 of canonical JSON}"``
    """
    canonical = json.dumps(params, sort_keys=True, separators=(",", ":"), default=str)
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return CacheKey(f"{feature}:{digest}")


def ttl_for(feature: str, default: float | None = None) -> float:
    """TTL in seconds for a feature, falling back to the default TTL."""
    if feature in TTL_BY_FEATURE:
        return TTL_BY_FEATURE[feature]
    return default if default is not None else settings.cache_default_ttl


class ResponseCache:
    """Bounded LRU cache with TTL and best-effort persistence.

    Example:
        ```python
        cache = ResponseCache(store=JsonFileStore.create())
        key = generate_key("motivation", {"streak": 3})
        cache.set(key, "Keep going", ttl=TTL_BY_FEATURE["motivation"])
        cache.get(key)  # "Keep going"
        ```
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        config: CacheConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache and load persisted entries.

        Args:
            store: Persistence backend. None disables persistence.
            config: Cache settings. Defaults to CacheConfig.from_settings().
            clock: Returns the current POSIX time in seconds.
        """
        self._config = config or CacheConfig.from_settings()
        self._store = store if self._config.persist else None
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._load()

    @property
    def config(self) -> CacheConfig:
        return self._config

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def get(self, key: str) -> Any | None:
        """Read a value, refreshing its recency.

        Returns:
            The cached value, or None if missing or expired (expired entries
            are dropped on read)
        """
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        entry.hit_count += 1
        return entry.value

    def has(self, key: str) -> bool:
        """Check for a live entry without touching recency or hit counts."""
        entry = self._entries.get(key)
        return entry is not None and not entry.is_expired(self._clock())

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Insert or replace an entry.

        At capacity, expired entries are dropped first and then the least
        recently used entry is evicted. Replacing an existing key never
        evicts another entry.
        """
        ttl = self._config.default_ttl if ttl is None else ttl
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self._config.max_entries:
            self._drop_expired()
            while len(self._entries) >= self._config.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted LRU entry %s", evicted)

        self._entries[key] = CacheEntry(key=key, value=value, created_at=self._clock(), ttl=ttl)
        self._persist()

    def delete(self, key: str) -> bool:
        """Remove an entry.

        Returns:
            True if the key existed
        """
        if self._entries.pop(key, None) is None:
            return False
        self._persist()
        return True

    def clear(self) -> None:
        self._entries.clear()
        self._persist()

    def prune_expired(self) -> int:
        """Drop every expired entry.

        Returns:
            Number of entries removed
        """
        removed = self._drop_expired()
        if removed:
            self._persist()
        return removed

    def get_stats(self) -> dict[str, Any]:
        """Cache statistics.

        ``hit_rate`` counts the initial insert of every entry as an access.
        """
        total_hits = sum(e.hit_count for e in self._entries.values())
        total_accesses = total_hits + len(self._entries)
        oldest = min((e.created_at for e in self._entries.values()), default=None)
        return {
            "size": len(self._entries),
            "hit_rate": total_hits / total_accesses if total_accesses else 0.0,
            "total_hits": total_hits,
            "oldest_entry": oldest,
        }

    def _drop_expired(self) -> int:
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _load(self) -> None:
        if self._store is None:
            return
        try:
            raw = self._store.get(STORAGE_KEY)
        except StorageError as e:
            logger.warning("Could not load response cache: %s", e)
            return
        if not raw:
            return

        now = self._clock()
        for item in raw:
            try:
                entry = CacheEntry.from_dict(item)
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed cache entry")
                continue
            if entry.is_expired(now):
                continue
            self._entries[entry.key] = entry
        while len(self._entries) > self._config.max_entries:
            self._entries.popitem(last=False)
        logger.debug("Loaded %d cache entries", len(self._entries))

    def _persist(self) -> None:
        if self._store is None:
            return
        try:
            self._write()
            return
        except StorageError as e:
            logger.warning("Cache write failed (%s); evicting oldest entries and retrying", e)

        to_evict = math.ceil(len(self._entries) * self._config.emergency_evict_fraction)
        for _ in range(to_evict):
            self._entries.popitem(last=False)
        try:
            self._write()
        except StorageError as e:
            logger.error("Cache write failed after emergency eviction, giving up: %s", e)

    def _write(self) -> None:
        self._store.set(STORAGE_KEY, [e.to_dict() for e in self._entries.values()])
