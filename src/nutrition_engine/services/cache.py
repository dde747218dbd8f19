"""TTL cache for resolved nutrition records."""

import asyncio
import logging
import re
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol

from nutrition_engine.domain.nutrition import NutritionRecord

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")

_logger = logging.getLogger(__name__)


def normalize_query(query: str) -> str:
    """Lowercase, strip punctuation and collapse whitespace."""
    stripped = _PUNCTUATION.sub("", query.lower())
    return _WHITESPACE.sub(" ", stripped).strip()


def build_cache_key(
    query: str, portion_grams: float, preparation_id: str | None = None
) -> str:
    """Key a lookup by normalized query, portion and preparation."""
    return (
        f"nutrition:{normalize_query(query)}:{portion_grams:g}g:"
        f"{preparation_id or 'none'}"
    )


def build_barcode_cache_key(barcode: str, portion_grams: float) -> str:
    return f"barcode:{barcode.strip()}:{portion_grams:g}g"


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of cache occupancy and hit rates."""

    size: int
    hit_count: int
    miss_count: int

    @property
    def hit_rate(self) -> float:
        lookups = self.hit_count + self.miss_count
        return self.hit_count / lookups if lookups else 0.0


class Cache(Protocol):
    """Cache interface for resolved nutrition records."""

    def get(self, key: str) -> NutritionRecord | None:
        """Return a cached record if present and not expired."""

    def set(self, key: str, value: NutritionRecord, ttl_seconds: int) -> None:
        """Store a record with a TTL in seconds."""

    def invalidate(self, key: str) -> bool:
        """Remove a key, returning whether it was present."""

    def clear(self) -> int:
        """Remove every entry and return how many there were."""

    def cleanup_expired(self) -> int:
        """Delete expired entries and return how many were removed."""

    def stats(self) -> CacheStats:
        """Return current cache statistics."""


@dataclass
class _CacheEntry:
    value: NutritionRecord
    expires_at: datetime


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class InMemoryCache(Cache):
    """In-process cache guarded by a single lock.

    Expired entries are treated as misses as soon as they expire and are
    physically removed by ``cleanup_expired``.
    """

    clock: Callable[[], datetime] = _utc_now
    _entries: dict[str, _CacheEntry] = field(default_factory=dict, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)
    _hits: int = field(default=0, init=False)
    _misses: int = field(default=0, init=False)

    def get(self, key: str) -> NutritionRecord | None:
        """Return a cached record if it hasn't expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self.clock() >= entry.expires_at:
                self._misses += 1
                return None
            self._hits += 1
            return entry.value

    def set(self, key: str, value: NutritionRecord, ttl_seconds: int) -> None:
        """Store a record, replacing any previous entry and its TTL."""
        expires_at = self.clock() + timedelta(seconds=ttl_seconds)
        with self._lock:
            self._entries[key] = _CacheEntry(value=value, expires_at=expires_at)

    def invalidate(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
            return removed

    def cleanup_expired(self) -> int:
        """Delete expired entries; the lock is held only for the deletes."""
        now = self.clock()
        with self._lock:
            snapshot = list(self._entries.items())
        candidates = [key for key, entry in snapshot if now >= entry.expires_at]
        removed = 0
        with self._lock:
            for key in candidates:
                entry = self._entries.get(key)
                if entry is not None and now >= entry.expires_at:
                    del self._entries[key]
                    removed += 1
        return removed

    def stats(self) -> CacheStats:
        """Return statistics; size counts only live entries."""
        now = self.clock()
        with self._lock:
            size = sum(1 for entry in self._entries.values() if now < entry.expires_at)
            return CacheStats(size=size, hit_count=self._hits, miss_count=self._misses)


async def run_periodic_cleanup(cache: Cache, interval_seconds: float) -> None:
    """Remove expired entries every ``interval_seconds`` until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        removed = cache.cleanup_expired()
        if removed:
            _logger.info("Cache cleanup removed %s expired entries", removed)
