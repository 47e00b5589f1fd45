"""
ibge_portal/core/cache.py
═══════════════════════════════════════════════════════════════════════════
In-memory response cache with TTL.
  • One ResponseCache per application, kept on app.state.response_cache
  • Entries are replaced wholesale, never mutated
  • Expired entries are evicted lazily on a keyed get(); stats() still
    counts them until then
  • No size limit, no background reaper, no single-flight: two concurrent
    misses on the same key both fetch and the later set() wins
═══════════════════════════════════════════════════════════════════════════
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

log = logging.getLogger("cache")


@dataclass(frozen=True)
class CacheEntry:
    key: str
    payload: bytes
    status: int
    headers: dict[str, str] = field(default_factory=dict)
    expires_at: float = 0.0

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at

    def approx_size(self) -> int:
        size = len(self.key) + len(self.payload)
        for name, value in self.headers.items():
            size += len(name) + len(value)
        return size


class ResponseCache:
    def __init__(self, clock: Callable[[], float] = time.time):
        self._store: dict[str, CacheEntry] = {}
        self._lock  = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the entry for key, or None if absent or expired."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if entry.is_valid(self._clock()):
                return entry
            del self._store[key]
            return None

    def set(self, key: str, entry: CacheEntry) -> None:
        with self._lock:
            self._store[key] = entry

    def put(self, key: str, payload: bytes, status: int,
            headers: dict[str, str], ttl_s: float) -> CacheEntry:
        """Build an entry expiring ttl_s from now and store it."""
        entry = CacheEntry(
            key=key,
            payload=payload,
            status=status,
            headers=dict(headers),
            expires_at=self._clock() + ttl_s,
        )
        self.set(key, entry)
        return entry

    def delete(self, key: str) -> bool:
        with self._lock:
            removed = self._store.pop(key, None) is not None
        log.info(f"Cleared cache key {key} ({'removed' if removed else 'absent'})")
        return removed

    def clear(self) -> int:
        with self._lock:
            count = len(self._store)
            self._store.clear()
        log.info(f"Cleared whole cache ({count} entries)")
        return count

    def stats(self) -> dict:
        """O(n) summary, expired-but-present entries included."""
        with self._lock:
            now = self._clock()
            entries = list(self._store.values())
        valid = sum(1 for e in entries if e.is_valid(now))
        return {
            "totalEntries":    len(entries),
            "validEntries":    valid,
            "expiredEntries":  len(entries) - valid,
            "approxSizeBytes": sum(e.approx_size() for e in entries),
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
