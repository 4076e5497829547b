from __future__ import annotations

from typing import Callable, Dict, Generic, Optional, Tuple, TypeVar
import threading
import time

from chronosync import config

T = TypeVar("T")


class ResultCache(Generic[T]):
    """
    Per-user result store with a TTL.
    Writers for the same key simply overwrite each other (last write wins).
    """

    def __init__(self, ttl_seconds: float = config.CACHE_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, T]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[T]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: T) -> None:
        """Store value; expired entries for other keys are dropped on the way."""
        now = self._clock()
        with self._lock:
            self._evict_expired(now)
            self._entries[key] = (now, value)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def prune(self) -> int:
        """Drop expired entries; returns how many were removed."""
        now = self._clock()
        with self._lock:
            return self._evict_expired(now)

    def _evict_expired(self, now: float) -> int:
        # caller holds the lock
        expired = [k for k, (ts, _) in self._entries.items() if now - ts >= self.ttl_seconds]
        for k in expired:
            del self._entries[k]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
