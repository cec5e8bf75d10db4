"""Process-local TTL cache for catalog lookups."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any

from catalog_mcp.core.settings import settings


class LookupCache:
    """Keep computed lookup results for ``ttl_seconds``.

    Entries are evicted lazily when read after their deadline; ``clear`` drops
    everything. The cache lives on ``app.state`` and is shared by all requests
    served by one process.
    """

    def __init__(
        self,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = float(settings.cache_ttl_seconds if ttl_seconds is None else ttl_seconds)
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                self.misses += 1
                return None
            self.hits += 1
            return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + self.ttl, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def get_or_compute(self, key: str, compute: Callable[[], Any]) -> Any:
        """Return the cached value for ``key``, computing and storing it on a miss."""
        cached = self.get(key)
        if cached is not None:
            return cached
        value = compute()
        self.set(key, value)
        return value

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "memory_keys": len(self._entries),
                "ttl": self.ttl,
                "hits": self.hits,
                "misses": self.misses,
            }
