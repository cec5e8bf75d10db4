"""Per-credential rate limiting with a short and a long fixed window.

The default limiter keeps its counters in process memory: they survive for
as long as the process does and reset on restart. Each running instance
enforces its own copy of the quota, so N instances may admit up to N times
the nominal limit. ``RedisRateLimiter`` shares counters between instances
when exact global quotas matter more than the extra round trip.
"""

from __future__ import annotations

import asyncio
import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal, Protocol

import redis

from catalog_mcp.core.settings import Settings

logger = logging.getLogger(__name__)

LimitType = Literal["minute", "day"]
Clock = Callable[[], float]


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of a single admission check.

    ``reset_in`` is the number of seconds until the window reported on
    changes; ``retry_after`` is set only on denial.
    """

    allowed: bool
    remaining: int
    reset_in: float
    retry_after: int | None = None
    limit_type: LimitType | None = None


@dataclass
class RateLimitEntry:
    """Counters for one identifier. Reset times are clock readings in seconds."""

    minute_count: int
    minute_reset_at: float
    day_count: int
    day_reset_at: float


def _denied(reset_in: float, limit_type: LimitType) -> RateLimitDecision:
    return RateLimitDecision(
        allowed=False,
        remaining=0,
        reset_in=reset_in,
        retry_after=max(1, math.ceil(reset_in)),
        limit_type=limit_type,
    )


class RateLimiter(Protocol):
    """Interface shared by the in-memory and redis-backed limiters."""

    minute_limit: int
    day_limit: int

    def check(self, identifier: str) -> RateLimitDecision: ...

    def get_usage(self, identifier: str) -> dict[str, int] | None: ...

    def reset(self, identifier: str) -> None: ...

    def reset_all(self) -> None: ...

    def stats(self) -> dict[str, Any]: ...

    def sweep(self) -> int: ...

    def limit_for(self, limit_type: LimitType | None) -> int: ...


class InMemoryRateLimiter:
    """Fixed-window limiter holding one ``RateLimitEntry`` per identifier.

    All access to the entry map goes through ``_lock``: request handlers run
    both on the event loop and on the threadpool, and the periodic sweep must
    never interleave with a check-and-increment.
    """

    def __init__(
        self,
        *,
        minute_limit: int = 1,
        day_limit: int = 100,
        minute_window_seconds: float = 60.0,
        day_window_seconds: float = 86_400.0,
        clock: Clock = time.monotonic,
    ) -> None:
        self.minute_limit = int(minute_limit)
        self.day_limit = int(day_limit)
        self.minute_window = float(minute_window_seconds)
        self.day_window = float(day_window_seconds)
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()

    def check(self, identifier: str) -> RateLimitDecision:
        """Count a call for ``identifier`` and return whether it is allowed."""
        with self._lock:
            now = self._clock()
            entry = self._entries.get(identifier)

            if entry is None or now >= entry.day_reset_at:
                self._entries[identifier] = RateLimitEntry(
                    minute_count=1,
                    minute_reset_at=now + self.minute_window,
                    day_count=1,
                    day_reset_at=now + self.day_window,
                )
                return RateLimitDecision(
                    allowed=True,
                    remaining=min(self.minute_limit - 1, self.day_limit - 1),
                    reset_in=self.minute_window,
                )

            if now >= entry.minute_reset_at:
                entry.minute_count = 0
                entry.minute_reset_at = now + self.minute_window

            # The short window is checked first so the stricter limit is reported.
            if entry.minute_count >= self.minute_limit:
                return _denied(entry.minute_reset_at - now, "minute")

            if entry.day_count >= self.day_limit:
                return _denied(entry.day_reset_at - now, "day")

            entry.minute_count += 1
            entry.day_count += 1
            return RateLimitDecision(
                allowed=True,
                remaining=min(
                    self.minute_limit - entry.minute_count,
                    self.day_limit - entry.day_count,
                ),
                reset_in=entry.minute_reset_at - now,
            )

    def get_usage(self, identifier: str) -> dict[str, int] | None:
        """Return current window counts for an identifier, or None if unseen."""
        with self._lock:
            entry = self._entries.get(identifier)
            if entry is None:
                return None
            now = self._clock()
            return {
                "minute": 0 if now >= entry.minute_reset_at else entry.minute_count,
                "day": 0 if now >= entry.day_reset_at else entry.day_count,
            }

    def reset(self, identifier: str) -> None:
        """Forget all counters for an identifier."""
        with self._lock:
            self._entries.pop(identifier, None)

    def reset_all(self) -> None:
        """Forget every identifier."""
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict[str, Any]:
        """Return counters suitable for the health endpoint."""
        with self._lock:
            total = len(self._entries)
        return {
            "backend": "memory",
            "total_keys": total,
            "minute_limit": self.minute_limit,
            "day_limit": self.day_limit,
        }

    def limit_for(self, limit_type: LimitType | None) -> int:
        """Return the quota matching a denial's ``limit_type``."""
        return self.day_limit if limit_type == "day" else self.minute_limit

    def sweep(self) -> int:
        """Drop identifiers whose long window has expired; return how many."""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if now >= entry.day_reset_at]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.info("Rate limiter swept %d expired entries", len(expired))
        return len(expired)


class RedisRateLimiter:
    """Fixed-window limiter whose counters live in redis.

    Counters are two keys per identifier with native expiry. The read and the
    increments are separate commands, so concurrent calls may overshoot the
    quota by the number of racing requests.
    """

    KEY_PREFIX = "ratelimit"

    def __init__(
        self,
        client: Any,
        *,
        minute_limit: int = 1,
        day_limit: int = 100,
        minute_window_seconds: float = 60.0,
        day_window_seconds: float = 86_400.0,
    ) -> None:
        self._client = client
        self.minute_limit = int(minute_limit)
        self.day_limit = int(day_limit)
        self.minute_window = float(minute_window_seconds)
        self.day_window = float(day_window_seconds)

    def _keys(self, identifier: str) -> tuple[str, str]:
        base = f"{self.KEY_PREFIX}:{identifier}"
        return f"{base}:minute", f"{base}:day"

    def _ttl_seconds(self, key: str, fallback: float) -> float:
        ttl_ms = self._client.pttl(key)
        if ttl_ms is None or int(ttl_ms) < 0:
            return fallback
        return int(ttl_ms) / 1000.0

    def check(self, identifier: str) -> RateLimitDecision:
        """Count a call for ``identifier``; fails open if redis is unreachable."""
        minute_key, day_key = self._keys(identifier)
        try:
            day_raw = self._client.get(day_key)
            if day_raw is None:
                self._client.set(day_key, 1, px=int(self.day_window * 1000))
                self._client.set(minute_key, 1, px=int(self.minute_window * 1000))
                return RateLimitDecision(
                    allowed=True,
                    remaining=min(self.minute_limit - 1, self.day_limit - 1),
                    reset_in=self.minute_window,
                )

            minute_raw = self._client.get(minute_key)
            minute_count = int(minute_raw) if minute_raw is not None else 0
            day_count = int(day_raw)

            if minute_count >= self.minute_limit:
                return _denied(
                    self._ttl_seconds(minute_key, self.minute_window), "minute"
                )
            if day_count >= self.day_limit:
                return _denied(
                    self._ttl_seconds(day_key, self.day_window), "day"
                )

            new_minute = int(self._client.incr(minute_key))
            if new_minute == 1:
                self._client.pexpire(minute_key, int(self.minute_window * 1000))
            new_day = int(self._client.incr(day_key))
            return RateLimitDecision(
                allowed=True,
                remaining=max(0, min(self.minute_limit - new_minute, self.day_limit - new_day)),
                reset_in=self._ttl_seconds(minute_key, self.minute_window),
            )
        except redis.RedisError as exc:
            logger.warning("Rate limit backend unavailable, admitting call: %s", exc)
            return RateLimitDecision(
                allowed=True,
                remaining=self.minute_limit,
                reset_in=self.minute_window,
            )

    def get_usage(self, identifier: str) -> dict[str, int] | None:
        """Return current window counts for an identifier, or None if unseen."""
        minute_key, day_key = self._keys(identifier)
        day_raw = self._client.get(day_key)
        if day_raw is None:
            return None
        minute_raw = self._client.get(minute_key)
        return {
            "minute": int(minute_raw) if minute_raw is not None else 0,
            "day": int(day_raw),
        }

    def reset(self, identifier: str) -> None:
        """Forget all counters for an identifier."""
        self._client.delete(*self._keys(identifier))

    def reset_all(self) -> None:
        """Delete every rate-limit key."""
        keys = list(self._client.scan_iter(match=f"{self.KEY_PREFIX}:*"))
        if keys:
            self._client.delete(*keys)

    def stats(self) -> dict[str, Any]:
        """Return counters suitable for the health endpoint."""
        try:
            total: int | None = sum(
                1 for _ in self._client.scan_iter(match=f"{self.KEY_PREFIX}:*:day")
            )
        except redis.RedisError:
            total = None
        return {
            "backend": "redis",
            "total_keys": total,
            "minute_limit": self.minute_limit,
            "day_limit": self.day_limit,
        }

    def limit_for(self, limit_type: LimitType | None) -> int:
        """Return the quota matching a denial's ``limit_type``."""
        return self.day_limit if limit_type == "day" else self.minute_limit

    def sweep(self) -> int:
        """Nothing to do: redis expires the window keys itself."""
        return 0


class RateLimitSweeper:
    """Background task that periodically calls ``limiter.sweep()``.

    The interval is independent of the window lengths; it only bounds how long
    expired identifiers linger in memory.
    """

    def __init__(self, limiter: RateLimiter, interval_seconds: float = 300.0) -> None:
        self.limiter = limiter
        self.interval = max(0.1, float(interval_seconds))
        self._task: asyncio.Task[None] | None = None
        self._stopping: asyncio.Event | None = None

    async def start(self) -> None:
        """Start the sweep loop if it is not already running."""
        if self._task is None or self._task.done():
            self._stopping = asyncio.Event()
            self._task = asyncio.create_task(self._run(self._stopping))

    async def stop(self) -> None:
        """Stop the sweep loop and wait for it to exit."""
        if self._task is None or self._stopping is None:
            return
        self._stopping.set()
        await self._task
        self._task = None

    async def _run(self, stopping: asyncio.Event) -> None:
        while not stopping.is_set():
            try:
                await asyncio.wait_for(stopping.wait(), timeout=self.interval)
            except TimeoutError:
                try:
                    self.limiter.sweep()
                except Exception:
                    logger.exception("Rate limiter sweep failed")


def build_rate_limiter(config: Settings) -> RateLimiter:
    """Construct the limiter selected by ``RATE_LIMIT_BACKEND``."""
    options = {
        "minute_limit": config.rate_limit_minute_limit,
        "day_limit": config.rate_limit_day_limit,
        "minute_window_seconds": config.rate_limit_minute_window_seconds,
        "day_window_seconds": config.rate_limit_day_window_seconds,
    }
    if config.rate_limit_backend == "redis":
        logger.info("Using redis rate limit backend at %s", config.redis_url)
        return RedisRateLimiter(redis.from_url(config.redis_url), **options)
    return InMemoryRateLimiter(**options)
