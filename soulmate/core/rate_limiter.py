"""
Sliding-window rate limiting.

RateLimiter keeps windows in process memory; RedisRateLimiter keeps them in a
Redis sorted set so several workers share one limit.
"""
import asyncio
import logging
import math
import threading
import time
import uuid
from collections import OrderedDict, deque
from typing import Callable, Deque, Optional, Tuple

from soulmate.core.config import settings

logger = logging.getLogger(__name__)


class _Window:
    __slots__ = ("timestamps", "window")

    def __init__(self, window: float):
        self.timestamps: Deque[float] = deque()
        self.window = window


class RateLimiter:
    """
    Per-key sliding window counter.

    Each key holds the timestamps of its admitted requests. Every check prunes
    entries older than the window, admits when fewer than max_requests remain
    and records the new timestamp. Keys are reclaimed when idle for longer than
    idle_ttl (or their own window, if longer), and the least recently used keys
    are dropped once max_keys is reached.
    """

    def __init__(
        self,
        max_requests: int = 100,
        window_ms: int = 15 * 60 * 1000,
        idle_ttl_seconds: float = 24 * 3600,
        max_keys: int = 10000,
        cleanup_interval_seconds: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize rate limiter.

        Args:
            max_requests: Default maximum admitted requests per window
            window_ms: Default window length in milliseconds
            idle_ttl_seconds: Keys with no admitted request for this long are evicted
            max_keys: Hard cap on tracked keys (least recently used evicted first)
            cleanup_interval_seconds: Minimum time between opportunistic idle sweeps
            clock: Monotonic time source in seconds

        Raises:
            ValueError: max_keys below 1 would evict every window as it is created
        """
        if max_keys < 1:
            raise ValueError(f"max_keys must be at least 1, got {max_keys}")
        self.max_requests = max_requests
        self.window_ms = window_ms
        self.idle_ttl_seconds = idle_ttl_seconds
        self.max_keys = max_keys
        self.cleanup_interval_seconds = cleanup_interval_seconds
        self._clock = clock

        # Storage: key -> window, ordered from least to most recently used
        self._windows: "OrderedDict[str, _Window]" = OrderedDict()
        self._lock = threading.Lock()
        self._last_sweep = clock()

        self._cleanup_task = None

    def __len__(self) -> int:
        return len(self._windows)

    def __contains__(self, key: str) -> bool:
        return key in self._windows

    def check(
        self,
        key: str,
        max_requests: Optional[int] = None,
        window_ms: Optional[int] = None,
    ) -> Tuple[bool, int]:
        """
        Check and record a request for `key`.

        Returns:
            Tuple of (is_allowed, seconds_until_a_slot_frees). The second value
            is 0 when the request was admitted.
        """
        max_req = self.max_requests if max_requests is None else max_requests
        window = (self.window_ms if window_ms is None else window_ms) / 1000.0

        with self._lock:
            now = self._clock()
            if now - self._last_sweep >= self.cleanup_interval_seconds:
                self._evict_idle(now)

            entry = self._windows.get(key)
            if entry is None:
                entry = _Window(window)
                self._windows[key] = entry
                self._enforce_capacity()
            else:
                self._windows.move_to_end(key)
                entry.window = max(entry.window, window)

            timestamps = entry.timestamps
            cutoff = now - window
            while timestamps and timestamps[0] <= cutoff:
                timestamps.popleft()

            if len(timestamps) >= max_req:
                if timestamps:
                    retry_after = max(1, math.ceil(timestamps[0] + window - now))
                else:
                    retry_after = max(1, math.ceil(window))
                return False, retry_after

            timestamps.append(now)
            return True, 0

    def allow(self, key: str, max_requests: Optional[int] = None, window_ms: Optional[int] = None) -> bool:
        allowed, wait_time = self.check(key, max_requests, window_ms)
        if not allowed:
            logger.warning(f"Rate limit exceeded for {key}. Retry after {wait_time}s")
        return allowed

    def _enforce_capacity(self) -> None:
        while len(self._windows) > self.max_keys:
            evicted, _ = self._windows.popitem(last=False)
            logger.debug(f"Rate limiter at capacity, evicted {evicted}")

    def _evict_idle(self, now: float) -> int:
        self._last_sweep = now
        idle = []
        for key, entry in self._windows.items():
            last_activity = entry.timestamps[-1] if entry.timestamps else None
            ttl = max(self.idle_ttl_seconds, entry.window)
            if last_activity is None or now - last_activity > ttl:
                idle.append(key)
        for key in idle:
            del self._windows[key]
        if idle:
            logger.info(f"Cleaned up {len(idle)} inactive keys from rate limiter")
        return len(idle)

    def cleanup_inactive_keys(self) -> int:
        """
        Remove keys with no admitted request inside their idle TTL.

        Returns:
            Number of keys removed
        """
        with self._lock:
            return self._evict_idle(self._clock())

    async def _periodic_cleanup(self):
        while True:
            try:
                await asyncio.sleep(self.cleanup_interval_seconds)
                self.cleanup_inactive_keys()
            except asyncio.CancelledError:
                logger.info("Rate limiter cleanup task cancelled")
                break
            except Exception as e:
                logger.exception(f"Error in rate limiter cleanup: {e}")

    def start_cleanup_task(self):
        """Sweep idle keys on a timer as well as on access. Needs a running event loop."""
        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = asyncio.create_task(self._periodic_cleanup())
            logger.info(f"Started rate limiter cleanup task (interval: {self.cleanup_interval_seconds}s)")

    def stop_cleanup_task(self):
        if self._cleanup_task and not self._cleanup_task.done():
            self._cleanup_task.cancel()
            logger.info("Stopped rate limiter cleanup task")


# Prune, count, admit and record in one server-side step.
# Returns {1, 0} when admitted, {0, ms_until_a_slot_frees} when denied.
_SLIDING_WINDOW_LUA = """
local key = KEYS[1]
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
local member = ARGV[4]

redis.call('ZREMRANGEBYSCORE', key, '-inf', now - window)
local count = redis.call('ZCARD', key)
if count < limit then
    redis.call('ZADD', key, now, member)
    redis.call('PEXPIRE', key, window)
    return {1, 0}
end
local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
local wait = window
if oldest[2] then
    wait = tonumber(oldest[2]) + window - now
end
return {0, wait}
"""


class RedisRateLimiter:
    """
    Same sliding window, stored in Redis for multi-process deployments.

    Atomicity comes from running the whole check as one Lua script. Each key
    expires one window after its last admitted request, so idle keys vanish
    without a sweep.
    """

    def __init__(
        self,
        client,
        max_requests: int = 100,
        window_ms: int = 15 * 60 * 1000,
        prefix: str = "soulmate:ratelimit:",
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.max_requests = max_requests
        self.window_ms = window_ms
        self.prefix = prefix
        self._clock = clock
        self._script = client.register_script(_SLIDING_WINDOW_LUA)

    @classmethod
    def from_url(cls, url: Optional[str] = None, **kwargs) -> "RedisRateLimiter":
        from redis.asyncio import Redis

        return cls(Redis.from_url(url or str(settings.REDIS_URL)), **kwargs)

    async def check(
        self,
        key: str,
        max_requests: Optional[int] = None,
        window_ms: Optional[int] = None,
    ) -> Tuple[bool, int]:
        max_req = self.max_requests if max_requests is None else max_requests
        window = self.window_ms if window_ms is None else window_ms
        now_ms = int(self._clock() * 1000)
        member = f"{now_ms}-{uuid.uuid4().hex}"

        allowed, wait_ms = await self._script(
            keys=[f"{self.prefix}{key}"],
            args=[now_ms, window, max_req, member],
        )
        if int(allowed) == 1:
            return True, 0
        return False, max(1, math.ceil(int(wait_ms) / 1000))

    async def allow(self, key: str, max_requests: Optional[int] = None, window_ms: Optional[int] = None) -> bool:
        allowed, wait_time = await self.check(key, max_requests, window_ms)
        if not allowed:
            logger.warning(f"Rate limit exceeded for {key}. Retry after {wait_time}s")
        return allowed


# Process-wide limiter built from settings
rate_limiter = RateLimiter(
    max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
    window_ms=settings.RATE_LIMIT_WINDOW_MS,
    idle_ttl_seconds=settings.RATE_LIMITER_IDLE_TTL_SECONDS,
    max_keys=settings.RATE_LIMITER_MAX_KEYS,
    cleanup_interval_seconds=settings.RATE_LIMITER_CLEANUP_INTERVAL_SECONDS,
)


def check_rate(key: str, max_requests: Optional[int] = None, window_ms: Optional[int] = None) -> bool:
    """Admission check against the process-wide limiter."""
    return rate_limiter.allow(key, max_requests, window_ms)
