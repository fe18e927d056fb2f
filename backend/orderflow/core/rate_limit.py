"""Per-client rate limiting.

A Redis sorted set per client acts as a sliding window. When Redis is not
connected, or a Redis command fails, an in-process token bucket enforces the
same budget for this worker only.
"""

import logging
import threading
import time
from dataclasses import dataclass, field

from fastapi import HTTPException, Request, status
from redis.exceptions import RedisError

from orderflow.core.config import settings
from orderflow.core.redis import get_redis

logger = logging.getLogger(__name__)


@dataclass
class _TokenBucket:
    tokens: float
    updated_at: float
    capacity: int
    window: int

    def take(self, now: float) -> int:
        """Consume one token. Returns 0 on success, otherwise seconds to wait."""
        rate = self.capacity / self.window
        self.tokens = min(self.capacity, self.tokens + (now - self.updated_at) * rate)
        self.updated_at = now
        if self.tokens >= 1.0:
            self.tokens -= 1.0
            return 0
        return max(1, int((1.0 - self.tokens) / rate))


@dataclass
class LocalLimiter:
    """Thread-safe token buckets keyed by client and budget name."""

    buckets: dict[str, _TokenBucket] = field(default_factory=dict)
    lock: threading.Lock = field(default_factory=threading.Lock)

    def take(self, key: str, capacity: int, window: int) -> int:
        now = time.monotonic()
        with self.lock:
            bucket = self.buckets.get(key)
            if bucket is None or bucket.capacity != capacity or bucket.window != window:
                bucket = _TokenBucket(float(capacity), now, capacity, window)
                self.buckets[key] = bucket
            return bucket.take(now)


_local_limiter = LocalLimiter()


def client_key(request: Request) -> str:
    """Identify the caller: API key when present, else the client IP."""
    api_key = request.headers.get(settings.API_KEY_HEADER)
    if api_key:
        return f"key:{api_key[-8:]}"
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"
    return f"ip:{request.client.host if request.client else 'unknown'}"


def _too_many(retry_after: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=f"Rate limit exceeded. Try again in {retry_after}s.",
        headers={"Retry-After": str(retry_after)},
    )


async def _redis_window(request: Request, key: str, limit: int, window: int) -> int:
    """Sliding-window check in Redis. Returns 0 if allowed, else retry seconds."""
    redis = get_redis(request)
    now = time.time()
    pipe = redis.pipeline()
    pipe.zremrangebyscore(key, 0, now - window)
    pipe.zadd(key, {str(now): now})
    pipe.zcard(key)
    pipe.zrange(key, 0, 0, withscores=True)
    pipe.expire(key, window)
    _, _, count, oldest, _ = await pipe.execute()
    if count <= limit:
        return 0
    if oldest:
        return max(1, int(oldest[0][1] + window - now))
    return window


async def enforce_limit(request: Request, budget: str, limit: int) -> None:
    """Raise HTTP 429 if the caller exceeded ``limit`` requests for ``budget``."""
    window = settings.RATE_LIMIT_WINDOW_SECONDS
    key = f"ratelimit:{budget}:{client_key(request)}"
    try:
        retry_after = await _redis_window(request, key, limit, window)
    except (RuntimeError, RedisError):
        retry_after = _local_limiter.take(key, limit, window)
    if retry_after:
        logger.warning("Rate limit hit for %s", key)
        raise _too_many(retry_after)


async def rate_limit_default(request: Request) -> None:
    """Budget applied to every authenticated route."""
    await enforce_limit(request, "default", settings.RATE_LIMIT_DEFAULT)


async def rate_limit_scheduling(request: Request) -> None:
    """Tighter budget for mutations that trigger conflict detection."""
    await enforce_limit(request, "scheduling", settings.RATE_LIMIT_SCHEDULING)
