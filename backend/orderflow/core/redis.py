"""Async Redis client lifecycle.

The client lives on ``app.state``; the rate limiter reaches it through the
request so no module-level connection is needed.
"""

import logging

import redis.asyncio as aioredis
from fastapi import Request
from redis.exceptions import RedisError

from orderflow.core.config import settings

logger = logging.getLogger(__name__)


async def init_redis(app_state: object) -> aioredis.Redis | None:
    """Connect to Redis and store the client on app.state.

    Returns None (and sets ``app_state.redis`` to None) when Redis cannot be
    reached; callers fall back to in-process behaviour.
    """
    client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        logger.warning("Redis unavailable at %s: %s", settings.REDIS_URL, exc)
        await client.aclose()
        app_state.redis = None  # type: ignore[attr-defined]
        return None
    app_state.redis = client  # type: ignore[attr-defined]
    return client


async def close_redis(app_state: object) -> None:
    """Close the Redis connection stored on app.state."""
    client: aioredis.Redis | None = getattr(app_state, "redis", None)
    if client is not None:
        await client.aclose()
        app_state.redis = None  # type: ignore[attr-defined]


def get_redis(request: Request) -> aioredis.Redis:
    """Return the request's Redis client or raise RuntimeError if absent."""
    client: aioredis.Redis | None = getattr(request.app.state, "redis", None)
    if client is None:
        raise RuntimeError("Redis client not initialized")
    return client
