"""
In-process fixed-window rate limiting utilities

Counters live in this process only. When REDIS_URL is configured the
counters are also mirrored to Redis for visibility; Redis is never consulted
to allow or reject a request.
"""

import logging
import math
import time
from dataclasses import dataclass
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request

from .config import REDIS_URL

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None
_redis_unavailable = False

# Format: {key: {'count': int, 'reset_time': float, 'last_redis_sync': float}}
memory_cache: dict[str, dict] = {}
cache_lock = Lock()

MEMORY_CACHE_SYNC_INTERVAL = 10
MEMORY_CACHE_CLEANUP_INTERVAL = 60
last_cleanup_time = 0.0


@dataclass(frozen=True)
class RateLimitRule:
    limit: int
    window_seconds: int


RATE_LIMITS = {
    "signin": RateLimitRule(limit=5, window_seconds=60),
    "signup": RateLimitRule(limit=3, window_seconds=60),
    "forgot_password": RateLimitRule(limit=3, window_seconds=60),
    "reset_password": RateLimitRule(limit=5, window_seconds=15 * 60),
    "verify_email": RateLimitRule(limit=10, window_seconds=60),
    "resend_verification": RateLimitRule(limit=3, window_seconds=300),
    "employee_signin": RateLimitRule(limit=5, window_seconds=60),
    "portal_auth": RateLimitRule(limit=5, window_seconds=60),
    "api": RateLimitRule(limit=60, window_seconds=60),
}


def get_redis_client() -> Optional[redis.Redis]:
    """
    Get or create the Redis client used to mirror counters

    Returns None when REDIS_URL is not set or the connection failed once.
    """
    global redis_client, _redis_unavailable

    if redis_client is not None or _redis_unavailable or not REDIS_URL:
        return redis_client

    try:
        client = redis.from_url(
            REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            health_check_interval=30,
        )
        client.ping()
        redis_client = client
        logger.info("Redis connected for rate limit mirroring")
    except redis.RedisError as e:
        logger.warning(f"⚠️ Redis unavailable, rate limits stay in memory only: {e}")
        _redis_unavailable = True

    return redis_client


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then the socket peer"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


def cleanup_expired_cache(now: float) -> None:
    """Remove expired entries from memory cache"""
    global last_cleanup_time

    if now - last_cleanup_time < MEMORY_CACHE_CLEANUP_INTERVAL:
        return

    expired_keys = [k for k, v in memory_cache.items() if now >= v["reset_time"]]
    for k in expired_keys:
        del memory_cache[k]

    if expired_keys:
        logger.debug(f"🧹 Cleaned up {len(expired_keys)} expired rate limit entries")

    last_cleanup_time = now


def _mirror_to_redis(key: str, entry: dict, window_seconds: int, now: float) -> None:
    client = get_redis_client()
    if client is None:
        return
    if now - entry["last_redis_sync"] < MEMORY_CACHE_SYNC_INTERVAL:
        return
    try:
        client.set(f"rate_limit:{key}", entry["count"], ex=window_seconds)
        entry["last_redis_sync"] = now
    except redis.RedisError as e:
        logger.warning(f"⚠️ Failed to mirror rate limit counter to Redis: {e}")


def check_rate_limit(key: str, limit: int, window_seconds: int) -> tuple[bool, int, int]:
    """Count a request against a fixed window

    The first request opens a window of ``window_seconds`` with count 1.
    Later requests in the same window are allowed while the count is below
    ``limit``; rejected requests do not extend or reset the window.

    Returns:
        Tuple of (is_allowed, current_count, retry_after_seconds)
    """
    now = time.time()

    with cache_lock:
        cleanup_expired_cache(now)

        entry = memory_cache.get(key)
        if entry is None or now >= entry["reset_time"]:
            entry = {"count": 0, "reset_time": now + window_seconds, "last_redis_sync": 0.0}
            memory_cache[key] = entry

        is_allowed = entry["count"] < limit
        if is_allowed:
            entry["count"] += 1

        _mirror_to_redis(key, entry, window_seconds, now)

        retry_after = max(1, math.ceil(entry["reset_time"] - now))
        return is_allowed, entry["count"], min(retry_after, window_seconds)


def reset_rate_limits() -> None:
    """Forget every counter"""
    global last_cleanup_time
    with cache_lock:
        memory_cache.clear()
        last_cleanup_time = 0.0


async def rate_limit_dependency(
    request: Request,
    limit: int,
    window_seconds: int,
    key_prefix: str = "rate_limit",
    use_ip: bool = True,
):
    """
    FastAPI dependency for rate limiting

    Args:
        request: FastAPI request object
        limit: Maximum requests allowed
        window_seconds: Time window in seconds
        key_prefix: Action name used in the counter key
        use_ip: If True, use client IP in key (per-IP limit), otherwise global
    """
    client_ip = get_client_ip(request) if use_ip else "global"
    key = f"{key_prefix}:{client_ip}"

    is_allowed, current_count, retry_after = check_rate_limit(key, limit, window_seconds)

    if not is_allowed:
        logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit} requests used")
        raise HTTPException(
            status_code=429,
            detail={
                "message": "Too many requests. Please try again later.",
                "retry_after": retry_after,
                "limit": limit,
                "window_seconds": window_seconds,
            },
            headers={"Retry-After": str(retry_after)},
        )

    request.state.rate_limit_remaining = limit - current_count
    request.state.rate_limit_limit = limit


def create_rate_limiter(
    limit: int, window_seconds: int, key_prefix: str = "rate_limit", use_ip: bool = True
):
    """
    Create a rate limiter dependency with specific parameters

    Example usage:
        rate_limit_signin = create_rate_limiter(limit=5, window_seconds=60, key_prefix="signin")

        @router.post("/signin")
        async def signin(data: SigninRequest, _: None = Depends(rate_limit_signin)):
            ...
    """

    async def rate_limiter(request: Request):
        return await rate_limit_dependency(request, limit, window_seconds, key_prefix, use_ip)

    return rate_limiter


def rate_limiter_for(action: str):
    """Rate limiter dependency for a named preset in RATE_LIMITS"""
    rule = RATE_LIMITS[action]
    return create_rate_limiter(rule.limit, rule.window_seconds, key_prefix=action)
