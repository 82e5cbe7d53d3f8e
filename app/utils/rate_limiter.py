"""
Cross-worker API quotas backed by a Redis token bucket.

Each bucket is one Redis hash (``tokens``, ``ts``) updated by a Lua script,
so every Celery worker draws from the same quota. Idle buckets expire and
come back full.

Buckets:
- shopify: burst 40, 120 tokens/min (Shopify REST leaky bucket)
- rainforest: burst and refill from settings

Usage:
    if not get_shopify_rate_limiter().wait_for_token(timeout=120):
        raise RateLimitError("Shopify")
"""

import logging
import time
from typing import Dict, Optional, Tuple

import redis

from app.core.config import settings

logger = logging.getLogger("rate_limiter")

BUCKET_KEY_PREFIX = "command_center:bucket"
REFILL_WINDOW_SECONDS = 60
IDLE_EXPIRY_SECONDS = 3600

# KEYS[1] bucket hash; ARGV capacity, refill per window, window seconds, now, ttl
TAKE_TOKEN_LUA = """
local capacity = tonumber(ARGV[1])
local per_second = tonumber(ARGV[2]) / tonumber(ARGV[3])
local now = tonumber(ARGV[4])

local state = redis.call('HMGET', KEYS[1], 'tokens', 'ts')
local tokens = tonumber(state[1]) or capacity
local ts = tonumber(state[2]) or now

tokens = math.min(capacity, tokens + math.max(0, now - ts) * per_second)

local granted = 0
local wait = 0
if tokens >= 1 then
    tokens = tokens - 1
    granted = 1
else
    wait = (1 - tokens) / per_second
end

redis.call('HSET', KEYS[1], 'tokens', tostring(tokens), 'ts', tostring(now))
redis.call('EXPIRE', KEYS[1], tonumber(ARGV[5]))
return {granted, tostring(wait), tostring(tokens)}
"""


class TokenBucketRateLimiter:
    """Shared quota for one upstream API."""

    def __init__(
        self,
        redis_client: redis.Redis,
        name: str,
        capacity: int,
        refill_rate: int,
        window: int = REFILL_WINDOW_SECONDS,
    ):
        self._redis = redis_client
        self._name = name
        self._capacity = capacity
        self._refill_rate = refill_rate
        self._window = window
        self._key = f"{BUCKET_KEY_PREFIX}:{name}"
        self._take = redis_client.register_script(TAKE_TOKEN_LUA)

        logger.info(
            "rate limiter %s ready capacity=%s refill=%s/%ss",
            name, capacity, refill_rate, window,
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def key(self) -> str:
        return self._key

    def acquire_token(self) -> Tuple[bool, float, float]:
        """
        Take one token if the bucket has one.

        Returns (granted, seconds_until_next_token, tokens_left). A Redis
        outage grants the token so a cache failure never halts price sync.
        """
        try:
            granted, wait, left = self._take(
                keys=[self._key],
                args=[self._capacity, self._refill_rate, self._window, time.time(), IDLE_EXPIRY_SECONDS],
            )
        except redis.RedisError as e:
            logger.error("rate limiter %s unavailable, letting call through: %s", self._name, e)
            return True, 0.0, 0.0

        return bool(int(granted)), float(wait), float(left)

    def wait_for_token(self, timeout: float = 120.0) -> bool:
        """Sleep until a token is granted; False if that would exceed ``timeout``."""
        deadline = time.time() + timeout

        while True:
            granted, wait, _ = self.acquire_token()
            if granted:
                return True

            remaining = deadline - time.time()
            if wait > remaining:
                logger.warning(
                    "rate limiter %s gave up: next token in %.2fs, %.2fs left",
                    self._name, wait, remaining,
                )
                return False

            time.sleep(min(wait + 0.1, remaining))

    def _read_state(self) -> Tuple[float, Optional[float]]:
        tokens, ts = self._redis.hmget(self._key, "tokens", "ts")
        return (
            float(tokens) if tokens is not None else float(self._capacity),
            float(ts) if ts is not None else None,
        )

    def get_available_tokens(self) -> float:
        try:
            return self._read_state()[0]
        except redis.RedisError as e:
            logger.error("rate limiter %s read failed: %s", self._name, e)
            return 0.0

    def reset(self) -> None:
        """Drop the bucket; the next call sees a full one."""
        try:
            self._redis.delete(self._key)
        except redis.RedisError as e:
            logger.error("rate limiter %s reset failed: %s", self._name, e)

    def get_status(self) -> dict:
        """Bucket snapshot for /health/details."""
        try:
            tokens, ts = self._read_state()
        except redis.RedisError as e:
            return {"name": self._name, "error": str(e)}

        return {
            "name": self._name,
            "available_tokens": round(tokens, 2),
            "capacity": self._capacity,
            "refill_rate_per_minute": self._refill_rate * 60 / self._window,
            "last_refill_timestamp": ts,
        }


_limiters: Dict[str, TokenBucketRateLimiter] = {}


def _limiter(name: str, capacity: int, refill_rate: int) -> TokenBucketRateLimiter:
    if name not in _limiters:
        _limiters[name] = TokenBucketRateLimiter(
            redis.from_url(settings.redis_url),
            name=name,
            capacity=capacity,
            refill_rate=refill_rate,
        )
    return _limiters[name]


def get_shopify_rate_limiter() -> TokenBucketRateLimiter:
    return _limiter("shopify", settings.shopify_rate_limit_capacity, settings.shopify_rate_limit_refill)


def get_rainforest_rate_limiter() -> TokenBucketRateLimiter:
    return _limiter("rainforest", settings.rainforest_rate_limit_capacity, settings.rainforest_rate_limit_refill)


def reset_rate_limiters() -> None:
    """Forget cached limiters (tests)."""
    _limiters.clear()
