
import time
import uuid

from redis.asyncio import Redis

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


class RedisRateLimiter:
    """Sliding-window log: at most ``limit`` hits per ``window_sec`` for each key."""

    def __init__(self, redis: Redis, limit: int = 100, window_sec: int = 15 * 60):
        self.redis = redis
        self.limit = limit
        self.window = window_sec

    async def allow(self, key: str) -> bool:
        now = time.time()
        window_key = f"rate:{key}"
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.zremrangebyscore(window_key, 0, now - self.window)
            pipe.zadd(window_key, {f"{now}:{uuid.uuid4().hex}": now})
            pipe.zcard(window_key)
            pipe.expire(window_key, self.window)
            _, _, current, _ = await pipe.execute()
        return current <= self.limit
