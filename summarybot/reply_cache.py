
import hashlib
import logging
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class RedisReplyCache:
    """
    Prompt -> reply cache with a per-entry TTL.

    Keys are derived from the exact prompt text, so two prompts only share an
    entry when they are byte-for-byte identical. Backend failures degrade to a
    miss instead of failing the request.
    """

    def __init__(self, redis: Redis, ttl_seconds: int = 3600, prefix: str = "reply"):
        self.redis = redis
        self.ttl = ttl_seconds
        self.prefix = prefix

    def key_for(self, prompt: str) -> str:
        digest = hashlib.sha256(prompt.encode("utf-8")).hexdigest()
        return f"{self.prefix}:{digest}"

    async def get(self, prompt: str) -> Optional[str]:
        try:
            data = await self.redis.get(self.key_for(prompt))
        except RedisError as exc:
            logger.warning("Reply cache read failed: %s", exc)
            return None
        if not data:
            return None
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        return data

    async def set(self, prompt: str, reply: str) -> None:
        try:
            await self.redis.set(self.key_for(prompt), reply, ex=self.ttl)
        except RedisError as exc:
            logger.warning("Reply cache write failed: %s", exc)
