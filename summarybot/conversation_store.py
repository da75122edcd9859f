
import logging
from typing import List

from redis.asyncio import Redis
from redis.exceptions import RedisError

from .errors import StoreError
from .models import ConversationRecord

logger = logging.getLogger(__name__)


class RedisConversationStore:
    """
    Append-only conversation history.

    Layout
    ------
    ``<prefix>:<id>``   one JSON document per ConversationRecord
    ``<prefix>s``       sorted set of ids scored by ``createdAt`` (epoch seconds)

    Only insert, count and a reverse-chronological paged scan are offered;
    records are never updated or deleted.
    """

    def __init__(self, redis: Redis, prefix: str = "conversation"):
        self.redis = redis
        self.prefix = prefix
        self.index_key = f"{prefix}s"

    def _record_key(self, record_id: str) -> str:
        return f"{self.prefix}:{record_id}"

    async def insert(self, record: ConversationRecord) -> ConversationRecord:
        data = record.model_dump_json(by_alias=True)
        score = record.created_at.timestamp()
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.set(self._record_key(record.id), data)
                pipe.zadd(self.index_key, {record.id: score})
                await pipe.execute()
        except RedisError as exc:
            raise StoreError(f"Failed to save conversation: {exc}") from exc
        logger.info("Stored conversation %s", record.id)
        return record

    async def count(self) -> int:
        try:
            return int(await self.redis.zcard(self.index_key))
        except RedisError as exc:
            raise StoreError(f"Failed to count conversations: {exc}") from exc

    async def page(self, offset: int, limit: int) -> List[ConversationRecord]:
        """Newest first, skipping ``offset`` records and returning at most ``limit``."""
        if limit <= 0:
            return []
        try:
            ids = await self.redis.zrevrange(self.index_key, offset, offset + limit - 1)
            if not ids:
                return []
            ids = [i.decode("utf-8") if isinstance(i, bytes) else i for i in ids]
            raw = await self.redis.mget([self._record_key(i) for i in ids])
        except RedisError as exc:
            raise StoreError(f"Failed to read conversations: {exc}") from exc

        records: List[ConversationRecord] = []
        for record_id, data in zip(ids, raw):
            if data is None:
                raise StoreError(f"Conversation {record_id} is indexed but missing from store")
            try:
                records.append(ConversationRecord.model_validate_json(data))
            except ValueError as exc:
                raise StoreError(f"Corrupt conversation {record_id}: {exc}") from exc
        return records
