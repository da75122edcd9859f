import itertools
from typing import Any, Dict, List, Optional

from langchain_core.messages import AIMessage
from redis.exceptions import ConnectionError as RedisConnectionError


class InMemoryRedis:
    """Just enough of ``redis.asyncio.Redis`` for the store, cache and limiter."""

    def __init__(self):
        self.strings: Dict[str, str] = {}
        self.zsets: Dict[str, Dict[str, float]] = {}
        self.ttls: Dict[str, int] = {}
        self.broken = False

    def _check(self):
        if self.broken:
            raise RedisConnectionError("redis is down")

    async def get(self, key: str) -> Optional[str]:
        self._check()
        return self.strings.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None):
        self._check()
        self.strings[key] = value
        if ex is not None:
            self.ttls[key] = ex
        return True

    async def mget(self, keys: List[str]) -> List[Optional[str]]:
        self._check()
        return [self.strings.get(k) for k in keys]

    async def expire(self, key: str, seconds: int):
        self._check()
        self.ttls[key] = seconds
        return True

    async def zadd(self, key: str, mapping: Dict[str, float]):
        self._check()
        zset = self.zsets.setdefault(key, {})
        added = sum(1 for m in mapping if m not in zset)
        zset.update(mapping)
        return added

    async def zcard(self, key: str) -> int:
        self._check()
        return len(self.zsets.get(key, {}))

    async def zrevrange(self, key: str, start: int, end: int) -> List[str]:
        self._check()
        items = sorted(self.zsets.get(key, {}).items(), key=lambda kv: (kv[1], kv[0]), reverse=True)
        members = [m for m, _ in items]
        stop = None if end == -1 else end + 1
        return members[start:stop]

    async def zremrangebyscore(self, key: str, low: float, high: float):
        self._check()
        zset = self.zsets.get(key, {})
        doomed = [m for m, s in zset.items() if low <= s <= high]
        for m in doomed:
            del zset[m]
        return len(doomed)

    def pipeline(self, transaction: bool = True):
        return _Pipeline(self)

    async def aclose(self):
        pass


class _Pipeline:
    def __init__(self, redis: InMemoryRedis):
        self._redis = redis
        self._queued: List[tuple] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self._queued = []
        return False

    def __getattr__(self, name: str):
        method = getattr(self._redis, name)

        def queue(*args: Any, **kwargs: Any):
            self._queued.append((method, args, kwargs))
            return self

        return queue

    async def execute(self):
        self._redis._check()
        results = []
        for method, args, kwargs in self._queued:
            results.append(await method(*args, **kwargs))
        self._queued = []
        return results


class FakeChatModel:
    """Stands in for a LangChain chat model; answers are numbered so every call is visible."""

    def __init__(self, error: Optional[BaseException] = None, fail_on: Optional[str] = None):
        self.prompts: List[str] = []
        self.error = error
        self.fail_on = fail_on
        self._counter = itertools.count(1)

    async def ainvoke(self, messages, **kwargs):
        prompt = messages[0].content
        self.prompts.append(prompt)
        if self.error is not None and (self.fail_on is None or self.fail_on in prompt):
            raise self.error
        return AIMessage(content=f"answer #{next(self._counter)}")

