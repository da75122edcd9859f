# summarybot/gateway.py
from __future__ import annotations

import logging

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from .errors import ProviderError
from .reply_cache import RedisReplyCache
from .response_parser import ResponseParser

logger = logging.getLogger(__name__)

TRANSIENT_STATUSES = frozenset({408, 429, 502, 503, 504})


def is_transient(exc: BaseException) -> bool:
    return isinstance(exc, ProviderError) and exc.status in TRANSIENT_STATUSES


class AIGateway:
    """
    The only place that talks to the generative-AI provider.

    Responsibilities
    ----------------
    1. Look the prompt up in the reply cache (unless told to skip it)
    2. Call the chat model on a miss                       -> BaseChatModel
    3. Retry transient upstream failures with backoff       -> tenacity
    4. Normalize every failure into a ``ProviderError``
    5. Cache the fresh reply for the cache TTL
    """

    def __init__(
        self,
        llm: BaseChatModel,
        cache: RedisReplyCache,
        parser: ResponseParser | None = None,
        retries: int = 2,
        retry_delay: float = 3.0,
    ) -> None:
        self._llm = llm
        self._cache = cache
        self._parser = parser or ResponseParser()
        self._retries = max(retries, 0)
        self._retry_delay = max(retry_delay, 0.0)

    async def get_reply(self, prompt: str, skip_cache: bool = False) -> str:
        """
        Return the model's text reply for ``prompt``.

        Raises
        ------
        ProviderError
            If the provider fails (after retries for transient failures) or
            returns an empty reply.
        """
        if not skip_cache:
            cached = await self._cache.get(prompt)
            if cached:
                logger.info("Returning cached response")
                return cached

        reply = await self._call_with_retry(prompt)

        if not skip_cache:
            await self._cache.set(prompt, reply)
        return reply

    async def _call_with_retry(self, prompt: str) -> str:
        retrying = AsyncRetrying(
            retry=retry_if_exception(is_transient),
            wait=wait_exponential(multiplier=self._retry_delay, max=60),
            stop=stop_after_attempt(self._retries + 1),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._call(prompt)
        raise ProviderError()  # unreachable, keeps type checkers quiet

    async def _call(self, prompt: str) -> str:
        try:
            raw = await self._llm.ainvoke([HumanMessage(content=prompt)])
        except Exception as exc:  # noqa: BLE001 - every provider SDK has its own hierarchy
            error = ProviderError.from_exception(exc)
            logger.error("Provider call failed (%s): %s", error.status, error)
            raise error from exc

        reply = self._parser.parse_reply(raw)
        if not reply:
            raise ProviderError(502, "empty_response", "Provider returned an empty reply")
        return reply
