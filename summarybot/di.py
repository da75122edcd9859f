import logging
from contextlib import asynccontextmanager

from fastapi import Depends, Request
from langchain_core.language_models.chat_models import BaseChatModel
from pydantic import SecretStr
from redis.asyncio import Redis

from .conversation_store import RedisConversationStore
from .gateway import AIGateway
from .orchestrator import ChatOrchestrator, HistoryService
from .prompt_builder import PromptBuilder
from .rate_limiter import RedisRateLimiter
from .reply_cache import RedisReplyCache
from .response_parser import ResponseParser
from .settings import Settings

logger = logging.getLogger(__name__)


def build_chat_model(settings: Settings) -> BaseChatModel:
    """
    Pick the LangChain chat model for the configured provider.

    SDK-level retries are switched off; AIGateway owns the retry policy.
    """
    if settings.llm_provider == "openai":
        from langchain_openai import ChatOpenAI

        if not settings.openai_api_key:
            raise ValueError("No OpenAI API key found ─ set OPENAI_API_KEY in your environment.")
        return ChatOpenAI(
            model=settings.openai_model,
            api_key=SecretStr(settings.openai_api_key),
            max_retries=0,
        )

    if settings.llm_provider == "gemini":
        from langchain_google_genai import ChatGoogleGenerativeAI

        if not settings.gemini_api_key:
            raise ValueError("No Gemini API key found ─ set GEMINI_API_KEY in your environment.")
        return ChatGoogleGenerativeAI(
            model=settings.gemini_model,
            google_api_key=SecretStr(settings.gemini_api_key),
            max_retries=0,
        )

    raise ValueError(f"Unknown LLM_PROVIDER {settings.llm_provider!r} (expected 'gemini' or 'openai')")


def make_lifespan(settings: Settings, redis: Redis | None = None, llm: BaseChatModel | None = None):
    """
    Build the FastAPI lifespan. ``redis`` and ``llm`` may be injected (tests);
    otherwise they come from ``settings``. Only a Redis client we created is closed.
    """

    @asynccontextmanager
    async def lifespan(app):
        owned = redis is None
        client = redis if redis is not None else Redis.from_url(settings.redis_url, decode_responses=True)
        app.state.settings = settings
        app.state.redis = client
        app.state.llm = llm if llm is not None else build_chat_model(settings)
        logger.info("summarybot started (provider=%s)", settings.llm_provider)
        try:
            yield
        finally:
            if owned:
                await client.aclose()

    return lifespan


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


async def get_redis(request: Request) -> Redis:
    return request.app.state.redis            # already set in lifespan()


def get_llm(request: Request) -> BaseChatModel:
    return request.app.state.llm


def prompt_builder() -> PromptBuilder:
    return PromptBuilder()


def response_parser() -> ResponseParser:
    return ResponseParser()


def reply_cache(
    redis: Redis = Depends(get_redis),
    settings: Settings = Depends(get_settings_dep),
) -> RedisReplyCache:
    return RedisReplyCache(redis, ttl_seconds=settings.cache_ttl_seconds)


def conversation_store(redis: Redis = Depends(get_redis)) -> RedisConversationStore:
    return RedisConversationStore(redis)


def ai_gateway(
    llm: BaseChatModel = Depends(get_llm),
    cache: RedisReplyCache = Depends(reply_cache),
    parser: ResponseParser = Depends(response_parser),
    settings: Settings = Depends(get_settings_dep),
) -> AIGateway:
    return AIGateway(
        llm,
        cache,
        parser,
        retries=settings.ai_retries,
        retry_delay=settings.ai_retry_delay,
    )


def orchestrator(
    gateway: AIGateway = Depends(ai_gateway),
    store: RedisConversationStore = Depends(conversation_store),
    builder: PromptBuilder = Depends(prompt_builder),
    settings: Settings = Depends(get_settings_dep),
) -> ChatOrchestrator:
    return ChatOrchestrator(gateway, store, builder, parallel=settings.chat_parallel_prompts)


def history_service(store: RedisConversationStore = Depends(conversation_store)) -> HistoryService:
    return HistoryService(store)


def rate_limiter(request: Request) -> RedisRateLimiter:
    settings: Settings = request.app.state.settings
    return RedisRateLimiter(
        request.app.state.redis,
        limit=settings.rate_limit_max,
        window_sec=settings.rate_limit_window_seconds,
    )
