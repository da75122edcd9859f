import httpx
import openai
import pytest
from unittest.mock import AsyncMock, Mock
from langchain_core.messages import AIMessage

from summarybot.errors import ProviderError
from summarybot.gateway import AIGateway, is_transient
from summarybot.reply_cache import RedisReplyCache
from summarybot.response_parser import ResponseParser


def _gateway(llm, redis, retries=0):
    return AIGateway(llm, RedisReplyCache(redis), ResponseParser(), retries=retries, retry_delay=0)


@pytest.mark.asyncio
async def test_second_call_is_served_from_cache(redis):
    mock_llm = Mock()
    mock_llm.ainvoke = AsyncMock(return_value=AIMessage(content="hello there"))
    gateway = _gateway(mock_llm, redis)

    first = await gateway.get_reply("Plan my day")
    second = await gateway.get_reply("Plan my day")

    assert first == second == "hello there"
    mock_llm.ainvoke.assert_awaited_once()


@pytest.mark.asyncio
async def test_cache_entry_uses_one_hour_ttl(redis):
    mock_llm = Mock()
    mock_llm.ainvoke = AsyncMock(return_value=AIMessage(content="hi"))
    cache = RedisReplyCache(redis)
    gateway = AIGateway(mock_llm, cache, retries=0)

    await gateway.get_reply("prompt")

    assert redis.ttls[cache.key_for("prompt")] == 3600


@pytest.mark.asyncio
async def test_skip_cache_always_calls_provider(redis):
    mock_llm = Mock()
    mock_llm.ainvoke = AsyncMock(return_value=AIMessage(content="fresh"))
    gateway = _gateway(mock_llm, redis)

    await gateway.get_reply("same prompt")
    await gateway.get_reply("same prompt", skip_cache=True)
    await gateway.get_reply("same prompt", skip_cache=True)

    assert mock_llm.ainvoke.await_count == 3


@pytest.mark.asyncio
async def test_skip_cache_does_not_populate_cache(redis):
    mock_llm = Mock()
    mock_llm.ainvoke = AsyncMock(return_value=AIMessage(content="fresh"))
    gateway = _gateway(mock_llm, redis)

    await gateway.get_reply("uncached", skip_cache=True)

    assert redis.strings == {}


@pytest.mark.asyncio
async def test_different_prompts_do_not_share_entries(redis):
    mock_llm = Mock()
    mock_llm.ainvoke = AsyncMock(side_effect=[AIMessage(content="a"), AIMessage(content="b")])
    gateway = _gateway(mock_llm, redis)

    assert await gateway.get_reply("prompt a") == "a"
    assert await gateway.get_reply("prompt b") == "b"


@pytest.mark.asyncio
async def test_provider_failure_becomes_provider_error(redis):
    mock_llm = Mock()
    mock_llm.ainvoke = AsyncMock(side_effect=RuntimeError("quota exhausted"))
    gateway = _gateway(mock_llm, redis)

    with pytest.raises(ProviderError, match="RuntimeError: quota exhausted") as info:
        await gateway.get_reply("msg")
    assert info.value.status == 500


@pytest.mark.asyncio
async def test_transient_failure_is_retried(redis):
    mock_llm = Mock()
    mock_llm.ainvoke = AsyncMock(side_effect=[
        ProviderError(503, "unavailable", "try later"),
        AIMessage(content="recovered"),
    ])
    gateway = _gateway(mock_llm, redis, retries=2)

    assert await gateway.get_reply("msg") == "recovered"
    assert mock_llm.ainvoke.await_count == 2


@pytest.mark.asyncio
async def test_retries_are_bounded(redis):
    mock_llm = Mock()
    mock_llm.ainvoke = AsyncMock(side_effect=ProviderError(429, "rate_limit", "slow down"))
    gateway = _gateway(mock_llm, redis, retries=2)

    with pytest.raises(ProviderError, match="rate_limit: slow down"):
        await gateway.get_reply("msg")
    assert mock_llm.ainvoke.await_count == 3


@pytest.mark.asyncio
async def test_non_transient_failure_is_not_retried(redis):
    mock_llm = Mock()
    mock_llm.ainvoke = AsyncMock(side_effect=ProviderError(400, "invalid_argument", "bad prompt"))
    gateway = _gateway(mock_llm, redis, retries=2)

    with pytest.raises(ProviderError):
        await gateway.get_reply("msg")
    mock_llm.ainvoke.assert_awaited_once()


@pytest.mark.asyncio
async def test_empty_reply_is_an_error(redis):
    mock_llm = Mock()
    mock_llm.ainvoke = AsyncMock(return_value=AIMessage(content="   "))
    gateway = _gateway(mock_llm, redis)

    with pytest.raises(ProviderError, match="empty_response"):
        await gateway.get_reply("msg")
    assert redis.strings == {}


@pytest.mark.asyncio
async def test_broken_cache_falls_through_to_provider(redis):
    redis.broken = True
    mock_llm = Mock()
    mock_llm.ainvoke = AsyncMock(return_value=AIMessage(content="still works"))
    gateway = _gateway(mock_llm, redis)

    assert await gateway.get_reply("msg") == "still works"


def test_is_transient():
    assert is_transient(ProviderError(503))
    assert is_transient(ProviderError(429))
    assert not is_transient(ProviderError(401))
    assert not is_transient(ValueError("nope"))


@pytest.mark.asyncio
async def test_sdk_connection_error_is_retried(redis):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    mock_llm = Mock()
    mock_llm.ainvoke = AsyncMock(side_effect=openai.APIConnectionError(request=request))
    gateway = _gateway(mock_llm, redis, retries=2)

    with pytest.raises(ProviderError) as info:
        await gateway.get_reply("msg")
    assert info.value.status == 503
    assert mock_llm.ainvoke.await_count == 3


@pytest.mark.asyncio
async def test_sdk_timeout_then_success(redis):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    mock_llm = Mock()
    mock_llm.ainvoke = AsyncMock(side_effect=[
        openai.APITimeoutError(request=request),
        AIMessage(content="made it"),
    ])
    gateway = _gateway(mock_llm, redis, retries=2)

    assert await gateway.get_reply("msg") == "made it"
    assert mock_llm.ainvoke.await_count == 2
