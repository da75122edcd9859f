import pytest

from summarybot.settings import Settings

from .fakes import InMemoryRedis


@pytest.fixture
def redis():
    return InMemoryRedis()


@pytest.fixture
def settings():
    return Settings(
        gemini_api_key="test-key",
        ai_retries=0,
        ai_retry_delay=0,
    )
