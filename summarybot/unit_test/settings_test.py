import pytest

from summarybot.di import build_chat_model
from summarybot.settings import Settings


def test_from_env_defaults(monkeypatch):
    for name in ("LLM_PROVIDER", "PORT", "CACHE_TTL_SECONDS", "RATE_LIMIT_MAX",
                 "RATE_LIMIT_WINDOW_SECONDS", "CORS_ORIGINS", "CHAT_PARALLEL_PROMPTS",
                 "REDIS_URL", "GEMINI_MODEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("summarybot.settings.load_dotenv", lambda **kw: False)

    s = Settings.from_env()

    assert s.llm_provider == "gemini"
    assert s.gemini_model == "gemini-1.5-flash"
    assert s.port == 5000
    assert s.cache_ttl_seconds == 3600
    assert s.rate_limit_max == 100
    assert s.rate_limit_window_seconds == 900
    assert s.cors_origins == ["*"]
    assert s.chat_parallel_prompts is False


def test_from_env_overrides(monkeypatch):
    monkeypatch.setattr("summarybot.settings.load_dotenv", lambda **kw: False)
    monkeypatch.setenv("LLM_PROVIDER", "OpenAI")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:3000, http://example.com")
    monkeypatch.setenv("CHAT_PARALLEL_PROMPTS", "true")

    s = Settings.from_env()

    assert s.llm_provider == "openai"
    assert s.port == 8080
    assert s.cors_origins == ["http://localhost:3000", "http://example.com"]
    assert s.chat_parallel_prompts is True


def test_missing_api_key_is_reported():
    with pytest.raises(ValueError, match="GEMINI_API_KEY"):
        build_chat_model(Settings(gemini_api_key=None))
    with pytest.raises(ValueError, match="OPENAI_API_KEY"):
        build_chat_model(Settings(llm_provider="openai", openai_api_key=None))


def test_unknown_provider_is_reported():
    with pytest.raises(ValueError, match="LLM_PROVIDER"):
        build_chat_model(Settings(llm_provider="claude"))


def test_sdk_retries_are_disabled():
    gemini = build_chat_model(Settings(gemini_api_key="test-key"))
    gpt = build_chat_model(Settings(llm_provider="openai", openai_api_key="test-key"))

    assert gemini.max_retries == 0
    assert gpt.max_retries == 0
