
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# .env lives in the project root, next to the summarybot package
ENV_PATH = Path(__file__).resolve().parent.parent / ".env"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """
    Process-wide configuration, read once at start-up.

    Every field has a default so tests can build ``Settings(...)`` with only
    the values they care about.
    """

    llm_provider: str = "gemini"
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"

    redis_url: str = "redis://localhost:6379/0"
    host: str = "0.0.0.0"
    port: int = 5000

    cache_ttl_seconds: int = 3600
    ai_retries: int = 2
    ai_retry_delay: float = 3.0
    chat_parallel_prompts: bool = False

    rate_limit_max: int = 100
    rate_limit_window_seconds: int = 15 * 60

    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv(dotenv_path=ENV_PATH)
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            llm_provider=os.getenv("LLM_PROVIDER", "gemini").strip().lower(),
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-1.5-flash"),
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "5000")),
            cache_ttl_seconds=int(os.getenv("CACHE_TTL_SECONDS", "3600")),
            ai_retries=int(os.getenv("AI_RETRIES", "2")),
            ai_retry_delay=float(os.getenv("AI_RETRY_DELAY", "3.0")),
            chat_parallel_prompts=_env_bool("CHAT_PARALLEL_PROMPTS", False),
            rate_limit_max=int(os.getenv("RATE_LIMIT_MAX", "100")),
            rate_limit_window_seconds=int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "900")),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
