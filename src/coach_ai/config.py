import os
from dataclasses import dataclass
from functools import lru_cache

import redis
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Remote model provider
    gemini_api_key: str | None = os.getenv("GEMINI_API_KEY") or None
    gemini_base_url: str = os.getenv(
        "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
    )
    model_fast: str = os.getenv("MODEL_FAST", "gemini-2.0-flash")
    model_pro: str = os.getenv("MODEL_PRO", "gemini-2.0-pro")
    retry_base_delay: float = float(os.getenv("RETRY_BASE_DELAY", "0.5"))
    offline_mode: bool = os.getenv("OFFLINE_MODE", "false").lower() == "true"

    # Response cache
    cache_max_entries: int = int(os.getenv("CACHE_MAX_ENTRIES", "500"))
    cache_default_ttl: float = float(os.getenv("CACHE_DEFAULT_TTL", "86400"))  # 24 hours
    cache_persist: bool = os.getenv("CACHE_PERSIST", "true").lower() == "true"

    # Semantic cache
    semantic_cache_threshold: float = float(os.getenv("SEMANTIC_CACHE_THRESHOLD", "0.8"))
    semantic_cache_max_entries: int = int(os.getenv("SEMANTIC_CACHE_MAX_ENTRIES", "100"))

    # Usage budget (estimated units)
    budget_daily_limit: int = int(os.getenv("BUDGET_DAILY_LIMIT", "100000"))
    budget_monthly_limit: int = int(os.getenv("BUDGET_MONTHLY_LIMIT", "2000000"))

    # Context assembly
    chars_per_unit: int = int(os.getenv("CHARS_PER_UNIT", "4"))
    context_max_units: int = int(os.getenv("CONTEXT_MAX_UNITS", "800"))

    # Device-local storage: "file", "redis" or "memory"
    storage_backend: str = os.getenv("STORAGE_BACKEND", "file")
    storage_path: str = os.getenv("STORAGE_PATH", ".coach_ai")

    # Redis (only used by the redis storage backend)
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "true").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def remote_configured(self) -> bool:
        """Check if an API key for the remote provider is present.

        Returns:
            True if the remote provider can be called, False otherwise
        """
        return bool(self.gemini_api_key)

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if not 0 < self.semantic_cache_threshold <= 1:
            raise ValueError("SEMANTIC_CACHE_THRESHOLD must be in (0, 1] for Jaccard similarity")

        if self.cache_max_entries < 1:
            raise ValueError("CACHE_MAX_ENTRIES must be at least 1")

        if self.chars_per_unit < 1:
            raise ValueError("CHARS_PER_UNIT must be at least 1")

        if self.storage_backend not in ("file", "redis", "memory"):
            raise ValueError(
                f"STORAGE_BACKEND must be one of ['file', 'redis', 'memory'], "
                f"got {self.storage_backend!r}"
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client() -> redis.Redis:
    """Create a Redis client instance."""
    return redis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=False,
    )
