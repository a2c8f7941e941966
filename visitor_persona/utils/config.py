"""
Application settings, loaded from environment variables and .env file.

Environment variables:
    DATABASE_URL         - PostgreSQL connection string (sessions and behavior)
    GROQ_API_KEY         - Groq API key (OpenAI-compatible)
    OPENROUTER_API_KEY   - OpenRouter API key (preferred for classification)
    GROQ_MODEL           - Groq model used for classification
    OPENROUTER_MODEL     - OpenRouter model used for classification
    SITE_URL             - Sent to OpenRouter as the HTTP-Referer header
    LLM_TIMEOUT_SECONDS  - Upper bound on one disambiguation call
    CRON_SECRET          - Bearer token for the retention cleanup endpoint
    LOG_RETENTION_DAYS   - Age after which raw behavior logs are purged
    BEHAVIOR_RETENTION_DAYS - Age after which aggregated behavior is purged
    LOG_LEVEL            - Root logging level
"""

from functools import lru_cache

from pydantic_settings import BaseSettings

from visitor_persona.utils.constants import (
    BEHAVIOR_RETENTION_DAYS,
    GROQ_CLASSIFICATION_MODEL,
    LLM_MAX_TOKENS,
    LLM_TEMPERATURE,
    LLM_TIMEOUT_SECONDS,
    LOG_RETENTION_DAYS,
    OPENROUTER_CLASSIFICATION_MODEL,
)


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "extra": "ignore"}

    # Storage; empty disables persistence and classification returns the default
    database_url: str = ""

    # LLM providers
    groq_api_key: str = ""
    openrouter_api_key: str = ""
    groq_model: str = GROQ_CLASSIFICATION_MODEL
    openrouter_model: str = OPENROUTER_CLASSIFICATION_MODEL
    site_url: str = "http://localhost:3000"

    llm_timeout_seconds: float = LLM_TIMEOUT_SECONDS
    llm_temperature: float = LLM_TEMPERATURE
    llm_max_tokens: int = LLM_MAX_TOKENS

    # Bearer token required by the cleanup job; empty leaves it open
    cron_secret: str = ""
    log_retention_days: int = LOG_RETENTION_DAYS
    behavior_retention_days: int = BEHAVIOR_RETENTION_DAYS

    log_level: str = "INFO"

    @property
    def llm_configured(self) -> bool:
        return bool(self.openrouter_api_key or self.groq_api_key)


@lru_cache
def get_settings() -> Settings:
    return Settings()
