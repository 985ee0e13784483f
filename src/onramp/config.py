"""Environment-based configuration."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings

from onramp.constants import (
    DEFAULT_CACHE_TTL,
    DEFAULT_MODELS,
    ISSUE_CLASSIFICATION_TTL,
    LLM_MAX_OUTPUT_TOKENS,
    REPO_ANALYSIS_TTL,
    RETRY_DELAY_SECONDS,
    RETRY_MAX_RETRIES,
    LLMProvider,
)

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Reads from .env file and environment variables."""

    # GitHub
    github_token: str = ""
    github_timeout_seconds: float = 30.0
    github_max_issue_pages: int = 10

    # LLM Provider
    llm_provider: LLMProvider = LLMProvider.OPENAI
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    llm_model: str = ""  # empty = provider default
    llm_timeout_seconds: float = 30.0
    llm_max_tokens: int = LLM_MAX_OUTPUT_TOKENS

    # Cache
    redis_url: str = "redis://localhost:6379"
    redis_socket_timeout_seconds: float = 5.0
    cache_default_ttl: int = DEFAULT_CACHE_TTL
    repo_cache_ttl: int = REPO_ANALYSIS_TTL
    issue_cache_ttl: int = ISSUE_CLASSIFICATION_TTL

    # Retry
    max_retries: int = RETRY_MAX_RETRIES
    retry_delay_seconds: float = RETRY_DELAY_SECONDS

    # Logging
    log_level: str = "INFO"

    @field_validator("llm_provider", mode="before")
    @classmethod
    def _normalize_provider(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("max_retries")
    @classmethod
    def _validate_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_retries must be >= 0")
        return v

    @field_validator("retry_delay_seconds")
    @classmethod
    def _validate_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("retry_delay_seconds must be >= 0")
        if v > 30:
            logger.warning(
                "RETRY_DELAY_SECONDS=%s is unusually large", v
            )
        return v

    @property
    def llm_api_key(self) -> str:
        """API key for the configured provider."""
        if self.llm_provider is LLMProvider.ANTHROPIC:
            return self.anthropic_api_key
        return self.openai_api_key

    @property
    def resolved_llm_model(self) -> str:
        return self.llm_model or DEFAULT_MODELS[self.llm_provider]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "",
        "extra": "ignore",
    }
