"""Tests for Settings defaults and validators."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from onramp.config import Settings
from onramp.constants import LLMProvider


class TestDefaults:
    def test_defaults(self) -> None:
        s = Settings(_env_file=None)
        assert s.github_token == ""
        assert s.llm_provider is LLMProvider.OPENAI
        assert s.redis_url == "redis://localhost:6379"
        assert s.repo_cache_ttl == 3600
        assert s.issue_cache_ttl == 1800
        assert s.max_retries == 3
        assert s.retry_delay_seconds == 1.0
        assert s.github_max_issue_pages == 10

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REDIS_URL", "redis://cache:6380/1")
        monkeypatch.setenv("MAX_RETRIES", "5")
        s = Settings(_env_file=None)
        assert s.redis_url == "redis://cache:6380/1"
        assert s.max_retries == 5


class TestProvider:
    @pytest.mark.parametrize("raw", ["anthropic", "ANTHROPIC", " Anthropic "])
    def test_provider_normalized(self, raw: str) -> None:
        s = Settings(_env_file=None, llm_provider=raw)  # type: ignore[arg-type]
        assert s.llm_provider is LLMProvider.ANTHROPIC

    def test_unknown_provider_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, llm_provider="cohere")  # type: ignore[arg-type]

    def test_api_key_follows_provider(self) -> None:
        s = Settings(
            _env_file=None,
            openai_api_key="sk-openai-0123456789",
            anthropic_api_key="sk-ant-0123456789",
        )
        assert s.llm_api_key == "sk-openai-0123456789"

        s = Settings(
            _env_file=None,
            llm_provider=LLMProvider.ANTHROPIC,
            openai_api_key="sk-openai-0123456789",
            anthropic_api_key="sk-ant-0123456789",
        )
        assert s.llm_api_key == "sk-ant-0123456789"


class TestResolvedModel:
    def test_provider_defaults(self) -> None:
        assert Settings(_env_file=None).resolved_llm_model == "gpt-3.5-turbo"
        s = Settings(_env_file=None, llm_provider=LLMProvider.ANTHROPIC)
        assert s.resolved_llm_model == "claude-3-sonnet"

    def test_explicit_model_wins(self) -> None:
        s = Settings(_env_file=None, llm_model="gpt-4o-mini")
        assert s.resolved_llm_model == "gpt-4o-mini"


class TestRetryValidation:
    def test_negative_retries_raise(self) -> None:
        with pytest.raises(ValueError, match="max_retries must be >= 0"):
            Settings(_env_file=None, max_retries=-1)

    def test_zero_retries_allowed(self) -> None:
        assert Settings(_env_file=None, max_retries=0).max_retries == 0

    def test_negative_delay_raises(self) -> None:
        with pytest.raises(ValueError, match="retry_delay_seconds"):
            Settings(_env_file=None, retry_delay_seconds=-0.5)

    def test_large_delay_warns(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="onramp.config"):
            s = Settings(_env_file=None, retry_delay_seconds=60)
        assert "unusually large" in caplog.text
        assert s.retry_delay_seconds == 60
