"""Tests for LLMClient — credential gating, retries, parse fallbacks."""

from __future__ import annotations

import json
from collections.abc import Callable
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from onramp.clients.llm_client import LLMClient
from onramp.config import Settings
from onramp.constants import (
    SYSTEM_PROMPT,
    Complexity,
    ExperienceLevel,
    LLMProvider,
)
from onramp.exceptions import ServiceUnavailableError
from onramp.schemas import (
    FileNode,
    GitHubIssue,
    RepositoryAnalysis,
    UserProfile,
)
from onramp.synthesis import (
    synthesize_architecture,
    synthesize_contribution_path,
    synthesize_issue_difficulty,
    synthesize_match_score,
    synthesize_modules,
    synthesize_summary,
)

VALID_KEY = "sk-test-0123456789abcdef"
PATCH_TARGET = "onramp.clients.llm_client._acompletion"


class _StatusCodeError(Exception):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


def _response(content: str | None) -> Any:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


def _client(
    provider: LLMProvider = LLMProvider.OPENAI,
    api_key: str = VALID_KEY,
    max_retries: int = 3,
) -> LLMClient:
    return LLMClient(
        provider, api_key, max_retries=max_retries, retry_delay=0
    )


@pytest.fixture
def profile() -> UserProfile:
    return UserProfile(
        user_id="u1",
        languages=["TypeScript"],
        frameworks=["React"],
        experience_level=ExperienceLevel.BEGINNER,
        interests=["web"],
    )


class TestCredentialGating:
    @pytest.mark.parametrize(
        "api_key", ["", "your_openai_api_key_here", "sk-123"]
    )
    async def test_unusable_key_synthesizes_without_call(
        self, api_key: str, sample_structure: list[FileNode]
    ) -> None:
        client = _client(api_key=api_key)
        mock = AsyncMock()
        with patch(PATCH_TARGET, mock):
            overview = await client.generate_architecture_overview(
                sample_structure, ""
            )
            modules = await client.explain_modules(sample_structure, "")
            summary = await client.generate_repository_summary(
                "", sample_structure
            )

        mock.assert_not_awaited()
        assert overview == synthesize_architecture(sample_structure)
        assert modules == synthesize_modules(sample_structure)
        assert summary == synthesize_summary("", sample_structure)
        assert not client.available

    async def test_complete_returns_none_without_credential(self) -> None:
        mock = AsyncMock()
        with patch(PATCH_TARGET, mock):
            assert await _client(api_key="").complete("hi") is None
        mock.assert_not_awaited()

    async def test_rejected_key_synthesizes_and_stops_calling(
        self,
        sample_analysis: RepositoryAnalysis,
        make_issue: Callable[..., GitHubIssue],
    ) -> None:
        client = _client()
        mock = AsyncMock(side_effect=_StatusCodeError(401))
        with patch(PATCH_TARGET, mock):
            first = await client.classify_issue_difficulty(
                make_issue(1), sample_analysis
            )
            second = await client.classify_issue_difficulty(
                make_issue(2), sample_analysis
            )

        assert first == second == synthesize_issue_difficulty()
        assert mock.await_count == 1
        assert not client.available

    def test_from_settings_uses_provider_key(self) -> None:
        client = LLMClient.from_settings(
            Settings(
                _env_file=None,  # type: ignore[call-arg]
                llm_provider=LLMProvider.ANTHROPIC,
                anthropic_api_key=VALID_KEY,
                max_retries=1,
            )
        )
        assert client.provider is LLMProvider.ANTHROPIC
        assert client.model == "claude-3-sonnet"
        assert client.max_retries == 1
        assert client.available


class TestProviderRequests:
    async def test_openai_request_shape(self) -> None:
        mock = AsyncMock(return_value=_response("hello"))
        with patch(PATCH_TARGET, mock):
            assert await _client().complete("Explain this") == "hello"

        kwargs = mock.call_args.kwargs
        assert kwargs["model"] == "openai/gpt-3.5-turbo"
        assert kwargs["messages"] == [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": "Explain this"},
        ]
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 2000
        assert kwargs["api_key"] == VALID_KEY

    async def test_anthropic_request_shape(self) -> None:
        mock = AsyncMock(return_value=_response("hello"))
        with patch(PATCH_TARGET, mock):
            await _client(LLMProvider.ANTHROPIC).complete("Explain this")

        kwargs = mock.call_args.kwargs
        assert kwargs["model"] == "anthropic/claude-3-sonnet"
        assert kwargs["messages"] == [
            {"role": "user", "content": "Explain this"}
        ]
        assert "temperature" not in kwargs

    async def test_none_content_becomes_empty_string(self) -> None:
        with patch(PATCH_TARGET, AsyncMock(return_value=_response(None))):
            assert await _client().complete("x") == ""


class TestRetries:
    async def test_transient_failure_retried(self) -> None:
        mock = AsyncMock(
            side_effect=[_StatusCodeError(503), _response("recovered")]
        )
        with patch(PATCH_TARGET, mock):
            assert await _client().complete("x") == "recovered"
        assert mock.await_count == 2

    async def test_exhaustion_raises_service_unavailable(self) -> None:
        mock = AsyncMock(side_effect=_StatusCodeError(500))
        with (
            patch(PATCH_TARGET, mock),
            pytest.raises(ServiceUnavailableError) as exc_info,
        ):
            await _client(max_retries=2).complete("x")

        assert mock.await_count == 3
        assert exc_info.value.details["attempts"] == 3

    async def test_terminal_failure_not_retried(self) -> None:
        mock = AsyncMock(side_effect=_StatusCodeError(400))
        with (
            patch(PATCH_TARGET, mock),
            pytest.raises(ServiceUnavailableError),
        ):
            await _client().complete("x")
        assert mock.await_count == 1

    async def test_unavailable_provider_synthesizes(
        self, sample_structure: list[FileNode]
    ) -> None:
        mock = AsyncMock(side_effect=ConnectionResetError())
        with patch(PATCH_TARGET, mock):
            modules = await _client(max_retries=1).explain_modules(
                sample_structure, ""
            )
        assert modules == synthesize_modules(sample_structure)
        assert mock.await_count == 2


class TestResponseParsing:
    async def test_summary_uses_llm_text(
        self, sample_structure: list[FileNode]
    ) -> None:
        text = "  A library for parsing things, aimed at data engineers.  "
        with patch(PATCH_TARGET, AsyncMock(return_value=_response(text))):
            summary = await _client().generate_repository_summary(
                "", sample_structure
            )
        assert summary == text.strip()

    async def test_too_short_summary_synthesized(
        self, sample_structure: list[FileNode]
    ) -> None:
        with patch(PATCH_TARGET, AsyncMock(return_value=_response("ok"))):
            summary = await _client().generate_repository_summary(
                "", sample_structure
            )
        assert summary == synthesize_summary("", sample_structure)

    async def test_architecture_json(
        self, sample_structure: list[FileNode]
    ) -> None:
        payload = {
            "description": "Layered service with a thin HTTP edge.",
            "patterns": ["Layered"],
            "technologies": ["TypeScript"],
            "keyComponents": ["src"],
        }
        text = f"```json\n{json.dumps(payload)}\n```"
        with patch(PATCH_TARGET, AsyncMock(return_value=_response(text))):
            overview = await _client().generate_architecture_overview(
                sample_structure, ""
            )
        assert overview.patterns == ["Layered"]
        assert overview.key_components == ["src"]

    async def test_architecture_prose_becomes_description(
        self, sample_structure: list[FileNode]
    ) -> None:
        text = "The project follows a classic MVC layout."
        with patch(PATCH_TARGET, AsyncMock(return_value=_response(text))):
            overview = await _client().generate_architecture_overview(
                sample_structure, ""
            )
        assert overview.description == text
        assert overview.patterns == []

    async def test_architecture_schema_mismatch_synthesized(
        self, sample_structure: list[FileNode]
    ) -> None:
        text = json.dumps({"description": "short"})
        with patch(PATCH_TARGET, AsyncMock(return_value=_response(text))):
            overview = await _client().generate_architecture_overview(
                sample_structure, ""
            )
        assert overview == synthesize_architecture(sample_structure)

    async def test_modules_json_list_or_wrapped(
        self, sample_structure: list[FileNode]
    ) -> None:
        module = {
            "path": "src",
            "name": "src",
            "purpose": "Application source code",
            "keyFiles": ["index.ts"],
            "complexity": "low",
        }
        for text in (json.dumps([module]), json.dumps({"modules": [module]})):
            with patch(
                PATCH_TARGET, AsyncMock(return_value=_response(text))
            ):
                modules = await _client().explain_modules(
                    sample_structure, ""
                )
            assert len(modules) == 1
            assert modules[0].complexity is Complexity.LOW

    async def test_modules_prose_uses_text_fallback(
        self, sample_structure: list[FileNode]
    ) -> None:
        text = "src holds the code, tests holds the tests."
        with patch(PATCH_TARGET, AsyncMock(return_value=_response(text))):
            modules = await _client().explain_modules(sample_structure, "")
        assert [m.name for m in modules] == [
            "src",
            "tests",
            "docs",
            ".github",
            "node_modules",
        ]
        assert all(m.complexity is Complexity.MEDIUM for m in modules)

    async def test_modules_schema_mismatch_synthesized(
        self, sample_structure: list[FileNode]
    ) -> None:
        text = json.dumps([{"path": "src", "name": "src", "purpose": "x"}])
        with patch(PATCH_TARGET, AsyncMock(return_value=_response(text))):
            modules = await _client().explain_modules(sample_structure, "")
        assert modules == synthesize_modules(sample_structure)

    async def test_issue_difficulty_json(
        self,
        sample_analysis: RepositoryAnalysis,
        make_issue: Callable[..., GitHubIssue],
    ) -> None:
        payload = {
            "level": "advanced",
            "reasoning": "Touches the concurrency core and needs profiling.",
            "signals": [
                {"type": "scope", "value": "core", "impact": "increases"}
            ],
        }
        with patch(
            PATCH_TARGET,
            AsyncMock(return_value=_response(json.dumps(payload))),
        ):
            difficulty = await _client().classify_issue_difficulty(
                make_issue(1), sample_analysis
            )
        assert difficulty.level is ExperienceLevel.ADVANCED
        assert len(difficulty.signals) == 1

    async def test_issue_difficulty_prose(
        self,
        sample_analysis: RepositoryAnalysis,
        make_issue: Callable[..., GitHubIssue],
    ) -> None:
        text = "A good beginner task: fix the typo in the README."
        with patch(PATCH_TARGET, AsyncMock(return_value=_response(text))):
            difficulty = await _client().classify_issue_difficulty(
                make_issue(1), sample_analysis
            )
        assert difficulty.level is ExperienceLevel.BEGINNER

    async def test_match_score_json_and_prose(
        self, profile: UserProfile, sample_analysis: RepositoryAnalysis
    ) -> None:
        payload = {
            "score": 72,
            "reasoning": "Language overlap",
            "languageMatch": 90,
            "frameworkMatch": 40,
            "interestMatch": 60,
            "experienceMatch": 80,
        }
        with patch(
            PATCH_TARGET,
            AsyncMock(return_value=_response(json.dumps(payload))),
        ):
            score = await _client().score_repository_match(
                profile, sample_analysis
            )
        assert score.score == 72
        assert score.framework_match == 40

        with patch(
            PATCH_TARGET,
            AsyncMock(return_value=_response("Score: 64, decent fit")),
        ):
            score = await _client().score_repository_match(
                profile, sample_analysis
            )
        assert score.score == 64

    async def test_match_score_out_of_range_synthesized(
        self, profile: UserProfile, sample_analysis: RepositoryAnalysis
    ) -> None:
        text = json.dumps({"score": 140})
        with patch(PATCH_TARGET, AsyncMock(return_value=_response(text))):
            score = await _client().score_repository_match(
                profile, sample_analysis
            )
        assert score == synthesize_match_score()

    async def test_contribution_path_json_pins_repository_url(
        self, profile: UserProfile, sample_analysis: RepositoryAnalysis
    ) -> None:
        payload = {
            "repositoryUrl": "https://github.com/someone/else",
            "steps": [
                {
                    "order": 1,
                    "title": "Read the code",
                    "description": "Walk through src/index.ts end to end.",
                    "files": ["src/index.ts"],
                    "concepts": ["Entry points"],
                    "resources": [],
                }
            ],
            "estimatedTime": "1 hour",
        }
        with patch(
            PATCH_TARGET,
            AsyncMock(return_value=_response(json.dumps(payload))),
        ):
            path = await _client().generate_contribution_path(
                profile, sample_analysis
            )
        assert path.repository_url == sample_analysis.url
        assert path.difficulty is ExperienceLevel.BEGINNER
        assert path.estimated_time == "1 hour"

    async def test_contribution_path_prose_synthesized(
        self, profile: UserProfile, sample_analysis: RepositoryAnalysis
    ) -> None:
        text = "Start by reading the README."
        with patch(PATCH_TARGET, AsyncMock(return_value=_response(text))):
            path = await _client().generate_contribution_path(
                profile, sample_analysis
            )
        assert path == synthesize_contribution_path(
            sample_analysis.url, ExperienceLevel.BEGINNER
        )

    @pytest.mark.parametrize(
        "url",
        [
            "github.com/octocat/Hello-World",
            "https://github.com/octocat/Hello-World.git",
            "https://www.github.com/octocat/Hello-World/",
        ],
    )
    async def test_contribution_path_for_non_canonical_url(
        self,
        profile: UserProfile,
        sample_analysis: RepositoryAnalysis,
        url: str,
    ) -> None:
        analysis = sample_analysis.model_copy(update={"url": url})
        client = _client(api_key="your_openai_api_key_here")

        path = await client.generate_contribution_path(profile, analysis)

        assert path.repository_url == "https://github.com/octocat/Hello-World"
        assert path.steps[0].resources[0].url == path.repository_url
        assert path.steps[3].resources[0].url == (
            "https://github.com/octocat/Hello-World/issues"
        )
