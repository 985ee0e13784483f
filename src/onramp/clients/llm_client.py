"""LLM client: retried litellm completions with synthesized fallbacks.

Every public ``generate_*``/``explain_*``/``classify_*``/``score_*``
method returns a schema-valid result. When the provider cannot be used
(unusable or rejected credential, exhausted retries, terminal error) or
its answer does not fit the schema, the matching
:mod:`onramp.synthesis` function supplies the result instead.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any

import litellm
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from onramp.clients.parsing import (
    Parsed,
    issue_difficulty_from_text,
    match_score_from_text,
    modules_from_text,
    parse_json_response,
)
from onramp.config import Settings
from onramp.constants import (
    DEFAULT_MODELS,
    LLM_MAX_OUTPUT_TOKENS,
    LLM_TEMPERATURE,
    RETRY_DELAY_SECONDS,
    RETRY_MAX_RETRIES,
    SYSTEM_PROMPT,
    LLMProvider,
)
from onramp.exceptions import ServiceUnavailableError
from onramp.prompts import (
    build_architecture_prompt,
    build_contribution_path_prompt,
    build_issue_classification_prompt,
    build_matching_prompt,
    build_modules_prompt,
    build_summary_prompt,
)
from onramp.resilience.errors import (
    ErrorClass,
    classify_error,
    is_usable_credential,
)
from onramp.resilience.retry import RetryingApiClient
from onramp.schemas import (
    ArchitectureOverview,
    ContributionPath,
    FileNode,
    GitHubIssue,
    IssueDifficulty,
    MatchScore,
    ModuleExplanation,
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

logger = logging.getLogger(__name__)

# litellm stubs have partially unknown types; typed alias
if TYPE_CHECKING:
    _acompletion: Callable[..., Coroutine[Any, Any, Any]]
else:
    _acompletion = litellm.acompletion

_MODULE_LIST = TypeAdapter(list[ModuleExplanation])
_MIN_SUMMARY_CHARS = 20
_MIN_DESCRIPTION_CHARS = 10


class LLMClient(RetryingApiClient):
    """Chat completions against OpenAI or Anthropic through litellm."""

    service_name = "llm"

    def __init__(
        self,
        provider: LLMProvider = LLMProvider.OPENAI,
        api_key: str = "",
        *,
        model: str = "",
        timeout: float = 30.0,
        max_tokens: int = LLM_MAX_OUTPUT_TOKENS,
        max_retries: int = RETRY_MAX_RETRIES,
        retry_delay: float = RETRY_DELAY_SECONDS,
    ) -> None:
        super().__init__(max_retries=max_retries, retry_delay=retry_delay)
        self.provider = LLMProvider(provider)
        self.model = model or DEFAULT_MODELS[self.provider]
        self._api_key = api_key
        self._timeout = timeout
        self._max_tokens = max_tokens
        self._credential_rejected = False
        if not is_usable_credential(api_key):
            logger.warning(
                "event=llm_credential_unusable provider=%s"
                " action=synthesized_fallback",
                self.provider,
            )

    @classmethod
    def from_settings(cls, settings: Settings) -> LLMClient:
        return cls(
            settings.llm_provider,
            settings.llm_api_key,
            model=settings.resolved_llm_model,
            timeout=settings.llm_timeout_seconds,
            max_tokens=settings.llm_max_tokens,
            max_retries=settings.max_retries,
            retry_delay=settings.retry_delay_seconds,
        )

    @property
    def available(self) -> bool:
        """False once the credential is known to be unusable."""
        return (
            not self._credential_rejected
            and is_usable_credential(self._api_key)
        )

    # ── Raw completion ───────────────────────────────────

    async def _call_provider(self, prompt: str) -> str:
        kwargs: dict[str, Any] = {
            "model": f"{self.provider}/{self.model}",
            "api_key": self._api_key,
            "timeout": self._timeout,
            "max_tokens": self._max_tokens,
        }
        if self.provider is LLMProvider.OPENAI:
            kwargs["messages"] = [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ]
            kwargs["temperature"] = LLM_TEMPERATURE
        else:
            kwargs["messages"] = [{"role": "user", "content": prompt}]

        response: Any = await _acompletion(**kwargs)
        return str(response.choices[0].message.content or "")

    async def complete(self, prompt: str) -> str | None:
        """One retried completion.

        Returns ``None`` when the credential is unusable or rejected;
        no request is made in the first case. Raises
        :class:`ServiceUnavailableError` when retries are exhausted or
        the provider fails terminally.
        """
        if not self.available:
            return None
        try:
            return await self._with_retry(
                "complete", lambda: self._call_provider(prompt)
            )
        except Exception as exc:
            if classify_error(exc) is ErrorClass.UNAUTHENTICATED:
                logger.warning(
                    "event=llm_credential_rejected provider=%s",
                    self.provider,
                )
                self._credential_rejected = True
                return None
            attempts = (
                self.last_retry_context.attempt
                if self.last_retry_context
                else 0
            )
            raise ServiceUnavailableError(
                details={
                    "provider": str(self.provider),
                    "attempts": attempts,
                    "error": str(exc),
                },
            ) from exc

    async def _generate(self, operation: str, prompt: str) -> str | None:
        """``complete`` with provider outages turned into ``None``."""
        try:
            return await self.complete(prompt)
        except ServiceUnavailableError as exc:
            logger.warning(
                "event=llm_fallback operation=%s reason=unavailable"
                " error=%s",
                operation,
                exc.details.get("error"),
            )
            return None

    @staticmethod
    def _log_invalid(operation: str, exc: PydanticValidationError) -> None:
        logger.warning(
            "event=llm_fallback operation=%s reason=schema_mismatch"
            " errors=%d",
            operation,
            exc.error_count(),
        )

    # ── Repository analysis ──────────────────────────────

    async def generate_repository_summary(
        self, readme: str, structure: list[FileNode]
    ) -> str:
        text = await self._generate(
            "summary", build_summary_prompt(readme, structure)
        )
        if text is None or len(text.strip()) < _MIN_SUMMARY_CHARS:
            return synthesize_summary(readme, structure)
        return text.strip()

    async def generate_architecture_overview(
        self, structure: list[FileNode], readme: str
    ) -> ArchitectureOverview:
        text = await self._generate(
            "architecture", build_architecture_prompt(structure, readme)
        )
        if text is None:
            return synthesize_architecture(structure)

        result = parse_json_response(text)
        if isinstance(result, Parsed):
            try:
                return ArchitectureOverview.model_validate(result.value)
            except PydanticValidationError as exc:
                self._log_invalid("architecture", exc)
                return synthesize_architecture(structure)

        # Prose answer: keep it as the description
        description = result.text.strip()
        if len(description) < _MIN_DESCRIPTION_CHARS:
            return synthesize_architecture(structure)
        return ArchitectureOverview(description=description)

    async def explain_modules(
        self, structure: list[FileNode], readme: str
    ) -> list[ModuleExplanation]:
        text = await self._generate(
            "modules", build_modules_prompt(structure, readme)
        )
        if text is None:
            return synthesize_modules(structure)

        result = parse_json_response(text)
        if not isinstance(result, Parsed):
            return modules_from_text(result.text, structure)

        value = result.value
        if isinstance(value, dict) and "modules" in value:
            value = value["modules"]
        try:
            return _MODULE_LIST.validate_python(value)
        except PydanticValidationError as exc:
            self._log_invalid("modules", exc)
            return synthesize_modules(structure)

    # ── Issues ───────────────────────────────────────────

    async def classify_issue_difficulty(
        self, issue: GitHubIssue, repository: RepositoryAnalysis
    ) -> IssueDifficulty:
        text = await self._generate(
            "classify_issue",
            build_issue_classification_prompt(issue, repository),
        )
        if text is None:
            return synthesize_issue_difficulty()

        result = parse_json_response(text)
        if not isinstance(result, Parsed):
            return issue_difficulty_from_text(result.text)
        try:
            return IssueDifficulty.model_validate(result.value)
        except PydanticValidationError as exc:
            self._log_invalid("classify_issue", exc)
            return synthesize_issue_difficulty()

    # ── Matching and guidance ────────────────────────────

    async def score_repository_match(
        self, profile: UserProfile, repository: RepositoryAnalysis
    ) -> MatchScore:
        text = await self._generate(
            "match", build_matching_prompt(profile, repository)
        )
        if text is None:
            return synthesize_match_score()

        result = parse_json_response(text)
        if not isinstance(result, Parsed):
            return match_score_from_text(result.text)
        try:
            return MatchScore.model_validate(result.value)
        except PydanticValidationError as exc:
            self._log_invalid("match", exc)
            return synthesize_match_score()

    async def generate_contribution_path(
        self, profile: UserProfile, repository: RepositoryAnalysis
    ) -> ContributionPath:
        text = await self._generate(
            "contribution_path",
            build_contribution_path_prompt(profile, repository),
        )
        fallback = synthesize_contribution_path(
            repository.url, profile.experience_level
        )
        if text is None:
            return fallback

        result = parse_json_response(text)
        if not isinstance(result, Parsed) or not isinstance(
            result.value, dict
        ):
            return fallback
        payload = {
            "difficulty": profile.experience_level,
            **result.value,
            "repositoryUrl": repository.url,
        }
        payload.pop("repository_url", None)
        try:
            return ContributionPath.model_validate(payload)
        except PydanticValidationError as exc:
            self._log_invalid("contribution_path", exc)
            return fallback
