"""Issue fetching and difficulty classification."""

from __future__ import annotations

import logging

from pydantic import ValidationError as PydanticValidationError

from onramp.cache.store import DualBackendCache
from onramp.clients.github_client import GitHubClient
from onramp.clients.llm_client import LLMClient
from onramp.constants import (
    ISSUE_CLASSIFICATION_TTL,
    ExperienceLevel,
    issue_difficulty_key,
)
from onramp.schemas import (
    ClassifiedIssue,
    GitHubIssue,
    IssueDifficulty,
    RepositoryAnalysis,
)
from onramp.services._gather import gather_settled
from onramp.services.repository_service import RepositoryService

logger = logging.getLogger(__name__)


class IssueAnalyzerService:
    def __init__(
        self,
        github: GitHubClient,
        llm: LLMClient,
        repositories: RepositoryService,
        cache: DualBackendCache,
        *,
        cache_ttl: int = ISSUE_CLASSIFICATION_TTL,
    ) -> None:
        self._github = github
        self._llm = llm
        self._repositories = repositories
        self._cache = cache
        self._cache_ttl = cache_ttl

    async def fetch_and_classify_issues(
        self, owner: str, repo: str
    ) -> list[ClassifiedIssue]:
        """Classify every open issue; results keep GitHub's order."""
        issues = await self._github.get_issues(owner, repo, "open")
        repository = await self._repositories.analyze_repository(
            f"https://github.com/{owner}/{repo}"
        )

        difficulties = await gather_settled(
            *(self.classify_issue(issue, repository) for issue in issues)
        )
        logger.info(
            "event=issues_classified repo=%s/%s count=%d",
            owner,
            repo,
            len(issues),
        )
        return [
            ClassifiedIssue(issue=issue, difficulty=difficulty)
            for issue, difficulty in zip(issues, difficulties, strict=True)
        ]

    async def classify_issue(
        self, issue: GitHubIssue, repository: RepositoryAnalysis
    ) -> IssueDifficulty:
        key = issue_difficulty_key(
            repository.owner, repository.name, issue.number
        )
        cached = await self._cache.get(key)
        if cached is not None:
            try:
                return IssueDifficulty.model_validate(cached)
            except PydanticValidationError:
                logger.warning("event=issue_cache_invalid key=%s", key)

        difficulty = await self._llm.classify_issue_difficulty(
            issue, repository
        )
        await self._cache.set(key, difficulty, self._cache_ttl)
        return difficulty

    @staticmethod
    def filter_issues_by_difficulty(
        issues: list[ClassifiedIssue], difficulty: ExperienceLevel | str
    ) -> list[ClassifiedIssue]:
        return [
            classified
            for classified in issues
            if classified.difficulty.level == difficulty
        ]
