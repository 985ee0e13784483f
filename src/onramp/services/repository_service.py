"""Repository analysis: GitHub data plus LLM explanations, cache-aside."""

from __future__ import annotations

import logging
import time

from pydantic import ValidationError as PydanticValidationError

from onramp.cache.store import DualBackendCache
from onramp.clients.github_client import GitHubClient
from onramp.clients.llm_client import LLMClient
from onramp.constants import (
    MAX_MODULE_ENTRY_POINTS,
    REPO_ANALYSIS_TTL,
    Complexity,
    ExperienceLevel,
    repo_analysis_key,
)
from onramp.exceptions import ValidationError
from onramp.schemas import (
    EntryPoint,
    FileNode,
    GitHubRepository,
    ModuleExplanation,
    RepositoryAnalysis,
    RepositoryMetadata,
    canonical_github_url,
    parse_github_url,
)
from onramp.services._gather import gather_settled

logger = logging.getLogger(__name__)

_ENTRY_FILE_NAMES = frozenset(
    {
        "README.md",
        "CONTRIBUTING.md",
        "index.js",
        "index.ts",
        "main.js",
        "main.ts",
        "app.js",
        "app.ts",
        "server.js",
        "server.ts",
    }
)
_MAIN_FILE_SUFFIXES = (
    "index.js",
    "index.ts",
    "main.js",
    "main.ts",
    "app.js",
    "app.ts",
)


def _find_files(nodes: list[FileNode], names: frozenset[str]) -> list[str]:
    """Depth-first paths of files whose name is in ``names``."""
    found: list[str] = []
    for node in nodes:
        if not node.is_directory and node.name in names:
            found.append(node.path)
        if node.children:
            found.extend(_find_files(node.children, names))
    return found


def identify_entry_points(
    structure: list[FileNode], modules: list[ModuleExplanation]
) -> list[EntryPoint]:
    """Suggest where a newcomer should start reading."""
    found = _find_files(structure, _ENTRY_FILE_NAMES)
    entry_points: list[EntryPoint] = []

    readme = next((f for f in found if f.endswith("README.md")), None)
    if readme:
        entry_points.append(
            EntryPoint(
                file=readme,
                reason=(
                    "Start here to understand the project overview and "
                    "setup instructions"
                ),
                difficulty=ExperienceLevel.BEGINNER,
            )
        )

    contributing = next(
        (f for f in found if f.endswith("CONTRIBUTING.md")), None
    )
    if contributing:
        entry_points.append(
            EntryPoint(
                file=contributing,
                reason="Learn how to contribute to this project",
                difficulty=ExperienceLevel.BEGINNER,
            )
        )

    main_file = next(
        (f for f in found if f.endswith(_MAIN_FILE_SUFFIXES)), None
    )
    if main_file:
        entry_points.append(
            EntryPoint(
                file=main_file,
                reason=(
                    "Main application entry point - understand the core "
                    "initialization"
                ),
                difficulty=ExperienceLevel.INTERMEDIATE,
            )
        )

    for module in modules[:MAX_MODULE_ENTRY_POINTS]:
        if not module.key_files:
            continue
        entry_points.append(
            EntryPoint(
                file=module.key_files[0],
                reason=f"Explore the {module.name} module - {module.purpose}",
                difficulty=(
                    ExperienceLevel.BEGINNER
                    if module.complexity == Complexity.LOW
                    else ExperienceLevel.INTERMEDIATE
                ),
            )
        )

    return entry_points


def build_metadata(repository: GitHubRepository) -> RepositoryMetadata:
    return RepositoryMetadata(
        stars=repository.stargazers_count,
        forks=repository.forks_count,
        open_issues=repository.open_issues_count,
        language=repository.language or "Unknown",
        languages={},
        topics=repository.topics,
        last_updated=repository.updated_at,
        license=repository.license.name if repository.license else None,
    )


class RepositoryService:
    """Analyze a repository once, then serve it from the cache."""

    def __init__(
        self,
        github: GitHubClient,
        llm: LLMClient,
        cache: DualBackendCache,
        *,
        cache_ttl: int = REPO_ANALYSIS_TTL,
    ) -> None:
        self._github = github
        self._llm = llm
        self._cache = cache
        self._cache_ttl = cache_ttl

    async def analyze_repository(self, url: str) -> RepositoryAnalysis:
        """Full analysis of ``url``; cached for ``cache_ttl`` seconds.

        Raises:
            InvalidRepositoryUrlError: ``url`` is not a GitHub repo URL.
            NotFoundError / RateLimitExceededError: GitHub refused.
            ValidationError: the assembled analysis is malformed.
        """
        owner, repo = parse_github_url(url)

        cached = await self.get_cached_analysis(owner, repo)
        if cached is not None:
            logger.info("event=analysis_cache_hit repo=%s/%s", owner, repo)
            return cached

        t0 = time.monotonic()
        repository, structure, readme = await gather_settled(
            self._github.get_repository(owner, repo),
            self._github.get_file_structure(owner, repo),
            self._github.get_readme(owner, repo),
        )
        summary, architecture, modules = await gather_settled(
            self._llm.generate_repository_summary(readme, structure),
            self._llm.generate_architecture_overview(structure, readme),
            self._llm.explain_modules(structure, readme),
        )

        try:
            analysis = RepositoryAnalysis(
                owner=owner,
                name=repo,
                url=canonical_github_url(url),
                summary=summary,
                architecture=architecture,
                modules=modules,
                entry_points=identify_entry_points(structure, modules),
                metadata=build_metadata(repository),
            )
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Repository analysis for {owner}/{repo} is invalid",
                details={
                    "errors": exc.errors(
                        include_url=False,
                        include_context=False,
                        include_input=False,
                    )
                },
            ) from exc

        await self.cache_analysis(owner, repo, analysis)
        logger.info(
            "event=analysis_complete repo=%s/%s modules=%d"
            " entry_points=%d duration_ms=%.0f",
            owner,
            repo,
            len(analysis.modules),
            len(analysis.entry_points),
            (time.monotonic() - t0) * 1000,
        )
        return analysis

    async def get_repository_metadata(
        self, owner: str, repo: str
    ) -> RepositoryMetadata:
        repository = await self._github.get_repository(owner, repo)
        return build_metadata(repository)

    async def get_cached_analysis(
        self, owner: str, repo: str
    ) -> RepositoryAnalysis | None:
        """Cached analysis, or None on a miss or an outdated payload."""
        key = repo_analysis_key(owner, repo)
        cached = await self._cache.get(key)
        if cached is None:
            return None
        try:
            return RepositoryAnalysis.model_validate(cached)
        except PydanticValidationError:
            logger.warning("event=analysis_cache_invalid key=%s", key)
            return None

    async def cache_analysis(
        self, owner: str, repo: str, analysis: RepositoryAnalysis
    ) -> None:
        await self._cache.set(
            repo_analysis_key(owner, repo), analysis, self._cache_ttl
        )
