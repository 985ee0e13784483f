"""Pydantic models for repository analysis, issues and guidance.

Genuine GitHub/LLM results and synthesized fallbacks are validated
against the same models, so consumers cannot tell them apart by shape.
Models serialize with camelCase aliases and accept either spelling.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from onramp.constants import Complexity, ExperienceLevel, NodeType
from onramp.exceptions import InvalidRepositoryUrlError

_GITHUB_URL_RE = re.compile(
    r"^(?:https?://)?(?:www\.)?github\.com/"
    r"([a-zA-Z0-9_-]+)/([a-zA-Z0-9_.-]+)$"
)


def parse_github_url(url: str) -> tuple[str, str]:
    """Extract ``(owner, repo)`` from a GitHub repository URL.

    Accepts ``https://github.com/owner/repo`` with optional scheme,
    ``www.``, trailing slash and ``.git`` suffix.
    """
    normalized = url.strip().rstrip("/").removesuffix(".git")
    match = _GITHUB_URL_RE.match(normalized)
    if match is None:
        raise InvalidRepositoryUrlError(
            "Invalid GitHub repository URL. "
            "Expected format: https://github.com/owner/repo",
            details={"url": url},
        )
    return match.group(1), match.group(2)


def canonical_github_url(url: str) -> str:
    """Normalize any accepted form to ``https://github.com/owner/repo``."""
    owner, repo = parse_github_url(url)
    return f"https://github.com/{owner}/{repo}"


def _check_github_url(v: str) -> str:
    try:
        return canonical_github_url(v)
    except InvalidRepositoryUrlError as exc:
        raise ValueError(exc.message) from exc


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ── File structure ───────────────────────────────────────


class FileNode(_CamelModel):
    """A file or directory in a reconstructed repository tree."""

    path: str = Field(min_length=1)
    name: str = Field(min_length=1)
    type: NodeType
    children: list[FileNode] | None = None
    size: int | None = Field(default=None, ge=0)
    extension: str | None = None

    @property
    def is_directory(self) -> bool:
        return self.type == NodeType.DIRECTORY


# ── Repository analysis ──────────────────────────────────


class ArchitectureOverview(_CamelModel):
    description: str = Field(min_length=10)
    patterns: list[str] = Field(default_factory=list)
    technologies: list[str] = Field(default_factory=list)
    key_components: list[str] = Field(default_factory=list)
    data_flow: str | None = None
    scalability: str | None = None


class ModuleExplanation(_CamelModel):
    path: str = Field(min_length=1)
    name: str = Field(min_length=1)
    purpose: str = Field(min_length=10)
    key_files: list[str] = Field(default_factory=list)
    complexity: Complexity


class EntryPoint(_CamelModel):
    file: str = Field(min_length=1)
    reason: str = Field(min_length=10)
    difficulty: ExperienceLevel


class RepositoryMetadata(_CamelModel):
    stars: int = Field(ge=0)
    forks: int = Field(ge=0)
    open_issues: int = Field(ge=0)
    language: str
    languages: dict[str, float] = Field(default_factory=dict)
    topics: list[str] = Field(default_factory=list)
    last_updated: datetime
    license: str | None = None


class RepositoryAnalysis(_CamelModel):
    owner: str = Field(min_length=1)
    name: str = Field(min_length=1)
    url: str
    summary: str = Field(min_length=20)
    architecture: ArchitectureOverview
    modules: list[ModuleExplanation] = Field(default_factory=list)
    entry_points: list[EntryPoint] = Field(default_factory=list)
    metadata: RepositoryMetadata
    analyzed_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC)
    )

    @field_validator("url")
    @classmethod
    def _validate_url(cls, v: str) -> str:
        return _check_github_url(v)


# ── GitHub payloads ──────────────────────────────────────


class GitHubOwner(BaseModel):
    login: str


class GitHubLicense(BaseModel):
    name: str


class GitHubRepository(BaseModel):
    """Subset of the GitHub ``GET /repos/{owner}/{repo}`` payload."""

    id: int
    name: str
    full_name: str
    owner: GitHubOwner
    html_url: str
    description: str | None = None
    stargazers_count: int = 0
    forks_count: int = 0
    open_issues_count: int = 0
    language: str | None = None
    topics: list[str] = Field(default_factory=list)
    updated_at: datetime
    license: GitHubLicense | None = None


class GitHubIssue(_CamelModel):
    id: int = Field(gt=0)
    number: int = Field(gt=0)
    title: str = Field(min_length=1)
    body: str = ""
    state: Literal["open", "closed"]
    labels: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    comments: int = Field(default=0, ge=0)
    url: str


# ── Issue classification ─────────────────────────────────


class ComplexitySignal(_CamelModel):
    type: Literal["label", "description", "scope", "dependencies"]
    value: str = Field(min_length=1)
    impact: Literal["increases", "decreases"]


class IssueDifficulty(_CamelModel):
    level: ExperienceLevel
    reasoning: str = Field(min_length=20)
    signals: list[ComplexitySignal] = Field(default_factory=list)


class ClassifiedIssue(_CamelModel):
    issue: GitHubIssue
    difficulty: IssueDifficulty


# ── Profiles, matching and guidance ──────────────────────


class UserProfile(_CamelModel):
    user_id: str
    languages: list[str] = Field(min_length=1, max_length=10)
    frameworks: list[str] = Field(default_factory=list, max_length=10)
    experience_level: ExperienceLevel
    interests: list[str] = Field(min_length=1, max_length=10)


class MatchScore(_CamelModel):
    score: float = Field(ge=0, le=100)
    reasoning: str = ""
    language_match: float = Field(default=0, ge=0, le=100)
    framework_match: float = Field(default=0, ge=0, le=100)
    interest_match: float = Field(default=0, ge=0, le=100)
    experience_match: float = Field(default=0, ge=0, le=100)


class Resource(_CamelModel):
    title: str = Field(min_length=1)
    url: str
    type: Literal["documentation", "tutorial", "example"]

    @field_validator("url")
    @classmethod
    def _validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("Resource URL must be valid")
        return v


class ContributionStep(_CamelModel):
    order: int = Field(gt=0)
    title: str = Field(min_length=5)
    description: str = Field(min_length=20)
    files: list[str] = Field(default_factory=list)
    concepts: list[str] = Field(default_factory=list)
    resources: list[Resource] = Field(default_factory=list)


class ContributionPath(_CamelModel):
    repository_url: str
    steps: list[ContributionStep] = Field(min_length=1, max_length=10)
    estimated_time: str = Field(min_length=1)
    difficulty: ExperienceLevel

    @field_validator("repository_url")
    @classmethod
    def _validate_url(cls, v: str) -> str:
        return _check_github_url(v)
