"""Shared test fixtures — fake clock, in-memory Redis, sample domain data."""

import os

# Force unusable credentials for all tests: no real GitHub/LLM calls.
# Set unconditionally at import time so keys in your shell environment
# never reach a Settings() created by a test.
os.environ["GITHUB_TOKEN"] = ""
os.environ["OPENAI_API_KEY"] = "your_openai_api_key_here"
os.environ["ANTHROPIC_API_KEY"] = "your_anthropic_api_key_here"
os.environ["LLM_PROVIDER"] = "openai"

from collections.abc import Callable
from datetime import UTC, datetime

import pytest

from onramp.cache.fakes import FakeClock, FakeRedis
from onramp.cache.store import DualBackendCache
from onramp.constants import Complexity, NodeType
from onramp.schemas import (
    ArchitectureOverview,
    FileNode,
    GitHubIssue,
    ModuleExplanation,
    RepositoryAnalysis,
    RepositoryMetadata,
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_redis(clock: FakeClock) -> FakeRedis:
    return FakeRedis(clock)


@pytest.fixture
def cache(fake_redis: FakeRedis, clock: FakeClock) -> DualBackendCache:
    return DualBackendCache(fake_redis, clock=clock)


def file_node(path: str, children: list[FileNode] | None = None) -> FileNode:
    """Directory when ``children`` is given, file otherwise."""
    name = path.rsplit("/", 1)[-1]
    if children is not None:
        return FileNode(
            path=path,
            name=name,
            type=NodeType.DIRECTORY,
            children=children,
        )
    return FileNode(
        path=path,
        name=name,
        type=NodeType.FILE,
        extension=name.rsplit(".", 1)[-1] if "." in name else None,
    )


@pytest.fixture
def sample_structure() -> list[FileNode]:
    return [
        file_node(
            "src",
            [
                file_node("src/index.ts"),
                file_node("src/app.ts"),
                file_node("src/utils", [file_node("src/utils/strings.ts")]),
            ],
        ),
        file_node(
            "tests",
            [file_node("tests/app.test.ts"), file_node("tests/helpers.ts")],
        ),
        file_node("docs", [file_node("docs/guide.md")]),
        file_node(".github", [file_node(".github/ci.yml")]),
        file_node("node_modules", [file_node("node_modules/left-pad.js")]),
        file_node("README.md"),
        file_node("CONTRIBUTING.md"),
        file_node("package.json"),
    ]


@pytest.fixture
def sample_analysis() -> RepositoryAnalysis:
    return RepositoryAnalysis(
        owner="octocat",
        name="Hello-World",
        url="https://github.com/octocat/Hello-World",
        summary="A tiny repository used to demonstrate the GitHub API.",
        architecture=ArchitectureOverview(
            description="A single README with no source code at all.",
            patterns=["Standard Project Structure"],
        ),
        modules=[
            ModuleExplanation(
                path="src",
                name="src",
                purpose="Core Application Logic: the main code",
                key_files=["index.ts"],
                complexity=Complexity.LOW,
            )
        ],
        metadata=RepositoryMetadata(
            stars=80,
            forks=9,
            open_issues=2,
            language="C",
            last_updated=datetime(2011, 1, 26, 19, 14, 43, tzinfo=UTC),
        ),
    )


@pytest.fixture
def make_issue() -> Callable[..., GitHubIssue]:
    def _make(number: int, **overrides: object) -> GitHubIssue:
        fields: dict[str, object] = {
            "id": 1000 + number,
            "number": number,
            "title": f"Issue {number}",
            "body": "Something is broken.",
            "state": "open",
            "labels": [],
            "created_at": datetime(2024, 1, 1, tzinfo=UTC),
            "updated_at": datetime(2024, 1, 2, tzinfo=UTC),
            "comments": 0,
            "url": f"https://github.com/octocat/Hello-World/issues/{number}",
        }
        fields.update(overrides)
        return GitHubIssue.model_validate(fields)

    return _make


@pytest.fixture
def make_node() -> Callable[..., FileNode]:
    return file_node
