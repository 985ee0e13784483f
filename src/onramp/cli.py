"""CLI entry point — ``onramp analyze`` and ``onramp issues``."""

from __future__ import annotations

# Root logging before the LLM client imports litellm
from onramp.logging_config import setup_logging

setup_logging()

import argparse  # noqa: E402
import asyncio  # noqa: E402
import json  # noqa: E402
import logging  # noqa: E402
import sys  # noqa: E402
from collections.abc import Awaitable, Callable  # noqa: E402
from typing import Any  # noqa: E402

from pydantic import TypeAdapter  # noqa: E402

from onramp import __version__  # noqa: E402
from onramp.cache.store import DualBackendCache  # noqa: E402
from onramp.clients.github_client import GitHubClient  # noqa: E402
from onramp.clients.llm_client import LLMClient  # noqa: E402
from onramp.config import Settings  # noqa: E402
from onramp.constants import ExperienceLevel  # noqa: E402
from onramp.exceptions import OnrampError  # noqa: E402
from onramp.logging_config import (  # noqa: E402
    cleanup_third_party_handlers,
)
from onramp.schemas import ClassifiedIssue, parse_github_url  # noqa: E402
from onramp.services import (  # noqa: E402
    IssueAnalyzerService,
    RepositoryService,
)

# litellm attached its own handlers on import
cleanup_third_party_handlers()

_CLASSIFIED_ISSUES = TypeAdapter(list[ClassifiedIssue])


def main() -> None:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args()

    if args.version:
        print(f"onramp {__version__}")
        return

    if args.command is None:
        parser.print_help()
        return

    settings = Settings()
    level = "DEBUG" if args.verbose else settings.log_level
    logging.getLogger().setLevel(level.upper())

    if args.command == "analyze":
        _run(settings, lambda services: _analyze(services, args))
    elif args.command == "issues":
        _run(settings, lambda services: _issues(services, args))


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="onramp",
        description=(
            "Understand a GitHub repository and find issues "
            "that fit your experience."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    sub = parser.add_subparsers(dest="command")

    analyze = sub.add_parser(
        "analyze",
        help="Analyze a repository",
    )
    analyze.add_argument(
        "url",
        type=str,
        help="GitHub repository URL",
    )

    issues = sub.add_parser(
        "issues",
        help="Classify open issues by difficulty",
    )
    issues.add_argument(
        "url",
        type=str,
        help="GitHub repository URL",
    )
    issues.add_argument(
        "--level",
        "-l",
        choices=[level.value for level in ExperienceLevel],
        default=None,
        help="Only show issues of this difficulty",
    )

    return parser


class _Services:
    """Clients, cache and services for one CLI invocation."""

    def __init__(self, settings: Settings) -> None:
        self.cache = DualBackendCache.from_settings(settings)
        self.github = GitHubClient.from_settings(settings)
        self.llm = LLMClient.from_settings(settings)
        self.repositories = RepositoryService(
            self.github,
            self.llm,
            self.cache,
            cache_ttl=settings.repo_cache_ttl,
        )
        self.issues = IssueAnalyzerService(
            self.github,
            self.llm,
            self.repositories,
            self.cache,
            cache_ttl=settings.issue_cache_ttl,
        )

    async def aclose(self) -> None:
        await self.github.aclose()
        await self.cache.close()


def _run(
    settings: Settings,
    command: Callable[[_Services], Awaitable[Any]],
) -> None:
    async def _main() -> Any:
        services = _Services(settings)
        try:
            return await command(services)
        finally:
            await services.aclose()

    try:
        output = asyncio.run(_main())
    except OnrampError as exc:
        print(json.dumps(exc.to_dict(), indent=2), file=sys.stderr)
        sys.exit(1)
    print(output)


async def _analyze(services: _Services, args: argparse.Namespace) -> str:
    analysis = await services.repositories.analyze_repository(args.url)
    return analysis.model_dump_json(by_alias=True, indent=2)


async def _issues(services: _Services, args: argparse.Namespace) -> str:
    owner, repo = parse_github_url(args.url)
    classified = await services.issues.fetch_and_classify_issues(owner, repo)
    if args.level:
        classified = services.issues.filter_issues_by_difficulty(
            classified, args.level
        )
    return _CLASSIFIED_ISSUES.dump_json(
        classified, by_alias=True, indent=2
    ).decode()


if __name__ == "__main__":
    main()
