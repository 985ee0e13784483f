"""GitHub REST client with retry, credential fallback and error mapping."""

from __future__ import annotations

import base64
import logging
from typing import Any

import httpx

from onramp.clients.file_tree import build_file_tree
from onramp.config import Settings
from onramp.constants import (
    GITHUB_API_BASE_URL,
    GITHUB_ISSUES_PER_PAGE,
    GITHUB_USER_AGENT,
    RETRY_DELAY_SECONDS,
    RETRY_MAX_RETRIES,
)
from onramp.exceptions import (
    NotFoundError,
    OnrampError,
    RateLimitExceededError,
)
from onramp.resilience.errors import is_usable_credential, status_code_of
from onramp.resilience.retry import RetryingApiClient
from onramp.schemas import FileNode, GitHubIssue, GitHubRepository

logger = logging.getLogger(__name__)


def _issue_from_payload(item: dict[str, Any]) -> GitHubIssue:
    return GitHubIssue(
        id=item["id"],
        number=item["number"],
        title=item["title"],
        body=item.get("body") or "",
        state=item["state"],
        labels=[
            label if isinstance(label, str) else label.get("name") or ""
            for label in item.get("labels", [])
        ],
        created_at=item["created_at"],
        updated_at=item["updated_at"],
        comments=item.get("comments", 0),
        url=item["html_url"],
    )


class GitHubClient(RetryingApiClient):
    """Read-only access to repositories, trees, READMEs and issues.

    An unusable token (empty, placeholder, too short) is never sent;
    public data is read anonymously instead. A token that GitHub
    rejects with 401 is dropped for the lifetime of the client and the
    request is re-issued once without it.
    """

    service_name = "github"

    def __init__(
        self,
        token: str = "",
        *,
        base_url: str = GITHUB_API_BASE_URL,
        timeout: float = 30.0,
        max_issue_pages: int = 10,
        max_retries: int = RETRY_MAX_RETRIES,
        retry_delay: float = RETRY_DELAY_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(max_retries=max_retries, retry_delay=retry_delay)
        if token and not is_usable_credential(token):
            logger.warning(
                "event=github_token_unusable action=anonymous_requests"
            )
        self._token = token if is_usable_credential(token) else ""
        self._max_issue_pages = max_issue_pages
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Accept": "application/vnd.github.v3+json",
                "User-Agent": GITHUB_USER_AGENT,
            },
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> GitHubClient:
        return cls(
            settings.github_token,
            timeout=settings.github_timeout_seconds,
            max_issue_pages=settings.github_max_issue_pages,
            max_retries=settings.max_retries,
            retry_delay=settings.retry_delay_seconds,
            transport=transport,
        )

    @property
    def authenticated(self) -> bool:
        return bool(self._token)

    async def aclose(self) -> None:
        await self._client.aclose()

    # ── Requests ─────────────────────────────────────────

    async def _get(
        self,
        operation: str,
        url: str,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        async def _send() -> httpx.Response:
            headers = (
                {"Authorization": f"token {self._token}"}
                if self._token
                else {}
            )
            response = await self._client.get(
                url, params=params, headers=headers
            )
            response.raise_for_status()
            return response

        try:
            return await self._with_retry(operation, _send)
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code != 401 or not self._token:
                raise
            logger.warning(
                "event=github_token_rejected operation=%s"
                " action=anonymous_retry",
                operation,
            )
            self._token = ""
            return await self._with_retry(operation, _send)

    def _domain_error(
        self, exc: Exception, resource: str, owner: str, repo: str
    ) -> OnrampError:
        status = status_code_of(exc)
        details: dict[str, Any] = {"owner": owner, "repo": repo}
        if status == 404:
            return NotFoundError(
                f"Repository {owner}/{repo} not found", details=details
            )
        if status in (403, 429):
            return RateLimitExceededError(
                "GitHub API rate limit exceeded", details=details
            )
        details["error"] = str(exc)
        return NotFoundError(
            f"Failed to fetch {resource}: {exc}", details=details
        )

    # ── Operations ───────────────────────────────────────

    async def get_repository(self, owner: str, repo: str) -> GitHubRepository:
        try:
            response = await self._get(
                "get_repository", f"/repos/{owner}/{repo}"
            )
        except Exception as exc:
            raise self._domain_error(exc, "repository", owner, repo) from exc
        return GitHubRepository.model_validate(response.json())

    async def get_file_structure(
        self, owner: str, repo: str
    ) -> list[FileNode]:
        """Recursive tree of ``HEAD`` rebuilt into a directory forest."""
        try:
            response = await self._get(
                "get_file_structure",
                f"/repos/{owner}/{repo}/git/trees/HEAD",
                params={"recursive": "true"},
            )
        except Exception as exc:
            raise self._domain_error(
                exc, "file structure", owner, repo
            ) from exc
        payload = response.json()
        if payload.get("truncated"):
            logger.info(
                "event=github_tree_truncated repo=%s/%s entries=%d",
                owner,
                repo,
                len(payload.get("tree", [])),
            )
        return build_file_tree(payload.get("tree", []))

    async def get_readme(self, owner: str, repo: str) -> str:
        """Decoded README text, or ``""`` when the repository has none."""
        try:
            response = await self._get(
                "get_readme", f"/repos/{owner}/{repo}/readme"
            )
        except Exception as exc:
            if status_code_of(exc) == 404:
                logger.debug(
                    "event=github_readme_missing repo=%s/%s", owner, repo
                )
                return ""
            raise self._domain_error(exc, "README", owner, repo) from exc
        content = response.json().get("content") or ""
        return base64.b64decode(content).decode("utf-8", errors="replace")

    async def get_issues(
        self, owner: str, repo: str, state: str = "open"
    ) -> list[GitHubIssue]:
        """All issues in ``state``, following ``Link: rel="next"``.

        Pull requests share the issues endpoint and are skipped.
        """
        issues: list[GitHubIssue] = []
        url: str | None = f"/repos/{owner}/{repo}/issues"
        params: dict[str, Any] | None = {
            "state": state,
            "per_page": GITHUB_ISSUES_PER_PAGE,
        }
        pages = 0
        while url and pages < self._max_issue_pages:
            try:
                response = await self._get("get_issues", url, params)
            except Exception as exc:
                raise self._domain_error(exc, "issues", owner, repo) from exc
            pages += 1
            issues.extend(
                _issue_from_payload(item)
                for item in response.json()
                if "pull_request" not in item
            )
            # next link already carries the query string
            url = response.links.get("next", {}).get("url")
            params = None

        if url:
            logger.info(
                "event=github_issue_pages_capped repo=%s/%s pages=%d",
                owner,
                repo,
                pages,
            )
        return issues
