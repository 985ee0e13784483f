"""Shared constants — single source of truth for cross-module values.

All magic strings and numbers that appear in 2+ files belong here.
StrEnum members are str-compatible, so JSON payloads and cache keys
work unchanged.
"""

from __future__ import annotations

from enum import StrEnum

# ── String Enums ─────────────────────────────────────────


class BackendState(StrEnum):
    """Which storage path the cache is currently using."""

    LIVE = "live"
    DEGRADED = "degraded"


class ErrorCode(StrEnum):
    """Domain error codes surfaced to callers of this layer."""

    INVALID_REPOSITORY_URL = "INVALID_REPOSITORY_URL"
    REPOSITORY_NOT_FOUND = "REPOSITORY_NOT_FOUND"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    LLM_SERVICE_UNAVAILABLE = "LLM_SERVICE_UNAVAILABLE"
    CACHE_ERROR = "CACHE_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class LLMProvider(StrEnum):
    """Supported LLM providers (each has its own request shape)."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class NodeType(StrEnum):
    FILE = "file"
    DIRECTORY = "directory"


class ExperienceLevel(StrEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Complexity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_REPOSITORY_URL: (
        "The provided repository URL is malformed or inaccessible"
    ),
    ErrorCode.REPOSITORY_NOT_FOUND: "The repository does not exist on GitHub",
    ErrorCode.RATE_LIMIT_EXCEEDED: "GitHub API rate limit has been exceeded",
    ErrorCode.LLM_SERVICE_UNAVAILABLE: (
        "The LLM service is currently unavailable"
    ),
    ErrorCode.CACHE_ERROR: "Cache operation failed",
    ErrorCode.VALIDATION_ERROR: "Result failed schema validation",
    ErrorCode.INTERNAL_SERVER_ERROR: "An internal server error occurred",
}

# ── Cache Keys & TTLs ────────────────────────────────────

REPO_ANALYSIS_KEY_PREFIX = "repo_analysis:"
ISSUE_DIFFICULTY_KEY_PREFIX = "issue_difficulty:"
DEFAULT_CACHE_TTL = 3600
REPO_ANALYSIS_TTL = 3600
ISSUE_CLASSIFICATION_TTL = 1800


def repo_analysis_key(owner: str, repo: str) -> str:
    return f"{REPO_ANALYSIS_KEY_PREFIX}{owner}/{repo}"


def issue_difficulty_key(owner: str, repo: str, number: int) -> str:
    return f"{ISSUE_DIFFICULTY_KEY_PREFIX}{owner}/{repo}#{number}"


# ── Retry Strategy ───────────────────────────────────────

RETRY_MAX_RETRIES = 3
RETRY_DELAY_SECONDS = 1.0
RETRYABLE_STATUS_CODES = frozenset({408, 429})

# ── Credentials ──────────────────────────────────────────

MIN_CREDENTIAL_LENGTH = 10
PLACEHOLDER_CREDENTIALS = frozenset({
    "your_openai_api_key_here",
    "your_anthropic_api_key_here",
    "your_github_token_here",
})

# ── GitHub ───────────────────────────────────────────────

GITHUB_API_BASE_URL = "https://api.github.com"
GITHUB_USER_AGENT = "Onramp/1.0.0"
GITHUB_ISSUES_PER_PAGE = 100
GITHUB_TREE_TYPE = "tree"

# ── LLM ──────────────────────────────────────────────────

DEFAULT_MODELS: dict[LLMProvider, str] = {
    LLMProvider.OPENAI: "gpt-3.5-turbo",
    LLMProvider.ANTHROPIC: "claude-3-sonnet",
}
LLM_TEMPERATURE = 0.7
LLM_MAX_OUTPUT_TOKENS = 2000
SYSTEM_PROMPT = (
    "You are an expert software engineer helping developers understand "
    "and contribute to open-source projects. Provide clear, actionable "
    "guidance."
)

# ── Prompt / Synthesis Limits ────────────────────────────

README_SUMMARY_PROMPT_CHARS = 2000
README_ARCHITECTURE_PROMPT_CHARS = 1500
README_MODULES_PROMPT_CHARS = 1000
ISSUE_BODY_PROMPT_CHARS = 500
TEXT_REASONING_CHARS = 200
SUMMARY_MAX_CHARS = 500
SUMMARY_MAX_PARAGRAPHS = 3
SUMMARY_MIN_LINE_CHARS = 30
README_MIN_USABLE_CHARS = 50
MAX_LISTED_DIRECTORIES = 8
MAX_SYNTHESIZED_MODULES = 10
MAX_TEXT_PARSED_MODULES = 5
MAX_KEY_FILES = 8
FALLBACK_KEY_FILES = 6
HIGH_COMPLEXITY_FILE_COUNT = 15
MEDIUM_COMPLEXITY_FILE_COUNT = 8
MAX_MODULE_ENTRY_POINTS = 3
NEUTRAL_MATCH_SCORE = 50

# Directories that never describe project structure
HIDDEN_DIRECTORIES = frozenset({"node_modules", "dist", "build"})

# Extensions treated as "source" when picking key files
SOURCE_EXTENSIONS = (
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".py",
    ".java",
    ".go",
    ".rs",
)
KEY_FILE_FRAGMENTS = ("index", "main", "app", "config", "setup")
