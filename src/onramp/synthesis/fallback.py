"""Deterministic stand-ins for LLM output.

Used when no usable LLM credential is configured, the provider rejects
it, or the provider stays unavailable after retries. Every function is
pure: no I/O, no randomness, same input ⇒ same output, and every result
validates against the same schema as a genuine LLM answer.
"""

from __future__ import annotations

from onramp.constants import (
    FALLBACK_KEY_FILES,
    HIDDEN_DIRECTORIES,
    HIGH_COMPLEXITY_FILE_COUNT,
    KEY_FILE_FRAGMENTS,
    MAX_KEY_FILES,
    MAX_LISTED_DIRECTORIES,
    MAX_SYNTHESIZED_MODULES,
    MEDIUM_COMPLEXITY_FILE_COUNT,
    NEUTRAL_MATCH_SCORE,
    README_MIN_USABLE_CHARS,
    SOURCE_EXTENSIONS,
    SUMMARY_MAX_CHARS,
    SUMMARY_MAX_PARAGRAPHS,
    SUMMARY_MIN_LINE_CHARS,
    Complexity,
    ExperienceLevel,
)
from onramp.schemas import (
    ArchitectureOverview,
    ContributionPath,
    ContributionStep,
    FileNode,
    IssueDifficulty,
    MatchScore,
    ModuleExplanation,
    Resource,
    canonical_github_url,
)

GENERIC_README_SUMMARY = (
    "A modern open-source project with comprehensive documentation "
    "and active development."
)
GENERIC_SUMMARY = (
    "This repository contains a well-structured codebase with clear "
    "organization and documentation. The project demonstrates "
    "professional development practices with modular architecture and "
    "comprehensive testing."
)
UNCLASSIFIED_ISSUE_REASONING = "Unable to classify (LLM unavailable)"
UNSCORED_MATCH_REASONING = "Basic match score (LLM unavailable)"


def _display_name(name: str) -> str:
    """``my_cool-dir`` → ``My cool dir``."""
    spaced = name.replace("_", " ").replace("-", " ")
    return spaced[:1].upper() + spaced[1:]


def _top_level_directories(structure: list[FileNode]) -> list[str]:
    return [node.name for node in structure if node.is_directory]


# ── Repository summary ───────────────────────────────────


def synthesize_summary(readme: str, structure: list[FileNode]) -> str:
    """Summarize from the first descriptive README lines."""
    if not readme or len(readme) <= README_MIN_USABLE_CHARS:
        return GENERIC_SUMMARY

    paragraphs: list[str] = []
    for raw in readme.split("\n"):
        if len(paragraphs) >= SUMMARY_MAX_PARAGRAPHS:
            break
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        # [![ and [! are badges / admonitions
        if len(line) > SUMMARY_MIN_LINE_CHARS and not line.startswith("[!"):
            paragraphs.append(line)

    summary = " ".join(paragraphs)[:SUMMARY_MAX_CHARS]
    return summary or GENERIC_README_SUMMARY


# ── Architecture overview ────────────────────────────────


def synthesize_architecture(
    structure: list[FileNode],
) -> ArchitectureOverview:
    """Describe the architecture from top-level directory names."""
    dirs = _top_level_directories(structure)

    def has(*needles: str) -> bool:
        return any(n in d for d in dirs for n in needles)

    has_tests = has("test", "spec", "__tests__")
    has_docs = has("doc")
    has_src = has("src", "lib")
    has_examples = has("example", "demo")
    has_scripts = has("script", "bin")
    has_config = has("config", ".github")

    patterns: list[str] = []
    if has_src:
        patterns.append("Modular Architecture")
    if has_tests:
        patterns.append("Test-Driven Development")
    if has_docs:
        patterns.append("Documentation-First Approach")
    if has_examples:
        patterns.append("Example-Driven Learning")
    if not patterns:
        patterns.append("Standard Project Structure")

    parts = [
        f"This project follows a {patterns[0].lower()} with clear "
        "separation of concerns."
    ]
    if has_src:
        parts.append(
            "The source code is organized in a dedicated directory for "
            "better maintainability."
        )
    if has_tests:
        parts.append(
            "Comprehensive test coverage ensures code quality and "
            "reliability."
        )
    if has_docs:
        parts.append(
            "Well-documented codebase with detailed guides and API "
            "references."
        )
    if has_examples:
        parts.append(
            "Includes practical examples to help developers get started "
            "quickly."
        )
    if has_scripts:
        parts.append("Automated scripts streamline development workflows.")
    if has_config:
        parts.append(
            "Professional CI/CD setup with automated testing and "
            "deployment."
        )
    description = (
        " ".join(parts)
        + "\n\nThe architecture promotes scalability, maintainability, "
        "and ease of contribution. New developers can quickly understand "
        "the codebase structure and start contributing effectively."
    )

    visible = [
        d for d in dirs
        if not d.startswith(".") and "node_modules" not in d
    ]
    technologies = [_display_name(d) for d in visible[:MAX_LISTED_DIRECTORIES]]
    key_components = [
        d for d in visible
        if "dist" not in d and "build" not in d
    ][:MAX_LISTED_DIRECTORIES]

    return ArchitectureOverview(
        description=description,
        patterns=patterns,
        technologies=technologies,
        key_components=key_components,
        data_flow=(
            "Organized data flow through well-defined modules and "
            "interfaces"
            if has_src
            else "Standard data flow patterns"
        ),
        scalability=(
            "Designed for horizontal and vertical scaling with modular "
            "components"
        ),
    )


# ── Module explanations ──────────────────────────────────


def _complexity(file_count: int) -> Complexity:
    if file_count > HIGH_COMPLEXITY_FILE_COUNT:
        return Complexity.HIGH
    if file_count > MEDIUM_COMPLEXITY_FILE_COUNT:
        return Complexity.MEDIUM
    return Complexity.LOW


def _key_files(files: list[FileNode]) -> list[str]:
    preferred = [
        f.name
        for f in files
        if any(frag in f.name.lower() for frag in KEY_FILE_FRAGMENTS)
        or f.name.lower().endswith(SOURCE_EXTENSIONS)
    ][:MAX_KEY_FILES]
    return preferred or [f.name for f in files[:FALLBACK_KEY_FILES]]


def _describe_module(
    name: str, n_files: int, n_subdirs: int, has_tests: bool, has_index: bool
) -> tuple[str, str]:
    """Ordered keyword rules: first match on the directory name wins."""

    def grouped(template: str, otherwise: str) -> str:
        return template.format(n_subdirs) if n_subdirs else otherwise

    if "test" in name or "__tests__" in name:
        through = (
            "unit tests, integration tests, and automated testing"
            if has_tests
            else "automated testing"
        )
        return "Test Suite", (
            f"Comprehensive testing infrastructure with {n_files} test "
            f"files. Ensures code quality through {through}. "
            + grouped(
                "Organized into {} test categories.",
                "Well-structured test organization.",
            )
        )
    if "doc" in name:
        return "Documentation Hub", (
            f"Complete documentation system with {n_files} documentation "
            "files. Includes API references, user guides, tutorials, and "
            "contribution guidelines. "
            + grouped(
                "Organized into {} documentation sections for easy "
                "navigation.",
                "Comprehensive developer resources.",
            )
        )
    if "src" in name or "lib" in name:
        return "Core Application Logic", (
            f"Primary source code containing {n_files} implementation "
            "files. "
            + grouped(
                "Modularly organized into {} functional areas including "
                "business logic, data handling, and utilities.",
                "Contains the main application implementation.",
            )
            + (
                " Clean module exports via index files."
                if has_index
                else " Direct module access."
            )
        )
    if "config" in name:
        return "Configuration Management", (
            f"Centralized configuration with {n_files} config files "
            "managing environment settings, build configurations, and "
            "runtime parameters. Supports multiple deployment environments "
            "and feature flags. "
            + grouped(
                "Separated into {} configuration domains.",
                "Unified configuration approach.",
            )
        )
    if "util" in name or "helper" in name:
        return "Utility Library", (
            f"Reusable utility functions across {n_files} helper modules. "
            "Provides common operations for string manipulation, data "
            "transformation, validation, and more. "
            + (
                "Thoroughly tested utilities."
                if has_tests
                else "Shared helper functions."
            )
            + " Promotes code reuse and consistency."
        )
    if "component" in name:
        return "UI Component Library", (
            f"Modular UI components with {n_files} reusable elements. "
            + (
                "Each component includes tests for reliability. "
                if has_tests
                else "Composable design system. "
            )
            + grouped(
                "Categorized into {} component groups (buttons, forms, "
                "layouts, etc.).",
                "Flat component structure.",
            )
        )
    if "service" in name or "api" in name:
        return "Service Layer & API Integration", (
            f"Business logic and external integrations across {n_files} "
            "service modules. Handles data operations, API communications, "
            "authentication, and third-party integrations. "
            + grouped(
                "Organized into {} service domains.",
                "Centralized service management.",
            )
            + " Clean separation from UI layer."
        )
    if "model" in name or "schema" in name:
        return "Data Models & Schemas", (
            f"Data structure definitions with {n_files} model files. "
            "Defines entities, validation rules, type definitions, and "
            "database schemas. "
            + grouped("Grouped into {} data domains.", "Unified data layer.")
            + " Ensures type safety and data integrity."
        )
    if "example" in name or "demo" in name:
        return "Examples & Demonstrations", (
            f"Practical examples with {n_files} demo files showing "
            "real-world usage patterns. Helps developers understand "
            "implementation details and best practices. "
            + grouped(
                "Covers {} different use cases.",
                "Comprehensive usage examples.",
            )
            + " Great for onboarding."
        )
    if "script" in name:
        return "Automation & Build Scripts", (
            f"Development automation with {n_files} scripts for building, "
            "testing, deployment, and maintenance. Streamlines workflows "
            "and ensures consistent processes. "
            + grouped(
                "Categorized into {} script types.",
                "Unified script collection.",
            )
            + " Improves developer productivity."
        )
    if "middleware" in name:
        return "Middleware Layer", (
            f"Request/response processing with {n_files} middleware "
            "modules. Handles authentication, logging, error handling, and "
            "request transformation. "
            + (
                "Tested middleware chain."
                if has_tests
                else "Modular middleware architecture."
            )
            + " Ensures consistent request processing."
        )
    if "route" in name or "controller" in name:
        return "Routing & Controllers", (
            f"Application routing with {n_files} route/controller files. "
            "Maps URLs to handlers, manages request flow, and coordinates "
            "business logic. "
            + grouped("Organized into {} route groups.", "RESTful API structure.")
            + " Clean MVC pattern."
        )

    subdirs = f" and {n_subdirs} subdirectories" if n_subdirs else ""
    return f"{_display_name(name)} Module", (
        f"Specialized module containing {n_files} files{subdirs}. "
        + ("Includes comprehensive test coverage. " if has_tests else "")
        + ("Well-organized with clean exports. " if has_index else "")
        + "Contributes to the overall application architecture."
    )


def synthesize_modules(structure: list[FileNode]) -> list[ModuleExplanation]:
    """Explain each visible top-level directory from its name and files."""
    directories = [
        node
        for node in structure
        if node.is_directory
        and not node.name.startswith(".")
        and node.name not in HIDDEN_DIRECTORIES
    ]

    modules: list[ModuleExplanation] = []
    for directory in directories[:MAX_SYNTHESIZED_MODULES]:
        children = directory.children or []
        files = [c for c in children if not c.is_directory]
        subdirs = [c for c in children if c.is_directory]
        purpose, details = _describe_module(
            directory.name,
            n_files=len(files),
            n_subdirs=len(subdirs),
            has_tests=any(
                "test" in f.name or "spec" in f.name for f in files
            ),
            has_index=any("index" in f.name for f in files),
        )
        modules.append(
            ModuleExplanation(
                path=directory.path,
                name=directory.name,
                purpose=f"{purpose}: {details}",
                key_files=_key_files(files),
                complexity=_complexity(len(files)),
            )
        )
    return modules


# ── Issues, matching, guidance ───────────────────────────


def synthesize_issue_difficulty() -> IssueDifficulty:
    """Fixed ``intermediate`` classification.

    Labels and comment count are available to callers but deliberately
    not consulted here, so every unclassifiable issue looks the same.
    """
    return IssueDifficulty(
        level=ExperienceLevel.INTERMEDIATE,
        reasoning=UNCLASSIFIED_ISSUE_REASONING,
        signals=[],
    )


def synthesize_match_score() -> MatchScore:
    return MatchScore(
        score=NEUTRAL_MATCH_SCORE,
        reasoning=UNSCORED_MATCH_REASONING,
        language_match=NEUTRAL_MATCH_SCORE,
        framework_match=NEUTRAL_MATCH_SCORE,
        interest_match=NEUTRAL_MATCH_SCORE,
        experience_match=NEUTRAL_MATCH_SCORE,
    )


def synthesize_contribution_path(
    repository_url: str, difficulty: ExperienceLevel
) -> ContributionPath:
    """Generic four-step onboarding path for any repository.

    Raises:
        InvalidRepositoryUrlError: ``repository_url`` is not a GitHub
            repository URL.
    """
    repository_url = canonical_github_url(repository_url)
    steps = [
        ContributionStep(
            order=1,
            title="Read the Documentation",
            description=(
                "Start by reading the README and documentation to "
                "understand the project's purpose and architecture."
            ),
            files=["README.md", "CONTRIBUTING.md"],
            concepts=["Project Overview", "Setup Instructions"],
            resources=[
                Resource(
                    title="Repository README",
                    url=repository_url,
                    type="documentation",
                )
            ],
        ),
        ContributionStep(
            order=2,
            title="Set Up Development Environment",
            description=(
                "Clone the repository and install dependencies to get the "
                "project running locally."
            ),
            files=["package.json", "requirements.txt"],
            concepts=["Local Setup", "Dependencies"],
        ),
        ContributionStep(
            order=3,
            title="Explore the Codebase",
            description=(
                "Navigate through the main modules and understand the "
                "code structure."
            ),
            concepts=["Code Structure", "Module Organization"],
        ),
        ContributionStep(
            order=4,
            title="Find Good First Issues",
            description=(
                'Look for issues labeled "good first issue" or '
                '"beginner-friendly" to start contributing.'
            ),
            concepts=["Issue Tracking", "Contribution Guidelines"],
            resources=[
                Resource(
                    title="Project Issues",
                    url=f"{repository_url}/issues",
                    type="documentation",
                )
            ],
        ),
    ]
    return ContributionPath(
        repository_url=repository_url,
        steps=steps,
        estimated_time=(
            "3-4 hours"
            if difficulty == ExperienceLevel.BEGINNER
            else "2-3 hours"
        ),
        difficulty=difficulty,
    )
