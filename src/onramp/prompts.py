"""LLM prompt builders for repository analysis and guidance.

All user prompts sent by :class:`~onramp.clients.llm_client.LLMClient`
are assembled here. The system prompt lives in ``constants``.
"""

from __future__ import annotations

from onramp.constants import (
    ISSUE_BODY_PROMPT_CHARS,
    README_ARCHITECTURE_PROMPT_CHARS,
    README_MODULES_PROMPT_CHARS,
    README_SUMMARY_PROMPT_CHARS,
)
from onramp.schemas import (
    FileNode,
    GitHubIssue,
    RepositoryAnalysis,
    UserProfile,
)

_STRUCTURE_DEPTH = 2


def format_file_structure(
    nodes: list[FileNode], max_depth: int, depth: int = 0
) -> str:
    """Indented directory listing, ``max_depth`` levels deep."""
    if depth >= max_depth:
        return ""
    lines: list[str] = []
    for node in nodes:
        marker = "📁" if node.is_directory else "📄"
        lines.append(f"{'  ' * depth}{marker} {node.name}")
        if node.children and depth < max_depth - 1:
            lines.append(
                format_file_structure(node.children, max_depth, depth + 1)
            )
    return "\n".join(lines)


def build_summary_prompt(readme: str, structure: list[FileNode]) -> str:
    top_level = ", ".join(node.name for node in structure)
    return f"""\
Analyze this GitHub repository and provide a concise summary.

README Content:
{readme[:README_SUMMARY_PROMPT_CHARS]}

File Structure (top-level):
{top_level}

Provide:
1. A 2-3 sentence summary of what this project does
2. The primary programming language and frameworks used
3. The target audience or use case

Keep the explanation clear and accessible to developers unfamiliar with \
the project."""


def build_architecture_prompt(
    structure: list[FileNode], readme: str
) -> str:
    listing = format_file_structure(structure, _STRUCTURE_DEPTH)
    return f"""\
Based on this repository structure and README, explain the architecture.

File Structure:
{listing}

README:
{readme[:README_ARCHITECTURE_PROMPT_CHARS]}

Return a JSON object with:
- description: the architectural pattern, key components, data flow and \
technology stack, written for a new contributor
- patterns: array of architectural patterns (e.g. "MVC", "Layered")
- technologies: array of technologies used
- keyComponents: array of the most important directories or components

Return ONLY valid JSON."""


def build_modules_prompt(structure: list[FileNode], readme: str) -> str:
    modules = ", ".join(
        node.name for node in structure if node.is_directory
    )
    return f"""\
Explain the purpose and contents of these directories/modules.

Modules to explain: {modules}

README Context:
{readme[:README_MODULES_PROMPT_CHARS]}

For each module, provide a JSON array with objects containing:
- path: module path
- name: module name
- purpose: its purpose in the overall system
- keyFiles: array of key files
- complexity: "low", "medium", or "high"

Return ONLY valid JSON."""


def build_matching_prompt(
    profile: UserProfile, repository: RepositoryAnalysis
) -> str:
    return f"""\
Score how well this repository matches the user's profile.

User Profile:
- Languages: {", ".join(profile.languages)}
- Frameworks: {", ".join(profile.frameworks)}
- Experience Level: {profile.experience_level}
- Interests: {", ".join(profile.interests)}

Repository:
- Name: {repository.name}
- Languages: {", ".join(repository.metadata.languages)}
- Topics: {", ".join(repository.metadata.topics)}
- Description: {repository.summary}

Provide a JSON object with:
- score: overall match score (0-100)
- reasoning: explanation for the score
- languageMatch: language match score (0-100)
- frameworkMatch: framework match score (0-100)
- interestMatch: interest match score (0-100)
- experienceMatch: experience level match score (0-100)

Return ONLY valid JSON."""


def build_contribution_path_prompt(
    profile: UserProfile, repository: RepositoryAnalysis
) -> str:
    return f"""\
Create a personalized onboarding path for this developer.

User Profile:
- Experience Level: {profile.experience_level}
- Languages: {", ".join(profile.languages)}
- Frameworks: {", ".join(profile.frameworks)}

Repository: {repository.name}
Summary: {repository.summary}

Generate a JSON object with:
- steps: array of 4-6 steps, each with:
  - order: step number
  - title: clear title
  - description: detailed description
  - files: array of files to explore
  - concepts: array of key concepts
  - resources: array of resources (each with title, url, type)
- estimatedTime: e.g., "2-3 hours"
- difficulty: "beginner", "intermediate", or "advanced"

Tailor the complexity to their experience level. Return ONLY valid JSON."""


def build_issue_classification_prompt(
    issue: GitHubIssue, repository: RepositoryAnalysis
) -> str:
    return f"""\
Classify the difficulty of this GitHub issue.

Issue:
Title: {issue.title}
Description: {issue.body[:ISSUE_BODY_PROMPT_CHARS]}
Labels: {", ".join(issue.labels)}
Comments: {issue.comments}

Repository Context: {repository.name}

Classify as "beginner", "intermediate", or "advanced".

Provide a JSON object with:
- level: difficulty level
- reasoning: explanation for classification
- signals: array of complexity signals (each with type, value, impact)

Return ONLY valid JSON."""
