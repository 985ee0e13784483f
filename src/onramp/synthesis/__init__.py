"""Rule-based fallback content for when external services are unusable."""

from onramp.synthesis.fallback import (
    synthesize_architecture,
    synthesize_contribution_path,
    synthesize_issue_difficulty,
    synthesize_match_score,
    synthesize_modules,
    synthesize_summary,
)

__all__ = [
    "synthesize_architecture",
    "synthesize_contribution_path",
    "synthesize_issue_difficulty",
    "synthesize_match_score",
    "synthesize_modules",
    "synthesize_summary",
]
