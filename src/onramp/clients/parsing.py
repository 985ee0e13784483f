"""Tagged parsing of LLM responses and the text fallbacks behind it.

``parse_json_response`` never raises: it returns ``Parsed`` or
``Unparseable`` and the caller picks the branch explicitly.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

from onramp.constants import (
    MAX_TEXT_PARSED_MODULES,
    NEUTRAL_MATCH_SCORE,
    TEXT_REASONING_CHARS,
    Complexity,
    ExperienceLevel,
)
from onramp.schemas import (
    FileNode,
    IssueDifficulty,
    MatchScore,
    ModuleExplanation,
)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)
_SCORE_RE = re.compile(r"score[:\s]+(\d+)", re.IGNORECASE)


@dataclass(frozen=True)
class Parsed:
    value: Any


@dataclass(frozen=True)
class Unparseable:
    reason: str
    text: str


ParseResult = Parsed | Unparseable


def parse_json_response(text: str) -> ParseResult:
    """Decode a JSON response, tolerating a Markdown code fence."""
    stripped = text.strip()
    fenced = _FENCE_RE.match(stripped)
    if fenced:
        stripped = fenced.group(1)
    if not stripped:
        return Unparseable(reason="empty response", text=text)
    try:
        return Parsed(json.loads(stripped))
    except json.JSONDecodeError as exc:
        return Unparseable(reason=f"invalid JSON: {exc.msg}", text=text)


def modules_from_text(
    text: str, structure: list[FileNode]
) -> list[ModuleExplanation]:
    """Fallback when the module explanation is prose, not JSON.

    The prose itself is not mined; the first few top-level directories
    are listed with a name-derived purpose.
    """
    directories = [node for node in structure if node.is_directory]
    return [
        ModuleExplanation(
            path=node.path,
            name=node.name,
            purpose=f"Module: {node.name} (purpose inferred from its name)",
            key_files=[],
            complexity=Complexity.MEDIUM,
        )
        for node in directories[:MAX_TEXT_PARSED_MODULES]
    ]


def match_score_from_text(text: str) -> MatchScore:
    """Pull ``score: NN`` out of prose; every sub-score gets the same."""
    found = _SCORE_RE.search(text)
    score = int(found.group(1)) if found else NEUTRAL_MATCH_SCORE
    score = min(score, 100)
    return MatchScore(
        score=score,
        reasoning=text[:TEXT_REASONING_CHARS],
        language_match=score,
        framework_match=score,
        interest_match=score,
        experience_match=score,
    )


def issue_difficulty_from_text(text: str) -> IssueDifficulty:
    """Keyword search for a difficulty level in prose."""
    lowered = text.lower()
    if "beginner" in lowered:
        level = ExperienceLevel.BEGINNER
    elif "advanced" in lowered:
        level = ExperienceLevel.ADVANCED
    else:
        level = ExperienceLevel.INTERMEDIATE
    reasoning = text[:TEXT_REASONING_CHARS].strip()
    if len(reasoning) < 20:
        reasoning = f"Classified as {level} from a free-text response"
    return IssueDifficulty(level=level, reasoning=reasoning, signals=[])
