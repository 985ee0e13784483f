"""Orchestration over the clients and the cache."""

from onramp.services.issue_service import IssueAnalyzerService
from onramp.services.repository_service import (
    RepositoryService,
    build_metadata,
    identify_entry_points,
)

__all__ = [
    "IssueAnalyzerService",
    "RepositoryService",
    "build_metadata",
    "identify_entry_points",
]
