"""Clients for the external services: GitHub and the LLM provider."""

from onramp.clients.file_tree import build_file_tree
from onramp.clients.github_client import GitHubClient
from onramp.clients.llm_client import LLMClient

__all__ = ["GitHubClient", "LLMClient", "build_file_tree"]
