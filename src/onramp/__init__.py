"""Onramp — resilient GitHub/LLM integration and caching layer."""

__version__ = "0.1.0"
