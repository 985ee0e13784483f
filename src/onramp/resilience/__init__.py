"""Failure classification and bounded retry for external calls."""

from onramp.resilience.errors import (
    ErrorClass,
    classify_error,
    is_retryable,
    is_usable_credential,
)
from onramp.resilience.retry import RetryContext, RetryingApiClient

__all__ = [
    "ErrorClass",
    "RetryContext",
    "RetryingApiClient",
    "classify_error",
    "is_retryable",
    "is_usable_credential",
]
