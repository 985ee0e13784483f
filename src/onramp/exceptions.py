"""Domain errors raised by the integration layer.

Every public operation either returns a value or raises one of these.
Callers (route handlers, CLI) map ``code`` to a user-facing status.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from onramp.constants import ERROR_MESSAGES, ErrorCode


class OnrampError(Exception):
    """Base class for classified domain errors."""

    default_code: ErrorCode = ErrorCode.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str | None = None,
        *,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code or self.default_code
        self.message = message or ERROR_MESSAGES[self.code]
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": str(self.code),
            "message": self.message,
            "details": self.details,
            "timestamp": datetime.now(UTC).isoformat(),
        }


class NotFoundError(OnrampError):
    default_code = ErrorCode.REPOSITORY_NOT_FOUND


class RateLimitExceededError(OnrampError):
    default_code = ErrorCode.RATE_LIMIT_EXCEEDED


class ServiceUnavailableError(OnrampError):
    default_code = ErrorCode.LLM_SERVICE_UNAVAILABLE


class CacheError(OnrampError):
    default_code = ErrorCode.CACHE_ERROR


class ValidationError(OnrampError):
    """A result or input did not match its schema."""

    default_code = ErrorCode.VALIDATION_ERROR


class InvalidRepositoryUrlError(ValidationError):
    default_code = ErrorCode.INVALID_REPOSITORY_URL


class InternalError(OnrampError):
    default_code = ErrorCode.INTERNAL_SERVER_ERROR
