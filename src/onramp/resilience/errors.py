"""Error classification for the retrying API clients.

Classifies exceptions into three handling strategies:
- RETRYABLE: wait a fixed delay and try again (network, 5xx, 429)
- UNAUTHENTICATED: never retry, fall back to synthesized content
- TERMINAL: never retry, map to a domain error at the call site
"""

from __future__ import annotations

import socket
from enum import Enum

import httpx

from onramp.constants import (
    MIN_CREDENTIAL_LENGTH,
    PLACEHOLDER_CREDENTIALS,
    RETRYABLE_STATUS_CODES,
)


class ErrorClass(Enum):
    RETRYABLE = "retryable"  # network reset/timeout/DNS, 5xx, 429
    UNAUTHENTICATED = "unauthenticated"  # bad credential, 401
    TERMINAL = "terminal"  # 403, 404, other 4xx, unknown


def status_code_of(error: BaseException) -> int | None:
    """Return the HTTP status carried by an exception, if any.

    litellm/openai exceptions expose ``status_code``; httpx exposes it
    on the attached response.
    """
    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int):
        return status_code
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    return None


def classify_error(error: BaseException) -> ErrorClass:
    """Classify an error to determine handling strategy.

    Checks structured attributes first (status code, exception type),
    falls back to string matching for untyped exceptions.
    """
    # 1. HTTP status
    status = status_code_of(error)
    if status is not None:
        if status >= 500 or status in RETRYABLE_STATUS_CODES:
            return ErrorClass.RETRYABLE
        if status == 401:
            return ErrorClass.UNAUTHENTICATED
        return ErrorClass.TERMINAL

    # 2. Transport-level failures (gaierror is DNS)
    if isinstance(
        error,
        (
            httpx.TransportError,
            TimeoutError,
            ConnectionError,
            socket.gaierror,
        ),
    ):
        return ErrorClass.RETRYABLE

    # 3. Fall back to string matching for untyped exceptions
    msg = str(error).lower()
    if any(
        marker in msg
        for marker in (
            "econnreset",
            "etimedout",
            "enotfound",
            "timed out",
            "timeout",
        )
    ):
        return ErrorClass.RETRYABLE
    if "unauthorized" in msg or "invalid api key" in msg:
        return ErrorClass.UNAUTHENTICATED

    return ErrorClass.TERMINAL


def is_retryable(error: BaseException) -> bool:
    """Return True if the error category supports retry."""
    return classify_error(error) is ErrorClass.RETRYABLE


def is_usable_credential(credential: str | None) -> bool:
    """Return False for empty, placeholder or too-short credentials.

    An unusable credential is detected before any call is made; it is
    treated exactly like an HTTP 401.
    """
    if not credential:
        return False
    value = credential.strip()
    if value in PLACEHOLDER_CREDENTIALS:
        return False
    return len(value) >= MIN_CREDENTIAL_LENGTH
