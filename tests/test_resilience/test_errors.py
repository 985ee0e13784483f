"""Tests for error classification and credential checks."""

from __future__ import annotations

import socket

import httpx
import pytest

from onramp.resilience.errors import (
    ErrorClass,
    classify_error,
    is_retryable,
    is_usable_credential,
    status_code_of,
)


class _StatusCodeError(Exception):
    """Exception with a status_code attribute."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


def _http_status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.github.com/repos/o/r")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(
        f"HTTP {status}", request=request, response=response
    )


# ── classify_error ───────────────────────────────────────────


@pytest.mark.parametrize("status", [500, 502, 503, 504, 429, 408])
def test_classify_retryable_statuses(status: int) -> None:
    assert classify_error(_StatusCodeError("boom", status)) == (
        ErrorClass.RETRYABLE
    )


def test_classify_status_code_401_as_unauthenticated() -> None:
    err = _StatusCodeError("unauthorized", 401)
    assert classify_error(err) == ErrorClass.UNAUTHENTICATED


@pytest.mark.parametrize("status", [400, 403, 404, 422])
def test_classify_other_client_errors_as_terminal(status: int) -> None:
    assert classify_error(_StatusCodeError("nope", status)) == (
        ErrorClass.TERMINAL
    )


def test_classify_httpx_status_error_uses_response() -> None:
    assert classify_error(_http_status_error(503)) == ErrorClass.RETRYABLE
    assert classify_error(_http_status_error(404)) == ErrorClass.TERMINAL


def test_classify_transport_errors_as_retryable() -> None:
    request = httpx.Request("GET", "https://api.github.com")
    assert classify_error(httpx.ConnectError("reset", request=request)) == (
        ErrorClass.RETRYABLE
    )
    assert classify_error(
        httpx.ReadTimeout("timed out", request=request)
    ) == ErrorClass.RETRYABLE


def test_classify_builtin_network_errors_as_retryable() -> None:
    assert classify_error(TimeoutError()) == ErrorClass.RETRYABLE
    assert classify_error(ConnectionResetError()) == ErrorClass.RETRYABLE
    assert classify_error(socket.gaierror("Name or service not known")) == (
        ErrorClass.RETRYABLE
    )


@pytest.mark.parametrize(
    "message",
    [
        "read ECONNRESET",
        "connect ETIMEDOUT 140.82.112.6:443",
        "getaddrinfo ENOTFOUND api.github.com",
        "request timed out after 30s",
    ],
)
def test_classify_string_fallback_network(message: str) -> None:
    assert classify_error(Exception(message)) == ErrorClass.RETRYABLE


def test_classify_string_fallback_unauthenticated() -> None:
    err = Exception("Incorrect API key provided: invalid api key")
    assert classify_error(err) == ErrorClass.UNAUTHENTICATED


def test_classify_unknown_as_terminal() -> None:
    err = ValueError("something completely unexpected")
    assert classify_error(err) == ErrorClass.TERMINAL


def test_is_retryable() -> None:
    assert is_retryable(_StatusCodeError("down", 503))
    assert not is_retryable(_StatusCodeError("gone", 404))


def test_status_code_of() -> None:
    assert status_code_of(_StatusCodeError("x", 418)) == 418
    assert status_code_of(_http_status_error(502)) == 502
    assert status_code_of(RuntimeError("no status")) is None


# ── is_usable_credential ─────────────────────────────────────


@pytest.mark.parametrize(
    "credential",
    [
        None,
        "",
        "   ",
        "your_openai_api_key_here",
        "your_anthropic_api_key_here",
        "your_github_token_here",
        "sk-123",
        "123456789",
    ],
)
def test_unusable_credentials(credential: str | None) -> None:
    assert not is_usable_credential(credential)


@pytest.mark.parametrize(
    "credential",
    ["1234567890", "sk-proj-abcdefghijklmnop", "ghp_" + "a" * 36],
)
def test_usable_credentials(credential: str) -> None:
    assert is_usable_credential(credential)
