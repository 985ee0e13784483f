"""Shared retry behaviour for the GitHub and LLM clients.

Retries are a bounded loop (tenacity ``AsyncRetrying``) with a fixed
delay and an explicit attempt budget: ``max_retries`` retries means
``max_retries + 1`` total attempts. Only RETRYABLE errors are retried;
UNAUTHENTICATED and TERMINAL errors escape on the first attempt.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from onramp.constants import RETRY_DELAY_SECONDS, RETRY_MAX_RETRIES
from onramp.exceptions import InternalError
from onramp.resilience.errors import (
    ErrorClass,
    classify_error,
    is_retryable,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryContext:
    """Progress of one logical call through its attempt budget."""

    call: str
    max_retries: int
    attempt: int = 0
    classification: ErrorClass | None = None

    @property
    def retries(self) -> int:
        return max(self.attempt - 1, 0)

    @property
    def exhausted(self) -> bool:
        return (
            self.classification is ErrorClass.RETRYABLE
            and self.attempt > self.max_retries
        )


class RetryingApiClient:
    """Base for clients whose calls share one retry/classify policy.

    Subclasses call :meth:`_with_retry` and translate the escaping
    exception into their own domain errors.
    """

    service_name = "api"

    def __init__(
        self,
        *,
        max_retries: int = RETRY_MAX_RETRIES,
        retry_delay: float = RETRY_DELAY_SECONDS,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.last_retry_context: RetryContext | None = None

    async def _with_retry(
        self,
        operation: str,
        call: Callable[[], Awaitable[T]],
    ) -> T:
        """Run ``call`` until it succeeds or the budget is spent.

        Re-raises the last exception unchanged; ``last_retry_context``
        records how many attempts were made and how the failure was
        classified.
        """
        context = RetryContext(
            call=f"{self.service_name}.{operation}",
            max_retries=self.max_retries,
        )
        self.last_retry_context = context

        def _log_retry(state: RetryCallState) -> None:
            exc = state.outcome.exception() if state.outcome else None
            logger.warning(
                "event=retry call=%s attempt=%d max_attempts=%d"
                " delay=%.2fs error=%s",
                context.call,
                state.attempt_number,
                self.max_retries + 1,
                self.retry_delay,
                exc,
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_fixed(self.retry_delay),
            retry=retry_if_exception(is_retryable),
            before_sleep=_log_retry,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    context.attempt = attempt.retry_state.attempt_number
                    return await call()
        except Exception as exc:
            context.classification = classify_error(exc)
            if context.exhausted:
                logger.error(
                    "event=retry_exhausted call=%s attempts=%d error=%s",
                    context.call,
                    context.attempt,
                    exc,
                )
            raise
        raise InternalError(f"retry loop for {context.call} exited early")
