"""Concurrent fan-out that never leaves a branch running unobserved."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any

logger = logging.getLogger(__name__)


async def gather_settled(*aws: Awaitable[Any]) -> list[Any]:
    """Await every branch, then raise the first failure in argument order.

    No branch is still running when this returns or raises: each one
    finishes with a result or with its retry budget exhausted.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    failures = [r for r in results if isinstance(r, BaseException)]
    if failures:
        if len(failures) > 1:
            logger.debug(
                "event=gather_failures count=%d first=%s",
                len(failures),
                type(failures[0]).__name__,
            )
        raise failures[0]
    return results
