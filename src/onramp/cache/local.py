"""Process-local fallback store with lazy expiry.

Used by :class:`~onramp.cache.store.DualBackendCache` while the remote
backend is degraded. Single-process and unlocked: safe only under
asyncio's cooperative scheduling, and never shared across workers.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from dataclasses import dataclass

NO_EXPIRY = math.inf


@dataclass(frozen=True)
class CacheEntry:
    key: str
    serialized_value: str
    expiry: float  # absolute timestamp, or NO_EXPIRY

    def is_expired(self, now: float) -> bool:
        return now >= self.expiry


class LocalStore:
    """Dict-backed key/value map; expired entries are evicted on read."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry.serialized_value

    def set(self, key: str, serialized_value: str, ttl: int) -> None:
        """Store a value; ``ttl <= 0`` stores it without expiry."""
        expiry = self._clock() + ttl if ttl > 0 else NO_EXPIRY
        self._entries[key] = CacheEntry(key, serialized_value, expiry)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
