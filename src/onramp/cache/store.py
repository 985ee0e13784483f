"""Dual-backend cache: Redis first, process-local map when Redis fails.

Fallback contract
-----------------
Only :meth:`DualBackendCache.get` and :meth:`DualBackendCache.set` are
fallback-aware. The first remote failure in either flips the instance
to ``DEGRADED``; from then on both run purely against the local map and
never raise, until a reconnect event flips the state back to ``LIVE``.

Every other operation (``delete``, ``has``, ``clear_pattern``,
``get_ttl``, ``expire``, ``increment``, ``mget``, ``mset`` while live,
``flush``, ``get_stats``) has no local equivalent. They always target
the remote store and raise :class:`~onramp.exceptions.CacheError` when
it fails. ``mset`` in degraded mode becomes N local writes.

The local map is per instance and per process; a Redis outage lets
instances diverge and nothing reconciles them afterwards.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from pydantic_core import PydanticSerializationError, to_jsonable_python
from redis.asyncio import Redis

from onramp.cache.local import LocalStore
from onramp.config import Settings
from onramp.constants import DEFAULT_CACHE_TTL, BackendState
from onramp.exceptions import CacheError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RemoteStore(Protocol):
    """The subset of ``redis.asyncio.Redis`` this cache relies on."""

    async def get(self, name: str) -> Any: ...
    async def set(self, name: str, value: str) -> Any: ...
    async def setex(self, name: str, time: int, value: str) -> Any: ...
    async def delete(self, *names: str) -> int: ...
    async def exists(self, *names: str) -> int: ...
    async def keys(self, pattern: str = "*") -> list[str]: ...
    async def ttl(self, name: str) -> int: ...
    async def expire(self, name: str, time: int) -> bool: ...
    async def incrby(self, name: str, amount: int = 1) -> int: ...
    async def mget(self, keys: list[str]) -> list[Any]: ...
    async def flushdb(self) -> Any: ...
    async def info(self, section: str | None = None) -> dict[str, Any]: ...
    async def dbsize(self) -> int: ...
    async def ping(self) -> Any: ...
    async def aclose(self) -> None: ...
    def pipeline(self, transaction: bool = True) -> Any: ...


@dataclass(frozen=True)
class CacheItem:
    """One entry for :meth:`DualBackendCache.mset`."""

    key: str
    value: Any
    ttl: int | None = None


@dataclass(frozen=True)
class CacheStats:
    keys: int
    memory: str
    hits: int
    misses: int


def _serialize(key: str, value: Any) -> str:
    try:
        return json.dumps(to_jsonable_python(value, by_alias=True))
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        raise CacheError(
            f"Value for cache key {key} is not serializable",
            details={"key": key, "error": str(exc)},
        ) from exc


def _deserialize(key: str, raw: Any) -> Any | None:
    if raw is None or raw == "":
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        logger.warning("event=cache_value_unparseable key=%s", key)
        return None


class DualBackendCache:
    """Cache state object: ``{remote handle, backend state, local map}``.

    Construct one per application (or per test) and inject it; nothing
    here is module-global.
    """

    def __init__(
        self,
        remote: RemoteStore,
        *,
        default_ttl: int = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._remote = remote
        self._default_ttl = default_ttl
        self._local = LocalStore(clock)
        self._state = BackendState.LIVE
        self._closed = False

    @classmethod
    def from_settings(
        cls, settings: Settings | None = None
    ) -> DualBackendCache:
        """Build a cache over a Redis client for ``REDIS_URL``.

        The Redis client connects lazily, so this never fails on an
        unreachable server; the first failing ``get``/``set`` degrades.
        """
        if settings is None:
            settings = Settings()
        client = Redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_timeout=settings.redis_socket_timeout_seconds,
            socket_connect_timeout=settings.redis_socket_timeout_seconds,
        )
        return cls(client, default_ttl=settings.cache_default_ttl)

    # ── Backend state ────────────────────────────────────

    @property
    def state(self) -> BackendState:
        return self._state

    @property
    def degraded(self) -> bool:
        return self._state is BackendState.DEGRADED

    def on_connection_error(self, error: BaseException) -> None:
        """Driver error event: switch get/set to the local map."""
        if self._state is BackendState.LIVE:
            logger.warning(
                "event=cache_degraded error_type=%s error=%s",
                type(error).__name__,
                error,
            )
        self._state = BackendState.DEGRADED

    def on_reconnect(self) -> None:
        """Driver reconnect event: route get/set to Redis again.

        Entries written locally while degraded are not copied back.
        """
        if self._state is BackendState.DEGRADED:
            logger.info(
                "event=cache_reconnected local_keys=%d",
                len(self._local),
            )
        self._state = BackendState.LIVE

    async def reconnect(self) -> bool:
        """Ping Redis and fire the reconnect event if it answers."""
        try:
            await self._remote.ping()
        except Exception as exc:
            logger.info("event=cache_reconnect_failed error=%s", exc)
            return False
        self.on_reconnect()
        return True

    def is_connected(self) -> bool:
        return not self._closed and self._state is BackendState.LIVE

    # ── Fallback-aware operations ────────────────────────

    async def get(self, key: str) -> Any | None:
        """Return the cached value for ``key``, or None on a miss."""
        if self._state is BackendState.LIVE:
            try:
                raw = await self._remote.get(key)
            except Exception as exc:
                self.on_connection_error(exc)
            else:
                return _deserialize(key, raw)
        return _deserialize(key, self._local.get(key))

    async def set(
        self, key: str, value: Any, ttl: int | None = None
    ) -> None:
        """Store ``value`` as JSON.

        ``ttl=None`` uses the default TTL; ``ttl <= 0`` stores the value
        without expiry.
        """
        serialized = _serialize(key, value)
        expiration = self._resolve_ttl(ttl)
        if self._state is BackendState.LIVE:
            try:
                if expiration > 0:
                    await self._remote.setex(key, expiration, serialized)
                else:
                    await self._remote.set(key, serialized)
                return
            except Exception as exc:
                self.on_connection_error(exc)
        self._local.set(key, serialized, expiration)

    # ── Remote-only operations ───────────────────────────

    async def delete(self, key: str) -> None:
        await self._remote_call(
            f"delete cache key {key}",
            lambda: self._remote.delete(key),
            key=key,
        )

    async def has(self, key: str) -> bool:
        exists = await self._remote_call(
            f"check cache key {key}",
            lambda: self._remote.exists(key),
            key=key,
        )
        return exists == 1

    async def clear_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern; return the count."""

        async def _clear() -> int:
            keys = await self._remote.keys(pattern)
            if not keys:
                return 0
            await self._remote.delete(*keys)
            return len(keys)

        return await self._remote_call(
            f"clear cache pattern {pattern}", _clear, pattern=pattern
        )

    async def get_ttl(self, key: str) -> int:
        """Remaining TTL in seconds (-1 no expiry, -2 missing key)."""
        return await self._remote_call(
            f"get TTL for key {key}",
            lambda: self._remote.ttl(key),
            key=key,
        )

    async def expire(self, key: str, seconds: int) -> bool:
        result = await self._remote_call(
            f"set expiration for key {key}",
            lambda: self._remote.expire(key, seconds),
            key=key,
        )
        return bool(result)

    async def increment(self, key: str, amount: int = 1) -> int:
        return await self._remote_call(
            f"increment key {key}",
            lambda: self._remote.incrby(key, amount),
            key=key,
        )

    async def mget(self, keys: list[str]) -> list[Any | None]:
        if not keys:
            return []
        values = await self._remote_call(
            "get multiple cache keys",
            lambda: self._remote.mget(keys),
            keys=keys,
        )
        return [
            _deserialize(key, raw)
            for key, raw in zip(keys, values, strict=True)
        ]

    async def mset(self, items: Iterable[CacheItem]) -> None:
        """Write several entries; one pipelined round trip while live."""
        prepared = [
            (item.key, _serialize(item.key, item.value),
             self._resolve_ttl(item.ttl))
            for item in items
        ]
        if not prepared:
            return

        if self._state is BackendState.DEGRADED:
            for key, serialized, expiration in prepared:
                self._local.set(key, serialized, expiration)
            return

        async def _pipelined() -> None:
            async with self._remote.pipeline(transaction=False) as pipe:
                for key, serialized, expiration in prepared:
                    if expiration > 0:
                        pipe.setex(key, expiration, serialized)
                    else:
                        pipe.set(key, serialized)
                await pipe.execute()

        await self._remote_call(
            "set multiple cache keys", _pipelined, count=len(prepared)
        )

    async def flush(self) -> None:
        await self._remote_call("flush cache", self._remote.flushdb)

    async def get_stats(self) -> CacheStats:
        async def _stats() -> CacheStats:
            stats = await self._remote.info("stats")
            memory = await self._remote.info("memory")
            keys = await self._remote.dbsize()
            return CacheStats(
                keys=int(keys),
                memory=str(memory.get("used_memory_human", "0")),
                hits=int(stats.get("keyspace_hits", 0)),
                misses=int(stats.get("keyspace_misses", 0)),
            )

        return await self._remote_call("get cache stats", _stats)

    async def close(self) -> None:
        """Close the Redis connection; errors are logged, not raised."""
        self._closed = True
        try:
            await self._remote.aclose()
        except Exception:
            logger.warning("event=cache_close_failed", exc_info=True)

    # ── Internals ────────────────────────────────────────

    def _resolve_ttl(self, ttl: int | None) -> int:
        return self._default_ttl if ttl is None else ttl

    async def _remote_call(
        self,
        description: str,
        call: Callable[[], Awaitable[T]],
        **details: Any,
    ) -> T:
        try:
            return await call()
        except Exception as exc:
            logger.error(
                "event=cache_operation_failed op=%r error=%s",
                description,
                exc,
            )
            raise CacheError(
                f"Failed to {description}",
                details={**details, "error": str(exc)},
            ) from exc
