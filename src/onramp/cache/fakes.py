"""In-memory fake of the Redis commands used by DualBackendCache.

Dict-backed, clock-driven expiry, no I/O — instant operations for unit
tests. Set ``fail_with`` to make every command raise, simulating an
unreachable server.
"""

from __future__ import annotations

import fnmatch
import time
from collections.abc import Callable
from typing import Any


class FakeClock:
    """Manually advanced replacement for ``time.time``."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class _FakePipeline:
    def __init__(self, redis: FakeRedis) -> None:
        self._redis = redis
        self._queued: list[tuple[str, tuple[Any, ...]]] = []

    async def __aenter__(self) -> _FakePipeline:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self._queued.clear()

    def set(self, name: str, value: str) -> _FakePipeline:
        self._queued.append(("set", (name, value)))
        return self

    def setex(self, name: str, seconds: int, value: str) -> _FakePipeline:
        self._queued.append(("setex", (name, seconds, value)))
        return self

    async def execute(self) -> list[Any]:
        self._redis.pipeline_executions += 1
        results: list[Any] = []
        for command, args in self._queued:
            results.append(await getattr(self._redis, command)(*args))
        self._queued.clear()
        return results


class FakeRedis:
    """Dict-backed stand-in for ``redis.asyncio.Redis``."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._data: dict[str, str] = {}
        self._expiry: dict[str, float] = {}
        self.fail_with: BaseException | None = None
        self.calls: list[str] = []
        self.pipeline_executions = 0
        self.hits = 0
        self.misses = 0
        self.closed = False

    def _check(self, command: str) -> None:
        self.calls.append(command)
        if self.fail_with is not None:
            raise self.fail_with

    def _purge(self, name: str) -> None:
        deadline = self._expiry.get(name)
        if deadline is not None and self._clock() >= deadline:
            self._data.pop(name, None)
            self._expiry.pop(name, None)

    async def get(self, name: str) -> str | None:
        self._check("get")
        self._purge(name)
        value = self._data.get(name)
        if value is None:
            self.misses += 1
        else:
            self.hits += 1
        return value

    async def set(self, name: str, value: str) -> bool:
        self._check("set")
        self._data[name] = value
        self._expiry.pop(name, None)
        return True

    async def setex(self, name: str, time: int, value: str) -> bool:
        self._check("setex")
        self._data[name] = value
        self._expiry[name] = self._clock() + time
        return True

    async def delete(self, *names: str) -> int:
        self._check("delete")
        removed = 0
        for name in names:
            self._purge(name)
            if self._data.pop(name, None) is not None:
                removed += 1
            self._expiry.pop(name, None)
        return removed

    async def exists(self, *names: str) -> int:
        self._check("exists")
        for name in names:
            self._purge(name)
        return sum(1 for name in names if name in self._data)

    async def keys(self, pattern: str = "*") -> list[str]:
        self._check("keys")
        for name in list(self._data):
            self._purge(name)
        return [k for k in self._data if fnmatch.fnmatchcase(k, pattern)]

    async def ttl(self, name: str) -> int:
        self._check("ttl")
        self._purge(name)
        if name not in self._data:
            return -2
        deadline = self._expiry.get(name)
        if deadline is None:
            return -1
        return int(deadline - self._clock())

    async def expire(self, name: str, time: int) -> bool:
        self._check("expire")
        self._purge(name)
        if name not in self._data:
            return False
        self._expiry[name] = self._clock() + time
        return True

    async def incrby(self, name: str, amount: int = 1) -> int:
        self._check("incrby")
        self._purge(name)
        value = int(self._data.get(name, "0")) + amount
        self._data[name] = str(value)
        return value

    async def mget(self, keys: list[str]) -> list[str | None]:
        self._check("mget")
        for name in keys:
            self._purge(name)
        return [self._data.get(name) for name in keys]

    async def flushdb(self) -> bool:
        self._check("flushdb")
        self._data.clear()
        self._expiry.clear()
        return True

    async def info(self, section: str | None = None) -> dict[str, Any]:
        self._check("info")
        if section == "memory":
            return {"used_memory_human": "1.00M"}
        return {"keyspace_hits": self.hits, "keyspace_misses": self.misses}

    async def dbsize(self) -> int:
        self._check("dbsize")
        return len(self._data)

    async def ping(self) -> bool:
        self._check("ping")
        return True

    async def aclose(self) -> None:
        self.closed = True

    def pipeline(self, transaction: bool = True) -> _FakePipeline:
        self._check("pipeline")
        return _FakePipeline(self)
