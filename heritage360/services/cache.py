"""Read-through cache for learner progress summaries.

WHY CACHE PROGRESS
--------------------
The progress dashboard polls GET /v1/progress/me.  Building that view
means loading the learner row plus every course, lesson and achievement
row behind it.  Writes are rare by comparison (a lesson every few
minutes), so most reads can be served from one Redis GET.

THE READ-THROUGH PATTERN
--------------------------
    GET  -> cache hit  -> return
         -> cache miss -> load aggregate -> populate (with TTL) -> return
    write to the aggregate -> delete the learner's keys

Keys look like `progress:{user_id}:{view}`, so one pattern delete
(`progress:{user_id}:*`) drops every view of a learner at once.

INVALIDATION
--------------
Two mechanisms cover each other: every entry carries a TTL
(PROGRESS_CACHE_TTL), and ProgressService deletes the learner's keys
after each successful save.  A learner sees their own completion on the
next read.

WHY POPULATE UNDER THE LEARNER LOCK
-------------------------------------
A plain read-through has a window: a reader misses, loads version N, a
writer saves N+1 and deletes the key, then the reader stores N for the
full TTL.  ProgressService.cached_view populates while holding the same
per-learner lock the writers hold across save + delete, which closes
that window.  Hits never take the lock.

WHY STRINGS
-------------
Values are the rendered JSON payloads.  The cache never needs to know
the response schema, and Redis stores them as-is.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from heritage360.core.metrics import CACHE_OPERATIONS
from heritage360.db.redis import redis_pool

PROGRESS_CACHE_TTL = 300


def progress_key(user_id: str, view: str = "summary") -> str:
    return f"progress:{user_id}:{view}"


@runtime_checkable
class CacheService(Protocol):
    async def get(self, key: str) -> str | None: ...
    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...
    async def delete(self, key: str) -> None: ...
    async def delete_pattern(self, pattern: str) -> None: ...


class InMemoryCacheService:
    """In-process cache for dev and tests; TTLs are not enforced."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        value = self._store.get(key)
        CACHE_OPERATIONS.labels(operation="miss" if value is None else "hit").inc()
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._store[key] = value

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    async def delete_pattern(self, pattern: str) -> None:
        prefix = pattern.rstrip("*")
        for k in [k for k in self._store if k.startswith(prefix)]:
            del self._store[k]


class RedisCacheService:
    """Redis-backed cache shared across API instances."""

    _PREFIX = "cache:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def get(self, key: str) -> str | None:
        value = await self._redis.get(f"{self._PREFIX}{key}")
        CACHE_OPERATIONS.labels(operation="miss" if value is None else "hit").inc()
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._redis.setex(f"{self._PREFIX}{key}", ttl_seconds, value)

    async def delete(self, key: str) -> None:
        await self._redis.delete(f"{self._PREFIX}{key}")

    async def delete_pattern(self, pattern: str) -> None:
        # SCAN, not KEYS: never block Redis on a full keyspace walk.
        cursor = 0
        while True:
            cursor, keys = await self._redis.scan(
                cursor, match=f"{self._PREFIX}{pattern}", count=100
            )
            if keys:
                await self._redis.delete(*keys)
            if cursor == 0:
                break


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

if redis_pool is not None:
    cache_service: CacheService = RedisCacheService(redis_pool)
else:
    cache_service = InMemoryCacheService()
