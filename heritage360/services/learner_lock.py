"""Single-writer discipline for a learner's progress aggregate.

Two completion requests for the same learner (a double click, a client
retry) would otherwise both read version N, both apply their change, and
one would overwrite the other.  Every mutation of a learner aggregate
runs inside `hold(user_id)`:

  InMemoryLearnerLock: one asyncio.Lock per learner, dropped once nobody
    holds or waits on it.  Correct for a single process.
  RedisLearnerLock: a Redis lock (SET NX + expiry) so all API instances
    share it.  The expiry bounds how long a crashed holder can block the
    learner.

Locks are scoped to one learner; nothing ever waits on another learner's
data.  The versioned save in the repository stays as a backstop in case
a lock expires mid-write.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Protocol

from redis.exceptions import LockError

from heritage360.core.errors import ConflictError
from heritage360.db.redis import redis_pool

logger = logging.getLogger(__name__)


class LearnerLock(Protocol):
    def hold(self, user_id: str) -> AbstractAsyncContextManager[None]: ...


class InMemoryLearnerLock:
    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._refs: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, user_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._refs[user_id] = self._refs.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._refs[user_id] -= 1
            if self._refs[user_id] == 0:
                del self._refs[user_id]
                self._locks.pop(user_id, None)

    def held_keys(self) -> list[str]:
        return list(self._locks)


class RedisLearnerLock:
    _PREFIX = "learner-lock:"

    def __init__(
        self,
        redis_client,
        *,
        timeout: float = 10.0,
        blocking_timeout: float = 5.0,
    ) -> None:
        self._redis = redis_client
        self._timeout = timeout
        self._blocking_timeout = blocking_timeout

    @asynccontextmanager
    async def hold(self, user_id: str) -> AsyncIterator[None]:
        lock = self._redis.lock(
            f"{self._PREFIX}{user_id}",
            timeout=self._timeout,
            blocking_timeout=self._blocking_timeout,
        )
        acquired = await lock.acquire()
        if not acquired:
            logger.warning("Learner lock busy user=%s", user_id)
            raise ConflictError(f"progress for learner {user_id!r} is being updated")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # Expired while held; the versioned save already guarded the write.
                logger.warning("Learner lock expired before release user=%s", user_id)


if redis_pool is not None:
    learner_lock: LearnerLock = RedisLearnerLock(redis_pool)
else:
    learner_lock = InMemoryLearnerLock()
