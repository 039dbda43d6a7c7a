from __future__ import annotations

from dataclasses import replace
from typing import Protocol

from heritage360.core.errors import ConflictError
from heritage360.models.progress import CourseProgress, LearnerProgress


class ProgressRepo(Protocol):
    async def get(self, user_id: str) -> LearnerProgress | None: ...
    async def save(
        self, progress: LearnerProgress, expected_version: int
    ) -> LearnerProgress: ...
    async def list_by_course(self, course_id: str) -> list[tuple[str, CourseProgress]]: ...


class InMemoryProgressRepo:
    """Dict-backed aggregate store with the same compare-and-swap contract
    as the Postgres repo: `save` succeeds only if the stored version still
    equals `expected_version` (0 meaning "not stored yet")."""

    def __init__(self) -> None:
        self._store: dict[str, LearnerProgress] = {}

    async def get(self, user_id: str) -> LearnerProgress | None:
        return self._store.get(user_id)

    async def save(
        self, progress: LearnerProgress, expected_version: int
    ) -> LearnerProgress:
        current = self._store.get(progress.user_id)
        current_version = current.version if current is not None else 0
        if current_version != expected_version:
            raise ConflictError(
                f"learner {progress.user_id!r} is at version {current_version}, "
                f"expected {expected_version}"
            )
        saved = replace(progress, version=expected_version + 1)
        self._store[progress.user_id] = saved
        return saved

    async def list_by_course(self, course_id: str) -> list[tuple[str, CourseProgress]]:
        found: list[tuple[str, CourseProgress]] = []
        for user_id, progress in self._store.items():
            cp = progress.course(course_id)
            if cp is not None:
                found.append((user_id, cp))
        return found
