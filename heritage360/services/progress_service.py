"""Progress use cases: catalog lookup, locking, versioned save, caching.

The rules themselves live in progress_tracker (pure functions).  This
service supplies what they need (the catalog course, the current
aggregate, the clock) and owns the write path:

    hold learner lock
      -> load aggregate (or a fresh one)
      -> apply a pure transition
      -> save with expected_version  -- Conflict? reload and re-apply
      -> invalidate the learner's cached views
    release lock

Cached views are populated under the same lock (cached_view), so a
reader that loaded version N can never store its payload after a writer
saved N+1 and cleared the keys.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar
from zoneinfo import ZoneInfo

from heritage360.core.errors import ConflictError, NotFoundError
from heritage360.core.metrics import (
    ACHIEVEMENTS_UNLOCKED,
    LESSONS_COMPLETED,
    PROGRESS_CONFLICTS,
    QUIZ_SUBMISSIONS,
)
from heritage360.models.course import Course, Lesson
from heritage360.models.progress import (
    COMPLETED,
    IN_PROGRESS,
    CourseProgress,
    LearnerProgress,
    LessonProgress,
)
from heritage360.repos.catalog_repo import CatalogRepo
from heritage360.repos.progress_repo import ProgressRepo
from heritage360.services import progress_tracker, quiz
from heritage360.services.cache import PROGRESS_CACHE_TTL, CacheService, progress_key
from heritage360.services.learner_lock import LearnerLock
from heritage360.services.progress_tracker import LessonCompletion, round_half_up

logger = logging.getLogger(__name__)

T = TypeVar("T")


def utc_now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


@dataclass(frozen=True, slots=True)
class CourseAnalytics:
    course_id: str
    enrolled: int
    in_progress: int
    completed: int
    average_percentage: int
    completion_rate: int  # percent of enrolled learners who completed


class ProgressService:
    def __init__(
        self,
        *,
        catalog: CatalogRepo,
        progress_repo: ProgressRepo,
        lock: LearnerLock,
        cache: CacheService,
        clock: Callable[[], int] = utc_now,
        tz: ZoneInfo | None = None,
        max_retries: int = 3,
    ) -> None:
        self._catalog = catalog
        self._progress = progress_repo
        self._lock = lock
        self._cache = cache
        self._clock = clock
        self._tz = tz or ZoneInfo("UTC")
        self._max_retries = max_retries

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------

    async def get_progress(self, user_id: str) -> LearnerProgress:
        """The learner's aggregate; an empty one if they never enrolled."""
        return await self._progress.get(user_id) or LearnerProgress(user_id=user_id)

    async def cached_view(
        self,
        user_id: str,
        view: str,
        render: Callable[[LearnerProgress], str],
    ) -> str:
        """Read-through cache for a rendered view of the aggregate.

        A miss loads and populates while holding the learner lock.  Writers
        clear the keys under that lock too, so the stored payload is never
        older than the last save.
        """
        key = progress_key(user_id, view)
        cached = await self._cache.get(key)
        if cached is not None:
            return cached

        async with self._lock.hold(user_id):
            payload = render(await self.get_progress(user_id))
            await self._cache.set(key, payload, PROGRESS_CACHE_TTL)
        return payload

    async def get_lesson(self, lesson_id: str) -> tuple[Lesson, Course]:
        """A lesson of a published course, with the course it belongs to."""
        course = await self._course_for_lesson(lesson_id)
        lesson = course.lesson(lesson_id)
        if lesson is None:
            raise NotFoundError(f"lesson {lesson_id!r} not found")
        return lesson, course

    async def submit_quiz(
        self, user_id: str, lesson_id: str, answers: list[str | None]
    ) -> quiz.QuizResult:
        """Grade answers against the lesson quiz.  Progress is not touched;
        the client reports the score through complete_lesson."""
        lesson, course = await self.get_lesson(lesson_id)
        if lesson.quiz is None or not lesson.quiz.questions:
            raise NotFoundError(f"lesson {lesson_id!r} has no quiz")

        result = quiz.grade(lesson.quiz, answers)
        QUIZ_SUBMISSIONS.labels(outcome="passed" if result.passed else "failed").inc()
        logger.info(
            "Quiz graded user=%s course=%s lesson=%s score=%d passed=%s",
            user_id,
            course.id,
            lesson_id,
            result.score,
            result.passed,
            extra={"user_id": user_id, "course_id": course.id, "lesson_id": lesson_id},
        )
        return result

    async def course_analytics(self, course_id: str) -> CourseAnalytics:
        await self._require_course(course_id)
        projections = [cp for _uid, cp in await self._progress.list_by_course(course_id)]
        enrolled = len(projections)
        completed = sum(1 for cp in projections if cp.status == COMPLETED)
        in_progress = sum(1 for cp in projections if cp.status == IN_PROGRESS)
        return CourseAnalytics(
            course_id=course_id,
            enrolled=enrolled,
            in_progress=in_progress,
            completed=completed,
            average_percentage=round_half_up(
                sum(cp.progress_percentage for cp in projections), enrolled
            ),
            completion_rate=round_half_up(100 * completed, enrolled),
        )

    # -----------------------------------------------------------------------
    # Writes
    # -----------------------------------------------------------------------

    async def enroll(self, user_id: str, course_id: str) -> CourseProgress:
        course = await self._require_course(course_id)
        if not course.is_published:
            logger.warning(
                "Enrollment in unpublished course rejected user=%s course=%s",
                user_id,
                course_id,
            )
            raise NotFoundError(f"course {course_id!r} not found")
        now = self._clock()

        def apply(progress: LearnerProgress) -> tuple[LearnerProgress, CourseProgress]:
            updated = progress_tracker.enroll(progress, course, now)
            return updated, updated.course(course.id)

        _, cp = await self._mutate(user_id, apply)
        logger.info("Learner enrolled user=%s course=%s", user_id, course_id)
        return cp

    async def unenroll(self, user_id: str, course_id: str) -> None:
        def apply(progress: LearnerProgress) -> tuple[LearnerProgress, None]:
            return progress_tracker.unenroll(progress, course_id), None

        await self._mutate(user_id, apply)
        logger.info("Learner unenrolled user=%s course=%s", user_id, course_id)

    async def start_lesson(
        self, user_id: str, lesson_id: str
    ) -> tuple[LessonProgress, CourseProgress]:
        course = await self._course_for_lesson(lesson_id)
        now = self._clock()

        def apply(
            progress: LearnerProgress,
        ) -> tuple[LearnerProgress, LessonProgress]:
            return progress_tracker.start_lesson(progress, course, lesson_id, now)

        saved, lp = await self._mutate(user_id, apply)
        logger.debug(
            "Lesson started user=%s course=%s lesson=%s attempts=%d",
            user_id,
            course.id,
            lesson_id,
            lp.attempts,
        )
        return lp, saved.course(course.id)

    async def complete_lesson(
        self,
        user_id: str,
        lesson_id: str,
        *,
        score: int | None = None,
        time_spent: int | None = None,
    ) -> LessonCompletion:
        course = await self._course_for_lesson(lesson_id)
        now = self._clock()

        def apply(progress: LearnerProgress) -> tuple[LearnerProgress, LessonCompletion]:
            result = progress_tracker.complete_lesson(
                progress,
                course,
                lesson_id,
                now=now,
                score=score,
                time_spent=time_spent,
                tz=self._tz,
            )
            return result.progress, result

        saved, result = await self._mutate(user_id, apply)

        LESSONS_COMPLETED.inc()
        logger.info(
            "Lesson completed user=%s course=%s lesson=%s score=%s course_pct=%d",
            user_id,
            course.id,
            lesson_id,
            score,
            result.course.progress_percentage,
            extra={"user_id": user_id, "course_id": course.id, "lesson_id": lesson_id},
        )
        for earned in result.new_achievements:
            ACHIEVEMENTS_UNLOCKED.labels(achievement_id=earned.achievement_id).inc()
            logger.info(
                "Achievement unlocked user=%s achievement=%s",
                user_id,
                earned.achievement_id,
            )
        # Hand back the saved aggregate so callers see the bumped version.
        return LessonCompletion(
            progress=saved,
            lesson=result.lesson,
            course=result.course,
            new_achievements=result.new_achievements,
        )

    # -----------------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------------

    async def _require_course(self, course_id: str) -> Course:
        course = await self._catalog.get_course(course_id)
        if course is None:
            raise NotFoundError(f"course {course_id!r} not found")
        return course

    async def _course_for_lesson(self, lesson_id: str) -> Course:
        lesson = await self._catalog.get_lesson(lesson_id)
        if lesson is None:
            logger.warning("Unknown lesson rejected lesson=%s", lesson_id)
            raise NotFoundError(f"lesson {lesson_id!r} not found")
        course = await self._require_course(lesson.course_id)
        # Lessons of draft courses are as invisible as the course itself.
        if not course.is_published:
            logger.warning(
                "Lesson of unpublished course rejected lesson=%s course=%s",
                lesson_id,
                course.id,
            )
            raise NotFoundError(f"lesson {lesson_id!r} not found")
        return course

    async def _mutate(
        self,
        user_id: str,
        apply: Callable[[LearnerProgress], tuple[LearnerProgress, T]],
    ) -> tuple[LearnerProgress, T]:
        """Read-apply-save under the learner lock, retrying on version conflict.

        `apply` must be pure: on a conflict it is re-run against the
        freshly loaded aggregate.
        """
        async with self._lock.hold(user_id):
            attempt = 0
            while True:
                attempt += 1
                current = await self.get_progress(user_id)
                updated, result = apply(current)
                try:
                    saved = await self._progress.save(
                        updated, expected_version=current.version
                    )
                except ConflictError:
                    if attempt >= self._max_retries:
                        PROGRESS_CONFLICTS.labels(outcome="exhausted").inc()
                        logger.warning(
                            "Progress save conflict, giving up user=%s attempts=%d",
                            user_id,
                            attempt,
                        )
                        raise
                    PROGRESS_CONFLICTS.labels(outcome="retried").inc()
                    logger.info(
                        "Progress save conflict, retrying user=%s attempt=%d",
                        user_id,
                        attempt,
                    )
                    continue
                break

            await self._cache.delete_pattern(f"progress:{user_id}:*")
        return saved, result
