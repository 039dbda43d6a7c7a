from __future__ import annotations

import datetime
from dataclasses import dataclass, field, replace

from heritage360.models.achievement import EarnedAchievement

NOT_STARTED = "not_started"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class LessonProgress:
    """One learner's state on one lesson.

    completed_at is set iff status == completed; attempts >= 1 once the
    lesson has left not_started.
    """

    lesson_id: str
    status: str = NOT_STARTED  # not_started|in_progress|completed
    time_spent: int = 0  # minutes, never decreases
    score: int | None = None  # best score across attempts
    attempts: int = 0
    started_at: int | None = None
    completed_at: int | None = None
    last_accessed_at: int | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED


@dataclass(frozen=True, slots=True)
class CourseProgress:
    """Per-course projection owning an ordered list of lesson records."""

    course_id: str
    status: str = NOT_STARTED  # not_started|in_progress|completed
    progress_percentage: int = 0
    lessons: tuple[LessonProgress, ...] = ()
    enrolled_at: int | None = None
    started_at: int | None = None
    completed_at: int | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED

    @property
    def completed_count(self) -> int:
        return sum(1 for lp in self.lessons if lp.is_completed)

    def lesson(self, lesson_id: str) -> LessonProgress | None:
        for lp in self.lessons:
            if lp.lesson_id == lesson_id:
                return lp
        return None

    def with_lesson(self, updated: LessonProgress) -> CourseProgress:
        """Replace the lesson record in place, or append it if new."""
        lessons = list(self.lessons)
        for i, lp in enumerate(lessons):
            if lp.lesson_id == updated.lesson_id:
                lessons[i] = updated
                break
        else:
            lessons.append(updated)
        return replace(self, lessons=tuple(lessons))

    def scores(self) -> list[int]:
        return [lp.score for lp in self.lessons if lp.is_completed and lp.score is not None]


@dataclass(frozen=True, slots=True)
class LearnerStatistics:
    """Cross-course totals.  longest_streak >= current_streak always."""

    total_lessons_completed: int = 0
    total_time_spent: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_activity_date: datetime.date | None = None
    average_score: int = 0


@dataclass(frozen=True, slots=True)
class LearnerProgress:
    """The per-learner aggregate: the unit of locking and persistence.

    `version` is bumped by the repository on every successful save and
    checked on the next one (compare-and-swap).
    """

    user_id: str
    courses: tuple[CourseProgress, ...] = ()
    stats: LearnerStatistics = field(default_factory=LearnerStatistics)
    achievements: tuple[EarnedAchievement, ...] = ()
    version: int = 0

    def course(self, course_id: str) -> CourseProgress | None:
        for cp in self.courses:
            if cp.course_id == course_id:
                return cp
        return None

    def with_course(self, updated: CourseProgress) -> LearnerProgress:
        courses = list(self.courses)
        for i, cp in enumerate(courses):
            if cp.course_id == updated.course_id:
                courses[i] = updated
                break
        else:
            courses.append(updated)
        return replace(self, courses=tuple(courses))

    def without_course(self, course_id: str) -> LearnerProgress:
        return replace(
            self,
            courses=tuple(cp for cp in self.courses if cp.course_id != course_id),
        )

    def has_achievement(self, achievement_id: str) -> bool:
        return any(a.achievement_id == achievement_id for a in self.achievements)

    def all_scores(self) -> list[int]:
        return [s for cp in self.courses for s in cp.scores()]
