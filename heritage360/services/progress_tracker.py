"""Progress state transitions for one learner aggregate.

Every function here is pure: it takes the current LearnerProgress (plus
the catalog course and a timestamp) and returns a new value.  Nothing is
persisted.  ProgressService wraps these in the per-learner lock and the
versioned save, which is where the read-modify-write boundary lives.

Rounding: percentages and averages round half up (12.5 -> 13), computed
with integer arithmetic.

Attempts: every completion counts one attempt.  start_lesson only makes
sure a started lesson shows at least one.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, replace
from zoneinfo import ZoneInfo

from heritage360.core.errors import AlreadyEnrolledError, NotFoundError
from heritage360.models.achievement import EarnedAchievement
from heritage360.models.course import Course
from heritage360.models.progress import (
    COMPLETED,
    IN_PROGRESS,
    NOT_STARTED,
    CourseProgress,
    LearnerProgress,
    LearnerStatistics,
    LessonProgress,
)
from heritage360.services import achievements

_UTC = ZoneInfo("UTC")


@dataclass(frozen=True, slots=True)
class LessonCompletion:
    progress: LearnerProgress
    lesson: LessonProgress
    course: CourseProgress
    new_achievements: tuple[EarnedAchievement, ...]


def round_half_up(numerator: int, denominator: int) -> int:
    """round(numerator / denominator) with halves going up; 0 if denominator is 0."""
    if denominator <= 0:
        return 0
    return (2 * numerator + denominator) // (2 * denominator)


def activity_date(now: int, tz: ZoneInfo = _UTC) -> datetime.date:
    return datetime.datetime.fromtimestamp(now, tz).date()


# ---------------------------------------------------------------------------
# Course projection
# ---------------------------------------------------------------------------


def seed_course_progress(course: Course, now: int) -> CourseProgress:
    """Fresh enrollment: one not_started record per catalog lesson, in order."""
    return CourseProgress(
        course_id=course.id,
        lessons=tuple(LessonProgress(lesson_id=lesson.id) for lesson in course.lessons),
        enrolled_at=now,
    )


def recompute_percentage(
    course_progress: CourseProgress, total_lessons: int, now: int
) -> CourseProgress:
    """Recompute percentage and advance status (never regresses)."""
    completed = min(course_progress.completed_count, max(total_lessons, 0))
    percentage = round_half_up(100 * completed, total_lessons)

    status = course_progress.status
    started_at = course_progress.started_at
    completed_at = course_progress.completed_at

    if percentage > 0 and status == NOT_STARTED:
        status = IN_PROGRESS
    if status != NOT_STARTED and started_at is None:
        started_at = now
    if percentage == 100 and status != COMPLETED:
        status = COMPLETED
        completed_at = now

    return replace(
        course_progress,
        progress_percentage=percentage,
        status=status,
        started_at=started_at,
        completed_at=completed_at,
    )


# ---------------------------------------------------------------------------
# Learner statistics
# ---------------------------------------------------------------------------


def update_streak(
    stats: LearnerStatistics, now: int, tz: ZoneInfo = _UTC
) -> LearnerStatistics:
    """Daily streak on calendar days in `tz`, not rolling 24h windows.

    23:59 then 00:01 the next day counts as consecutive; 00:01 then 23:59
    on the same day does not.
    """
    today = activity_date(now, tz)
    last = stats.last_activity_date
    current = stats.current_streak

    if last is None:
        current = 1
    elif last == today - datetime.timedelta(days=1):
        current += 1
    elif last != today:
        current = 1
    # same day: unchanged

    return replace(
        stats,
        current_streak=current,
        longest_streak=max(stats.longest_streak, current),
        last_activity_date=today,
    )


def recompute_average_score(
    stats: LearnerStatistics, scores: list[int]
) -> LearnerStatistics:
    """Mean over scored completed lessons only; unscored ones are skipped."""
    return replace(stats, average_score=round_half_up(sum(scores), len(scores)))


# ---------------------------------------------------------------------------
# Enrollment
# ---------------------------------------------------------------------------


def enroll(progress: LearnerProgress, course: Course, now: int) -> LearnerProgress:
    if progress.course(course.id) is not None:
        raise AlreadyEnrolledError(f"already enrolled in course {course.id!r}")
    return progress.with_course(seed_course_progress(course, now))


def unenroll(progress: LearnerProgress, course_id: str) -> LearnerProgress:
    if progress.course(course_id) is None:
        raise NotFoundError(f"not enrolled in course {course_id!r}")
    remaining = progress.without_course(course_id)
    return replace(
        remaining,
        stats=recompute_average_score(remaining.stats, remaining.all_scores()),
    )


# ---------------------------------------------------------------------------
# Lesson events
# ---------------------------------------------------------------------------


def _require_lesson(course: Course, lesson_id: str) -> None:
    if course.lesson(lesson_id) is None:
        raise NotFoundError(f"lesson {lesson_id!r} not found in course {course.id!r}")


def start_lesson(
    progress: LearnerProgress, course: Course, lesson_id: str, now: int
) -> tuple[LearnerProgress, LessonProgress]:
    _require_lesson(course, lesson_id)

    cp = progress.course(course.id) or seed_course_progress(course, now)
    lp = cp.lesson(lesson_id) or LessonProgress(lesson_id=lesson_id)

    if lp.status == NOT_STARTED:
        lp = replace(
            lp,
            status=IN_PROGRESS,
            started_at=now,
            attempts=max(lp.attempts, 1),
        )
    lp = replace(lp, last_accessed_at=now)

    cp = cp.with_lesson(lp)
    if cp.status == NOT_STARTED:
        cp = replace(cp, status=IN_PROGRESS, started_at=cp.started_at or now)

    return progress.with_course(cp), lp


def complete_lesson(
    progress: LearnerProgress,
    course: Course,
    lesson_id: str,
    *,
    now: int,
    score: int | None = None,
    time_spent: int | None = None,
    tz: ZoneInfo = _UTC,
) -> LessonCompletion:
    _require_lesson(course, lesson_id)
    minutes = time_spent or 0

    cp = progress.course(course.id) or seed_course_progress(course, now)
    lp = cp.lesson(lesson_id) or LessonProgress(lesson_id=lesson_id)
    first_completion = not lp.is_completed

    best = lp.score
    if score is not None:
        best = score if best is None else max(best, score)

    lp = replace(
        lp,
        status=COMPLETED,
        completed_at=now,
        started_at=lp.started_at or now,
        last_accessed_at=now,
        attempts=lp.attempts + 1,
        time_spent=lp.time_spent + minutes,
        score=best,
    )

    cp = recompute_percentage(cp.with_lesson(lp), course.total_lessons, now)
    progress = progress.with_course(cp)

    stats = progress.stats
    stats = replace(
        stats,
        total_lessons_completed=stats.total_lessons_completed
        + (1 if first_completion else 0),
        total_time_spent=stats.total_time_spent + minutes,
    )
    stats = update_streak(stats, now, tz)
    stats = recompute_average_score(stats, progress.all_scores())

    unlocked = achievements.evaluate(stats, cp, progress.achievements, now=now)
    progress = replace(
        progress,
        stats=stats,
        achievements=progress.achievements + tuple(unlocked),
    )

    return LessonCompletion(
        progress=progress,
        lesson=lp,
        course=cp,
        new_achievements=tuple(unlocked),
    )


def course_final_score(course_progress: CourseProgress) -> int:
    """Mean of scored completed lessons in one course; 0 when none are scored."""
    scores = course_progress.scores()
    return round_half_up(sum(scores), len(scores))
