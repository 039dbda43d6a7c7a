"""PostgreSQL implementation of ProgressRepo.

Each call runs in its own short transaction (not the request session) so
a ConflictError rolls back cleanly and ProgressService can retry the whole
read-apply-save cycle on a fresh read.
"""

from __future__ import annotations

from dataclasses import replace

from sqlalchemy import delete, insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from heritage360.core.errors import ConflictError
from heritage360.db.tables import (
    CourseProgressRow,
    LearnerAchievementRow,
    LearnerProgressRow,
    LessonProgressRow,
)
from heritage360.models.achievement import EarnedAchievement
from heritage360.models.progress import (
    CourseProgress,
    LearnerProgress,
    LearnerStatistics,
    LessonProgress,
)


class PgProgressRepo:
    """Satisfies the ProgressRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, user_id: str) -> LearnerProgress | None:
        async with self._session_factory() as session:
            row = await session.get(LearnerProgressRow, user_id)
            if row is None:
                return None

            course_rows = (
                await session.execute(
                    select(CourseProgressRow)
                    .where(CourseProgressRow.user_id == user_id)
                    .order_by(CourseProgressRow.enrolled_at, CourseProgressRow.course_id)
                )
            ).scalars().all()
            lesson_rows = (
                await session.execute(
                    select(LessonProgressRow)
                    .where(LessonProgressRow.user_id == user_id)
                    .order_by(LessonProgressRow.course_id, LessonProgressRow.position)
                )
            ).scalars().all()
            achievement_rows = (
                await session.execute(
                    select(LearnerAchievementRow)
                    .where(LearnerAchievementRow.user_id == user_id)
                    .order_by(LearnerAchievementRow.earned_at)
                )
            ).scalars().all()

        lessons_by_course: dict[str, list[LessonProgress]] = {}
        for lr in lesson_rows:
            lessons_by_course.setdefault(lr.course_id, []).append(_row_to_lesson(lr))

        return LearnerProgress(
            user_id=row.user_id,
            courses=tuple(
                _row_to_course(cr, lessons_by_course.get(cr.course_id, []))
                for cr in course_rows
            ),
            stats=_row_to_stats(row),
            achievements=tuple(
                EarnedAchievement(
                    achievement_id=a.achievement_id, type=a.type, earned_at=a.earned_at
                )
                for a in achievement_rows
            ),
            version=row.version,
        )

    async def save(
        self, progress: LearnerProgress, expected_version: int
    ) -> LearnerProgress:
        new_version = expected_version + 1
        stats_values = _stats_values(progress.stats)

        async with self._session_factory() as session, session.begin():
            if expected_version == 0:
                try:
                    await session.execute(
                        insert(LearnerProgressRow).values(
                            user_id=progress.user_id, version=new_version, **stats_values
                        )
                    )
                except IntegrityError:
                    raise ConflictError(
                        f"learner {progress.user_id!r} was created concurrently"
                    ) from None
            else:
                result = await session.execute(
                    update(LearnerProgressRow)
                    .where(
                        LearnerProgressRow.user_id == progress.user_id,
                        LearnerProgressRow.version == expected_version,
                    )
                    .values(version=new_version, **stats_values)
                )
                if result.rowcount == 0:
                    raise ConflictError(
                        f"learner {progress.user_id!r} moved past version "
                        f"{expected_version}"
                    )

            # Children are rewritten under the version bump above; lesson
            # rows go with their course row (ON DELETE CASCADE).
            await session.execute(
                delete(CourseProgressRow).where(
                    CourseProgressRow.user_id == progress.user_id
                )
            )
            for cp in progress.courses:
                session.add(_course_to_row(progress.user_id, cp))
                for position, lp in enumerate(cp.lessons, start=1):
                    session.add(
                        _lesson_to_row(progress.user_id, cp.course_id, position, lp)
                    )
            await session.flush()

            if progress.achievements:
                await session.execute(
                    pg_insert(LearnerAchievementRow)
                    .values(
                        [
                            {
                                "user_id": progress.user_id,
                                "achievement_id": a.achievement_id,
                                "type": a.type,
                                "earned_at": a.earned_at,
                            }
                            for a in progress.achievements
                        ]
                    )
                    .on_conflict_do_nothing(
                        index_elements=["user_id", "achievement_id"]
                    )
                )

        return replace(progress, version=new_version)

    async def list_by_course(self, course_id: str) -> list[tuple[str, CourseProgress]]:
        # Analytics only needs the course-level projection, so lesson rows
        # are not loaded here.
        async with self._session_factory() as session:
            rows = (
                await session.execute(
                    select(CourseProgressRow).where(
                        CourseProgressRow.course_id == course_id
                    )
                )
            ).scalars().all()
        return [(r.user_id, _row_to_course(r, [])) for r in rows]


def _stats_values(stats: LearnerStatistics) -> dict[str, object]:
    return {
        "total_lessons_completed": stats.total_lessons_completed,
        "total_time_spent": stats.total_time_spent,
        "current_streak": stats.current_streak,
        "longest_streak": stats.longest_streak,
        "last_activity_date": stats.last_activity_date,
        "average_score": stats.average_score,
    }


def _row_to_stats(row: LearnerProgressRow) -> LearnerStatistics:
    return LearnerStatistics(
        total_lessons_completed=row.total_lessons_completed,
        total_time_spent=row.total_time_spent,
        current_streak=row.current_streak,
        longest_streak=row.longest_streak,
        last_activity_date=row.last_activity_date,
        average_score=row.average_score,
    )


def _row_to_course(row: CourseProgressRow, lessons: list[LessonProgress]) -> CourseProgress:
    return CourseProgress(
        course_id=row.course_id,
        status=row.status,
        progress_percentage=row.progress_percentage,
        lessons=tuple(lessons),
        enrolled_at=row.enrolled_at,
        started_at=row.started_at,
        completed_at=row.completed_at,
    )


def _row_to_lesson(row: LessonProgressRow) -> LessonProgress:
    return LessonProgress(
        lesson_id=row.lesson_id,
        status=row.status,
        time_spent=row.time_spent,
        score=row.score,
        attempts=row.attempts,
        started_at=row.started_at,
        completed_at=row.completed_at,
        last_accessed_at=row.last_accessed_at,
    )


def _course_to_row(user_id: str, cp: CourseProgress) -> CourseProgressRow:
    return CourseProgressRow(
        user_id=user_id,
        course_id=cp.course_id,
        status=cp.status,
        progress_percentage=cp.progress_percentage,
        enrolled_at=cp.enrolled_at,
        started_at=cp.started_at,
        completed_at=cp.completed_at,
    )


def _lesson_to_row(
    user_id: str, course_id: str, position: int, lp: LessonProgress
) -> LessonProgressRow:
    return LessonProgressRow(
        user_id=user_id,
        course_id=course_id,
        lesson_id=lp.lesson_id,
        position=position,
        status=lp.status,
        time_spent=lp.time_spent,
        score=lp.score,
        attempts=lp.attempts,
        started_at=lp.started_at,
        completed_at=lp.completed_at,
        last_accessed_at=lp.last_accessed_at,
    )
