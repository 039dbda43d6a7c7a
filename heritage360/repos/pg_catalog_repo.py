"""PostgreSQL implementation of CatalogRepo."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from heritage360.db.tables import CourseRow, LessonRow
from heritage360.models.course import Course, Lesson, Quiz


class PgCatalogRepo:
    """Satisfies the CatalogRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_course(self, course_id: str) -> Course | None:
        async with self._session_factory() as session:
            row = await session.get(CourseRow, course_id)
            if row is None:
                return None
            lessons = await _lessons_for(session, [course_id])
            return _row_to_course(row, lessons.get(course_id, []))

    async def get_lesson(self, lesson_id: str) -> Lesson | None:
        async with self._session_factory() as session:
            row = await session.get(LessonRow, lesson_id)
            if row is None:
                return None
            return _row_to_lesson(row)

    async def list_courses(self) -> list[Course]:
        async with self._session_factory() as session:
            stmt = (
                select(CourseRow)
                .where(CourseRow.status == "published")
                .order_by(CourseRow.title)
            )
            rows = (await session.execute(stmt)).scalars().all()
            lessons = await _lessons_for(session, [r.id for r in rows])
            return [_row_to_course(r, lessons.get(r.id, [])) for r in rows]


async def _lessons_for(
    session: AsyncSession, course_ids: list[str]
) -> dict[str, list[Lesson]]:
    if not course_ids:
        return {}
    stmt = (
        select(LessonRow)
        .where(LessonRow.course_id.in_(course_ids))
        .order_by(LessonRow.course_id, LessonRow.position)
    )
    grouped: dict[str, list[Lesson]] = {}
    for row in (await session.execute(stmt)).scalars():
        grouped.setdefault(row.course_id, []).append(_row_to_lesson(row))
    return grouped


def _row_to_lesson(row: LessonRow) -> Lesson:
    return Lesson(
        id=row.id,
        course_id=row.course_id,
        position=row.position,
        title=row.title,
        estimated_minutes=row.estimated_minutes,
        quiz=Quiz.from_dict(row.quiz) if row.quiz else None,
    )


def _row_to_course(row: CourseRow, lessons: list[Lesson]) -> Course:
    return Course(
        id=row.id,
        title=row.title,
        category=row.category,
        difficulty=row.difficulty,
        status=row.status,
        lessons=tuple(lessons),
    )
