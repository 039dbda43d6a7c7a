from __future__ import annotations

from typing import Protocol

from heritage360.models.course import Course, Lesson, Quiz, QuizQuestion


class CatalogRepo(Protocol):
    """Read-only view of courses and lessons.  The catalog owns lesson counts."""

    async def get_course(self, course_id: str) -> Course | None: ...
    async def get_lesson(self, lesson_id: str) -> Lesson | None: ...
    async def list_courses(self) -> list[Course]: ...


class InMemoryCatalogRepo:
    def __init__(self, courses: list[Course] | None = None) -> None:
        self._courses: dict[str, Course] = {}
        self._lessons: dict[str, Lesson] = {}
        for course in courses or []:
            self.add(course)

    def add(self, course: Course) -> None:
        if course.id in self._courses:
            raise ValueError("course already exists")
        self._courses[course.id] = course
        for lesson in course.lessons:
            self._lessons[lesson.id] = lesson

    def clear(self) -> None:
        self._courses.clear()
        self._lessons.clear()

    async def get_course(self, course_id: str) -> Course | None:
        return self._courses.get(course_id)

    async def get_lesson(self, lesson_id: str) -> Lesson | None:
        return self._lessons.get(lesson_id)

    async def list_courses(self) -> list[Course]:
        return [c for c in self._courses.values() if c.is_published]


_AKSUM_QUIZ = Quiz(
    questions=(
        QuizQuestion(
            question="During which period did the Kingdom of Aksum primarily flourish?",
            options=("50-500 AD", "100-960 AD", "200-1200 AD", "500-1000 AD"),
            correct_answer="100-960 AD",
            explanation="Aksum was a major power from roughly 100 to 960 AD.",
        ),
        QuizQuestion(
            question="What were the main exports of the Aksumite kingdom?",
            options=(
                "Silk and spices",
                "Gold, ivory, and exotic animals",
                "Pottery and textiles",
                "Silver and copper",
            ),
            correct_answer="Gold, ivory, and exotic animals",
            explanation="Aksum traded gold, ivory and exotic animals across the Red Sea.",
        ),
    ),
)

_LALIBELA_QUIZ = Quiz(
    questions=(
        QuizQuestion(
            question="Who was the most famous ruler of the Zagwe dynasty?",
            options=("King Yekuno Amlak", "King Lalibela", "King Gebre Mesqel", "King Dawit"),
            correct_answer="King Lalibela",
            explanation="King Lalibela commissioned the rock-hewn churches.",
        ),
    ),
)


def sample_courses() -> list[Course]:
    """Seed catalog for development and tests."""
    return [
        Course.new(
            id="ethiopian-heritage-101",
            title="Introduction to Ethiopian Heritage",
            category="history",
            lesson_titles=[
                "Aksum and its Obelisks",
                "The Rock-Hewn Churches of Lalibela",
                "Gondar and the Royal Enclosure",
                "Harar Jugol, the Walled City",
            ],
            quizzes={1: _AKSUM_QUIZ, 2: _LALIBELA_QUIZ},
        ),
        Course.new(
            id="ethiopian-scripts",
            title="Ge'ez Script and Ethiopian Manuscripts",
            category="language",
            difficulty="intermediate",
            lesson_titles=[
                "Origins of Ge'ez",
                "Illuminated Manuscripts",
            ],
            minutes_per_lesson=25,
        ),
    ]
