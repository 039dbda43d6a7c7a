from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class QuizQuestion:
    question: str
    options: tuple[str, ...]
    correct_answer: str
    explanation: str = ""


@dataclass(frozen=True, slots=True)
class Quiz:
    questions: tuple[QuizQuestion, ...]
    passing_score: int = 70  # percent

    def to_dict(self) -> dict:
        return {
            "passing_score": self.passing_score,
            "questions": [
                {
                    "question": q.question,
                    "options": list(q.options),
                    "correct_answer": q.correct_answer,
                    "explanation": q.explanation,
                }
                for q in self.questions
            ],
        }

    @staticmethod
    def from_dict(data: dict) -> Quiz:
        return Quiz(
            passing_score=int(data.get("passing_score", 70)),
            questions=tuple(
                QuizQuestion(
                    question=q["question"],
                    options=tuple(q.get("options", ())),
                    correct_answer=q["correct_answer"],
                    explanation=q.get("explanation", ""),
                )
                for q in data.get("questions", ())
            ),
        )


@dataclass(frozen=True, slots=True)
class Lesson:
    id: str
    course_id: str
    position: int
    title: str
    estimated_minutes: int = 0
    quiz: Quiz | None = None


@dataclass(frozen=True, slots=True)
class Course:
    """Catalog entry.  The catalog owns lesson order and count."""

    id: str
    title: str
    category: str = "history"  # history|culture|archaeology|language|art|traditions
    difficulty: str = "beginner"  # beginner|intermediate|advanced
    status: str = "published"  # draft|published|retired
    lessons: tuple[Lesson, ...] = ()

    @property
    def total_lessons(self) -> int:
        return len(self.lessons)

    @property
    def is_published(self) -> bool:
        return self.status == "published"

    def lesson(self, lesson_id: str) -> Lesson | None:
        for lesson in self.lessons:
            if lesson.id == lesson_id:
                return lesson
        return None

    @staticmethod
    def new(
        *,
        id: str,
        title: str,
        lesson_titles: list[str],
        category: str = "history",
        difficulty: str = "beginner",
        minutes_per_lesson: int = 15,
        quizzes: dict[int, Quiz] | None = None,
    ) -> Course:
        """Build a course with lessons numbered from 1; `quizzes` is keyed
        by lesson position."""
        quizzes = quizzes or {}
        lessons = tuple(
            Lesson(
                id=f"{id}-l{pos}",
                course_id=id,
                position=pos,
                title=lesson_title,
                estimated_minutes=minutes_per_lesson,
                quiz=quizzes.get(pos),
            )
            for pos, lesson_title in enumerate(lesson_titles, start=1)
        )
        return Course(
            id=id,
            title=title,
            category=category,
            difficulty=difficulty,
            lessons=lessons,
        )
