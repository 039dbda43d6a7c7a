"""Lesson events.

  Client -> POST /v1/lessons/{lesson_id}/complete {score?, time_spent?}
  -> lesson record updated (best score kept, time accumulated)
  -> course percentage recomputed
  -> streak / average / totals updated
  -> achievements evaluated
  -> 200 with everything the UI needs to react (new badges included)

GET /v1/lessons/{lesson_id} serves the lesson and its quiz questions
without the answers.  POST /v1/lessons/{lesson_id}/quiz grades a
submission and returns score and per-question feedback; the client then
reports that score on /complete.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from heritage360.api.dependencies import get_progress_service, require_permission, require_user
from heritage360.api.progress import (
    CourseProgressOut,
    EarnedAchievementOut,
    LessonProgressOut,
    StatisticsOut,
)
from heritage360.models.achievement import get_definition
from heritage360.models.course import Course, Lesson
from heritage360.models.principal import Principal
from heritage360.services.progress_service import ProgressService
from heritage360.services.quiz import QuizResult

router = APIRouter(prefix="/v1/lessons", tags=["lessons"])

_can_write = require_permission("progress:write", "progress")


class LessonCompleteIn(BaseModel):
    score: int | None = Field(default=None, ge=0, le=100)
    time_spent: int | None = Field(default=None, ge=0)  # minutes


class LessonStartOut(BaseModel):
    lesson: LessonProgressOut
    course: CourseProgressOut


class UnlockedAchievementOut(EarnedAchievementOut):
    name: str
    points: int


class LessonCompleteOut(BaseModel):
    lesson: LessonProgressOut
    course: CourseProgressOut
    stats: StatisticsOut
    new_achievements: list[UnlockedAchievementOut]


class QuizQuestionOut(BaseModel):
    question: str
    options: list[str]


class QuizOut(BaseModel):
    passing_score: int
    questions: list[QuizQuestionOut]


class LessonOut(BaseModel):
    id: str
    course_id: str
    course_title: str
    position: int
    title: str
    estimated_minutes: int
    quiz: QuizOut | None

    @classmethod
    def of(cls, lesson: Lesson, course: Course) -> LessonOut:
        quiz = None
        if lesson.quiz is not None:
            quiz = QuizOut(
                passing_score=lesson.quiz.passing_score,
                questions=[
                    QuizQuestionOut(question=q.question, options=list(q.options))
                    for q in lesson.quiz.questions
                ],
            )
        return cls(
            id=lesson.id,
            course_id=course.id,
            course_title=course.title,
            position=lesson.position,
            title=lesson.title,
            estimated_minutes=lesson.estimated_minutes,
            quiz=quiz,
        )


class QuizSubmitIn(BaseModel):
    # Positional: answers[i] is the answer to question i.
    answers: list[str | None] = Field(max_length=200)


class QuestionResultOut(BaseModel):
    question: str
    user_answer: str | None
    correct_answer: str
    is_correct: bool
    explanation: str


class QuizResultOut(BaseModel):
    score: int
    total_questions: int
    correct_answers: int
    passed: bool
    passing_score: int
    details: list[QuestionResultOut]

    @classmethod
    def of(cls, result: QuizResult) -> QuizResultOut:
        return cls(
            score=result.score,
            total_questions=result.total_questions,
            correct_answers=result.correct_answers,
            passed=result.passed,
            passing_score=result.passing_score,
            details=[
                QuestionResultOut(
                    question=d.question,
                    user_answer=d.user_answer,
                    correct_answer=d.correct_answer,
                    is_correct=d.is_correct,
                    explanation=d.explanation,
                )
                for d in result.details
            ],
        )


@router.get("/{lesson_id}", response_model=LessonOut)
async def get_lesson(
    lesson_id: str,
    _principal: Annotated[Principal, Depends(require_user)],
    service: Annotated[ProgressService, Depends(get_progress_service)],
) -> LessonOut:
    lesson, course = await service.get_lesson(lesson_id)
    return LessonOut.of(lesson, course)


@router.post("/{lesson_id}/quiz", response_model=QuizResultOut)
async def submit_quiz(
    lesson_id: str,
    payload: QuizSubmitIn,
    principal: Annotated[Principal, Depends(_can_write)],
    service: Annotated[ProgressService, Depends(get_progress_service)],
) -> QuizResultOut:
    result = await service.submit_quiz(principal.user_id, lesson_id, payload.answers)
    return QuizResultOut.of(result)


@router.post("/{lesson_id}/start", response_model=LessonStartOut)
async def start_lesson(
    lesson_id: str,
    principal: Annotated[Principal, Depends(_can_write)],
    service: Annotated[ProgressService, Depends(get_progress_service)],
) -> LessonStartOut:
    lp, cp = await service.start_lesson(principal.user_id, lesson_id)
    return LessonStartOut(lesson=LessonProgressOut.of(lp), course=CourseProgressOut.of(cp))


@router.post("/{lesson_id}/complete", response_model=LessonCompleteOut)
async def complete_lesson(
    lesson_id: str,
    principal: Annotated[Principal, Depends(_can_write)],
    service: Annotated[ProgressService, Depends(get_progress_service)],
    payload: LessonCompleteIn | None = None,
) -> LessonCompleteOut:
    payload = payload or LessonCompleteIn()
    result = await service.complete_lesson(
        principal.user_id,
        lesson_id,
        score=payload.score,
        time_spent=payload.time_spent,
    )

    unlocked = []
    for earned in result.new_achievements:
        definition = get_definition(earned.achievement_id)
        unlocked.append(
            UnlockedAchievementOut(
                achievement_id=earned.achievement_id,
                type=earned.type,
                earned_at=earned.earned_at,
                name=definition.name if definition else earned.achievement_id,
                points=definition.points if definition else 0,
            )
        )

    return LessonCompleteOut(
        lesson=LessonProgressOut.of(result.lesson),
        course=CourseProgressOut.of(result.course),
        stats=StatisticsOut.of(result.progress.stats),
        new_achievements=unlocked,
    )
