"""Quiz grading.

Answers are matched to questions by position; a missing or extra answer
never raises, a missing one simply counts as wrong.  The percentage uses
the same half-up rounding as course progress, so the score can be fed
straight into complete_lesson.
"""

from __future__ import annotations

from dataclasses import dataclass

from heritage360.models.course import Quiz
from heritage360.services.progress_tracker import round_half_up


@dataclass(frozen=True, slots=True)
class QuestionResult:
    question: str
    user_answer: str | None
    correct_answer: str
    is_correct: bool
    explanation: str


@dataclass(frozen=True, slots=True)
class QuizResult:
    score: int
    total_questions: int
    correct_answers: int
    passed: bool
    passing_score: int
    details: tuple[QuestionResult, ...]


def grade(quiz: Quiz, answers: list[str | None]) -> QuizResult:
    details = []
    for index, question in enumerate(quiz.questions):
        user_answer = answers[index] if index < len(answers) else None
        details.append(
            QuestionResult(
                question=question.question,
                user_answer=user_answer,
                correct_answer=question.correct_answer,
                is_correct=user_answer == question.correct_answer,
                explanation=question.explanation,
            )
        )

    correct = sum(1 for d in details if d.is_correct)
    score = round_half_up(100 * correct, len(details))
    return QuizResult(
        score=score,
        total_questions=len(details),
        correct_answers=correct,
        passed=score >= quiz.passing_score,
        passing_score=quiz.passing_score,
        details=tuple(details),
    )
