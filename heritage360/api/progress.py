"""Learner progress read endpoints.

GET /v1/progress/me is read-through cached through
ProgressService.cached_view: a miss loads and populates under the
learner lock, and every write clears the learner's keys under the same
lock, so a completion is visible on the very next read.
"""

from __future__ import annotations

import datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from heritage360.api.dependencies import (
    get_certificate_service,
    get_progress_service,
    require_learner_permission,
    require_permission,
)
from heritage360.models.progress import (
    CourseProgress,
    LearnerProgress,
    LearnerStatistics,
    LessonProgress,
)
from heritage360.models.principal import Principal
from heritage360.services.certificate_service import CertificateService
from heritage360.services.progress_service import ProgressService

router = APIRouter(prefix="/v1/progress", tags=["progress"])


class LessonProgressOut(BaseModel):
    lesson_id: str
    status: str
    time_spent: int
    score: int | None
    attempts: int
    started_at: int | None
    completed_at: int | None
    last_accessed_at: int | None

    @classmethod
    def of(cls, lp: LessonProgress) -> LessonProgressOut:
        return cls(
            lesson_id=lp.lesson_id,
            status=lp.status,
            time_spent=lp.time_spent,
            score=lp.score,
            attempts=lp.attempts,
            started_at=lp.started_at,
            completed_at=lp.completed_at,
            last_accessed_at=lp.last_accessed_at,
        )


class CourseProgressOut(BaseModel):
    course_id: str
    status: str
    progress_percentage: int
    enrolled_at: int | None
    started_at: int | None
    completed_at: int | None
    lessons: list[LessonProgressOut]

    @classmethod
    def of(cls, cp: CourseProgress) -> CourseProgressOut:
        return cls(
            course_id=cp.course_id,
            status=cp.status,
            progress_percentage=cp.progress_percentage,
            enrolled_at=cp.enrolled_at,
            started_at=cp.started_at,
            completed_at=cp.completed_at,
            lessons=[LessonProgressOut.of(lp) for lp in cp.lessons],
        )


class StatisticsOut(BaseModel):
    total_lessons_completed: int
    total_time_spent: int
    current_streak: int
    longest_streak: int
    last_activity_date: datetime.date | None
    average_score: int

    @classmethod
    def of(cls, stats: LearnerStatistics) -> StatisticsOut:
        return cls(
            total_lessons_completed=stats.total_lessons_completed,
            total_time_spent=stats.total_time_spent,
            current_streak=stats.current_streak,
            longest_streak=stats.longest_streak,
            last_activity_date=stats.last_activity_date,
            average_score=stats.average_score,
        )


class EarnedAchievementOut(BaseModel):
    achievement_id: str
    type: str
    earned_at: int


class LearnerProgressOut(BaseModel):
    user_id: str
    courses: list[CourseProgressOut]
    stats: StatisticsOut
    achievements: list[EarnedAchievementOut]

    @classmethod
    def of(cls, progress: LearnerProgress) -> LearnerProgressOut:
        return cls(
            user_id=progress.user_id,
            courses=[CourseProgressOut.of(cp) for cp in progress.courses],
            stats=StatisticsOut.of(progress.stats),
            achievements=[
                EarnedAchievementOut(
                    achievement_id=a.achievement_id, type=a.type, earned_at=a.earned_at
                )
                for a in progress.achievements
            ],
        )


class StatsSummaryOut(StatisticsOut):
    enrolled_courses: int
    completed_courses: int
    certificates: int


# ---------------------------------------------------------------------------
# GET /v1/progress/me  -- read-through cached
# ---------------------------------------------------------------------------


@router.get("/me", response_model=LearnerProgressOut)
async def get_my_progress(
    principal: Annotated[Principal, Depends(require_permission("progress:read", "progress"))],
    service: Annotated[ProgressService, Depends(get_progress_service)],
) -> LearnerProgressOut:
    payload = await service.cached_view(
        principal.user_id,
        "summary",
        lambda progress: LearnerProgressOut.of(progress).model_dump_json(),
    )
    return LearnerProgressOut.model_validate_json(payload)


@router.get("/me/stats", response_model=StatsSummaryOut)
async def get_my_stats(
    principal: Annotated[Principal, Depends(require_permission("progress:read", "progress"))],
    service: Annotated[ProgressService, Depends(get_progress_service)],
    certificates: Annotated[CertificateService, Depends(get_certificate_service)],
) -> StatsSummaryOut:
    progress = await service.get_progress(principal.user_id)
    issued = await certificates.list_for_learner(principal.user_id)
    return StatsSummaryOut(
        **StatisticsOut.of(progress.stats).model_dump(),
        enrolled_courses=len(progress.courses),
        completed_courses=sum(1 for cp in progress.courses if cp.is_completed),
        certificates=sum(1 for c in issued if c.is_valid),
    )


@router.get("/{user_id}", response_model=LearnerProgressOut)
async def get_learner_progress(
    user_id: str,
    _principal: Annotated[
        Principal, Depends(require_learner_permission("progress:read", "progress"))
    ],
    service: Annotated[ProgressService, Depends(get_progress_service)],
) -> LearnerProgressOut:
    return LearnerProgressOut.of(await service.get_progress(user_id))
