from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from heritage360.api.dependencies import get_progress_service, require_permission
from heritage360.models.principal import Principal
from heritage360.services.progress_service import ProgressService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/admin", tags=["admin"])


class CourseAnalyticsOut(BaseModel):
    course_id: str
    enrolled: int
    in_progress: int
    completed: int
    average_percentage: int
    completion_rate: int


@router.get("/courses/{course_id}/analytics", response_model=CourseAnalyticsOut)
async def course_analytics(
    course_id: str,
    principal: Annotated[Principal, Depends(require_permission("analytics:read", "analytics"))],
    service: Annotated[ProgressService, Depends(get_progress_service)],
) -> CourseAnalyticsOut:
    analytics = await service.course_analytics(course_id)
    logger.info("Course analytics viewed course=%s by=%s", course_id, principal.user_id)
    return CourseAnalyticsOut(
        course_id=analytics.course_id,
        enrolled=analytics.enrolled,
        in_progress=analytics.in_progress,
        completed=analytics.completed,
        average_percentage=analytics.average_percentage,
        completion_rate=analytics.completion_rate,
    )
