"""Catalog and enrollment endpoints.

  Client -> POST /v1/courses/{course_id}/enroll
  -> seed course_progress (one not_started lesson record per catalog lesson)
  -> 201 Enrolled
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel

from heritage360.api.dependencies import (
    get_catalog,
    get_progress_service,
    require_permission,
    require_user,
)
from heritage360.api.progress import CourseProgressOut
from heritage360.models.course import Course
from heritage360.models.principal import Principal
from heritage360.repos.catalog_repo import CatalogRepo
from heritage360.services.progress_service import ProgressService

router = APIRouter(prefix="/v1/courses", tags=["courses"])

_can_write = require_permission("progress:write", "progress")


class LessonOut(BaseModel):
    id: str
    position: int
    title: str
    estimated_minutes: int


class CourseOut(BaseModel):
    id: str
    title: str
    category: str
    difficulty: str
    status: str
    total_lessons: int


class CourseDetailOut(CourseOut):
    lessons: list[LessonOut]


def _course_out(course: Course) -> CourseOut:
    return CourseOut(
        id=course.id,
        title=course.title,
        category=course.category,
        difficulty=course.difficulty,
        status=course.status,
        total_lessons=course.total_lessons,
    )


@router.get("", response_model=list[CourseOut])
async def list_courses(
    _principal: Annotated[Principal, Depends(require_user)],
    catalog: Annotated[CatalogRepo, Depends(get_catalog)],
) -> list[CourseOut]:
    return [_course_out(c) for c in await catalog.list_courses()]


@router.get("/{course_id}", response_model=CourseDetailOut)
async def get_course(
    course_id: str,
    _principal: Annotated[Principal, Depends(require_user)],
    catalog: Annotated[CatalogRepo, Depends(get_catalog)],
) -> CourseDetailOut:
    course = await catalog.get_course(course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="course not found")
    return CourseDetailOut(
        **_course_out(course).model_dump(),
        lessons=[
            LessonOut(
                id=lesson.id,
                position=lesson.position,
                title=lesson.title,
                estimated_minutes=lesson.estimated_minutes,
            )
            for lesson in course.lessons
        ],
    )


@router.post(
    "/{course_id}/enroll",
    response_model=CourseProgressOut,
    status_code=status.HTTP_201_CREATED,
)
async def enroll_in_course(
    course_id: str,
    principal: Annotated[Principal, Depends(_can_write)],
    service: Annotated[ProgressService, Depends(get_progress_service)],
) -> CourseProgressOut:
    return CourseProgressOut.of(await service.enroll(principal.user_id, course_id))


@router.delete("/{course_id}/enroll", status_code=status.HTTP_204_NO_CONTENT)
async def unenroll_from_course(
    course_id: str,
    principal: Annotated[Principal, Depends(_can_write)],
    service: Annotated[ProgressService, Depends(get_progress_service)],
) -> Response:
    await service.unenroll(principal.user_id, course_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
