from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from heritage360.api.dependencies import (
    get_progress_service,
    require_permission,
    require_user,
)
from heritage360.models.achievement import ACHIEVEMENT_CATALOG, get_definition
from heritage360.models.principal import Principal
from heritage360.services.progress_service import ProgressService

router = APIRouter(prefix="/v1/achievements", tags=["achievements"])


class AchievementOut(BaseModel):
    id: str
    type: str
    name: str
    description: str
    points: int


class MyAchievementOut(BaseModel):
    achievement_id: str
    type: str
    name: str
    points: int
    earned_at: int


@router.get("", response_model=list[AchievementOut])
async def list_achievements(
    _principal: Annotated[Principal, Depends(require_user)],
) -> list[AchievementOut]:
    return [
        AchievementOut(
            id=d.id,
            type=d.type,
            name=d.name,
            description=d.description,
            points=d.points,
        )
        for d in ACHIEVEMENT_CATALOG
    ]


@router.get("/me", response_model=list[MyAchievementOut])
async def list_my_achievements(
    principal: Annotated[Principal, Depends(require_permission("progress:read", "progress"))],
    service: Annotated[ProgressService, Depends(get_progress_service)],
) -> list[MyAchievementOut]:
    progress = await service.get_progress(principal.user_id)
    out = []
    for earned in progress.achievements:
        definition = get_definition(earned.achievement_id)
        out.append(
            MyAchievementOut(
                achievement_id=earned.achievement_id,
                type=earned.type,
                name=definition.name if definition else earned.achievement_id,
                points=definition.points if definition else 0,
                earned_at=earned.earned_at,
            )
        )
    return out
