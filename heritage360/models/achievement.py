from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AchievementDefinition:
    """Static catalog entry for a badge a learner can earn once."""

    id: str
    type: str  # lesson_complete|streak|course_complete
    name: str
    description: str
    points: int = 0


@dataclass(frozen=True, slots=True)
class EarnedAchievement:
    """Earned instance; immutable once appended to a learner."""

    achievement_id: str
    type: str
    earned_at: int


ACHIEVEMENT_CATALOG: tuple[AchievementDefinition, ...] = (
    AchievementDefinition(
        id="first_lesson_complete",
        type="lesson_complete",
        name="Knowledge Seeker",
        description="Completed your first learning lesson",
        points=20,
    ),
    AchievementDefinition(
        id="week_streak",
        type="streak",
        name="Seven Day Scholar",
        description="Learned on seven consecutive days",
        points=50,
    ),
    AchievementDefinition(
        id="course_complete",
        type="course_complete",
        name="Heritage Graduate",
        description="Completed every lesson of a course",
        points=100,
    ),
)


def get_definition(achievement_id: str) -> AchievementDefinition | None:
    for definition in ACHIEVEMENT_CATALOG:
        if definition.id == achievement_id:
            return definition
    return None
