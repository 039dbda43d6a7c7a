"""Achievement trigger evaluation.

A stateless rule list run after every statistics update.  Each rule is a
predicate over the freshly updated statistics and course projection;
when it holds and the learner has not earned that achievement yet, an
EarnedAchievement is emitted.

The streak rule matches current_streak == 7 exactly.  It fires on the day
the threshold is crossed, not on every later day of the same streak and
not at 14, 21, ...  Same-day completions that leave the streak at 7 are
absorbed by the already-earned check.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from heritage360.models.achievement import EarnedAchievement, get_definition
from heritage360.models.progress import CourseProgress, LearnerStatistics

WEEK_STREAK_DAYS = 7


@dataclass(frozen=True, slots=True)
class AchievementRule:
    achievement_id: str
    predicate: Callable[[LearnerStatistics, CourseProgress], bool]


RULES: tuple[AchievementRule, ...] = (
    AchievementRule(
        "first_lesson_complete",
        lambda stats, _course: stats.total_lessons_completed == 1,
    ),
    AchievementRule(
        "week_streak",
        lambda stats, _course: stats.current_streak == WEEK_STREAK_DAYS,
    ),
    AchievementRule(
        "course_complete",
        lambda _stats, course: course.is_completed,
    ),
)


def evaluate(
    stats: LearnerStatistics,
    course_progress: CourseProgress,
    earned: Iterable[EarnedAchievement],
    *,
    now: int,
    rules: tuple[AchievementRule, ...] = RULES,
) -> list[EarnedAchievement]:
    """Return achievements unlocked by this update, oldest rule first."""
    already = {a.achievement_id for a in earned}
    unlocked: list[EarnedAchievement] = []

    for rule in rules:
        if rule.achievement_id in already:
            continue
        if not rule.predicate(stats, course_progress):
            continue
        definition = get_definition(rule.achievement_id)
        if definition is None:
            raise KeyError(f"achievement {rule.achievement_id!r} is not in the catalog")
        unlocked.append(
            EarnedAchievement(
                achievement_id=definition.id,
                type=definition.type,
                earned_at=now,
            )
        )
        already.add(rule.achievement_id)

    return unlocked
