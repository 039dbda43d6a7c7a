from __future__ import annotations

import datetime

import pytest

from heritage360.models.achievement import EarnedAchievement, get_definition
from heritage360.models.course import Course
from heritage360.models.progress import (
    COMPLETED,
    CourseProgress,
    LearnerProgress,
    LearnerStatistics,
)
from heritage360.services import achievements
from heritage360.services import progress_tracker as pt
from heritage360.services.achievements import AchievementRule

NOW = 1_772_000_000

IN_PROGRESS_COURSE = CourseProgress(course_id="c1", status="in_progress")
DONE_COURSE = CourseProgress(course_id="c1", status=COMPLETED)


def _ids(earned: list[EarnedAchievement]) -> list[str]:
    return [a.achievement_id for a in earned]


def test_first_lesson_fires_on_first_completion() -> None:
    stats = LearnerStatistics(total_lessons_completed=1, current_streak=1)
    earned = achievements.evaluate(stats, IN_PROGRESS_COURSE, [], now=NOW)
    assert _ids(earned) == ["first_lesson_complete"]
    assert earned[0].type == "lesson_complete"
    assert earned[0].earned_at == NOW


def test_first_lesson_does_not_fire_later() -> None:
    stats = LearnerStatistics(total_lessons_completed=2, current_streak=1)
    assert achievements.evaluate(stats, IN_PROGRESS_COURSE, [], now=NOW) == []


@pytest.mark.parametrize(("streak", "fires"), [(6, False), (7, True), (8, False), (14, False)])
def test_week_streak_matches_seven_exactly(streak: int, fires: bool) -> None:
    stats = LearnerStatistics(total_lessons_completed=20, current_streak=streak)
    earned = achievements.evaluate(stats, IN_PROGRESS_COURSE, [], now=NOW)
    assert ("week_streak" in _ids(earned)) is fires


def test_course_complete_fires_when_course_completed() -> None:
    stats = LearnerStatistics(total_lessons_completed=4, current_streak=1)
    earned = achievements.evaluate(stats, DONE_COURSE, [], now=NOW)
    assert _ids(earned) == ["course_complete"]


def test_already_earned_is_skipped() -> None:
    stats = LearnerStatistics(total_lessons_completed=1, current_streak=7)
    already = [EarnedAchievement("first_lesson_complete", "lesson_complete", NOW - 10)]
    earned = achievements.evaluate(stats, DONE_COURSE, already, now=NOW)
    assert _ids(earned) == ["week_streak", "course_complete"]


def test_rule_for_unknown_achievement_raises() -> None:
    rules = (AchievementRule("mystery", lambda _s, _c: True),)
    with pytest.raises(KeyError):
        achievements.evaluate(LearnerStatistics(), DONE_COURSE, [], now=NOW, rules=rules)


def test_catalog_covers_every_rule() -> None:
    for rule in achievements.RULES:
        assert get_definition(rule.achievement_id) is not None


def test_week_streak_unlocks_once_through_lesson_completions() -> None:
    course = Course.new(
        id="week", title="Week", lesson_titles=[f"day {i}" for i in range(1, 10)]
    )
    progress = pt.enroll(LearnerProgress(user_id="u1"), course, NOW)
    start = datetime.datetime(2026, 3, 1, 12, tzinfo=datetime.UTC)
    for offset, lesson in enumerate(course.lessons):
        day = int((start + datetime.timedelta(days=offset)).timestamp())
        progress = pt.complete_lesson(progress, course, lesson.id, now=day).progress

    ids = [a.achievement_id for a in progress.achievements]
    assert progress.stats.current_streak == 9
    assert ids.count("week_streak") == 1
    assert ids.count("first_lesson_complete") == 1
    assert ids.count("course_complete") == 1


def test_completing_same_course_again_does_not_duplicate_badge() -> None:
    course = Course.new(id="one", title="One", lesson_titles=["only"])
    progress = LearnerProgress(user_id="u1")
    lesson_id = course.lessons[0].id
    progress = pt.complete_lesson(progress, course, lesson_id, now=NOW).progress
    again = pt.complete_lesson(progress, course, lesson_id, now=NOW + 60)
    assert again.new_achievements == ()
    ids = [a.achievement_id for a in again.progress.achievements]
    assert sorted(ids) == ["course_complete", "first_lesson_complete"]
