"""SQLAlchemy table definitions.

These map to the frozen dataclass domain models in heritage360/models/.
Repos convert between rows and dataclasses; the domain never sees a row.

The learner aggregate is split across learner_progress (stats + version),
course_progress, lesson_progress and learner_achievements.  Only
learner_progress.version is compare-and-swapped; the child tables are
rewritten under that row's successful version bump.
"""

from __future__ import annotations

import datetime
import uuid

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    ForeignKeyConstraint,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from heritage360.db.engine import Base

# --- Catalog ---


class CourseRow(Base):
    __tablename__ = "courses"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False, default="history")
    difficulty: Mapped[str] = mapped_column(
        String(32), nullable=False, default="beginner"
    )  # beginner|intermediate|advanced
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="published"
    )  # draft|published|retired


class LessonRow(Base):
    __tablename__ = "lessons"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    course_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("courses.id"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    estimated_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # {"passing_score": int, "questions": [{question, options, correct_answer, explanation}]}
    quiz: Mapped[dict | None] = mapped_column(JSONB, nullable=True)


# --- Learner aggregate ---


class LearnerProgressRow(Base):
    __tablename__ = "learner_progress"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    total_lessons_completed: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    total_time_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_activity_date: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)
    average_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class CourseProgressRow(Base):
    __tablename__ = "course_progress"

    user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("learner_progress.user_id"), primary_key=True
    )
    course_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("courses.id"), primary_key=True, index=True
    )
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="not_started"
    )  # not_started|in_progress|completed
    progress_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    enrolled_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    started_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    completed_at: Mapped[int | None] = mapped_column(Integer, nullable=True)


class LessonProgressRow(Base):
    __tablename__ = "lesson_progress"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    course_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    lesson_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="not_started")
    time_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    started_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    completed_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_accessed_at: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        ForeignKeyConstraint(
            ["user_id", "course_id"],
            ["course_progress.user_id", "course_progress.course_id"],
            ondelete="CASCADE",
        ),
    )


class LearnerAchievementRow(Base):
    __tablename__ = "learner_achievements"

    user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("learner_progress.user_id"), primary_key=True
    )
    # PK on (user_id, achievement_id): at most one earned instance each.
    achievement_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    earned_at: Mapped[int] = mapped_column(Integer, nullable=False)


# --- Certificates ---


class CertificateRow(Base):
    __tablename__ = "certificates"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    certificate_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    verification_code: Mapped[str] = mapped_column(
        String(128), unique=True, nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    course_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("courses.id"), nullable=False
    )
    course_title: Mapped[str] = mapped_column(String(500), nullable=False)
    completion_date: Mapped[int] = mapped_column(Integer, nullable=False)
    final_score: Mapped[int] = mapped_column(Integer, nullable=False)
    time_spent: Mapped[int] = mapped_column(Integer, nullable=False)
    lessons_completed: Mapped[int] = mapped_column(Integer, nullable=False)
    total_lessons: Mapped[int] = mapped_column(Integer, nullable=False)
    issued_at: Mapped[int] = mapped_column(Integer, nullable=False)
    is_valid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    revoked_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    revoke_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (UniqueConstraint("user_id", "course_id"),)
