"""create learning schema

Revision ID: 3b9e1c7d2a40
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b9e1c7d2a40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "courses",
        sa.Column("id", sa.String(length=128), primary_key=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("category", sa.String(length=64), nullable=False),
        sa.Column("difficulty", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
    )
    op.create_table(
        "lessons",
        sa.Column("id", sa.String(length=128), primary_key=True),
        sa.Column(
            "course_id",
            sa.String(length=128),
            sa.ForeignKey("courses.id"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("estimated_minutes", sa.Integer(), nullable=False),
    )
    op.create_index("ix_lessons_course_id", "lessons", ["course_id"])

    op.create_table(
        "learner_progress",
        sa.Column("user_id", sa.String(length=128), primary_key=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("total_lessons_completed", sa.Integer(), nullable=False),
        sa.Column("total_time_spent", sa.Integer(), nullable=False),
        sa.Column("current_streak", sa.Integer(), nullable=False),
        sa.Column("longest_streak", sa.Integer(), nullable=False),
        sa.Column("last_activity_date", sa.Date(), nullable=True),
        sa.Column("average_score", sa.Integer(), nullable=False),
    )
    op.create_table(
        "course_progress",
        sa.Column(
            "user_id",
            sa.String(length=128),
            sa.ForeignKey("learner_progress.user_id"),
            primary_key=True,
        ),
        sa.Column(
            "course_id",
            sa.String(length=128),
            sa.ForeignKey("courses.id"),
            primary_key=True,
        ),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("progress_percentage", sa.Integer(), nullable=False),
        sa.Column("enrolled_at", sa.Integer(), nullable=True),
        sa.Column("started_at", sa.Integer(), nullable=True),
        sa.Column("completed_at", sa.Integer(), nullable=True),
    )
    op.create_index("ix_course_progress_course_id", "course_progress", ["course_id"])

    op.create_table(
        "lesson_progress",
        sa.Column("user_id", sa.String(length=128), primary_key=True),
        sa.Column("course_id", sa.String(length=128), primary_key=True),
        sa.Column("lesson_id", sa.String(length=128), primary_key=True),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("time_spent", sa.Integer(), nullable=False),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.Integer(), nullable=True),
        sa.Column("completed_at", sa.Integer(), nullable=True),
        sa.Column("last_accessed_at", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(
            ["user_id", "course_id"],
            ["course_progress.user_id", "course_progress.course_id"],
            ondelete="CASCADE",
        ),
    )
    op.create_table(
        "learner_achievements",
        sa.Column(
            "user_id",
            sa.String(length=128),
            sa.ForeignKey("learner_progress.user_id"),
            primary_key=True,
        ),
        sa.Column("achievement_id", sa.String(length=64), primary_key=True),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("earned_at", sa.Integer(), nullable=False),
    )

    op.create_table(
        "certificates",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("certificate_id", sa.String(length=64), nullable=False, unique=True),
        sa.Column(
            "verification_code", sa.String(length=128), nullable=False, unique=True
        ),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column(
            "course_id",
            sa.String(length=128),
            sa.ForeignKey("courses.id"),
            nullable=False,
        ),
        sa.Column("course_title", sa.String(length=500), nullable=False),
        sa.Column("completion_date", sa.Integer(), nullable=False),
        sa.Column("final_score", sa.Integer(), nullable=False),
        sa.Column("time_spent", sa.Integer(), nullable=False),
        sa.Column("lessons_completed", sa.Integer(), nullable=False),
        sa.Column("total_lessons", sa.Integer(), nullable=False),
        sa.Column("issued_at", sa.Integer(), nullable=False),
        sa.Column("is_valid", sa.Boolean(), nullable=False),
        sa.Column("revoked_at", sa.Integer(), nullable=True),
        sa.Column("revoke_reason", sa.Text(), nullable=True),
        sa.UniqueConstraint("user_id", "course_id"),
    )
    op.create_index("ix_certificates_user_id", "certificates", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_certificates_user_id", table_name="certificates")
    op.drop_table("certificates")
    op.drop_table("learner_achievements")
    op.drop_table("lesson_progress")
    op.drop_index("ix_course_progress_course_id", table_name="course_progress")
    op.drop_table("course_progress")
    op.drop_table("learner_progress")
    op.drop_index("ix_lessons_course_id", table_name="lessons")
    op.drop_table("lessons")
    op.drop_table("courses")
