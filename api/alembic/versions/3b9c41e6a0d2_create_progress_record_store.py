"""create_progress_record_store

Revision ID: 3b9c41e6a0d2
Revises:
Create Date: 2026-10-17 09:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3b9c41e6a0d2"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("display_name", sa.String(length=120), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "practice_sessions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("client_session_id", sa.String(length=120), nullable=True),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Float(), nullable=False, server_default="0"),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("level_label", sa.String(length=40), nullable=True),
        sa.Column("stage_level", sa.Integer(), nullable=True),
        sa.Column("session_kind", sa.String(length=20), nullable=False, server_default="meditation"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "client_session_id", name="uq_user_client_session"),
    )
    op.create_index("ix_practice_sessions_user_id", "practice_sessions", ["user_id"], unique=False)
    op.create_index("ix_practice_sessions_recorded_at", "practice_sessions", ["recorded_at"], unique=False)

    op.create_table(
        "emotional_notes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("mood", sa.Float(), nullable=True),
        sa.Column("energy", sa.Float(), nullable=True),
        sa.Column("stress", sa.Float(), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
    )
    op.create_index("ix_emotional_notes_user_id", "emotional_notes", ["user_id"], unique=False)
    op.create_index("ix_emotional_notes_recorded_at", "emotional_notes", ["recorded_at"], unique=False)

    op.create_table(
        "questionnaires",
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("responses", sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "self_assessments",
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("per_category", sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("attachment_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("non_attachment_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "t_level_completions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "level", name="uq_user_t_level"),
    )
    op.create_index("ix_t_level_completions_user_id", "t_level_completions", ["user_id"], unique=False)

    op.create_table(
        "pahm_stage_progress",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("stage", sa.Integer(), nullable=False),
        sa.Column("hours", sa.Float(), nullable=False, server_default="0"),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "stage", name="uq_user_pahm_stage"),
    )
    op.create_index("ix_pahm_stage_progress_user_id", "pahm_stage_progress", ["user_id"], unique=False)

    op.create_table(
        "progress_snapshots",
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("happiness_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("user_level", sa.String(length=40), nullable=False),
        sa.Column("has_minimum_data", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("payload", sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("computed_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("progress_snapshots")
    op.drop_index("ix_pahm_stage_progress_user_id", table_name="pahm_stage_progress")
    op.drop_table("pahm_stage_progress")
    op.drop_index("ix_t_level_completions_user_id", table_name="t_level_completions")
    op.drop_table("t_level_completions")
    op.drop_table("self_assessments")
    op.drop_table("questionnaires")
    op.drop_index("ix_emotional_notes_recorded_at", table_name="emotional_notes")
    op.drop_index("ix_emotional_notes_user_id", table_name="emotional_notes")
    op.drop_table("emotional_notes")
    op.drop_index("ix_practice_sessions_recorded_at", table_name="practice_sessions")
    op.drop_index("ix_practice_sessions_user_id", table_name="practice_sessions")
    op.drop_table("practice_sessions")
    op.drop_table("users")
