from __future__ import annotations

import datetime as dt
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    display_name: Mapped[str] = mapped_column(String(120), nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class PracticeSessionRecord(Base):
    __tablename__ = "practice_sessions"
    __table_args__ = (
        UniqueConstraint("user_id", "client_session_id", name="uq_user_client_session"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    client_session_id: Mapped[str | None] = mapped_column(String(120), nullable=True)
    recorded_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    duration_minutes: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    level_label: Mapped[str | None] = mapped_column(String(40), nullable=True)
    stage_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    session_kind: Mapped[str] = mapped_column(String(20), default="meditation", nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class EmotionalNoteRecord(Base):
    __tablename__ = "emotional_notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    recorded_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    mood: Mapped[float | None] = mapped_column(Float, nullable=True)
    energy: Mapped[float | None] = mapped_column(Float, nullable=True)
    stress: Mapped[float | None] = mapped_column(Float, nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)


class QuestionnaireRecord(Base):
    __tablename__ = "questionnaires"

    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), primary_key=True)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    responses: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class SelfAssessmentRecord(Base):
    __tablename__ = "self_assessments"

    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), primary_key=True)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    per_category: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    attachment_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    non_attachment_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class TLevelCompletion(Base):
    __tablename__ = "t_level_completions"
    __table_args__ = (
        UniqueConstraint("user_id", "level", name="uq_user_t_level"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    completed_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class PAHMStageRecord(Base):
    __tablename__ = "pahm_stage_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "stage", name="uq_user_pahm_stage"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    stage: Mapped[int] = mapped_column(Integer, nullable=False)
    hours: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class ProgressSnapshot(Base):
    __tablename__ = "progress_snapshots"

    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), primary_key=True)
    happiness_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    user_level: Mapped[str] = mapped_column(String(40), nullable=False)
    has_minimum_data: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    computed_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
