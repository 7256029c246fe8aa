from __future__ import annotations

import datetime as dt
from typing import Any, Literal

from pydantic import BaseModel, Field


class APIModel(BaseModel):
    model_config = {"from_attributes": True}


AttachmentLevelIn = Literal["none", "some", "strong"]


class UserCreate(BaseModel):
    display_name: str = Field(min_length=1, max_length=120)


class UserOut(APIModel):
    id: str
    display_name: str
    created_at: dt.datetime


class PracticeSessionIn(BaseModel):
    client_session_id: str | None = Field(default=None, max_length=120)
    timestamp: dt.datetime | None = None
    duration_minutes: float = Field(default=0.0, ge=0, le=1440)
    rating: int | None = Field(default=None, ge=1, le=5)
    level_label: str | None = Field(default=None, max_length=40)
    stage_level: int | None = Field(default=None, ge=1, le=6)
    session_kind: Literal["meditation", "mind_recovery"] = "meditation"


class PracticeSessionOut(APIModel):
    id: int
    user_id: str
    client_session_id: str | None
    recorded_at: dt.datetime
    duration_minutes: float
    rating: int | None
    level_label: str | None
    stage_level: int | None
    session_kind: str
    idempotency_hit: bool = False


class EmotionalNoteIn(BaseModel):
    timestamp: dt.datetime | None = None
    mood: float | None = Field(default=None, ge=1, le=10)
    energy: float | None = Field(default=None, ge=1, le=10)
    stress: float | None = Field(default=None, ge=1, le=10)
    content: str | None = Field(default=None, max_length=4000)


class EmotionalNoteOut(APIModel):
    id: int
    user_id: str
    recorded_at: dt.datetime
    mood: float | None
    energy: float | None
    stress: float | None
    content: str | None


class QuestionnaireIn(BaseModel):
    completed: bool = True
    responses: dict[str, Any] = Field(default_factory=dict)


class QuestionnaireOut(APIModel):
    user_id: str
    completed: bool
    responses: dict[str, Any]
    updated_at: dt.datetime


class SelfAssessmentIn(BaseModel):
    completed: bool = True
    categories: dict[Literal["taste", "smell", "sound", "sight", "touch", "mind"], AttachmentLevelIn] = Field(
        default_factory=dict
    )


class SelfAssessmentOut(APIModel):
    user_id: str
    completed: bool
    per_category: dict[str, str]
    attachment_score: int
    non_attachment_count: int
    updated_at: dt.datetime


class PAHMStageUpdate(BaseModel):
    hours: float = Field(ge=0)
    completed: bool | None = None


class DataCompletenessOut(APIModel):
    questionnaire: bool
    self_assessment: bool
    practice_sessions: bool
    sufficient: bool


class ComponentBreakdownOut(APIModel):
    pahm_development: int
    emotional_stability_progress: int
    current_mood_state: int
    mind_recovery_effectiveness: int
    emotional_regulation: int
    attachment_flexibility: int
    social_connection: int
    practice_consistency: int


class PAHMBreakdownOut(APIModel):
    present_neutral_mastery: int
    present_moment_development: int
    therapeutic_progress: int
    session_quality: int


class PAHMAnalysisOut(APIModel):
    overall_score: float
    development_stage: str
    stage_description: str
    progression_path: str
    present_moment_ratio: float
    present_neutral_ratio: float
    insights: list[str]
    recommendations: list[str]
    breakdown: PAHMBreakdownOut
    session_based: bool


class UserProgressOut(APIModel):
    happiness_points: int
    user_level: str
    focus_ability: int
    habit_change_score: int
    practice_streak: int
    has_minimum_data: bool
    data_completeness: DataCompletenessOut
    breakdown: ComponentBreakdownOut
    pahm_analysis: PAHMAnalysisOut | None = None


class StreakOut(BaseModel):
    user_id: str
    practice_streak: int


class TLevelProgressOut(APIModel):
    level: int
    label: str
    completed: bool
    session_count: int
    completed_session_count: int


class PAHMStageProgressOut(APIModel):
    stage: int
    display_name: str
    accumulated_hours: float
    completed: bool
    required_hours: float


class StageProgressOut(BaseModel):
    user_id: str
    all_t_levels_completed: bool
    t_levels: list[TLevelProgressOut]
    pahm_stages: list[PAHMStageProgressOut]


class AccessDecisionOut(APIModel):
    allowed: bool
    requirement_message: str | None = None
    missing_kind: Literal["progression", "sessions"] | None = None


class CurrentStageOut(BaseModel):
    user_id: str
    current_stage: int
    next_stage: int | None


class ProgressSummaryOut(APIModel):
    completed_t_levels: int
    total_t_levels: int
    total_t_sessions: int
    rated_t_sessions: int
    stage_one_percent: int
    stage_one_complete: bool
    completed_pahm_stages: int
    total_pahm_stages: int
    total_pahm_hours: float
    pahm_percent: int
    current_stage: int
    current_level: str
    total_practice_hours: float
    ready_for_next_stage: bool
    next_milestone: str


class SnapshotOut(APIModel):
    user_id: str
    happiness_points: int
    user_level: str
    has_minimum_data: bool
    payload: dict[str, Any]
    computed_at: dt.datetime


class HealthOut(BaseModel):
    ok: bool
    service: str
