from __future__ import annotations

from dataclasses import dataclass

from .access_control import current_accessible_stage
from .stage_progress import (
    FINAL_STAGE,
    HOURS_PER_T_SESSION,
    PAHM_STAGE_NAMES,
    PAHM_STAGES,
    STAGE_TITLES,
    T_LEVELS,
    StageProgress,
)


@dataclass(frozen=True)
class ProgressSummary:
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


def _percent(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return int((part * 100 + whole // 2) // whole)


def build_progress_summary(progress: StageProgress) -> ProgressSummary:
    t_levels = [progress.t_levels[level] for level in T_LEVELS]
    pahm_stages = [progress.pahm_stages[stage] for stage in PAHM_STAGES]

    completed_t = sum(1 for t in t_levels if t.completed)
    total_sessions = sum(t.session_count for t in t_levels)
    rated_sessions = sum(t.completed_session_count for t in t_levels)
    completed_pahm = sum(1 for s in pahm_stages if s.completed)
    pahm_hours = round(sum(s.accumulated_hours for s in pahm_stages), 2)

    current = current_accessible_stage(progress)
    if not progress.all_t_levels_completed:
        milestone = "Complete Stage 1 (All T-stages)"
    elif current < FINAL_STAGE:
        milestone = f"Unlock {PAHM_STAGE_NAMES[current + 1]}"
    else:
        milestone = "Mastery Achieved"

    return ProgressSummary(
        completed_t_levels=completed_t,
        total_t_levels=len(T_LEVELS),
        total_t_sessions=total_sessions,
        rated_t_sessions=rated_sessions,
        stage_one_percent=_percent(completed_t, len(T_LEVELS)),
        stage_one_complete=progress.all_t_levels_completed,
        completed_pahm_stages=completed_pahm,
        total_pahm_stages=len(PAHM_STAGES),
        total_pahm_hours=pahm_hours,
        pahm_percent=_percent(completed_pahm, len(PAHM_STAGES)),
        current_stage=current,
        current_level=STAGE_TITLES[current],
        total_practice_hours=round(rated_sessions * HOURS_PER_T_SESSION + pahm_hours, 2),
        ready_for_next_stage=current < FINAL_STAGE,
        next_milestone=milestone,
    )
