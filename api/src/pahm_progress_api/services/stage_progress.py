from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from .records import PracticeSession

T_LEVELS: tuple[int, ...] = (1, 2, 3, 4, 5)
PAHM_STAGES: tuple[int, ...] = (2, 3, 4, 5, 6)
BASELINE_STAGE = 1
FINAL_STAGE = 6
REQUIRED_RATED_SESSIONS = 3
PAHM_REQUIRED_HOURS = 15.0
HOURS_PER_T_SESSION = 0.25

PAHM_STAGE_NAMES: dict[int, str] = {
    2: "PAHM Trainee",
    3: "PAHM Beginner",
    4: "PAHM Practitioner",
    5: "PAHM Master",
    6: "PAHM Illuminator",
}
STAGE_TITLES: dict[int, str] = {BASELINE_STAGE: "Seeker", **PAHM_STAGE_NAMES}

_T_LEVEL_RE = re.compile(r"^(?:t|stage)?\s*(\d+)$", re.IGNORECASE)


class UnknownLevelError(ValueError):
    pass


def parse_t_level(level: str | int) -> int:
    """Accepts 1, "1", "t1", "T1" or "stage1"."""
    if isinstance(level, bool):
        raise UnknownLevelError(f"Unsupported T-level: {level!r}")
    if isinstance(level, int):
        number = level
    else:
        match = _T_LEVEL_RE.match(str(level).strip())
        if match is None:
            raise UnknownLevelError(f"Unsupported T-level: {level!r}")
        number = int(match.group(1))
    if number not in T_LEVELS:
        raise UnknownLevelError(f"Unsupported T-level: {level!r}")
    return number


def parse_pahm_stage(stage: int | str) -> int:
    try:
        number = int(stage)
    except (TypeError, ValueError):
        raise UnknownLevelError(f"Unsupported PAHM stage: {stage!r}") from None
    if number != BASELINE_STAGE and number not in PAHM_STAGES:
        raise UnknownLevelError(f"Unsupported PAHM stage: {stage!r}")
    return number


def t_level_label(level: int) -> str:
    return f"T{level}"


@dataclass(frozen=True)
class PAHMStageState:
    hours: float = 0.0
    completed: bool = False


@dataclass(frozen=True)
class ProgressState:
    """Externally persisted completion flags and PAHM hours."""

    t_level_flags: Mapping[int, bool] = field(default_factory=dict)
    pahm_stages: Mapping[int, PAHMStageState] = field(default_factory=dict)

    def t_level_flag(self, level: int) -> bool:
        return bool(self.t_level_flags.get(level, False))

    def pahm_stage(self, stage: int) -> PAHMStageState:
        return self.pahm_stages.get(stage) or PAHMStageState()


@dataclass(frozen=True)
class TLevelProgress:
    level: int
    completed: bool
    session_count: int
    completed_session_count: int

    @property
    def label(self) -> str:
        return t_level_label(self.level)


@dataclass(frozen=True)
class PAHMStageProgress:
    stage: int
    display_name: str
    accumulated_hours: float
    completed: bool
    required_hours: float = PAHM_REQUIRED_HOURS


@dataclass(frozen=True)
class StageProgress:
    t_levels: dict[int, TLevelProgress]
    pahm_stages: dict[int, PAHMStageProgress]

    @property
    def all_t_levels_completed(self) -> bool:
        return all(self.t_levels[level].completed for level in T_LEVELS)


def session_matches_t_level(session: PracticeSession, level: int) -> bool:
    if session.session_kind != "meditation":
        return False
    if session.level_label:
        match = _T_LEVEL_RE.match(session.level_label.strip())
        return match is not None and int(match.group(1)) == level
    return session.stage_level == level


def track_t_levels(sessions: Iterable[PracticeSession], state: ProgressState) -> dict[int, TLevelProgress]:
    sessions = list(sessions)
    progress: dict[int, TLevelProgress] = {}
    for level in T_LEVELS:
        level_sessions = [s for s in sessions if session_matches_t_level(s, level)]
        rated = sum(1 for s in level_sessions if s.is_rated)
        progress[level] = TLevelProgress(
            level=level,
            completed=state.t_level_flag(level) or rated >= REQUIRED_RATED_SESSIONS,
            session_count=len(level_sessions),
            completed_session_count=rated,
        )
    return progress


def track_pahm_stages(state: ProgressState) -> dict[int, PAHMStageProgress]:
    # Hours come from the store as recorded; session durations are not converted here.
    progress: dict[int, PAHMStageProgress] = {}
    for stage in PAHM_STAGES:
        stored = state.pahm_stage(stage)
        progress[stage] = PAHMStageProgress(
            stage=stage,
            display_name=PAHM_STAGE_NAMES[stage],
            accumulated_hours=max(0.0, float(stored.hours)),
            completed=stored.completed,
        )
    return progress


def track_progress(sessions: Iterable[PracticeSession], state: ProgressState) -> StageProgress:
    return StageProgress(
        t_levels=track_t_levels(sessions, state),
        pahm_stages=track_pahm_stages(state),
    )
