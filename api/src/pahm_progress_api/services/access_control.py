from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from .stage_progress import (
    BASELINE_STAGE,
    FINAL_STAGE,
    PAHM_STAGES,
    REQUIRED_RATED_SESSIONS,
    StageProgress,
    parse_pahm_stage,
    parse_t_level,
    t_level_label,
)

logger = logging.getLogger(__name__)

MissingKind = Literal["progression", "sessions"]


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    requirement_message: str | None = None
    missing_kind: MissingKind | None = None


ALLOWED = AccessDecision(allowed=True)


def check_t_level_access(level: str | int, progress: StageProgress) -> AccessDecision:
    number = parse_t_level(level)
    if number == 1:
        return ALLOWED

    previous = progress.t_levels[number - 1]
    if previous.completed:
        return ALLOWED

    message = (
        f"Complete at least {REQUIRED_RATED_SESSIONS} {previous.label} sessions before accessing "
        f"{t_level_label(number)} (current {previous.completed_session_count}/{REQUIRED_RATED_SESSIONS})"
    )
    logger.info("T-level access denied for %s: %s", t_level_label(number), message)
    return AccessDecision(allowed=False, requirement_message=message, missing_kind="sessions")


def check_pahm_stage_access(stage: int | str, progress: StageProgress) -> AccessDecision:
    number = parse_pahm_stage(stage)
    if number == BASELINE_STAGE:
        return ALLOWED

    if not progress.all_t_levels_completed:
        message = "Complete all T-stages (T1-T5) before accessing PAHM stages"
        logger.info("PAHM stage %s access denied: %s", number, message)
        return AccessDecision(allowed=False, requirement_message=message, missing_kind="progression")

    if number >= 3:
        previous = progress.pahm_stages[number - 1]
        if not previous.completed:
            message = (
                f"Complete Stage {number - 1} ({previous.display_name}) with "
                f"{previous.required_hours:g} hours of practice before accessing Stage {number}"
            )
            logger.info("PAHM stage %s access denied: %s", number, message)
            return AccessDecision(allowed=False, requirement_message=message, missing_kind="progression")

    return ALLOWED


def current_accessible_stage(progress: StageProgress) -> int:
    if not progress.all_t_levels_completed:
        return BASELINE_STAGE
    for stage in PAHM_STAGES:
        if not check_pahm_stage_access(stage, progress).allowed:
            return stage - 1
        if not progress.pahm_stages[stage].completed:
            return stage
    return FINAL_STAGE


def next_accessible_stage(progress: StageProgress) -> int | None:
    current = current_accessible_stage(progress)
    return current + 1 if current < FINAL_STAGE else None
