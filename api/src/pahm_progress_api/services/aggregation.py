from __future__ import annotations

import logging
from dataclasses import asdict, dataclass

from .components import clamp_score, round_half_up

logger = logging.getLogger(__name__)

NEW_USER = "New User"


@dataclass(frozen=True)
class ComponentBreakdown:
    pahm_development: int = 0
    emotional_stability_progress: int = 0
    current_mood_state: int = 0
    mind_recovery_effectiveness: int = 0
    emotional_regulation: int = 0
    attachment_flexibility: int = 0
    social_connection: int = 0
    practice_consistency: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


COMPONENT_WEIGHTS: dict[str, float] = {
    "pahm_development": 0.30,
    "emotional_stability_progress": 0.20,
    "current_mood_state": 0.15,
    "mind_recovery_effectiveness": 0.12,
    "emotional_regulation": 0.10,
    "attachment_flexibility": 0.08,
    "social_connection": 0.03,
    "practice_consistency": 0.02,
}

# Highest threshold first; the first match wins.
LEVEL_THRESHOLDS: list[tuple[int, str]] = [
    (80, "Master Practitioner"),
    (65, "Advanced Practitioner"),
    (45, "Developing Practitioner"),
    (25, "Emerging Practitioner"),
    (10, "Beginner"),
]


@dataclass(frozen=True)
class AggregateScore:
    composite: int
    user_level: str
    focus_ability: int
    habit_change_score: int


def composite_score(breakdown: ComponentBreakdown) -> int:
    scores = breakdown.as_dict()
    # Weighted sum in hundredths so .5 boundaries round the same on every platform.
    total = sum(int(round(weight * 100)) * scores[name] for name, weight in COMPONENT_WEIGHTS.items())
    return clamp_score((total + 50) // 100)


def classify_level(score: int) -> str:
    for threshold, label in LEVEL_THRESHOLDS:
        if score >= threshold:
            return label
    return NEW_USER


def aggregate(breakdown: ComponentBreakdown) -> AggregateScore:
    composite = composite_score(breakdown)
    level = classify_level(composite)
    focus_ability = min(100, round_half_up(breakdown.pahm_development + 0.5 * breakdown.emotional_regulation))
    habit_change = min(100, round_half_up(breakdown.pahm_development + 0.8 * breakdown.practice_consistency))
    logger.debug("Composite score %s (%s) from %s", composite, level, breakdown.as_dict())
    return AggregateScore(
        composite=composite,
        user_level=level,
        focus_ability=focus_ability,
        habit_change_score=habit_change,
    )
