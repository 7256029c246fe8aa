from __future__ import annotations

from dataclasses import dataclass, field
from statistics import mean
from typing import Sequence

from .components import round_half_up
from .records import PracticeSession, QuestionnaireResponses

PRESENT_NEUTRAL_MASTERY_MAX = 50
PRESENT_MOMENT_DEVELOPMENT_MAX = 30
THERAPEUTIC_PROGRESS_MAX = 15
SESSION_QUALITY_MAX = 5
LONG_PRACTICE_MINUTES = 300


@dataclass(frozen=True)
class PAHMBreakdown:
    present_neutral_mastery: int = 0
    present_moment_development: int = 0
    therapeutic_progress: int = 0
    session_quality: int = 0


@dataclass(frozen=True)
class PAHMStageBand:
    threshold: float
    name: str
    description: str
    progression_path: str


STAGE_BANDS: list[PAHMStageBand] = [
    PAHMStageBand(
        threshold=80,
        name="Present-Neutral Mastery",
        description="Consistent present-moment awareness with neutral observation",
        progression_path="Deepen equanimity and effortless presence",
    ),
    PAHMStageBand(
        threshold=60,
        name="Developing Present Attention",
        description="Regular moments of present awareness with growing stability",
        progression_path="Strengthen neutral observation and reduce reactivity",
    ),
    PAHMStageBand(
        threshold=40,
        name="Return of Attention",
        description="Beginning to notice mind wandering and returning attention",
        progression_path="Build consistency and extend present moments",
    ),
    PAHMStageBand(
        threshold=20,
        name="Initial Awareness",
        description="Starting to recognize patterns of mental activity",
        progression_path="Develop mindful observation skills",
    ),
    PAHMStageBand(
        threshold=float("-inf"),
        name="Scattered Mind",
        description="Mind scattered across time and emotions without awareness",
        progression_path="Start the Return of Attention journey",
    ),
]

BASELINE_BANDS: list[PAHMStageBand] = [
    PAHMStageBand(
        threshold=30,
        name="Initial Awareness",
        description="Starting to recognize patterns of mental activity based on stated experience",
        progression_path="Begin logging practice sessions to develop skills",
    ),
    PAHMStageBand(
        threshold=20,
        name="Scattered Mind with Experience",
        description="Mind scattered but with meditation background and skills",
        progression_path="Start consistent practice to build on existing foundation",
    ),
    PAHMStageBand(
        threshold=float("-inf"),
        name="Scattered Mind",
        description="Mind scattered across time and emotions without awareness",
        progression_path="Start the Return of Attention journey",
    ),
]


@dataclass(frozen=True)
class PAHMAnalysis:
    overall_score: float
    development_stage: str
    stage_description: str
    progression_path: str
    present_moment_ratio: float
    present_neutral_ratio: float
    insights: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()
    breakdown: PAHMBreakdown = field(default_factory=PAHMBreakdown)
    session_based: bool = False


def _band_for(score: float, bands: list[PAHMStageBand]) -> PAHMStageBand:
    for band in bands:
        if score >= band.threshold:
            return band
    return bands[-1]


def questionnaire_baseline(responses: QuestionnaireResponses | None) -> int:
    """Starting score from stated experience, used before any session is logged."""
    if responses is None:
        return 15

    experience = responses.experience_level
    if experience is not None and experience >= 8:
        baseline = 25
    elif experience is not None and experience >= 6:
        baseline = 20
    elif experience is not None and experience >= 4:
        baseline = 18
    else:
        baseline = 15

    mindfulness = responses.mindfulness_experience
    if mindfulness is not None and mindfulness >= 9:
        baseline += 5
    elif mindfulness is not None and mindfulness >= 7:
        baseline += 3
    return baseline


def _baseline_analysis(responses: QuestionnaireResponses | None) -> PAHMAnalysis:
    baseline = questionnaire_baseline(responses)
    band = _band_for(baseline, BASELINE_BANDS)
    expert = baseline >= 25
    return PAHMAnalysis(
        overall_score=float(baseline),
        development_stage=band.name,
        stage_description=band.description,
        progression_path=band.progression_path,
        present_moment_ratio=round(min(1.0, baseline / 50), 3),
        present_neutral_ratio=round(min(1.0, baseline / 60), 3),
        insights=(
            "Your stated experience suggests good foundation",
            "Begin logging practice sessions to unlock your true potential",
            "Expert background provides strong starting point"
            if expert
            else "Building on existing meditation experience",
        ),
        recommendations=(
            "Start daily practice logging",
            "Begin with your preferred duration and style",
            "Focus on present-neutral awareness development" if expert else "Establish consistent routine first",
        ),
        breakdown=PAHMBreakdown(
            present_neutral_mastery=round_half_up(baseline * 0.4),
            present_moment_development=round_half_up(baseline * 0.3),
            therapeutic_progress=round_half_up(baseline * 0.2),
            session_quality=0,
        ),
        session_based=False,
    )


def classify_pahm(
    sessions: Sequence[PracticeSession],
    responses: QuestionnaireResponses | None = None,
) -> PAHMAnalysis:
    if not sessions:
        return _baseline_analysis(responses)

    total_sessions = len(sessions)
    total_duration = sum(session.duration_minutes for session in sessions)
    avg_quality = mean(session.quality for session in sessions)

    present_neutral_mastery = 0
    if total_sessions >= 20:
        present_neutral_mastery += 15
    if total_sessions >= 50:
        present_neutral_mastery += 15
    if avg_quality >= 4:
        present_neutral_mastery += 20

    present_moment_development = total_sessions * 2
    if total_duration > LONG_PRACTICE_MINUTES:
        present_moment_development += 5
    present_moment_development = min(PRESENT_MOMENT_DEVELOPMENT_MAX, present_moment_development)

    therapeutic_progress = min(THERAPEUTIC_PROGRESS_MAX, (total_sessions // 3) * 2)
    session_quality = min(float(SESSION_QUALITY_MAX), avg_quality)

    overall = present_neutral_mastery + present_moment_development + therapeutic_progress + session_quality
    band = _band_for(overall, STAGE_BANDS)

    insights: list[str] = []
    recommendations: list[str] = []
    if total_sessions < 10:
        insights.append("You're in the early stages of building present attention")
        recommendations.append("Aim for daily 5-10 minute sessions")
    elif total_sessions < 30:
        insights.append("Your practice foundation is developing")
        recommendations.append("Gradually increase session length")
    else:
        insights.append("You have established a solid practice foundation")
        recommendations.append("Focus on quality over quantity")

    if avg_quality < 3:
        insights.append("Session quality can be improved")
        recommendations.append("Practice returning attention gently when mind wanders")

    return PAHMAnalysis(
        overall_score=round(float(overall), 2),
        development_stage=band.name,
        stage_description=band.description,
        progression_path=band.progression_path,
        present_moment_ratio=round(min(1.0, total_sessions / 50), 3),
        present_neutral_ratio=round(min(1.0, present_neutral_mastery / PRESENT_NEUTRAL_MASTERY_MAX), 3),
        insights=tuple(insights),
        recommendations=tuple(recommendations),
        breakdown=PAHMBreakdown(
            present_neutral_mastery=present_neutral_mastery,
            present_moment_development=present_moment_development,
            therapeutic_progress=therapeutic_progress,
            session_quality=round_half_up(session_quality),
        ),
        session_based=True,
    )
