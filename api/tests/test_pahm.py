from __future__ import annotations

import datetime as dt

from pahm_progress_api.services.pahm import classify_pahm, questionnaire_baseline
from pahm_progress_api.services.records import PracticeSession, QuestionnaireResponses

NOW = dt.datetime(2026, 3, 10, 12, 0, tzinfo=dt.timezone.utc)


def _sessions(count: int, *, rating: int | None = 4, duration: float = 10.0) -> list[PracticeSession]:
    return [
        PracticeSession(timestamp=NOW - dt.timedelta(hours=i), duration_minutes=duration, rating=rating)
        for i in range(count)
    ]


def test_baseline_without_questionnaire() -> None:
    analysis = classify_pahm([], None)
    assert analysis.overall_score == 15
    assert analysis.development_stage == "Scattered Mind"
    assert analysis.session_based is False


def test_baseline_tiers() -> None:
    assert questionnaire_baseline(QuestionnaireResponses(experience_level=8, mindfulness_experience=9)) == 30
    assert questionnaire_baseline(QuestionnaireResponses(experience_level=6, mindfulness_experience=7)) == 23
    assert questionnaire_baseline(QuestionnaireResponses(experience_level=4)) == 18
    assert questionnaire_baseline(QuestionnaireResponses()) == 15


def test_experienced_baseline_band_and_breakdown() -> None:
    analysis = classify_pahm([], QuestionnaireResponses(experience_level=8, mindfulness_experience=9))
    assert analysis.development_stage == "Initial Awareness"
    assert analysis.present_moment_ratio == 0.6
    assert analysis.present_neutral_ratio == 0.5
    assert analysis.breakdown.present_neutral_mastery == 12
    assert analysis.breakdown.present_moment_development == 9
    assert analysis.breakdown.therapeutic_progress == 6
    assert analysis.breakdown.session_quality == 0
    assert "Expert background provides strong starting point" in analysis.insights


def test_scattered_mind_with_experience_band() -> None:
    analysis = classify_pahm([], QuestionnaireResponses(experience_level=6))
    assert analysis.overall_score == 20
    assert analysis.development_stage == "Scattered Mind with Experience"


def test_session_based_score_components() -> None:
    analysis = classify_pahm(_sessions(20, rating=4, duration=20))
    assert analysis.session_based is True
    assert analysis.breakdown.present_neutral_mastery == 35
    assert analysis.breakdown.present_moment_development == 30
    assert analysis.breakdown.therapeutic_progress == 12
    assert analysis.breakdown.session_quality == 4
    assert analysis.overall_score == 81
    assert analysis.development_stage == "Present-Neutral Mastery"
    assert analysis.present_moment_ratio == 0.4
    assert analysis.present_neutral_ratio == 0.7
    assert analysis.insights == ("Your practice foundation is developing",)


def test_present_moment_development_is_capped_after_duration_bonus() -> None:
    analysis = classify_pahm(_sessions(14, rating=3, duration=30))
    assert analysis.breakdown.present_moment_development == 30


def test_unrated_sessions_use_neutral_quality() -> None:
    analysis = classify_pahm(_sessions(3, rating=None, duration=0))
    assert analysis.breakdown.present_moment_development == 6
    assert analysis.breakdown.therapeutic_progress == 2
    assert analysis.breakdown.session_quality == 3
    assert analysis.overall_score == 11
    assert analysis.development_stage == "Scattered Mind"


def test_low_quality_sessions_add_guidance() -> None:
    analysis = classify_pahm(_sessions(2, rating=1))
    assert analysis.overall_score == 5
    assert analysis.insights == (
        "You're in the early stages of building present attention",
        "Session quality can be improved",
    )
    assert "Practice returning attention gently when mind wanders" in analysis.recommendations


def test_long_practice_reaches_full_score() -> None:
    analysis = classify_pahm(_sessions(60, rating=5, duration=30))
    assert analysis.overall_score == 100
    assert analysis.insights == ("You have established a solid practice foundation",)
