from __future__ import annotations

import datetime as dt
import math
from statistics import mean
from typing import Sequence

from .records import EmotionalNote, PracticeSession, QuestionnaireResponses, SelfAssessment, coerce_timestamp
from .streak import calculate_streak

# Categorical answers that carry a bonus.
VERY_ACTIVE = "Very_active"
OPTIMAL_WORK_LIFE_BALANCE = "Perfect integration of work and practice"
MINDFUL_DIET = "Mindful eating, mostly vegetarian"
DISCIPLINED_ROUTINE = "Disciplined practice schedule"
DEEP_RELATIONSHIPS = "Deep, meaningful relationships"
ALTRUISTIC_MOTIVATION = "Service to others and spiritual awakening"
OBSERVE_AND_LET_GO = "Observe and let go"
PEACEFUL_THOUGHTS = "Peaceful and accepting"
DAILY_REFLECTION = "Daily meditation and contemplation"
INTUITIVE_MINDFUL_DECISIONS = "Intuitive with mindful consideration"
CONSTANT_MINDFULNESS = "Constant awareness and presence"

RECENT_NOTES_WINDOW = 5
RECENT_SESSIONS_WINDOW = 10
CONSISTENCY_WINDOW_DAYS = 30
QUALITY_RATING_THRESHOLD = 4


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_score(value: float | int | None) -> int:
    if value is None:
        return 0
    return max(0, min(100, round_half_up(float(value))))


def _answer_is(value: str | None, expected: str) -> bool:
    if not value:
        return False
    return value.strip().casefold() == expected.casefold()


def _at_least(value: float | None, threshold: float) -> bool:
    return value is not None and value >= threshold


def _awareness_baseline(responses: QuestionnaireResponses, tiers: tuple[int, int, int], default: int) -> int:
    high, mid, low = tiers
    awareness = responses.emotional_awareness
    if _at_least(awareness, 9):
        return high
    if _at_least(awareness, 7):
        return mid
    if _at_least(awareness, 5):
        return low
    return default


def current_mood_state(
    responses: QuestionnaireResponses | None,
    notes: Sequence[EmotionalNote],
) -> int:
    if responses is None and not notes:
        # The gate passed on other evidence; mood is unknown rather than average.
        return 25

    score = 50.0
    if responses is not None:
        if _at_least(responses.sleep_pattern, 8):
            score += 20
        elif _at_least(responses.sleep_pattern, 6):
            score += 10
        if _answer_is(responses.physical_activity, VERY_ACTIVE):
            score += 10
        if _answer_is(responses.work_life_balance, OPTIMAL_WORK_LIFE_BALANCE):
            score += 15
        if _answer_is(responses.diet_pattern, MINDFUL_DIET):
            score += 5
        if _answer_is(responses.daily_routine, DISCIPLINED_ROUTINE):
            score += 5

    if notes:
        recent = notes[-RECENT_NOTES_WINDOW:]
        avg_mood = mean(note.mood for note in recent)
        score = (score * 0.8) + (avg_mood * 10 * 0.2)

    return clamp_score(score)


def attachment_flexibility(self_assessment: SelfAssessment | None) -> int:
    if self_assessment is None or not self_assessment.completed:
        return 0

    attachment_score = self_assessment.attachment_score
    non_attachment_count = max(0, min(6, self_assessment.non_attachment_count))

    score = 50.0
    if attachment_score <= -10:
        score += 25
    elif attachment_score <= -5:
        score += 15
    elif attachment_score <= 0:
        score += 10
    else:
        score -= 10

    score += (non_attachment_count / 6) * 25
    return clamp_score(score)


def social_connection(responses: QuestionnaireResponses | None) -> int:
    if responses is None:
        return 0

    score = 50.0
    social = responses.social_connections
    if _answer_is(social, DEEP_RELATIONSHIPS):
        score = 85.0
    elif social:
        lowered = social.casefold()
        if "meaningful" in lowered:
            score += 25
        elif "good" in lowered:
            score += 15
        elif "average" in lowered:
            score += 5

    if _answer_is(responses.work_life_balance, OPTIMAL_WORK_LIFE_BALANCE):
        score += 10
    if _answer_is(responses.motivation, ALTRUISTIC_MOTIVATION):
        score += 10
    return clamp_score(score)


def emotional_stability_progress(
    sessions: Sequence[PracticeSession],
    responses: QuestionnaireResponses | None,
) -> int:
    if responses is None and not sessions:
        return 0

    score = 40.0
    if responses is not None:
        score = float(_awareness_baseline(responses, (65, 55, 50), 40))
        if _answer_is(responses.stress_response, OBSERVE_AND_LET_GO):
            score += 15
        if _answer_is(responses.thought_patterns, PEACEFUL_THOUGHTS):
            score += 10
        if _answer_is(responses.self_reflection, DAILY_REFLECTION):
            score += 5

    if sessions:
        recent = sessions[-RECENT_SESSIONS_WINDOW:]
        if len(recent) >= 5:
            score += 15
        score += mean(session.quality for session in recent) * 3

    return clamp_score(score)


def mind_recovery_effectiveness(sessions: Sequence[PracticeSession]) -> int:
    if not sessions:
        return 0

    score = 40.0
    avg_duration = sum(session.duration_minutes for session in sessions) / len(sessions)
    if avg_duration >= 20:
        score += 25
    elif avg_duration >= 10:
        score += 15
    elif avg_duration >= 5:
        score += 10

    if len(sessions) >= 10:
        score += 15
    elif len(sessions) >= 5:
        score += 10
    return clamp_score(score)


def emotional_regulation(
    sessions: Sequence[PracticeSession],
    responses: QuestionnaireResponses | None,
) -> int:
    if responses is None and not sessions:
        return 0

    score = 45.0
    if responses is not None:
        score = float(_awareness_baseline(responses, (75, 60, 50), 45))
        if _answer_is(responses.decision_making, INTUITIVE_MINDFUL_DECISIONS):
            score += 10
        if _answer_is(responses.self_reflection, DAILY_REFLECTION):
            score += 10
        if _answer_is(responses.mindfulness_in_daily_life, CONSTANT_MINDFULNESS):
            score += 5

    if sessions:
        practice_weeks = len(sessions) // 3
        score += min(10, practice_weeks * 2)
        quality_sessions = [s for s in sessions if s.is_rated and s.quality >= QUALITY_RATING_THRESHOLD]
        score += (len(quality_sessions) / len(sessions)) * 8

    return clamp_score(score)


def practice_consistency(sessions: Sequence[PracticeSession], *, now: dt.datetime | None = None) -> int:
    if not sessions:
        return 0

    now = coerce_timestamp(now) if now is not None else dt.datetime.now(dt.timezone.utc)
    window_start = now - dt.timedelta(days=CONSISTENCY_WINDOW_DAYS)
    recent_count = sum(1 for session in sessions if session.timestamp > window_start)

    score = 20
    if recent_count >= 20:
        score += 40
    elif recent_count >= 15:
        score += 30
    elif recent_count >= 10:
        score += 20
    elif recent_count >= 5:
        score += 10

    streak = calculate_streak(sessions, now=now)
    if streak >= 7:
        score += 30
    elif streak >= 3:
        score += 15
    elif streak >= 1:
        score += 5
    return clamp_score(score)
