from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass, field, fields
from typing import Any, Literal, Mapping

SessionKind = Literal["meditation", "mind_recovery"]
AttachmentLevel = Literal["none", "some", "strong"]

DEFAULT_SESSION_RATING = 3
DEFAULT_NOTE_MOOD = 5
DEFAULT_NOTE_ENERGY = 5
DEFAULT_NOTE_STRESS = 5
DEFAULT_SESSION_KIND: SessionKind = "meditation"

SENSE_CATEGORIES = ("taste", "smell", "sound", "sight", "touch", "mind")
ATTACHMENT_PENALTIES: dict[str, int] = {"strong": -15, "some": -7, "none": 0}

_EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)

_NUMERIC_RESPONSES = frozenset(
    {"experience_level", "mindfulness_experience", "sleep_pattern", "emotional_awareness", "preferred_duration"}
)
_LIST_RESPONSES = frozenset({"stress_triggers", "goals"})


def _as_float(value: Any, default: float | None = None) -> float | None:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def coerce_timestamp(value: Any) -> dt.datetime:
    """Accepts datetimes, dates, ISO strings and epoch milliseconds; naive values are UTC."""
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, dt.date):
        parsed = dt.datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return dt.datetime.fromtimestamp(float(value) / 1000.0, tz=dt.timezone.utc)
        except (ValueError, OverflowError, OSError):
            return _EPOCH
    elif isinstance(value, str) and value.strip():
        try:
            parsed = dt.datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return _EPOCH
    else:
        return _EPOCH
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=dt.timezone.utc)
    return parsed.astimezone(dt.timezone.utc)


@dataclass(frozen=True)
class PracticeSession:
    timestamp: dt.datetime
    duration_minutes: float = 0.0
    rating: int | None = None
    level_label: str | None = None
    stage_level: int | None = None
    session_kind: SessionKind = DEFAULT_SESSION_KIND

    @property
    def is_rated(self) -> bool:
        return self.rating is not None and self.rating > 0

    @property
    def quality(self) -> int:
        return self.rating if self.is_rated else DEFAULT_SESSION_RATING


@dataclass(frozen=True)
class EmotionalNote:
    timestamp: dt.datetime
    mood: float = DEFAULT_NOTE_MOOD
    energy: float = DEFAULT_NOTE_ENERGY
    stress: float = DEFAULT_NOTE_STRESS


@dataclass(frozen=True)
class QuestionnaireResponses:
    """Closed set of questionnaire answers the scoring engine understands."""

    experience_level: float | None = None
    mindfulness_experience: float | None = None
    meditation_background: str | None = None
    meditation_background_detail: str | None = None
    sleep_pattern: float | None = None
    physical_activity: str | None = None
    work_life_balance: str | None = None
    diet_pattern: str | None = None
    daily_routine: str | None = None
    screen_time: str | None = None
    social_connections: str | None = None
    motivation: str | None = None
    emotional_awareness: float | None = None
    stress_response: str | None = None
    stress_triggers: tuple[str, ...] = ()
    thought_patterns: str | None = None
    self_reflection: str | None = None
    decision_making: str | None = None
    mindfulness_in_daily_life: str | None = None
    practice_goals: str | None = None
    goals: tuple[str, ...] = ()
    preferred_duration: float | None = None
    biggest_challenges: str | None = None
    occupation: str | None = None
    education_level: str | None = None
    age_range: str | None = None
    location: str | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> QuestionnaireResponses:
        if not raw or not isinstance(raw, Mapping):
            return cls()
        values: dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in raw:
                continue
            value = raw[f.name]
            if f.name in _NUMERIC_RESPONSES:
                values[f.name] = _as_float(value)
            elif f.name in _LIST_RESPONSES:
                if isinstance(value, str):
                    items = [value]
                elif isinstance(value, (list, tuple)):
                    items = list(value)
                else:
                    items = []
                values[f.name] = tuple(str(item) for item in items if item is not None)
            else:
                values[f.name] = _as_text(value)
        return cls(**values)


@dataclass(frozen=True)
class Questionnaire:
    completed: bool
    responses: QuestionnaireResponses = field(default_factory=QuestionnaireResponses)


@dataclass(frozen=True)
class SelfAssessment:
    completed: bool
    per_category: Mapping[str, AttachmentLevel]
    attachment_score: int
    non_attachment_count: int

    @classmethod
    def from_levels(cls, *, completed: bool, levels: Mapping[str, Any] | None) -> SelfAssessment:
        per_category: dict[str, AttachmentLevel] = {}
        if not isinstance(levels, Mapping):
            levels = {}
        for category in SENSE_CATEGORIES:
            level = str(levels.get(category) or "none").strip().lower()
            per_category[category] = level if level in ATTACHMENT_PENALTIES else "none"  # type: ignore[assignment]
        attachment_score = sum(ATTACHMENT_PENALTIES[level] for level in per_category.values())
        non_attachment_count = sum(1 for level in per_category.values() if level == "none")
        return cls(
            completed=completed,
            per_category=per_category,
            attachment_score=attachment_score,
            non_attachment_count=non_attachment_count,
        )


def normalize_session(raw: Mapping[str, Any] | PracticeSession) -> PracticeSession:
    if isinstance(raw, PracticeSession):
        return raw
    rating = _as_float(raw.get("rating", raw.get("quality")))
    stage_level = _as_float(raw.get("stage_level"))
    kind = str(raw.get("session_kind") or DEFAULT_SESSION_KIND).strip().lower()
    return PracticeSession(
        timestamp=coerce_timestamp(raw.get("timestamp")),
        duration_minutes=max(0.0, _as_float(raw.get("duration_minutes", raw.get("duration")), 0.0) or 0.0),
        rating=int(round(rating)) if rating is not None and rating > 0 else None,
        level_label=_as_text(raw.get("level_label")),
        stage_level=int(stage_level) if stage_level is not None else None,
        session_kind="mind_recovery" if kind == "mind_recovery" else "meditation",
    )


def normalize_note(raw: Mapping[str, Any] | EmotionalNote) -> EmotionalNote:
    if isinstance(raw, EmotionalNote):
        return raw
    return EmotionalNote(
        timestamp=coerce_timestamp(raw.get("timestamp")),
        mood=_as_float(raw.get("mood"), DEFAULT_NOTE_MOOD),
        energy=_as_float(raw.get("energy"), DEFAULT_NOTE_ENERGY),
        stress=_as_float(raw.get("stress"), DEFAULT_NOTE_STRESS),
    )


def normalize_questionnaire(raw: Mapping[str, Any] | Questionnaire | None) -> Questionnaire | None:
    if raw is None or isinstance(raw, Questionnaire):
        return raw
    return Questionnaire(
        completed=bool(raw.get("completed", False)),
        responses=QuestionnaireResponses.from_mapping(raw.get("responses")),
    )


def normalize_self_assessment(raw: Mapping[str, Any] | SelfAssessment | None) -> SelfAssessment | None:
    if raw is None or isinstance(raw, SelfAssessment):
        return raw
    return SelfAssessment.from_levels(
        completed=bool(raw.get("completed", False)),
        levels=raw.get("per_category") or raw.get("categories"),
    )


@dataclass(frozen=True)
class RecordSnapshot:
    """Materialized, normalized inputs for one engine invocation."""

    sessions: tuple[PracticeSession, ...] = ()
    notes: tuple[EmotionalNote, ...] = ()
    questionnaire: Questionnaire | None = None
    self_assessment: SelfAssessment | None = None

    @classmethod
    def build(
        cls,
        *,
        sessions: list[Any] | tuple[Any, ...] = (),
        notes: list[Any] | tuple[Any, ...] = (),
        questionnaire: Any = None,
        self_assessment: Any = None,
    ) -> RecordSnapshot:
        normalized_sessions = sorted((normalize_session(s) for s in sessions), key=lambda s: s.timestamp)
        normalized_notes = sorted((normalize_note(n) for n in notes), key=lambda n: n.timestamp)
        return cls(
            sessions=tuple(normalized_sessions),
            notes=tuple(normalized_notes),
            questionnaire=normalize_questionnaire(questionnaire),
            self_assessment=normalize_self_assessment(self_assessment),
        )

    @property
    def questionnaire_completed(self) -> bool:
        return self.questionnaire is not None and self.questionnaire.completed

    @property
    def self_assessment_completed(self) -> bool:
        return self.self_assessment is not None and self.self_assessment.completed

    @property
    def responses(self) -> QuestionnaireResponses | None:
        if self.questionnaire is None:
            return None
        return self.questionnaire.responses
