from __future__ import annotations

import datetime as dt
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Protocol, Sequence

from . import components
from .access_control import (
    AccessDecision,
    check_pahm_stage_access,
    check_t_level_access,
    current_accessible_stage,
    next_accessible_stage,
)
from .aggregation import NEW_USER, ComponentBreakdown, aggregate
from .pahm import PAHMAnalysis, classify_pahm
from .records import RecordSnapshot
from .stage_progress import ProgressState, StageProgress, track_progress
from .streak import calculate_streak
from .sufficiency import DataCompleteness, assess_completeness
from .summary import ProgressSummary, build_progress_summary

logger = logging.getLogger(__name__)


class RecordSource(Protocol):
    """Read side of the record store. Everything is materialized before the engine runs."""

    def list_practice_sessions(self) -> Sequence[Any]: ...

    def list_emotional_notes(self) -> Sequence[Any]: ...

    def get_questionnaire(self) -> Any: ...

    def get_self_assessment(self) -> Any: ...

    def get_progress_state(self) -> ProgressState: ...


@dataclass
class StaticRecordSource:
    sessions: list[Any] = field(default_factory=list)
    notes: list[Any] = field(default_factory=list)
    questionnaire: Any = None
    self_assessment: Any = None
    progress_state: ProgressState = field(default_factory=ProgressState)

    def list_practice_sessions(self) -> list[Any]:
        return self.sessions

    def list_emotional_notes(self) -> list[Any]:
        return self.notes

    def get_questionnaire(self) -> Any:
        return self.questionnaire

    def get_self_assessment(self) -> Any:
        return self.self_assessment

    def get_progress_state(self) -> ProgressState:
        return self.progress_state


@dataclass(frozen=True)
class UserProgress:
    happiness_points: int
    user_level: str
    focus_ability: int
    habit_change_score: int
    practice_streak: int
    has_minimum_data: bool
    data_completeness: DataCompleteness
    breakdown: ComponentBreakdown = field(default_factory=ComponentBreakdown)
    pahm_analysis: PAHMAnalysis | None = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


ProgressListener = Callable[[UserProgress], None]

_NO_DATA = DataCompleteness(questionnaire=False, self_assessment=False, practice_sessions=False, sufficient=False)


def zeroed_progress(completeness: DataCompleteness | None = None) -> UserProgress:
    completeness = completeness or _NO_DATA
    return UserProgress(
        happiness_points=0,
        user_level=NEW_USER,
        focus_ability=0,
        habit_change_score=0,
        practice_streak=0,
        has_minimum_data=False,
        data_completeness=DataCompleteness(
            questionnaire=completeness.questionnaire,
            self_assessment=completeness.self_assessment,
            practice_sessions=completeness.practice_sessions,
            sufficient=False,
        ),
    )


def compute_user_progress(snapshot: RecordSnapshot, *, now: dt.datetime | None = None) -> UserProgress:
    """Pure scoring pass over one snapshot. May raise; callers wanting the safe default use ProgressEngine."""
    completeness = assess_completeness(snapshot.questionnaire, snapshot.self_assessment, snapshot.sessions)
    if not completeness.sufficient:
        return zeroed_progress(completeness)

    sessions = snapshot.sessions
    responses = snapshot.responses if snapshot.questionnaire_completed else None

    pahm_analysis = classify_pahm(sessions, responses)
    breakdown = ComponentBreakdown(
        pahm_development=components.clamp_score(pahm_analysis.overall_score),
        emotional_stability_progress=components.emotional_stability_progress(sessions, responses),
        current_mood_state=components.current_mood_state(responses, snapshot.notes),
        mind_recovery_effectiveness=components.mind_recovery_effectiveness(sessions),
        emotional_regulation=components.emotional_regulation(sessions, responses),
        attachment_flexibility=components.attachment_flexibility(snapshot.self_assessment),
        social_connection=components.social_connection(responses),
        practice_consistency=components.practice_consistency(sessions, now=now),
    )
    score = aggregate(breakdown)

    return UserProgress(
        happiness_points=score.composite,
        user_level=score.user_level,
        focus_ability=score.focus_ability,
        habit_change_score=score.habit_change_score,
        practice_streak=calculate_streak(sessions, now=now),
        has_minimum_data=True,
        data_completeness=completeness,
        breakdown=breakdown,
        pahm_analysis=pahm_analysis,
    )


class ProgressEngine:
    """Recomputes progress and stage access for one user from a record source.

    Holds no derived state between calls; listeners receive every computed
    ``UserProgress`` in registration order.
    """

    def __init__(self, source: RecordSource, *, clock: Callable[[], dt.datetime] | None = None) -> None:
        self._source = source
        self._clock = clock or (lambda: dt.datetime.now(dt.timezone.utc))
        self._listeners: list[ProgressListener] = []

    def add_listener(self, listener: ProgressListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            self.remove_listener(listener)

        return _unsubscribe

    def remove_listener(self, listener: ProgressListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def snapshot(self) -> RecordSnapshot:
        return RecordSnapshot.build(
            sessions=list(self._source.list_practice_sessions()),
            notes=list(self._source.list_emotional_notes()),
            questionnaire=self._source.get_questionnaire(),
            self_assessment=self._source.get_self_assessment(),
        )

    def compute_progress(self) -> UserProgress:
        snapshot: RecordSnapshot | None = None
        try:
            snapshot = self.snapshot()
            progress = compute_user_progress(snapshot, now=self._clock())
        except Exception:
            logger.exception("Progress computation failed; returning zeroed progress")
            completeness = None
            if snapshot is not None:
                completeness = DataCompleteness(
                    questionnaire=snapshot.questionnaire_completed,
                    self_assessment=snapshot.self_assessment_completed,
                    practice_sessions=bool(snapshot.sessions),
                    sufficient=False,
                )
            progress = zeroed_progress(completeness)
        self._notify(progress)
        return progress

    def _notify(self, progress: UserProgress) -> None:
        for listener in list(self._listeners):
            try:
                listener(progress)
            except Exception:
                logger.exception("Progress listener %r failed", listener)

    def get_stage_progress(self) -> StageProgress:
        sessions = self.snapshot().sessions
        return track_progress(sessions, self._source.get_progress_state())

    def check_t_level_access(self, level: str | int) -> AccessDecision:
        return check_t_level_access(level, self.get_stage_progress())

    def check_pahm_stage_access(self, stage: int | str) -> AccessDecision:
        return check_pahm_stage_access(stage, self.get_stage_progress())

    def get_current_accessible_stage(self) -> int:
        return current_accessible_stage(self.get_stage_progress())

    def get_next_accessible_stage(self) -> int | None:
        return next_accessible_stage(self.get_stage_progress())

    def get_progress_summary(self) -> ProgressSummary:
        return build_progress_summary(self.get_stage_progress())

    def get_streak(self) -> int:
        return calculate_streak(self.snapshot().sessions, now=self._clock())
