from __future__ import annotations

import datetime as dt

import pytest

from pahm_progress_api.services.engine import ProgressEngine, StaticRecordSource
from pahm_progress_api.services.records import PracticeSession
from pahm_progress_api.services.stage_progress import (
    PAHMStageState,
    ProgressState,
    UnknownLevelError,
    parse_pahm_stage,
    parse_t_level,
    session_matches_t_level,
)

NOW = dt.datetime(2026, 3, 10, 12, 0, tzinfo=dt.timezone.utc)
ALL_T_LEVELS_DONE = {level: True for level in range(1, 6)}


def _t_sessions(label: str | None, count: int, *, rating: int | None = 4) -> list[PracticeSession]:
    return [
        PracticeSession(timestamp=NOW - dt.timedelta(days=i), duration_minutes=15, rating=rating, level_label=label)
        for i in range(count)
    ]


def _engine(sessions: list[PracticeSession] | None = None, state: ProgressState | None = None) -> ProgressEngine:
    source = StaticRecordSource(sessions=sessions or [], progress_state=state or ProgressState())
    return ProgressEngine(source, clock=lambda: NOW)


@pytest.mark.parametrize("raw", [1, "1", "t1", "T1", "stage1", " t1 "])
def test_parse_t_level_accepts_common_spellings(raw) -> None:
    assert parse_t_level(raw) == 1


@pytest.mark.parametrize("raw", ["t9", "x1", 0, 6, "", True])
def test_parse_t_level_rejects_unknown_levels(raw) -> None:
    with pytest.raises(UnknownLevelError):
        parse_t_level(raw)


def test_parse_pahm_stage_range() -> None:
    assert parse_pahm_stage("3") == 3
    assert parse_pahm_stage(1) == 1
    for raw in (0, 7, "two"):
        with pytest.raises(UnknownLevelError):
            parse_pahm_stage(raw)


def test_session_matching_by_label_or_stage_level() -> None:
    assert session_matches_t_level(PracticeSession(timestamp=NOW, level_label="T1"), 1)
    assert session_matches_t_level(PracticeSession(timestamp=NOW, level_label="stage1"), 1)
    assert session_matches_t_level(PracticeSession(timestamp=NOW, level_label="1"), 1)
    assert session_matches_t_level(PracticeSession(timestamp=NOW, stage_level=1), 1)
    # an explicit label wins over stage_level
    assert not session_matches_t_level(PracticeSession(timestamp=NOW, level_label="t2", stage_level=1), 1)
    assert not session_matches_t_level(
        PracticeSession(timestamp=NOW, level_label="t1", session_kind="mind_recovery"), 1
    )


def test_scenario_c_five_rated_t1_sessions_unlock_t2() -> None:
    engine = _engine(_t_sessions("t1", 5, rating=4))
    t1 = engine.get_stage_progress().t_levels[1]

    assert t1.completed_session_count == 5
    assert t1.completed is True
    assert engine.get_streak() == 5
    assert engine.check_t_level_access("t2").allowed is True


def test_t1_is_always_accessible() -> None:
    assert _engine().check_t_level_access("T1").allowed is True


def test_t_level_denial_message_reports_rated_count() -> None:
    decision = _engine(_t_sessions("T1", 2)).check_t_level_access("t2")
    assert decision.allowed is False
    assert decision.missing_kind == "sessions"
    assert decision.requirement_message == "Complete at least 3 T1 sessions before accessing T2 (current 2/3)"


def test_unrated_sessions_do_not_complete_a_level() -> None:
    t1 = _engine(_t_sessions("T1", 4, rating=None)).get_stage_progress().t_levels[1]
    assert t1.session_count == 4
    assert t1.completed_session_count == 0
    assert t1.completed is False


def test_external_completion_flag_unlocks_next_level() -> None:
    engine = _engine(state=ProgressState(t_level_flags={1: True}))
    assert engine.check_t_level_access("t2").allowed is True
    assert engine.check_t_level_access("t3").allowed is False


def test_third_rated_session_flips_access_on() -> None:
    sessions = _t_sessions("t1", 2)
    assert _engine(sessions).check_t_level_access("t2").allowed is False
    sessions = sessions + _t_sessions("t1", 1)
    assert _engine(sessions).check_t_level_access("t2").allowed is True


def test_scenario_d_pahm_stages_wait_for_all_t_levels() -> None:
    engine = _engine(state=ProgressState(t_level_flags={1: True, 2: True, 3: True, 4: True}))
    decision = engine.check_pahm_stage_access(2)
    assert decision.allowed is False
    assert decision.missing_kind == "progression"
    assert decision.requirement_message == "Complete all T-stages (T1-T5) before accessing PAHM stages"
    assert engine.check_pahm_stage_access(1).allowed is True


def test_scenario_e_current_stage_after_stage_two() -> None:
    state = ProgressState(
        t_level_flags=ALL_T_LEVELS_DONE,
        pahm_stages={2: PAHMStageState(hours=15, completed=True)},
    )
    engine = _engine(state=state)

    assert engine.get_current_accessible_stage() == 3
    assert engine.get_next_accessible_stage() == 4
    assert engine.check_pahm_stage_access(3).allowed is True
    decision = engine.check_pahm_stage_access(4)
    assert decision.allowed is False
    assert decision.missing_kind == "progression"
    assert decision.requirement_message == (
        "Complete Stage 3 (PAHM Beginner) with 15 hours of practice before accessing Stage 4"
    )


def test_current_stage_defaults_to_one() -> None:
    engine = _engine()
    assert engine.get_current_accessible_stage() == 1
    assert engine.get_next_accessible_stage() == 2


def test_hours_alone_do_not_complete_a_stage() -> None:
    state = ProgressState(
        t_level_flags=ALL_T_LEVELS_DONE,
        pahm_stages={2: PAHMStageState(hours=40, completed=False)},
    )
    engine = _engine(state=state)
    assert engine.get_current_accessible_stage() == 2
    assert engine.check_pahm_stage_access(3).allowed is False


def test_summary_before_any_pahm_stage() -> None:
    summary = _engine(_t_sessions("T1", 3)).get_progress_summary()
    assert summary.completed_t_levels == 1
    assert summary.stage_one_percent == 20
    assert summary.rated_t_sessions == 3
    assert summary.total_practice_hours == 0.75
    assert summary.current_stage == 1
    assert summary.current_level == "Seeker"
    assert summary.next_milestone == "Complete Stage 1 (All T-stages)"


def test_summary_mid_pahm() -> None:
    state = ProgressState(
        t_level_flags=ALL_T_LEVELS_DONE,
        pahm_stages={2: PAHMStageState(hours=15, completed=True), 3: PAHMStageState(hours=4.5)},
    )
    summary = _engine(state=state).get_progress_summary()
    assert summary.stage_one_complete is True
    assert summary.completed_pahm_stages == 1
    assert summary.pahm_percent == 20
    assert summary.total_pahm_hours == 19.5
    assert summary.total_practice_hours == 19.5
    assert summary.current_level == "PAHM Beginner"
    assert summary.next_milestone == "Unlock PAHM Practitioner"
    assert summary.ready_for_next_stage is True


def test_summary_at_mastery() -> None:
    state = ProgressState(
        t_level_flags=ALL_T_LEVELS_DONE,
        pahm_stages={stage: PAHMStageState(hours=15, completed=True) for stage in range(2, 7)},
    )
    engine = _engine(state=state)
    summary = engine.get_progress_summary()
    assert engine.get_current_accessible_stage() == 6
    assert engine.get_next_accessible_stage() is None
    assert summary.current_level == "PAHM Illuminator"
    assert summary.next_milestone == "Mastery Achieved"
    assert summary.ready_for_next_stage is False
