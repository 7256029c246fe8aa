from __future__ import annotations

import datetime as dt
import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models import (
    EmotionalNoteRecord,
    PAHMStageRecord,
    PracticeSessionRecord,
    ProgressSnapshot,
    QuestionnaireRecord,
    SelfAssessmentRecord,
    TLevelCompletion,
)
from .engine import ProgressListener, UserProgress
from .records import PracticeSession, SelfAssessment, coerce_timestamp
from .stage_progress import PAHM_REQUIRED_HOURS, PAHMStageState, ProgressState, parse_pahm_stage, parse_t_level

logger = logging.getLogger(__name__)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _stored_time(value: dt.datetime | None) -> dt.datetime:
    # SQLite drops the offset, so everything is stored as UTC.
    return coerce_timestamp(value) if value is not None else _utcnow()


class SqlRecordStore:
    """SQLAlchemy-backed record source for one user, plus the completion-event write boundary."""

    def __init__(self, db: Session, user_id: str) -> None:
        self.db = db
        self.user_id = user_id

    # -- read side -----------------------------------------------------------

    def list_practice_sessions(self) -> list[PracticeSession]:
        rows = self.db.scalars(
            select(PracticeSessionRecord)
            .where(PracticeSessionRecord.user_id == self.user_id)
            .order_by(PracticeSessionRecord.recorded_at.asc(), PracticeSessionRecord.id.asc())
        ).all()
        return [
            PracticeSession(
                timestamp=coerce_timestamp(row.recorded_at),
                duration_minutes=float(row.duration_minutes or 0.0),
                rating=row.rating,
                level_label=row.level_label,
                stage_level=row.stage_level,
                session_kind="mind_recovery" if row.session_kind == "mind_recovery" else "meditation",
            )
            for row in rows
        ]

    def list_emotional_notes(self) -> list[dict[str, Any]]:
        rows = self.db.scalars(
            select(EmotionalNoteRecord)
            .where(EmotionalNoteRecord.user_id == self.user_id)
            .order_by(EmotionalNoteRecord.recorded_at.asc(), EmotionalNoteRecord.id.asc())
        ).all()
        # Nullable columns go through normalization so defaults stay in one place.
        return [
            {"timestamp": row.recorded_at, "mood": row.mood, "energy": row.energy, "stress": row.stress}
            for row in rows
        ]

    def get_questionnaire(self) -> dict[str, Any] | None:
        row = self.db.get(QuestionnaireRecord, self.user_id)
        if row is None:
            return None
        return {"completed": row.completed, "responses": dict(row.responses or {})}

    def get_self_assessment(self) -> SelfAssessment | None:
        row = self.db.get(SelfAssessmentRecord, self.user_id)
        if row is None:
            return None
        return SelfAssessment.from_levels(completed=row.completed, levels=row.per_category)

    def get_progress_state(self) -> ProgressState:
        completions = self.db.scalars(
            select(TLevelCompletion).where(TLevelCompletion.user_id == self.user_id)
        ).all()
        stages = self.db.scalars(
            select(PAHMStageRecord).where(PAHMStageRecord.user_id == self.user_id)
        ).all()
        return ProgressState(
            t_level_flags={row.level: bool(row.completed) for row in completions},
            pahm_stages={row.stage: PAHMStageState(hours=float(row.hours), completed=bool(row.completed)) for row in stages},
        )

    def get_snapshot(self) -> ProgressSnapshot | None:
        return self.db.get(ProgressSnapshot, self.user_id)

    # -- write side ----------------------------------------------------------

    def add_practice_session(
        self,
        *,
        recorded_at: dt.datetime | None,
        duration_minutes: float,
        rating: int | None,
        level_label: str | None,
        stage_level: int | None,
        session_kind: str,
        client_session_id: str | None = None,
    ) -> tuple[PracticeSessionRecord, bool]:
        """Returns the stored row and whether it already existed for ``client_session_id``."""
        if client_session_id:
            existing = self._session_by_client_id(client_session_id)
            if existing is not None:
                return existing, True

        row = PracticeSessionRecord(
            user_id=self.user_id,
            client_session_id=client_session_id,
            recorded_at=_stored_time(recorded_at),
            duration_minutes=duration_minutes,
            rating=rating,
            level_label=level_label,
            stage_level=stage_level,
            session_kind=session_kind,
        )
        self.db.add(row)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            existing = self._session_by_client_id(client_session_id) if client_session_id else None
            if existing is None:
                raise
            return existing, True
        return row, False

    def _session_by_client_id(self, client_session_id: str) -> PracticeSessionRecord | None:
        return self.db.scalars(
            select(PracticeSessionRecord).where(
                PracticeSessionRecord.user_id == self.user_id,
                PracticeSessionRecord.client_session_id == client_session_id,
            )
        ).first()

    def add_emotional_note(
        self,
        *,
        recorded_at: dt.datetime | None,
        mood: float | None,
        energy: float | None,
        stress: float | None,
        content: str | None = None,
    ) -> EmotionalNoteRecord:
        row = EmotionalNoteRecord(
            user_id=self.user_id,
            recorded_at=_stored_time(recorded_at),
            mood=mood,
            energy=energy,
            stress=stress,
            content=content,
        )
        self.db.add(row)
        self.db.flush()
        return row

    def save_questionnaire(self, *, completed: bool, responses: dict[str, Any]) -> QuestionnaireRecord:
        row = self.db.get(QuestionnaireRecord, self.user_id)
        if row is None:
            row = QuestionnaireRecord(user_id=self.user_id)
            self.db.add(row)
        row.completed = completed
        row.responses = dict(responses)
        row.updated_at = _utcnow()
        self.db.flush()
        return row

    def save_self_assessment(self, *, completed: bool, levels: dict[str, str]) -> SelfAssessmentRecord:
        assessment = SelfAssessment.from_levels(completed=completed, levels=levels)
        row = self.db.get(SelfAssessmentRecord, self.user_id)
        if row is None:
            row = SelfAssessmentRecord(user_id=self.user_id)
            self.db.add(row)
        row.completed = assessment.completed
        row.per_category = dict(assessment.per_category)
        row.attachment_score = assessment.attachment_score
        row.non_attachment_count = assessment.non_attachment_count
        row.updated_at = _utcnow()
        self.db.flush()
        return row

    def mark_t_level_complete(self, level: str | int) -> TLevelCompletion:
        number = parse_t_level(level)
        row = self.db.scalars(
            select(TLevelCompletion).where(
                TLevelCompletion.user_id == self.user_id,
                TLevelCompletion.level == number,
            )
        ).first()
        if row is None:
            row = TLevelCompletion(user_id=self.user_id, level=number, completed=True)
            self.db.add(row)
        else:
            row.completed = True
            row.completed_at = _utcnow()
        self.db.flush()
        logger.info("T%s marked complete for user %s", number, self.user_id)
        return row

    def set_pahm_stage(self, stage: int | str, *, hours: float, completed: bool | None = None) -> PAHMStageRecord:
        number = parse_pahm_stage(stage)
        if number == 1:
            raise ValueError("Stage 1 has no PAHM hours to record")
        row = self.db.scalars(
            select(PAHMStageRecord).where(
                PAHMStageRecord.user_id == self.user_id,
                PAHMStageRecord.stage == number,
            )
        ).first()
        if row is None:
            row = PAHMStageRecord(user_id=self.user_id, stage=number)
            self.db.add(row)
        row.hours = max(0.0, float(hours))
        if completed is None:
            # Only an explicit completed=False revokes a stage.
            completed = bool(row.completed) or row.hours >= PAHM_REQUIRED_HOURS
        row.completed = completed
        row.updated_at = _utcnow()
        self.db.flush()
        return row

    def persist_snapshot(self, progress: UserProgress) -> ProgressSnapshot:
        row = self.db.get(ProgressSnapshot, self.user_id)
        if row is None:
            row = ProgressSnapshot(user_id=self.user_id, user_level=progress.user_level)
            self.db.add(row)
        row.happiness_points = progress.happiness_points
        row.user_level = progress.user_level
        row.has_minimum_data = progress.has_minimum_data
        row.payload = _json_ready(progress.as_dict())
        row.computed_at = _utcnow()
        self.db.flush()
        return row


def snapshot_listener(store: SqlRecordStore) -> ProgressListener:
    """Listener that keeps the user's last computed progress in ``progress_snapshots``."""

    def _persist(progress: UserProgress) -> None:
        store.persist_snapshot(progress)
        logger.debug("Stored progress snapshot for user %s", store.user_id)

    return _persist


def _json_ready(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _json_ready(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_ready(item) for item in value]
    return value
