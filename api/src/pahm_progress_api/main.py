from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.orm import Session as DBSession

from .config import configure_logging, get_settings
from .db import Base, engine, get_db
from .models import (
    EmotionalNoteRecord,
    PracticeSessionRecord,
    ProgressSnapshot,
    QuestionnaireRecord,
    SelfAssessmentRecord,
    User,
)
from .schemas import (
    AccessDecisionOut,
    CurrentStageOut,
    EmotionalNoteIn,
    EmotionalNoteOut,
    HealthOut,
    PAHMStageProgressOut,
    PAHMStageUpdate,
    PracticeSessionIn,
    PracticeSessionOut,
    ProgressSummaryOut,
    QuestionnaireIn,
    QuestionnaireOut,
    SelfAssessmentIn,
    SelfAssessmentOut,
    SnapshotOut,
    StageProgressOut,
    StreakOut,
    TLevelProgressOut,
    UserCreate,
    UserOut,
    UserProgressOut,
)
from .services.engine import ProgressEngine
from .services.stage_progress import PAHM_STAGES, T_LEVELS, UnknownLevelError
from .services.store import SqlRecordStore, snapshot_listener

settings = get_settings()
configure_logging(settings)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="PAHM Progress API",
    version="0.1.0",
    description=(
        "Progress and level-access engine for a meditation practice app. "
        "Design: raw practice records in, stateless recompute of scores, stages and access out."
    ),
)


@app.on_event("startup")
def on_startup() -> None:
    Base.metadata.create_all(bind=engine)
    logger.info("%s started (snapshots=%s)", settings.service_name, settings.persist_snapshots)


@app.exception_handler(UnknownLevelError)
def unknown_level_handler(request: Request, exc: UnknownLevelError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)})


def _must_get_user(db: DBSession, user_id: str) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _progress_engine(db: DBSession, user_id: str) -> tuple[ProgressEngine, SqlRecordStore]:
    store = SqlRecordStore(db, user_id)
    progress_engine = ProgressEngine(store)
    if settings.persist_snapshots:
        progress_engine.add_listener(snapshot_listener(store))
    return progress_engine, store


@app.get("/health", response_model=HealthOut)
def health() -> HealthOut:
    return HealthOut(ok=True, service=settings.service_name)


@app.post("/v1/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Annotated[DBSession, Depends(get_db)]) -> User:
    user = User(display_name=payload.display_name.strip())
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@app.get("/v1/users/{user_id}", response_model=UserOut)
def get_user(user_id: str, db: Annotated[DBSession, Depends(get_db)]) -> User:
    return _must_get_user(db, user_id)


@app.post("/v1/users/{user_id}/sessions", response_model=PracticeSessionOut, status_code=status.HTTP_201_CREATED)
def record_practice_session(
    user_id: str,
    payload: PracticeSessionIn,
    db: Annotated[DBSession, Depends(get_db)],
) -> PracticeSessionOut:
    _must_get_user(db, user_id)
    store = SqlRecordStore(db, user_id)
    row, existed = store.add_practice_session(
        recorded_at=payload.timestamp,
        duration_minutes=payload.duration_minutes,
        rating=payload.rating,
        level_label=payload.level_label,
        stage_level=payload.stage_level,
        session_kind=payload.session_kind,
        client_session_id=payload.client_session_id,
    )
    db.commit()
    out = PracticeSessionOut.model_validate(row)
    out.idempotency_hit = existed
    return out


@app.get("/v1/users/{user_id}/sessions", response_model=list[PracticeSessionOut])
def list_practice_sessions(user_id: str, db: Annotated[DBSession, Depends(get_db)]) -> list[PracticeSessionRecord]:
    _must_get_user(db, user_id)
    return list(
        db.scalars(
            select(PracticeSessionRecord)
            .where(PracticeSessionRecord.user_id == user_id)
            .order_by(PracticeSessionRecord.recorded_at.asc(), PracticeSessionRecord.id.asc())
        ).all()
    )


@app.post("/v1/users/{user_id}/notes", response_model=EmotionalNoteOut, status_code=status.HTTP_201_CREATED)
def record_emotional_note(
    user_id: str,
    payload: EmotionalNoteIn,
    db: Annotated[DBSession, Depends(get_db)],
) -> EmotionalNoteRecord:
    _must_get_user(db, user_id)
    row = SqlRecordStore(db, user_id).add_emotional_note(
        recorded_at=payload.timestamp,
        mood=payload.mood,
        energy=payload.energy,
        stress=payload.stress,
        content=payload.content,
    )
    db.commit()
    return row


@app.put("/v1/users/{user_id}/questionnaire", response_model=QuestionnaireOut)
def save_questionnaire(
    user_id: str,
    payload: QuestionnaireIn,
    db: Annotated[DBSession, Depends(get_db)],
) -> QuestionnaireRecord:
    _must_get_user(db, user_id)
    row = SqlRecordStore(db, user_id).save_questionnaire(completed=payload.completed, responses=payload.responses)
    db.commit()
    return row


@app.put("/v1/users/{user_id}/self-assessment", response_model=SelfAssessmentOut)
def save_self_assessment(
    user_id: str,
    payload: SelfAssessmentIn,
    db: Annotated[DBSession, Depends(get_db)],
) -> SelfAssessmentRecord:
    _must_get_user(db, user_id)
    row = SqlRecordStore(db, user_id).save_self_assessment(
        completed=payload.completed,
        levels={category: level for category, level in payload.categories.items()},
    )
    db.commit()
    return row


@app.get("/v1/users/{user_id}/progress", response_model=UserProgressOut)
def get_user_progress(user_id: str, db: Annotated[DBSession, Depends(get_db)]) -> UserProgressOut:
    _must_get_user(db, user_id)
    progress_engine, _ = _progress_engine(db, user_id)
    progress = progress_engine.compute_progress()
    db.commit()
    return UserProgressOut.model_validate(progress)


@app.get("/v1/users/{user_id}/streak", response_model=StreakOut)
def get_streak(user_id: str, db: Annotated[DBSession, Depends(get_db)]) -> StreakOut:
    _must_get_user(db, user_id)
    progress_engine, _ = _progress_engine(db, user_id)
    return StreakOut(user_id=user_id, practice_streak=progress_engine.get_streak())


@app.get("/v1/users/{user_id}/levels", response_model=StageProgressOut)
def get_levels(user_id: str, db: Annotated[DBSession, Depends(get_db)]) -> StageProgressOut:
    _must_get_user(db, user_id)
    progress_engine, _ = _progress_engine(db, user_id)
    stage_progress = progress_engine.get_stage_progress()
    return StageProgressOut(
        user_id=user_id,
        all_t_levels_completed=stage_progress.all_t_levels_completed,
        t_levels=[TLevelProgressOut.model_validate(stage_progress.t_levels[level]) for level in T_LEVELS],
        pahm_stages=[PAHMStageProgressOut.model_validate(stage_progress.pahm_stages[stage]) for stage in PAHM_STAGES],
    )


@app.post("/v1/users/{user_id}/levels/t/{level}/complete", response_model=TLevelProgressOut)
def complete_t_level(user_id: str, level: str, db: Annotated[DBSession, Depends(get_db)]) -> TLevelProgressOut:
    _must_get_user(db, user_id)
    progress_engine, store = _progress_engine(db, user_id)
    row = store.mark_t_level_complete(level)
    db.commit()
    return TLevelProgressOut.model_validate(progress_engine.get_stage_progress().t_levels[row.level])


@app.put("/v1/users/{user_id}/levels/pahm/{stage}", response_model=PAHMStageProgressOut)
def update_pahm_stage(
    user_id: str,
    stage: str,
    payload: PAHMStageUpdate,
    db: Annotated[DBSession, Depends(get_db)],
) -> PAHMStageProgressOut:
    _must_get_user(db, user_id)
    progress_engine, store = _progress_engine(db, user_id)
    try:
        row = store.set_pahm_stage(stage, hours=payload.hours, completed=payload.completed)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    db.commit()
    return PAHMStageProgressOut.model_validate(progress_engine.get_stage_progress().pahm_stages[row.stage])


@app.get("/v1/users/{user_id}/access/t/{level}", response_model=AccessDecisionOut)
def check_t_level_access(user_id: str, level: str, db: Annotated[DBSession, Depends(get_db)]) -> AccessDecisionOut:
    _must_get_user(db, user_id)
    progress_engine, _ = _progress_engine(db, user_id)
    return AccessDecisionOut.model_validate(progress_engine.check_t_level_access(level))


@app.get("/v1/users/{user_id}/access/pahm/{stage}", response_model=AccessDecisionOut)
def check_pahm_stage_access(user_id: str, stage: str, db: Annotated[DBSession, Depends(get_db)]) -> AccessDecisionOut:
    _must_get_user(db, user_id)
    progress_engine, _ = _progress_engine(db, user_id)
    return AccessDecisionOut.model_validate(progress_engine.check_pahm_stage_access(stage))


@app.get("/v1/users/{user_id}/access/current-stage", response_model=CurrentStageOut)
def get_current_stage(user_id: str, db: Annotated[DBSession, Depends(get_db)]) -> CurrentStageOut:
    _must_get_user(db, user_id)
    progress_engine, _ = _progress_engine(db, user_id)
    return CurrentStageOut(
        user_id=user_id,
        current_stage=progress_engine.get_current_accessible_stage(),
        next_stage=progress_engine.get_next_accessible_stage(),
    )


@app.get("/v1/users/{user_id}/progress/summary", response_model=ProgressSummaryOut)
def get_progress_summary(user_id: str, db: Annotated[DBSession, Depends(get_db)]) -> ProgressSummaryOut:
    _must_get_user(db, user_id)
    progress_engine, _ = _progress_engine(db, user_id)
    return ProgressSummaryOut.model_validate(progress_engine.get_progress_summary())


@app.get("/v1/users/{user_id}/progress/snapshot", response_model=SnapshotOut)
def get_progress_snapshot(user_id: str, db: Annotated[DBSession, Depends(get_db)]) -> ProgressSnapshot:
    _must_get_user(db, user_id)
    snapshot = SqlRecordStore(db, user_id).get_snapshot()
    if snapshot is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No progress snapshot available")
    return snapshot
