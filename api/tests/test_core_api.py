from __future__ import annotations

import datetime as dt
import os
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure the app reads a test database URL before importing package modules.
TEST_DB_PATH = Path("/tmp/pahm_progress_api_test.db")
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["PROGRESS_PERSIST_SNAPSHOTS"] = "true"

from pahm_progress_api.db import Base, engine
from pahm_progress_api.main import app

ALL_CLEAR = {category: "none" for category in ("taste", "smell", "sound", "sight", "touch", "mind")}


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client() -> TestClient:
    with TestClient(app) as c:
        yield c


def _create_user(client: TestClient, name: str = "Asha") -> str:
    resp = client.post("/v1/users", json={"display_name": name})
    assert resp.status_code == 201
    return resp.json()["id"]


def _now_iso(days_ago: int = 0) -> str:
    return (dt.datetime.now(dt.timezone.utc) - dt.timedelta(days=days_ago)).isoformat()


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "service": "pahm-progress-api"}


def test_unknown_user_is_404(client: TestClient) -> None:
    assert client.get("/v1/users/missing").status_code == 404
    assert client.get("/v1/users/missing/progress").status_code == 404
    assert client.get("/v1/users/missing/access/t/t2").status_code == 404


def test_new_user_has_zeroed_progress_and_snapshot(client: TestClient) -> None:
    user_id = _create_user(client)

    assert client.get(f"/v1/users/{user_id}/progress/snapshot").status_code == 404

    progress = client.get(f"/v1/users/{user_id}/progress")
    assert progress.status_code == 200
    body = progress.json()
    assert body["has_minimum_data"] is False
    assert body["happiness_points"] == 0
    assert body["user_level"] == "New User"
    assert body["pahm_analysis"] is None

    snapshot = client.get(f"/v1/users/{user_id}/progress/snapshot")
    assert snapshot.status_code == 200
    assert snapshot.json()["happiness_points"] == 0
    assert snapshot.json()["payload"]["data_completeness"]["sufficient"] is False


def test_questionnaire_and_self_assessment_flow(client: TestClient) -> None:
    user_id = _create_user(client)

    questionnaire = client.put(
        f"/v1/users/{user_id}/questionnaire",
        json={"completed": True, "responses": {"experience_level": 8, "mindfulness_experience": 9}},
    )
    assert questionnaire.status_code == 200
    assert questionnaire.json()["completed"] is True

    assessment = client.put(f"/v1/users/{user_id}/self-assessment", json={"completed": True, "categories": ALL_CLEAR})
    assert assessment.status_code == 200
    assert assessment.json()["attachment_score"] == 0
    assert assessment.json()["non_attachment_count"] == 6

    body = client.get(f"/v1/users/{user_id}/progress").json()
    assert body["has_minimum_data"] is True
    assert body["breakdown"]["pahm_development"] == 30
    assert body["breakdown"]["attachment_flexibility"] == 85
    assert body["pahm_analysis"]["development_stage"] == "Initial Awareness"
    assert body["happiness_points"] == 37
    assert body["user_level"] == "Emerging Practitioner"

    snapshot = client.get(f"/v1/users/{user_id}/progress/snapshot").json()
    assert snapshot["happiness_points"] == 37
    assert snapshot["payload"]["breakdown"]["attachment_flexibility"] == 85


def test_session_ingest_is_idempotent_and_unlocks_t2(client: TestClient) -> None:
    user_id = _create_user(client)

    for i in range(3):
        resp = client.post(
            f"/v1/users/{user_id}/sessions",
            json={
                "client_session_id": f"s-{i}",
                "timestamp": _now_iso(),
                "duration_minutes": 15,
                "rating": 5,
                "level_label": "T1",
            },
        )
        assert resp.status_code == 201
        assert resp.json()["idempotency_hit"] is False

    dup = client.post(
        f"/v1/users/{user_id}/sessions",
        json={"client_session_id": "s-0", "timestamp": _now_iso(), "rating": 5, "level_label": "T1"},
    )
    assert dup.status_code == 201
    assert dup.json()["idempotency_hit"] is True

    listed = client.get(f"/v1/users/{user_id}/sessions")
    assert len(listed.json()) == 3

    assert client.get(f"/v1/users/{user_id}/streak").json()["practice_streak"] == 1

    levels = client.get(f"/v1/users/{user_id}/levels").json()
    assert levels["t_levels"][0] == {
        "level": 1,
        "label": "T1",
        "completed": True,
        "session_count": 3,
        "completed_session_count": 3,
    }
    assert levels["all_t_levels_completed"] is False

    assert client.get(f"/v1/users/{user_id}/access/t/t2").json()["allowed"] is True
    denied = client.get(f"/v1/users/{user_id}/access/t/t3").json()
    assert denied == {
        "allowed": False,
        "requirement_message": "Complete at least 3 T2 sessions before accessing T3 (current 0/3)",
        "missing_kind": "sessions",
    }

    progress = client.get(f"/v1/users/{user_id}/progress").json()
    assert progress["has_minimum_data"] is True
    assert 0 <= progress["happiness_points"] <= 100
    assert progress["practice_streak"] == 1


def test_invalid_payloads_are_rejected(client: TestClient) -> None:
    user_id = _create_user(client)

    assert client.post(f"/v1/users/{user_id}/sessions", json={"rating": 6}).status_code == 422
    assert client.post(f"/v1/users/{user_id}/sessions", json={"duration_minutes": -1}).status_code == 422
    assert client.post(f"/v1/users/{user_id}/notes", json={"mood": 11}).status_code == 422
    bad_assessment = {"completed": True, "categories": {"taste": "extreme"}}
    assert client.put(f"/v1/users/{user_id}/self-assessment", json=bad_assessment).status_code == 422
    assert client.get(f"/v1/users/{user_id}/access/t/t9").status_code == 422
    assert client.get(f"/v1/users/{user_id}/access/pahm/9").status_code == 422
    assert client.put(f"/v1/users/{user_id}/levels/pahm/3", json={"hours": -2}).status_code == 422
    assert client.put(f"/v1/users/{user_id}/levels/pahm/1", json={"hours": 2}).status_code == 422


def test_malformed_questionnaire_answers_do_not_break_progress(client: TestClient) -> None:
    user_id = _create_user(client)
    resp = client.put(
        f"/v1/users/{user_id}/questionnaire",
        json={"completed": True, "responses": {"goals": 5, "stress_triggers": {"work": 1}, "sleep_pattern": "lots"}},
    )
    assert resp.status_code == 200
    for i in range(3):
        client.post(
            f"/v1/users/{user_id}/sessions",
            json={"client_session_id": f"m-{i}", "timestamp": _now_iso(), "rating": 4, "level_label": "t1"},
        )

    assert client.get(f"/v1/users/{user_id}/access/t/t2").json()["allowed"] is True
    assert client.get(f"/v1/users/{user_id}/streak").json()["practice_streak"] == 1
    assert client.get(f"/v1/users/{user_id}/levels").status_code == 200
    assert client.get(f"/v1/users/{user_id}/progress/summary").status_code == 200
    progress = client.get(f"/v1/users/{user_id}/progress").json()
    assert progress["has_minimum_data"] is True
    assert progress["happiness_points"] > 0


def test_lower_hours_do_not_revoke_a_completed_stage(client: TestClient) -> None:
    user_id = _create_user(client)
    for level in ("t1", "t2", "t3", "t4", "t5"):
        client.post(f"/v1/users/{user_id}/levels/t/{level}/complete")

    assert client.put(f"/v1/users/{user_id}/levels/pahm/2", json={"hours": 15}).json()["completed"] is True
    corrected = client.put(f"/v1/users/{user_id}/levels/pahm/2", json={"hours": 10})
    assert corrected.status_code == 200
    assert corrected.json()["completed"] is True
    assert corrected.json()["accumulated_hours"] == 10
    assert client.get(f"/v1/users/{user_id}/access/pahm/3").json()["allowed"] is True

    revoked = client.put(f"/v1/users/{user_id}/levels/pahm/2", json={"hours": 10, "completed": False})
    assert revoked.json()["completed"] is False
    assert client.get(f"/v1/users/{user_id}/access/pahm/3").json()["allowed"] is False


def test_notes_feed_current_mood(client: TestClient) -> None:
    user_id = _create_user(client)
    client.put(f"/v1/users/{user_id}/questionnaire", json={"completed": True, "responses": {}})
    client.post(f"/v1/users/{user_id}/sessions", json={"timestamp": _now_iso(), "rating": 4})

    note = client.post(f"/v1/users/{user_id}/notes", json={"mood": 10, "content": "Calm after sitting"})
    assert note.status_code == 201
    assert note.json()["mood"] == 10

    body = client.get(f"/v1/users/{user_id}/progress").json()
    assert body["breakdown"]["current_mood_state"] == 60


def test_completion_events_drive_pahm_access(client: TestClient) -> None:
    user_id = _create_user(client)

    gated = client.get(f"/v1/users/{user_id}/access/pahm/2").json()
    assert gated["allowed"] is False
    assert gated["missing_kind"] == "progression"

    for level in ("t1", "t2", "t3", "t4", "t5"):
        resp = client.post(f"/v1/users/{user_id}/levels/t/{level}/complete")
        assert resp.status_code == 200
        assert resp.json()["completed"] is True

    assert client.get(f"/v1/users/{user_id}/access/pahm/2").json()["allowed"] is True
    stage = client.get(f"/v1/users/{user_id}/access/current-stage").json()
    assert stage == {"user_id": user_id, "current_stage": 2, "next_stage": 3}

    stage_two = client.put(f"/v1/users/{user_id}/levels/pahm/2", json={"hours": 15})
    assert stage_two.status_code == 200
    assert stage_two.json()["completed"] is True

    client.put(f"/v1/users/{user_id}/levels/pahm/3", json={"hours": 6.5})
    stage = client.get(f"/v1/users/{user_id}/access/current-stage").json()
    assert stage["current_stage"] == 3
    assert stage["next_stage"] == 4

    denied = client.get(f"/v1/users/{user_id}/access/pahm/4").json()
    assert denied["requirement_message"] == (
        "Complete Stage 3 (PAHM Beginner) with 15 hours of practice before accessing Stage 4"
    )

    summary = client.get(f"/v1/users/{user_id}/progress/summary").json()
    assert summary["completed_t_levels"] == 5
    assert summary["stage_one_complete"] is True
    assert summary["completed_pahm_stages"] == 1
    assert summary["total_pahm_hours"] == 21.5
    assert summary["current_level"] == "PAHM Beginner"
    assert summary["next_milestone"] == "Unlock PAHM Practitioner"
