#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
from pathlib import Path

import httpx


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import a JSON log of practice sessions into the progress API.")
    parser.add_argument("--base-url", default="http://127.0.0.1:8000", help="API base URL.")
    parser.add_argument("--user-id", required=True, help="Target user id.")
    parser.add_argument("--log-file", required=True, help="JSON file holding a list of session objects.")
    parser.add_argument("--source", default="session_log", help="Prefix for generated client session ids.")
    return parser.parse_args()


def load_sessions(path: Path, source: str) -> list[dict]:
    entries = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(entries, list):
        raise ValueError("Session log must be a JSON list")
    sessions = []
    for index, entry in enumerate(entries):
        session = {
            "client_session_id": entry.get("client_session_id") or f"{source}-{index}",
            "timestamp": entry.get("timestamp"),
            "duration_minutes": entry.get("duration_minutes", entry.get("duration", 0)),
            "rating": entry.get("rating"),
            "level_label": entry.get("level_label"),
            "stage_level": entry.get("stage_level"),
            "session_kind": entry.get("session_kind", "meditation"),
        }
        sessions.append({key: value for key, value in session.items() if value is not None})
    return sessions


def main() -> int:
    args = parse_args()
    sessions = load_sessions(Path(args.log_file), args.source)

    results = {"imported": 0, "duplicates": 0, "failed": []}
    with httpx.Client(timeout=20.0) as client:
        for session in sessions:
            resp = client.post(f"{args.base_url}/v1/users/{args.user_id}/sessions", json=session)
            if resp.status_code >= 400:
                results["failed"].append({"client_session_id": session["client_session_id"], "status": resp.status_code, "text": resp.text})
                continue
            if resp.json().get("idempotency_hit"):
                results["duplicates"] += 1
            else:
                results["imported"] += 1

        progress = client.get(f"{args.base_url}/v1/users/{args.user_id}/progress")
        if progress.status_code < 400:
            results["progress"] = progress.json()

    print(json.dumps(results, indent=2))
    return 0 if not results["failed"] else 1


if __name__ == "__main__":
    raise SystemExit(main())
