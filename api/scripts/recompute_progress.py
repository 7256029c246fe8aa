from __future__ import annotations

import argparse
import datetime as dt
import json
from pathlib import Path

from sqlalchemy import select

from pahm_progress_api.config import configure_logging
from pahm_progress_api.db import Base, SessionLocal, engine
from pahm_progress_api.models import User
from pahm_progress_api.services.engine import ProgressEngine
from pahm_progress_api.services.store import SqlRecordStore, snapshot_listener

ROOT = Path(__file__).resolve().parents[1]
REPORT_PATH = ROOT / "reports" / "progress_recompute.json"


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Recompute stored progress snapshots.")
    parser.add_argument("--user-id", default=None, help="Only recompute this user.")
    parser.add_argument("--no-store", action="store_true", help="Compute and report without saving snapshots.")
    parser.add_argument("--report", default=str(REPORT_PATH), help="Where to write the JSON report.")
    return parser.parse_args()


def _ensure_schema() -> None:
    # A fresh SQLite file has no tables yet.
    Base.metadata.create_all(bind=engine)


def main() -> int:
    args = parse_args()
    configure_logging()
    _ensure_schema()

    users: list[dict] = []
    with SessionLocal() as db:
        query = select(User.id).order_by(User.created_at.asc())
        if args.user_id:
            query = query.where(User.id == args.user_id)
        user_ids = list(db.scalars(query).all())

        for user_id in user_ids:
            store = SqlRecordStore(db, user_id)
            progress_engine = ProgressEngine(store)
            if not args.no_store:
                progress_engine.add_listener(snapshot_listener(store))
            progress = progress_engine.compute_progress()
            users.append(
                {
                    "user_id": user_id,
                    "happiness_points": progress.happiness_points,
                    "user_level": progress.user_level,
                    "has_minimum_data": progress.has_minimum_data,
                    "current_stage": progress_engine.get_current_accessible_stage(),
                    "practice_streak": progress.practice_streak,
                }
            )
        db.commit()

    report = {
        "generated_at": dt.datetime.now(dt.timezone.utc).isoformat(),
        "status": "PASS" if users or not args.user_id else "FAIL",
        "users_recomputed": len(users),
        "snapshots_stored": not args.no_store,
        "users": users,
    }
    report_path = Path(args.report)
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(json.dumps(report, indent=2), encoding="utf-8")
    print(json.dumps(report, indent=2))
    return 0 if report["status"] == "PASS" else 1


if __name__ == "__main__":
    raise SystemExit(main())
