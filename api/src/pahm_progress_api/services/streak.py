from __future__ import annotations

import datetime as dt
from typing import Iterable

from .records import PracticeSession


def _today(now: dt.datetime | None) -> dt.date:
    now = now or dt.datetime.now(dt.timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(dt.timezone.utc)
    return now.date()


def calculate_streak(sessions: Iterable[PracticeSession], *, now: dt.datetime | None = None) -> int:
    """Consecutive practice days ending today; several sessions on one day count once."""
    days = sorted({session.timestamp.date() for session in sessions}, reverse=True)
    if not days:
        return 0

    cursor = _today(now)
    streak = 0
    for day in days:
        if day > cursor:
            # future-dated sessions neither extend nor break the streak
            continue
        if day != cursor:
            break
        streak += 1
        cursor -= dt.timedelta(days=1)
    return streak
