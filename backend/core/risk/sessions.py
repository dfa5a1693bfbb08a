"""Trading session windows (UTC) and weekend closure."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from core.models.risk import SessionFilter


@dataclass(frozen=True)
class SessionWindow:
    name: str
    start_hour: int
    end_hour: int

    def contains(self, hour: int) -> bool:
        """True if the UTC hour is inside the window; handles windows that wrap midnight."""
        if self.start_hour <= self.end_hour:
            return self.start_hour <= hour < self.end_hour
        return hour >= self.start_hour or hour < self.end_hour


LONDON = SessionWindow(name="London", start_hour=7, end_hour=16)
NEW_YORK = SessionWindow(name="New York", start_hour=12, end_hour=21)
TOKYO = SessionWindow(name="Tokyo", start_hour=0, end_hour=9)
SYDNEY = SessionWindow(name="Sydney", start_hour=21, end_hour=6)

SESSIONS = (LONDON, NEW_YORK, TOKYO, SYDNEY)


def _utc(now: datetime) -> datetime:
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def active_sessions(now: datetime) -> list[SessionWindow]:
    """Sessions open at ``now``."""
    hour = _utc(now).hour
    return [s for s in SESSIONS if s.contains(hour)]


def is_weekend(now: datetime) -> bool:
    """Weekend closure runs from Friday 21:00 UTC to Sunday 21:00 UTC."""
    now = _utc(now)
    day = now.weekday()  # Monday = 0
    hour = now.hour
    return (day == 4 and hour >= 21) or day == 5 or (day == 6 and hour < 21)


def allowed_sessions(session_filter: SessionFilter) -> list[SessionWindow]:
    flags = (
        (LONDON, session_filter.allow_london),
        (NEW_YORK, session_filter.allow_new_york),
        (TOKYO, session_filter.allow_tokyo),
        (SYDNEY, session_filter.allow_sydney),
    )
    return [window for window, allowed in flags if allowed]
