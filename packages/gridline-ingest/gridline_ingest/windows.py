"""Time windows that bound each pipeline run."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from gridline_core.time import ensure_utc, to_unix, utc_now


@dataclass(frozen=True, slots=True)
class TimeWindow:
    """Half-open UTC interval ``[start, end)``."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", ensure_utc(self.start))
        object.__setattr__(self, "end", ensure_utc(self.end))
        if self.end <= self.start:
            raise ValueError("TimeWindow end must be after start")

    @property
    def start_unix(self) -> int:
        return to_unix(self.start)

    @property
    def end_unix(self) -> int:
        return to_unix(self.end)

    def contains(self, dt: datetime) -> bool:
        """True when ``dt`` falls inside the window."""
        return self.start <= ensure_utc(dt) < self.end

    def widen(self, days: int) -> TimeWindow:
        """Return a window extended by ``days`` on both sides."""
        delta = timedelta(days=days)
        return TimeWindow(self.start - delta, self.end + delta)


def current_week_window(now: datetime | None = None) -> TimeWindow:
    """
    Current UTC calendar week: Sunday 00:00 to the following Sunday 00:00.

    Example:
        >>> current_week_window(datetime(2024, 9, 11, 12, tzinfo=UTC)).start
        datetime.datetime(2024, 9, 8, 0, 0, tzinfo=datetime.timezone.utc)
    """
    now = ensure_utc(now or utc_now())
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    # weekday(): Monday=0 .. Sunday=6
    days_since_sunday = (midnight.weekday() + 1) % 7
    start = midnight - timedelta(days=days_since_sunday)
    return TimeWindow(start, start + timedelta(days=7))


def rolling_window(now: datetime | None = None, days: int = 7) -> TimeWindow:
    """Rolling window of ``days`` on either side of now."""
    if days <= 0:
        raise ValueError("days must be positive")
    now = ensure_utc(now or utc_now())
    delta = timedelta(days=days)
    return TimeWindow(now - delta, now + delta)
