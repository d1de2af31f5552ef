"""DailyLoadPolicy — calendar-day windows for capacity accounting."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Iterable


def as_utc(moment: datetime) -> datetime:
    """Naive timestamps are stored as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


@dataclass(frozen=True)
class DayWindow:
    """Half-open interval [start, end) covering one business day."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime | None) -> bool:
        if moment is None:
            return False
        return self.start <= as_utc(moment) < self.end


def day_window(now: datetime, tz: tzinfo) -> DayWindow:
    """Return the window from local midnight to the next local midnight in *tz*."""
    local_now = as_utc(now).astimezone(tz)
    start = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    return DayWindow(start=start, end=start + timedelta(days=1))


def count_in_window(timestamps: Iterable[datetime | None], window: DayWindow) -> int:
    return sum(1 for ts in timestamps if window.contains(ts))
