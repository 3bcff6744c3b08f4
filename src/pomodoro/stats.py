"""Focus statistics derived from the append-only session history."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable, Optional

from clock import MS_PER_SECOND
from contracts.state import MODE_FOCUS, SessionLogEntry


@dataclass(frozen=True)
class DailyFocus:
    day: date
    minutes: int


@dataclass(frozen=True)
class HistorySummary:
    total_focus_minutes: int
    focus_sessions: int
    today_minutes: int
    daily: tuple[DailyFocus, ...]


def summarize_history(
    history: Iterable[SessionLogEntry],
    now_ms: int,
    *,
    days: int = 7,
    tz: Optional[tzinfo] = None,
) -> HistorySummary:
    """Aggregate focus minutes overall, for today and for the last `days` local days."""
    if days <= 0:
        raise ValueError("days must be greater than zero")

    focus_entries = [entry for entry in history if entry.mode == MODE_FOCUS]
    minutes_by_day: dict[date, int] = {}
    for entry in focus_entries:
        day = _local_day(entry.timestamp_ms, tz)
        minutes_by_day[day] = minutes_by_day.get(day, 0) + entry.duration_minutes

    today = _local_day(now_ms, tz)
    daily = tuple(
        DailyFocus(day=day, minutes=minutes_by_day.get(day, 0))
        for day in (today - timedelta(days=offset) for offset in range(days - 1, -1, -1))
    )
    return HistorySummary(
        total_focus_minutes=sum(entry.duration_minutes for entry in focus_entries),
        focus_sessions=len(focus_entries),
        today_minutes=minutes_by_day.get(today, 0),
        daily=daily,
    )


def _local_day(epoch_ms: int, tz: Optional[tzinfo]) -> date:
    seconds = epoch_ms / MS_PER_SECOND
    if tz is None:
        return datetime.fromtimestamp(seconds).date()
    return datetime.fromtimestamp(seconds, tz).date()
