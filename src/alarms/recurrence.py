"""Calendar arithmetic for alarm fire times."""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta, tzinfo
from typing import Optional

from clock import MS_PER_MINUTE, MS_PER_SECOND
from contracts.state import RECURRENCE_MONTHLY, RECURRENCE_ONCE

from .constants import PERIOD_MINUTES


def add_months(epoch_ms: int, months: int, *, tz: Optional[tzinfo] = None) -> int:
    """Shift a timestamp by whole calendar months keeping the local wall time.

    A day missing from the target month is clamped to that month's last day,
    so Jan 31 moves to Feb 28 (or 29) rather than rolling into March.
    """
    seconds, millis = divmod(epoch_ms, MS_PER_SECOND)
    local = _from_timestamp(seconds, tz)
    total = local.month - 1 + months
    year = local.year + total // 12
    month = total % 12 + 1
    day = min(local.day, calendar.monthrange(year, month)[1])
    shifted = local.replace(year=year, month=month, day=day)
    return int(shifted.timestamp()) * MS_PER_SECOND + millis


def initial_fire_at(
    fire_at_ms: int,
    recurrence: str,
    now_ms: int,
    *,
    tz: Optional[tzinfo] = None,
) -> int:
    """Return the first fire time not before `now_ms` for a recurring alarm.

    One-shot alarms are returned unchanged; an expired one-shot is dropped by
    the scheduler, never moved.
    """
    if fire_at_ms >= now_ms or recurrence == RECURRENCE_ONCE:
        return fire_at_ms

    if recurrence == RECURRENCE_MONTHLY:
        months = 1
        candidate = add_months(fire_at_ms, months, tz=tz)
        while candidate < now_ms:
            months += 1
            # Always offset from the original so clamped days do not accumulate.
            candidate = add_months(fire_at_ms, months, tz=tz)
        return candidate

    period_ms = PERIOD_MINUTES[recurrence] * MS_PER_MINUTE
    missed = (now_ms - fire_at_ms) // period_ms + 1
    return fire_at_ms + missed * period_ms


def next_clock_time(
    hour: int,
    minute: int,
    now_ms: int,
    *,
    tz: Optional[tzinfo] = None,
) -> int:
    """Next occurrence of HH:MM local time: today, or tomorrow if already past."""
    if not 0 <= hour <= 23 or not 0 <= minute <= 59:
        raise ValueError(f"Invalid clock time {hour:02d}:{minute:02d}")

    now = _from_timestamp(now_ms // MS_PER_SECOND, tz)
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    candidate_ms = int(candidate.timestamp()) * MS_PER_SECOND
    if candidate_ms < now_ms:
        candidate = (candidate + timedelta(days=1)).replace(hour=hour, minute=minute)
        candidate_ms = int(candidate.timestamp()) * MS_PER_SECOND
    return candidate_ms


def _from_timestamp(seconds: int, tz: Optional[tzinfo]) -> datetime:
    # Naive local datetimes resolve DST per date when converted back.
    if tz is None:
        return datetime.fromtimestamp(seconds)
    return datetime.fromtimestamp(seconds, tz)
