"""Reserved wake-up names and recurrence periods used by the alarm scheduler."""

from __future__ import annotations

from typing import Optional

from contracts.state import (
    RECURRENCE_DAILY,
    RECURRENCE_HOURLY,
    RECURRENCE_WEEKLY,
)

POMODORO_WAKEUP_NAME = "pomodoro-timer"
USER_ALARM_PREFIX = "user-alarm-"

# Recurrences the platform re-arms on its own; monthly is re-armed on each fire.
PERIOD_MINUTES: dict[str, int] = {
    RECURRENCE_HOURLY: 60,
    RECURRENCE_DAILY: 24 * 60,
    RECURRENCE_WEEKLY: 7 * 24 * 60,
}

DEFAULT_ALARM_LABEL = "Alarm"


def user_alarm_wakeup_name(alarm_id: str) -> str:
    return f"{USER_ALARM_PREFIX}{alarm_id}"


def alarm_id_from_wakeup_name(name: str) -> Optional[str]:
    if not name.startswith(USER_ALARM_PREFIX):
        return None
    alarm_id = name[len(USER_ALARM_PREFIX):]
    return alarm_id or None
