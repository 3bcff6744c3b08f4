"""Alarm scheduling on top of named platform wake-ups."""

from .constants import (
    PERIOD_MINUTES,
    POMODORO_WAKEUP_NAME,
    USER_ALARM_PREFIX,
    alarm_id_from_wakeup_name,
    user_alarm_wakeup_name,
)
from .recurrence import add_months, initial_fire_at, next_clock_time
from .scheduler import AlarmScheduler, IntervalRecorder
from .service import AlarmService
from .wakeups import Wakeup, WakeupPlatform, WakeupRegistry, WakeupService

__all__ = [
    "AlarmScheduler",
    "AlarmService",
    "IntervalRecorder",
    "PERIOD_MINUTES",
    "POMODORO_WAKEUP_NAME",
    "USER_ALARM_PREFIX",
    "Wakeup",
    "WakeupPlatform",
    "WakeupRegistry",
    "WakeupService",
    "add_months",
    "alarm_id_from_wakeup_name",
    "initial_fire_at",
    "next_clock_time",
    "user_alarm_wakeup_name",
]
