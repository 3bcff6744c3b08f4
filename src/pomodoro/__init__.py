from .engine import (
    PomodoroWakeups,
    TimerActionResult,
    TimerEngine,
    current_display_seconds,
    fresh_anchor_seconds,
)
from .recorder import (
    CompletedInterval,
    IntervalPlan,
    SessionRecorder,
    credit_task,
    next_mode_after,
    plan_completion,
)
from .settings import update_settings
from .stats import DailyFocus, HistorySummary, summarize_history
from .tasks import TaskService

__all__ = [
    "CompletedInterval",
    "DailyFocus",
    "HistorySummary",
    "IntervalPlan",
    "PomodoroWakeups",
    "SessionRecorder",
    "TaskService",
    "TimerActionResult",
    "TimerEngine",
    "credit_task",
    "current_display_seconds",
    "fresh_anchor_seconds",
    "next_mode_after",
    "plan_completion",
    "summarize_history",
    "update_settings",
]
