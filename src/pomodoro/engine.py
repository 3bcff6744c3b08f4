"""Countdown/stopwatch state machine persisted as an anchor plus start timestamp.

No component keeps a ticking counter. The displayed time is always derived
from the stored anchor and the current clock by `current_display_seconds`,
so every process reading the store arrives at the same value, across
restarts and without coordination.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional, Protocol

from clock import MS_PER_SECOND, Clock, system_now_ms
from contracts.state import (
    MODE_FOCUS,
    STATUS_IDLE,
    STATUS_PAUSED,
    STATUS_RUNNING,
    TIMER_MODES,
    TIMER_TYPES,
    TYPE_STOPWATCH,
    TYPE_TIMER,
    TimerState,
)
from storage import StateRepository, find_by_id

from .constants import (
    ACTION_DISMISS,
    ACTION_PAUSE,
    ACTION_RESET,
    ACTION_SET_MODE,
    ACTION_SET_TYPE,
    ACTION_START,
    ACTION_START_TASK,
    REASON_ALREADY_RUNNING,
    REASON_DISMISSED,
    REASON_MODE_CHANGED,
    REASON_NOT_RINGING,
    REASON_NOT_RUNNING,
    REASON_PAUSED,
    REASON_RESET,
    REASON_STARTED,
    REASON_TASK_STARTED,
    REASON_TYPE_CHANGED,
    REASON_UNKNOWN_TASK,
    SECONDS_PER_MINUTE,
)


class PomodoroWakeups(Protocol):
    """Subset of the alarm scheduler the engine arms its completion through."""

    def arm_pomodoro(self, fire_at_ms: int) -> None:
        ...

    def disarm_pomodoro(self) -> None:
        ...


@dataclass(frozen=True)
class TimerActionResult:
    """Result envelope returned after applying a timer action."""
    action: str
    accepted: bool
    reason: str
    state: TimerState


def current_display_seconds(state: TimerState, now_ms: int) -> float:
    """Remaining (timer) or elapsed (stopwatch) seconds at `now_ms`."""
    if state.status != STATUS_RUNNING or state.started_at_ms is None:
        return state.anchor_value_seconds

    elapsed = max(0, now_ms - state.started_at_ms) / MS_PER_SECOND
    if state.timer_type == TYPE_TIMER:
        return max(0.0, state.anchor_value_seconds - elapsed)
    return state.anchor_value_seconds + elapsed


def fresh_anchor_seconds(timer_type: str, duration_minutes: int) -> float:
    if timer_type == TYPE_STOPWATCH:
        return 0.0
    return float(duration_minutes * SECONDS_PER_MINUTE)


class TimerEngine:
    """Applies timer actions as read-latest, compute, write-back updates."""

    def __init__(
        self,
        repository: StateRepository,
        wakeups: PomodoroWakeups,
        *,
        now_fn: Clock = system_now_ms,
        logger: Optional[logging.Logger] = None,
    ):
        self._repository = repository
        self._wakeups = wakeups
        self._now = now_fn
        self._logger = logger or logging.getLogger("pomodoro")

    def state(self) -> TimerState:
        return self._repository.load_timer()

    def display_seconds(self) -> float:
        return current_display_seconds(self._repository.load_timer(), self._now())

    def start(self) -> TimerActionResult:
        timer = self._repository.load_timer()
        if timer.is_running:
            return self._rejected(ACTION_START, REASON_ALREADY_RUNNING, timer)

        now = self._now()
        updated = replace(timer, status=STATUS_RUNNING, started_at_ms=now)
        if updated.timer_type == TYPE_TIMER:
            self._wakeups.arm_pomodoro(_completion_time_ms(updated))
        self._repository.save(timer=updated)
        self._logger.info(
            "Timer started: type=%s mode=%s anchor=%.1fs",
            updated.timer_type,
            updated.mode,
            updated.anchor_value_seconds,
        )
        return TimerActionResult(ACTION_START, True, REASON_STARTED, updated)

    def pause(self) -> TimerActionResult:
        timer = self._repository.load_timer()
        if not timer.is_running:
            return self._rejected(ACTION_PAUSE, REASON_NOT_RUNNING, timer)

        updated = replace(
            timer,
            status=STATUS_PAUSED,
            started_at_ms=None,
            anchor_value_seconds=current_display_seconds(timer, self._now()),
        )
        self._wakeups.disarm_pomodoro()
        self._repository.save(timer=updated)
        self._logger.info(
            "Timer paused: type=%s anchor=%.1fs",
            updated.timer_type,
            updated.anchor_value_seconds,
        )
        return TimerActionResult(ACTION_PAUSE, True, REASON_PAUSED, updated)

    def reset(self) -> TimerActionResult:
        snapshot = self._repository.load_snapshot()
        updated = self._idle_state(
            snapshot.timer,
            duration_minutes=snapshot.settings.duration_for(snapshot.timer.mode),
        )
        self._wakeups.disarm_pomodoro()
        self._repository.save(timer=updated)
        self._logger.info("Timer reset: mode=%s duration=%sm", updated.mode, updated.duration_minutes)
        return TimerActionResult(ACTION_RESET, True, REASON_RESET, updated)

    def set_mode(self, mode: str) -> TimerActionResult:
        if mode not in TIMER_MODES:
            raise ValueError(f"Unsupported timer mode: {mode!r}")

        snapshot = self._repository.load_snapshot()
        updated = self._idle_state(
            replace(snapshot.timer, mode=mode),
            duration_minutes=snapshot.settings.duration_for(mode),
        )
        self._wakeups.disarm_pomodoro()
        self._repository.save(timer=updated)
        self._logger.info("Timer mode changed: mode=%s", mode)
        return TimerActionResult(ACTION_SET_MODE, True, REASON_MODE_CHANGED, updated)

    def set_type(self, timer_type: str) -> TimerActionResult:
        if timer_type not in TIMER_TYPES:
            raise ValueError(f"Unsupported timer type: {timer_type!r}")

        snapshot = self._repository.load_snapshot()
        updated = self._idle_state(
            replace(snapshot.timer, timer_type=timer_type),
            duration_minutes=snapshot.settings.duration_for(snapshot.timer.mode),
        )
        self._wakeups.disarm_pomodoro()
        self._repository.save(timer=updated)
        self._logger.info("Timer type changed: type=%s", timer_type)
        return TimerActionResult(ACTION_SET_TYPE, True, REASON_TYPE_CHANGED, updated)

    def start_task(self, task_id: Optional[str]) -> TimerActionResult:
        """Bind a task (or none) and prepare an idle focus countdown for it."""
        snapshot = self._repository.load_snapshot()
        duration = snapshot.settings.focus_minutes
        if task_id is not None:
            task = find_by_id(snapshot.tasks, task_id)
            if task is None:
                self._logger.debug("start_task ignored for unknown task %s", task_id)
                return self._rejected(ACTION_START_TASK, REASON_UNKNOWN_TASK, snapshot.timer)
            if task.duration_minutes:
                duration = task.duration_minutes

        updated = self._idle_state(
            replace(
                snapshot.timer,
                timer_type=TYPE_TIMER,
                mode=MODE_FOCUS,
                active_task_id=task_id,
            ),
            duration_minutes=duration,
        )
        self._wakeups.disarm_pomodoro()
        self._repository.save(timer=updated)
        self._logger.info("Task bound to timer: task=%s duration=%sm", task_id, duration)
        return TimerActionResult(ACTION_START_TASK, True, REASON_TASK_STARTED, updated)

    def dismiss_ringing(self) -> TimerActionResult:
        timer = self._repository.load_timer()
        if not timer.is_ringing:
            return self._rejected(ACTION_DISMISS, REASON_NOT_RINGING, timer)

        updated = replace(timer, is_ringing=False)
        self._repository.save(timer=updated)
        return TimerActionResult(ACTION_DISMISS, True, REASON_DISMISSED, updated)

    def resume(self) -> bool:
        """Re-arm the completion wake-up of a countdown that was running before a restart.

        A countdown that ran out while no process was alive fires immediately.
        """
        timer = self._repository.load_timer()
        if not timer.is_running or timer.timer_type != TYPE_TIMER:
            return False

        fire_at = _completion_time_ms(timer)
        self._wakeups.arm_pomodoro(fire_at)
        self._logger.info(
            "Resumed running countdown: remaining=%.1fs",
            current_display_seconds(timer, self._now()),
        )
        return True

    def _idle_state(self, timer: TimerState, *, duration_minutes: int) -> TimerState:
        return replace(
            timer,
            status=STATUS_IDLE,
            started_at_ms=None,
            duration_minutes=duration_minutes,
            anchor_value_seconds=fresh_anchor_seconds(timer.timer_type, duration_minutes),
        )

    def _rejected(self, action: str, reason: str, timer: TimerState) -> TimerActionResult:
        self._logger.debug("Timer action %s ignored: %s", action, reason)
        return TimerActionResult(action, False, reason, timer)


def _completion_time_ms(timer: TimerState) -> int:
    started_at = timer.started_at_ms if timer.started_at_ms is not None else 0
    return started_at + round(timer.anchor_value_seconds * MS_PER_SECOND)
