"""Completion handling for pomodoro intervals: history, task progress, next interval."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from typing import Callable, Optional

from clock import MS_PER_SECOND, Clock, system_now_ms
from contracts.notifications import NOTIFY_SESSION_END, Notification
from contracts.state import (
    MODE_FOCUS,
    MODE_SHORT_BREAK,
    STATUS_IDLE,
    STATUS_RUNNING,
    TYPE_TIMER,
    SessionLogEntry,
    Settings,
    Task,
    TimerState,
)
from storage import StateRepository

from .constants import (
    BREAK_COMPLETE_MESSAGE,
    FOCUS_COMPLETE_MESSAGE,
    SECONDS_PER_MINUTE,
    SESSION_END_TITLE,
)


@dataclass(frozen=True)
class IntervalPlan:
    """Pure outcome of finishing the current interval."""
    entry: SessionLogEntry
    timer: TimerState
    was_focus: bool
    auto_start: bool

    @property
    def next_fire_at_ms(self) -> Optional[int]:
        if not self.auto_start or self.timer.started_at_ms is None:
            return None
        return self.timer.started_at_ms + round(self.timer.anchor_value_seconds * MS_PER_SECOND)


@dataclass(frozen=True)
class CompletedInterval:
    plan: IntervalPlan
    tasks: tuple[Task, ...]
    notification: Notification


def next_mode_after(mode: str) -> str:
    # Long breaks are only ever chosen by hand.
    if mode == MODE_FOCUS:
        return MODE_SHORT_BREAK
    return MODE_FOCUS


def plan_completion(
    timer: TimerState,
    settings: Settings,
    now_ms: int,
    *,
    entry_id: str,
) -> IntervalPlan:
    was_focus = timer.mode == MODE_FOCUS
    entry = SessionLogEntry(
        id=entry_id,
        timestamp_ms=now_ms,
        duration_minutes=timer.duration_minutes,
        mode=timer.mode,
        task_id=timer.active_task_id,
    )

    next_mode = next_mode_after(timer.mode)
    next_duration = settings.duration_for(next_mode)
    auto_start = settings.auto_start_breaks if was_focus else settings.auto_start_pomos
    next_timer = replace(
        timer,
        status=STATUS_RUNNING if auto_start else STATUS_IDLE,
        mode=next_mode,
        duration_minutes=next_duration,
        anchor_value_seconds=float(next_duration * SECONDS_PER_MINUTE),
        started_at_ms=now_ms if auto_start else None,
        is_ringing=True,
    )
    return IntervalPlan(entry=entry, timer=next_timer, was_focus=was_focus, auto_start=auto_start)


def credit_task(tasks: tuple[Task, ...], task_id: Optional[str]) -> tuple[Task, ...]:
    """Add one completed interval to `task_id`; unknown ids leave tasks unchanged."""
    if task_id is None:
        return tasks
    return tuple(
        replace(task, completed_intervals=task.completed_intervals + 1)
        if task.id == task_id
        else task
        for task in tasks
    )


class SessionRecorder:
    """Turns a pomodoro wake-up into a history entry and the next timer state."""

    def __init__(
        self,
        repository: StateRepository,
        *,
        now_fn: Clock = system_now_ms,
        id_fn: Callable[[], str] = lambda: str(uuid.uuid4()),
        logger: Optional[logging.Logger] = None,
    ):
        self._repository = repository
        self._now = now_fn
        self._new_id = id_fn
        self._logger = logger or logging.getLogger("session_recorder")

    def complete_interval(
        self,
        *,
        arm_next: Optional[Callable[[int], None]] = None,
    ) -> Optional[CompletedInterval]:
        """Record the finished interval and write the next timer state.

        When the next interval auto-starts, `arm_next` is called with its
        completion time before anything is persisted.
        """
        snapshot = self._repository.load_snapshot()
        timer = snapshot.timer
        if not timer.is_running or timer.timer_type != TYPE_TIMER:
            self._logger.debug("Ignoring stale pomodoro wake-up; timer is %s", timer.status)
            return None

        plan = plan_completion(
            timer,
            snapshot.settings,
            self._now(),
            entry_id=self._new_id(),
        )
        tasks = credit_task(snapshot.tasks, timer.active_task_id) if plan.was_focus else snapshot.tasks

        if plan.next_fire_at_ms is not None and arm_next is not None:
            arm_next(plan.next_fire_at_ms)

        self._repository.save(
            timer=plan.timer,
            history=[*snapshot.history, plan.entry],
            tasks=tasks,
        )
        self._logger.info(
            "Interval completed: mode=%s duration=%sm task=%s next=%s auto_start=%s",
            plan.entry.mode,
            plan.entry.duration_minutes,
            plan.entry.task_id,
            plan.timer.mode,
            plan.auto_start,
        )
        return CompletedInterval(
            plan=plan,
            tasks=tasks,
            notification=Notification(
                kind=NOTIFY_SESSION_END,
                title=SESSION_END_TITLE,
                message=FOCUS_COMPLETE_MESSAGE if plan.was_focus else BREAK_COMPLETE_MESSAGE,
                play_sound=snapshot.settings.sound_enabled,
            ),
        )
