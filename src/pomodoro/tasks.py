"""Task list operations, keeping the timer's task reference consistent."""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Any, Callable, Optional

from clock import Clock, system_now_ms
from contracts.state import Task
from storage import StateRepository, find_by_id

_EDITABLE_FIELDS: frozenset[str] = frozenset(
    {"title", "completed", "estimated_intervals", "duration_minutes"}
)
_MAX_TITLE_LENGTH = 200


class TaskService:
    """CRUD over the stored task list; unknown ids are ignored."""

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
        self._logger = logger or logging.getLogger("pomodoro")

    def list_tasks(self) -> tuple[Task, ...]:
        return self._repository.load_tasks()

    def add_task(
        self,
        title: str,
        *,
        estimated_intervals: int = 1,
        duration_minutes: Optional[int] = None,
    ) -> Task:
        task = Task(
            id=self._new_id(),
            title=_sanitize_title(title),
            created_at_ms=self._now(),
            estimated_intervals=_positive(estimated_intervals, "estimated_intervals"),
            duration_minutes=_optional_positive(duration_minutes, "duration_minutes"),
        )
        tasks = self._repository.load_tasks()
        self._repository.save(tasks=[*tasks, task])
        self._logger.info("Task added: id=%s title=%s", task.id, task.title)
        return task

    def update_task(self, task_id: str, **changes: Any) -> Optional[Task]:
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Task fields cannot be edited: {', '.join(sorted(unknown))}")
        if "title" in changes:
            changes["title"] = _sanitize_title(changes["title"])
        if "estimated_intervals" in changes:
            changes["estimated_intervals"] = _positive(
                changes["estimated_intervals"], "estimated_intervals"
            )
        if "duration_minutes" in changes:
            changes["duration_minutes"] = _optional_positive(
                changes["duration_minutes"], "duration_minutes"
            )
        if "completed" in changes:
            changes["completed"] = bool(changes["completed"])

        tasks = self._repository.load_tasks()
        task = find_by_id(tasks, task_id)
        if task is None:
            self._logger.debug("Update ignored for unknown task %s", task_id)
            return None

        updated = replace(task, **changes)
        self._repository.save(tasks=[updated if item.id == task_id else item for item in tasks])
        return updated

    def toggle_completed(self, task_id: str) -> Optional[Task]:
        task = find_by_id(self._repository.load_tasks(), task_id)
        if task is None:
            self._logger.debug("Toggle ignored for unknown task %s", task_id)
            return None
        return self.update_task(task_id, completed=not task.completed)

    def set_active_task(self, task_id: Optional[str]) -> bool:
        """Point the timer at a task without touching its countdown."""
        snapshot = self._repository.load_snapshot()
        if task_id is not None and snapshot.find_task(task_id) is None:
            self._logger.debug("Cannot activate unknown task %s", task_id)
            return False
        if snapshot.timer.active_task_id != task_id:
            self._repository.save(timer=replace(snapshot.timer, active_task_id=task_id))
        return True

    def delete_task(self, task_id: str) -> bool:
        """Remove a task; an active reference to it is cleared in the same write."""
        snapshot = self._repository.load_snapshot()
        remaining = [task for task in snapshot.tasks if task.id != task_id]
        if len(remaining) == len(snapshot.tasks):
            self._logger.debug("Delete ignored for unknown task %s", task_id)
            return False

        timer = None
        if snapshot.timer.active_task_id == task_id:
            timer = replace(snapshot.timer, active_task_id=None)
        self._repository.save(tasks=remaining, timer=timer)
        self._logger.info("Task deleted: id=%s", task_id)
        return True


def _sanitize_title(title: str) -> str:
    compact = " ".join(str(title).split())[:_MAX_TITLE_LENGTH]
    if not compact:
        raise ValueError("Task title cannot be empty")
    return compact


def _positive(value: int, field: str) -> int:
    number = int(value)
    if number <= 0:
        raise ValueError(f"{field} must be greater than zero")
    return number


def _optional_positive(value: Optional[int], field: str) -> Optional[int]:
    if value is None:
        return None
    return _positive(value, field)
