"""Typed access to the state store for the timer, tasks, history and alarms."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Sequence, TypeVar

from contracts.state import Alarm, SessionLogEntry, Settings, Task, TimerState

from .contracts import Disposer, StateStore, StoreListener
from .defaults import (
    ALL_KEYS,
    KEY_ALARMS,
    KEY_HISTORY,
    KEY_SETTINGS,
    KEY_TASKS,
    KEY_TIMER,
    default_timer,
)
from .errors import StoreDecodeError

_Record = TypeVar("_Record")


@dataclass(frozen=True)
class StateSnapshot:
    """All persisted records read in a single store call."""
    timer: TimerState
    settings: Settings
    tasks: tuple[Task, ...]
    history: tuple[SessionLogEntry, ...]
    alarms: tuple[Alarm, ...]

    def find_task(self, task_id: Optional[str]) -> Optional[Task]:
        return find_by_id(self.tasks, task_id)

    def find_alarm(self, alarm_id: Optional[str]) -> Optional[Alarm]:
        return find_by_id(self.alarms, alarm_id)


def find_by_id(records: Iterable[_Record], record_id: Optional[str]) -> Optional[_Record]:
    if record_id is None:
        return None
    for record in records:
        if getattr(record, "id", None) == record_id:
            return record
    return None


class StateRepository:
    """Decodes store values into records and writes changes as one `set` call."""

    def __init__(self, store: StateStore, logger: Optional[logging.Logger] = None):
        self._store = store
        self._logger = logger or logging.getLogger("storage")

    @property
    def store(self) -> StateStore:
        return self._store

    def ensure_initialized(self, settings: Optional[Settings] = None) -> frozenset[str]:
        """Seed keys that were never written; existing values are kept."""
        settings = settings or Settings()
        seeds: dict[str, Any] = {
            KEY_SETTINGS: settings.to_dict(),
            KEY_TIMER: default_timer(settings).to_dict(),
            KEY_TASKS: [],
            KEY_HISTORY: [],
            KEY_ALARMS: [],
        }
        present = self._store.stored_keys()
        missing = {key: value for key, value in seeds.items() if key not in present}
        if missing:
            self._store.set(missing)
            self._logger.info("Initialized state store keys: %s", ", ".join(sorted(missing)))
        return frozenset(missing)

    def load_snapshot(self) -> StateSnapshot:
        raw = self._store.get(ALL_KEYS)
        return StateSnapshot(
            timer=_decode(TimerState.from_dict, raw[KEY_TIMER], KEY_TIMER),
            settings=_decode(Settings.from_dict, raw[KEY_SETTINGS], KEY_SETTINGS),
            tasks=_decode_list(Task.from_dict, raw[KEY_TASKS], KEY_TASKS),
            history=_decode_list(SessionLogEntry.from_dict, raw[KEY_HISTORY], KEY_HISTORY),
            alarms=_decode_list(Alarm.from_dict, raw[KEY_ALARMS], KEY_ALARMS),
        )

    def load_timer(self) -> TimerState:
        raw = self._store.get((KEY_TIMER,))
        return _decode(TimerState.from_dict, raw[KEY_TIMER], KEY_TIMER)

    def load_settings(self) -> Settings:
        raw = self._store.get((KEY_SETTINGS,))
        return _decode(Settings.from_dict, raw[KEY_SETTINGS], KEY_SETTINGS)

    def load_tasks(self) -> tuple[Task, ...]:
        raw = self._store.get((KEY_TASKS,))
        return _decode_list(Task.from_dict, raw[KEY_TASKS], KEY_TASKS)

    def load_history(self) -> tuple[SessionLogEntry, ...]:
        raw = self._store.get((KEY_HISTORY,))
        return _decode_list(SessionLogEntry.from_dict, raw[KEY_HISTORY], KEY_HISTORY)

    def load_alarms(self) -> tuple[Alarm, ...]:
        raw = self._store.get((KEY_ALARMS,))
        return _decode_list(Alarm.from_dict, raw[KEY_ALARMS], KEY_ALARMS)

    def save(
        self,
        *,
        timer: Optional[TimerState] = None,
        settings: Optional[Settings] = None,
        tasks: Optional[Sequence[Task]] = None,
        history: Optional[Sequence[SessionLogEntry]] = None,
        alarms: Optional[Sequence[Alarm]] = None,
    ) -> None:
        values: dict[str, Any] = {}
        if timer is not None:
            values[KEY_TIMER] = timer.to_dict()
        if settings is not None:
            values[KEY_SETTINGS] = settings.to_dict()
        if tasks is not None:
            values[KEY_TASKS] = [task.to_dict() for task in tasks]
        if history is not None:
            values[KEY_HISTORY] = [entry.to_dict() for entry in history]
        if alarms is not None:
            values[KEY_ALARMS] = [alarm.to_dict() for alarm in alarms]
        if values:
            self._store.set(values)

    def subscribe(self, listener: StoreListener) -> Disposer:
        return self._store.subscribe(listener)


def _decode(decoder: Callable[[Any], _Record], raw: Any, key: str) -> _Record:
    try:
        return decoder(raw)
    except (KeyError, TypeError, ValueError, AttributeError) as error:
        raise StoreDecodeError(f"Stored value for {key!r} is malformed: {error}") from error


def _decode_list(decoder: Callable[[Any], _Record], raw: Any, key: str) -> tuple[_Record, ...]:
    if not isinstance(raw, list):
        raise StoreDecodeError(f"Stored value for {key!r} must be a list.")
    return tuple(_decode(decoder, item, key) for item in raw)
