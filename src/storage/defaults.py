"""Store keys and the default values missing keys resolve to."""

from __future__ import annotations

import copy
from typing import Any, Iterable, Mapping

from contracts.state import Settings, TimerState

KEY_TIMER = "timer"
KEY_TASKS = "tasks"
KEY_SETTINGS = "settings"
KEY_HISTORY = "history"
KEY_ALARMS = "alarms"

ALL_KEYS: tuple[str, ...] = (
    KEY_TIMER,
    KEY_TASKS,
    KEY_SETTINGS,
    KEY_HISTORY,
    KEY_ALARMS,
)


def default_timer(settings: Settings | None = None) -> TimerState:
    settings = settings or Settings()
    return TimerState(
        duration_minutes=settings.focus_minutes,
        anchor_value_seconds=float(settings.focus_minutes * 60),
    )


DEFAULT_VALUES: dict[str, Any] = {
    KEY_TIMER: default_timer().to_dict(),
    KEY_TASKS: [],
    KEY_SETTINGS: Settings().to_dict(),
    KEY_HISTORY: [],
    KEY_ALARMS: [],
}


def resolve_defaults(keys: Iterable[str], defaults: Mapping[str, Any]) -> dict[str, Any]:
    return {key: copy.deepcopy(defaults[key]) for key in keys if key in defaults}
