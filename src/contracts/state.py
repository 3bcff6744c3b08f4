"""Typed records kept in the state store and their JSON-compatible codecs."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Literal, Mapping, Optional

TimerStatus = Literal["idle", "running", "paused"]
TimerType = Literal["timer", "stopwatch"]
TimerMode = Literal["focus", "shortBreak", "longBreak"]
Recurrence = Literal["once", "hourly", "daily", "weekly", "monthly"]

STATUS_IDLE = "idle"
STATUS_RUNNING = "running"
STATUS_PAUSED = "paused"
TIMER_STATUSES: frozenset[str] = frozenset({STATUS_IDLE, STATUS_RUNNING, STATUS_PAUSED})

TYPE_TIMER = "timer"
TYPE_STOPWATCH = "stopwatch"
TIMER_TYPES: frozenset[str] = frozenset({TYPE_TIMER, TYPE_STOPWATCH})

MODE_FOCUS = "focus"
MODE_SHORT_BREAK = "shortBreak"
MODE_LONG_BREAK = "longBreak"
TIMER_MODES: frozenset[str] = frozenset({MODE_FOCUS, MODE_SHORT_BREAK, MODE_LONG_BREAK})

RECURRENCE_ONCE = "once"
RECURRENCE_HOURLY = "hourly"
RECURRENCE_DAILY = "daily"
RECURRENCE_WEEKLY = "weekly"
RECURRENCE_MONTHLY = "monthly"
RECURRENCES: frozenset[str] = frozenset(
    {
        RECURRENCE_ONCE,
        RECURRENCE_HOURLY,
        RECURRENCE_DAILY,
        RECURRENCE_WEEKLY,
        RECURRENCE_MONTHLY,
    }
)


def _require_choice(value: str, allowed: frozenset[str], field: str) -> None:
    if value not in allowed:
        choices = ", ".join(sorted(allowed))
        raise ValueError(f"{field} must be one of: {choices}; got {value!r}")


@dataclass(frozen=True)
class Settings:
    """User preferences consumed by the timer; owned by whoever edits them."""
    focus_minutes: int = 25
    short_break_minutes: int = 5
    long_break_minutes: int = 15
    auto_start_breaks: bool = False
    auto_start_pomos: bool = False
    sound_enabled: bool = True

    def __post_init__(self) -> None:
        for field in ("focus_minutes", "short_break_minutes", "long_break_minutes"):
            if int(getattr(self, field)) <= 0:
                raise ValueError(f"{field} must be greater than zero")

    def duration_for(self, mode: str) -> int:
        if mode == MODE_SHORT_BREAK:
            return self.short_break_minutes
        if mode == MODE_LONG_BREAK:
            return self.long_break_minutes
        return self.focus_minutes

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Settings":
        defaults = cls()
        return cls(
            focus_minutes=int(raw.get("focus_minutes", defaults.focus_minutes)),
            short_break_minutes=int(
                raw.get("short_break_minutes", defaults.short_break_minutes)
            ),
            long_break_minutes=int(
                raw.get("long_break_minutes", defaults.long_break_minutes)
            ),
            auto_start_breaks=bool(raw.get("auto_start_breaks", defaults.auto_start_breaks)),
            auto_start_pomos=bool(raw.get("auto_start_pomos", defaults.auto_start_pomos)),
            sound_enabled=bool(raw.get("sound_enabled", defaults.sound_enabled)),
        )


@dataclass(frozen=True)
class TimerState:
    """Persisted anchor from which every observer derives the displayed time.

    `anchor_value_seconds` is the remaining time (timer) or the elapsed time
    (stopwatch) as of `started_at_ms`; it is never decremented in place.
    """
    status: TimerStatus = STATUS_IDLE
    timer_type: TimerType = TYPE_TIMER
    mode: TimerMode = MODE_FOCUS
    duration_minutes: int = 25
    anchor_value_seconds: float = 25 * 60
    started_at_ms: Optional[int] = None
    active_task_id: Optional[str] = None
    is_ringing: bool = False

    def __post_init__(self) -> None:
        _require_choice(self.status, TIMER_STATUSES, "status")
        _require_choice(self.timer_type, TIMER_TYPES, "timer_type")
        _require_choice(self.mode, TIMER_MODES, "mode")
        if (self.started_at_ms is not None) != (self.status == STATUS_RUNNING):
            raise ValueError("started_at_ms must be set exactly when the timer is running")
        if self.anchor_value_seconds < 0:
            raise ValueError("anchor_value_seconds cannot be negative")

    @property
    def is_running(self) -> bool:
        return self.status == STATUS_RUNNING

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "TimerState":
        started_at = raw.get("started_at_ms")
        return cls(
            status=raw.get("status", STATUS_IDLE),
            timer_type=raw.get("timer_type", TYPE_TIMER),
            mode=raw.get("mode", MODE_FOCUS),
            duration_minutes=int(raw.get("duration_minutes", 25)),
            anchor_value_seconds=float(raw.get("anchor_value_seconds", 25 * 60)),
            started_at_ms=int(started_at) if started_at is not None else None,
            active_task_id=raw.get("active_task_id"),
            is_ringing=bool(raw.get("is_ringing", False)),
        )


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    created_at_ms: int
    completed: bool = False
    estimated_intervals: int = 1
    completed_intervals: int = 0
    duration_minutes: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Task":
        duration = raw.get("duration_minutes")
        return cls(
            id=str(raw["id"]),
            title=str(raw.get("title", "")),
            created_at_ms=int(raw.get("created_at_ms", 0)),
            completed=bool(raw.get("completed", False)),
            estimated_intervals=int(raw.get("estimated_intervals", 1)),
            completed_intervals=int(raw.get("completed_intervals", 0)),
            duration_minutes=int(duration) if duration is not None else None,
        )


@dataclass(frozen=True)
class SessionLogEntry:
    """One completed interval; appended to history and never rewritten."""
    id: str
    timestamp_ms: int
    duration_minutes: int
    mode: TimerMode
    task_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "SessionLogEntry":
        return cls(
            id=str(raw["id"]),
            timestamp_ms=int(raw["timestamp_ms"]),
            duration_minutes=int(raw.get("duration_minutes", 0)),
            mode=raw.get("mode", MODE_FOCUS),
            task_id=raw.get("task_id"),
        )


@dataclass(frozen=True)
class Alarm:
    id: str
    fire_at_ms: int
    label: str = ""
    recurrence: Recurrence = RECURRENCE_ONCE
    enabled: bool = True

    def __post_init__(self) -> None:
        _require_choice(self.recurrence, RECURRENCES, "recurrence")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Alarm":
        return cls(
            id=str(raw["id"]),
            fire_at_ms=int(raw["fire_at_ms"]),
            label=str(raw.get("label", "")),
            recurrence=raw.get("recurrence", RECURRENCE_ONCE),
            enabled=bool(raw.get("enabled", True)),
        )
