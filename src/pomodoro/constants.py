"""Action, reason and message constants used by the timer engine and recorder."""

from __future__ import annotations

SECONDS_PER_MINUTE = 60

ACTION_START = "start"
ACTION_PAUSE = "pause"
ACTION_RESET = "reset"
ACTION_SET_MODE = "set_mode"
ACTION_SET_TYPE = "set_type"
ACTION_START_TASK = "start_task"
ACTION_DISMISS = "dismiss"

REASON_STARTED = "started"
REASON_ALREADY_RUNNING = "already_running"
REASON_PAUSED = "paused"
REASON_NOT_RUNNING = "not_running"
REASON_RESET = "reset"
REASON_MODE_CHANGED = "mode_changed"
REASON_TYPE_CHANGED = "type_changed"
REASON_TASK_STARTED = "task_started"
REASON_UNKNOWN_TASK = "unknown_task"
REASON_DISMISSED = "dismissed"
REASON_NOT_RINGING = "not_ringing"

SESSION_END_TITLE = "Time is up!"
FOCUS_COMPLETE_MESSAGE = "Focus session complete. Take a break!"
BREAK_COMPLETE_MESSAGE = "Break is over. Back to work!"
