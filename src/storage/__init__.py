"""Key-value state store implementations and typed repository."""

from .contracts import Disposer, StateStore, StoreListener
from .defaults import (
    ALL_KEYS,
    KEY_ALARMS,
    KEY_HISTORY,
    KEY_SETTINGS,
    KEY_TASKS,
    KEY_TIMER,
)
from .errors import StoreDecodeError, StoreError, StoreWriteError
from .json_file import JsonFileStore
from .memory import MemoryStore
from .repository import StateRepository, StateSnapshot, find_by_id

__all__ = [
    "ALL_KEYS",
    "Disposer",
    "JsonFileStore",
    "KEY_ALARMS",
    "KEY_HISTORY",
    "KEY_SETTINGS",
    "KEY_TASKS",
    "KEY_TIMER",
    "MemoryStore",
    "StateRepository",
    "StateSnapshot",
    "StateStore",
    "StoreDecodeError",
    "StoreError",
    "StoreListener",
    "StoreWriteError",
    "find_by_id",
]
