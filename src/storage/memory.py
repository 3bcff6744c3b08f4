"""In-process state store used by tests and single-process deployments."""

from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Iterable, Mapping, Optional

from .contracts import Disposer, StoreListener
from .defaults import ALL_KEYS, DEFAULT_VALUES, resolve_defaults
from .listeners import ListenerSet


class MemoryStore:
    """Thread-safe dictionary store with change notifications."""

    def __init__(
        self,
        initial: Optional[Mapping[str, Any]] = None,
        *,
        defaults: Optional[Mapping[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._logger = logger or logging.getLogger("storage")
        self._defaults = dict(defaults if defaults is not None else DEFAULT_VALUES)
        self._data: dict[str, Any] = copy.deepcopy(dict(initial or {}))
        self._lock = threading.Lock()
        self._listeners = ListenerSet(self._logger)

    def get(self, keys: Optional[Iterable[str]] = None) -> dict[str, Any]:
        requested = tuple(keys) if keys is not None else ALL_KEYS
        with self._lock:
            values = resolve_defaults(
                (key for key in requested if key not in self._data),
                self._defaults,
            )
            for key in requested:
                if key in self._data:
                    values[key] = copy.deepcopy(self._data[key])
        return values

    def set(self, values: Mapping[str, Any]) -> None:
        incoming = copy.deepcopy(dict(values))
        with self._lock:
            changed = frozenset(
                key for key, value in incoming.items()
                if key not in self._data or self._data[key] != value
            )
            self._data.update(incoming)
        self._listeners.emit(
            changed,
            {key: copy.deepcopy(incoming[key]) for key in changed},
        )

    def stored_keys(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._data)

    def subscribe(self, listener: StoreListener) -> Disposer:
        return self._listeners.add(listener)
