"""Thread-safe listener registry shared by the store implementations."""

from __future__ import annotations

import logging
import threading
from typing import Any, Mapping

from .contracts import Disposer, StoreListener


class ListenerSet:
    def __init__(self, logger: logging.Logger):
        self._logger = logger
        self._listeners: list[StoreListener] = []
        self._lock = threading.Lock()

    def add(self, listener: StoreListener) -> Disposer:
        with self._lock:
            self._listeners.append(listener)

        def dispose() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return dispose

    def emit(self, changed: frozenset[str], values: Mapping[str, Any]) -> None:
        if not changed:
            return
        with self._lock:
            listeners = tuple(self._listeners)
        for listener in listeners:
            # The write is already committed; a failing observer must not undo it.
            try:
                listener(changed, values)
            except Exception as error:
                self._logger.error("Store listener failed: %s", error, exc_info=True)
