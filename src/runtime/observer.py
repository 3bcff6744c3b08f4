"""Display observer combining store change notifications with periodic polling."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Literal, Mapping, Optional

from clock import Clock, system_now_ms
from contracts.state import TimerState
from pomodoro import current_display_seconds
from storage import KEY_TIMER, Disposer, StateRepository, StoreError

UpdateSource = Literal["poll", "push"]


@dataclass(frozen=True)
class DisplayUpdate:
    state: TimerState
    display_seconds: float
    source: UpdateSource


class DisplayObserver:
    """Recomputes the displayed time from the persisted anchor on every signal.

    Pushes cover polling latency and polls cover missed pushes; both paths
    derive the value from the same stored state and the current clock, so
    they always agree.
    """

    def __init__(
        self,
        repository: StateRepository,
        on_update: Callable[[DisplayUpdate], None],
        *,
        now_fn: Clock = system_now_ms,
        poll_interval_seconds: float = 1.0,
        logger: Optional[logging.Logger] = None,
    ):
        if poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be greater than zero")

        self._repository = repository
        self._on_update = on_update
        self._now = now_fn
        self._poll_interval_seconds = float(poll_interval_seconds)
        self._logger = logger or logging.getLogger("observer")
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._dispose: Optional[Disposer] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def refresh(self) -> DisplayUpdate:
        return self._emit(self._repository.load_timer(), "poll")

    def start(self) -> None:
        if self.is_running:
            self._logger.warning("Display observer is already running")
            return

        self._stop.clear()
        self._dispose = self._repository.subscribe(self._on_store_change)
        self._thread = threading.Thread(target=self._run, daemon=True, name="display-observer")
        self._thread.start()

    def stop(self, timeout_seconds: float = 5.0) -> None:
        if self._dispose is not None:
            self._dispose()
            self._dispose = None
        if self._thread is None:
            return
        self._stop.set()
        self._thread.join(timeout=timeout_seconds)
        self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self._poll_interval_seconds):
            try:
                self.refresh()
            except StoreError as error:
                self._logger.warning("Display poll failed: %s", error)

    def _on_store_change(self, changed: frozenset[str], values: Mapping[str, Any]) -> None:
        if KEY_TIMER not in changed or KEY_TIMER not in values:
            return
        self._emit(TimerState.from_dict(values[KEY_TIMER]), "push")

    def _emit(self, state: TimerState, source: UpdateSource) -> DisplayUpdate:
        update = DisplayUpdate(
            state=state,
            display_seconds=current_display_seconds(state, self._now()),
            source=source,
        )
        self._on_update(update)
        return update
