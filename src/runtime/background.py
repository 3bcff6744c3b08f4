"""Background runtime wiring the store, wake-up dispatcher, scheduler and timer."""

from __future__ import annotations

import logging
from datetime import tzinfo
from typing import Any, Mapping, Optional

from alarms import AlarmScheduler, AlarmService, WakeupService, alarm_id_from_wakeup_name
from clock import Clock, system_now_ms
from contracts.notifications import Notifier
from contracts.state import Settings
from pomodoro import SessionRecorder, TaskService, TimerEngine
from storage import KEY_ALARMS, KEY_TIMER, Disposer, StateRepository, StateStore

from .notifications import LoggingNotifier


class BackgroundRuntime:
    """Owns one dispatcher thread; every wake-up is handled on it, one at a time."""

    def __init__(
        self,
        store: StateStore,
        *,
        initial_settings: Optional[Settings] = None,
        notifier: Optional[Notifier] = None,
        now_fn: Clock = system_now_ms,
        max_wait_seconds: float = 1.0,
        tz: Optional[tzinfo] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._logger = logger or logging.getLogger("runtime")
        self._initial_settings = initial_settings or Settings()

        self.repository = StateRepository(store, logger=logging.getLogger("storage"))
        self.wakeups = WakeupService(
            now_fn=now_fn,
            max_wait_seconds=max_wait_seconds,
            logger=logging.getLogger("wakeups"),
        )
        self.recorder = SessionRecorder(
            self.repository,
            now_fn=now_fn,
            logger=logging.getLogger("session_recorder"),
        )
        self.scheduler = AlarmScheduler(
            self.repository,
            self.wakeups,
            recorder=self.recorder,
            notifier=notifier or LoggingNotifier(),
            now_fn=now_fn,
            tz=tz,
            logger=logging.getLogger("alarms"),
        )
        self.wakeups.set_handler(self.scheduler.on_fire)

        self.engine = TimerEngine(
            self.repository,
            self.scheduler,
            now_fn=now_fn,
            logger=logging.getLogger("pomodoro"),
        )
        self.tasks = TaskService(self.repository, now_fn=now_fn)
        self.alarms = AlarmService(self.repository, self.scheduler, now_fn=now_fn, tz=tz)
        self._dispose: Optional[Disposer] = None

    @property
    def is_running(self) -> bool:
        return self.wakeups.is_running

    def reconcile(self) -> None:
        """Rebuild in-process wake-ups from persisted state after a (re)start."""
        self.repository.ensure_initialized(self._initial_settings)
        resumed = self.engine.resume()
        armed = self.scheduler.reschedule_all()
        self._logger.info(
            "State reconciled: countdown_resumed=%s alarms_armed=%d",
            resumed,
            armed,
        )

    def watch_store(self) -> None:
        """Re-arm wake-ups whenever the timer or alarms change, whoever wrote them."""
        if self._dispose is None:
            self._dispose = self.repository.subscribe(self._on_store_change)

    def start(self) -> None:
        self.watch_store()
        self.reconcile()
        self.wakeups.start()
        self._logger.info("Background runtime started")

    def stop(self) -> None:
        if self._dispose is not None:
            self._dispose()
            self._dispose = None
        self.wakeups.stop()
        self._logger.info("Background runtime stopped")

    def _on_store_change(self, changed: frozenset[str], values: Mapping[str, Any]) -> None:
        # Re-arming replaces wake-ups by name, so our own writes are harmless here.
        if KEY_TIMER in changed and not self.engine.resume():
            self.scheduler.disarm_pomodoro()
        if KEY_ALARMS in changed:
            self._drop_deleted_alarms()
            self.scheduler.reschedule_all()

    def _drop_deleted_alarms(self) -> None:
        known = {alarm.id for alarm in self.repository.load_alarms()}
        for wakeup in self.wakeups.pending():
            alarm_id = alarm_id_from_wakeup_name(wakeup.name)
            if alarm_id is not None and alarm_id not in known:
                self.scheduler.cancel(alarm_id)
