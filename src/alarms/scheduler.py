"""Arms platform wake-ups for user alarms and the pomodoro timer and handles their fires."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import tzinfo
from typing import Callable, Optional, Protocol

from clock import Clock, system_now_ms
from contracts.notifications import NOTIFY_ALARM, Notification, Notifier
from contracts.state import (
    RECURRENCE_MONTHLY,
    RECURRENCE_ONCE,
    Alarm,
)
from storage import StateRepository, find_by_id

from .constants import (
    DEFAULT_ALARM_LABEL,
    PERIOD_MINUTES,
    POMODORO_WAKEUP_NAME,
    alarm_id_from_wakeup_name,
    user_alarm_wakeup_name,
)
from .recurrence import add_months, initial_fire_at
from .wakeups import WakeupPlatform


class CompletedIntervalLike(Protocol):
    notification: Notification


class IntervalRecorder(Protocol):
    """Records a finished pomodoro interval and plans the next one."""

    def complete_interval(
        self,
        *,
        arm_next: Optional[Callable[[int], None]] = None,
    ) -> Optional[CompletedIntervalLike]:
        ...


class AlarmScheduler:
    """Owns every platform wake-up; each fire is handled as a self-contained update."""

    def __init__(
        self,
        repository: StateRepository,
        platform: WakeupPlatform,
        *,
        recorder: Optional[IntervalRecorder] = None,
        notifier: Optional[Notifier] = None,
        now_fn: Clock = system_now_ms,
        tz: Optional[tzinfo] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._repository = repository
        self._platform = platform
        self._recorder = recorder
        self._notifier = notifier
        self._now = now_fn
        self._tz = tz
        self._logger = logger or logging.getLogger("alarms")

    def schedule(self, alarm: Alarm) -> bool:
        """Arm the wake-up for `alarm`; returns False when nothing was armed."""
        name = user_alarm_wakeup_name(alarm.id)
        if not alarm.enabled:
            self._platform.clear(name)
            self._logger.debug("Alarm %s is disabled; not scheduling", alarm.id)
            return False

        now = self._now()
        if alarm.fire_at_ms < now:
            if alarm.recurrence == RECURRENCE_ONCE:
                self._logger.debug(
                    "Dropping expired one-shot alarm %s (fire_at=%s, now=%s)",
                    alarm.id,
                    alarm.fire_at_ms,
                    now,
                )
                return False
            self._logger.warning(
                "Recurring alarm %s scheduled in the past (fire_at=%s); it fires immediately",
                alarm.id,
                alarm.fire_at_ms,
            )

        self._platform.create(
            name,
            when_ms=alarm.fire_at_ms,
            period_minutes=PERIOD_MINUTES.get(alarm.recurrence),
        )
        self._logger.info(
            "Alarm scheduled: id=%s recurrence=%s fire_at=%s",
            alarm.id,
            alarm.recurrence,
            alarm.fire_at_ms,
        )
        return True

    def cancel(self, alarm_id: str) -> None:
        if self._platform.clear(user_alarm_wakeup_name(alarm_id)):
            self._logger.info("Alarm cancelled: id=%s", alarm_id)

    def arm_pomodoro(self, fire_at_ms: int) -> None:
        self._platform.create(POMODORO_WAKEUP_NAME, when_ms=fire_at_ms)
        self._logger.debug("Pomodoro wake-up armed for %s", fire_at_ms)

    def disarm_pomodoro(self) -> None:
        self._platform.clear(POMODORO_WAKEUP_NAME)

    def reschedule_all(self) -> int:
        """Re-arm every enabled alarm after a restart.

        Past periodic alarms move to their next future occurrence; monthly
        alarms persist the moved fire time since they carry their own schedule.
        """
        now = self._now()
        alarms = self._repository.load_alarms()
        updated: list[Alarm] = []
        changed = False
        armed = 0
        for alarm in alarms:
            if alarm.enabled:
                next_fire = initial_fire_at(alarm.fire_at_ms, alarm.recurrence, now, tz=self._tz)
                if alarm.recurrence == RECURRENCE_MONTHLY and next_fire != alarm.fire_at_ms:
                    alarm = replace(alarm, fire_at_ms=next_fire)
                    changed = True
                    armed += int(self.schedule(alarm))
                else:
                    armed += int(self.schedule(replace(alarm, fire_at_ms=next_fire)))
            else:
                self.cancel(alarm.id)
            updated.append(alarm)

        if changed:
            self._repository.save(alarms=updated)
        self._logger.info("Rescheduled %d of %d alarms", armed, len(alarms))
        return armed

    def on_fire(self, name: str) -> None:
        if name == POMODORO_WAKEUP_NAME:
            self._handle_pomodoro()
            return

        alarm_id = alarm_id_from_wakeup_name(name)
        if alarm_id is None:
            self._logger.warning("Ignoring unknown wake-up %s", name)
            return
        self._handle_user_alarm(alarm_id)

    def _handle_pomodoro(self) -> None:
        if self._recorder is None:
            self._logger.warning("Pomodoro wake-up fired without a session recorder")
            return

        completed = self._recorder.complete_interval(arm_next=self.arm_pomodoro)
        if completed is not None:
            self._notify(completed.notification)

    def _handle_user_alarm(self, alarm_id: str) -> None:
        snapshot = self._repository.load_snapshot()
        alarm = find_by_id(snapshot.alarms, alarm_id)
        if alarm is None or not alarm.enabled:
            # Stale wake-up of a deleted or disabled alarm; stop periodic repeats too.
            self._platform.clear(user_alarm_wakeup_name(alarm_id))
            self._logger.debug("Ignoring wake-up for missing or disabled alarm %s", alarm_id)
            return

        self._logger.info("Alarm fired: id=%s label=%s", alarm.id, alarm.label)
        self._notify(
            Notification(
                kind=NOTIFY_ALARM,
                title="Alarm",
                message=alarm.label or DEFAULT_ALARM_LABEL,
                play_sound=snapshot.settings.sound_enabled,
            )
        )

        if alarm.recurrence == RECURRENCE_MONTHLY:
            advanced = replace(alarm, fire_at_ms=add_months(alarm.fire_at_ms, 1, tz=self._tz))
            self.schedule(advanced)
            self._replace_alarm(snapshot.alarms, advanced)
        elif alarm.recurrence == RECURRENCE_ONCE:
            self._replace_alarm(snapshot.alarms, replace(alarm, enabled=False))

    def _replace_alarm(self, alarms: tuple[Alarm, ...], updated: Alarm) -> None:
        self._repository.save(
            alarms=[updated if alarm.id == updated.id else alarm for alarm in alarms]
        )

    def _notify(self, notification: Notification) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.notify(notification)
        except Exception as error:
            self._logger.error("Notification delivery failed: %s", error, exc_info=True)
