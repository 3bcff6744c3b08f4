"""User-facing alarm operations: create, enable/disable and delete."""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import tzinfo
from typing import Callable, Optional

from clock import Clock, system_now_ms
from contracts.state import RECURRENCES, Alarm
from storage import StateRepository, find_by_id

from .recurrence import initial_fire_at
from .scheduler import AlarmScheduler


class AlarmService:
    """Persists alarm changes, then arms or cancels the matching wake-up."""

    def __init__(
        self,
        repository: StateRepository,
        scheduler: AlarmScheduler,
        *,
        now_fn: Clock = system_now_ms,
        id_fn: Callable[[], str] = lambda: str(uuid.uuid4()),
        tz: Optional[tzinfo] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._repository = repository
        self._scheduler = scheduler
        self._now = now_fn
        self._new_id = id_fn
        self._tz = tz
        self._logger = logger or logging.getLogger("alarms")

    def list_alarms(self) -> tuple[Alarm, ...]:
        return self._repository.load_alarms()

    def add_alarm(self, fire_at_ms: int, label: str, recurrence: str) -> Alarm:
        if recurrence not in RECURRENCES:
            raise ValueError(f"Unsupported recurrence: {recurrence!r}")

        alarm = Alarm(
            id=self._new_id(),
            fire_at_ms=initial_fire_at(int(fire_at_ms), recurrence, self._now(), tz=self._tz),
            label=" ".join(label.split()),
            recurrence=recurrence,
            enabled=True,
        )
        alarms = self._repository.load_alarms()
        self._repository.save(alarms=[*alarms, alarm])
        self._logger.info("Alarm added: id=%s recurrence=%s", alarm.id, alarm.recurrence)
        self._scheduler.schedule(alarm)
        return alarm

    def toggle_alarm(self, alarm_id: str) -> Optional[Alarm]:
        alarms = self._repository.load_alarms()
        alarm = find_by_id(alarms, alarm_id)
        if alarm is None:
            self._logger.debug("Toggle ignored for unknown alarm %s", alarm_id)
            return None

        updated = replace(alarm, enabled=not alarm.enabled)
        if updated.enabled:
            updated = replace(
                updated,
                fire_at_ms=initial_fire_at(
                    updated.fire_at_ms,
                    updated.recurrence,
                    self._now(),
                    tz=self._tz,
                ),
            )
        self._repository.save(
            alarms=[updated if item.id == alarm_id else item for item in alarms]
        )
        if updated.enabled:
            self._scheduler.schedule(updated)
        else:
            self._scheduler.cancel(alarm_id)
        return updated

    def delete_alarm(self, alarm_id: str) -> bool:
        alarms = self._repository.load_alarms()
        remaining = [alarm for alarm in alarms if alarm.id != alarm_id]
        existed = len(remaining) != len(alarms)
        if existed:
            self._repository.save(alarms=remaining)
            self._logger.info("Alarm deleted: id=%s", alarm_id)
        # Cancel regardless; a wake-up may outlive its stored alarm.
        self._scheduler.cancel(alarm_id)
        return existed
