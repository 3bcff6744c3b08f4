"""Named one-shot and periodic wake-ups delivered by a single dispatcher thread."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import Callable, Optional, Protocol

from clock import MS_PER_MINUTE, MS_PER_SECOND, Clock, system_now_ms

WakeupHandler = Callable[[str], None]


@dataclass(frozen=True)
class Wakeup:
    """A pending wake-up; `period_minutes` re-arms it after every fire."""
    name: str
    scheduled_time_ms: int
    period_minutes: Optional[float] = None


class WakeupPlatform(Protocol):
    """Create/clear surface the alarm scheduler arms wake-ups through."""

    def create(
        self,
        name: str,
        *,
        when_ms: Optional[int] = None,
        period_minutes: Optional[float] = None,
    ) -> None:
        ...

    def clear(self, name: str) -> bool:
        ...

    def get(self, name: str) -> Optional[Wakeup]:
        ...


class WakeupRegistry:
    """Pending wake-ups keyed by name; creating an existing name replaces it."""

    def __init__(self, *, now_fn: Clock = system_now_ms):
        self._now = now_fn
        self._wakeups: dict[str, Wakeup] = {}
        self._lock = threading.Lock()

    def create(
        self,
        name: str,
        *,
        when_ms: Optional[int] = None,
        period_minutes: Optional[float] = None,
    ) -> Wakeup:
        if when_ms is None and period_minutes is None:
            raise ValueError("A wake-up needs when_ms, period_minutes, or both")
        if period_minutes is not None and period_minutes <= 0:
            raise ValueError("period_minutes must be greater than zero")

        if when_ms is None:
            when_ms = self._now() + int(period_minutes * MS_PER_MINUTE)
        wakeup = Wakeup(name=name, scheduled_time_ms=int(when_ms), period_minutes=period_minutes)
        with self._lock:
            self._wakeups[name] = wakeup
        return wakeup

    def clear(self, name: str) -> bool:
        with self._lock:
            return self._wakeups.pop(name, None) is not None

    def get(self, name: str) -> Optional[Wakeup]:
        with self._lock:
            return self._wakeups.get(name)

    def all(self) -> list[Wakeup]:
        with self._lock:
            return sorted(self._wakeups.values(), key=lambda w: (w.scheduled_time_ms, w.name))

    def next_due_ms(self) -> Optional[int]:
        with self._lock:
            if not self._wakeups:
                return None
            return min(w.scheduled_time_ms for w in self._wakeups.values())

    def pop_due(self, now_ms: Optional[int] = None) -> list[Wakeup]:
        """Remove due one-shots and re-arm due periodic wake-ups.

        A periodic wake-up that missed several periods (process asleep) is
        reported once and re-armed at its next future slot.
        """
        now_ms = self._now() if now_ms is None else now_ms
        fired: list[Wakeup] = []
        with self._lock:
            for name, wakeup in list(self._wakeups.items()):
                if wakeup.scheduled_time_ms > now_ms:
                    continue
                fired.append(wakeup)
                if wakeup.period_minutes is None:
                    del self._wakeups[name]
                    continue
                period_ms = int(wakeup.period_minutes * MS_PER_MINUTE)
                missed = (now_ms - wakeup.scheduled_time_ms) // period_ms + 1
                self._wakeups[name] = replace(
                    wakeup,
                    scheduled_time_ms=wakeup.scheduled_time_ms + missed * period_ms,
                )
        fired.sort(key=lambda w: (w.scheduled_time_ms, w.name))
        return fired


class WakeupService:
    """Threaded dispatcher that fires wake-ups one at a time on wall-clock time."""

    def __init__(
        self,
        *,
        handler: Optional[WakeupHandler] = None,
        now_fn: Clock = system_now_ms,
        max_wait_seconds: float = 1.0,
        logger: Optional[logging.Logger] = None,
    ):
        if max_wait_seconds <= 0:
            raise ValueError("max_wait_seconds must be greater than zero")

        self._handler = handler
        self._now = now_fn
        self._max_wait_seconds = float(max_wait_seconds)
        self._logger = logger or logging.getLogger("wakeups")
        self._registry = WakeupRegistry(now_fn=now_fn)
        self._condition = threading.Condition()
        self._stopping = False
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def set_handler(self, handler: WakeupHandler) -> None:
        self._handler = handler

    def create(
        self,
        name: str,
        *,
        when_ms: Optional[int] = None,
        period_minutes: Optional[float] = None,
    ) -> None:
        with self._condition:
            wakeup = self._registry.create(name, when_ms=when_ms, period_minutes=period_minutes)
            self._condition.notify_all()
        self._logger.debug(
            "Wake-up armed: name=%s at=%s period=%s",
            wakeup.name,
            wakeup.scheduled_time_ms,
            wakeup.period_minutes,
        )

    def clear(self, name: str) -> bool:
        with self._condition:
            cleared = self._registry.clear(name)
            self._condition.notify_all()
        if cleared:
            self._logger.debug("Wake-up cleared: name=%s", name)
        return cleared

    def get(self, name: str) -> Optional[Wakeup]:
        return self._registry.get(name)

    def pending(self) -> list[Wakeup]:
        return self._registry.all()

    def start(self) -> None:
        if self.is_running:
            self._logger.warning("Wake-up dispatcher is already running")
            return

        with self._condition:
            self._stopping = False
        self._thread = threading.Thread(
            target=self._run,
            daemon=True,
            name="wakeups",
        )
        self._thread.start()

    def stop(self, timeout_seconds: float = 5.0) -> None:
        if self._thread is None:
            return

        with self._condition:
            self._stopping = True
            self._condition.notify_all()
        self._thread.join(timeout=timeout_seconds)
        if self._thread.is_alive():
            self._logger.error(
                "Wake-up dispatcher did not stop within %.1fs",
                timeout_seconds,
            )
        self._thread = None

    def fire_due(self) -> list[str]:
        """Dispatch every due wake-up on the calling thread."""
        names = [wakeup.name for wakeup in self._registry.pop_due(self._now())]
        for name in names:
            self._dispatch(name)
        return names

    def _run(self) -> None:
        while True:
            with self._condition:
                if self._stopping:
                    return
                wait_seconds = self._seconds_until_due()
                if wait_seconds > 0:
                    # Re-check the wall clock regularly; sleep and clock jumps are not signalled.
                    self._condition.wait(timeout=min(wait_seconds, self._max_wait_seconds))
                    continue
            self.fire_due()

    def _seconds_until_due(self) -> float:
        due_ms = self._registry.next_due_ms()
        if due_ms is None:
            return self._max_wait_seconds
        return max(0.0, (due_ms - self._now()) / MS_PER_SECOND)

    def _dispatch(self, name: str) -> None:
        handler = self._handler
        if handler is None:
            self._logger.warning("Wake-up %s fired without a handler", name)
            return
        try:
            handler(name)
        except Exception as error:
            self._logger.error("Wake-up handler failed for %s: %s", name, error, exc_info=True)
