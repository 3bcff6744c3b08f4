"""Notifier implementations for the session-end and alarm side channel."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from contracts.notifications import Notification, Notifier


class LoggingNotifier:
    """Writes notifications to the log; used when no other consumer is attached."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("notifications")

    def notify(self, notification: Notification) -> None:
        self._logger.info(
            "Notification (%s%s): %s",
            notification.kind,
            ", sound" if notification.play_sound else "",
            notification.message,
        )


class FanoutNotifier:
    """Delivers each notification to every consumer; one failure does not stop the rest."""

    def __init__(
        self,
        notifiers: Iterable[Notifier],
        logger: Optional[logging.Logger] = None,
    ):
        self._notifiers = tuple(notifiers)
        self._logger = logger or logging.getLogger("notifications")

    def notify(self, notification: Notification) -> None:
        for notifier in self._notifiers:
            try:
                notifier.notify(notification)
            except Exception as error:
                self._logger.error(
                    "Notifier %s failed: %s",
                    type(notifier).__name__,
                    error,
                    exc_info=True,
                )
