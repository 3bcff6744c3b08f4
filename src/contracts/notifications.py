"""Opaque notification events emitted by the timer and alarm scheduler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

NotificationKind = Literal["alarm", "session-end"]

NOTIFY_ALARM = "alarm"
NOTIFY_SESSION_END = "session-end"


@dataclass(frozen=True)
class Notification:
    """Side-channel payload; rendering and sound playback happen elsewhere."""
    kind: NotificationKind
    message: str
    title: str = ""
    play_sound: bool = True


class Notifier(Protocol):
    """Protocol for consumers of notification events."""

    def notify(self, notification: Notification) -> None: ...
