"""Background runtime, display observer and notifier exports."""

from .background import BackgroundRuntime
from .notifications import FanoutNotifier, LoggingNotifier
from .observer import DisplayObserver, DisplayUpdate

__all__ = [
    "BackgroundRuntime",
    "DisplayObserver",
    "DisplayUpdate",
    "FanoutNotifier",
    "LoggingNotifier",
]
