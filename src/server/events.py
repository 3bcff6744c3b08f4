"""Serialization of websocket events pushed to remote observers."""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Callable

from contracts.notifications import Notification
from contracts.observer_protocol import EVENT_NOTIFICATION


def make_event(
    event_type: str,
    *,
    now_fn: Callable[[], datetime] | None = None,
    **payload: Any,
) -> str:
    """Serialize an event payload with type and timestamp for websocket delivery."""
    now = now_fn() if now_fn is not None else datetime.now(timezone.utc)
    return json.dumps(
        {
            "type": event_type,
            "timestamp": now.isoformat(),
            **payload,
        }
    )


def make_notification_event(
    notification: Notification,
    *,
    now_fn: Callable[[], datetime] | None = None,
) -> str:
    return make_event(EVENT_NOTIFICATION, now_fn=now_fn, **asdict(notification))
