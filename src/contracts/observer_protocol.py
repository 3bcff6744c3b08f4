"""Websocket event names and paths shared by the state server and its clients."""

from __future__ import annotations

WEBSOCKET_PATH = "/ws"
HEALTHZ_PATH = "/healthz"

# Websocket event types
EVENT_HELLO = "hello"
EVENT_STATE_CHANGED = "state_changed"
EVENT_NOTIFICATION = "notification"
