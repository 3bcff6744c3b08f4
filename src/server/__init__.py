"""Websocket server pushing store changes and notifications to observers."""

from .config import ServerConfigurationError, StateServerConfig
from .service import StateServer

__all__ = [
    "ServerConfigurationError",
    "StateServer",
    "StateServerConfig",
]
