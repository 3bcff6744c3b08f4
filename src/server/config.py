"""Configuration model for the websocket state server."""

from __future__ import annotations

from dataclasses import dataclass

from contracts.observer_protocol import HEALTHZ_PATH, WEBSOCKET_PATH


class ServerConfigurationError(Exception):
    """Raised when state server configuration is invalid."""


@dataclass(frozen=True)
class StateServerConfig:
    """Validated state server configuration derived from app settings."""
    enabled: bool = False
    host: str = "127.0.0.1"
    port: int = 8766

    def __post_init__(self) -> None:
        if not self.host.strip():
            raise ServerConfigurationError("server.host cannot be empty")

        if not 1 <= self.port <= 65535:
            raise ServerConfigurationError(
                f"server.port must be in [1, 65535], got: {self.port}"
            )

    @property
    def websocket_path(self) -> str:
        return WEBSOCKET_PATH

    @property
    def healthz_path(self) -> str:
        return HEALTHZ_PATH

    @classmethod
    def from_settings(cls, settings) -> "StateServerConfig":
        return cls(
            enabled=bool(settings.enabled),
            host=settings.host.strip(),
            port=settings.port,
        )
