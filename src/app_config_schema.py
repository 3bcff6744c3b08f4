"""Dataclass schema objects used by runtime configuration loading."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CONFIG_FILE = "config.toml"

STORAGE_BACKEND_JSON = "json"
STORAGE_BACKEND_MEMORY = "memory"
STORAGE_BACKENDS: frozenset[str] = frozenset({STORAGE_BACKEND_JSON, STORAGE_BACKEND_MEMORY})

LOG_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class AppConfigurationError(Exception):
    """Raised when application configuration fails."""


@dataclass(frozen=True)
class TimerDefaultsSettings:
    """Initial timer settings from `[timer]`; seeded into the store on first start."""
    focus_minutes: int = 25
    short_break_minutes: int = 5
    long_break_minutes: int = 15
    auto_start_breaks: bool = False
    auto_start_pomos: bool = False
    sound_enabled: bool = True


@dataclass(frozen=True)
class StorageSettings:
    """State store backend settings from `[storage]`."""
    backend: str = STORAGE_BACKEND_JSON
    path: str = "state.json"
    poll_interval_seconds: float = 1.0


@dataclass(frozen=True)
class WakeupSettings:
    """Wake-up dispatcher tuning from `[wakeups]`."""
    max_wait_seconds: float = 1.0


@dataclass(frozen=True)
class ServerSettings:
    """Websocket state server settings from `[server]`."""
    enabled: bool = False
    host: str = "127.0.0.1"
    port: int = 8766


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
    """Complete typed runtime configuration loaded from `config.toml`."""
    timer: TimerDefaultsSettings
    storage: StorageSettings
    wakeups: WakeupSettings
    server: ServerSettings
    logging: LoggingSettings
    source_file: str
