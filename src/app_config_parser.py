"""Typed parser for config.toml sections into immutable app settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from app_config_schema import (
    LOG_LEVELS,
    STORAGE_BACKENDS,
    AppConfig,
    AppConfigurationError,
    LoggingSettings,
    ServerSettings,
    StorageSettings,
    TimerDefaultsSettings,
    WakeupSettings,
)


def parse_app_config(
    raw: Mapping[str, Any],
    *,
    base_dir: Path,
    source_file: str,
) -> AppConfig:
    """Parse raw TOML mappings into strongly typed application settings."""
    return AppConfig(
        timer=_parse_timer_settings(_section(raw, "timer")),
        storage=_parse_storage_settings(_section(raw, "storage"), base_dir=base_dir),
        wakeups=_parse_wakeup_settings(_section(raw, "wakeups")),
        server=_parse_server_settings(_section(raw, "server")),
        logging=_parse_logging_settings(_section(raw, "logging")),
        source_file=source_file,
    )


def _parse_timer_settings(section: Mapping[str, Any]) -> TimerDefaultsSettings:
    return TimerDefaultsSettings(
        focus_minutes=_as_positive_int(section.get("focus_minutes", 25), "timer.focus_minutes"),
        short_break_minutes=_as_positive_int(
            section.get("short_break_minutes", 5),
            "timer.short_break_minutes",
        ),
        long_break_minutes=_as_positive_int(
            section.get("long_break_minutes", 15),
            "timer.long_break_minutes",
        ),
        auto_start_breaks=_as_bool(
            section.get("auto_start_breaks", False),
            "timer.auto_start_breaks",
        ),
        auto_start_pomos=_as_bool(
            section.get("auto_start_pomos", False),
            "timer.auto_start_pomos",
        ),
        sound_enabled=_as_bool(section.get("sound_enabled", True), "timer.sound_enabled"),
    )


def _parse_storage_settings(
    section: Mapping[str, Any],
    *,
    base_dir: Path,
) -> StorageSettings:
    backend = _as_str(section.get("backend", "json"), "storage.backend").lower()
    if backend not in STORAGE_BACKENDS:
        allowed = ", ".join(sorted(STORAGE_BACKENDS))
        raise AppConfigurationError(f"storage.backend must be one of: {allowed}")

    path = _as_str(section.get("path", "state.json"), "storage.path")
    if not path:
        raise AppConfigurationError("storage.path cannot be empty.")

    poll_interval = _as_float(
        section.get("poll_interval_seconds", 1.0),
        "storage.poll_interval_seconds",
    )
    if poll_interval <= 0:
        raise AppConfigurationError("storage.poll_interval_seconds must be greater than zero.")

    return StorageSettings(
        backend=backend,
        path=_resolve_path(base_dir, path),
        poll_interval_seconds=poll_interval,
    )


def _parse_wakeup_settings(section: Mapping[str, Any]) -> WakeupSettings:
    max_wait = _as_float(section.get("max_wait_seconds", 1.0), "wakeups.max_wait_seconds")
    if max_wait <= 0:
        raise AppConfigurationError("wakeups.max_wait_seconds must be greater than zero.")
    return WakeupSettings(max_wait_seconds=max_wait)


def _parse_server_settings(section: Mapping[str, Any]) -> ServerSettings:
    port = _as_int(section.get("port", 8766), "server.port")
    if not 1 <= port <= 65535:
        raise AppConfigurationError(f"server.port must be in [1, 65535], got: {port}")
    return ServerSettings(
        enabled=_as_bool(section.get("enabled", False), "server.enabled"),
        host=_as_str(section.get("host", "127.0.0.1"), "server.host"),
        port=port,
    )


def _parse_logging_settings(section: Mapping[str, Any]) -> LoggingSettings:
    level = _as_str(section.get("level", "INFO"), "logging.level").upper()
    if level not in LOG_LEVELS:
        allowed = ", ".join(sorted(LOG_LEVELS))
        raise AppConfigurationError(f"logging.level must be one of: {allowed}")
    return LoggingSettings(level=level)


def _section(root: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    raw = root.get(name, {})
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise AppConfigurationError(f"[{name}] must be a table.")
    return raw


def _as_str(value: Any, field: str) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    raise AppConfigurationError(f"{field} must be a string.")


def _as_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    raise AppConfigurationError(f"{field} must be a boolean.")


def _as_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise AppConfigurationError(f"{field} must be an integer.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as error:
            raise AppConfigurationError(f"{field} must be an integer.") from error
    raise AppConfigurationError(f"{field} must be an integer.")


def _as_positive_int(value: Any, field: str) -> int:
    number = _as_int(value, field)
    if number <= 0:
        raise AppConfigurationError(f"{field} must be greater than zero.")
    return number


def _as_float(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise AppConfigurationError(f"{field} must be a float.")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as error:
            raise AppConfigurationError(f"{field} must be a float.") from error
    raise AppConfigurationError(f"{field} must be a float.")


def _resolve_path(base_dir: Path, raw: str) -> str:
    if not raw:
        return ""
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    return str(path)
