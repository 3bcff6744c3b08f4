"""Validated edits of the persisted timer settings."""

from __future__ import annotations

import logging
from dataclasses import fields, replace
from typing import Any, Optional

from contracts.state import Settings
from storage import StateRepository

_SETTINGS_FIELDS: frozenset[str] = frozenset(field.name for field in fields(Settings))


def update_settings(
    repository: StateRepository,
    logger: Optional[logging.Logger] = None,
    **changes: Any,
) -> Settings:
    """Persist `changes`; the engine reads settings afresh on every action."""
    unknown = set(changes) - _SETTINGS_FIELDS
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")

    # Settings.__post_init__ rejects non-positive durations.
    updated = replace(repository.load_settings(), **changes)
    repository.save(settings=updated)
    (logger or logging.getLogger("pomodoro")).info(
        "Settings updated: %s",
        ", ".join(sorted(changes)),
    )
    return updated
