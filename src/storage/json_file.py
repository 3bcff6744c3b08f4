"""JSON file store shared by every process pointed at the same path."""

from __future__ import annotations

import contextlib
import copy
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from .contracts import Disposer, StoreListener
from .defaults import ALL_KEYS, DEFAULT_VALUES, resolve_defaults
from .errors import StoreDecodeError, StoreError, StoreWriteError
from .listeners import ListenerSet

_FileSignature = tuple[int, int, int]


class JsonFileStore:
    """Durable store backed by one JSON document replaced atomically on write.

    Writes from other processes are detected by comparing the file's inode, mtime and
    size on every read and on `refresh()`; detected changes are delivered to
    listeners like local writes.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        defaults: Optional[Mapping[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._path = Path(path)
        self._logger = logger or logging.getLogger("storage")
        self._defaults = dict(defaults if defaults is not None else DEFAULT_VALUES)
        self._lock = threading.Lock()
        self._listeners = ListenerSet(self._logger)
        self._data: dict[str, Any] = {}
        self._signature: Optional[_FileSignature] = None

        with self._lock:
            self._reload_locked()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, keys: Optional[Iterable[str]] = None) -> dict[str, Any]:
        self.refresh()
        requested = tuple(keys) if keys is not None else ALL_KEYS
        with self._lock:
            values = resolve_defaults(
                (key for key in requested if key not in self._data),
                self._defaults,
            )
            for key in requested:
                if key in self._data:
                    values[key] = copy.deepcopy(self._data[key])
        return values

    def set(self, values: Mapping[str, Any]) -> None:
        incoming = copy.deepcopy(dict(values))
        with self._lock:
            external = self._reload_locked()
            merged = {**self._data, **incoming}
            self._write_locked(merged)
            changed = frozenset(
                key for key, value in incoming.items()
                if key not in self._data or self._data[key] != value
            )
            external_only = external - changed
            external_values = {
                key: copy.deepcopy(merged[key]) for key in external_only if key in merged
            }
            self._data = merged

        self._listeners.emit(external_only, external_values)
        self._listeners.emit(
            changed,
            {key: copy.deepcopy(incoming[key]) for key in changed},
        )

    def stored_keys(self) -> frozenset[str]:
        self.refresh()
        with self._lock:
            return frozenset(self._data)

    def subscribe(self, listener: StoreListener) -> Disposer:
        return self._listeners.add(listener)

    def refresh(self) -> frozenset[str]:
        """Pick up writes made by other processes and notify listeners."""
        with self._lock:
            changed = self._reload_locked()
            values = {key: copy.deepcopy(self._data[key]) for key in changed if key in self._data}
        self._listeners.emit(changed, values)
        return changed

    def _reload_locked(self) -> frozenset[str]:
        signature = self._file_signature()
        if signature == self._signature:
            return frozenset()

        loaded = self._read_file() if signature is not None else {}
        changed = frozenset(
            key for key in set(loaded) | set(self._data)
            if loaded.get(key) != self._data.get(key)
        )
        self._data = loaded
        self._signature = signature
        if changed:
            self._logger.debug("Detected external store changes: %s", sorted(changed))
        return changed

    def _file_signature(self) -> Optional[_FileSignature]:
        try:
            stat = self._path.stat()
        except FileNotFoundError:
            return None
        except OSError as error:
            raise StoreError(f"Cannot stat state file {self._path}: {error}") from error
        return (stat.st_ino, stat.st_mtime_ns, stat.st_size)

    def _read_file(self) -> dict[str, Any]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as error:
            raise StoreError(f"Cannot read state file {self._path}: {error}") from error

        if not raw.strip():
            return {}
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as error:
            raise StoreDecodeError(
                f"State file {self._path} is not valid JSON: {error}"
            ) from error
        if not isinstance(payload, dict):
            raise StoreDecodeError(f"State file {self._path} must contain a JSON object.")
        return payload

    def _write_locked(self, payload: Mapping[str, Any]) -> None:
        tmp_path: Optional[Path] = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as fh:
                tmp_path = Path(fh.name)
                json.dump(payload, fh, indent=2, sort_keys=True)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self._path)
        except (OSError, TypeError, ValueError) as error:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    tmp_path.unlink()
            raise StoreWriteError(
                f"Failed to write state file {self._path}: {error}"
            ) from error

        self._signature = self._file_signature()
