"""Protocols describing the key-value store every component reads and writes."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Optional, Protocol

StoreListener = Callable[[frozenset[str], Mapping[str, Any]], None]
Disposer = Callable[[], None]


class StateStore(Protocol):
    """Durable mapping from string keys to JSON-compatible values.

    `get` resolves missing keys to the store's documented defaults. `set`
    commits all given keys as one write. Listeners receive the changed keys
    and their new values for every writer, including other processes.
    """

    def get(self, keys: Optional[Iterable[str]] = None) -> dict[str, Any]:
        ...

    def set(self, values: Mapping[str, Any]) -> None:
        ...

    def stored_keys(self) -> frozenset[str]:
        ...

    def subscribe(self, listener: StoreListener) -> Disposer:
        ...
