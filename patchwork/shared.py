"""
Session-scoped key/value store shared by all plugins.

Hosts may process independent units on several threads within one
session, so every access goes through a re-entrant lock. Compound
updates should use update_with or the locked() context manager rather
than a separate read and write.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, MutableMapping, Optional


class SharedContext(MutableMapping[str, Any]):
    """
    Mapping from string keys to arbitrary values, one per session.
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = dict(initial or {})
        self._lock = threading.RLock()

    def __getitem__(self, key: str) -> Any:
        with self._lock:
            return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def __delitem__(self, key: str) -> None:
        with self._lock:
            del self._data[key]

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._data))

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __repr__(self) -> str:
        with self._lock:
            return f"SharedContext({self._data!r})"

    def setdefault(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.setdefault(key, default)

    def update_with(self, key: str, fn: Callable[[Any], Any], default: Any = None) -> Any:
        """
        Atomically replace ``self[key]`` with ``fn(self.get(key, default))``
        and return the new value.
        """

        with self._lock:
            value = fn(self._data.get(key, default))
            self._data[key] = value
            return value

    @contextmanager
    def locked(self) -> Iterator[Dict[str, Any]]:
        """Hold the lock and expose the underlying dict for a compound update."""

        with self._lock:
            yield self._data

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
