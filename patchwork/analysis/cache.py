"""
Explicit analysis cache keyed by unit identifier and version.

Every distinct text a session sees for an identifier (the original
source, each overlay, each committed update) gets a fresh version from
next_version, so entries never collide between layers. Entries only
leave the cache through invalidate, prune or clear.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Iterable, Optional, TypeVar

LOG = logging.getLogger(__name__)

T = TypeVar("T")


class AnalysisCache:
    def __init__(self) -> None:
        self._entries: Dict[str, Dict[int, Any]] = {}
        self._counters: Dict[str, int] = {}
        self._lock = threading.Lock()

    def next_version(self, identifier: str) -> int:
        """
        Reserve a new version number for ``identifier``.

        Counters survive clear() so versions handed out before and after
        an invalidation can never be confused.
        """

        with self._lock:
            version = self._counters.get(identifier, 0) + 1
            self._counters[identifier] = version
            return version

    def get(self, identifier: str, version: int) -> Optional[Any]:
        with self._lock:
            return self._entries.get(identifier, {}).get(version)

    def put(self, identifier: str, version: int, value: Any) -> None:
        with self._lock:
            self._entries.setdefault(identifier, {})[version] = value

    def get_or_build(self, identifier: str, version: int, build: Callable[[], T]) -> T:
        """
        Return the cached value for (identifier, version), building and
        storing it on a miss. The build runs outside the lock.
        """

        cached = self.get(identifier, version)
        if cached is not None:
            return cached

        LOG.debug("Analysis cache miss for %s@%d", identifier, version)
        value = build()
        self.put(identifier, version, value)
        return value

    def invalidate(self, identifier: str) -> None:
        with self._lock:
            self._entries.pop(identifier, None)

    def prune(self, identifier: str, keep: Iterable[int]) -> None:
        """Drop every cached version of ``identifier`` not listed in ``keep``."""

        wanted = set(keep)
        with self._lock:
            versions = self._entries.get(identifier)
            if not versions:
                return
            for version in [v for v in versions if v not in wanted]:
                del versions[version]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return sum(len(versions) for versions in self._entries.values())

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        identifier, version = key
        with self._lock:
            return version in self._entries.get(identifier, {})
