"""In-memory set of containers known to exist in an embedded store.

The registry only lets `put` skip a redundant create-if-missing
transaction. It never authorises or blocks an operation; the engine stays
the source of truth.
"""
from __future__ import annotations
import threading
from typing import Iterable, List, Set


class ContainerRegistry:
    def __init__(self, names: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self._names: Set[str] = set(names)

    def exists(self, name: str) -> bool:
        with self._lock:
            return name in self._names

    def remember(self, name: str) -> None:
        with self._lock:
            self._names.add(name)

    def forget(self, name: str) -> None:
        with self._lock:
            self._names.discard(name)

    def reset(self, names: Iterable[str]) -> None:
        """Replace the contents with an authoritative listing."""
        fresh = set(names)
        with self._lock:
            self._names = fresh

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._names)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.exists(name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._names)
