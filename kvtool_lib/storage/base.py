"""Store interface definitions.

Defines the `Store` abstract class that both backends implement. Calling
code should hold a `Store` and never a concrete backend type. The class
carries no data logic; it only fixes the contract and the context manager
behaviour.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Sequence


class Store(ABC):
    """Abstract key-value store over opaque byte values.

    `list_keys` and `delete_tree` interpret their argument in a
    backend-defined way: the embedded backend works on containers, the
    distributed backend on flat key prefixes. Each implementation documents
    which one it is.
    """

    @abstractmethod
    def init(self, opts: Sequence[str]) -> None:
        """Open the backend resource using backend-specific options.

        Raise `ConfigError` when required options are missing or malformed.
        """

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Return a fresh copy of the value under `key`.

        Raise `NotFoundError` if the key does not exist.
        """

    @abstractmethod
    def put(self, key: str, value: bytes) -> None:
        """Store `value` under `key`, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete `key`. Deleting an absent key is not an error."""

    @abstractmethod
    def list_keys(self, prefix: str = "") -> List[str]:
        """Return names under `prefix` (backend-defined interpretation)."""

    @abstractmethod
    def delete_tree(self, prefix: str) -> None:
        """Delete everything under `prefix` in one operation."""

    @abstractmethod
    def close(self) -> None:
        """Release the backend resource."""

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def to_bytes(value: object) -> bytes:
    """Return `value` as an independent `bytes` object.

    Stores are byte-opaque; anything that is not bytes-like is rejected
    rather than silently encoded.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"value must be bytes-like, not {type(value).__name__}")
