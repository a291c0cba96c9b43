"""Value-level wrapper over a byte store.

`SerializingStore` turns Python values into bytes with a `Serializer`
before handing them to the wrapped store. The wrapped store stays
byte-opaque; raw `get`/`put` are still available for callers that manage
their own encoding.
"""
from __future__ import annotations
from typing import Any, List

from .base import Store
from .serializer import Serializer


class SerializingStore:
    def __init__(self, store: Store, serializer: Serializer) -> None:
        self.store = store
        self.serializer = serializer

    def save(self, key: str, value: Any) -> None:
        self.store.put(key, self.serializer.dump(value))

    def load(self, key: str) -> Any:
        """Load and decode the value under `key`; `NotFoundError` if absent."""
        return self.serializer.load(self.store.get(key))

    def get(self, key: str) -> bytes:
        return self.store.get(key)

    def put(self, key: str, value: bytes) -> None:
        self.store.put(key, value)

    def delete(self, key: str) -> None:
        self.store.delete(key)

    def list_keys(self, prefix: str = "") -> List[str]:
        return self.store.list_keys(prefix)

    def delete_tree(self, prefix: str) -> None:
        self.store.delete_tree(prefix)

    def close(self) -> None:
        self.store.close()

    def __enter__(self) -> "SerializingStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
