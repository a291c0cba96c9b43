"""Store abstraction package for kvtool."""
from __future__ import annotations
from typing import Any, Dict, Optional, Sequence, Type, Union

from kvtool_lib.errors import ConfigError
from .address import DEFAULT_CONTAINER, parse_address
from .base import Store
from .consul_backend import ConsulStore
from .embedded_backend import EmbeddedStore
from .interfaces import StoreProtocol
from .registry import ContainerRegistry
from .serializer import SERIALIZERS
from .serializing_store import SerializingStore

BACKENDS: Dict[str, Type[Store]] = {
    "embedded": EmbeddedStore,
    "sqlite": EmbeddedStore,
    "bolt": EmbeddedStore,
    "consul": ConsulStore,
    "distributed": ConsulStore,
}


def create_store(
    backend: str = "embedded",
    options: Sequence[str] = (),
    serializer: Optional[str] = None,
    **kwargs: Any,
) -> Union[Store, SerializingStore]:
    """Build and initialise a store.

    `options` are the backend's init options (a file path for `embedded`,
    an address and optional timeout for `consul`). Extra keyword arguments
    go to the backend constructor. When `serializer` names one of
    `pickle`, `json` or `yaml` the store is wrapped in a `SerializingStore`.
    """
    try:
        cls = BACKENDS[backend.lower()]
    except KeyError:
        raise ConfigError(f"unknown backend {backend!r}; expected one of {sorted(BACKENDS)}") from None
    ser_cls = None
    if serializer:
        ser_cls = SERIALIZERS.get(serializer.lower())
        if ser_cls is None:
            raise ConfigError(f"unknown serializer {serializer!r}; expected one of {sorted(SERIALIZERS)}")
    store = cls(**kwargs)
    store.init(list(options))
    if ser_cls is not None:
        return SerializingStore(store, ser_cls())
    return store


__all__ = [
    "Store",
    "StoreProtocol",
    "EmbeddedStore",
    "ConsulStore",
    "ContainerRegistry",
    "SerializingStore",
    "DEFAULT_CONTAINER",
    "parse_address",
    "create_store",
]
