"""Error kinds raised by stores.

Callers branch on the kind: `NotFoundError` usually means "use a default",
everything else means "abort". `NotFoundError` is also a `KeyError` so the
plain `except KeyError` idiom keeps working.
"""
from __future__ import annotations
from typing import Optional


class KVError(Exception):
    """Base class for every error raised by kvtool."""


class ConfigError(KVError, ValueError):
    """Missing or invalid init options or configuration."""


class StorageError(KVError):
    """Local engine failure (open, I/O, corruption, closed handle)."""


class NetworkError(KVError):
    """Transport or remote service failure."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(KVError, KeyError):
    """Key, item or container absent on read."""

    def __str__(self) -> str:
        # KeyError.__str__ repr()s its argument
        return Exception.__str__(self)


class NoSuchContainerError(NotFoundError):
    """Enumerating a container that does not exist."""
