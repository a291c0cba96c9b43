"""Distributed store backed by the Consul KV HTTP API.

Consul has no containers: every key lives in one flat, prefix-addressable
namespace. Keys are sent as-is, without container/item parsing, so
`"a/x"` here is the flat key `a/x`. `list_keys(prefix)` and
`delete_tree(prefix)` are prefix scans over that namespace; the empty
prefix means every key.

No retries are attempted: transport and server failures surface as
`NetworkError`, with consistency left to the Consul cluster.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import httpx

from kvtool_lib.errors import ConfigError, NetworkError, NotFoundError
from .base import Store, to_bytes

logger = logging.getLogger(__name__)

KV_PATH = "/v1/kv/"
DEFAULT_SCHEME = "http"


def _base_url(address: str) -> str:
    if "://" in address:
        return address.rstrip("/")
    return f"{DEFAULT_SCHEME}://{address.rstrip('/')}"


def _parse_timeout(raw: str) -> Optional[float]:
    try:
        seconds = int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"timeout must be whole seconds, got {raw!r}") from exc
    if seconds < 0:
        raise ConfigError(f"timeout must not be negative, got {seconds}")
    # zero means no timeout
    return float(seconds) or None


class ConsulStore(Store):
    """Store over a Consul agent's key/value endpoint.

    Parameters
    - transport: optional `httpx` transport, used by tests to stand in for
      a real agent.
    """

    def __init__(self, transport: Optional[httpx.BaseTransport] = None) -> None:
        self._transport = transport
        self._client: Optional[httpx.Client] = None
        self.address: Optional[str] = None
        self.timeout: Optional[float] = None

    def init(self, opts: Sequence[str]) -> None:
        if not opts or not opts[0]:
            raise ConfigError("address required to init consul store")
        timeout = _parse_timeout(opts[1]) if len(opts) > 1 else None
        self.address = _base_url(opts[0])
        self.timeout = timeout
        if self._client is not None:
            self._client.close()
        kwargs: Dict[str, Any] = {"base_url": self.address, "timeout": timeout}
        if self._transport is not None:
            kwargs["transport"] = self._transport
        self._client = httpx.Client(**kwargs)
        logger.info("Consul store bound to %s (timeout=%s)", self.address, timeout)

    def get(self, key: str) -> bytes:
        resp = self._request("GET", key, params={"raw": ""}, allow_missing=True)
        if resp.status_code == 404:
            raise NotFoundError(f"key does not exist: {key!r}")
        return bytes(resp.content)

    def put(self, key: str, value: bytes) -> None:
        data = to_bytes(value)
        resp = self._request("PUT", key, content=data)
        if resp.content.strip() == b"false":
            raise NetworkError(f"consul refused write of {key!r}", resp.status_code)
        logger.debug("Put %s (%d bytes)", key, len(data))

    def delete(self, key: str) -> None:
        self._request("DELETE", key)
        logger.debug("Deleted %s", key)

    def list_keys(self, prefix: str = "") -> List[str]:
        """Return every key starting with `prefix`, sorted."""
        resp = self._request("GET", prefix, params={"keys": ""}, allow_missing=True)
        if resp.status_code == 404:
            return []
        return sorted(resp.json() or [])

    def delete_tree(self, prefix: str) -> None:
        """Delete every key starting with `prefix` in one request."""
        self._request("DELETE", prefix, params={"recurse": ""})
        logger.debug("Deleted tree %s", prefix)

    def close(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            client.close()
            logger.info("Closed consul store %s", self.address)

    def _request(self, method: str, key: str, allow_missing: bool = False, **kwargs: Any) -> httpx.Response:
        if self._client is None:
            raise NetworkError("consul store is not open")
        # Consul keys never start with "/"; a doubled slash gets redirected
        url = KV_PATH + quote(key[1:] if key.startswith("/") else key, safe="/")
        try:
            resp = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise NetworkError(f"consul {method} {key!r} failed: {exc}") from exc
        if resp.status_code == 404 and allow_missing:
            return resp
        # redirects are not followed, so anything but 2xx is a failure
        if not resp.is_success:
            raise NetworkError(
                f"consul {method} {key!r} returned {resp.status_code}: {resp.text.strip()}",
                resp.status_code,
            )
        return resp
