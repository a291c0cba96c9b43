"""Shared fixtures for the store tests."""
from typing import Dict, List

import httpx
import pytest

KV_PREFIX = "/v1/kv/"


class FakeConsul:
    """In-memory stand-in for a Consul agent's KV endpoint.

    Plug it into a store through `httpx.MockTransport`, or use the
    `fake_consul` fixture:

        fake = FakeConsul()
        store = ConsulStore(transport=fake.transport())
    """

    def __init__(self) -> None:
        self.kv: Dict[str, bytes] = {}
        self.requests: List[httpx.Request] = []

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if not path.startswith(KV_PREFIX):
            return httpx.Response(404)
        key = path[len(KV_PREFIX):]
        params = request.url.params

        if request.method == "PUT":
            self.kv[key] = request.read()
            return httpx.Response(200, json=True)
        if request.method == "GET" and "keys" in params:
            keys = sorted(k for k in self.kv if k.startswith(key))
            if not keys:
                return httpx.Response(404)
            return httpx.Response(200, json=keys)
        if request.method == "GET":
            if key not in self.kv:
                return httpx.Response(404)
            return httpx.Response(200, content=self.kv[key])
        if request.method == "DELETE" and "recurse" in params:
            for k in [k for k in self.kv if k.startswith(key)]:
                del self.kv[k]
            return httpx.Response(200, json=True)
        if request.method == "DELETE":
            self.kv.pop(key, None)
            return httpx.Response(200, json=True)
        return httpx.Response(405)


@pytest.fixture
def fake_consul():
    return FakeConsul()


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "kv.db")
