"""Shared fixtures: a fake aiohttp session standing in for the Mesos master."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import patch

import pytest

MASTER_URL = "http://master:5050"


class FakeResponse:
    """Minimal aiohttp response."""

    def __init__(self, status: int = 200, body: str | bytes = ""):
        self.status = status
        self._body = body.encode() if isinstance(body, str) else body

    async def json(self, content_type: str | None = "application/json") -> Any:
        return json.loads(await self.text())

    async def text(self) -> str:
        return self._body.decode("utf-8")


class _RequestContext:
    def __init__(self, outcome: FakeResponse | Exception):
        self._outcome = outcome

    async def __aenter__(self) -> FakeResponse:
        if isinstance(self._outcome, Exception):
            raise self._outcome
        return self._outcome

    async def __aexit__(self, *exc_info) -> None:
        return None


class FakeSession:
    """Route table of (method, url) -> response or exception.

    Every request is recorded in ``requests`` as (method, url, kwargs).
    Unrouted URLs answer 404.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], FakeResponse | Exception] = {}
        self.requests: list[tuple[str, str, dict[str, Any]]] = []

    def add(
        self,
        method: str,
        url: str,
        payload: Any = None,
        status: int = 200,
        body: str | bytes | None = None,
        exc: Exception | None = None,
    ) -> None:
        if exc is not None:
            self.routes[(method, url)] = exc
            return
        if body is None:
            body = json.dumps(payload)
        self.routes[(method, url)] = FakeResponse(status, body)

    def _request(self, method: str, url: str, kwargs: dict[str, Any]) -> _RequestContext:
        self.requests.append((method, url, kwargs))
        return _RequestContext(self.routes.get((method, url), FakeResponse(404, "not found")))

    def get(self, url: str, **kwargs) -> _RequestContext:
        return self._request("GET", url, kwargs)

    def post(self, url: str, **kwargs) -> _RequestContext:
        return self._request("POST", url, kwargs)

    async def __aenter__(self) -> FakeSession:
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None


@pytest.fixture
def fake_session():
    """A FakeSession handed out by every aiohttp.ClientSession() call."""
    session = FakeSession()
    with patch("aiohttp.ClientSession", return_value=session):
        yield session


@pytest.fixture
def registry():
    from prometheus_client import CollectorRegistry

    return CollectorRegistry()


@pytest.fixture
def reporter(registry):
    from mesos_exporter.errors import ErrorReporter

    return ErrorReporter(registry)


@pytest.fixture
def client(reporter):
    from mesos_exporter.client import HttpClient

    return HttpClient(MASTER_URL, reporter)


@pytest.fixture
def rsa_private_pem() -> bytes:
    """Generate a throwaway RSA key so no key material lives in the repo."""
    from cryptography.hazmat.primitives import serialization
    from cryptography.hazmat.primitives.asymmetric import rsa

    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def slave_payload(
    slave_id: str = "S1",
    hostname: str = "agent-1",
    total: dict | None = None,
    used: dict | None = None,
    unreserved: dict | None = None,
    attributes: dict | None = None,
) -> dict:
    return {
        "id": slave_id,
        "pid": "slave(1)@10.0.0.1:5051",
        "hostname": hostname,
        "port": 5051,
        "resources": total or {"cpus": 4, "mem": 1000, "disk": 2000, "ports": "[31000-32000]"},
        "used_resources": used or {"cpus": 1.5, "mem": 500, "disk": 100, "ports": "[31000-31009]"},
        "unreserved_resources": unreserved or {"cpus": 4, "mem": 1000, "disk": 2000, "ports": "[31000-32000]"},
        "attributes": attributes or {},
    }


@pytest.fixture
def make_slave():
    return slave_payload
