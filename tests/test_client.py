"""Tests for HttpClient fetch and decode."""

from __future__ import annotations

import aiohttp
import pytest

from mesos_exporter.config import AuthConfig
from mesos_exporter.state import MasterState

MASTER_URL = "http://master:5050"


def errors(registry) -> float:
    return registry.get_sample_value("mesos_collector_errors_total")


class TestFetchAndDecode:
    """Tests for HttpClient.fetch_and_decode."""

    @pytest.mark.asyncio
    async def test_success_decodes_into_target(self, client, fake_session, registry, make_slave):
        """A 200 response MUST decode through the target callable."""
        fake_session.add("GET", f"{MASTER_URL}/state", {"slaves": [make_slave()]})

        state = await client.fetch_and_decode("/state", MasterState.from_dict)

        assert isinstance(state, MasterState)
        assert state.slaves[0].id == "S1"
        assert errors(registry) == 0

    @pytest.mark.asyncio
    async def test_sends_user_agent_without_auth(self, client, fake_session):
        fake_session.add("GET", f"{MASTER_URL}/version", {})

        await client.fetch_and_decode("/version", dict)

        _method, _url, kwargs = fake_session.requests[0]
        assert kwargs["headers"]["User-Agent"].startswith("mesos-exporter/")
        assert "Authorization" not in kwargs["headers"]
        assert kwargs["auth"] is None

    @pytest.mark.asyncio
    async def test_trailing_slash_trimmed(self, reporter, fake_session):
        from mesos_exporter.client import HttpClient

        client = HttpClient(f"{MASTER_URL}/", reporter)
        fake_session.add("GET", f"{MASTER_URL}/version", {})

        assert await client.fetch_and_decode("/version", dict) == {}

    @pytest.mark.asyncio
    async def test_basic_auth_requires_both_halves(self, reporter, fake_session):
        from mesos_exporter.client import HttpClient

        fake_session.add("GET", f"{MASTER_URL}/version", {})

        with_both = HttpClient(MASTER_URL, reporter, auth=AuthConfig(username="u", password="p"))
        await with_both.fetch_and_decode("/version", dict)
        only_user = HttpClient(MASTER_URL, reporter, auth=AuthConfig(username="u"))
        await only_user.fetch_and_decode("/version", dict)

        assert fake_session.requests[0][2]["auth"] == aiohttp.BasicAuth("u", "p")
        assert fake_session.requests[1][2]["auth"] is None

    @pytest.mark.asyncio
    async def test_transport_error_counted(self, client, fake_session, registry):
        """Transport failures MUST yield None and count one error."""
        fake_session.add("GET", f"{MASTER_URL}/state", exc=aiohttp.ClientConnectionError("refused"))

        assert await client.fetch_and_decode("/state", MasterState.from_dict) is None
        assert errors(registry) == 1

    @pytest.mark.asyncio
    async def test_non_2xx_counted(self, client, fake_session, registry):
        fake_session.add("GET", f"{MASTER_URL}/state", {"message": "nope"}, status=503)

        assert await client.fetch_and_decode("/state", MasterState.from_dict) is None
        assert errors(registry) == 1

    @pytest.mark.asyncio
    async def test_malformed_body_counted(self, client, fake_session, registry):
        fake_session.add("GET", f"{MASTER_URL}/state", body="{not json")

        assert await client.fetch_and_decode("/state", MasterState.from_dict) is None
        assert errors(registry) == 1

    @pytest.mark.asyncio
    async def test_non_utf8_body_counted(self, client, fake_session, registry):
        fake_session.add("GET", f"{MASTER_URL}/state", body=b'{"slaves": "\xff"}')

        assert await client.fetch_and_decode("/state", MasterState.from_dict) is None
        assert errors(registry) == 1

    @pytest.mark.asyncio
    async def test_target_rejection_counted(self, client, fake_session, registry):
        """A payload of the wrong shape MUST not partially decode."""
        fake_session.add("GET", f"{MASTER_URL}/state", {"slaves": "many"})

        assert await client.fetch_and_decode("/state", MasterState.from_dict) is None
        assert errors(registry) == 1

    def test_strict_mode_requires_auth_manager(self, reporter):
        from mesos_exporter.client import HttpClient

        with pytest.raises(ValueError):
            HttpClient(MASTER_URL, reporter, auth=AuthConfig(strict_mode=True))


class TestStrictMode:
    """Tests for token headers in strict mode."""

    @pytest.fixture
    def strict_client(self, reporter, rsa_private_pem):
        from mesos_exporter.auth import AuthManager
        from mesos_exporter.client import HttpClient

        manager = AuthManager(
            uid="exporter",
            login_url="https://leader.mesos/acs/api/v1/auth/login",
            private_key=rsa_private_pem,
            reporter=reporter,
        )
        return HttpClient(MASTER_URL, reporter, auth=AuthConfig(strict_mode=True), auth_manager=manager)

    @pytest.mark.asyncio
    async def test_token_attached(self, strict_client, fake_session):
        fake_session.add("POST", "https://leader.mesos/acs/api/v1/auth/login", {"token": "abc"})
        fake_session.add("GET", f"{MASTER_URL}/version", {})

        await strict_client.fetch_and_decode("/version", dict)

        get_requests = [r for r in fake_session.requests if r[0] == "GET"]
        assert get_requests[0][2]["headers"]["Authorization"] == "token=abc"

    @pytest.mark.asyncio
    async def test_login_failure_degrades_to_unauthenticated(self, strict_client, fake_session, registry):
        """An AuthError MUST NOT stop the request from being sent."""
        fake_session.add(
            "POST",
            "https://leader.mesos/acs/api/v1/auth/login",
            exc=aiohttp.ClientConnectionError("down"),
        )
        fake_session.add("GET", f"{MASTER_URL}/version", {"version": "1.7.2"})

        result = await strict_client.fetch_and_decode("/version", dict)

        assert result == {"version": "1.7.2"}
        get_requests = [r for r in fake_session.requests if r[0] == "GET"]
        assert "Authorization" not in get_requests[0][2]["headers"]
        assert errors(registry) == 1

    @pytest.mark.asyncio
    async def test_undecodable_login_degrades_to_unauthenticated(self, strict_client, fake_session, registry):
        fake_session.add("POST", "https://leader.mesos/acs/api/v1/auth/login", body=b'{"token": "\xff\xfe"}')
        fake_session.add("GET", f"{MASTER_URL}/version", {"version": "1.7.2"})

        result = await strict_client.fetch_and_decode("/version", dict)

        assert result == {"version": "1.7.2"}
        get_requests = [r for r in fake_session.requests if r[0] == "GET"]
        assert "Authorization" not in get_requests[0][2]["headers"]
        assert errors(registry) == 1
