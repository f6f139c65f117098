"""HTTP client for the master's status endpoints."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, TypeVar

import aiohttp

from mesos_exporter import USER_AGENT
from mesos_exporter.auth import AuthManager
from mesos_exporter.config import AuthConfig, ExporterConfig
from mesos_exporter.errors import DecodeError, ErrorReporter, TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class HttpClient:
    """Fetch and decode JSON from one master.

    Every failure is logged, counted once and turned into a None result.
    Nothing is retried.
    """

    def __init__(
        self,
        url: str,
        reporter: ErrorReporter,
        auth: AuthConfig | None = None,
        auth_manager: AuthManager | None = None,
        timeout: float | None = None,
        user_agent: str = USER_AGENT,
    ):
        """Initialize the client.

        Args:
            url: Base URL of the master, e.g. ``http://leader.mesos:5050``.
            reporter: Error reporter shared by all collectors.
            auth: Basic auth and TLS settings.
            auth_manager: Token source; required for strict mode.
            timeout: Total request timeout in seconds. None keeps the
                aiohttp default.
            user_agent: User agent sent with every request.
        """
        self.url = url
        self.reporter = reporter
        self.auth = auth or AuthConfig()
        self.auth_manager = auth_manager
        self.timeout = timeout
        self.user_agent = user_agent

        if self.auth.strict_mode and auth_manager is None:
            raise ValueError("strict mode requires an AuthManager")

    @classmethod
    def from_config(
        cls,
        config: ExporterConfig,
        reporter: ErrorReporter,
        auth_manager: AuthManager | None = None,
    ) -> HttpClient:
        """Create a client from loaded configuration.

        Args:
            config: Exporter configuration supplying URL, auth and timeout.
            reporter: Error reporter shared by all collectors.
            auth_manager: Token source; required when strict mode is on.

        Returns:
            A configured HttpClient.

        Raises:
            ValueError: If strict mode is on and no auth_manager is given.
        """
        return cls(
            config.url,
            reporter,
            auth=config.auth,
            auth_manager=auth_manager,
            timeout=config.timeout,
        )

    def _session(self) -> aiohttp.ClientSession:
        kwargs: dict[str, Any] = {}
        if self.timeout is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=self.timeout)
        if self.auth.skip_ssl_verify:
            kwargs["connector"] = aiohttp.TCPConnector(ssl=False)
        return aiohttp.ClientSession(**kwargs)

    async def fetch_and_decode(self, endpoint: str, target: Callable[[Any], T]) -> T | None:
        """GET an endpoint and decode its JSON body.

        Args:
            endpoint: Path appended to the base URL, e.g. ``/state``.
            target: Callable turning the parsed JSON into a model.

        Returns:
            The decoded model, or None if anything failed.
        """
        url = self.url.rstrip("/") + endpoint
        try:
            async with self._session() as session:
                headers = await self._headers(session)
                logger.debug(f"Fetching URL {url}")
                body = await self._get_json(session, url, headers)
        except TransportError as e:
            logger.error(f"Error fetching URL {url}: {e}")
            self.reporter.report(e)
            return None
        except DecodeError as e:
            logger.error(f"Error decoding response body from {url}: {e}")
            self.reporter.report(e)
            return None

        try:
            return target(body)
        except (DecodeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Error decoding response body from {url}: {e}")
            self.reporter.report(e)
            return None

    async def _headers(self, session: aiohttp.ClientSession) -> dict[str, str]:
        headers = {"User-Agent": self.user_agent}
        if self.auth.strict_mode:
            token = await self.auth_manager.auth_token(session)
            if token:
                headers["Authorization"] = token
        return headers

    async def _get_json(self, session: aiohttp.ClientSession, url: str, headers: dict[str, str]) -> Any:
        basic_auth = None
        if self.auth.has_basic_auth:
            basic_auth = aiohttp.BasicAuth(self.auth.username, self.auth.password)

        try:
            async with session.get(url, headers=headers, auth=basic_auth) as response:
                if not 200 <= response.status < 300:
                    raise TransportError(url, f"unexpected status {response.status}", status=response.status)
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(url, str(e) or type(e).__name__) from e
        except ValueError as e:
            raise DecodeError(str(e)) from e
