"""Login token management for DC/OS strict mode.

In strict mode every request to the master carries an ``Authorization:
token=<value>`` header. The value is obtained by signing a short-lived RS256
assertion for the service account uid and exchanging it at the login endpoint.
The token is cached until the expiry fixed at mint time (now + 1 hour).

No locking is done here: one AuthManager serves one scrape at a time.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable

import aiohttp
import jwt
from cryptography.hazmat.primitives import serialization

from mesos_exporter import USER_AGENT
from mesos_exporter.errors import AuthError, ErrorReporter

logger = logging.getLogger(__name__)

TOKEN_LIFETIME_SECONDS = 3600
SIGNING_ALGORITHM = "RS256"


@dataclass
class AuthState:
    """Cached login token. Mutated only by AuthManager."""

    signing_key: bytes
    token: str = ""
    expires_at: int = 0


class AuthManager:
    """Mint, exchange and cache login tokens."""

    def __init__(
        self,
        uid: str,
        login_url: str,
        private_key: str | bytes,
        reporter: ErrorReporter,
        user_agent: str = USER_AGENT,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the auth manager.

        Args:
            uid: Service account uid placed in the assertion.
            login_url: Endpoint that exchanges assertions for tokens.
            private_key: PEM-encoded RSA private key.
            reporter: Error reporter for network and decode failures.
            user_agent: User agent sent with login requests.
            clock: Wall clock returning epoch seconds.
        """
        if isinstance(private_key, str):
            private_key = private_key.encode()

        self.uid = uid
        self.login_url = login_url
        self.reporter = reporter
        self.user_agent = user_agent
        self._clock = clock
        self.state = AuthState(signing_key=private_key)

    def signing_token(self, expires_at: int) -> str:
        """Sign a login assertion for the configured uid.

        Raises:
            AuthError: If the key cannot be parsed or the assertion signed.
        """
        try:
            key = serialization.load_pem_private_key(self.state.signing_key, password=None)
        except (ValueError, TypeError) as e:
            raise AuthError(f"Error parsing private key: {e}") from e

        logger.debug(f"Creating login token for uid={self.uid} expires={expires_at}")
        try:
            return jwt.encode({"uid": self.uid, "exp": expires_at}, key, algorithm=SIGNING_ALGORITHM)
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            raise AuthError(f"Error creating login token: {e}") from e

    async def auth_token(self, session: aiohttp.ClientSession) -> str:
        """Return the current Authorization value, refreshing it if expired.

        Returns:
            ``token=<value>``, or an empty string if a refresh failed.
        """
        if self._clock() <= self.state.expires_at:
            return self.state.token

        try:
            await self._refresh(session)
        except AuthError as e:
            logger.error(f"Login at {self.login_url} failed: {e}")
            return ""

        return self.state.token

    async def _refresh(self, session: aiohttp.ClientSession) -> None:
        expires_at = int(self._clock()) + TOKEN_LIFETIME_SECONDS
        assertion = self.signing_token(expires_at)

        try:
            async with session.post(
                self.login_url,
                json={"uid": self.uid, "token": assertion},
                headers={"User-Agent": self.user_agent, "Content-Type": "application/json"},
            ) as response:
                if not 200 <= response.status < 300:
                    self.reporter.report()
                    raise AuthError(f"login returned {response.status}")
                body = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.reporter.report(e)
            raise AuthError(f"Error fetching URL: {e}") from e
        except ValueError as e:
            self.reporter.report(e)
            raise AuthError(f"Error decoding response body: {e}") from e

        token = body.get("token") if isinstance(body, dict) else None
        if not isinstance(token, str) or not token:
            self.reporter.report()
            raise AuthError("login response carried no token")

        self.state.token = f"token={token}"
        self.state.expires_at = expires_at
