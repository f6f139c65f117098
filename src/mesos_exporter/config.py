"""Exporter configuration.

Loads configuration from mesos-exporter.toml with sensible defaults. Credentials
can also be supplied through environment variables or a DC/OS service account
secret file:

    export MESOS_EXPORTER_USERNAME=monitor
    export MESOS_EXPORTER_PASSWORD=secret
    export MESOS_EXPORTER_SERVICE_ACCOUNT_SECRET=/run/secrets/sa.json
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

try:
    import tomllib as tomli  # Python 3.11+ stdlib
except ImportError:
    import tomli  # Backport for older Python

CONFIG_FILENAME = "mesos-exporter.toml"
DEFAULT_URL = "http://127.0.0.1:5050"

ENV_USERNAME = "MESOS_EXPORTER_USERNAME"
ENV_PASSWORD = "MESOS_EXPORTER_PASSWORD"
ENV_SERVICE_ACCOUNT_SECRET = "MESOS_EXPORTER_SERVICE_ACCOUNT_SECRET"


@dataclass
class AuthConfig:
    """Credentials used when polling the master."""

    username: str = ""
    password: str = ""
    strict_mode: bool = False  # DC/OS strict mode: signed login tokens
    uid: str = ""
    login_url: str = ""
    private_key: str = ""  # PEM text
    skip_ssl_verify: bool = False

    @property
    def has_basic_auth(self) -> bool:
        """Basic auth is only sent when both halves are present."""
        return bool(self.username and self.password)


@dataclass
class ExporterConfig:
    """Root configuration for the exporter."""

    url: str = DEFAULT_URL
    timeout: float | None = None  # seconds; None keeps the transport default
    slave_attribute_labels: list[str] = field(default_factory=list)
    auth: AuthConfig = field(default_factory=AuthConfig)


@dataclass
class ServiceAccountSecret:
    """DC/OS service account secret as stored by the secret store."""

    login_endpoint: str
    private_key: str
    scheme: str
    uid: str


def load_config(config_path: Path | None = None) -> ExporterConfig:
    """Load configuration from mesos-exporter.toml.

    Args:
        config_path: Path to config file. If None, searches current directory
                     and parent directories for mesos-exporter.toml.

    Returns:
        ExporterConfig with values from file, environment, or defaults.
    """
    if config_path is None:
        config_path = _find_config_file()

    data: dict = {}
    if config_path is not None and config_path.exists():
        with open(config_path, "rb") as f:
            data = tomli.load(f)

    config = _parse_config(data)
    _apply_environment(config)
    return config


def load_service_account_secret(path: Path) -> ServiceAccountSecret:
    """Read a DC/OS service account secret file.

    Args:
        path: Path to the JSON secret.

    Returns:
        Parsed ServiceAccountSecret.

    Raises:
        ValueError: If the file is not JSON or lacks a required field.
    """
    with open(path) as f:
        data = json.load(f)

    missing = [k for k in ("login_endpoint", "private_key", "uid") if not data.get(k)]
    if missing:
        raise ValueError(f"Service account secret {path} missing fields: {', '.join(missing)}")

    return ServiceAccountSecret(
        login_endpoint=data["login_endpoint"],
        private_key=data["private_key"],
        scheme=data.get("scheme", "RS256"),
        uid=data["uid"],
    )


def apply_service_account_secret(auth: AuthConfig, secret: ServiceAccountSecret) -> None:
    """Switch auth to strict mode using a service account secret."""
    auth.strict_mode = True
    auth.uid = secret.uid
    auth.login_url = secret.login_endpoint
    auth.private_key = secret.private_key


def _find_config_file() -> Path | None:
    """Search for mesos-exporter.toml in current and parent directories."""
    current = Path.cwd()

    for directory in [current, *current.parents]:
        config_file = directory / CONFIG_FILENAME
        if config_file.exists():
            return config_file

    return None


def _parse_config(data: dict) -> ExporterConfig:
    """Parse configuration dictionary into ExporterConfig."""
    auth_data = data.get("auth", {})

    auth_config = AuthConfig(
        username=auth_data.get("username", ""),
        password=auth_data.get("password", ""),
        strict_mode=auth_data.get("strict_mode", False),
        uid=auth_data.get("uid", ""),
        login_url=auth_data.get("login_url", ""),
        private_key=auth_data.get("private_key", ""),
        skip_ssl_verify=auth_data.get("skip_ssl_verify", False),
    )

    # A key file wins over inline PEM text
    if "private_key_file" in auth_data:
        auth_config.private_key = Path(auth_data["private_key_file"]).read_text()

    if "service_account_secret" in auth_data:
        secret = load_service_account_secret(Path(auth_data["service_account_secret"]))
        apply_service_account_secret(auth_config, secret)

    return ExporterConfig(
        url=data.get("url", DEFAULT_URL),
        timeout=data.get("timeout"),
        slave_attribute_labels=list(data.get("slave_attribute_labels", [])),
        auth=auth_config,
    )


def _apply_environment(config: ExporterConfig) -> None:
    """Override credentials from environment variables."""
    username = os.environ.get(ENV_USERNAME)
    if username:
        config.auth.username = username

    password = os.environ.get(ENV_PASSWORD)
    if password:
        config.auth.password = password

    secret_path = os.environ.get(ENV_SERVICE_ACCOUNT_SECRET)
    if secret_path:
        secret = load_service_account_secret(Path(secret_path))
        apply_service_account_secret(config.auth, secret)
