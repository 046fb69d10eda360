"""Configuration for the Azure email sender.

``ClientConfig`` is immutable and validated on construction.  It can be
built directly, from a connection string, or from environment variables.

Environment variables used by :meth:`ClientConfig.from_env`:

* ``ACS_CONNECTION_STRING`` – ``endpoint=https://...;accesskey=...`` as
  shown in the Azure portal; supplies endpoint and access key together
* ``ACS_MAIL_FROM``/``AZURE_EMAIL_MAIL_FROM`` – sender address
* ``ACS_ENDPOINT``/``AZURE_EMAIL_ENDPOINT`` – resource endpoint URL
* ``ACS_ACCESS_KEY``/``AZURE_EMAIL_ACCESS_KEY`` – base64 access key
* ``ACS_TIMEOUT`` – request timeout in seconds; defaults to 10
* ``ACS_API_VERSION`` – REST API version; defaults to ``2023-03-31``

Explicit endpoint and key variables take precedence over the connection
string.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from azure_email.errors import ConfigError

DEFAULT_API_VERSION = "2023-03-31"
DEFAULT_TIMEOUT = 10.0
HTTPS_PREFIX = "https://"


def _first(environ: Mapping[str, str], *names: str) -> str:
    for name in names:
        value = environ.get(name)
        if value:
            return value.strip()
    return ""


def parse_connection_string(value: str) -> Dict[str, str]:
    """Split an ACS connection string into its ``key=value`` parts.

    Keys are lower-cased.  Values may contain ``=`` (base64 padding), so
    each part is split on the first ``=`` only.
    """
    parts: Dict[str, str] = {}
    for item in value.split(";"):
        item = item.strip()
        if not item:
            continue
        key, sep, val = item.partition("=")
        if not sep:
            raise ConfigError(f"malformed connection string segment: {key!r}")
        parts[key.strip().lower()] = val.strip()
    return parts


@dataclass(frozen=True)
class ClientConfig:
    """Settings held by a sender for its lifetime.

    Attributes:
        mail_from: Sender address, e.g. ``DoNotReply@<domain>``.
        endpoint: Resource URL, ``https://<name>.communication.azure.com``.
        access_key: Base64-encoded shared secret used to sign requests.
        timeout: Seconds to wait for the service before giving up.
        api_version: Value of the ``api-version`` query parameter.
    """

    mail_from: str
    endpoint: str
    access_key: str
    timeout: float = DEFAULT_TIMEOUT
    api_version: str = DEFAULT_API_VERSION

    def __post_init__(self) -> None:
        # frozen: normalise through object.__setattr__
        for name in ("mail_from", "endpoint", "access_key"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise ConfigError(f"{name} must be a string, got {type(value).__name__}")
            if not (value or "").strip():
                raise ConfigError(f"{name} is required, but not provided")
            object.__setattr__(self, name, value.strip())
        object.__setattr__(self, "endpoint", self.endpoint.rstrip("/"))
        if not self.api_version:
            raise ConfigError("api_version must not be empty")
        try:
            timeout = float(self.timeout)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"timeout is not a number: {self.timeout!r}") from exc
        if timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout!r}")
        object.__setattr__(self, "timeout", timeout)

    @property
    def host(self) -> str:
        """Endpoint without the ``https://`` prefix, as used when signing."""
        if self.endpoint.startswith(HTTPS_PREFIX):
            return self.endpoint[len(HTTPS_PREFIX):]
        return self.endpoint

    @classmethod
    def from_connection_string(
        cls,
        connection_string: str,
        mail_from: str,
        timeout: float = DEFAULT_TIMEOUT,
        api_version: str = DEFAULT_API_VERSION,
    ) -> "ClientConfig":
        parts = parse_connection_string(connection_string)
        return cls(
            mail_from=mail_from,
            endpoint=parts.get("endpoint", ""),
            access_key=parts.get("accesskey", ""),
            timeout=timeout,
            api_version=api_version,
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientConfig":
        """Build a config from environment variables.

        Raises:
            ConfigError: If a required value is missing or ``ACS_TIMEOUT``
                is not a number.
        """
        env = os.environ if environ is None else environ

        parts: Dict[str, str] = {}
        conn_str = _first(env, "ACS_CONNECTION_STRING")
        if conn_str:
            parts = parse_connection_string(conn_str)

        raw_timeout = _first(env, "ACS_TIMEOUT")
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError as exc:
            raise ConfigError(f"ACS_TIMEOUT is not a number: {raw_timeout!r}") from exc

        return cls(
            mail_from=_first(env, "ACS_MAIL_FROM", "AZURE_EMAIL_MAIL_FROM"),
            endpoint=(
                _first(env, "ACS_ENDPOINT", "AZURE_EMAIL_ENDPOINT")
                or parts.get("endpoint", "")
            ),
            access_key=(
                _first(env, "ACS_ACCESS_KEY", "AZURE_EMAIL_ACCESS_KEY")
                or parts.get("accesskey", "")
            ),
            timeout=timeout,
            api_version=_first(env, "ACS_API_VERSION") or DEFAULT_API_VERSION,
        )


__all__ = [
    "ClientConfig",
    "DEFAULT_API_VERSION",
    "DEFAULT_TIMEOUT",
    "parse_connection_string",
]
