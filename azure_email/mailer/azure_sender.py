"""Azure Communication Services email sender implementation.

This module defines ``AzureEmailSender``, which sends email through the
ACS Email REST API (``POST /emails:send``).  Each request is signed with
HMAC-SHA256 using the resource access key; see :mod:`azure_email.signing`
for the protocol.  The service accepts the message asynchronously and
answers ``202 Accepted`` with an operation id.

The sender performs one HTTP call per message.  It does not retry: a
throttled request raises :class:`~azure_email.errors.RateLimitError` and
the caller decides when to try again.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from azure_email.config import ClientConfig
from azure_email.errors import RateLimitError, SendError, TransportError
from azure_email.mailer import EmailSender
from azure_email.mailer.payload import build_payload, encode_payload
from azure_email.signing import Clock, generate_auth_info, utc_now

SEND_PATH = "/emails:send"

LOGGER = logging.getLogger(__name__)


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        # HTTP-date form is not used by ACS
        return None


class AzureEmailSender(EmailSender):
    """ACS implementation of the ``EmailSender`` interface."""

    def __init__(
        self,
        config: ClientConfig,
        *,
        session: Optional[requests.Session] = None,
        clock: Clock = utc_now,
    ) -> None:
        self._config = config
        self._clock = clock
        self._owns_session = session is None
        self._session = session if session is not None else requests.Session()

    @classmethod
    def from_options(
        cls,
        *,
        mail_from: str,
        endpoint: str,
        access_key: str,
        session: Optional[requests.Session] = None,
        clock: Clock = utc_now,
        **settings: Any,
    ) -> "AzureEmailSender":
        """Validate the options and return a sender.

        Raises:
            ConfigError: If ``mail_from``, ``endpoint`` or ``access_key``
                is empty.
        """
        config = ClientConfig(
            mail_from=mail_from, endpoint=endpoint, access_key=access_key, **settings
        )
        return cls(config, session=session, clock=clock)

    @classmethod
    def from_env(cls, **kwargs: Any) -> "AzureEmailSender":
        """Build a sender from ``ACS_*`` environment variables."""
        return cls(ClientConfig.from_env(), **kwargs)

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def send_url(self) -> str:
        return (
            f"{self._config.endpoint}{SEND_PATH}"
            f"?api-version={self._config.api_version}"
        )

    def _signed_headers(self, body: bytes) -> Dict[str, str]:
        auth = generate_auth_info(
            "POST",
            self._config.host,
            SEND_PATH,
            {"api-version": [self._config.api_version]},
            self._config.access_key,
            body,
            clock=self._clock,
        )
        return {
            "x-ms-date": auth.date,
            "x-ms-content-sha256": auth.content_hash,
            "Authorization": auth.authorization,
            "Content-Type": "application/json",
        }

    def send_mail(
        self,
        to: str,
        subject: str,
        html: str,
        *,
        text: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> None:
        """Send an email via the ACS Email API.

        Args:
            to: Target email address.
            subject: Subject line.
            html: HTML body of the email.
            text: Optional plain‑text alternative.
            display_name: Optional display name for ``to``.

        Raises:
            SerializationError: If the payload cannot be encoded.
            SigningError: If the access key is not valid base64.
            TransportError: If the request fails without a response.
            RateLimitError: If the service answers 429.
            SendError: If the service answers any other non-2xx status.
        """
        payload = build_payload(
            self._config.mail_from,
            to,
            subject,
            html,
            text=text,
            display_name=display_name,
        )
        body = encode_payload(payload)
        headers = self._signed_headers(body)

        url = self.send_url
        LOGGER.debug("Sending email to %s via %s", to, url)
        try:
            response = self._session.post(
                url, data=body, headers=headers, timeout=self._config.timeout
            )
        except requests.RequestException as exc:
            raise TransportError(f"request to {url} failed: {exc}") from exc

        self._raise_for_status(response)
        LOGGER.info(
            "Email to %s accepted (%s, operation %s)",
            to,
            response.status_code,
            self._operation_id(response),
        )

    @staticmethod
    def _raise_for_status(response: requests.Response) -> None:
        if response.status_code == 429:
            raise RateLimitError(
                body=response.text,
                retry_after=_parse_retry_after(response.headers.get("Retry-After")),
            )
        if response.status_code // 100 != 2:
            raise SendError(response.status_code, response.reason or "", response.text)

    @staticmethod
    def _operation_id(response: requests.Response) -> Optional[str]:
        operation_id = response.headers.get("Operation-Id")
        if operation_id:
            return operation_id
        try:
            data = response.json()
        except ValueError:
            return None
        return data.get("id") if isinstance(data, dict) else None

    def close(self) -> None:
        """Close the HTTP session if this sender created it."""
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "AzureEmailSender":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["AzureEmailSender", "SEND_PATH"]
