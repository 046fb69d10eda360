"""Top‑level package for the azure_email client.

This package provides a small client for the Azure Communication Services
Email REST API.  Requests are authenticated with an HMAC-SHA256 signature
computed from a shared access key; the signing helpers live in
:mod:`azure_email.signing` and can be used on their own.  The sender in
:mod:`azure_email.mailer.azure_sender` builds the JSON payload, signs it and
posts it.

Typical use::

    from azure_email import AzureEmailSender

    sender = AzureEmailSender.from_options(
        mail_from="DoNotReply@contoso.azurecomm.net",
        endpoint="https://contoso.communication.azure.com",
        access_key="<base64 key>",
    )
    sender.send_mail("alice@example.com", "Hello", "<p>Hi Alice</p>")
"""

from __future__ import annotations

from azure_email.config import ClientConfig, parse_connection_string
from azure_email.errors import (
    AzureEmailError,
    ConfigError,
    RateLimitError,
    SendError,
    SerializationError,
    SigningError,
    TransportError,
)
from azure_email.mailer.azure_sender import AzureEmailSender
from azure_email.signing import AuthInfo, generate_auth_info

__all__ = [
    "AuthInfo",
    "AzureEmailError",
    "AzureEmailSender",
    "ClientConfig",
    "ConfigError",
    "RateLimitError",
    "SendError",
    "SerializationError",
    "SigningError",
    "TransportError",
    "generate_auth_info",
    "parse_connection_string",
]

# SemVer version of the package
__version__: str = "0.1.0"
