"""Exceptions raised by the azure_email client.

Every error is raised to the immediate caller.  ``RateLimitError`` is kept
apart from ``SendError`` so that callers can apply their own backoff
policy to throttled requests.
"""

from __future__ import annotations

from typing import Optional


class AzureEmailError(Exception):
    """Base class for all errors raised by this package."""


class ConfigError(AzureEmailError, ValueError):
    """Required configuration is missing or malformed."""


class SerializationError(AzureEmailError):
    """The email payload could not be encoded as JSON."""


class SigningError(AzureEmailError):
    """The request could not be signed, e.g. the access key is not base64."""


class TransportError(AzureEmailError):
    """The HTTP request failed before a response was received."""


class SendError(AzureEmailError):
    """The service answered with a non-2xx status other than 429."""

    def __init__(self, status_code: int, reason: str, body: str) -> None:
        self.status_code = status_code
        self.reason = reason
        self.body = body
        super().__init__(
            f"failed to send email: {status_code} {reason} {body}".rstrip()
        )


class RateLimitError(AzureEmailError):
    """The service throttled the request (HTTP 429)."""

    def __init__(self, body: str = "", retry_after: Optional[float] = None) -> None:
        self.status_code = 429
        self.body = body
        self.retry_after = retry_after
        message = "rate limit exceeded"
        if retry_after is not None:
            message += f" (retry after {retry_after:g}s)"
        super().__init__(message)


__all__ = [
    "AzureEmailError",
    "ConfigError",
    "RateLimitError",
    "SendError",
    "SerializationError",
    "SigningError",
    "TransportError",
]
