"""HMAC-SHA256 request signing for the Azure Communication Services API.

The service authenticates each request by recomputing a signature over a
canonical string built from the HTTP method, the path and query, the
request date, the host and a hash of the body.  The helpers in this module
produce the three headers the service checks:

* ``x-ms-date`` – the request date in RFC 7231 format
* ``x-ms-content-sha256`` – base64 SHA-256 digest of the body
* ``Authorization`` – the HMAC signature over the canonical string

All functions are pure apart from the clock, which can be injected for
deterministic tests.  Nothing here holds state, so they are safe to call
from several threads at once and can be used without the mail sender.
"""

from __future__ import annotations

import base64
import binascii
import datetime as dt
import hashlib
import hmac
from email.utils import format_datetime
from typing import Callable, Mapping, NamedTuple, Sequence, Union

from azure_email.errors import SigningError

SIGNED_HEADERS = "x-ms-date;host;x-ms-content-sha256"
AUTH_HEADER_PREFIX = f"HMAC-SHA256 SignedHeaders={SIGNED_HEADERS}&Signature="

Clock = Callable[[], dt.datetime]
QueryParams = Mapping[str, Union[str, Sequence[str]]]


class AuthInfo(NamedTuple):
    """Headers produced for one signed request."""

    date: str
    content_hash: str
    authorization: str


def utc_now() -> dt.datetime:
    """Default clock: the current time in UTC."""
    return dt.datetime.now(dt.timezone.utc)


def format_http_date(moment: dt.datetime) -> str:
    """Format ``moment`` as an RFC 7231 HTTP-date.

    Naive datetimes are assumed to be in UTC.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=dt.timezone.utc)
    return format_datetime(moment.astimezone(dt.timezone.utc), usegmt=True)


def compute_content_hash(body: bytes) -> str:
    """Return the base64-encoded SHA-256 digest of ``body``."""
    return base64.b64encode(hashlib.sha256(body).digest()).decode("ascii")


def canonical_path_and_query(path: str, query: QueryParams | None = None) -> str:
    """Build the path-and-query component of the string to sign.

    Keys are emitted in sorted order so the result does not depend on the
    mapping's iteration order; values of one key keep their given order.
    """
    parts = [path]
    if query:
        parts.append("?")
        for key in sorted(query):
            values = query[key]
            if isinstance(values, str):
                values = [values]
            for value in values:
                parts.append(f"{key}={value}&")
    return "".join(parts).rstrip("?&")


def string_to_sign(
    method: str, path_and_query: str, date: str, host: str, content_hash: str
) -> str:
    return f"{method}\n{path_and_query}\n{date};{host};{content_hash}"


def compute_signature(message: str, access_key: str) -> str:
    """Sign ``message`` with the base64-encoded ``access_key``.

    Raises:
        SigningError: If ``access_key`` is not valid base64 or is empty.
    """
    try:
        secret = base64.b64decode(access_key, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise SigningError(f"access key is not valid base64: {exc}") from exc
    if not secret:
        raise SigningError("access key decodes to an empty secret")
    digest = hmac.new(secret, message.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def generate_auth_info(
    method: str,
    host: str,
    path: str,
    query: QueryParams | None,
    access_key: str,
    body: bytes,
    *,
    clock: Clock = utc_now,
) -> AuthInfo:
    """Compute the date, content hash and ``Authorization`` header.

    Args:
        method: HTTP method, e.g. ``"POST"``.
        host: Host name of the endpoint without the scheme.
        path: Request path, e.g. ``"/emails:send"``.
        query: Query parameters; each value is a string or a sequence
            of strings.
        access_key: Base64-encoded shared secret.
        body: The exact request body bytes that will be sent.
        clock: Zero-argument callable returning the request time.

    Returns:
        An :class:`AuthInfo` with the values for the ``x-ms-date``,
        ``x-ms-content-sha256`` and ``Authorization`` headers.

    Raises:
        SigningError: If ``access_key`` cannot be decoded.
    """
    date = format_http_date(clock())
    content_hash = compute_content_hash(body)
    message = string_to_sign(
        method, canonical_path_and_query(path, query), date, host, content_hash
    )
    signature = compute_signature(message, access_key)
    return AuthInfo(date, content_hash, AUTH_HEADER_PREFIX + signature)


__all__ = [
    "AUTH_HEADER_PREFIX",
    "AuthInfo",
    "Clock",
    "SIGNED_HEADERS",
    "canonical_path_and_query",
    "compute_content_hash",
    "compute_signature",
    "format_http_date",
    "generate_auth_info",
    "string_to_sign",
    "utc_now",
]
