"""Typed JSON payload for the ``/emails:send`` operation.

Python attributes are snake_case; the wire names are the camelCase names
the service expects (``senderAddress``, ``displayName``, ``plainText``).
Optional fields left as ``None`` are omitted from the encoded body.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from azure_email.errors import SerializationError


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Account(_WireModel):
    address: str
    display_name: Optional[str] = Field(default=None, alias="displayName")


class Recipients(_WireModel):
    to: List[Account] = Field(default_factory=list)
    cc: List[Account] = Field(default_factory=list)
    bcc: List[Account] = Field(default_factory=list)


class Content(_WireModel):
    subject: str
    plain_text: Optional[str] = Field(default=None, alias="plainText")
    html: str = ""


class EmailPayload(_WireModel):
    sender_address: str = Field(alias="senderAddress")
    recipients: Recipients
    content: Content


def build_payload(
    mail_from: str,
    to: str,
    subject: str,
    html: str,
    *,
    text: Optional[str] = None,
    display_name: Optional[str] = None,
) -> EmailPayload:
    """Return a payload addressed to a single ``to`` recipient.

    Raises:
        SerializationError: If a field has a type the payload cannot hold.
    """
    try:
        return EmailPayload(
            sender_address=mail_from,
            recipients=Recipients(
                to=[Account(address=to, display_name=display_name)]
            ),
            content=Content(subject=subject, html=html, plain_text=text),
        )
    except ValidationError as exc:
        raise SerializationError(f"invalid email payload: {exc}") from exc


def encode_payload(payload: EmailPayload) -> bytes:
    """Serialize ``payload`` to compact UTF-8 JSON using the wire names.

    Raises:
        SerializationError: If pydantic cannot encode the payload.
    """
    try:
        return payload.model_dump_json(by_alias=True, exclude_none=True).encode(
            "utf-8"
        )
    except ValueError as exc:
        raise SerializationError(f"could not encode email payload: {exc}") from exc


__all__ = [
    "Account",
    "Content",
    "EmailPayload",
    "Recipients",
    "build_payload",
    "encode_payload",
]
