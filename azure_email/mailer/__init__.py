"""Abstract interface and implementations for sending email messages.

This subpackage defines a common ``send_mail`` interface along with the
Azure Communication Services implementation.  Client code can depend on
:class:`EmailSender` and swap the concrete sender in tests without
changing the calling semantics.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class EmailSender(ABC):
    """Abstract base class for email senders.

    Implementations must provide a ``send_mail`` method.  The arguments
    cover a transactional message: a recipient address, a subject, the
    HTML body and optionally a plain‑text alternative and a display name
    for the recipient.
    """

    @abstractmethod
    def send_mail(
        self,
        to: str,
        subject: str,
        html: str,
        *,
        text: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> None:
        """Send a single email message.

        Args:
            to: The target email address.
            subject: The email subject line.
            html: The HTML content of the message.
            text: Optional plain‑text version.
            display_name: Optional display name for the recipient.

        Raises:
            Any implementation specific exceptions on failure.
        """
        raise NotImplementedError


__all__ = ["EmailSender"]
