"""
Error types raised while setting up accounts and talking to the marketplace.
"""

from datetime import datetime, timezone
from typing import Optional


class NoteBuyerError(Exception):
    """Base exception for note purchasing errors."""

    def __init__(self, message: str, investor_id: Optional[str] = None):
        self.investor_id = investor_id
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(message)


class TransportError(NoteBuyerError):
    """Raised when a marketplace request fails or returns an unusable body.

    Never retried: a failed submit leaves it unknown whether the order was
    placed.
    """

    def __init__(
        self,
        message: str,
        url: str,
        status_code: Optional[int] = None,
        investor_id: Optional[str] = None,
    ):
        self.url = url
        self.status_code = status_code
        detail = f"{message} (URL: {url}"
        if status_code is not None:
            detail += f", Status: {status_code}"
        super().__init__(detail + ")", investor_id)


class InvalidAccountIdentifier(NoteBuyerError):
    """Raised when an investor id is not the numeric form the marketplace expects."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid account identifier: {value!r}", value)


class AccountSetupError(NoteBuyerError):
    """Raised when an account profile cannot be turned into an investable account."""

    pass
