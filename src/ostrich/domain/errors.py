"""
Exception hierarchy for Ostrich.

    OstrichError (base)
    ├── InvalidAssumptionsError   bad investment assumptions / calculator guard
    ├── ListingSearchError        listing search failed; the caller sends the fallback email
    ├── PropertyDetailError       one property's detail lookup failed; that property is skipped
    ├── EmailDispatchError        the email provider rejected or never got the message
    └── AuthError                 malformed bearer token
"""
from __future__ import annotations

from typing import Any


class OstrichError(Exception):
    """Base exception for all Ostrich errors."""

    def __init__(self, message: str, *args: Any):
        self.message = message
        super().__init__(message, *args)

    def context(self) -> dict[str, Any]:
        """Structured fields for log records."""
        return {"error": type(self).__name__, "reason": self.message}


class InvalidAssumptionsError(OstrichError, ValueError):
    """Raised when an assumption bundle would make the return calculation divide by zero."""

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        self.field = field
        self.value = value
        super().__init__(message)

    def context(self) -> dict[str, Any]:
        return super().context() | {"field": self.field, "value": self.value}


class ListingSearchError(OstrichError):
    def __init__(
        self,
        message: str,
        location: str | None = None,
        url: str | None = None,
        status_code: int | None = None,
    ):
        self.location = location
        self.url = url
        self.status_code = status_code
        super().__init__(message)

    def context(self) -> dict[str, Any]:
        return super().context() | {
            "location": self.location,
            "url": self.url,
            "status": self.status_code,
        }


class PropertyDetailError(OstrichError):
    def __init__(self, message: str, zpid: str | None = None, status_code: int | None = None):
        self.zpid = zpid
        self.status_code = status_code
        super().__init__(message)

    def context(self) -> dict[str, Any]:
        return super().context() | {"zpid": self.zpid, "status": self.status_code}


class EmailDispatchError(OstrichError):
    def __init__(self, message: str, recipient: str | None = None, status_code: int | None = None):
        self.recipient = recipient
        self.status_code = status_code
        super().__init__(message)

    def context(self) -> dict[str, Any]:
        return super().context() | {"to": self.recipient, "status": self.status_code}


class AuthError(OstrichError):
    pass
