"""Exception types surfaced by the purchase-order services."""

from __future__ import annotations


class ServiceError(Exception):
    """Base error carrying the HTTP status the API layer should respond with."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BadRequest(ServiceError):
    """Client-correctable input problem (type, size, payload shape)."""

    status_code = 400


class NotFound(ServiceError):
    status_code = 404


class UpstreamError(ServiceError):
    """The OCR or completion provider failed or answered unusably."""

    status_code = 502


class InvalidPurchaseOrder(ValueError):
    """Raised by the validator with the first offending field."""

    def __init__(self, message: str, field: str = "") -> None:
        self.message = message
        self.field = field
        super().__init__(f"{field}: {message}" if field else message)
