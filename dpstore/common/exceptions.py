"""
Custom exceptions for the store backend.
"""

from __future__ import annotations


class DPStoreError(Exception):
    """Base exception carrying the HTTP status it maps to."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidProductError(DPStoreError):
    """Exception for line item identifiers missing from the catalog."""

    def __init__(self, product_id: str) -> None:
        super().__init__(f"Invalid product: {product_id}", 400)
        self.product_id = product_id


class MissingRequiredFieldError(DPStoreError):
    """Exception for order requests lacking a required field."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Missing required field: {field}", 400)
        self.field = field


class SignatureVerificationError(DPStoreError):
    """Exception for payment events that fail authenticity checks."""

    def __init__(self, message: str = "invalid event") -> None:
        super().__init__(message, 400)


class BoundaryError(DPStoreError):
    """Exception for failed calls to the payment provider."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, status_code or 502)


class PersistenceError(DPStoreError):
    """Exception for license store writes that did not reach disk."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 500)


class LicenseNotFoundError(DPStoreError):
    """Exception for lookups of a serial with no license record."""

    def __init__(self, serial: str) -> None:
        super().__init__(f"License not found: {serial}", 404)
        self.serial = serial
