"""
Interfaces and protocols for dependency injection.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Iterable, Protocol

from dpstore.common.models import (
    CheckoutSession,
    LicenseRecord,
    PricedLine,
    StripeEvent,
)


class ILicensePersistence(Protocol):
    """Protocol for license file operations."""

    @staticmethod
    def load_licenses(file_path: Path) -> tuple[dict[str, LicenseRecord], list[str]]: ...

    @staticmethod
    def save_licenses(
        file_path: Path,
        records: dict[str, LicenseRecord],
        known_features: Iterable[str],
    ) -> None: ...


class ILicenseStore(Protocol):
    """Protocol for the license activation store."""

    def get(self, serial: str) -> LicenseRecord | None: ...

    async def apply_activation(
        self, serial: str, features: Iterable[str], on: date | None = None
    ) -> LicenseRecord: ...

    async def flush(self) -> None: ...


class IPaymentGateway(Protocol):
    """Protocol for the external payment provider."""

    def create_checkout_session(
        self,
        *,
        lines: list[PricedLine],
        description: str,
        customer_email: str,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession: ...

    def construct_event(self, payload: bytes, signature: str) -> StripeEvent: ...
