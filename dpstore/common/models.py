"""
Pydantic models for request/response validation.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class LicenseStatus(str, Enum):
    NOT_ACTIVE = "not-active"
    VALID = "valid"
    # Not produced by the activation workflow yet, kept so stored rows round-trip
    EXPIRED = "expired"
    REVOKED = "revoked"


class LineItem(BaseModel):
    """One cart entry. Amounts are never accepted from the client."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(min_length=1)
    options: dict[str, str] = Field(default_factory=dict)
    addons: dict[str, bool] = Field(default_factory=dict)


class OrderRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    items: list[LineItem] = Field(default_factory=list)
    email: str | None = None
    serial: str | None = None
    description: str | None = None


class QuoteRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    items: list[LineItem] = Field(default_factory=list)


class PricedLine(BaseModel):
    id: str
    name: str
    amount: int
    feature: str | None = None


class Quote(BaseModel):
    lines: list[PricedLine]
    total: int
    currency: str


class CheckoutSession(BaseModel):
    url: str
    session_id: str


class LicenseRecord(BaseModel):
    """Stored license state; updates go through model_copy."""

    model_config = ConfigDict(frozen=True)

    serial: str
    status: LicenseStatus = LicenseStatus.NOT_ACTIVE
    activation_date: date | None = None
    expires: date | None = None
    active_features: frozenset[str] = frozenset()


class LicenseView(BaseModel):
    serial: str
    status: LicenseStatus
    activation_date: date | None
    expires: date | None
    active_features: list[str]

    @classmethod
    def from_record(cls, record: LicenseRecord) -> LicenseView:
        return cls(
            serial=record.serial,
            status=record.status,
            activation_date=record.activation_date,
            expires=record.expires,
            active_features=sorted(record.active_features),
        )


class StripeEventData(BaseModel):
    object: dict[str, Any] = Field(default_factory=dict)


class StripeEvent(BaseModel):
    """Subset of a provider event envelope that the webhook reads."""

    id: str
    type: str
    data: StripeEventData = Field(default_factory=StripeEventData)


class ActivationRequest(BaseModel):
    serial: str
    features: list[str] = Field(default_factory=list)
    event_id: str | None = None
