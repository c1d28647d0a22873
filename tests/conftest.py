from __future__ import annotations

import hashlib
import hmac
import json
import time
from datetime import date
from pathlib import Path
from typing import Any, Callable

import pytest

from dpstore.common.models import CheckoutSession, PricedLine
from dpstore.server.core import OrderServer
from dpstore.server.payment_gateway import StripeGateway

WEBHOOK_SECRET = "whsec_test_secret"


class FakeGateway(StripeGateway):
    """Real webhook verification, recorded instead of sent checkout calls."""

    def __init__(self) -> None:
        super().__init__(api_key="sk_test", webhook_secret=WEBHOOK_SECRET)
        self.calls: list[dict[str, Any]] = []

    def create_checkout_session(
        self, *, lines: list[PricedLine], **kwargs: Any
    ) -> CheckoutSession:
        self.calls.append({"lines": lines, **kwargs})
        return CheckoutSession(
            url=f"https://checkout.stripe.test/cs_test_{len(self.calls)}",
            session_id=f"cs_test_{len(self.calls)}",
        )


def stripe_signature(payload: bytes, secret: str = WEBHOOK_SECRET) -> str:
    """Stripe-Signature header value for payload signed now."""
    timestamp = int(time.time())
    signed = f"{timestamp}.".encode() + payload
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def completed_event(
    serial: str | None,
    features: str = "",
    event_type: str = "checkout.session.completed",
    payment_status: str | None = "paid",
) -> bytes:
    metadata = {"email": "buyer@example.com"}
    if serial is not None:
        metadata["serial"] = serial
        metadata["features"] = features
    session: dict[str, Any] = {
        "id": "cs_test_1",
        "object": "checkout.session",
        "metadata": metadata,
    }
    if payment_status is not None:
        session["payment_status"] = payment_status
    return json.dumps(
        {
            "id": "evt_test_1",
            "object": "event",
            "type": event_type,
            "data": {"object": session},
        }
    ).encode()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def license_file(tmp_path: Path) -> Path:
    return tmp_path / "data" / "licenses.csv"


@pytest.fixture
def make_server(
    gateway: FakeGateway, license_file: Path
) -> Callable[..., OrderServer]:
    def _make(**overrides: Any) -> OrderServer:
        overrides.setdefault("license_file_path", license_file)
        overrides.setdefault("stripe_webhook_secret", WEBHOOK_SECRET)
        overrides.setdefault("today", lambda: date(2024, 2, 29))
        return OrderServer(gateway=gateway, **overrides)

    return _make
