"""Business logic services for the store backend.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from dpstore.common.config import Config
    from dpstore.common.interfaces import ILicenseStore, IPaymentGateway
    from dpstore.common.models import (
        CheckoutSession,
        OrderRequest,
        Quote,
        QuoteRequest,
    )
    from dpstore.server.pricing import PricingEngine
from dpstore.common.exceptions import LicenseNotFoundError, MissingRequiredFieldError
from dpstore.common.models import LicenseView
from dpstore.server.domain.checkout_handler import CheckoutHandler
from dpstore.server.domain.webhook_handler import WebhookHandler


class OrderService:
    """Handles business logic for the store backend."""

    def __init__(
        self,
        config: Config,
        pricing: PricingEngine,
        gateway: IPaymentGateway,
        store: ILicenseStore,
        success_url: str,
        cancel_url: str,
    ):
        self.config = config
        self.pricing = pricing
        self.gateway = gateway
        self.store = store

        # Initialize handlers
        self.checkout_handler = CheckoutHandler(
            pricing=self.pricing,
            gateway=self.gateway,
            success_url=success_url,
            cancel_url=cancel_url,
            max_description_len=self.config.MAX_DESCRIPTION_LEN,
        )
        self.webhook_handler = WebhookHandler(
            gateway=self.gateway,
            store=self.store,
            known_features=self.pricing.catalog.features,
        )

    def health(self) -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "timestamp": int(time.time())}

    def quote(self, quote_request: QuoteRequest) -> Quote:
        """Price a cart without contacting the payment provider."""
        if not quote_request.items:
            raise MissingRequiredFieldError("items")
        return self.pricing.quote(quote_request.items)

    async def create_checkout_session(self, order: OrderRequest) -> CheckoutSession:
        """Handle /create-checkout-session business logic."""
        return await self.checkout_handler.handle_checkout(order)

    async def webhook(self, payload: bytes, signature: str) -> dict[str, Any]:
        """Handle /webhook business logic."""
        return await self.webhook_handler.handle_webhook(payload, signature)

    def lookup(self, serial: str) -> LicenseView:
        """Handle /licenses/{serial} business logic."""
        if not serial.strip():
            raise MissingRequiredFieldError("serial")
        record = self.store.get(serial)
        if record is None:
            raise LicenseNotFoundError(serial.strip().upper())
        return LicenseView.from_record(record)
